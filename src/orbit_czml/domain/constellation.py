# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Walker-delta constellation shells.

Builds named circular orbital states for each satellite of a shell, to
feed the Keplerian propagator and the constellation exporters.
"""
import math
from dataclasses import dataclass
from datetime import datetime

from orbit_czml.domain.errors import InvalidConfigurationError
from orbit_czml.domain.orbital_mechanics import OrbitalConstants
from orbit_czml.domain.propagation import OrbitalState, orbital_state_from_elements


@dataclass(frozen=True)
class ShellConfig:
    """Walker shell i:T/P/F with a name prefix for its satellites."""
    altitude_km: float
    inclination_deg: float
    num_planes: int
    sats_per_plane: int
    phase_factor: int = 0
    raan_offset_deg: float = 0.0
    shell_name: str = "Walker"

    def __post_init__(self) -> None:
        if self.altitude_km <= 0:
            raise InvalidConfigurationError(f"altitude_km must be positive, got {self.altitude_km}")
        if self.num_planes < 1 or self.sats_per_plane < 1:
            raise InvalidConfigurationError(
                f"shell needs at least one plane and one satellite per plane, "
                f"got {self.num_planes} x {self.sats_per_plane}"
            )


@dataclass(frozen=True)
class ShellSatellite:
    """One satellite of a shell."""
    name: str
    plane_index: int
    sat_index: int
    state: OrbitalState


def generate_walker_shell(
    config: ShellConfig,
    epoch: datetime,
    include_j2: bool = False,
) -> list[ShellSatellite]:
    """
    Orbital states for every satellite of a Walker-delta shell.

    Planes are spread evenly in RAAN over 360°, satellites evenly in
    argument of latitude within a plane, and plane k is phased by
    k·F·360/T.

    Args:
        config: Shell geometry.
        epoch: Reference epoch of the returned states.
        include_j2: Add J2 secular drift to the states.

    Returns:
        Satellites ordered plane by plane.
    """
    a = OrbitalConstants.R_EARTH + config.altitude_km * 1000.0
    i_rad = math.radians(config.inclination_deg)
    total = config.num_planes * config.sats_per_plane

    satellites: list[ShellSatellite] = []
    for plane in range(config.num_planes):
        raan_deg = config.raan_offset_deg + plane * 360.0 / config.num_planes
        for slot in range(config.sats_per_plane):
            u_deg = (slot * 360.0 / config.sats_per_plane
                     + plane * config.phase_factor * 360.0 / total) % 360.0
            state = orbital_state_from_elements(
                a, 0.0, i_rad, math.radians(raan_deg), 0.0, math.radians(u_deg),
                epoch, include_j2=include_j2,
            )
            satellites.append(ShellSatellite(
                name=f"{config.shell_name}-P{plane + 1}-S{slot + 1}",
                plane_index=plane,
                sat_index=slot,
                state=state,
            ))
    return satellites
