# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Topocentric observation geometry.

Azimuth, elevation and slant range from a ground station to a satellite
given in ECEF coordinates.

External dependency: numpy (allowed in domain layer).
"""
import math
from dataclasses import dataclass

import numpy as np

from orbit_czml.domain.coordinate_frames import enu_basis, geodetic_to_ecef
from orbit_czml.domain.errors import InvalidConfigurationError


@dataclass(frozen=True)
class GroundStation:
    """A ground station on the WGS84 ellipsoid."""
    name: str
    lat_deg: float
    lon_deg: float
    alt_m: float = 0.0

    def __post_init__(self) -> None:
        if not self.name:
            raise InvalidConfigurationError("ground station name must not be empty")
        if not -90.0 <= self.lat_deg <= 90.0:
            raise InvalidConfigurationError(f"latitude must be in [-90, 90], got {self.lat_deg}")
        if not -180.0 <= self.lon_deg <= 360.0:
            raise InvalidConfigurationError(f"longitude must be in [-180, 360], got {self.lon_deg}")

    @property
    def position_ecef(self) -> tuple[float, float, float]:
        return geodetic_to_ecef(self.lat_deg, self.lon_deg, self.alt_m)


@dataclass(frozen=True)
class Observation:
    """Topocentric observation: azimuth, elevation, slant range."""
    azimuth_deg: float
    elevation_deg: float
    slant_range_m: float


def compute_observation(
    station: GroundStation,
    satellite_ecef: tuple[float, float, float],
) -> Observation:
    """
    Look angles from a station to a satellite.

    Args:
        station: Ground station.
        satellite_ecef: Satellite ECEF position in meters.

    Returns:
        Observation with azimuth in [0, 360) measured from north through
        east, elevation in [-90, 90], and slant range in meters.
    """
    offset = np.asarray(satellite_ecef, dtype=float) - np.asarray(station.position_ecef)
    east, north, up = enu_basis(station.lat_deg, station.lon_deg) @ offset

    return Observation(
        azimuth_deg=math.degrees(math.atan2(east, north)) % 360.0,
        elevation_deg=math.degrees(math.atan2(up, math.hypot(east, north))),
        slant_range_m=float(np.linalg.norm(offset)),
    )
