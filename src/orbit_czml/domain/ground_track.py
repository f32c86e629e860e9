# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Ground track computation.

Sub-satellite points of a sampled trajectory.

No external dependencies beyond the domain frame conversions.
"""
from dataclasses import dataclass
from datetime import datetime

from orbit_czml.domain.coordinate_frames import eci_to_ecef, ecef_to_geodetic


@dataclass(frozen=True)
class GroundTrackPoint:
    """A single ground track point."""
    time: datetime
    lat_deg: float
    lon_deg: float
    alt_km: float


def compute_ground_track(samples) -> list[GroundTrackPoint]:
    """
    Geodetic sub-satellite points, one per trajectory sample.

    Args:
        samples: TrajectorySample list (ECI states).

    Returns:
        GroundTrackPoint list with the satellite altitude in km.
    """
    track: list[GroundTrackPoint] = []
    for sample in samples:
        pos_ecef, _ = eci_to_ecef(sample.position_eci, sample.velocity_eci, sample.time)
        lat_deg, lon_deg, alt_m = ecef_to_geodetic(pos_ecef)
        track.append(GroundTrackPoint(
            time=sample.time, lat_deg=lat_deg, lon_deg=lon_deg, alt_km=alt_m / 1000.0,
        ))
    return track

