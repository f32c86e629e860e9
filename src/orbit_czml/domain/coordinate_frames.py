# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Coordinate frame conversions.

ECI <-> ECEF through a GMST Z-axis rotation, WGS84 geodetic conversions,
and the local East-North-Up basis of a ground point.

Reference frames:
    ECI: Earth-Centered Inertial (non-rotating, J2000-aligned)
    ECEF: Earth-Centered Earth-Fixed, the frame CZML calls FIXED
    Geodetic: latitude, longitude, altitude on the WGS84 ellipsoid

Precession, nutation and polar motion are ignored.

External dependency: numpy (allowed in domain layer).
"""
import math
from datetime import datetime, timezone

import numpy as np

from orbit_czml.domain.orbital_mechanics import OrbitalConstants

_J2000 = datetime(2000, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def gmst_rad(epoch: datetime) -> float:
    """
    Greenwich Mean Sidereal Time for a UTC epoch, in radians [0, 2π).

    IAU 1982 expression in days (D) and centuries (T) since J2000.0:
        GMST(°) = 280.46061837 + 360.98564736629·D + 0.000387933·T² - T³/38710000
    """
    if epoch.tzinfo is None:
        epoch = epoch.replace(tzinfo=timezone.utc)

    days = (epoch - _J2000).total_seconds() / 86400.0
    centuries = days / 36525.0
    gmst_deg = (
        280.46061837
        + 360.98564736629 * days
        + 0.000387933 * centuries**2
        - centuries**3 / 38710000.0
    )
    return math.radians(gmst_deg % 360.0)


def eci_to_ecef_rotation(epoch: datetime) -> np.ndarray:
    """3x3 matrix R with r_ecef = R @ r_eci at the given epoch."""
    theta = gmst_rad(epoch)
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)
    return np.array([
        [cos_t, sin_t, 0.0],
        [-sin_t, cos_t, 0.0],
        [0.0, 0.0, 1.0],
    ])


def eci_to_ecef(
    pos_eci: tuple[float, float, float],
    vel_eci: tuple[float, float, float],
    epoch: datetime,
) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
    """
    Rotate an ECI state into ECEF.

    The velocity includes the transport term -ω × r of the rotating frame.

    Args:
        pos_eci: Position (x, y, z) in meters.
        vel_eci: Velocity (vx, vy, vz) in m/s.
        epoch: UTC time of the state.

    Returns:
        (pos_ecef, vel_ecef) in meters and m/s.
    """
    rotation = eci_to_ecef_rotation(epoch)
    pos = rotation @ np.asarray(pos_eci, dtype=float)
    omega = np.array([0.0, 0.0, OrbitalConstants.EARTH_ROTATION_RATE])
    vel = rotation @ np.asarray(vel_eci, dtype=float) - np.cross(omega, pos)
    return (
        (float(pos[0]), float(pos[1]), float(pos[2])),
        (float(vel[0]), float(vel[1]), float(vel[2])),
    )


def ecef_to_eci(
    pos_ecef: tuple[float, float, float],
    epoch: datetime,
) -> tuple[float, float, float]:
    """Rotate an Earth-fixed position back into ECI."""
    pos = eci_to_ecef_rotation(epoch).T @ np.asarray(pos_ecef, dtype=float)
    return float(pos[0]), float(pos[1]), float(pos[2])


def ecef_state_to_eci(
    pos_ecef: tuple[float, float, float],
    vel_ecef: tuple[float, float, float],
    epoch: datetime,
) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
    """Inverse of eci_to_ecef: the velocity gets ω × r added back."""
    rotation_t = eci_to_ecef_rotation(epoch).T
    r = np.asarray(pos_ecef, dtype=float)
    omega = np.array([0.0, 0.0, OrbitalConstants.EARTH_ROTATION_RATE])
    pos = rotation_t @ r
    vel = rotation_t @ (np.asarray(vel_ecef, dtype=float) + np.cross(omega, r))
    return (
        (float(pos[0]), float(pos[1]), float(pos[2])),
        (float(vel[0]), float(vel[1]), float(vel[2])),
    )


def ecef_to_geodetic(
    pos_ecef: tuple[float, float, float],
) -> tuple[float, float, float]:
    """
    Convert an ECEF position to WGS84 geodetic coordinates.

    Latitude is found by fixed-point iteration (Bowring), which converges
    to sub-millimeter accuracy for LEO to GEO altitudes.

    Returns:
        (latitude_deg, longitude_deg, altitude_m), longitude in (-180, 180].
    """
    a = OrbitalConstants.R_EARTH_EQUATORIAL
    e2 = OrbitalConstants.E_SQUARED

    x, y, z = pos_ecef
    p = math.hypot(x, y)
    lon_rad = math.atan2(y, x)

    lat_rad = math.atan2(z, p * (1.0 - e2))
    for _ in range(10):
        n = a / math.sqrt(1.0 - e2 * math.sin(lat_rad) ** 2)
        lat_rad = math.atan2(z + e2 * n * math.sin(lat_rad), p)

    sin_lat = math.sin(lat_rad)
    cos_lat = math.cos(lat_rad)
    n = a / math.sqrt(1.0 - e2 * sin_lat**2)
    if abs(cos_lat) > 1e-10:
        alt = p / cos_lat - n
    else:
        alt = abs(z) - OrbitalConstants.R_EARTH_POLAR

    return math.degrees(lat_rad), math.degrees(lon_rad), alt


def geodetic_to_ecef(
    lat_deg: float,
    lon_deg: float,
    alt_m: float = 0.0,
) -> tuple[float, float, float]:
    """WGS84 geodetic coordinates to an ECEF position in meters."""
    a = OrbitalConstants.R_EARTH_EQUATORIAL
    e2 = OrbitalConstants.E_SQUARED

    lat_rad = math.radians(lat_deg)
    lon_rad = math.radians(lon_deg)
    sin_lat = math.sin(lat_rad)
    cos_lat = math.cos(lat_rad)
    n = a / math.sqrt(1.0 - e2 * sin_lat**2)

    return (
        (n + alt_m) * cos_lat * math.cos(lon_rad),
        (n + alt_m) * cos_lat * math.sin(lon_rad),
        (n * (1.0 - e2) + alt_m) * sin_lat,
    )


def enu_basis(lat_deg: float, lon_deg: float) -> np.ndarray:
    """
    Local East-North-Up unit vectors at a geodetic point.

    Returns:
        3x3 array whose rows are east, north and up, expressed in ECEF.
    """
    lat = math.radians(lat_deg)
    lon = math.radians(lon_deg)
    sin_lat, cos_lat = math.sin(lat), math.cos(lat)
    sin_lon, cos_lon = math.sin(lon), math.cos(lon)
    return np.array([
        [-sin_lon, cos_lon, 0.0],
        [-sin_lat * cos_lon, -sin_lat * sin_lon, cos_lat],
        [cos_lat * cos_lon, cos_lat * sin_lon, sin_lat],
    ])
