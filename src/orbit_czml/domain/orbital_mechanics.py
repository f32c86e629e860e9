# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Two-body orbital mechanics.

Element/state-vector conversions, Kepler's equation and the J2 secular
rates used by the analytical propagator.

External dependency: numpy (allowed in domain layer).
"""
import math
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class _OrbitalConstants:
    """Earth constants (IAU/WGS84 values)."""
    MU_EARTH: float = 3.986004418e14   # m³/s²
    R_EARTH: float = 6_371_000.0        # m, mean radius
    J2_EARTH: float = 1.08263e-3
    EARTH_ROTATION_RATE: float = 7.2921159e-5  # rad/s, sidereal
    # WGS84 ellipsoid
    R_EARTH_EQUATORIAL: float = 6_378_137.0
    R_EARTH_POLAR: float = 6_356_752.3142
    E_SQUARED: float = 0.00669437999014


OrbitalConstants: _OrbitalConstants = _OrbitalConstants()


@dataclass(frozen=True)
class KeplerianElements:
    """Osculating Keplerian elements (SI units, radians)."""
    semi_major_axis_m: float
    eccentricity: float
    inclination_rad: float
    raan_rad: float
    arg_perigee_rad: float
    true_anomaly_rad: float


def _perifocal_rotation(i_rad: float, raan_rad: float, argp_rad: float) -> np.ndarray:
    """Rotation matrix from the perifocal (PQW) frame to ECI."""
    cos_o, sin_o = math.cos(raan_rad), math.sin(raan_rad)
    cos_w, sin_w = math.cos(argp_rad), math.sin(argp_rad)
    cos_i, sin_i = math.cos(i_rad), math.sin(i_rad)
    return np.array([
        [cos_o * cos_w - sin_o * sin_w * cos_i, -cos_o * sin_w - sin_o * cos_w * cos_i, sin_o * sin_i],
        [sin_o * cos_w + cos_o * sin_w * cos_i, -sin_o * sin_w + cos_o * cos_w * cos_i, -cos_o * sin_i],
        [sin_w * sin_i, cos_w * sin_i, cos_i],
    ])


def kepler_to_cartesian(
    a: float,
    e: float,
    i_rad: float,
    raan_rad: float,
    arg_perigee_rad: float,
    nu_rad: float,
) -> tuple[list[float], list[float]]:
    """
    Convert Keplerian elements to ECI position and velocity.

    Args:
        a: Semi-major axis (m).
        e: Eccentricity, 0 <= e < 1.
        i_rad: Inclination (radians).
        raan_rad: Right ascension of the ascending node (radians).
        arg_perigee_rad: Argument of perigee (radians).
        nu_rad: True anomaly (radians).

    Returns:
        (position_eci [x,y,z] in m, velocity_eci [vx,vy,vz] in m/s)

    Raises:
        ValueError: If the orbit is not a closed ellipse.
    """
    if not 0.0 <= e < 1.0:
        raise ValueError(f"eccentricity must be in [0, 1), got {e}")
    p = a * (1.0 - e**2)
    if p <= 0.0:
        raise ValueError(f"semi-major axis must be positive, got {a}")

    r = p / (1.0 + e * math.cos(nu_rad))
    speed_factor = math.sqrt(OrbitalConstants.MU_EARTH / p)

    pos_pqw = np.array([r * math.cos(nu_rad), r * math.sin(nu_rad), 0.0])
    vel_pqw = speed_factor * np.array([-math.sin(nu_rad), e + math.cos(nu_rad), 0.0])

    rotation = _perifocal_rotation(i_rad, raan_rad, arg_perigee_rad)
    return (rotation @ pos_pqw).tolist(), (rotation @ vel_pqw).tolist()


def cartesian_to_keplerian(
    position_eci: tuple[float, float, float],
    velocity_eci: tuple[float, float, float],
) -> KeplerianElements:
    """
    Derive osculating elements from an ECI state vector.

    Circular orbits report the argument of latitude as true anomaly with
    a zero argument of perigee; equatorial orbits use a zero RAAN.

    Raises:
        ValueError: If the state is degenerate or not bound to Earth.
    """
    mu = OrbitalConstants.MU_EARTH
    pos = np.asarray(position_eci, dtype=float)
    vel = np.asarray(velocity_eci, dtype=float)

    r_mag = float(np.linalg.norm(pos))
    v_mag = float(np.linalg.norm(vel))
    if r_mag < 1.0:
        raise ValueError("position vector magnitude too small")

    energy = v_mag**2 / 2.0 - mu / r_mag
    if energy >= 0.0:
        raise ValueError(f"state is not a bound orbit (specific energy {energy:.3e} J/kg)")
    a = -mu / (2.0 * energy)

    h_vec = np.cross(pos, vel)
    h_mag = float(np.linalg.norm(h_vec))
    if h_mag < 1e-6:
        raise ValueError("state has no angular momentum (rectilinear orbit)")

    n_vec = np.cross(np.array([0.0, 0.0, 1.0]), h_vec)
    n_mag = float(np.linalg.norm(n_vec))

    e_vec = ((v_mag**2 - mu / r_mag) * pos - np.dot(pos, vel) * vel) / mu
    ecc = float(np.linalg.norm(e_vec))

    inc = math.acos(float(np.clip(h_vec[2] / h_mag, -1.0, 1.0)))

    if n_mag > 1e-10:
        raan = math.acos(float(np.clip(n_vec[0] / n_mag, -1.0, 1.0)))
        if n_vec[1] < 0:
            raan = 2.0 * math.pi - raan
        node = n_vec / n_mag
    else:
        raan = 0.0
        node = np.array([1.0, 0.0, 0.0])

    if ecc > 1e-10:
        argp = math.acos(float(np.clip(np.dot(node, e_vec) / ecc, -1.0, 1.0)))
        if (n_mag > 1e-10 and e_vec[2] < 0) or (n_mag <= 1e-10 and e_vec[1] < 0):
            argp = 2.0 * math.pi - argp
        nu = math.acos(float(np.clip(np.dot(e_vec, pos) / (ecc * r_mag), -1.0, 1.0)))
        if np.dot(pos, vel) < 0:
            nu = 2.0 * math.pi - nu
    else:
        ecc = 0.0
        argp = 0.0
        nu = math.acos(float(np.clip(np.dot(node, pos) / r_mag, -1.0, 1.0)))
        if (n_mag > 1e-10 and pos[2] < 0) or (n_mag <= 1e-10 and pos[1] < 0):
            nu = 2.0 * math.pi - nu

    return KeplerianElements(
        semi_major_axis_m=a,
        eccentricity=ecc,
        inclination_rad=inc,
        raan_rad=raan,
        arg_perigee_rad=argp,
        true_anomaly_rad=nu,
    )


def keplerian_period(a: float) -> float:
    """Orbital period in seconds for a semi-major axis in meters."""
    if a <= 0.0:
        raise ValueError(f"semi-major axis must be positive, got {a}")
    return 2.0 * math.pi * math.sqrt(a**3 / OrbitalConstants.MU_EARTH)


def period_from_state(
    position_eci: tuple[float, float, float],
    velocity_eci: tuple[float, float, float],
) -> float | None:
    """Keplerian period of a state vector, or None for an unbound trajectory."""
    r_mag = math.sqrt(sum(c * c for c in position_eci))
    v_sq = sum(c * c for c in velocity_eci)
    if r_mag <= 0.0:
        return None
    energy = v_sq / 2.0 - OrbitalConstants.MU_EARTH / r_mag
    if energy >= 0.0:
        return None
    return keplerian_period(-OrbitalConstants.MU_EARTH / (2.0 * energy))


def true_to_mean_anomaly(nu_rad: float, e: float) -> float:
    """Mean anomaly for a true anomaly on an elliptic orbit."""
    ecc_anomaly = 2.0 * math.atan2(
        math.sqrt(1.0 - e) * math.sin(nu_rad / 2.0),
        math.sqrt(1.0 + e) * math.cos(nu_rad / 2.0),
    )
    return ecc_anomaly - e * math.sin(ecc_anomaly)


def mean_to_true_anomaly(mean_anomaly_rad: float, e: float, tol: float = 1e-12) -> float:
    """
    Solve Kepler's equation M = E - e·sin(E) and return the true anomaly.

    Newton iteration, starting from M (or π for high eccentricity).
    """
    m = mean_anomaly_rad % (2.0 * math.pi)
    ecc_anomaly = m if e < 0.8 else math.pi
    for _ in range(50):
        delta = (ecc_anomaly - e * math.sin(ecc_anomaly) - m) / (1.0 - e * math.cos(ecc_anomaly))
        ecc_anomaly -= delta
        if abs(delta) < tol:
            break
    return 2.0 * math.atan2(
        math.sqrt(1.0 + e) * math.sin(ecc_anomaly / 2.0),
        math.sqrt(1.0 - e) * math.cos(ecc_anomaly / 2.0),
    )


def j2_raan_rate(n: float, a: float, e: float, i_rad: float) -> float:
    """
    Secular RAAN drift from J2.

    dΩ/dt = -3/2 · n · J2 · (R_E/p)² · cos(i)
    """
    c = OrbitalConstants
    p = a * (1.0 - e**2)
    return -1.5 * n * c.J2_EARTH * (c.R_EARTH_EQUATORIAL / p) ** 2 * math.cos(i_rad)


def j2_arg_perigee_rate(n: float, a: float, e: float, i_rad: float) -> float:
    """
    Secular argument-of-perigee drift from J2 (zero near 63.4° inclination).

    dω/dt = 3/4 · n · J2 · (R_E/p)² · (4 - 5·sin²i)
    """
    c = OrbitalConstants
    p = a * (1.0 - e**2)
    return 0.75 * n * c.J2_EARTH * (c.R_EARTH_EQUATORIAL / p) ** 2 * (4.0 - 5.0 * math.sin(i_rad) ** 2)


def j2_mean_motion_correction(n: float, a: float, e: float, i_rad: float) -> float:
    """
    J2-corrected mean motion.

    n' = n · (1 + 3/4 · J2 · (R_E/p)² · √(1-e²) · (2 - 3·sin²i))
    """
    c = OrbitalConstants
    p = a * (1.0 - e**2)
    return n * (
        1.0 + 0.75 * c.J2_EARTH * (c.R_EARTH_EQUATORIAL / p) ** 2
        * math.sqrt(1.0 - e**2) * (2.0 - 3.0 * math.sin(i_rad) ** 2)
    )
