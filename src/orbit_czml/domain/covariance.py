# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Position covariance ellipsoids.

A 3x3 position covariance is eigen-decomposed into principal axes. The
ellipsoid radii are sigma_scale · sqrt(eigenvalue) and its orientation is
the rotation taking the ellipsoid axes into ECI. Covariances may be
expressed in ECI or in a local orbital frame (LOF) attached to the
satellite state.

External dependency: numpy (allowed in domain layer).
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

import numpy as np

from orbit_czml.domain.attitude import Quaternion, quaternion_from_matrix
from orbit_czml.domain.errors import InvalidConfigurationError


class LOF(Enum):
    """Frame a covariance matrix is expressed in."""
    INERTIAL = "INERTIAL"
    QSW = "QSW"   # radial, along-track (in-plane), orbit normal
    TNW = "TNW"   # velocity, in-plane normal, orbit normal


@dataclass(frozen=True)
class CovarianceEllipsoid:
    """Uncertainty ellipsoid at one instant."""
    time: datetime
    radii_m: tuple[float, float, float]
    orientation: Quaternion


def lof_to_eci(frame: LOF, position_eci, velocity_eci) -> np.ndarray:
    """
    Rotation matrix whose columns are the frame's axes expressed in ECI.

    Raises:
        InvalidConfigurationError: If the state cannot define the frame.
    """
    if frame is LOF.INERTIAL:
        return np.eye(3)

    r = np.asarray(position_eci, dtype=float)
    v = np.asarray(velocity_eci, dtype=float)
    h = np.cross(r, v)
    if np.linalg.norm(h) < 1e-9 or np.linalg.norm(r) < 1e-9:
        raise InvalidConfigurationError(f"state cannot define a {frame.value} frame")
    w = h / np.linalg.norm(h)

    if frame is LOF.QSW:
        q = r / np.linalg.norm(r)
        return np.column_stack((q, np.cross(w, q), w))
    t = v / np.linalg.norm(v)
    return np.column_stack((t, np.cross(w, t), w))


def _position_block(covariance) -> np.ndarray:
    cov = np.asarray(covariance, dtype=float)
    if cov.shape == (6, 6):
        cov = cov[:3, :3]
    if cov.shape != (3, 3):
        raise InvalidConfigurationError(
            f"covariance must be 3x3 (position) or 6x6 (state), got shape {cov.shape}"
        )
    if not np.all(np.isfinite(cov)):
        raise InvalidConfigurationError("covariance contains NaN or Inf")
    scale = max(float(np.max(np.abs(cov))), 1e-30)
    if not np.allclose(cov, cov.T, rtol=1e-9, atol=1e-12 * scale):
        raise InvalidConfigurationError("covariance must be symmetric")
    return 0.5 * (cov + cov.T)


def covariance_ellipsoid(
    covariance,
    position_eci,
    velocity_eci,
    time: datetime,
    frame: LOF = LOF.INERTIAL,
    sigma_scale: float = 1.0,
) -> CovarianceEllipsoid:
    """
    Principal-axis ellipsoid of a single position covariance.

    Args:
        covariance: 3x3 position or 6x6 state covariance (m², m²/s, ...).
        position_eci: Satellite ECI position, defines the LOF.
        velocity_eci: Satellite ECI velocity, defines the LOF.
        time: Epoch of the covariance.
        frame: Frame the covariance is expressed in.
        sigma_scale: Number of standard deviations for the radii.

    Raises:
        InvalidConfigurationError: If the matrix is malformed, not symmetric
            or clearly not positive semi-definite.
    """
    if sigma_scale <= 0:
        raise InvalidConfigurationError(f"sigma_scale must be positive, got {sigma_scale}")
    cov = _position_block(covariance)

    eigenvalues, eigenvectors = np.linalg.eigh(cov)
    tolerance = 1e-9 * max(float(np.max(np.abs(eigenvalues))), 1e-30)
    if float(np.min(eigenvalues)) < -tolerance:
        raise InvalidConfigurationError(
            f"covariance is not positive semi-definite (eigenvalue {float(np.min(eigenvalues)):.3e})"
        )
    if np.linalg.det(eigenvectors) < 0:
        eigenvectors[:, 2] = -eigenvectors[:, 2]

    radii = sigma_scale * np.sqrt(np.clip(eigenvalues, 0.0, None))
    axes_eci = lof_to_eci(frame, position_eci, velocity_eci) @ eigenvectors

    return CovarianceEllipsoid(
        time=time,
        radii_m=(float(radii[0]), float(radii[1]), float(radii[2])),
        orientation=quaternion_from_matrix(axes_eci),
    )


def covariance_ellipsoids(
    samples,
    covariances,
    frame: LOF = LOF.INERTIAL,
    sigma_scale: float = 1.0,
) -> list[CovarianceEllipsoid]:
    """
    Ellipsoids for a covariance history, one per trajectory sample.

    Args:
        samples: TrajectorySample list giving time and state of each entry.
        covariances: One matrix per sample.
    """
    if len(samples) != len(covariances):
        raise InvalidConfigurationError(
            f"{len(covariances)} covariance(s) for {len(samples)} trajectory sample(s)"
        )
    return [
        covariance_ellipsoid(cov, s.position_eci, s.velocity_eci, s.time, frame, sigma_scale)
        for s, cov in zip(samples, covariances)
    ]
