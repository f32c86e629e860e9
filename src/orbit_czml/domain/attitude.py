# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Attitude quaternions and attitude laws.

Quaternions are scalar-last (x, y, z, w), the order CZML's
``unitQuaternion`` uses. A spacecraft attitude q maps body-frame vectors
into ECI: v_eci = q ⊗ v_body ⊗ q*.

Attitude laws expose ``orientation(time, position_eci, velocity_eci)``
and return such a body->ECI quaternion.

External dependency: numpy (allowed in domain layer).
"""
import bisect
import math
from dataclasses import dataclass, field
from datetime import datetime

import numpy as np

from orbit_czml.domain.coordinate_frames import (
    ecef_to_eci,
    eci_to_ecef_rotation,
    geodetic_to_ecef,
)
from orbit_czml.domain.errors import InvalidConfigurationError
from orbit_czml.domain.simulation import as_utc

Quaternion = tuple[float, float, float, float]

IDENTITY: Quaternion = (0.0, 0.0, 0.0, 1.0)


def normalize_quaternion(q) -> Quaternion:
    """Unit quaternion with a non-negative scalar part."""
    arr = np.asarray(q, dtype=float)
    norm = float(np.linalg.norm(arr))
    if norm < 1e-12:
        raise InvalidConfigurationError("cannot normalize a zero quaternion")
    arr = arr / norm
    if arr[3] < 0:
        arr = -arr
    return float(arr[0]), float(arr[1]), float(arr[2]), float(arr[3])


def quaternion_multiply(a, b) -> Quaternion:
    """Hamilton product a ⊗ b (apply b first, then a)."""
    ax, ay, az, aw = a
    bx, by, bz, bw = b
    return (
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
        aw * bw - ax * bx - ay * by - az * bz,
    )


def quaternion_conjugate(q) -> Quaternion:
    x, y, z, w = q
    return -x, -y, -z, w


def rotate_vector(q, v) -> tuple[float, float, float]:
    """Rotate a 3-vector by a unit quaternion."""
    rotated = quaternion_to_matrix(q) @ np.asarray(v, dtype=float)
    return float(rotated[0]), float(rotated[1]), float(rotated[2])


def quaternion_to_matrix(q) -> np.ndarray:
    """Rotation matrix of a unit quaternion (columns are the rotated axes)."""
    x, y, z, w = q
    return np.array([
        [1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w)],
        [2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
        [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y)],
    ])


def quaternion_from_matrix(matrix) -> Quaternion:
    """
    Unit quaternion of a proper rotation matrix.

    Shepperd's method: branch on the largest of the trace and the
    diagonal so the square root never sees a small argument.

    Raises:
        InvalidConfigurationError: If the matrix is not a rotation.
    """
    m = np.asarray(matrix, dtype=float)
    if m.shape != (3, 3):
        raise InvalidConfigurationError(f"rotation matrix must be 3x3, got shape {m.shape}")
    if not np.allclose(m @ m.T, np.eye(3), atol=1e-6) or np.linalg.det(m) < 0:
        raise InvalidConfigurationError("matrix is not a proper rotation")

    trace = m[0, 0] + m[1, 1] + m[2, 2]
    if trace > max(m[0, 0], m[1, 1], m[2, 2]):
        s = 2.0 * math.sqrt(1.0 + trace)
        q = ((m[2, 1] - m[1, 2]) / s, (m[0, 2] - m[2, 0]) / s, (m[1, 0] - m[0, 1]) / s, 0.25 * s)
    elif m[0, 0] >= m[1, 1] and m[0, 0] >= m[2, 2]:
        s = 2.0 * math.sqrt(1.0 + m[0, 0] - m[1, 1] - m[2, 2])
        q = (0.25 * s, (m[0, 1] + m[1, 0]) / s, (m[0, 2] + m[2, 0]) / s, (m[2, 1] - m[1, 2]) / s)
    elif m[1, 1] >= m[2, 2]:
        s = 2.0 * math.sqrt(1.0 + m[1, 1] - m[0, 0] - m[2, 2])
        q = ((m[0, 1] + m[1, 0]) / s, 0.25 * s, (m[1, 2] + m[2, 1]) / s, (m[0, 2] - m[2, 0]) / s)
    else:
        s = 2.0 * math.sqrt(1.0 + m[2, 2] - m[0, 0] - m[1, 1])
        q = ((m[0, 2] + m[2, 0]) / s, (m[1, 2] + m[2, 1]) / s, 0.25 * s, (m[1, 0] - m[0, 1]) / s)
    return normalize_quaternion(q)


def nlerp(q0, q1, fraction: float) -> Quaternion:
    """Normalized linear blend of two quaternions along the shorter arc."""
    a = np.asarray(q0, dtype=float)
    b = np.asarray(q1, dtype=float)
    if float(np.dot(a, b)) < 0:
        b = -b
    return normalize_quaternion((1.0 - fraction) * a + fraction * b)


def body_to_fixed(q_body_to_eci, epoch: datetime) -> Quaternion:
    """Re-express a body->ECI attitude as body->ECEF (CZML's FIXED frame)."""
    q_eci_to_ecef = quaternion_from_matrix(eci_to_ecef_rotation(epoch))
    return normalize_quaternion(quaternion_multiply(q_eci_to_ecef, q_body_to_eci))


def _frame_quaternion(x_axis, y_axis, z_axis) -> Quaternion:
    """Attitude whose body axes point along the given ECI unit vectors."""
    return quaternion_from_matrix(np.column_stack((x_axis, y_axis, z_axis)))


def _unit(v: np.ndarray, what: str) -> np.ndarray:
    norm = float(np.linalg.norm(v))
    if norm < 1e-9:
        raise InvalidConfigurationError(f"{what} is degenerate (zero length)")
    return v / norm


@dataclass(frozen=True)
class InertialAttitude:
    """Constant attitude with respect to ECI."""
    quaternion: Quaternion = IDENTITY

    def orientation(self, time, position_eci, velocity_eci) -> Quaternion:
        return normalize_quaternion(self.quaternion)


@dataclass(frozen=True)
class LvlhAttitude:
    """
    Local-vertical local-horizontal pointing.

    +Z points to the Earth centre (nadir), +Y along the negative orbit
    normal, +X completes the triad (along velocity for circular orbits).
    An optional body offset rotation is applied on top of the law.
    """
    offset: Quaternion = IDENTITY

    def orientation(self, time, position_eci, velocity_eci) -> Quaternion:
        r = np.asarray(position_eci, dtype=float)
        v = np.asarray(velocity_eci, dtype=float)
        z_axis = _unit(-r, "position")
        y_axis = _unit(-np.cross(r, v), "orbit normal")
        x_axis = np.cross(y_axis, z_axis)
        base = _frame_quaternion(x_axis, y_axis, z_axis)
        return normalize_quaternion(quaternion_multiply(base, self.offset))


@dataclass(frozen=True)
class TargetPointing:
    """
    +Z toward a fixed ground target, +X kept as close as possible to the
    velocity direction.
    """
    lat_deg: float
    lon_deg: float
    alt_m: float = 0.0
    offset: Quaternion = IDENTITY

    def orientation(self, time, position_eci, velocity_eci) -> Quaternion:
        target_eci = np.asarray(
            ecef_to_eci(geodetic_to_ecef(self.lat_deg, self.lon_deg, self.alt_m), time)
        )
        r = np.asarray(position_eci, dtype=float)
        v = np.asarray(velocity_eci, dtype=float)
        z_axis = _unit(target_eci - r, "line of sight to target")
        y_axis = np.cross(z_axis, v)
        if np.linalg.norm(y_axis) < 1e-9:
            y_axis = np.cross(z_axis, r)
        y_axis = _unit(y_axis, "pointing reference")
        x_axis = np.cross(y_axis, z_axis)
        base = _frame_quaternion(x_axis, y_axis, z_axis)
        return normalize_quaternion(quaternion_multiply(base, self.offset))


@dataclass(frozen=True)
class AttitudeEphemeris:
    """
    Tabulated attitude (body->ECI quaternions), blended between records.

    Used for attitude read from CCSDS AEM files.
    """
    times: tuple[datetime, ...]
    quaternions: tuple[Quaternion, ...]
    _offsets: tuple[float, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if len(self.times) != len(self.quaternions):
            raise InvalidConfigurationError(
                f"{len(self.times)} attitude epochs for {len(self.quaternions)} quaternions"
            )
        if len(self.times) < 2:
            raise InvalidConfigurationError("attitude ephemeris needs at least 2 records")
        times = tuple(as_utc(t) for t in self.times)
        if any(b <= a for a, b in zip(times, times[1:])):
            raise InvalidConfigurationError("attitude epochs must be strictly increasing")
        object.__setattr__(self, "times", times)
        object.__setattr__(self, "quaternions", tuple(normalize_quaternion(q) for q in self.quaternions))
        object.__setattr__(
            self, "_offsets", tuple((t - times[0]).total_seconds() for t in times),
        )

    @property
    def min_date(self) -> datetime:
        return self.times[0]

    @property
    def max_date(self) -> datetime:
        return self.times[-1]

    def orientation(self, time, position_eci=None, velocity_eci=None) -> Quaternion:
        t = as_utc(time)
        if not self.times[0] <= t <= self.times[-1]:
            raise InvalidConfigurationError(
                f"{t.isoformat()} is outside the attitude ephemeris "
                f"{self.times[0].isoformat()} -> {self.times[-1].isoformat()}"
            )
        offset = (t - self.times[0]).total_seconds()
        hi = min(max(bisect.bisect_right(self._offsets, offset), 1), len(self._offsets) - 1)
        lo = hi - 1
        span = self._offsets[hi] - self._offsets[lo]
        fraction = (offset - self._offsets[lo]) / span
        return nlerp(self.quaternions[lo], self.quaternions[hi], fraction)
