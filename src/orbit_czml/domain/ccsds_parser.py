# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
CCSDS OEM/AEM KVN parser.

Parses Orbit Ephemeris Messages (OEM, CCSDS 502.0-B) and Attitude
Ephemeris Messages (AEM, CCSDS 504.0-B) in Keyword-Value Notation into
trajectory samples and attitude ephemerides.

Units: OEM positions km -> m, velocities km/s -> m/s. OEM states in an
Earth-fixed REF_FRAME (ITRF family) are rotated into ECI. AEM quaternions
are converted to the body->reference scalar-last convention used by
orbit_czml.domain.attitude.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone

from orbit_czml.domain.attitude import (
    AttitudeEphemeris,
    Quaternion,
    normalize_quaternion,
    quaternion_conjugate,
)
from orbit_czml.domain.coordinate_frames import ecef_state_to_eci
from orbit_czml.domain.errors import CcsdsValidationError
from orbit_czml.domain.propagation import EphemerisPropagator, TrajectorySample

_STANDALONE_KEYWORDS = {
    "META_START", "META_STOP", "DATA_START", "DATA_STOP",
    "COVARIANCE_START", "COVARIANCE_STOP",
}

_INERTIAL_FRAMES = {"EME2000", "J2000", "ICRF", "GCRF", "TEME", "MOD", "TOD"}
_EARTH_FIXED_FRAMES = {"ITRF", "GTOD", "TDR", "EFG", "ECEF"}


@dataclass(frozen=True)
class CcsdsEphemeris:
    """Parsed OEM: metadata plus ECI samples from all segments."""
    object_name: str
    object_id: str
    center_name: str
    ref_frame: str
    time_system: str
    interpolation_degree: int
    samples: list[TrajectorySample]

    def propagator(self) -> EphemerisPropagator:
        return EphemerisPropagator(self.samples, degree=self.interpolation_degree)


@dataclass(frozen=True)
class CcsdsAttitude:
    """Parsed AEM quaternion data as body->inertial attitudes."""
    object_name: str
    object_id: str
    ref_frame: str
    times: list[datetime]
    quaternions: list[Quaternion]

    def attitude_law(self) -> AttitudeEphemeris:
        return AttitudeEphemeris(tuple(self.times), tuple(self.quaternions))


def _parse_kvn_lines(text: str) -> list[tuple[str, str]]:
    """KVN keyword/value pairs in order; data records get the key _DATA_LINE."""
    pairs: list[tuple[str, str]] = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("COMMENT"):
            continue
        if line in _STANDALONE_KEYWORDS:
            pairs.append((line, ""))
        elif "=" in line:
            key, _, val = line.partition("=")
            pairs.append((key.strip(), val.strip()))
        else:
            pairs.append(("_DATA_LINE", line))
    return pairs


def _parse_epoch(epoch_str: str) -> datetime:
    """CCSDS calendar or day-of-year epoch to an aware UTC datetime."""
    value = epoch_str.strip().rstrip("Z")
    for fmt in (
        "%Y-%m-%dT%H:%M:%S.%f", "%Y-%m-%dT%H:%M:%S",
        "%Y-%jT%H:%M:%S.%f", "%Y-%jT%H:%M:%S",
        "%Y-%m-%d %H:%M:%S.%f", "%Y-%m-%d %H:%M:%S",
    ):
        try:
            return datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    raise CcsdsValidationError(f"Cannot parse epoch: {epoch_str}")


def _segments(pairs: list[tuple[str, str]], kind: str) -> list[tuple[dict[str, str], list[str]]]:
    """Split KVN pairs into (metadata, data lines) segments."""
    segments: list[tuple[dict[str, str], list[str]]] = []
    meta: dict[str, str] = {}
    data_lines: list[str] = []
    in_meta = False
    seen_meta = False
    in_covariance = False

    for key, val in pairs:
        if key == "META_START":
            if seen_meta:
                segments.append((meta, data_lines))
            meta, data_lines, in_meta, seen_meta = {}, [], True, True
        elif key == "META_STOP":
            in_meta = False
        elif key == "COVARIANCE_START":
            in_covariance = True
        elif key == "COVARIANCE_STOP":
            in_covariance = False
        elif in_meta:
            meta[key] = val
        elif key == "_DATA_LINE" and not in_covariance:
            data_lines.append(val)
    if seen_meta:
        segments.append((meta, data_lines))

    if not segments:
        raise CcsdsValidationError(f"{kind} file contains no data segments")
    return segments


def _floats(parts: list[str], kind: str) -> list[float]:
    try:
        values = [float(p) for p in parts]
    except ValueError as e:
        raise CcsdsValidationError(f"Non-numeric value in {kind} data line: {e}") from e
    for i, v in enumerate(values):
        if math.isnan(v) or math.isinf(v):
            raise CcsdsValidationError(f"NaN or Inf in {kind} data line column {i + 1}")
    return values


def parse_oem_text(text: str) -> CcsdsEphemeris:
    """
    Parse OEM KVN text.

    Segments are concatenated in order; a record repeating the previous
    epoch (segment boundary) is skipped. Records of an Earth-fixed segment
    are rotated into ECI at their epoch.

    Raises:
        CcsdsValidationError: If the message is malformed, uses a frame that
            is neither inertial nor Earth-fixed, or holds fewer than two
            records.
    """
    segments = _segments(_parse_kvn_lines(text), "OEM")
    first_meta = segments[0][0]

    samples: list[TrajectorySample] = []
    for meta, lines in segments:
        frame = meta.get("REF_FRAME", "EME2000")
        earth_fixed = _is_earth_fixed(frame)
        if not earth_fixed and not _is_inertial(frame):
            raise CcsdsValidationError(f"Unsupported OEM REF_FRAME: {frame}")
        for line in lines:
            parts = line.split()
            if len(parts) < 7:
                raise CcsdsValidationError(
                    f"OEM data line needs an epoch and 6 state components: {line!r}"
                )
            epoch = _parse_epoch(parts[0])
            x, y, z, vx, vy, vz = _floats(parts[1:7], "OEM")
            if samples and epoch == samples[-1].time:
                continue
            if samples and epoch < samples[-1].time:
                raise CcsdsValidationError(
                    f"OEM epochs must increase: {parts[0]} after {samples[-1].time.isoformat()}"
                )
            pos = (x * 1000.0, y * 1000.0, z * 1000.0)
            vel = (vx * 1000.0, vy * 1000.0, vz * 1000.0)
            if earth_fixed:
                pos, vel = ecef_state_to_eci(pos, vel, epoch)
            samples.append(TrajectorySample(time=epoch, position_eci=pos, velocity_eci=vel))

    if len(samples) < 2:
        raise CcsdsValidationError(f"OEM needs at least 2 ephemeris records, found {len(samples)}")

    try:
        degree = int(first_meta.get("INTERPOLATION_DEGREE", "5"))
    except ValueError as e:
        raise CcsdsValidationError(f"Invalid INTERPOLATION_DEGREE: {e}") from e

    return CcsdsEphemeris(
        object_name=first_meta.get("OBJECT_NAME", "UNKNOWN"),
        object_id=first_meta.get("OBJECT_ID", "UNKNOWN"),
        center_name=first_meta.get("CENTER_NAME", "EARTH"),
        ref_frame=first_meta.get("REF_FRAME", "EME2000"),
        time_system=first_meta.get("TIME_SYSTEM", "UTC"),
        interpolation_degree=max(1, degree),
        samples=samples,
    )


def parse_oem(path: str) -> CcsdsEphemeris:
    """Parse a CCSDS OEM file in KVN format."""
    with open(path, encoding="utf-8") as f:
        return parse_oem_text(f.read())


def _is_inertial(frame: str) -> bool:
    return frame.upper() in _INERTIAL_FRAMES


def _is_earth_fixed(frame: str) -> bool:
    return frame.upper().startswith("ITRF") or frame.upper() in _EARTH_FIXED_FRAMES


def parse_aem_text(text: str) -> CcsdsAttitude:
    """
    Parse AEM KVN text holding QUATERNION attitude records.

    The quaternion in the file is read per QUATERNION_TYPE (FIRST: scalar
    first, LAST: scalar last) and ATTITUDE_DIR. An A2B quaternion with A
    inertial transforms inertial coordinates into body coordinates, so it
    is conjugated to obtain the body->inertial attitude.

    Raises:
        CcsdsValidationError: If the message is malformed, uses another
            attitude type, or relates two non-inertial frames.
    """
    segments = _segments(_parse_kvn_lines(text), "AEM")
    first_meta = segments[0][0]

    times: list[datetime] = []
    quaternions: list[Quaternion] = []
    ref_frame = ""
    for meta, lines in segments:
        attitude_type = meta.get("ATTITUDE_TYPE", "QUATERNION").upper()
        if attitude_type != "QUATERNION":
            raise CcsdsValidationError(f"Unsupported AEM ATTITUDE_TYPE: {attitude_type}")
        frame_a = meta.get("REF_FRAME_A", "EME2000")
        frame_b = meta.get("REF_FRAME_B", "SC_BODY_1")
        if _is_inertial(frame_a) == _is_inertial(frame_b):
            raise CcsdsValidationError(
                f"AEM must relate one inertial frame to the body, got {frame_a} / {frame_b}"
            )
        direction = meta.get("ATTITUDE_DIR", "A2B").upper()
        if direction not in ("A2B", "B2A"):
            raise CcsdsValidationError(f"Invalid ATTITUDE_DIR: {direction}")
        scalar_first = meta.get("QUATERNION_TYPE", "LAST").upper() == "FIRST"
        # a quaternion from the inertial frame to the body must be inverted
        inertial_to_body = (direction == "A2B") == _is_inertial(frame_a)
        ref_frame = frame_a if _is_inertial(frame_a) else frame_b

        for line in lines:
            parts = line.split()
            if len(parts) < 5:
                raise CcsdsValidationError(f"AEM quaternion line needs an epoch and 4 components: {line!r}")
            epoch = _parse_epoch(parts[0])
            values = _floats(parts[1:5], "AEM")
            if scalar_first:
                q = (values[1], values[2], values[3], values[0])
            else:
                q = (values[0], values[1], values[2], values[3])
            try:
                q = normalize_quaternion(q)
            except ValueError as e:
                raise CcsdsValidationError(f"Invalid AEM quaternion at {parts[0]}: {e}") from e
            if inertial_to_body:
                q = quaternion_conjugate(q)
            if times and epoch <= times[-1]:
                if epoch == times[-1]:
                    continue
                raise CcsdsValidationError(f"AEM epochs must increase: {parts[0]}")
            times.append(epoch)
            quaternions.append(q)

    if len(times) < 2:
        raise CcsdsValidationError(f"AEM needs at least 2 attitude records, found {len(times)}")

    return CcsdsAttitude(
        object_name=first_meta.get("OBJECT_NAME", "UNKNOWN"),
        object_id=first_meta.get("OBJECT_ID", "UNKNOWN"),
        ref_frame=ref_frame,
        times=times,
        quaternions=quaternions,
    )


def parse_aem(path: str) -> CcsdsAttitude:
    """Parse a CCSDS AEM file in KVN format."""
    with open(path, encoding="utf-8") as f:
        return parse_aem_text(f.read())
