# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
TLE trajectory source backed by the sgp4 library.

TLE mean elements are SGP4-specific, not Keplerian: converting them with
kepler_to_cartesian gives wrong positions for real satellites. This
adapter runs SGP4 and exposes the result through the Propagator port.
SGP4 states are in TEME, which is used as ECI (the difference is below
the display resolution of the viewer).

External dependencies (sgp4, file I/O) are confined to this layer.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from orbit_czml.domain.errors import InvalidConfigurationError
from orbit_czml.domain.simulation import TimeInterval, as_utc

logger = logging.getLogger(__name__)

Vector = tuple[float, float, float]

_J2000 = datetime(2000, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
_JD_J2000 = 2451545.0
DEFAULT_VALIDITY = timedelta(days=1)


def _require_sgp4():
    """Import sgp4 lazily; raise clear error if not installed."""
    try:
        from sgp4.api import Satrec, jday
    except ImportError:
        raise ImportError(
            "sgp4 is required for TLE propagation. "
            "Install with: pip install orbit-czml[tle]"
        ) from None
    return Satrec, jday


@dataclass(frozen=True)
class TleRecord:
    """One two-line element set, with its title line when the file has one."""
    name: str
    line1: str
    line2: str


def parse_tle_text(text: str) -> list[TleRecord]:
    """
    Parse 2-line or 3-line TLE text.

    Records without a title line are named after their catalog number.
    A line 1 not followed by a line 2 is skipped with a warning.
    """
    lines = [ln.rstrip() for ln in text.splitlines() if ln.strip()]
    records: list[TleRecord] = []
    name: str | None = None
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("1 "):
            if i + 1 >= len(lines) or not lines[i + 1].startswith("2 "):
                logger.warning("Skipping TLE line 1 without a matching line 2: %r", line)
                name = None
                i += 1
                continue
            records.append(TleRecord(
                name=name or line[2:7].strip(),
                line1=line,
                line2=lines[i + 1],
            ))
            name = None
            i += 2
            continue
        if line.startswith("2 "):
            logger.warning("Skipping TLE line 2 without a preceding line 1: %r", line)
        else:
            name = line[2:].strip() if line.startswith("0 ") else line.strip()
        i += 1
    return records


def read_tle_file(path: str) -> list[TleRecord]:
    """Read a TLE file (2-line or 3-line format)."""
    with open(path, encoding="utf-8") as f:
        return parse_tle_text(f.read())


def _jd_to_datetime(jd: float, fr: float) -> datetime:
    return _J2000 + timedelta(days=(jd - _JD_J2000) + fr)


class Sgp4Propagator:
    """SGP4 propagator bounded to a validity window around the TLE."""

    def __init__(self, satrec, name: str, min_date: datetime, max_date: datetime) -> None:
        self._satrec = satrec
        self._name = name
        self._window = TimeInterval(min_date, max_date)
        _, self._jday = _require_sgp4()

    @classmethod
    def from_tle(
        cls,
        line1: str,
        line2: str,
        name: str | None = None,
        min_date: datetime | None = None,
        max_date: datetime | None = None,
    ) -> "Sgp4Propagator":
        """
        Build a propagator from the two TLE lines.

        Args:
            line1: TLE line 1.
            line2: TLE line 2.
            name: Satellite name (defaults to the catalog number).
            min_date: Start of validity (defaults to the TLE epoch).
            max_date: End of validity (defaults to one day after min_date).

        Raises:
            ImportError: If sgp4 is not installed.
            InvalidConfigurationError: If the lines cannot be parsed.
        """
        Satrec, _ = _require_sgp4()
        try:
            satrec = Satrec.twoline2rv(line1, line2)
        except ValueError as e:
            raise InvalidConfigurationError(f"invalid TLE: {e}") from e
        if satrec.error != 0:
            raise InvalidConfigurationError(f"invalid TLE: SGP4 initialisation error {satrec.error}")
        epoch = _jd_to_datetime(satrec.jdsatepoch, satrec.jdsatepochF)
        start = as_utc(min_date) if min_date is not None else epoch
        stop = as_utc(max_date) if max_date is not None else start + DEFAULT_VALIDITY
        return cls(satrec, name or line1[2:7].strip(), start, stop)

    @classmethod
    def from_record(cls, record: TleRecord, min_date=None, max_date=None) -> "Sgp4Propagator":
        return cls.from_tle(record.line1, record.line2, record.name, min_date, max_date)

    @property
    def name(self) -> str:
        return self._name

    @property
    def epoch(self) -> datetime:
        return _jd_to_datetime(self._satrec.jdsatepoch, self._satrec.jdsatepochF)

    @property
    def min_date(self) -> datetime:
        return self._window.start

    @property
    def max_date(self) -> datetime:
        return self._window.stop

    def state_at(self, t: datetime) -> tuple[Vector, Vector]:
        """
        TEME position (m) and velocity (m/s) at t.

        Raises:
            InvalidConfigurationError: If t is outside the validity window.
            RuntimeError: If SGP4 reports an error (decayed orbit, ...).
        """
        t = as_utc(t)
        if not self.min_date <= t <= self.max_date:
            raise InvalidConfigurationError(
                f"{t.isoformat()} is outside the TLE validity "
                f"{self.min_date.isoformat()} -> {self.max_date.isoformat()}"
            )
        jd, fr = self._jday(t.year, t.month, t.day, t.hour, t.minute,
                            t.second + t.microsecond / 1e6)
        error_code, position_km, velocity_km_s = self._satrec.sgp4(jd, fr)
        if error_code != 0:
            raise RuntimeError(f"SGP4 propagation error {error_code} for {self._name}")
        pos = (position_km[0] * 1000.0, position_km[1] * 1000.0, position_km[2] * 1000.0)
        vel = (velocity_km_s[0] * 1000.0, velocity_km_s[1] * 1000.0, velocity_km_s[2] * 1000.0)
        return pos, vel
