# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Simulation time span and clock settings.

A SimulationContext is built once and handed to every exporter. It
carries the display window, the sampling step used for position and
attitude samples, and the clock settings written into the CZML header.

No external dependencies: only stdlib dataclasses/datetime/enum.
"""
import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from enum import Enum

from orbit_czml.domain.errors import InvalidConfigurationError


class ClockRange(Enum):
    """Behaviour of the viewer clock when it reaches the end of its interval."""
    UNBOUNDED = "UNBOUNDED"
    CLAMPED = "CLAMPED"
    LOOP_STOP = "LOOP_STOP"


class ClockStep(Enum):
    """How the viewer clock advances between frames."""
    TICK_DEPENDENT = "TICK_DEPENDENT"
    SYSTEM_CLOCK_MULTIPLIER = "SYSTEM_CLOCK_MULTIPLIER"
    SYSTEM_CLOCK = "SYSTEM_CLOCK"


def as_utc(dt: datetime) -> datetime:
    """Timezone-aware UTC datetime (naive input is taken to be UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True)
class TimeInterval:
    """Closed time span [start, stop] with stop strictly after start."""
    start: datetime
    stop: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", as_utc(self.start))
        object.__setattr__(self, "stop", as_utc(self.stop))
        if self.stop <= self.start:
            raise InvalidConfigurationError(
                f"interval stop must be after start, got {self.start.isoformat()} "
                f"-> {self.stop.isoformat()}"
            )

    @property
    def duration_seconds(self) -> float:
        return (self.stop - self.start).total_seconds()

    def contains(self, t: datetime) -> bool:
        return self.start <= as_utc(t) <= self.stop

    def intersection(self, other: "TimeInterval") -> "TimeInterval | None":
        """Overlap of two intervals, or None when they overlap in at most one instant."""
        start = max(self.start, other.start)
        stop = min(self.stop, other.stop)
        if stop <= start:
            return None
        return TimeInterval(start, stop)


@dataclass(frozen=True)
class SimulationContext:
    """
    Display window, sampling step and viewer clock settings.

    Args:
        start: First instant of the scene (naive values are UTC).
        stop: Last instant of the scene.
        step_seconds: Spacing of position/attitude samples.
        multiplier: Viewer clock speed-up relative to real time.
        clock_range: Clock behaviour at the end of the interval.
        clock_step: Clock advance mode.
    """
    start: datetime
    stop: datetime
    step_seconds: float = 60.0
    multiplier: float = 60.0
    clock_range: ClockRange = ClockRange.LOOP_STOP
    clock_step: ClockStep = ClockStep.SYSTEM_CLOCK_MULTIPLIER

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", as_utc(self.start))
        object.__setattr__(self, "stop", as_utc(self.stop))
        if self.stop <= self.start:
            raise InvalidConfigurationError(
                f"simulation stop must be after start, got {self.start.isoformat()} "
                f"-> {self.stop.isoformat()}"
            )
        if not math.isfinite(self.step_seconds) or self.step_seconds <= 0:
            raise InvalidConfigurationError(
                f"step_seconds must be positive, got {self.step_seconds}"
            )
        if not math.isfinite(self.multiplier) or self.multiplier == 0:
            raise InvalidConfigurationError(
                f"multiplier must be finite and non-zero, got {self.multiplier}"
            )

    @property
    def span(self) -> TimeInterval:
        return TimeInterval(self.start, self.stop)

    @property
    def duration_seconds(self) -> float:
        return (self.stop - self.start).total_seconds()

    def offset_seconds(self, t: datetime) -> float:
        """Seconds from the context start to t (negative before start)."""
        return (as_utc(t) - self.start).total_seconds()

    def sample_times(self) -> list[datetime]:
        """
        Sampling instants from start to stop inclusive.

        Samples are spaced by step_seconds; the final sample is stop
        itself even when the duration is not a whole number of steps.
        """
        duration = self.duration_seconds
        count = int(math.floor(duration / self.step_seconds + 1e-9))
        times = [self.start + timedelta(seconds=k * self.step_seconds) for k in range(count + 1)]
        if len(times) > 1 and (self.stop - times[-1]).total_seconds() <= 1e-6:
            times[-1] = self.stop
        else:
            times.append(self.stop)
        return times

    def with_span(self, start: datetime, stop: datetime) -> "SimulationContext":
        """Copy of this context restricted to another window, same step and clock."""
        return replace(self, start=start, stop=stop)
