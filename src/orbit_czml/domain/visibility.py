# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Visibility interval reconciliation.

Turns the visibility events reported by a geometric detector, plus the
visibility state at the start of the run, into a Timeline: a gap-free,
chronologically ordered partition of the simulation span into VISIBLE
and NOT_VISIBLE intervals. Timelines drive the boolean ``show``
properties of line-of-sight polylines.

Reconciliation rules:
    1. No events: a single interval in the initial state.
    2. One interval per pair of consecutive events, the state flipping
       at each event.
    3. A leading interval from the span start to the first event, in the
       initial state.
    4. A trailing interval from the last event to the span stop, in the
       state the last event switched to.
    5. Intervals reaching past the span stop are truncated there and
       anything after is dropped.
    6. Zero-length intervals are dropped and neighbours sharing a state
       are merged.

No external dependencies: only stdlib dataclasses/datetime/enum/logging.
"""
import logging
from collections.abc import Hashable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from orbit_czml.domain.errors import InvalidConfigurationError, TimelineValidationError
from orbit_czml.domain.simulation import TimeInterval, as_utc

logger = logging.getLogger(__name__)


class VisibilityState(Enum):
    """Whether two entities have line of sight."""
    VISIBLE = "VISIBLE"
    NOT_VISIBLE = "NOT_VISIBLE"

    @property
    def shown(self) -> bool:
        return self is VisibilityState.VISIBLE


class EventDirection(Enum):
    """Direction of a visibility transition."""
    VISIBLE_START = "VISIBLE_START"
    VISIBLE_END = "VISIBLE_END"

    @property
    def target_state(self) -> VisibilityState:
        """State in force right after an event of this direction."""
        if self is EventDirection.VISIBLE_START:
            return VisibilityState.VISIBLE
        return VisibilityState.NOT_VISIBLE


@dataclass(frozen=True)
class VisibilityEvent:
    """A detector sign change at a given instant."""
    time: datetime
    direction: EventDirection


@dataclass(frozen=True)
class VisibilityInterval:
    """Half-open span [start, stop) during which the state holds."""
    start: datetime
    stop: datetime
    state: VisibilityState

    @property
    def duration_seconds(self) -> float:
        return (self.stop - self.start).total_seconds()

    def contains(self, t: datetime) -> bool:
        return self.start <= t < self.stop


@dataclass(frozen=True)
class Timeline:
    """
    Ordered, contiguous, alternating visibility intervals.

    The first interval starts at the span start and the last one stops at
    the span stop. ``transitioned`` is False when the state never changed
    inside the span.
    """
    intervals: tuple[VisibilityInterval, ...]

    @property
    def start(self) -> datetime:
        return self.intervals[0].start

    @property
    def stop(self) -> datetime:
        return self.intervals[-1].stop

    @property
    def transitioned(self) -> bool:
        return len(self.intervals) > 1

    @property
    def initial_state(self) -> VisibilityState:
        return self.intervals[0].state

    @property
    def visible_seconds(self) -> float:
        return sum(iv.duration_seconds for iv in self.visible_intervals())

    def visible_intervals(self) -> list[VisibilityInterval]:
        return [iv for iv in self.intervals if iv.state is VisibilityState.VISIBLE]

    def state_at(self, t: datetime) -> VisibilityState:
        """
        State in force at t.

        The span stop belongs to the last interval.

        Raises:
            ValueError: If t lies outside the timeline.
        """
        t = as_utc(t)
        for interval in self.intervals:
            if interval.contains(t):
                return interval.state
        if t == self.stop:
            return self.intervals[-1].state
        raise ValueError(
            f"{t.isoformat()} is outside the timeline "
            f"{self.start.isoformat()} -> {self.stop.isoformat()}"
        )


def _validate_events(
    initial_state: VisibilityState,
    events: Sequence[VisibilityEvent],
    span: TimeInterval,
) -> None:
    """Fail fast on event streams that cannot describe a real scan."""
    running = initial_state
    previous_time: datetime | None = None
    for index, event in enumerate(events):
        if event.time < span.start:
            raise TimelineValidationError(
                f"event {index} at {event.time.isoformat()} precedes the span start "
                f"{span.start.isoformat()}"
            )
        if previous_time is not None and event.time <= previous_time:
            raise TimelineValidationError(
                f"events must be strictly increasing in time: event {index} at "
                f"{event.time.isoformat()} follows {previous_time.isoformat()}"
            )
        if event.direction.target_state is running:
            raise TimelineValidationError(
                f"event {index} ({event.direction.value}) does not change the "
                f"running state {running.value}; directions must alternate"
            )
        running = event.direction.target_state
        previous_time = event.time


def _normalize(
    raw: list[VisibilityInterval],
) -> list[VisibilityInterval]:
    """Drop zero-length intervals, then merge neighbours with equal state."""
    merged: list[VisibilityInterval] = []
    for interval in raw:
        if interval.stop <= interval.start:
            continue
        if merged and merged[-1].state is interval.state and merged[-1].stop == interval.start:
            merged[-1] = VisibilityInterval(merged[-1].start, interval.stop, interval.state)
        else:
            merged.append(interval)
    return merged


def reconcile_visibility(
    initial_state: VisibilityState,
    events: Sequence[VisibilityEvent],
    span: TimeInterval,
) -> Timeline:
    """
    Partition a span into visibility intervals from detector events.

    Args:
        initial_state: State at span start (VISIBLE when the detector's
            sign function is non-negative there).
        events: Detector events in chronological order. Events after the
            span stop are allowed and are clipped away.
        span: Bounding simulation span.

    Returns:
        Timeline covering exactly [span.start, span.stop).

    Raises:
        TimelineValidationError: If events are unsorted, do not strictly
            alternate starting away from initial_state, or precede the span.
    """
    events = [VisibilityEvent(as_utc(e.time), e.direction) for e in events]
    _validate_events(initial_state, events, span)

    if not events:
        logger.info(
            "No visibility transition between %s and %s: %s for the whole span",
            span.start.isoformat(), span.stop.isoformat(), initial_state.value,
        )
        return Timeline((VisibilityInterval(span.start, span.stop, initial_state),))

    raw: list[VisibilityInterval] = []
    state = initial_state
    cursor = span.start
    for event in events:
        raw.append(VisibilityInterval(cursor, event.time, state))
        state = event.direction.target_state
        cursor = event.time
    raw.append(VisibilityInterval(cursor, span.stop, state))

    clipped: list[VisibilityInterval] = []
    for interval in raw:
        if interval.start >= span.stop:
            break
        if interval.stop > span.stop:
            clipped.append(VisibilityInterval(interval.start, span.stop, interval.state))
            break
        clipped.append(interval)

    dropped = sum(1 for e in events if e.time > span.stop)
    if dropped:
        logger.debug("Clipped %d visibility event(s) after %s", dropped, span.stop.isoformat())

    timeline = Timeline(tuple(_normalize(clipped)))
    if not timeline.transitioned:
        logger.info(
            "No visibility transition between %s and %s: %s for the whole span",
            span.start.isoformat(), span.stop.isoformat(), timeline.initial_state.value,
        )
    return timeline


def pair_key(a: Hashable, b: Hashable) -> frozenset:
    """
    Unordered identity of an entity pair.

    Raises:
        InvalidConfigurationError: If both ids are the same entity.
    """
    if a == b:
        raise InvalidConfigurationError(f"a visibility pair needs two distinct entities, got {a!r} twice")
    return frozenset((a, b))


def reconcile_pairs(
    inputs: Mapping[frozenset, tuple[VisibilityState, Sequence[VisibilityEvent]]],
    span: TimeInterval,
) -> dict[frozenset, Timeline]:
    """
    Reconcile many entity pairs over one shared span.

    Each pair is reconciled on its own; nothing is merged across pairs.

    Args:
        inputs: Pair key (see pair_key) -> (initial state, events).
        span: Shared bounding span.

    Returns:
        Pair key -> Timeline, in the iteration order of inputs.
    """
    timelines: dict[frozenset, Timeline] = {}
    for key, (initial_state, events) in inputs.items():
        if not isinstance(key, frozenset) or len(key) != 2:
            raise InvalidConfigurationError(f"pair keys must be two-element frozensets, got {key!r}")
        timelines[key] = reconcile_visibility(initial_state, events, span)
    return timelines
