# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Geometric visibility detectors and event search.

A detector exposes a switching function g(t); the predicate holds
(VISIBLE) wherever g(t) >= 0. find_events samples g at a fixed maximum
check interval, brackets each sign change and refines it by bisection.
The detect_* helpers feed the result straight into the reconciler, so
station passes, satellite pairs and whole constellations follow one
policy:

    initial state   VISIBLE iff g(span.start) >= 0
    each crossing   increasing -> VISIBLE_START, decreasing -> VISIBLE_END
    tail interval   state after the last crossing

External dependency: numpy (allowed in domain layer).
"""
import itertools
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta

import numpy as np

from orbit_czml.domain.coordinate_frames import eci_to_ecef
from orbit_czml.domain.errors import InvalidConfigurationError
from orbit_czml.domain.observation import GroundStation, compute_observation
from orbit_czml.domain.orbital_mechanics import OrbitalConstants
from orbit_czml.domain.simulation import TimeInterval
from orbit_czml.domain.visibility import (
    EventDirection,
    Timeline,
    VisibilityEvent,
    VisibilityState,
    pair_key,
    reconcile_pairs,
    reconcile_visibility,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHECK_S = 60.0
DEFAULT_THRESHOLD_S = 1e-3
DEFAULT_APERTURE_DEG = 80.0


class ElevationDetector:
    """
    Satellite above a minimum elevation at a ground station.

    g(t) = elevation(t) - min_elevation_deg
    """

    def __init__(self, station: GroundStation, propagator, min_elevation_deg: float = 10.0) -> None:
        if not -90.0 <= min_elevation_deg <= 90.0:
            raise InvalidConfigurationError(
                f"min_elevation_deg must be in [-90, 90], got {min_elevation_deg}"
            )
        self.station = station
        self.propagator = propagator
        self.min_elevation_deg = min_elevation_deg

    @classmethod
    def from_aperture(cls, station: GroundStation, propagator,
                      aperture_deg: float = DEFAULT_APERTURE_DEG) -> "ElevationDetector":
        """Visibility cone of half-angle aperture_deg around the local zenith."""
        if not 0.0 < aperture_deg <= 180.0:
            raise InvalidConfigurationError(f"aperture_deg must be in (0, 180], got {aperture_deg}")
        return cls(station, propagator, min_elevation_deg=90.0 - aperture_deg)

    @property
    def window(self) -> TimeInterval:
        return TimeInterval(self.propagator.min_date, self.propagator.max_date)

    def g(self, t: datetime) -> float:
        pos, vel = self.propagator.state_at(t)
        pos_ecef, _ = eci_to_ecef(pos, vel, t)
        return compute_observation(self.station, pos_ecef).elevation_deg - self.min_elevation_deg


def segment_clearance(p1, p2, body_radius_m: float) -> float:
    """
    Distance from the body centre to the segment p1-p2, minus the radius.

    Positive when the straight line between the two points clears a
    sphere of body_radius_m centred on the origin.
    """
    a = np.asarray(p1, dtype=float)
    d = np.asarray(p2, dtype=float) - a
    length_sq = float(np.dot(d, d))
    if length_sq == 0.0:
        closest = a
    else:
        s = min(max(-float(np.dot(a, d)) / length_sq, 0.0), 1.0)
        closest = a + s * d
    return float(np.linalg.norm(closest)) - body_radius_m


class InterSatDirectViewDetector:
    """
    Direct line of sight between two satellites.

    g(t) is the clearance of the line of sight above a sphere of radius
    body_radius_m + skimming_altitude_m.
    """

    def __init__(
        self,
        primary,
        secondary,
        body_radius_m: float = OrbitalConstants.R_EARTH_EQUATORIAL,
        skimming_altitude_m: float = 0.0,
    ) -> None:
        if body_radius_m + skimming_altitude_m < 0:
            raise InvalidConfigurationError("occulting radius must be non-negative")
        self.primary = primary
        self.secondary = secondary
        self.occulting_radius_m = body_radius_m + skimming_altitude_m

    @property
    def window(self) -> TimeInterval:
        start = max(self.primary.min_date, self.secondary.min_date)
        stop = min(self.primary.max_date, self.secondary.max_date)
        return TimeInterval(start, stop)

    def g(self, t: datetime) -> float:
        p1, _ = self.primary.state_at(t)
        p2, _ = self.secondary.state_at(t)
        return segment_clearance(p1, p2, self.occulting_radius_m)


@dataclass(frozen=True)
class DetectionResult:
    """Initial switching-function value and the sign changes found after it."""
    initial_value: float
    events: tuple[VisibilityEvent, ...]

    @property
    def initial_state(self) -> VisibilityState:
        return VisibilityState.VISIBLE if self.initial_value >= 0 else VisibilityState.NOT_VISIBLE


def _refine_crossing(detector, lo: datetime, hi: datetime, threshold_s: float) -> datetime:
    """
    Bisect [lo, hi] down to threshold_s.

    lo is on the old side of the crossing, hi on the new one. Returns the
    upper bracket, the first instant known to be on the new side.
    """
    was_visible = detector.g(lo) >= 0
    lo_s, hi_s = 0.0, (hi - lo).total_seconds()
    while hi_s - lo_s > threshold_s:
        mid_s = 0.5 * (lo_s + hi_s)
        if (detector.g(lo + timedelta(seconds=mid_s)) >= 0) == was_visible:
            lo_s = mid_s
        else:
            hi_s = mid_s
    return lo + timedelta(seconds=hi_s)


def find_events(
    detector,
    span: TimeInterval,
    max_check_seconds: float = DEFAULT_MAX_CHECK_S,
    threshold_seconds: float = DEFAULT_THRESHOLD_S,
) -> DetectionResult:
    """
    Scan a detector's switching function for sign changes.

    Crossings closer together than max_check_seconds may be missed; keep
    it below the shortest visibility window of interest.

    Args:
        detector: Object with g(t) -> float.
        span: Scan window.
        max_check_seconds: Sampling interval of the scan.
        threshold_seconds: Time accuracy of each refined event.

    Returns:
        DetectionResult whose events strictly alternate starting away from
        the initial state.
    """
    if max_check_seconds <= 0:
        raise InvalidConfigurationError(f"max_check_seconds must be positive, got {max_check_seconds}")
    if threshold_seconds < 1e-6:
        raise InvalidConfigurationError(
            f"threshold_seconds must be at least 1 microsecond, got {threshold_seconds}"
        )

    initial_value = detector.g(span.start)
    visible = initial_value >= 0
    events: list[VisibilityEvent] = []

    previous = span.start
    steps = int(span.duration_seconds // max_check_seconds)
    grid = [
        min(span.start + timedelta(seconds=k * max_check_seconds), span.stop)
        for k in range(1, steps + 1)
    ]
    if not grid or grid[-1] < span.stop:
        grid.append(span.stop)

    for t in grid:
        now_visible = detector.g(t) >= 0
        if now_visible != visible:
            crossing = _refine_crossing(detector, previous, t, threshold_seconds)
            # microsecond rounding must not collapse the crossing onto the bracket start
            crossing = max(crossing, previous + timedelta(microseconds=1))
            direction = EventDirection.VISIBLE_START if now_visible else EventDirection.VISIBLE_END
            events.append(VisibilityEvent(crossing, direction))
            visible = now_visible
        previous = t

    return DetectionResult(initial_value=initial_value, events=tuple(events))


def detect_visibility(
    detector,
    span: TimeInterval,
    max_check_seconds: float = DEFAULT_MAX_CHECK_S,
    threshold_seconds: float = DEFAULT_THRESHOLD_S,
) -> Timeline:
    """Scan a detector over span and reconcile its events into a Timeline."""
    result = find_events(detector, span, max_check_seconds, threshold_seconds)
    logger.debug("Detector %s: %d event(s) over %s", type(detector).__name__, len(result.events), span)
    return reconcile_visibility(result.initial_state, result.events, span)


def _common_window(span: TimeInterval, propagators) -> TimeInterval | None:
    window: TimeInterval | None = span
    for propagator in propagators:
        if window is None:
            return None
        window = window.intersection(TimeInterval(propagator.min_date, propagator.max_date))
    return window


def pair_visibility_timeline(
    primary,
    secondary,
    span: TimeInterval,
    skimming_altitude_m: float = 0.0,
    max_check_seconds: float = DEFAULT_MAX_CHECK_S,
) -> Timeline:
    """
    Line-of-sight Timeline between two satellites.

    The span is clipped to the window where both propagators are valid.

    Raises:
        InvalidConfigurationError: If the propagators do not overlap span.
    """
    window = _common_window(span, (primary, secondary))
    if window is None:
        raise InvalidConfigurationError("the two trajectories do not overlap the simulation span")
    detector = InterSatDirectViewDetector(primary, secondary, skimming_altitude_m=skimming_altitude_m)
    return detect_visibility(detector, window, max_check_seconds)


def constellation_visibility_timelines(
    propagators: Mapping[str, object],
    span: TimeInterval,
    skimming_altitude_m: float = 0.0,
    max_check_seconds: float = DEFAULT_MAX_CHECK_S,
) -> tuple[TimeInterval, dict[frozenset, Timeline]]:
    """
    Line-of-sight Timelines for every unordered pair of a constellation.

    All pairs share one span: the simulation span clipped to the window
    where every propagator is valid. Each pair is detected and reconciled
    independently.

    Args:
        propagators: Satellite id -> propagator.
        span: Simulation span.

    Returns:
        (shared span, pair_key -> Timeline) with pairs in input order.

    Raises:
        InvalidConfigurationError: If fewer than two satellites are given
            or their trajectories have no common window inside span.
    """
    if len(propagators) < 2:
        raise InvalidConfigurationError(
            f"constellation visibility needs at least 2 satellites, got {len(propagators)}"
        )
    window = _common_window(span, propagators.values())
    if window is None:
        raise InvalidConfigurationError("the trajectories have no common window inside the simulation span")
    if window != span:
        logger.info(
            "Constellation visibility restricted to the common window %s -> %s",
            window.start.isoformat(), window.stop.isoformat(),
        )

    inputs: dict[frozenset, tuple[VisibilityState, tuple[VisibilityEvent, ...]]] = {}
    for (id_a, prop_a), (id_b, prop_b) in itertools.combinations(propagators.items(), 2):
        detector = InterSatDirectViewDetector(prop_a, prop_b, skimming_altitude_m=skimming_altitude_m)
        result = find_events(detector, window, max_check_seconds)
        logger.debug("Pair %s / %s: %d event(s)", id_a, id_b, len(result.events))
        inputs[pair_key(id_a, id_b)] = (result.initial_state, result.events)

    return window, reconcile_pairs(inputs, window)
