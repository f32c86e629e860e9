# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""Tests for geometric detectors and event search."""

import ast
import logging
import math
from datetime import datetime, timedelta, timezone

import pytest

from orbit_czml import (
    EventDirection,
    GroundStation,
    InvalidConfigurationError,
    KeplerianPropagator,
    OrbitalConstants,
    TimeInterval,
    VisibilityState,
    orbital_state_from_elements,
    pair_key,
)
from orbit_czml.domain.coordinate_frames import ecef_to_geodetic, eci_to_ecef
from orbit_czml.domain.detectors import (
    ElevationDetector,
    InterSatDirectViewDetector,
    constellation_visibility_timelines,
    detect_visibility,
    find_events,
    pair_visibility_timeline,
    segment_clearance,
)

EPOCH = datetime(2026, 3, 20, 12, 0, 0, tzinfo=timezone.utc)
R = OrbitalConstants.R_EARTH_EQUATORIAL


class BumpDetector:
    """g >= 0 between two offsets (seconds from EPOCH)."""

    def __init__(self, rise_s: float, set_s: float) -> None:
        self.rise_s = rise_s
        self.set_s = set_s

    def g(self, t):
        x = (t - EPOCH).total_seconds()
        return (x - self.rise_s) * (self.set_s - x)


def _propagator(nu_deg: float, raan_deg: float = 0.0, alt_km: float = 700.0,
                inc_deg: float = 98.0, hours: float = 2.0) -> KeplerianPropagator:
    state = orbital_state_from_elements(
        OrbitalConstants.R_EARTH + alt_km * 1000.0, 0.0, math.radians(inc_deg),
        math.radians(raan_deg), 0.0, math.radians(nu_deg), EPOCH,
    )
    return KeplerianPropagator(state, EPOCH, EPOCH + timedelta(hours=hours))


@pytest.fixture
def span():
    return TimeInterval(EPOCH, EPOCH + timedelta(seconds=100))


class TestFindEvents:

    def test_finds_rise_and_set(self, span):
        result = find_events(BumpDetector(33.3, 71.7), span, max_check_seconds=10.0)
        assert result.initial_state is VisibilityState.NOT_VISIBLE
        assert [e.direction for e in result.events] == [
            EventDirection.VISIBLE_START, EventDirection.VISIBLE_END,
        ]
        assert (result.events[0].time - EPOCH).total_seconds() == pytest.approx(33.3, abs=2e-3)
        assert (result.events[1].time - EPOCH).total_seconds() == pytest.approx(71.7, abs=2e-3)

    def test_visible_at_start(self, span):
        result = find_events(BumpDetector(-10.0, 50.0), span, max_check_seconds=10.0)
        assert result.initial_state is VisibilityState.VISIBLE
        assert [e.direction for e in result.events] == [EventDirection.VISIBLE_END]

    def test_no_crossing(self, span):
        result = find_events(BumpDetector(200.0, 300.0), span, max_check_seconds=10.0)
        assert result.initial_state is VisibilityState.NOT_VISIBLE
        assert result.events == ()

    def test_grid_not_multiple_of_step_reaches_stop(self, span):
        result = find_events(BumpDetector(95.0, 300.0), span, max_check_seconds=30.0)
        assert len(result.events) == 1
        assert result.events[0].time <= span.stop

    def test_events_strictly_increasing(self, span):
        result = find_events(BumpDetector(10.0, 10.5), span, max_check_seconds=0.4)
        times = [e.time for e in result.events]
        assert times == sorted(times)
        assert len(set(times)) == len(times)

    def test_invalid_settings_raise(self, span):
        with pytest.raises(InvalidConfigurationError):
            find_events(BumpDetector(0, 1), span, max_check_seconds=0.0)
        with pytest.raises(InvalidConfigurationError):
            find_events(BumpDetector(0, 1), span, threshold_seconds=1e-9)


class TestDetectVisibility:

    def test_timeline_matches_events(self, span):
        timeline = detect_visibility(BumpDetector(20.0, 60.0), span, max_check_seconds=5.0)
        assert [iv.state for iv in timeline.intervals] == [
            VisibilityState.NOT_VISIBLE, VisibilityState.VISIBLE, VisibilityState.NOT_VISIBLE,
        ]
        assert timeline.start == span.start
        assert timeline.stop == span.stop
        assert timeline.visible_seconds == pytest.approx(40.0, abs=5e-3)

    def test_detection_logged_at_debug(self, span, caplog):
        with caplog.at_level(logging.DEBUG, logger="orbit_czml.domain.detectors"):
            detect_visibility(BumpDetector(20.0, 60.0), span, max_check_seconds=5.0)
        assert "2 event(s)" in caplog.text


class TestSegmentClearance:

    def test_line_through_earth_is_negative(self):
        assert segment_clearance((7e6, 0, 0), (-7e6, 0, 0), R) == pytest.approx(-R)

    def test_short_segment_above_surface(self):
        assert segment_clearance((7e6, 0, 0), (7e6, 1e5, 0), R) == pytest.approx(7e6 - R)

    def test_degenerate_segment(self):
        assert segment_clearance((8e6, 0, 0), (8e6, 0, 0), R) == pytest.approx(8e6 - R)


class TestElevationDetector:

    def test_from_aperture(self):
        station = GroundStation("GS", 0.0, 0.0)
        detector = ElevationDetector.from_aperture(station, _propagator(0.0), 80.0)
        assert detector.min_elevation_deg == pytest.approx(10.0)

    def test_invalid_aperture_raises(self):
        station = GroundStation("GS", 0.0, 0.0)
        with pytest.raises(InvalidConfigurationError):
            ElevationDetector.from_aperture(station, _propagator(0.0), 0.0)

    def test_station_under_satellite_sees_it_then_loses_it(self):
        propagator = _propagator(0.0)
        pos, vel = propagator.state_at(EPOCH)
        lat, lon, _ = ecef_to_geodetic(eci_to_ecef(pos, vel, EPOCH)[0])
        station = GroundStation("Nadir", lat, lon)

        detector = ElevationDetector.from_aperture(station, propagator, 80.0)
        span = TimeInterval(EPOCH, EPOCH + timedelta(hours=1))
        timeline = detect_visibility(detector, span, max_check_seconds=30.0)

        assert timeline.initial_state is VisibilityState.VISIBLE
        assert timeline.transitioned
        # a 700 km LEO pass stays well under half an hour
        assert timeline.intervals[0].duration_seconds < 1800.0

    def test_window_is_propagator_validity(self):
        propagator = _propagator(0.0)
        detector = ElevationDetector(GroundStation("GS", 0.0, 0.0), propagator)
        assert detector.window == TimeInterval(propagator.min_date, propagator.max_date)


class TestInterSatellite:

    def test_opposite_satellites_never_visible(self):
        span = TimeInterval(EPOCH, EPOCH + timedelta(hours=1))
        timeline = pair_visibility_timeline(_propagator(0.0), _propagator(180.0), span)
        assert not timeline.transitioned
        assert timeline.initial_state is VisibilityState.NOT_VISIBLE

    def test_close_satellites_always_visible(self):
        span = TimeInterval(EPOCH, EPOCH + timedelta(hours=1))
        timeline = pair_visibility_timeline(_propagator(0.0), _propagator(30.0), span)
        assert not timeline.transitioned
        assert timeline.initial_state is VisibilityState.VISIBLE

    def test_drifting_satellites_lose_sight(self):
        # the lower satellite leads and pulls away until the Earth blocks the line
        span = TimeInterval(EPOCH, EPOCH + timedelta(hours=2))
        timeline = pair_visibility_timeline(
            _propagator(40.0, inc_deg=53.0),
            _propagator(0.0, inc_deg=53.0, alt_km=1200.0),
            span,
        )
        assert timeline.initial_state is VisibilityState.VISIBLE
        assert [iv.state for iv in timeline.intervals] == [
            VisibilityState.VISIBLE, VisibilityState.NOT_VISIBLE,
        ]

    def test_window_is_overlap(self):
        a = _propagator(0.0, hours=2.0)
        b = _propagator(30.0, hours=1.0)
        detector = InterSatDirectViewDetector(a, b)
        assert detector.window.stop == EPOCH + timedelta(hours=1)

    def test_span_clipped_to_common_window(self):
        span = TimeInterval(EPOCH, EPOCH + timedelta(hours=3))
        timeline = pair_visibility_timeline(_propagator(0.0, hours=2.0), _propagator(30.0, hours=1.0), span)
        assert timeline.stop == EPOCH + timedelta(hours=1)

    def test_no_overlap_raises(self):
        span = TimeInterval(EPOCH + timedelta(hours=5), EPOCH + timedelta(hours=6))
        with pytest.raises(InvalidConfigurationError):
            pair_visibility_timeline(_propagator(0.0), _propagator(30.0), span)


class TestConstellation:

    def test_every_pair_once(self):
        props = {"A": _propagator(0.0), "B": _propagator(30.0), "C": _propagator(180.0)}
        span = TimeInterval(EPOCH, EPOCH + timedelta(minutes=30))
        window, timelines = constellation_visibility_timelines(props, span)
        assert window == span
        assert list(timelines) == [pair_key("A", "B"), pair_key("A", "C"), pair_key("B", "C")]
        assert timelines[pair_key("A", "B")].initial_state is VisibilityState.VISIBLE
        assert timelines[pair_key("A", "C")].initial_state is VisibilityState.NOT_VISIBLE

    def test_matches_pairwise_detection(self):
        a = _propagator(40.0, inc_deg=53.0)
        b = _propagator(0.0, inc_deg=53.0, alt_km=1200.0)
        span = TimeInterval(EPOCH, EPOCH + timedelta(hours=2))
        _, timelines = constellation_visibility_timelines({"A": a, "B": b}, span)
        assert timelines[pair_key("A", "B")] == pair_visibility_timeline(a, b, span)

    def test_needs_two_satellites(self):
        span = TimeInterval(EPOCH, EPOCH + timedelta(minutes=30))
        with pytest.raises(InvalidConfigurationError):
            constellation_visibility_timelines({"A": _propagator(0.0)}, span)

    def test_common_window_logged(self, caplog):
        props = {"A": _propagator(0.0, hours=2.0), "B": _propagator(30.0, hours=1.0)}
        span = TimeInterval(EPOCH, EPOCH + timedelta(hours=2))
        with caplog.at_level(logging.INFO, logger="orbit_czml.domain.detectors"):
            window, _ = constellation_visibility_timelines(props, span)
        assert window.stop == EPOCH + timedelta(hours=1)
        assert "common window" in caplog.text


class TestDetectorsPurity:

    def test_detectors_imports_only_stdlib_numpy_and_domain(self):
        import orbit_czml.domain.detectors as mod

        allowed = {'itertools', 'logging', 'collections', 'dataclasses', 'datetime', 'numpy'}
        with open(mod.__file__) as f:
            tree = ast.parse(f.read())

        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    root = alias.name.split('.')[0]
                    assert root in allowed, f"Disallowed import '{alias.name}'"
            if isinstance(node, ast.ImportFrom):
                if node.module and node.level == 0:
                    root = node.module.split('.')[0]
                    assert root in allowed or root == 'orbit_czml', f"Disallowed import from '{node.module}'"
