# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""Tests for the visibility interval reconciler."""

import ast
import logging
from datetime import datetime, timedelta, timezone

import pytest

from orbit_czml import (
    EventDirection,
    InvalidConfigurationError,
    TimeInterval,
    Timeline,
    TimelineValidationError,
    VisibilityEvent,
    VisibilityInterval,
    VisibilityState,
    pair_key,
    reconcile_pairs,
    reconcile_visibility,
)

T0 = datetime(2026, 3, 20, 12, 0, 0, tzinfo=timezone.utc)
VIS = VisibilityState.VISIBLE
NOT = VisibilityState.NOT_VISIBLE
START = EventDirection.VISIBLE_START
END = EventDirection.VISIBLE_END


def at(seconds: float) -> datetime:
    return T0 + timedelta(seconds=seconds)


def events(*pairs):
    return [VisibilityEvent(at(s), d) for s, d in pairs]


def as_offsets(timeline: Timeline):
    return [
        ((iv.start - T0).total_seconds(), (iv.stop - T0).total_seconds(), iv.state)
        for iv in timeline.intervals
    ]


@pytest.fixture
def span():
    return TimeInterval(at(0), at(100))


class TestScenarios:

    def test_no_events_single_not_visible_interval(self, span):
        timeline = reconcile_visibility(NOT, [], span)
        assert as_offsets(timeline) == [(0, 100, NOT)]

    def test_visible_window_inside_span(self, span):
        timeline = reconcile_visibility(NOT, events((20, START), (60, END)), span)
        assert as_offsets(timeline) == [(0, 20, NOT), (20, 60, VIS), (60, 100, NOT)]

    def test_visible_at_start_then_lost(self, span):
        timeline = reconcile_visibility(VIS, events((30, END)), span)
        assert as_offsets(timeline) == [(0, 30, VIS), (30, 100, NOT)]

    def test_events_past_stop_are_clipped(self, span):
        timeline = reconcile_visibility(
            NOT, events((10, START), (40, END), (70, START), (150, END)), span,
        )
        assert as_offsets(timeline) == [
            (0, 10, NOT), (10, 40, VIS), (40, 70, NOT), (70, 100, VIS),
        ]

    def test_run_ending_mid_visibility_keeps_visible_tail(self, span):
        timeline = reconcile_visibility(NOT, events((50, START)), span)
        assert as_offsets(timeline)[-1] == (50, 100, VIS)


class TestProperties:

    @pytest.mark.parametrize("initial, evts", [
        (NOT, []),
        (VIS, []),
        (NOT, [(0, START), (50, END)]),
        (VIS, [(25, END), (75, START)]),
        (NOT, [(1, START), (2, END), (3, START), (99.5, END)]),
        (VIS, [(100, END)]),
        (NOT, [(10, START), (200, END)]),
    ])
    def test_coverage_anchoring_alternation(self, span, initial, evts):
        timeline = reconcile_visibility(initial, events(*evts), span)
        ivs = timeline.intervals
        assert ivs[0].start == span.start
        assert ivs[-1].stop == span.stop
        for a, b in zip(ivs, ivs[1:]):
            assert a.stop == b.start
            assert a.state is not b.state
        total = sum(iv.duration_seconds for iv in ivs)
        assert total == pytest.approx(span.duration_seconds)

    def test_empty_events_keeps_initial_state(self, span):
        for state in (VIS, NOT):
            timeline = reconcile_visibility(state, [], span)
            assert len(timeline.intervals) == 1
            assert timeline.intervals[0] == VisibilityInterval(span.start, span.stop, state)

    def test_deterministic(self, span):
        evts = events((10, START), (40, END))
        assert reconcile_visibility(NOT, evts, span) == reconcile_visibility(NOT, evts, span)

    def test_event_at_span_start_drops_zero_length_interval(self, span):
        timeline = reconcile_visibility(NOT, events((0, START), (50, END)), span)
        assert as_offsets(timeline) == [(0, 50, VIS), (50, 100, NOT)]
        assert timeline.initial_state is VIS

    def test_event_at_span_stop_leaves_no_trailing_interval(self, span):
        timeline = reconcile_visibility(VIS, events((100, END)), span)
        assert as_offsets(timeline) == [(0, 100, VIS)]
        assert not timeline.transitioned


class TestTimeline:

    @pytest.fixture
    def timeline(self, span):
        return reconcile_visibility(NOT, events((20, START), (60, END)), span)

    def test_state_at(self, timeline):
        assert timeline.state_at(at(0)) is NOT
        assert timeline.state_at(at(20)) is VIS
        assert timeline.state_at(at(59.9)) is VIS
        assert timeline.state_at(at(60)) is NOT
        assert timeline.state_at(at(100)) is NOT

    def test_state_at_outside_raises(self, timeline):
        with pytest.raises(ValueError):
            timeline.state_at(at(-1))
        with pytest.raises(ValueError):
            timeline.state_at(at(101))

    def test_visible_seconds(self, timeline):
        assert timeline.visible_seconds == pytest.approx(40.0)
        assert len(timeline.visible_intervals()) == 1

    def test_transitioned(self, timeline, span):
        assert timeline.transitioned
        assert not reconcile_visibility(NOT, [], span).transitioned

    def test_naive_event_times_are_utc(self, span):
        naive = [VisibilityEvent(at(20).replace(tzinfo=None), START)]
        timeline = reconcile_visibility(NOT, naive, span)
        assert timeline.intervals[1].start == at(20)


class TestValidation:

    def test_unsorted_events_raise(self, span):
        with pytest.raises(TimelineValidationError, match="strictly increasing"):
            reconcile_visibility(NOT, events((60, START), (20, END)), span)

    def test_simultaneous_events_raise(self, span):
        with pytest.raises(TimelineValidationError):
            reconcile_visibility(NOT, events((20, START), (20, END)), span)

    def test_non_alternating_directions_raise(self, span):
        with pytest.raises(TimelineValidationError, match="alternate"):
            reconcile_visibility(NOT, events((20, START), (40, START)), span)

    def test_first_event_must_leave_initial_state(self, span):
        with pytest.raises(TimelineValidationError):
            reconcile_visibility(VIS, events((20, START)), span)

    def test_event_before_span_raises(self, span):
        with pytest.raises(TimelineValidationError, match="precedes"):
            reconcile_visibility(NOT, events((-5, START)), span)

    def test_validation_error_is_value_error(self, span):
        with pytest.raises(ValueError):
            reconcile_visibility(NOT, events((20, END)), span)


class TestLogging:

    def test_never_visible_is_logged_not_raised(self, span, caplog):
        with caplog.at_level(logging.INFO, logger="orbit_czml.domain.visibility"):
            reconcile_visibility(NOT, [], span)
        assert "No visibility transition" in caplog.text
        assert "NOT_VISIBLE" in caplog.text

    def test_clipped_events_logged_at_debug(self, span, caplog):
        with caplog.at_level(logging.DEBUG, logger="orbit_czml.domain.visibility"):
            reconcile_visibility(NOT, events((10, START), (150, END)), span)
        assert "Clipped 1 visibility event" in caplog.text


class TestPairs:

    def test_pair_key_is_unordered(self):
        assert pair_key("A", "B") == pair_key("B", "A")

    def test_pair_key_same_entity_raises(self):
        with pytest.raises(InvalidConfigurationError):
            pair_key("A", "A")

    def test_pairs_reconciled_independently(self, span):
        inputs = {
            pair_key("A", "B"): (NOT, events((20, START), (60, END))),
            pair_key("A", "C"): (VIS, events((30, END))),
            pair_key("B", "C"): (NOT, []),
        }
        result = reconcile_pairs(inputs, span)
        assert list(result) == list(inputs)
        assert as_offsets(result[pair_key("B", "A")]) == [(0, 20, NOT), (20, 60, VIS), (60, 100, NOT)]
        assert as_offsets(result[pair_key("C", "A")]) == [(0, 30, VIS), (30, 100, NOT)]
        assert as_offsets(result[pair_key("C", "B")]) == [(0, 100, NOT)]

    def test_same_tail_policy_as_single_pair(self, span):
        evts = events((10, START), (40, END), (70, START))
        single = reconcile_visibility(NOT, evts, span)
        batch = reconcile_pairs({pair_key(1, 2): (NOT, evts)}, span)
        assert batch[pair_key(1, 2)] == single

    def test_bad_pair_key_raises(self, span):
        with pytest.raises(InvalidConfigurationError):
            reconcile_pairs({("A", "B"): (NOT, [])}, span)


class TestVisibilityPurity:

    def test_visibility_imports_only_stdlib_and_domain(self):
        import orbit_czml.domain.visibility as mod

        allowed = {'logging', 'collections', 'dataclasses', 'datetime', 'enum', 'typing'}
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
