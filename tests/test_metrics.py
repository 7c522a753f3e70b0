"""
Unit tests for the metrics accumulator (pure, no DB).
"""
from __future__ import annotations

from functools import reduce

import pytest

from app.models.engagement_event import EventType
from app.services.metrics import DailyMetrics, apply_event, round_half_up


def _fold(events: list[tuple[str, dict]], start: DailyMetrics | None = None) -> DailyMetrics:
    return reduce(lambda m, ev: apply_event(m, ev[0], ev[1]), events, start or DailyMetrics())


class TestDailyMetrics:
    def test_new_metrics_are_zero(self):
        m = DailyMetrics()
        assert all(v == 0 for v in m.to_dict().values())

    def test_from_json_fills_missing_keys_and_drops_unknown(self):
        m = DailyMetrics.from_json('{"login_count": 3, "legacyField": 9}')
        assert m.login_count == 3
        assert m.ppe_checks_passed == 0

    def test_json_round_trip(self):
        m = _fold([(EventType.app_login, {}), (EventType.quiz_completed, {"score": 70})])
        assert DailyMetrics.from_json(m.to_json()) == m

    def test_apply_event_does_not_mutate_input(self):
        m = DailyMetrics()
        apply_event(m, EventType.app_login, {})
        assert m.login_count == 0


class TestCounters:
    @pytest.mark.parametrize("event_type, field", [
        (EventType.app_login, "login_count"),
        (EventType.ppe_confirmed, "ppe_checks_passed"),
        (EventType.ppe_skipped, "ppe_checks_failed"),
        (EventType.video_started, "videos_started"),
        (EventType.hazard_reported, "hazards_reported"),
        (EventType.instruction_acknowledged, "acknowledgements"),
        (EventType.nudge_acknowledged, "nudges_acknowledged"),
    ])
    def test_simple_increment(self, event_type, field):
        m = apply_event(apply_event(DailyMetrics(), event_type, {}), event_type, {})
        assert getattr(m, field) == 2

    def test_logout_is_pass_through(self):
        m = DailyMetrics(login_count=1)
        assert apply_event(m, EventType.app_logout, {}) == m

    def test_unknown_type_is_pass_through(self):
        m = DailyMetrics(login_count=1, ppe_checks_passed=2)
        assert apply_event(m, "shift_swapped", {"foo": 1}) == m


class TestChecklist:
    def test_viewed_sets_total_items(self):
        m = apply_event(DailyMetrics(), EventType.checklist_viewed, {"totalItems": 8})
        assert m.total_checklist_items == 8
        assert m.checklist_completion_rate == 0

    def test_viewed_without_total_keeps_prior(self):
        m = apply_event(DailyMetrics(total_checklist_items=5), EventType.checklist_viewed, {})
        assert m.total_checklist_items == 5

    def test_item_completed_counts_only_when_completed_truthy(self):
        m = _fold([
            (EventType.checklist_viewed, {"totalItems": 4}),
            (EventType.checklist_item_completed, {"completed": True}),
            (EventType.checklist_item_completed, {"completed": False}),
            (EventType.checklist_item_completed, {}),
        ])
        assert m.checklist_items_completed == 1
        assert m.checklist_completion_rate == 25

    def test_item_completed_refreshes_late_total(self):
        m = _fold([
            (EventType.checklist_item_completed, {"completed": True}),
            (EventType.checklist_item_completed, {"completed": True, "totalItems": 3}),
        ])
        assert m.total_checklist_items == 3
        assert m.checklist_completion_rate == 67

    def test_completed_forces_items_to_total(self):
        m = _fold([
            (EventType.checklist_viewed, {"totalItems": 10}),
            (EventType.checklist_item_completed, {"completed": True}),
            (EventType.checklist_completed, {}),
        ])
        assert m.checklists_completed == 1
        assert m.checklist_items_completed == 10
        assert m.checklist_completion_rate == 100

    def test_completed_without_total_sets_rate_100(self):
        m = apply_event(DailyMetrics(), EventType.checklist_completed, {})
        assert m.total_checklist_items == 0
        assert m.checklist_completion_rate == 100

    @pytest.mark.parametrize("event_type", [
        EventType.app_login, EventType.ppe_confirmed, EventType.video_started,
        EventType.quiz_completed, EventType.checklist_viewed,
    ])
    def test_rate_stays_zero_without_totals_or_completions(self, event_type):
        m = apply_event(DailyMetrics(), event_type, {"score": 90})
        assert m.total_checklist_items == 0
        assert m.checklists_completed == 0
        assert m.checklist_completion_rate == 0

    def test_rate_never_exceeds_100(self):
        m = _fold([(EventType.checklist_item_completed, {"completed": True, "totalItems": 1})] * 3)
        assert m.checklist_completion_rate == 100

    @pytest.mark.parametrize("raw", ["inf", "nan", "1e999", "-inf", 10 ** 400])
    def test_non_finite_total_items_read_as_zero(self, raw):
        m = apply_event(DailyMetrics(total_checklist_items=4), EventType.checklist_viewed, {"totalItems": raw})
        assert m.total_checklist_items == 4
        assert m.checklist_completion_rate == 0

    @pytest.mark.parametrize("raw", ["inf", "nan", "1e999"])
    def test_non_finite_total_items_ignored_on_any_event(self, raw):
        m = apply_event(DailyMetrics(), EventType.app_login, {"totalItems": raw})
        assert m.login_count == 1

    def test_rate_rounds_half_up(self):
        # 1/8 = 12.5% → 13
        m = _fold([
            (EventType.checklist_viewed, {"totalItems": 8}),
            (EventType.checklist_item_completed, {"completed": True}),
        ])
        assert m.checklist_completion_rate == 13


class TestVideo:
    def test_progress_adds_watch_time_and_engagement(self):
        m = _fold([
            (EventType.video_progress, {"deltaSeconds": 90}),
            (EventType.video_progress, {"deltaSeconds": 30}),
        ])
        assert m.video_milestones == 2
        assert m.video_watch_seconds == 120
        assert m.engagement_minutes == pytest.approx(2.0)

    def test_progress_without_delta_counts_milestone_only(self):
        m = apply_event(DailyMetrics(), EventType.video_progress, {})
        assert m.video_milestones == 1
        assert m.video_watch_seconds == 0

    def test_completed_adds_duration(self):
        m = apply_event(DailyMetrics(), EventType.video_completed, {"durationSeconds": 300})
        assert m.videos_completed == 1
        assert m.video_watch_seconds == 300
        assert m.engagement_minutes == pytest.approx(5.0)

    def test_negative_or_garbage_seconds_ignored(self):
        m = _fold([
            (EventType.video_progress, {"deltaSeconds": -40}),
            (EventType.video_progress, {"deltaSeconds": "abc"}),
            (EventType.video_progress, {"deltaSeconds": "inf"}),
            (EventType.video_progress, {"deltaSeconds": "nan"}),
        ])
        assert m.video_watch_seconds == 0
        assert m.engagement_minutes == 0


class TestQuiz:
    def test_running_average_80_then_100(self):
        first = apply_event(DailyMetrics(), EventType.quiz_completed, {"score": 80})
        assert first.quiz_average_score == 80.00
        assert first.quiz_attempts == 1
        second = apply_event(first, EventType.quiz_completed, {"score": 100})
        assert second.quiz_average_score == 90.00
        assert second.quiz_attempts == 2

    def test_average_rounded_to_two_decimals(self):
        m = _fold([
            (EventType.quiz_completed, {"score": 100}),
            (EventType.quiz_completed, {"score": 100}),
            (EventType.quiz_completed, {"score": 0}),
        ])
        assert m.quiz_average_score == 66.67

    def test_string_score_is_coerced(self):
        m = apply_event(DailyMetrics(), EventType.quiz_completed, {"score": "75"})
        assert m.quiz_average_score == 75

    def test_missing_score_counts_as_zero(self):
        m = apply_event(DailyMetrics(), EventType.quiz_completed, {})
        assert m.quiz_attempts == 1
        assert m.quiz_average_score == 0

    @pytest.mark.parametrize("raw", ["inf", "nan", "1e999", "-1e999"])
    def test_non_finite_score_counts_as_zero(self, raw):
        m = apply_event(DailyMetrics(), EventType.quiz_completed, {"score": raw})
        assert m.quiz_attempts == 1
        assert m.quiz_average_score == 0

    def test_average_stays_in_bounds(self):
        m = apply_event(DailyMetrics(), EventType.quiz_completed, {"score": 250})
        assert m.quiz_average_score == 100


class TestRoundHalfUp:
    @pytest.mark.parametrize("value, places, expected", [
        (2.5, 0, 3),
        (3.5, 0, 4),
        (2.4999, 0, 2),
        (66.665, 2, 66.67),
        (0, 0, 0),
    ])
    def test_rounding(self, value, places, expected):
        assert round_half_up(value, places) == expected
