"""
Unit tests for the compliance scorer: weights, clamping, risk boundaries.
"""
from __future__ import annotations

import pytest

from app.models.compliance_snapshot import RiskLevel
from app.services.metrics import DailyMetrics
from app.services.scoring import (
    classify_risk,
    compute_compliance_score,
    is_compliant,
    sub_scores,
)


class TestSubScores:
    def test_empty_day_scores_zero(self):
        s = sub_scores(DailyMetrics())
        assert (s.checklist, s.video, s.quiz, s.ppe, s.hazard, s.engagement) == (0, 0, 0, 0, 0, 0)
        assert compute_compliance_score(DailyMetrics()) == 0

    def test_checklist_falls_back_to_100_when_completed_without_rate(self):
        s = sub_scores(DailyMetrics(checklists_completed=1, checklist_completion_rate=0))
        assert s.checklist == 100

    def test_checklist_uses_rate_when_set(self):
        s = sub_scores(DailyMetrics(checklists_completed=1, checklist_completion_rate=40))
        assert s.checklist == 40

    def test_video_ratio(self):
        assert sub_scores(DailyMetrics(videos_started=4, videos_completed=3)).video == 75

    def test_video_clamped_when_completed_exceeds_started(self):
        assert sub_scores(DailyMetrics(videos_started=1, videos_completed=3)).video == 100

    def test_video_zero_when_nothing_started(self):
        assert sub_scores(DailyMetrics(videos_completed=2)).video == 0

    def test_ppe_ratio(self):
        assert sub_scores(DailyMetrics(ppe_checks_passed=3, ppe_checks_failed=1)).ppe == 75

    def test_ppe_all_failed_is_zero(self):
        assert sub_scores(DailyMetrics(ppe_checks_failed=2)).ppe == 0

    def test_hazard_and_engagement_clamped(self):
        s = sub_scores(DailyMetrics(hazards_reported=25, engagement_minutes=300))
        assert s.hazard == 100
        assert s.engagement == 100

    @pytest.mark.parametrize("failed", [0, 1, 3])
    def test_ppe_monotonic_in_passed(self, failed):
        previous = -1.0
        for passed in range(0, 12):
            current = sub_scores(DailyMetrics(ppe_checks_passed=passed, ppe_checks_failed=failed)).ppe
            assert current >= previous
            previous = current


class TestComplianceScore:
    def test_quiz_only_day(self):
        # 0.15 × 40 = 6
        assert compute_compliance_score(DailyMetrics(quiz_attempts=1, quiz_average_score=40)) == 6

    def test_perfect_day_is_100(self):
        m = DailyMetrics(
            checklists_completed=1, checklist_completion_rate=100,
            videos_started=1, videos_completed=1,
            quiz_attempts=1, quiz_average_score=100,
            ppe_checks_passed=2,
            hazards_reported=10,
            engagement_minutes=20,
        )
        assert compute_compliance_score(m) == 100

    def test_weighted_sum(self):
        m = DailyMetrics(
            checklist_completion_rate=100,   # 35
            videos_started=2, videos_completed=1,  # 10
            quiz_average_score=80,           # 12
            ppe_checks_passed=1,             # 15
            hazards_reported=1,              # 1
            engagement_minutes=2,            # 0.5
        )
        # 73.5 → 74 (half up)
        assert compute_compliance_score(m) == 74

    @pytest.mark.parametrize("m", [
        DailyMetrics(),
        DailyMetrics(checklist_completion_rate=100, videos_started=1, videos_completed=5,
                     quiz_average_score=100, ppe_checks_passed=50, hazards_reported=99,
                     engagement_minutes=999),
        DailyMetrics(ppe_checks_failed=7, videos_started=3),
    ])
    def test_score_always_bounded(self, m):
        assert 0 <= compute_compliance_score(m) <= 100

    def test_weights_sum_to_one(self):
        from app.services import scoring
        total = (
            scoring.WEIGHT_CHECKLIST + scoring.WEIGHT_VIDEO + scoring.WEIGHT_QUIZ
            + scoring.WEIGHT_PPE + scoring.WEIGHT_HAZARD + scoring.WEIGHT_ENGAGEMENT
        )
        assert total == pytest.approx(1.0)


class TestRiskLevel:
    @pytest.mark.parametrize("score, expected", [
        (0, RiskLevel.high),
        (59, RiskLevel.high),
        (60, RiskLevel.medium),
        (79, RiskLevel.medium),
        (80, RiskLevel.low),
        (100, RiskLevel.low),
    ])
    def test_boundaries(self, score, expected):
        assert classify_risk(score) == expected

    def test_compliant_threshold(self):
        assert is_compliant(80)
        assert not is_compliant(79)
