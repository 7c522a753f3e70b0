"""
Unit tests for the streak tracker (pure, previous day supplied by a loader).
"""
from __future__ import annotations

from app.services.streak import PriorDay, StreakState, compute_streak


def _loader(prior: PriorDay | None):
    calls = []

    def load():
        calls.append(1)
        return prior
    return load, calls


class TestComputeStreak:
    def test_first_compliant_day_without_history(self):
        load, _ = _loader(None)
        assert compute_streak(85, False, 0, load) == StreakState(1, True)

    def test_continues_from_compliant_yesterday(self):
        load, _ = _loader(PriorDay(compliance_score=85, streak_count=1))
        assert compute_streak(90, False, 0, load) == StreakState(2, True)

    def test_yesterday_below_threshold_restarts_at_one(self):
        load, _ = _loader(PriorDay(compliance_score=79, streak_count=4))
        assert compute_streak(95, False, 0, load) == StreakState(1, True)

    def test_yesterday_exactly_80_counts(self):
        load, _ = _loader(PriorDay(compliance_score=80, streak_count=6))
        assert compute_streak(80, False, 0, load) == StreakState(7, True)

    def test_non_compliant_resets_and_unseeds(self):
        load, calls = _loader(PriorDay(compliance_score=90, streak_count=3))
        assert compute_streak(50, True, 4, load) == StreakState(0, False)
        assert calls == []

    def test_already_seeded_does_not_increment_or_reload(self):
        load, calls = _loader(PriorDay(compliance_score=90, streak_count=3))
        assert compute_streak(92, True, 4, load) == StreakState(4, True)
        assert calls == []

    def test_same_day_recovery_reseeds(self):
        prior = PriorDay(compliance_score=88, streak_count=2)
        load, calls = _loader(prior)

        state = compute_streak(85, False, 0, load)
        assert state == StreakState(3, True)

        state = compute_streak(55, state.streak_seeded, state.streak_count, load)
        assert state == StreakState(0, False)

        state = compute_streak(81, state.streak_seeded, state.streak_count, load)
        assert state == StreakState(3, True)
        assert len(calls) == 2

    def test_three_day_sequence(self):
        day1 = compute_streak(85, False, 0, lambda: None)
        assert day1 == StreakState(1, True)

        day2 = compute_streak(90, False, 0, lambda: PriorDay(85, day1.streak_count))
        assert day2 == StreakState(2, True)

        day3 = compute_streak(50, False, 0, lambda: PriorDay(90, day2.streak_count))
        assert day3 == StreakState(0, False)
