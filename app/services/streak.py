"""
Streak tracker — consecutive compliant (score ≥ 80) days ending today.

The streak is recomputed on every event, not finalised at day end:

  compliant, not yet seeded today → yesterday's streak + 1 (0 if yesterday
                                    was missing or below 80), mark seeded
  compliant, already seeded       → unchanged
  not compliant                   → 0, unseeded, so a later recovery the
                                    same day seeds again

Yesterday's snapshot is only loaded when a seed is actually needed.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from app.services.scoring import is_compliant


@dataclass(frozen=True)
class PriorDay:
    compliance_score: int
    streak_count: int


@dataclass(frozen=True)
class StreakState:
    streak_count: int
    streak_seeded: bool


def compute_streak(
    score: int,
    streak_seeded: bool,
    streak_count: int,
    load_previous: Callable[[], Optional[PriorDay]],
) -> StreakState:
    if not is_compliant(score):
        return StreakState(streak_count=0, streak_seeded=False)

    if streak_seeded:
        return StreakState(streak_count=streak_count, streak_seeded=True)

    prior = load_previous()
    prior_streak = (
        prior.streak_count or 0
        if prior is not None and is_compliant(prior.compliance_score)
        else 0
    )
    return StreakState(streak_count=prior_streak + 1, streak_seeded=True)
