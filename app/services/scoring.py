"""
Compliance scorer — DailyMetrics → 0..100 score → risk level.

Score = round(Σ weight × sub-score), each sub-score clamped to [0, 100]:

  checklist   0.35   completion rate; 100 if a checklist was completed but no rate is set
  video       0.20   completed / started × 100; 0 if nothing started
  quiz        0.15   running average quiz score
  ppe         0.15   passed / (passed + failed) × 100; passed × 20 when no checks exist
  hazard      0.10   reports × 10
  engagement  0.05   minutes × 5

Risk: score < 60 → high, < 80 → medium, otherwise low.

The weights and thresholds are fixed contract values shared with the
mobile client and reporting; they are not configuration.
"""
from __future__ import annotations

from dataclasses import dataclass

from app.models.compliance_snapshot import RiskLevel
from app.services.metrics import DailyMetrics, round_half_up


WEIGHT_CHECKLIST  = 0.35
WEIGHT_VIDEO      = 0.2
WEIGHT_QUIZ       = 0.15
WEIGHT_PPE        = 0.15
WEIGHT_HAZARD     = 0.1
WEIGHT_ENGAGEMENT = 0.05

HIGH_RISK_BELOW   = 60
MEDIUM_RISK_BELOW = 80
COMPLIANT_SCORE   = MEDIUM_RISK_BELOW


@dataclass(frozen=True)
class SubScores:
    checklist: float
    video: float
    quiz: float
    ppe: float
    hazard: float
    engagement: float


def clamp_score(value: float) -> float:
    return max(0.0, min(100.0, value))


def sub_scores(m: DailyMetrics) -> SubScores:
    checklist = m.checklist_completion_rate or (100 if m.checklists_completed > 0 else 0)

    video = (
        clamp_score(m.videos_completed / m.videos_started * 100)
        if m.videos_started
        else 0
    )

    if m.ppe_checks_passed or m.ppe_checks_failed:
        ppe = clamp_score(
            m.ppe_checks_passed / (m.ppe_checks_passed + m.ppe_checks_failed) * 100
        )
    else:
        ppe = clamp_score(m.ppe_checks_passed * 20)

    return SubScores(
        checklist=clamp_score(checklist),
        video=video,
        quiz=clamp_score(m.quiz_average_score or 0),
        ppe=ppe,
        hazard=clamp_score(m.hazards_reported * 10),
        engagement=clamp_score(m.engagement_minutes * 5),
    )


def compute_compliance_score(m: DailyMetrics) -> int:
    s = sub_scores(m)
    weighted = (
        WEIGHT_CHECKLIST * s.checklist
        + WEIGHT_VIDEO * s.video
        + WEIGHT_QUIZ * s.quiz
        + WEIGHT_PPE * s.ppe
        + WEIGHT_HAZARD * s.hazard
        + WEIGHT_ENGAGEMENT * s.engagement
    )
    return int(clamp_score(round_half_up(weighted)))


def classify_risk(score: int) -> RiskLevel:
    if score < HIGH_RISK_BELOW:
        return RiskLevel.high
    if score < MEDIUM_RISK_BELOW:
        return RiskLevel.medium
    return RiskLevel.low


def is_compliant(score: int) -> bool:
    return score >= COMPLIANT_SCORE
