"""
Metrics accumulator — folds one engagement event into a day's metrics.

Pure: no DB, no clock. `apply_event` never mutates its input; it returns a
new DailyMetrics with the event applied and the checklist completion rate
recomputed.

Recognised metadata keys (camelCase, as sent by the mobile client):
  totalItems       checklist_viewed, checklist_item_completed
  completed        checklist_item_completed
  deltaSeconds     video_progress
  durationSeconds  video_completed
  score            quiz_completed

Event types without a rule (app_logout, or anything newer than this
service) leave the metrics unchanged apart from the rate recompute.
"""
from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass, fields, replace
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Mapping, Optional

from app.models.engagement_event import EventType


@dataclass(frozen=True)
class DailyMetrics:
    login_count: int = 0
    checklists_completed: int = 0
    checklist_items_completed: int = 0
    total_checklist_items: int = 0
    checklist_completion_rate: int = 0
    videos_started: int = 0
    videos_completed: int = 0
    video_milestones: int = 0
    video_watch_seconds: float = 0
    hazards_reported: int = 0
    acknowledgements: int = 0
    ppe_checks_passed: int = 0
    ppe_checks_failed: int = 0
    quiz_attempts: int = 0
    quiz_average_score: float = 0
    engagement_minutes: float = 0
    nudges_acknowledged: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "DailyMetrics":
        """Build from stored data; unknown keys are dropped, missing keys are zero."""
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known and v is not None})

    @classmethod
    def from_json(cls, raw: Optional[str]) -> "DailyMetrics":
        if not raw:
            return cls()
        return cls.from_dict(json.loads(raw))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def round_half_up(value: float, places: int = 0) -> float:
    """Round like a person would (2.5 → 3), not banker's rounding."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def _number(value: Any) -> float:
    """Lenient numeric coercion for producer metadata. Garbage reads as 0."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        result = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    # "inf", "nan" and "1e999" all parse
    return result if math.isfinite(result) else 0


def _count(value: Any) -> int:
    return max(0, int(_number(value)))


def _completion_rate(m: DailyMetrics) -> int:
    if m.total_checklist_items > 0:
        rate = int(round_half_up(m.checklist_items_completed / m.total_checklist_items * 100))
        return max(0, min(100, rate))
    if m.checklists_completed > 0:
        return 100
    return m.checklist_completion_rate


# ---------------------------------------------------------------------------
# Per-type rules
# ---------------------------------------------------------------------------

def _quiz_completed(m: DailyMetrics, meta: Mapping[str, Any]) -> DailyMetrics:
    score = max(0.0, min(100.0, _number(meta.get("score"))))
    attempts = m.quiz_attempts
    if attempts == 0:
        average = score
    else:
        average = (m.quiz_average_score * attempts + score) / (attempts + 1)
    return replace(
        m,
        quiz_average_score=round_half_up(average, 2),
        quiz_attempts=attempts + 1,
    )


def _video_time(m: DailyMetrics, seconds: float, **changes: Any) -> DailyMetrics:
    if seconds > 0:
        changes["video_watch_seconds"] = m.video_watch_seconds + seconds
        changes["engagement_minutes"] = m.engagement_minutes + seconds / 60
    return replace(m, **changes)


def _apply_rule(m: DailyMetrics, event_type: str, meta: Mapping[str, Any]) -> DailyMetrics:
    total_items = _count(meta.get("totalItems"))

    if event_type == EventType.app_login:
        return replace(m, login_count=m.login_count + 1)

    if event_type == EventType.checklist_viewed:
        return replace(m, total_checklist_items=total_items or m.total_checklist_items)

    if event_type == EventType.checklist_item_completed:
        return replace(
            m,
            checklist_items_completed=m.checklist_items_completed + (1 if meta.get("completed") else 0),
            total_checklist_items=total_items or m.total_checklist_items,
        )

    if event_type == EventType.checklist_completed:
        # A completed checklist counts as 100% regardless of partial item events.
        return replace(
            m,
            checklists_completed=m.checklists_completed + 1,
            checklist_items_completed=m.total_checklist_items or m.checklist_items_completed,
        )

    if event_type == EventType.ppe_confirmed:
        return replace(m, ppe_checks_passed=m.ppe_checks_passed + 1)

    if event_type == EventType.ppe_skipped:
        return replace(m, ppe_checks_failed=m.ppe_checks_failed + 1)

    if event_type == EventType.video_started:
        return replace(m, videos_started=m.videos_started + 1)

    if event_type == EventType.video_progress:
        return _video_time(
            m, _number(meta.get("deltaSeconds")),
            video_milestones=m.video_milestones + 1,
        )

    if event_type == EventType.video_completed:
        return _video_time(
            m, _number(meta.get("durationSeconds")),
            videos_completed=m.videos_completed + 1,
        )

    if event_type == EventType.hazard_reported:
        return replace(m, hazards_reported=m.hazards_reported + 1)

    if event_type == EventType.instruction_acknowledged:
        return replace(m, acknowledgements=m.acknowledgements + 1)

    if event_type == EventType.quiz_completed:
        return _quiz_completed(m, meta)

    if event_type == EventType.nudge_acknowledged:
        return replace(m, nudges_acknowledged=m.nudges_acknowledged + 1)

    return m


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def apply_event(
    metrics: DailyMetrics,
    event_type: str,
    metadata: Optional[Mapping[str, Any]] = None,
) -> DailyMetrics:
    """Return `metrics` with one event of `event_type` folded in."""
    updated = _apply_rule(metrics, event_type, metadata or {})
    return replace(updated, checklist_completion_rate=_completion_rate(updated))
