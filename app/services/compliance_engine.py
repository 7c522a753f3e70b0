"""
Compliance engine — folds one engagement event into the worker's daily snapshot.

Pipeline (one unit per event, serialised per (worker, day))
-----------------------------------------------------------
  1. load or create today's snapshot          (snapshot_store)
  2. apply the event to the day's metrics     (metrics.apply_event)
  3. score + classify risk                    (scoring)
  4. update the streak, reading yesterday     (streak)
  5. write the merged snapshot                (snapshot_store.save_snapshot)
  6. raise alerts                             (alerts.ensure_open_alert)

Alert rules
-----------
  LOW_COMPLIANCE      risk level high (score < 60)  → severity high
  PPE_NON_COMPLIANCE  event is ppe_skipped           → severity medium

Steps 1–6 share one transaction committed once at the end. If anything
fails the whole unit is rolled back, so readers never see a score or
streak from a half-applied event. A unique-constraint race on a brand-new
snapshot row is retried (settings.SNAPSHOT_WRITE_RETRIES) from step 1.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Optional

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import SnapshotWriteError
from app.models.behavior_alert import AlertSeverity, AlertType
from app.models.compliance_snapshot import DailyComplianceSnapshot, RiskLevel
from app.models.engagement_event import EventType
from app.services.alerts import ensure_open_alert
from app.services.metrics import DailyMetrics, apply_event
from app.services.scoring import classify_risk, compute_compliance_score
from app.services.snapshot_store import (
    date_key,
    get_or_create_snapshot,
    get_previous_snapshot,
    key_lock,
    save_snapshot,
    snapshot_metrics,
)
from app.services.streak import PriorDay, compute_streak

logger = structlog.get_logger(__name__)


LOW_COMPLIANCE_MESSAGE = "Compliance score dropped below 60."
PPE_NON_COMPLIANCE_MESSAGE = "Repeated PPE confirmations were skipped."


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------

@dataclass
class EngineResult:
    """What the engine did for one event."""
    snapshot: DailyComplianceSnapshot
    metrics: DailyMetrics
    alerts_created: list[str] = field(default_factory=list)  # alert_type strings
    alerts_skipped: list[str] = field(default_factory=list)  # already open today


# ---------------------------------------------------------------------------
# Alert rules
# ---------------------------------------------------------------------------

def _raise_alert(
    db: Session,
    snapshot: DailyComplianceSnapshot,
    alert_type: AlertType,
    severity: AlertSeverity,
    message: str,
    meta: dict[str, Any],
    result: EngineResult,
) -> None:
    _, created = ensure_open_alert(
        db,
        worker_id=snapshot.worker_id,
        day=snapshot.snapshot_date,
        alert_type=alert_type,
        severity=severity,
        message=message,
        metadata=meta,
    )
    if created:
        result.alerts_created.append(alert_type.value)
    else:
        result.alerts_skipped.append(alert_type.value)


def _rule_low_compliance(
    db: Session,
    risk_level: RiskLevel,
    score: int,
    result: EngineResult,
) -> None:
    if risk_level != RiskLevel.high:
        return
    _raise_alert(
        db, result.snapshot,
        AlertType.low_compliance, AlertSeverity.high,
        LOW_COMPLIANCE_MESSAGE,
        {"complianceScore": score},
        result,
    )


def _rule_ppe_non_compliance(
    db: Session,
    event_type: str,
    result: EngineResult,
) -> None:
    if event_type != EventType.ppe_skipped:
        return
    _raise_alert(
        db, result.snapshot,
        AlertType.ppe_non_compliance, AlertSeverity.medium,
        PPE_NON_COMPLIANCE_MESSAGE,
        {"totalSkipped": result.metrics.ppe_checks_failed},
        result,
    )


# ---------------------------------------------------------------------------
# Core: one attempt, flush only
# ---------------------------------------------------------------------------

def _fold_event(
    db: Session,
    worker_id: int,
    day: date,
    event_type: str,
    metadata: dict[str, Any],
    occurred_at: datetime,
) -> EngineResult:
    snapshot = get_or_create_snapshot(db, worker_id, day)

    metrics = apply_event(snapshot_metrics(snapshot), event_type, metadata)
    score = compute_compliance_score(metrics)
    risk_level = classify_risk(score)

    def _load_previous() -> Optional[PriorDay]:
        previous = get_previous_snapshot(db, worker_id, day)
        if previous is None:
            return None
        return PriorDay(
            compliance_score=previous.compliance_score or 0,
            streak_count=previous.streak_count or 0,
        )

    streak = compute_streak(
        score,
        streak_seeded=bool(snapshot.streak_seeded),
        streak_count=snapshot.streak_count or 0,
        load_previous=_load_previous,
    )

    save_snapshot(
        db, snapshot,
        metrics=metrics,
        compliance_score=score,
        risk_level=risk_level,
        streak_count=streak.streak_count,
        streak_seeded=streak.streak_seeded,
        event_type=event_type,
        event_metadata=metadata,
        occurred_at=occurred_at,
    )

    result = EngineResult(snapshot=snapshot, metrics=metrics)
    _rule_low_compliance(db, risk_level, score, result)
    _rule_ppe_non_compliance(db, event_type, result)
    return result


# ---------------------------------------------------------------------------
# Public: main entry point
# ---------------------------------------------------------------------------

def update_daily_snapshot(
    db: Session,
    worker_id: int,
    event_type: str,
    metadata: Optional[dict[str, Any]] = None,
    occurred_at: Optional[datetime] = None,
) -> EngineResult:
    """
    Apply one event to the worker's snapshot for the event's UTC day and
    commit. Raises SnapshotWriteError (nothing applied) on persistence failure.
    """
    occurred_at = occurred_at or datetime.now(tz=timezone.utc)
    metadata = metadata or {}
    event_type = getattr(event_type, "value", event_type)
    day = date_key(occurred_at)
    attempts = 1 + settings.SNAPSHOT_WRITE_RETRIES

    with key_lock(worker_id, day):
        for attempt in range(1, attempts + 1):
            try:
                result = _fold_event(db, worker_id, day, event_type, metadata, occurred_at)
                db.commit()
            except IntegrityError as exc:
                # Another process created the same snapshot (or alert) first.
                db.rollback()
                logger.warning(
                    "snapshot_write_conflict",
                    worker_id=worker_id, day=str(day), attempt=attempt,
                )
                if attempt == attempts:
                    raise SnapshotWriteError(worker_id, day, reason="conflict") from exc
                continue
            except SQLAlchemyError as exc:
                db.rollback()
                logger.error(
                    "snapshot_write_failed",
                    worker_id=worker_id, day=str(day), error=str(exc),
                )
                raise SnapshotWriteError(worker_id, day) from exc
            break

    db.refresh(result.snapshot)
    logger.info(
        "compliance_snapshot_updated",
        worker_id=worker_id,
        day=str(day),
        event_type=event_type,
        compliance_score=result.snapshot.compliance_score,
        risk_level=RiskLevel(result.snapshot.risk_level).value,
        streak_count=result.snapshot.streak_count,
        alerts_created=result.alerts_created,
    )
    return result
