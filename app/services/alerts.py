"""
Behavior alerts — deduplicated creation, listing and acknowledgement.

Idempotency
-----------
At most one *open* alert per (worker_id, snapshot_date, alert_type). Before
inserting, `ensure_open_alert` looks for an open one and returns it
unchanged if found (first writer of the day wins; later metadata is not
merged). The engine calls it while holding the snapshot key lock and inside
the snapshot transaction; the partial unique index `uq_behavior_alert_open`
catches any writer that bypasses both.
"""
from __future__ import annotations

import json
from datetime import date, datetime, timezone
from typing import Any, Optional

import structlog
from sqlalchemy.orm import Session

from app.core.errors import AlertNotFoundError, InvalidAlertStatusError
from app.models.behavior_alert import AlertSeverity, AlertStatus, AlertType, BehaviorAlert
from app.models.worker import Worker

logger = structlog.get_logger(__name__)


def _find_open_alert(
    db: Session, worker_id: int, day: date, alert_type: str
) -> Optional[BehaviorAlert]:
    return (
        db.query(BehaviorAlert)
        .filter(
            BehaviorAlert.worker_id == worker_id,
            BehaviorAlert.snapshot_date == day,
            BehaviorAlert.alert_type == alert_type,
            BehaviorAlert.status == AlertStatus.open,
        )
        .first()
    )


def ensure_open_alert(
    db: Session,
    worker_id: int,
    day: date,
    alert_type: AlertType | str,
    severity: AlertSeverity,
    message: str,
    metadata: Optional[dict[str, Any]] = None,
) -> tuple[BehaviorAlert, bool]:
    """
    Return (alert, created). Flushes a new alert if none is open for the key;
    never commits.
    """
    alert_type = AlertType(alert_type).value
    existing = _find_open_alert(db, worker_id, day, alert_type)
    if existing is not None:
        return existing, False

    alert = BehaviorAlert(
        worker_id=worker_id,
        snapshot_date=day,
        alert_type=alert_type,
        severity=severity,
        message=message,
        alert_metadata=json.dumps(metadata or {}, default=str),
        status=AlertStatus.open,
    )
    db.add(alert)
    db.flush()
    logger.info(
        "behavior_alert_opened",
        alert_id=alert.id,
        worker_id=worker_id,
        day=str(day),
        alert_type=alert_type,
        severity=AlertSeverity(severity).value,
    )
    return alert, True


def parse_alert_status(value: Optional[str]) -> AlertStatus:
    if value is None:
        return AlertStatus.open
    try:
        return AlertStatus(value)
    except ValueError:
        raise InvalidAlertStatusError(value, [s.value for s in AlertStatus]) from None


def list_alerts(
    db: Session,
    status: AlertStatus = AlertStatus.open,
    limit: Optional[int] = None,
) -> list[tuple[BehaviorAlert, Optional[Worker]]]:
    """Alerts with the given status, newest first, each joined to its worker."""
    q = (
        db.query(BehaviorAlert, Worker)
        .outerjoin(Worker, Worker.id == BehaviorAlert.worker_id)
        .filter(BehaviorAlert.status == status)
        .order_by(BehaviorAlert.created_at.desc(), BehaviorAlert.id.desc())
    )
    if limit is not None:
        q = q.limit(limit)
    return [(alert, worker) for alert, worker in q.all()]


def acknowledge_alert(db: Session, alert_id: int) -> BehaviorAlert:
    """
    Move an alert to acknowledged and stamp the time. Already-acknowledged
    alerts are returned untouched. Raises AlertNotFoundError.
    """
    alert = db.get(BehaviorAlert, alert_id)
    if alert is None:
        raise AlertNotFoundError(alert_id)
    if alert.status == AlertStatus.acknowledged:
        return alert

    alert.status = AlertStatus.acknowledged
    alert.acknowledged_at = datetime.now(tz=timezone.utc)
    db.commit()
    db.refresh(alert)
    logger.info("behavior_alert_acknowledged", alert_id=alert.id, worker_id=alert.worker_id)
    return alert
