"""
Engagement event service: validates, logs and aggregates worker events.

Public API
----------
log_engagement_event(db, worker_id, event_type, metadata, occurred_at) → IngestResult
list_engagement_events(db, worker_id, event_type, limit, offset)        → (total, page)

The raw event is committed to `engagement_events` *before* the compliance
engine runs, so an aggregation failure never loses the audit record.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import StoreError, UnsupportedEventTypeError
from app.models.engagement_event import (
    EngagementEvent,
    EventType,
    SUPPORTED_EVENT_TYPES,
    UNSPECIFIED_ZONE,
)
from app.services.compliance_engine import EngineResult, update_daily_snapshot
from app.services.workers import get_worker

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class IngestResult:
    """The logged event plus what the engine did with it."""
    event: EngagementEvent
    engine: EngineResult


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """ISO-8601 string (a trailing Z is accepted) → datetime, else None."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None


def resolve_occurred_at(
    occurred_at: Optional[datetime], metadata: dict[str, Any]
) -> datetime:
    """Explicit timestamp, else metadata["occurredAt"], else now (UTC)."""
    moment = occurred_at or _parse_timestamp(metadata.get("occurredAt"))
    if moment is None:
        return datetime.now(tz=timezone.utc)
    return _as_utc(moment)


def _zone(metadata: dict[str, Any]) -> Optional[str]:
    """No zone key → NULL (left out of the heatmap); a null or blank zone → UNSPECIFIED_ZONE."""
    if "zone" not in metadata:
        return None
    zone = metadata["zone"]
    zone = str(zone).strip() if zone is not None else ""
    return zone[:128] or UNSPECIFIED_ZONE


# ---------------------------------------------------------------------------
# Public: ingest
# ---------------------------------------------------------------------------

def log_engagement_event(
    db: Session,
    worker_id: int,
    event_type: str,
    metadata: Optional[dict[str, Any]] = None,
    occurred_at: Optional[datetime] = None,
) -> IngestResult:
    """
    Validate → commit the raw event → fold it into the daily snapshot.

    Raises UnsupportedEventTypeError / WorkerNotFoundError before anything is
    written, StoreError if the event itself cannot be stored, and
    SnapshotWriteError if aggregation fails after the event was logged.
    """
    if event_type not in SUPPORTED_EVENT_TYPES:
        raise UnsupportedEventTypeError(event_type, SUPPORTED_EVENT_TYPES)

    event_type = EventType(event_type).value
    get_worker(db, worker_id)

    metadata = dict(metadata or {})
    moment = resolve_occurred_at(occurred_at, metadata)

    event = EngagementEvent(
        worker_id=worker_id,
        event_type=event_type,
        event_metadata=json.dumps(metadata, default=str),
        zone=_zone(metadata),
        occurred_at=moment,
    )
    try:
        db.add(event)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("engagement_event_write_failed", worker_id=worker_id, error=str(exc))
        raise StoreError(
            "Could not record engagement event.",
            details={"worker_id": worker_id, "type": event_type},
        ) from exc
    db.refresh(event)

    logger.info(
        "engagement_event_logged",
        event_id=event.id,
        worker_id=worker_id,
        event_type=event_type,
        zone=event.zone,
    )

    engine = update_daily_snapshot(
        db,
        worker_id=worker_id,
        event_type=event_type,
        metadata=metadata,
        occurred_at=moment,
    )
    return IngestResult(event=event, engine=engine)


# ---------------------------------------------------------------------------
# Public: audit queries
# ---------------------------------------------------------------------------

def list_engagement_events(
    db: Session,
    worker_id: Optional[int] = None,
    event_type: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[int, list[EngagementEvent]]:
    """Return (total, page) of engagement events ordered by occurred_at desc."""
    q = db.query(EngagementEvent)
    if worker_id is not None:
        q = q.filter(EngagementEvent.worker_id == worker_id)
    if event_type:
        q = q.filter(EngagementEvent.event_type == event_type)
    total = q.count()
    items = (
        q.order_by(EngagementEvent.occurred_at.desc(), EngagementEvent.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return total, items
