"""
Behavior & compliance router.

POST /behavior/events                    — log an engagement event and update the daily snapshot
GET  /behavior/events                    — engagement event log (paginated, newest first)
GET  /behavior/snapshots/me              — a worker's latest snapshot + trend
GET  /behavior/supervisor/overview       — cross-worker overview
GET  /behavior/alerts                    — alerts by status (default open), newest first
POST /behavior/alerts/{alert_id}/acknowledge
"""
from __future__ import annotations

import json
from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.base import get_db
from app.models.behavior_alert import BehaviorAlert
from app.models.compliance_snapshot import DailyComplianceSnapshot
from app.models.engagement_event import EngagementEvent, EventType
from app.models.worker import Worker
from app.schemas.behavior import (
    BehaviorAlertListResponse,
    BehaviorAlertResponse,
    ComplianceSnapshotResponse,
    DailyAverageOut,
    DailyMetricsOut,
    EngagementEventListResponse,
    EngagementEventOut,
    EngagementEventRequest,
    EngagementEventResponse,
    OverviewSummaryOut,
    PersonalTrendResponse,
    SupervisorOverviewResponse,
    TrendPointOut,
    WorkerScoreOut,
    ZoneHeatOut,
)
from app.schemas.common import ErrorResponse, WorkerRef
from app.services.alerts import acknowledge_alert, list_alerts, parse_alert_status
from app.services.engagement import list_engagement_events, log_engagement_event
from app.services.reporting import WorkerScore, get_personal_trend, get_supervisor_overview
from app.services.snapshot_store import snapshot_metrics

router = APIRouter(prefix="/behavior", tags=["behavior"])


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def _ev(v) -> str:
    """Extract bare string value from a str-enum or plain str."""
    return v.value if hasattr(v, "value") else str(v)


def _parse_metadata(raw: Optional[str]) -> Optional[dict[str, Any]]:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (ValueError, TypeError):
        return None


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def _snapshot_to_response(s: DailyComplianceSnapshot) -> ComplianceSnapshotResponse:
    return ComplianceSnapshotResponse(
        id=s.id,
        worker_id=s.worker_id,
        date=str(s.snapshot_date),
        metrics=DailyMetricsOut(**snapshot_metrics(s).to_dict()),
        compliance_score=s.compliance_score,
        risk_level=_ev(s.risk_level),
        streak_count=s.streak_count,
        streak_seeded=s.streak_seeded,
        last_event_type=s.last_event_type,
        last_event_metadata=_parse_metadata(s.last_event_metadata),
        last_event_at=_iso(s.last_event_at),
    )


def _worker_ref(worker_id: int, worker: Optional[Worker]) -> WorkerRef:
    if worker is None:
        return WorkerRef(id=worker_id)
    return WorkerRef(id=worker.id, name=worker.name, email=worker.email, role=_ev(worker.role))


def _alert_to_response(alert: BehaviorAlert, worker: Optional[Worker] = None) -> BehaviorAlertResponse:
    return BehaviorAlertResponse(
        id=alert.id,
        worker_id=alert.worker_id,
        worker=_worker_ref(alert.worker_id, worker) if worker is not None else None,
        date=str(alert.snapshot_date),
        type=alert.alert_type,
        severity=_ev(alert.severity),
        message=alert.message,
        metadata=_parse_metadata(alert.alert_metadata),
        status=_ev(alert.status),
        acknowledged_at=_iso(alert.acknowledged_at),
        created_at=_iso(alert.created_at) or "",
    )


def _event_to_response(ev: EngagementEvent) -> EngagementEventOut:
    return EngagementEventOut(
        id=ev.id,
        worker_id=ev.worker_id,
        type=ev.event_type,
        metadata=_parse_metadata(ev.event_metadata),
        zone=ev.zone,
        occurred_at=_iso(ev.occurred_at) or "",
        created_at=_iso(ev.created_at) or "",
    )


def _worker_score_to_response(w: WorkerScore) -> WorkerScoreOut:
    return WorkerScoreOut(
        worker=WorkerRef(id=w.worker_id, name=w.name, email=w.email, role=w.role),
        date=str(w.day),
        compliance_score=w.compliance_score,
        risk_level=w.risk_level,
        streak_count=w.streak_count,
    )


def _range_query():
    return Query(
        default=None,
        alias="range",
        ge=1,
        le=settings.MAX_RANGE_DAYS,
        description=f"Window size in days, ending on reference_date. Default {settings.DEFAULT_RANGE_DAYS}.",
    )


# ---------------------------------------------------------------------------
# POST /behavior/events
# ---------------------------------------------------------------------------

@router.post(
    "/events",
    response_model=EngagementEventResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Log an engagement event",
    responses={
        400: {"model": ErrorResponse, "description": "Unsupported event type."},
        404: {"model": ErrorResponse, "description": "Worker not found."},
        500: {"model": ErrorResponse, "description": "Snapshot could not be persisted."},
    },
)
def log_event(payload: EngagementEventRequest, db: Session = Depends(get_db)):
    """
    Record a worker engagement event, then fold it into the worker's daily
    compliance snapshot for the event's UTC day.

    The snapshot's score, risk level and streak are recomputed, and alerts are
    opened when needed (`low_compliance` on high risk, `ppe_non_compliance` on
    a skipped PPE check), at most one open alert per worker/day/type.
    """
    result = log_engagement_event(
        db,
        worker_id=payload.worker_id,
        event_type=payload.type,
        metadata=payload.metadata,
        occurred_at=payload.occurred_at,
    )
    return EngagementEventResponse(
        event_id=result.event.id,
        snapshot=_snapshot_to_response(result.engine.snapshot),
        alerts_created=result.engine.alerts_created,
    )


# ---------------------------------------------------------------------------
# GET /behavior/events
# ---------------------------------------------------------------------------

@router.get(
    "/events",
    response_model=EngagementEventListResponse,
    summary="List engagement events (newest first)",
)
def list_events(
    worker_id: Optional[int] = Query(default=None, ge=1, description="Filter by worker."),
    event_type: Optional[EventType] = Query(default=None, description="Filter by type."),
    limit: int = Query(default=50, ge=1, le=200, description="Page size."),
    offset: int = Query(default=0, ge=0, description="Skip N items."),
    db: Session = Depends(get_db),
):
    """Audit view over the append-only engagement event log."""
    total, items = list_engagement_events(
        db,
        worker_id=worker_id,
        event_type=event_type.value if event_type else None,
        limit=limit,
        offset=offset,
    )
    return EngagementEventListResponse(
        total=total,
        items=[_event_to_response(ev) for ev in items],
    )


# ---------------------------------------------------------------------------
# GET /behavior/snapshots/me
# ---------------------------------------------------------------------------

@router.get(
    "/snapshots/me",
    response_model=PersonalTrendResponse,
    summary="Latest compliance snapshot and trend for one worker",
    responses={404: {"model": ErrorResponse, "description": "Worker not found."}},
)
def my_snapshot(
    worker_id: int = Query(ge=1, description="Worker whose snapshots to return."),
    range_days: Optional[int] = _range_query(),
    reference_date: Optional[date] = Query(
        default=None,
        description="Last day (inclusive) of the window. Defaults to today (UTC).",
        examples=["2026-02-21"],
    ),
    db: Session = Depends(get_db),
):
    """Snapshots in the window sorted by date ascending, plus the most recent one as `latest`."""
    result = get_personal_trend(
        db, worker_id=worker_id, range_days=range_days, reference_date=reference_date
    )
    return PersonalTrendResponse(
        worker_id=result.worker_id,
        start=str(result.start),
        end=str(result.end),
        latest=_snapshot_to_response(result.latest) if result.latest else None,
        trend=[
            TrendPointOut(
                date=str(p.day),
                compliance_score=p.compliance_score,
                risk_level=p.risk_level,
            )
            for p in result.trend
        ],
    )


# ---------------------------------------------------------------------------
# GET /behavior/supervisor/overview
# ---------------------------------------------------------------------------

@router.get(
    "/supervisor/overview",
    response_model=SupervisorOverviewResponse,
    summary="Cross-worker compliance overview",
)
def supervisor_overview(
    range_days: Optional[int] = _range_query(),
    reference_date: Optional[date] = Query(
        default=None,
        description="Day treated as 'today'. Defaults to today (UTC).",
        examples=["2026-02-21"],
    ),
    db: Session = Depends(get_db),
):
    """
    ### Contents
    | Field | Meaning |
    |---|---|
    | `summary` | eligible workers, window average score, today's high/low risk counts, inactive workers |
    | `trend` | average score per day |
    | `top_compliant_workers` | today's 5 highest scores |
    | `at_risk_workers` | today's 5 lowest non-low-risk scores |
    | `heatmap` | per-zone events, PPE skips and hazards over the last 24 h |
    | `alerts` | most recent open alerts |
    """
    result = get_supervisor_overview(db, range_days=range_days, reference_date=reference_date)
    return SupervisorOverviewResponse(
        start=str(result.start),
        end=str(result.end),
        summary=OverviewSummaryOut(**vars(result.summary)),
        trend=[DailyAverageOut(date=str(d.day), average_score=d.average_score) for d in result.trend],
        top_compliant_workers=[_worker_score_to_response(w) for w in result.top_compliant_workers],
        at_risk_workers=[_worker_score_to_response(w) for w in result.at_risk_workers],
        heatmap=[ZoneHeatOut(**vars(z)) for z in result.heatmap],
        alerts=[_alert_to_response(a, w) for a, w in result.alerts],
    )


# ---------------------------------------------------------------------------
# GET /behavior/alerts
# ---------------------------------------------------------------------------

@router.get(
    "/alerts",
    response_model=BehaviorAlertListResponse,
    summary="List behavior alerts (newest first)",
    responses={400: {"model": ErrorResponse, "description": "Invalid status value."}},
)
def alerts(
    alert_status: Optional[str] = Query(
        default=None,
        alias="status",
        description='"open" (default) or "acknowledged".',
    ),
    db: Session = Depends(get_db),
):
    rows = list_alerts(db, parse_alert_status(alert_status))
    return BehaviorAlertListResponse(
        total=len(rows),
        items=[_alert_to_response(a, w) for a, w in rows],
    )


# ---------------------------------------------------------------------------
# POST /behavior/alerts/{alert_id}/acknowledge
# ---------------------------------------------------------------------------

@router.post(
    "/alerts/{alert_id}/acknowledge",
    response_model=BehaviorAlertResponse,
    summary="Acknowledge an alert",
    responses={404: {"model": ErrorResponse, "description": "Alert not found."}},
)
def acknowledge(alert_id: int, db: Session = Depends(get_db)):
    """Move an alert from open to acknowledged and stamp `acknowledged_at`."""
    alert = acknowledge_alert(db, alert_id)
    return _alert_to_response(alert, db.get(Worker, alert.worker_id))
