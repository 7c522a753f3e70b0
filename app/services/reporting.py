"""
Reporting folds over persisted compliance snapshots (read-only).

Public API
----------
get_personal_trend(db, worker_id, range_days, reference_date)   -> PersonalTrend
get_supervisor_overview(db, range_days, reference_date, now)    -> SupervisorOverview

Windows are `range_days` UTC calendar days ending on `reference_date`
(inclusive, default today). Worker names are joined in here explicitly; the
compliance engine itself never follows references.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.behavior_alert import AlertStatus, BehaviorAlert
from app.models.compliance_snapshot import DailyComplianceSnapshot, RiskLevel
from app.models.engagement_event import EngagementEvent, EventType
from app.models.worker import ELIGIBLE_ROLES, Worker
from app.services.alerts import list_alerts
from app.services.metrics import round_half_up
from app.services.workers import get_worker

TOP_WORKERS = 5
HEATMAP_WINDOW = timedelta(hours=24)
ZONE_HIGH_RISK_SKIPS = 2    # more than this → high
ZONE_MEDIUM_RISK_SKIPS = 0  # more than this → medium


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class TrendPoint:
    day: date
    compliance_score: int
    risk_level: str


@dataclass
class PersonalTrend:
    worker_id: int
    start: date
    end: date
    latest: Optional[DailyComplianceSnapshot]
    trend: list[TrendPoint]


@dataclass
class WorkerScore:
    worker_id: int
    name: Optional[str]
    email: Optional[str]
    role: Optional[str]
    day: date
    compliance_score: int
    risk_level: str
    streak_count: int


@dataclass
class DailyAverage:
    day: date
    average_score: int


@dataclass
class ZoneHeat:
    zone: str
    total_events: int
    ppe_incidents: int
    hazards_reported: int
    risk_level: str


@dataclass
class OverviewSummary:
    total_workers: int
    average_score: int
    high_risk_count: int
    low_risk_count: int
    inactive_workers: int


@dataclass
class SupervisorOverview:
    start: date
    end: date
    summary: OverviewSummary
    trend: list[DailyAverage] = field(default_factory=list)
    top_compliant_workers: list[WorkerScore] = field(default_factory=list)
    at_risk_workers: list[WorkerScore] = field(default_factory=list)
    heatmap: list[ZoneHeat] = field(default_factory=list)
    alerts: list[tuple[BehaviorAlert, Optional[Worker]]] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _today() -> date:
    return datetime.now(tz=timezone.utc).date()


def _ev(v) -> str:
    return v.value if hasattr(v, "value") else str(v)


def _window(range_days: Optional[int], reference_date: Optional[date]) -> tuple[date, date]:
    days = range_days or settings.DEFAULT_RANGE_DAYS
    end = reference_date or _today()
    return end - timedelta(days=days - 1), end


def _average(scores: list[int]) -> int:
    if not scores:
        return 0
    return int(round_half_up(sum(scores) / len(scores)))


def _worker_score(snapshot: DailyComplianceSnapshot, worker: Optional[Worker]) -> WorkerScore:
    return WorkerScore(
        worker_id=snapshot.worker_id,
        name=worker.name if worker else None,
        email=worker.email if worker else None,
        role=_ev(worker.role) if worker else None,
        day=snapshot.snapshot_date,
        compliance_score=snapshot.compliance_score or 0,
        risk_level=_ev(snapshot.risk_level),
        streak_count=snapshot.streak_count or 0,
    )


def _zone_risk(ppe_skips: int) -> str:
    if ppe_skips > ZONE_HIGH_RISK_SKIPS:
        return RiskLevel.high.value
    if ppe_skips > ZONE_MEDIUM_RISK_SKIPS:
        return RiskLevel.medium.value
    return RiskLevel.low.value


# ---------------------------------------------------------------------------
# Public: personal trend
# ---------------------------------------------------------------------------

def get_personal_trend(
    db: Session,
    worker_id: int,
    range_days: Optional[int] = None,
    reference_date: Optional[date] = None,
) -> PersonalTrend:
    get_worker(db, worker_id)

    start, end = _window(range_days, reference_date)
    snapshots = (
        db.query(DailyComplianceSnapshot)
        .filter(
            DailyComplianceSnapshot.worker_id == worker_id,
            DailyComplianceSnapshot.snapshot_date >= start,
            DailyComplianceSnapshot.snapshot_date <= end,
        )
        .order_by(DailyComplianceSnapshot.snapshot_date.asc())
        .all()
    )
    return PersonalTrend(
        worker_id=worker_id,
        start=start,
        end=end,
        latest=snapshots[-1] if snapshots else None,
        trend=[
            TrendPoint(
                day=s.snapshot_date,
                compliance_score=s.compliance_score,
                risk_level=_ev(s.risk_level),
            )
            for s in snapshots
        ],
    )


# ---------------------------------------------------------------------------
# Public: supervisor overview
# ---------------------------------------------------------------------------

def _zone_heatmap(db: Session, since: datetime, until: datetime) -> list[ZoneHeat]:
    rows = (
        db.query(
            EngagementEvent.zone,
            func.count(EngagementEvent.id),
            func.sum(case((EngagementEvent.event_type == EventType.ppe_skipped.value, 1), else_=0)),
            func.sum(case((EngagementEvent.event_type == EventType.hazard_reported.value, 1), else_=0)),
        )
        .filter(
            EngagementEvent.zone.isnot(None),
            EngagementEvent.occurred_at >= since,
            EngagementEvent.occurred_at <= until,
        )
        .group_by(EngagementEvent.zone)
        .order_by(EngagementEvent.zone.asc())
        .all()
    )
    return [
        ZoneHeat(
            zone=zone,
            total_events=int(events or 0),
            ppe_incidents=int(skips or 0),
            hazards_reported=int(hazards or 0),
            risk_level=_zone_risk(int(skips or 0)),
        )
        for zone, events, skips, hazards in rows
    ]


def get_supervisor_overview(
    db: Session,
    range_days: Optional[int] = None,
    reference_date: Optional[date] = None,
    now: Optional[datetime] = None,
) -> SupervisorOverview:
    """
    Cross-worker fold over the window. "Today" means `reference_date`.
    The zone heatmap covers the 24 hours before min(now, end of reference day).
    """
    now = now or datetime.now(tz=timezone.utc)
    now = now.astimezone(timezone.utc)
    start, end = _window(range_days, reference_date or now.date())

    rows = (
        db.query(DailyComplianceSnapshot, Worker)
        .outerjoin(Worker, Worker.id == DailyComplianceSnapshot.worker_id)
        .filter(
            DailyComplianceSnapshot.snapshot_date >= start,
            DailyComplianceSnapshot.snapshot_date <= end,
        )
        .order_by(DailyComplianceSnapshot.snapshot_date.asc(), DailyComplianceSnapshot.id.asc())
        .all()
    )
    total_workers: int = (
        db.query(func.count(Worker.id))
        .filter(Worker.role.in_(ELIGIBLE_ROLES))
        .scalar()
        or 0
    )

    today = [_worker_score(s, w) for s, w in rows if s.snapshot_date == end]

    by_day: dict[date, list[int]] = {}
    for s, _ in rows:
        by_day.setdefault(s.snapshot_date, []).append(s.compliance_score or 0)

    summary = OverviewSummary(
        total_workers=total_workers,
        average_score=_average([s.compliance_score or 0 for s, _ in rows]),
        high_risk_count=sum(1 for w in today if w.risk_level == RiskLevel.high.value),
        low_risk_count=sum(1 for w in today if w.risk_level == RiskLevel.low.value),
        inactive_workers=max(total_workers - len(today), 0),
    )

    end_of_day = datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc)
    as_of = min(now, end_of_day)

    return SupervisorOverview(
        start=start,
        end=end,
        summary=summary,
        trend=[DailyAverage(day=d, average_score=_average(scores)) for d, scores in sorted(by_day.items())],
        top_compliant_workers=sorted(today, key=lambda w: -w.compliance_score)[:TOP_WORKERS],
        at_risk_workers=sorted(
            (w for w in today if w.risk_level != RiskLevel.low.value),
            key=lambda w: w.compliance_score,
        )[:TOP_WORKERS],
        heatmap=_zone_heatmap(db, as_of - HEATMAP_WINDOW, as_of),
        alerts=list_alerts(db, AlertStatus.open, limit=settings.OVERVIEW_ALERT_LIMIT),
    )
