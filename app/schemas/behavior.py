"""
Behavior & compliance schemas.

POST /behavior/events                      → EngagementEventRequest → EngagementEventResponse
GET  /behavior/events                      → EngagementEventListResponse
GET  /behavior/snapshots/me                → PersonalTrendResponse
GET  /behavior/supervisor/overview         → SupervisorOverviewResponse
GET  /behavior/alerts                      → BehaviorAlertListResponse
POST /behavior/alerts/{id}/acknowledge     → BehaviorAlertResponse
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import WorkerRef


# ---------------------------------------------------------------------------
# Engagement events
# ---------------------------------------------------------------------------

class EngagementEventRequest(BaseModel):
    """A single worker engagement event."""
    worker_id: int = Field(gt=0, description="Worker the event belongs to.")
    type: str = Field(
        min_length=1,
        description="One of the supported engagement event types.",
        examples=["ppe_confirmed", "quiz_completed"],
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description=(
            "Open map. Recognised keys: totalItems, completed, deltaSeconds, "
            "durationSeconds, score, zone, occurredAt."
        ),
        examples=[{"score": 80}, {"zone": "Pit 3"}],
    )
    occurred_at: Optional[datetime] = Field(
        default=None,
        description="When the action happened. Defaults to metadata.occurredAt, then now (UTC).",
    )


class EngagementEventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    worker_id: int
    type: str
    metadata: Optional[dict[str, Any]] = None
    zone: Optional[str] = None
    occurred_at: str
    created_at: str


class EngagementEventListResponse(BaseModel):
    total: int
    items: list[EngagementEventOut]


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------

class DailyMetricsOut(BaseModel):
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


class ComplianceSnapshotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    worker_id: int
    date: str = Field(description="UTC calendar day (YYYY-MM-DD).")
    metrics: DailyMetricsOut
    compliance_score: int = Field(ge=0, le=100)
    risk_level: str = Field(description='"low" | "medium" | "high"')
    streak_count: int = Field(ge=0)
    streak_seeded: bool
    last_event_type: Optional[str] = None
    last_event_metadata: Optional[dict[str, Any]] = None
    last_event_at: Optional[str] = None


class EngagementEventResponse(BaseModel):
    """Result of logging one event."""
    event_id: int
    snapshot: ComplianceSnapshotResponse
    alerts_created: list[str] = Field(description="Alert types opened by this event.")


class TrendPointOut(BaseModel):
    date: str
    compliance_score: int
    risk_level: str


class PersonalTrendResponse(BaseModel):
    worker_id: int
    start: str
    end: str
    latest: Optional[ComplianceSnapshotResponse] = None
    trend: list[TrendPointOut]


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------

class BehaviorAlertResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    worker_id: int
    worker: Optional[WorkerRef] = None
    date: str
    type: str = Field(description='"low_compliance" | "ppe_non_compliance"')
    severity: str
    message: str
    metadata: Optional[dict[str, Any]] = None
    status: str = Field(description='"open" | "acknowledged"')
    acknowledged_at: Optional[str] = None
    created_at: str


class BehaviorAlertListResponse(BaseModel):
    total: int
    items: list[BehaviorAlertResponse]


# ---------------------------------------------------------------------------
# Supervisor overview
# ---------------------------------------------------------------------------

class OverviewSummaryOut(BaseModel):
    total_workers: int
    average_score: int
    high_risk_count: int
    low_risk_count: int
    inactive_workers: int


class DailyAverageOut(BaseModel):
    date: str
    average_score: int


class WorkerScoreOut(BaseModel):
    worker: WorkerRef
    date: str
    compliance_score: int
    risk_level: str
    streak_count: int


class ZoneHeatOut(BaseModel):
    zone: str
    total_events: int
    ppe_incidents: int
    hazards_reported: int
    risk_level: str


class SupervisorOverviewResponse(BaseModel):
    start: str
    end: str
    summary: OverviewSummaryOut
    trend: list[DailyAverageOut]
    top_compliant_workers: list[WorkerScoreOut]
    at_risk_workers: list[WorkerScoreOut]
    heatmap: list[ZoneHeatOut]
    alerts: list[BehaviorAlertResponse]
