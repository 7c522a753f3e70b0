"""
EngagementEvent — raw worker actions, the append-only event log.

Every accepted event is committed here before the compliance engine folds
it into the day's snapshot. Rows are never updated or deleted.

event_type values: see EventType below.
metadata: JSON-encoded dict stored as Text. The optional `zone` key is
copied into its own indexed column for the supervisor heatmap.
"""
import enum
from datetime import datetime
from sqlalchemy import Integer, String, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class EventType(str, enum.Enum):
    app_login = "app_login"
    app_logout = "app_logout"
    checklist_viewed = "checklist_viewed"
    checklist_item_completed = "checklist_item_completed"
    checklist_completed = "checklist_completed"
    ppe_confirmed = "ppe_confirmed"
    ppe_skipped = "ppe_skipped"
    video_started = "video_started"
    video_progress = "video_progress"
    video_completed = "video_completed"
    hazard_reported = "hazard_reported"
    instruction_acknowledged = "instruction_acknowledged"
    quiz_completed = "quiz_completed"
    nudge_acknowledged = "nudge_acknowledged"


SUPPORTED_EVENT_TYPES = frozenset(t.value for t in EventType)

# Stored when an event names a zone key with no usable value.
UNSPECIFIED_ZONE = "Unspecified"


class EngagementEvent(Base):
    __tablename__ = "engagement_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    worker_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("workers.id"), nullable=False, index=True
    )
    event_type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    event_metadata: Mapped[str | None] = mapped_column(
        "event_metadata", Text, nullable=True,
        comment="JSON-encoded dict supplied by the producer",
    )
    zone: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
