"""
BehaviorAlert — reviewer-facing alerts raised by the compliance engine.

At most one *open* alert per (worker_id, snapshot_date, alert_type). The
engine checks before inserting; the partial unique index below is the
storage-level backstop when two writers race. Alerts move open →
acknowledged and are never deleted.

alert_type values:
  "low_compliance"      — day's risk level reached high (score < 60)
  "ppe_non_compliance"  — a PPE confirmation was skipped
"""
import enum
from datetime import datetime, date
from sqlalchemy import (
    Date, DateTime, Enum, ForeignKey, Index, Integer, String, Text, func, text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class AlertType(str, enum.Enum):
    low_compliance = "low_compliance"
    ppe_non_compliance = "ppe_non_compliance"


class AlertSeverity(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"


class AlertStatus(str, enum.Enum):
    open = "open"
    acknowledged = "acknowledged"


class BehaviorAlert(Base):
    __tablename__ = "behavior_alerts"
    __table_args__ = (
        Index(
            "uq_behavior_alert_open",
            "worker_id", "snapshot_date", "alert_type",
            unique=True,
            postgresql_where=text("status = 'open'"),
            sqlite_where=text("status = 'open'"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    worker_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("workers.id"), nullable=False, index=True
    )
    snapshot_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    alert_type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    severity: Mapped[str] = mapped_column(
        Enum(AlertSeverity, name="alert_severity_enum"), nullable=False
    )
    message: Mapped[str] = mapped_column(String(256), nullable=False)
    alert_metadata: Mapped[str | None] = mapped_column(
        "alert_metadata", Text, nullable=True,
        comment="JSON-encoded context captured by the first trigger of the day",
    )
    status: Mapped[str] = mapped_column(
        Enum(AlertStatus, name="alert_status_enum"),
        nullable=False,
        default=AlertStatus.open,
        index=True,
    )
    acknowledged_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
