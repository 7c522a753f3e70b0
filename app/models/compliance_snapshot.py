"""
DailyComplianceSnapshot — one row per (worker, UTC day).

Created lazily by the compliance engine on the worker's first event of the
day and rewritten on every later event of that day. Never deleted.

metrics: JSON-encoded DailyMetrics (see app/services/metrics.py).
streak_seeded: True once today's streak has been derived from yesterday,
so further compliant events the same day do not increment it again.
"""
import enum
from datetime import datetime, date
from sqlalchemy import (
    Boolean, Date, DateTime, Enum, ForeignKey, Integer, String, Text,
    UniqueConstraint, func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class RiskLevel(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"


class DailyComplianceSnapshot(Base):
    __tablename__ = "daily_compliance_snapshots"
    __table_args__ = (
        UniqueConstraint("worker_id", "snapshot_date", name="uq_compliance_snapshot_worker_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    worker_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("workers.id"), nullable=False, index=True
    )
    snapshot_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    metrics: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    compliance_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    risk_level: Mapped[str] = mapped_column(
        Enum(RiskLevel, name="risk_level_enum"),
        nullable=False,
        default=RiskLevel.high,
    )
    streak_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    streak_seeded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_event_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    last_event_metadata: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_event_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
