"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00.000000

workers, engagement_events, daily_compliance_snapshots, behavior_alerts.
Unique (worker_id, snapshot_date) on snapshots; partial unique index on
open alerts per (worker_id, snapshot_date, alert_type).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- ENUM types ---
    worker_role_enum = sa.Enum(
        "worker", "supervisor", "admin", "dgms_officer", name="worker_role_enum"
    )
    worker_role_enum.create(op.get_bind(), checkfirst=True)

    risk_level_enum = sa.Enum("low", "medium", "high", name="risk_level_enum")
    risk_level_enum.create(op.get_bind(), checkfirst=True)

    alert_severity_enum = sa.Enum("low", "medium", "high", name="alert_severity_enum")
    alert_severity_enum.create(op.get_bind(), checkfirst=True)

    alert_status_enum = sa.Enum("open", "acknowledged", name="alert_status_enum")
    alert_status_enum.create(op.get_bind(), checkfirst=True)

    # --- workers ---
    op.create_table(
        "workers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("email", sa.String(256), nullable=False),
        sa.Column("role", sa.Enum(
            "worker", "supervisor", "admin", "dgms_officer",
            name="worker_role_enum", create_type=False,
        ), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_workers_id", "workers", ["id"])
    op.create_index("ix_workers_email", "workers", ["email"], unique=True)

    # --- engagement_events ---
    op.create_table(
        "engagement_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("worker_id", sa.Integer(), sa.ForeignKey("workers.id"), nullable=False),
        sa.Column("event_type", sa.String(64), nullable=False),
        sa.Column("event_metadata", sa.Text(), nullable=True),
        sa.Column("zone", sa.String(128), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_engagement_events_id", "engagement_events", ["id"])
    op.create_index("ix_engagement_events_worker_id", "engagement_events", ["worker_id"])
    op.create_index("ix_engagement_events_event_type", "engagement_events", ["event_type"])
    op.create_index("ix_engagement_events_zone", "engagement_events", ["zone"])
    op.create_index("ix_engagement_events_occurred_at", "engagement_events", ["occurred_at"])

    # --- daily_compliance_snapshots ---
    op.create_table(
        "daily_compliance_snapshots",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("worker_id", sa.Integer(), sa.ForeignKey("workers.id"), nullable=False),
        sa.Column("snapshot_date", sa.Date(), nullable=False),
        sa.Column("metrics", sa.Text(), nullable=False),
        sa.Column("compliance_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("risk_level", sa.Enum(
            "low", "medium", "high", name="risk_level_enum", create_type=False,
        ), nullable=False),
        sa.Column("streak_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("streak_seeded", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_event_type", sa.String(64), nullable=True),
        sa.Column("last_event_metadata", sa.Text(), nullable=True),
        sa.Column("last_event_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("worker_id", "snapshot_date", name="uq_compliance_snapshot_worker_date"),
    )
    op.create_index("ix_daily_compliance_snapshots_id", "daily_compliance_snapshots", ["id"])
    op.create_index("ix_daily_compliance_snapshots_worker_id", "daily_compliance_snapshots", ["worker_id"])
    op.create_index("ix_daily_compliance_snapshots_snapshot_date", "daily_compliance_snapshots", ["snapshot_date"])

    # --- behavior_alerts ---
    op.create_table(
        "behavior_alerts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("worker_id", sa.Integer(), sa.ForeignKey("workers.id"), nullable=False),
        sa.Column("snapshot_date", sa.Date(), nullable=False),
        sa.Column("alert_type", sa.String(64), nullable=False),
        sa.Column("severity", sa.Enum(
            "low", "medium", "high", name="alert_severity_enum", create_type=False,
        ), nullable=False),
        sa.Column("message", sa.String(256), nullable=False),
        sa.Column("alert_metadata", sa.Text(), nullable=True),
        sa.Column("status", sa.Enum(
            "open", "acknowledged", name="alert_status_enum", create_type=False,
        ), nullable=False),
        sa.Column("acknowledged_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_behavior_alerts_id", "behavior_alerts", ["id"])
    op.create_index("ix_behavior_alerts_worker_id", "behavior_alerts", ["worker_id"])
    op.create_index("ix_behavior_alerts_snapshot_date", "behavior_alerts", ["snapshot_date"])
    op.create_index("ix_behavior_alerts_alert_type", "behavior_alerts", ["alert_type"])
    op.create_index("ix_behavior_alerts_status", "behavior_alerts", ["status"])
    op.create_index(
        "uq_behavior_alert_open",
        "behavior_alerts",
        ["worker_id", "snapshot_date", "alert_type"],
        unique=True,
        postgresql_where=sa.text("status = 'open'"),
        sqlite_where=sa.text("status = 'open'"),
    )


def downgrade() -> None:
    op.drop_index("uq_behavior_alert_open", table_name="behavior_alerts")
    op.drop_table("behavior_alerts")
    op.drop_table("daily_compliance_snapshots")
    op.drop_table("engagement_events")
    op.drop_table("workers")

    sa.Enum(name="alert_status_enum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="alert_severity_enum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="risk_level_enum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="worker_role_enum").drop(op.get_bind(), checkfirst=True)
