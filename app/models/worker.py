from datetime import datetime
from sqlalchemy import Integer, String, DateTime, Enum, func
from sqlalchemy.orm import Mapped, mapped_column
import enum

from app.db.base import Base


class WorkerRole(str, enum.Enum):
    worker = "worker"
    supervisor = "supervisor"
    admin = "admin"
    dgms_officer = "dgms_officer"


# Roles counted as the eligible workforce in the supervisor overview
ELIGIBLE_ROLES = (WorkerRole.worker, WorkerRole.supervisor)


class Worker(Base):
    """Directory entry for a person whose engagement is tracked."""

    __tablename__ = "workers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(256), nullable=False, unique=True, index=True)
    role: Mapped[str] = mapped_column(
        Enum(WorkerRole, name="worker_role_enum"),
        nullable=False,
        default=WorkerRole.worker,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
