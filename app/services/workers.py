"""
Worker directory service. Minimal: the compliance engine only needs to know
a worker exists, and reporting needs names and roles.
"""
from __future__ import annotations

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import DuplicateWorkerEmailError, WorkerNotFoundError
from app.models.worker import Worker, WorkerRole

logger = structlog.get_logger(__name__)


def get_worker(db: Session, worker_id: int) -> Worker:
    worker = db.get(Worker, worker_id)
    if worker is None:
        raise WorkerNotFoundError(worker_id)
    return worker


def create_worker(
    db: Session,
    name: str,
    email: str,
    role: WorkerRole | str = WorkerRole.worker,
) -> Worker:
    email = email.strip().lower()
    if db.query(Worker.id).filter(Worker.email == email).first() is not None:
        raise DuplicateWorkerEmailError(email)

    worker = Worker(name=name, email=email, role=WorkerRole(role))
    db.add(worker)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateWorkerEmailError(email) from exc
    db.refresh(worker)
    logger.info("worker_registered", worker_id=worker.id, role=WorkerRole(role).value)
    return worker
