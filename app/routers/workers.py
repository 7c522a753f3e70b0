"""
Worker directory router.

POST /workers        — register a worker
GET  /workers/{id}   — fetch one worker
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.db.base import get_db
from app.schemas.common import ErrorResponse
from app.schemas.worker import WorkerCreateRequest, WorkerResponse
from app.services.workers import create_worker, get_worker
from app.models.worker import Worker

router = APIRouter(prefix="/workers", tags=["workers"])


def _worker_to_response(w: Worker) -> WorkerResponse:
    return WorkerResponse(
        id=w.id,
        name=w.name,
        email=w.email,
        role=w.role.value if hasattr(w.role, "value") else str(w.role),
        created_at=w.created_at.isoformat() if w.created_at else "",
    )


@router.post(
    "",
    response_model=WorkerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a worker",
    responses={409: {"model": ErrorResponse, "description": "Email already registered."}},
)
def register_worker(payload: WorkerCreateRequest, db: Session = Depends(get_db)):
    worker = create_worker(db, name=payload.name, email=payload.email, role=payload.role)
    return _worker_to_response(worker)


@router.get(
    "/{worker_id}",
    response_model=WorkerResponse,
    summary="Fetch a worker",
    responses={404: {"model": ErrorResponse, "description": "Worker not found."}},
)
def read_worker(worker_id: int, db: Session = Depends(get_db)):
    return _worker_to_response(get_worker(db, worker_id))
