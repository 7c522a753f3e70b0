"""
Custom exception hierarchy for the compliance service.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.

Families
--------
  ValidationError  (400) — request is well-formed JSON but semantically rejected.
  NotFoundError    (404) — a referenced worker / alert does not exist.
  StoreError       (500) — persistence failed; the operation was not applied.
"""
from __future__ import annotations

from datetime import date
from typing import Any, Iterable

import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class ComplianceException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(ComplianceException):
    http_status = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_FAILED"


class NotFoundError(ComplianceException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class StoreError(ComplianceException):
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "STORE_ERROR"


class UnsupportedEventTypeError(ValidationError):
    code = "UNSUPPORTED_EVENT_TYPE"

    def __init__(self, event_type: str, supported: Iterable[str]):
        super().__init__(
            message=f"Unsupported engagement event type: {event_type!r}.",
            details={"type": event_type, "supported": sorted(supported)},
        )


class InvalidAlertStatusError(ValidationError):
    code = "INVALID_ALERT_STATUS"

    def __init__(self, value: str, allowed: Iterable[str]):
        super().__init__(
            message=f"Invalid alert status: {value!r}.",
            details={"status": value, "allowed": sorted(allowed)},
        )


class WorkerNotFoundError(NotFoundError):
    code = "WORKER_NOT_FOUND"

    def __init__(self, worker_id: int):
        super().__init__(
            message=f"Worker {worker_id} not found.",
            details={"worker_id": worker_id},
        )


class AlertNotFoundError(NotFoundError):
    code = "ALERT_NOT_FOUND"

    def __init__(self, alert_id: int):
        super().__init__(
            message=f"Alert {alert_id} not found.",
            details={"alert_id": alert_id},
        )


class DuplicateWorkerEmailError(ComplianceException):
    http_status = status.HTTP_409_CONFLICT
    code = "DUPLICATE_WORKER_EMAIL"

    def __init__(self, email: str):
        super().__init__(
            message=f"A worker with email {email} already exists.",
            details={"email": email},
        )


class SnapshotWriteError(StoreError):
    code = "SNAPSHOT_WRITE_FAILED"

    def __init__(self, worker_id: int, day: date, reason: str | None = None):
        details: dict[str, Any] = {"worker_id": worker_id, "day": str(day)}
        if reason:
            details["reason"] = reason
        super().__init__(
            message=f"Could not persist compliance snapshot for worker {worker_id} on {day}.",
            details=details,
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def compliance_exception_handler(
    request: Request, exc: ComplianceException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
