import structlog
from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import (
    ComplianceException,
    compliance_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from app.core.logging import configure_logging
from app.core.middleware import RequestContextMiddleware
from app.db.base import get_db
from app.routers import behavior as behavior_router
from app.routers import workers as workers_router

configure_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Safety Compliance API",
    description=(
        "**Worker safety engagement & compliance scoring**\n\n"
        "Ingests worker engagement events (logins, checklists, PPE checks, training "
        "videos, hazard reports, quizzes), maintains a per-worker daily compliance "
        "snapshot with score, risk level and streak, and raises deduplicated alerts.\n\n"
        "All error responses follow the `{code, message, details}` envelope. "
        "Every response carries an `X-Request-ID` header."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

# Most specific first.
app.add_exception_handler(ComplianceException, compliance_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.include_router(workers_router.router)
app.include_router(behavior_router.router)


@app.get("/health", tags=["health"], summary="Health check")
def health(db: Session = Depends(get_db)):
    """
    `{"status": "ok", "db": "ok"}` when the API and the database are both
    reachable, HTTP 503 otherwise. Used as the container liveness probe.
    """
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("health_db_unreachable", error=str(exc))
        return JSONResponse(
            status_code=503,
            content={"status": "error", "db": "unreachable"},
        )
    return {"status": "ok", "db": "ok", "env": settings.APP_ENV}
