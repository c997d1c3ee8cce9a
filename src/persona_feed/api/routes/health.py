"""Health check endpoints."""

from fastapi import APIRouter, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from persona_feed.logging import get_logger

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool
    database: bool


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Basic health check endpoint that verifies the API is running.",
)
async def health_check() -> HealthResponse:
    """Basic health check - is the API up?"""
    from persona_feed import __version__

    return HealthResponse(status="healthy", version=__version__)


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Readiness check that verifies the database is reachable.",
)
async def readiness_check() -> ReadinessResponse:
    """Readiness check including the database."""
    from persona_feed.db.session import engine

    database_ok = False
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            database_ok = True
    except SQLAlchemyError as e:
        logger.error("database_health_check_failed", error=str(e))

    return ReadinessResponse(ready=database_ok, database=database_ok)
