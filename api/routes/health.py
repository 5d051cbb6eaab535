"""Health check endpoints."""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from database.engine import ping_db

logger = logging.getLogger(__name__)

router = APIRouter()

VERSION = "0.1.0"


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Liveness probe. Does not touch dependencies."""
    return HealthResponse(status="healthy", version=VERSION)


@router.get("/ready", response_model=HealthResponse)
async def readiness_check():
    """Readiness probe. Fails with 503 while the database is unreachable."""
    try:
        await ping_db()
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Readiness check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "version": VERSION},
        )
    return HealthResponse(status="ready", version=VERSION)
