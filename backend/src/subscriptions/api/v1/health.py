"""Health check endpoints for liveness and readiness probes."""
import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from subscriptions.api.deps import get_session_factory
from subscriptions.utils.temporal import utcnow

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> dict[str, str]:
    """
    Liveness probe.

    Does not check the database.
    """
    return {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
    }


@router.get("/health/ready")
async def readiness_check(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> JSONResponse:
    """
    Readiness probe.

    Returns 200 when the database answers, 503 otherwise.
    """
    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
        database = "connected"
    except (SQLAlchemyError, OSError) as exc:
        logger.error("database_health_check_failed", error=str(exc))
        database = "disconnected"

    ready = database == "connected"
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "ready": ready,
            "checks": {"database": database},
            "timestamp": utcnow().isoformat(),
        },
    )
