import structlog
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from sketchsite.db.base import get_session_factory

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check():
    """Liveness plus a database round trip."""
    try:
        async with get_session_factory()() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("health_check_database_failed", error=str(e), error_type=type(e).__name__)
        return JSONResponse(
            status_code=503,
            content={"status": "degraded", "service": "sketchsite", "checks": {"database": False}},
        )
    return {"status": "healthy", "service": "sketchsite", "checks": {"database": True}}
