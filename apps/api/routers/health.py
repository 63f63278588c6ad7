"""
Health check endpoints.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request
import redis.asyncio as redis

from config import settings

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """
    Health check endpoint.
    Returns overall system health status.
    """
    health_status = {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "unknown",
        "reaper": "running" if _reaper_running(request) else "stopped",
    }

    # Check database connection
    try:
        from database import engine
        from sqlalchemy import text
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        health_status["database"] = "up"
    except Exception as e:
        health_status["database"] = f"down: {str(e)}"
        health_status["status"] = "degraded"

    # Check Redis only when it backs the rate limiter
    if settings.RATE_LIMIT_BACKEND == "redis":
        try:
            r = redis.from_url(settings.REDIS_URL)
            await r.ping()
            await r.aclose()
            health_status["redis"] = "up"
        except Exception as e:
            health_status["redis"] = f"down: {str(e)}"

    return health_status


@router.get("/health/live")
async def liveness_check():
    """Liveness probe."""
    return {"alive": True}


def _reaper_running(request: Request) -> bool:
    reaper = getattr(request.app.state, "reaper", None)
    return bool(reaper is not None and reaper.running)
