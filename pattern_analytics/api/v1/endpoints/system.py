from fastapi import APIRouter, Depends
from datetime import datetime, timezone
import logging
import os

from pattern_analytics.config import settings
from pattern_analytics.database import get_db_session, is_initialized
from pattern_analytics.di import ServiceContainer, get_container

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(container: ServiceContainer = Depends(get_container)):
    """
    System health check endpoint with component status.

    Reports the clinical database (when the SQL reader is in use) and the
    periodic analysis scheduler.
    """
    health_status = {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "components": {},
    }

    if is_initialized():
        try:
            from sqlalchemy import text
            async with get_db_session() as session:
                await session.execute(text("SELECT 1"))
            health_status["components"]["database"] = {"status": "healthy", "available": True}
        except Exception as e:
            logger.warning("Database health check failed: %s", e)
            health_status["components"]["database"] = {
                "status": "unhealthy",
                "available": False,
                "error": str(e) if os.getenv("DEBUG", "False").lower() == "true" else "Database unavailable",
            }
            health_status["status"] = "degraded"
    else:
        health_status["components"]["database"] = {"status": "not_configured", "available": False}

    scheduler = container.scheduler
    last_summary = scheduler.last_summary if scheduler else None
    health_status["components"]["scheduler"] = {
        "status": "running" if scheduler and scheduler.is_running else "stopped",
        "run_in_progress": bool(scheduler and scheduler.run_in_progress),
        "last_completed_at": (
            last_summary.analysis_completed_at.isoformat() if last_summary else None
        ),
    }

    return health_status
