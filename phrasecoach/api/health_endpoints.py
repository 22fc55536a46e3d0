"""
Health and metrics endpoints
"""
import logging
from datetime import datetime
from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.orm import Session

from phrasecoach.config import get_settings
from phrasecoach.core.db import get_db
from phrasecoach.core.error_handlers import error_handler
from phrasecoach.core.metrics import get_metrics_snapshot

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/")
async def root():
    """Root endpoint for basic health check."""
    settings = get_settings()
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "status": "running"
    }


@router.get("/health")
def health_check(request: Request, db: Session = Depends(get_db)):
    """Health check covering the database and the text-generation configuration."""
    settings = get_settings()
    details = {
        "database": {"status": "unknown"},
        "llm": {"status": "configured" if settings.llm.api_key else "fallback_only"},
    }

    try:
        db.execute(text("SELECT 1"))
        details["database"] = {"status": "healthy"}
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        details["database"] = {"status": "unhealthy", "error": str(e)}

    container = getattr(request.app.state, "service_container", None)
    healthy = details["database"]["status"] == "healthy" and container is not None

    return {
        "status": "healthy" if healthy else "unhealthy",
        "version": settings.app_version,
        "timestamp": datetime.utcnow().isoformat(),
        "details": details,
        "error_statistics": error_handler.get_error_statistics(),
    }


@router.get("/metrics")
async def metrics():
    """LLM latency and fallback counters."""
    return get_metrics_snapshot()
