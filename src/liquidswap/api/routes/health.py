"""Health check endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter

from liquidswap import __version__
from liquidswap.config import get_settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "service": "liquidswap",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/health/detailed")
async def detailed_health():
    """Detailed health check with configuration info."""
    settings = get_settings()
    return {
        "status": "healthy",
        "service": "liquidswap",
        "version": __version__,
        "config": settings.get_safe_dict(),
    }
