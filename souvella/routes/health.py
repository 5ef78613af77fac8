"""Health check endpoints."""

from typing import Any, Dict

from fastapi import APIRouter

from souvella.settings import settings
from souvella.utils.timezone import utcnow

router = APIRouter()


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "version": settings.app_version,
        "environment": settings.environment.value,
        "store_backend": settings.store_backend.value,
    }
