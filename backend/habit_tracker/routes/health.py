"""
Health Routes - Health check endpoints
"""
from fastapi import APIRouter

from habit_tracker.core.config import settings
from habit_tracker.utils.timezone import get_today_date

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Health check endpoint, reports the storage backend and the service's current day"""
    return {
        "status": "ok",
        "storage_backend": settings.STORAGE_BACKEND,
        "today": str(get_today_date())
    }
