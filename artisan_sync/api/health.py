"""
Health check and status endpoints
"""
from fastapi import APIRouter, Depends
from datetime import datetime
from artisan_sync.api.sync import get_artisan_sync_service
from artisan_sync.config import get_settings
from artisan_sync.scheduler import get_scheduled_jobs
from artisan_sync.services.artisan_sync_service import ArtisanSyncService
from artisan_sync import __version__

settings = get_settings()

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "version": __version__
    }


@router.get("/status")
async def get_status(service: ArtisanSyncService = Depends(get_artisan_sync_service)):
    """Get system status"""
    return {
        "app_name": settings.app_name,
        "version": __version__,
        "environment": settings.environment,
        "scheduler": {
            "enabled": settings.enable_scheduler,
            "timezone": settings.sync_timezone,
            "jobs": get_scheduled_jobs(),
        },
        "partner_api": service.client.get_status(),
        "timestamp": datetime.utcnow().isoformat()
    }
