"""
Artisan sync trigger endpoints
"""
from fastapi import APIRouter, BackgroundTasks, Depends
from datetime import datetime
from artisan_sync.services.artisan_sync_service import ArtisanSyncService
from artisan_sync.services.sync_run_logger import (
    SyncRunLogger,
    TRIGGER_MANUAL,
    get_sync_run_logger,
)
from artisan_sync.utils.logger import log

router = APIRouter(prefix="/api", tags=["sync"])

# In-memory status of background-triggered syncs
_sync_status = {}


def _update_sync_status(job: str, status: str, result=None, error=None):
    _sync_status[job] = {
        "status": status,
        "started_at": _sync_status.get(job, {}).get("started_at", datetime.utcnow().isoformat()),
        "updated_at": datetime.utcnow().isoformat(),
        "result": result,
        "error": error,
    }


def get_sync_status() -> dict:
    return dict(_sync_status)


# Created on first use so importing the router never opens partner sessions
_artisan_sync = None


def get_artisan_sync_service() -> ArtisanSyncService:
    global _artisan_sync
    if _artisan_sync is None:
        _artisan_sync = ArtisanSyncService(run_logger=get_sync_run_logger())
    return _artisan_sync


def get_run_logger() -> SyncRunLogger:
    return get_sync_run_logger()


async def _run_daily_sync(service: ArtisanSyncService):
    """Background task: sync yesterday's artisans."""
    _update_sync_status("daily", "running")
    try:
        result = await service.sync_daily()
        status = "completed" if result.get("success") else "failed"
        _update_sync_status("daily", status, result=result, error=result.get("error"))
    except Exception as e:
        log.error(f"Background daily sync error: {str(e)}")
        _update_sync_status("daily", "failed", error=str(e))


async def _run_sync_dates(service: ArtisanSyncService):
    """Background task: sync yesterday then today."""
    _update_sync_status("dates", "running")
    try:
        result = await service.sync_yesterday_and_today(TRIGGER_MANUAL)
        status = "completed" if result.get("success") else "failed"
        _update_sync_status("dates", status, result=result)
    except Exception as e:
        log.error(f"Background yesterday/today sync error: {str(e)}")
        _update_sync_status("dates", "failed", error=str(e))


@router.post("/sync")
async def trigger_daily_sync(
    background_tasks: BackgroundTasks,
    service: ArtisanSyncService = Depends(get_artisan_sync_service),
):
    """
    Sync yesterday's artisans (runs in background).
    Check progress at GET /api/vishwakarma/logs/progress
    """
    _update_sync_status("daily", "started")
    background_tasks.add_task(_run_daily_sync, service)
    return {
        "success": True,
        "message": "Artisan sync started in background",
        "check_progress": "/api/vishwakarma/logs/progress",
    }


@router.api_route("/sync-dates", methods=["GET", "POST"])
async def trigger_yesterday_and_today_sync(
    background_tasks: BackgroundTasks,
    service: ArtisanSyncService = Depends(get_artisan_sync_service),
):
    """
    Sync yesterday and today, one after the other (runs in background).
    """
    _update_sync_status("dates", "started")
    background_tasks.add_task(_run_sync_dates, service)
    return {
        "success": True,
        "message": "Yesterday and today artisan sync started in background",
        "check_progress": "/api/vishwakarma/logs/progress",
    }
