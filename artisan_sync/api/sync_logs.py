"""
Vishwakarma sync history, reporting and manual run endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from typing import Optional
from artisan_sync.api.sync import get_artisan_sync_service, get_run_logger, get_sync_status
from artisan_sync.services.artisan_sync_service import ArtisanSyncService
from artisan_sync.services.call_stats_service import CallStatsService
from artisan_sync.services.sync_run_logger import SyncRunLogger, TRIGGER_API_MANUAL
from artisan_sync.utils.helpers import parse_iso_date, yesterday_and_today
from artisan_sync.utils.logger import log

router = APIRouter(prefix="/api/vishwakarma/logs", tags=["sync-logs"])


class SyncDateRequest(BaseModel):
    date: Optional[str] = None  # YYYY-MM-DD, defaults to yesterday


_call_stats = None


def get_call_stats_service() -> CallStatsService:
    global _call_stats
    if _call_stats is None:
        # Shares the partner client so /status counters cover pushes too
        _call_stats = CallStatsService(client=get_artisan_sync_service().client)
    return _call_stats


def _resolve_date(request: Optional[SyncDateRequest]) -> str:
    """Requested date, or yesterday; 400 on anything that is not a calendar date"""
    if request is None or not request.date:
        yesterday, _ = yesterday_and_today()
        return yesterday
    try:
        return parse_iso_date(request.date).isoformat()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/stats")
async def get_stats_report(run_logger: SyncRunLogger = Depends(get_run_logger)):
    """Comprehensive sync report: summary, success rate, recent operations"""
    return {"success": True, "data": run_logger.get_report()}


@router.post("/stats")
async def run_sync_for_date(
    request: Optional[SyncDateRequest] = None,
    service: ArtisanSyncService = Depends(get_artisan_sync_service),
):
    """
    Sync one date synchronously.

    Example: POST /api/vishwakarma/logs/stats {"date": "2024-01-15"}
    """
    target_date = _resolve_date(request)
    log.info(f"Manual artisan sync requested for {target_date}")

    result = await service.sync_artisans_by_date(target_date, TRIGGER_API_MANUAL)
    if not result["success"]:
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": f"Artisan sync failed for {target_date}",
                "error": result.get("error"),
                "date": target_date,
            },
        )

    return {
        "success": True,
        "message": f"Artisan sync completed for {target_date}",
        "data": result,
    }


@router.post("/push-stats")
async def push_stats_for_date(
    request: Optional[SyncDateRequest] = None,
    service: CallStatsService = Depends(get_call_stats_service),
):
    """
    Push one date's call statistics synchronously.

    Example: POST /api/vishwakarma/logs/push-stats {"date": "2024-01-15"}
    """
    target_date = _resolve_date(request)
    log.info(f"Manual call stats push requested for {target_date}")

    result = await service.push_call_stats(target_date)
    if not result["success"]:
        return JSONResponse(status_code=500, content={**result, "date": target_date})

    return {**result, "date": target_date}


@router.get("/summary")
async def get_summary(run_logger: SyncRunLogger = Depends(get_run_logger)):
    """Aggregate counts over the retained sync history"""
    return {"success": True, "data": run_logger.get_summary()}


@router.get("/recent")
async def get_recent(
    limit: int = Query(10, ge=1, le=100, description="Number of runs to return"),
    run_logger: SyncRunLogger = Depends(get_run_logger),
):
    """Most recent sync runs, newest first"""
    runs = run_logger.get_recent_history(limit)
    return {"success": True, "count": len(runs), "data": runs}


@router.get("/date/{date}")
async def get_history_for_date(date: str, run_logger: SyncRunLogger = Depends(get_run_logger)):
    """All sync runs that targeted one date"""
    try:
        target_date = parse_iso_date(date).isoformat()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    runs = run_logger.get_history_for_date(target_date)
    return {"success": True, "date": target_date, "count": len(runs), "data": runs}


@router.get("/progress")
async def get_progress(run_logger: SyncRunLogger = Depends(get_run_logger)):
    """In-flight runs plus the state of background-triggered syncs"""
    return {
        "success": True,
        "active_sessions": run_logger.active_sessions(),
        "background": get_sync_status(),
    }
