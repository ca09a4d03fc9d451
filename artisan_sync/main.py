"""
Jayantslist Artisan Sync
Main FastAPI application
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from artisan_sync.config import get_settings
from artisan_sync.utils.logger import log
from artisan_sync import __version__

# Import routers
from artisan_sync.api import health, sync, sync_logs

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup
    log.info(f"Starting {settings.app_name} v{__version__}")
    log.info(f"Environment: {settings.environment}")

    # Initialize database
    try:
        from artisan_sync.models.base import init_db
        init_db()
        log.info("Database initialized")
    except Exception as e:
        log.error(f"Database initialization error: {str(e)}")

    # Start the scheduler for the daily sync and stats push
    from artisan_sync.scheduler import start_scheduler, stop_scheduler
    if settings.enable_scheduler:
        try:
            start_scheduler()
        except Exception as e:
            log.error(f"Scheduler startup error: {str(e)}")
    else:
        log.info("Scheduler disabled (ENABLE_SCHEDULER=false)")

    yield

    # Shutdown
    stop_scheduler()
    log.info("Shutting down application")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description="""
    Artisan data synchronization service

    - Pulls artisan records from the Vishwakarma registry every day
    - Reconciles them into accounts, sellers, categories and services
    - Pushes per-artisan received-call counts back to the registry
    - Keeps a queryable history of every sync run
    """,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(sync.router)
app.include_router(sync_logs.router)


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "app": settings.app_name,
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "status": "/status",
        "endpoints": {
            "sync_daily": "POST /api/sync",
            "sync_yesterday_and_today": "POST /api/sync-dates",
            "sync_report": "GET /api/vishwakarma/logs/stats",
            "sync_date": "POST /api/vishwakarma/logs/stats",
            "push_call_stats": "POST /api/vishwakarma/logs/push-stats",
            "sync_summary": "GET /api/vishwakarma/logs/summary",
            "sync_recent": "GET /api/vishwakarma/logs/recent",
            "sync_history_for_date": "GET /api/vishwakarma/logs/date/{date}",
            "sync_progress": "GET /api/vishwakarma/logs/progress",
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "artisan_sync.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
