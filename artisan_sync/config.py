"""
Configuration management for the artisan sync service
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "Jayantslist Artisan Sync"
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = "logs"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 3000

    # Database
    database_url: str = "sqlite:///./artisan_sync.db"

    # Vishwakarma partner API
    vishwakarma_base_url: str = "https://devupsicapi.psweb.in"
    vishwakarma_user_id: str = "IntegrationIITKnp"
    vishwakarma_password: str = ""
    vishwakarma_timeout_seconds: float = 60.0
    vishwakarma_source_name: str = "VISHWAKARMA"

    # Artisan sync
    artisan_sync_max_pages: int = 500  # Guard against a partner that never returns an empty page
    sync_run_history_limit: int = 1000  # Most recent runs kept in artisan_sync_runs
    sync_timezone: str = "UTC"  # Used to resolve "yesterday" / "today"

    # Sync Schedules (crontab expressions, evaluated in sync_timezone)
    enable_scheduler: bool = True
    artisan_sync_schedule: str = "0 0 * * *"
    call_stats_push_schedule: str = "0 1 * * *"

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
