"""
Artisan sync run history, one row per finished sync run
"""
from sqlalchemy import Column, Integer, String, DateTime, Float, Text
from artisan_sync.models.base import Base


class SyncRun(Base):
    __tablename__ = "artisan_sync_runs"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String(64), unique=True, nullable=False, index=True)
    triggered_by = Column(String(20), nullable=False, index=True)  # CRON | MANUAL | API_MANUAL
    target_date = Column(String(10), nullable=False, index=True)   # YYYY-MM-DD

    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=True)
    duration_seconds = Column(Float, nullable=True)

    status = Column(String(20), nullable=False, index=True)  # IN_PROGRESS | SUCCESS | FAILED
    pages_fetched = Column(Integer, default=0)
    records_inserted = Column(Integer, default=0)
    records_updated = Column(Integer, default=0)
    total_records = Column(Integer, default=0)

    error = Column(Text, nullable=True)
    error_details = Column(Text, nullable=True)  # traceback

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "triggered_by": self.triggered_by,
            "target_date": self.target_date,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_seconds": self.duration_seconds,
            "status": self.status,
            "records_inserted": self.records_inserted or 0,
            "records_updated": self.records_updated or 0,
            "total_records": self.total_records or 0,
            "pages_fetched": self.pages_fetched or 0,
            "error": self.error,
            "error_details": self.error_details,
        }

    def __repr__(self):
        return f"<SyncRun {self.session_id} {self.target_date} [{self.status}]>"
