"""
Sync Run Logger
Tracks the lifecycle of every artisan sync run and answers history queries.

The orchestrator owns the SyncRunSession handle returned by start_session()
and passes it to every call, so concurrent runs never share mutable state.
Runs are written to artisan_sync_runs once they finish; the table keeps the
most recent `sync_run_history_limit` rows.
"""
import time
import traceback
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional, Union
from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from artisan_sync.config import get_settings
from artisan_sync.models.base import SessionLocal
from artisan_sync.models.sync_run import SyncRun
from artisan_sync.utils.helpers import safe_divide
from artisan_sync.utils.logger import log

settings = get_settings()

STATUS_IN_PROGRESS = "IN_PROGRESS"
STATUS_SUCCESS = "SUCCESS"
STATUS_FAILED = "FAILED"

TRIGGER_CRON = "CRON"
TRIGGER_MANUAL = "MANUAL"
TRIGGER_API_MANUAL = "API_MANUAL"


@dataclass
class SyncRunSession:
    """In-flight state of one sync run"""
    session_id: str
    target_date: str
    triggered_by: str
    start_time: datetime
    status: str = STATUS_IN_PROGRESS
    pages_fetched: int = 0
    records_inserted: int = 0
    records_updated: int = 0
    end_time: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    error: Optional[str] = None
    error_details: Optional[str] = None
    started_monotonic: float = field(default_factory=time.monotonic, repr=False)

    @property
    def total_records(self) -> int:
        return self.records_inserted + self.records_updated

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_IN_PROGRESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "triggered_by": self.triggered_by,
            "target_date": self.target_date,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_seconds": self.duration_seconds,
            "status": self.status,
            "records_inserted": self.records_inserted,
            "records_updated": self.records_updated,
            "total_records": self.total_records,
            "pages_fetched": self.pages_fetched,
            "error": self.error,
            "error_details": self.error_details,
        }


def _empty_summary() -> Dict[str, Any]:
    return {
        "total_fetch_operations": 0,
        "successful_fetches": 0,
        "failed_fetches": 0,
        "total_records_inserted": 0,
        "total_records_updated": 0,
        "cron_triggered": 0,
        "manual_triggered": 0,
        "by_trigger": {},
        "last_fetch": None,
    }


class SyncRunLogger:
    """Run lifecycle tracking plus the read-only history/report surface"""

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        history_limit: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self.history_limit = history_limit or settings.sync_run_history_limit
        self._active: Dict[str, SyncRunSession] = {}

    # ── Lifecycle ────────────────────────────────────────

    def start_session(self, target_date: str, triggered_by: str = TRIGGER_MANUAL) -> SyncRunSession:
        session = SyncRunSession(
            session_id=f"{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}",
            target_date=target_date,
            triggered_by=triggered_by,
            start_time=datetime.utcnow(),
        )
        self._active[session.session_id] = session

        log.info(
            f"Sync run started: {session.session_id} | "
            f"Target Date: {target_date} | Triggered By: {triggered_by}"
        )
        return session

    def record_page(self, session: Optional[SyncRunSession], page_number: int) -> None:
        if not self._check_active(session, "record_page"):
            return
        session.pages_fetched = page_number

    def record_counts(self, session: Optional[SyncRunSession], inserted: int, updated: int) -> None:
        if not self._check_active(session, "record_counts"):
            return
        session.records_inserted += inserted
        session.records_updated += updated

    def finish_success(self, session: Optional[SyncRunSession]) -> None:
        if not self._check_active(session, "finish_success"):
            return
        self._finish(session, STATUS_SUCCESS)
        log.info(
            f"Sync run completed: {session.session_id} | "
            f"Duration: {session.duration_seconds}s | Records: {session.total_records}"
        )

    def finish_failure(self, session: Optional[SyncRunSession], error: Union[BaseException, str]) -> None:
        if not self._check_active(session, "finish_failure"):
            return
        if isinstance(error, BaseException):
            session.error = str(error) or type(error).__name__
            session.error_details = "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            )
        else:
            session.error = str(error)
        self._finish(session, STATUS_FAILED)
        log.error(f"Sync run failed: {session.session_id} | {session.error}")

    def active_sessions(self) -> List[Dict[str, Any]]:
        return [s.to_dict() for s in self._active.values()]

    def _check_active(self, session: Optional[SyncRunSession], operation: str) -> bool:
        if session is None or not session.is_active:
            log.warning(f"SyncRunLogger.{operation} called without an active session")
            return False
        return True

    def _finish(self, session: SyncRunSession, status: str) -> None:
        session.end_time = datetime.utcnow()
        session.duration_seconds = round(time.monotonic() - session.started_monotonic, 2)
        session.status = status
        self._persist(session)
        self._active.pop(session.session_id, None)

    def _persist(self, session: SyncRunSession) -> bool:
        """Append the finished run to history. Never raises."""
        db = self.session_factory()
        try:
            db.add(SyncRun(
                session_id=session.session_id,
                triggered_by=session.triggered_by,
                target_date=session.target_date,
                start_time=session.start_time,
                end_time=session.end_time,
                duration_seconds=session.duration_seconds,
                status=session.status,
                pages_fetched=session.pages_fetched,
                records_inserted=session.records_inserted,
                records_updated=session.records_updated,
                total_records=session.total_records,
                error=session.error,
                error_details=session.error_details,
            ))
            db.flush()
            self._trim_history(db)
            db.commit()
            log.debug(f"Sync run saved: {session.session_id}")
            return True
        except SQLAlchemyError as e:
            db.rollback()
            log.error(f"Failed to save sync run {session.session_id}: {e}")
            return False
        finally:
            db.close()

    def _trim_history(self, db: Session) -> None:
        cutoff = (
            db.query(SyncRun.id)
            .order_by(SyncRun.id.desc())
            .offset(self.history_limit)
            .first()
        )
        if cutoff is not None:
            removed = db.query(SyncRun).filter(SyncRun.id <= cutoff.id).delete(synchronize_session=False)
            log.debug(f"Trimmed {removed} old sync run(s)")

    # ── History queries ──────────────────────────────────

    def get_history_for_date(self, target_date: str) -> List[Dict[str, Any]]:
        """All finished runs for one target date, oldest first"""
        db = self.session_factory()
        try:
            runs = (
                db.query(SyncRun)
                .filter(SyncRun.target_date == target_date)
                .order_by(SyncRun.id.asc())
                .all()
            )
            return [r.to_dict() for r in runs]
        except SQLAlchemyError as e:
            log.warning(f"Could not read sync history for {target_date}: {e}")
            return []
        finally:
            db.close()

    def get_recent_history(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Most recent finished runs, newest first"""
        db = self.session_factory()
        try:
            runs = db.query(SyncRun).order_by(SyncRun.id.desc()).limit(limit).all()
            return [r.to_dict() for r in runs]
        except SQLAlchemyError as e:
            log.warning(f"Could not read recent sync history: {e}")
            return []
        finally:
            db.close()

    def get_summary(self) -> Dict[str, Any]:
        """Aggregate counts over the whole retained history"""
        db = self.session_factory()
        try:
            totals = db.query(
                func.count(SyncRun.id),
                func.coalesce(func.sum(case((SyncRun.status == STATUS_SUCCESS, 1), else_=0)), 0),
                func.coalesce(func.sum(case((SyncRun.status == STATUS_FAILED, 1), else_=0)), 0),
                func.coalesce(func.sum(SyncRun.records_inserted), 0),
                func.coalesce(func.sum(SyncRun.records_updated), 0),
            ).one()

            if not totals[0]:
                return _empty_summary()

            by_trigger = dict(
                db.query(SyncRun.triggered_by, func.count(SyncRun.id))
                .group_by(SyncRun.triggered_by)
                .all()
            )
            last = db.query(SyncRun).order_by(SyncRun.id.desc()).first()

            return {
                "total_fetch_operations": int(totals[0]),
                "successful_fetches": int(totals[1]),
                "failed_fetches": int(totals[2]),
                "total_records_inserted": int(totals[3]),
                "total_records_updated": int(totals[4]),
                "cron_triggered": by_trigger.get(TRIGGER_CRON, 0),
                "manual_triggered": by_trigger.get(TRIGGER_MANUAL, 0),
                "by_trigger": by_trigger,
                "last_fetch": last.to_dict() if last else None,
            }
        except SQLAlchemyError as e:
            log.warning(f"Could not summarise sync history: {e}")
            return _empty_summary()
        finally:
            db.close()

    def get_report(self, recent_limit: int = 10) -> Dict[str, Any]:
        """Summary plus derived metrics and the latest operations"""
        summary = self.get_summary()
        recent = self.get_recent_history(recent_limit)

        success_rate = safe_divide(
            summary["successful_fetches"] * 100, summary["total_fetch_operations"]
        )
        return {
            "generated_at": datetime.utcnow().isoformat(),
            "summary": summary,
            "metrics": {
                "success_rate": f"{success_rate:.2f}%",
                "total_records_processed": (
                    summary["total_records_inserted"] + summary["total_records_updated"]
                ),
            },
            "recent_operations": recent,
            "in_progress": self.active_sessions(),
            "last_fetch": summary["last_fetch"],
        }


@lru_cache()
def get_sync_run_logger() -> SyncRunLogger:
    """Process-wide logger shared by the scheduler and the API"""
    return SyncRunLogger()
