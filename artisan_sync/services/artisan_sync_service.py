"""
Artisan Sync Service
Pulls artisan records for a date from the Vishwakarma API, page by page, and
reconciles each one into the local store.
"""
from typing import Any, Dict, List, Optional

from artisan_sync.config import get_settings
from artisan_sync.connectors.vishwakarma_connector import VishwakarmaConnector
from artisan_sync.exceptions import RecordReconcileError, SyncPageLimitError
from artisan_sync.services.artisan_reconciler import ArtisanReconciler
from artisan_sync.services.sync_run_logger import (
    SyncRunLogger,
    SyncRunSession,
    TRIGGER_CRON,
    TRIGGER_MANUAL,
    get_sync_run_logger,
)
from artisan_sync.utils.helpers import yesterday_and_today
from artisan_sync.utils.logger import log

settings = get_settings()


class ArtisanSyncService:
    """Runs one sync per target date: authenticate, page through, reconcile"""

    def __init__(
        self,
        client: Optional[VishwakarmaConnector] = None,
        reconciler: Optional[ArtisanReconciler] = None,
        run_logger: Optional[SyncRunLogger] = None,
        max_pages: Optional[int] = None,
    ):
        self.client = client or VishwakarmaConnector()
        self.reconciler = reconciler or ArtisanReconciler()
        self.run_logger = run_logger or get_sync_run_logger()
        self.max_pages = max_pages or settings.artisan_sync_max_pages

    async def sync_artisans_by_date(self, date: str, triggered_by: str = TRIGGER_MANUAL) -> Dict[str, Any]:
        """
        Sync every artisan the partner reports for one date.

        Args:
            date: Target date, YYYY-MM-DD
            triggered_by: CRON, MANUAL or API_MANUAL

        Returns:
            {"success": True, "date", "inserted", "updated", "failed", "pages"} or
            {"success": False, "date", "error", "session_id"}
        """
        session = self.run_logger.start_session(date, triggered_by)

        with log.contextualize(session_id=session.session_id, target_date=date):
            try:
                token = await self.client.authenticate()
                totals = await self._sync_pages(session, token, date)
            except Exception as e:
                self.run_logger.finish_failure(session, e)
                return {
                    "success": False,
                    "date": date,
                    "error": str(e) or type(e).__name__,
                    "session_id": session.session_id,
                }

            self.run_logger.finish_success(session)
            log.info(
                f"Artisan sync for {date} done: {totals['inserted']} inserted, "
                f"{totals['updated']} updated, {totals['failed']} failed"
            )
            return {
                "success": True,
                "date": date,
                "inserted": totals["inserted"],
                "updated": totals["updated"],
                "failed": totals["failed"],
                "pages": session.pages_fetched,
                "session_id": session.session_id,
            }

    async def _sync_pages(self, session: SyncRunSession, token: str, date: str) -> Dict[str, int]:
        totals = {"inserted": 0, "updated": 0, "failed": 0}

        for page in range(1, self.max_pages + 1):
            log.info(f"Fetching artisans for {date}, page {page}")
            artisans = await self.client.fetch_artisans(token, date, page)
            if not artisans:
                log.info(f"No more artisans for {date} after {page - 1} page(s)")
                return totals

            page_result = self._reconcile_page(artisans)
            totals["inserted"] += page_result["inserted"]
            totals["updated"] += page_result["updated"]
            totals["failed"] += page_result["failed"]

            self.run_logger.record_page(session, page)
            self.run_logger.record_counts(session, page_result["inserted"], page_result["updated"])

        raise SyncPageLimitError(
            f"Stopped after {self.max_pages} pages for {date} without reaching an empty page"
        )

    def _reconcile_page(self, artisans: List[Dict[str, Any]]) -> Dict[str, int]:
        result = {"inserted": 0, "updated": 0, "failed": 0}

        for artisan in artisans:
            try:
                outcome = self.reconciler.reconcile(artisan)
            except RecordReconcileError as e:
                result["failed"] += 1
                log.error(f"Skipping artisan {e.artisan_id}: {e}")
                continue
            except Exception as e:
                result["failed"] += 1
                artisan_id = artisan.get("artisanId") if isinstance(artisan, dict) else None
                log.exception(f"Unexpected error reconciling artisan {artisan_id}: {str(e)}")
                continue

            result["inserted"] += outcome["inserted"]
            result["updated"] += outcome["updated"]
            if outcome.get("skipped_entries"):
                log.warning(
                    f"Artisan {artisan.get('artisanId')}: skipped "
                    f"{outcome['skipped_entries']} entries without ids"
                )

        return result

    async def sync_daily(self) -> Dict[str, Any]:
        """Scheduled run for yesterday in the sync timezone"""
        yesterday, _ = yesterday_and_today()
        log.info(f"Starting scheduled artisan sync for {yesterday}")
        return await self.sync_artisans_by_date(yesterday, TRIGGER_CRON)

    async def sync_yesterday_and_today(self, triggered_by: str = TRIGGER_MANUAL) -> Dict[str, Any]:
        """Two sequential runs, yesterday first"""
        yesterday, today = yesterday_and_today()
        yesterday_result = await self.sync_artisans_by_date(yesterday, triggered_by)
        today_result = await self.sync_artisans_by_date(today, triggered_by)
        return {
            "success": yesterday_result["success"] and today_result["success"],
            "yesterday": yesterday_result,
            "today": today_result,
        }
