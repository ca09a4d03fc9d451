"""
Call Stats Service
Counts calls received by partner-synced artisans on a date and reports them
back to the Vishwakarma API in a single request.
"""
from datetime import date as date_type
from typing import Any, Callable, Dict, List, Optional, Union
from sqlalchemy import func
from sqlalchemy.orm import Session

from artisan_sync.config import get_settings
from artisan_sync.connectors.vishwakarma_connector import VishwakarmaConnector
from artisan_sync.exceptions import PartnerAPIError
from artisan_sync.models.base import SessionLocal
from artisan_sync.models.seller import Seller
from artisan_sync.models.user import UserAccount, UserAccountCall
from artisan_sync.utils.helpers import day_bounds, parse_iso_date
from artisan_sync.utils.logger import log

settings = get_settings()


class CallStatsService:
    """Aggregate per-artisan received calls and push them to the partner"""

    def __init__(
        self,
        client: Optional[VishwakarmaConnector] = None,
        session_factory: Callable[[], Session] = SessionLocal,
        source_name: Optional[str] = None,
    ):
        self.client = client or VishwakarmaConnector()
        self.session_factory = session_factory
        self.source_name = source_name or settings.vishwakarma_source_name

    def aggregate_call_stats(self, date: Union[str, date_type]) -> List[Dict[str, Any]]:
        """
        Calls received per partner artisan during one calendar day.

        Returns:
            [{"ArtisanId": source_id, "ReceiveCalls": n, "date": "YYYY-MM-DD"}, ...]
        """
        day = parse_iso_date(date)
        start, end = day_bounds(day)

        db = self.session_factory()
        try:
            rows = (
                db.query(UserAccount.source_id, func.count(UserAccountCall.id))
                .join(Seller, Seller.id == UserAccountCall.seller_id)
                .join(UserAccount, UserAccount.id == Seller.user_account_id)
                .filter(
                    UserAccount.source == self.source_name,
                    UserAccount.source_id.isnot(None),
                    UserAccountCall.created_at >= start,
                    UserAccountCall.created_at < end,
                )
                .group_by(UserAccount.source_id)
                .order_by(UserAccount.source_id)
                .all()
            )
        finally:
            db.close()

        return [
            {"ArtisanId": source_id, "ReceiveCalls": int(calls), "date": day.isoformat()}
            for source_id, calls in rows
        ]

    async def push_call_stats(self, date: Union[str, date_type]) -> Dict[str, Any]:
        """
        Push one day's call statistics.

        Returns:
            {"success": True, "count", "api_response", "message"},
            {"success": True, "count": 0, "message": "No data to push"}, or
            {"success": False, "message", "error"}
        """
        try:
            token = await self.client.authenticate()

            payload = self.aggregate_call_stats(date)
            if not payload:
                log.info(f"No call statistics to push for {date}")
                return {"success": True, "count": 0, "message": "No data to push"}

            log.info(f"Pushing call statistics for {len(payload)} artisan(s) on {date}")
            response = await self.client.push_call_details(token, payload)

            log.info(f"Pushed call statistics for {date}")
            return {
                "success": True,
                "count": len(payload),
                "api_response": response,
                "message": "Call statistics pushed successfully",
            }
        except PartnerAPIError as e:
            log.error(f"Failed to push call statistics for {date}: {e}")
            return {
                "success": False,
                "message": "Failed to push call statistics",
                "error": e.payload if e.payload is not None else str(e),
            }
        except Exception as e:
            log.error(f"Failed to push call statistics for {date}: {e}")
            return {
                "success": False,
                "message": "Failed to push call statistics",
                "error": str(e),
            }
