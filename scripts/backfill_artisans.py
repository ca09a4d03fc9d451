#!/usr/bin/env python3
"""
Artisan Backfill Script

Re-runs the artisan sync for every date in a range, one date at a time, and
optionally pushes each date's call statistics afterwards. Each date is a
normal sync run (trigger MANUAL) and shows up in the run history.

Usage:
    python scripts/backfill_artisans.py --start 2024-01-01 --end 2024-01-31 [--push-stats]
"""
import asyncio
import sys
import argparse
from datetime import timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from artisan_sync.models.base import init_db
from artisan_sync.services.artisan_sync_service import ArtisanSyncService
from artisan_sync.services.call_stats_service import CallStatsService
from artisan_sync.services.sync_run_logger import TRIGGER_MANUAL
from artisan_sync.utils.helpers import parse_iso_date
from artisan_sync.utils.logger import log


async def backfill_artisans(start: str, end: str, push_stats: bool = False, delay: float = 1.0) -> dict:
    """
    Sync every date from start to end inclusive.

    Returns:
        Dict with per-date results and totals
    """
    start_date = parse_iso_date(start)
    end_date = parse_iso_date(end)
    if end_date < start_date:
        raise ValueError(f"End date {end} is before start date {start}")

    sync_service = ArtisanSyncService()
    stats_service = CallStatsService() if push_stats else None

    print(f"\n{'='*60}")
    print(f"Artisan Backfill")
    print(f"{'='*60}")
    print(f"Date range: {start_date} to {end_date}")
    print(f"Push call stats: {'yes' if push_stats else 'no'}")
    print(f"{'='*60}\n")

    results = []
    totals = {"dates": 0, "failed_dates": 0, "inserted": 0, "updated": 0}

    current = start_date
    while current <= end_date:
        day = current.isoformat()
        result = await sync_service.sync_artisans_by_date(day, TRIGGER_MANUAL)
        totals["dates"] += 1

        if result["success"]:
            totals["inserted"] += result["inserted"]
            totals["updated"] += result["updated"]
            print(f"  {day}: {result['inserted']} inserted, {result['updated']} updated")
        else:
            totals["failed_dates"] += 1
            print(f"  {day}: FAILED - {result['error']}")

        if stats_service is not None:
            push_result = await stats_service.push_call_stats(day)
            result["push"] = push_result
            if push_result["success"]:
                print(f"  {day}: pushed call stats for {push_result['count']} artisans")
            else:
                print(f"  {day}: call stats push FAILED - {push_result.get('error')}")

        results.append(result)
        current += timedelta(days=1)
        if current <= end_date and delay > 0:
            await asyncio.sleep(delay)

    print(f"\n{'='*60}")
    print(
        f"Done: {totals['dates']} dates, {totals['failed_dates']} failed, "
        f"{totals['inserted']} inserted, {totals['updated']} updated"
    )
    print(f"{'='*60}\n")
    log.info(f"Artisan backfill {start_date}..{end_date} finished: {totals}")

    return {"results": results, "totals": totals}


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Backfill artisans from the Vishwakarma API for a date range",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # One month of artisans
  python scripts/backfill_artisans.py --start 2024-01-01 --end 2024-01-31

  # A single day, also pushing that day's call statistics
  python scripts/backfill_artisans.py --start 2024-01-15 --end 2024-01-15 --push-stats
"""
    )
    parser.add_argument("--start", type=str, required=True, help="First date (YYYY-MM-DD)")
    parser.add_argument("--end", type=str, required=True, help="Last date, inclusive (YYYY-MM-DD)")
    parser.add_argument(
        "--push-stats", action="store_true",
        help="Push each date's call statistics after syncing it"
    )
    parser.add_argument(
        "--delay", type=float, default=1.0,
        help="Seconds between dates (default: 1.0)"
    )
    args = parser.parse_args()

    init_db()
    outcome = asyncio.run(backfill_artisans(args.start, args.end, args.push_stats, args.delay))
    sys.exit(1 if outcome["totals"]["failed_dates"] else 0)
