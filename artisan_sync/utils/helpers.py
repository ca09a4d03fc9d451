"""
Helper utilities
"""
from datetime import date, datetime, timedelta
from typing import Optional, Tuple, Union
import re
import pytz

from artisan_sync.config import get_settings

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_iso_date(value: Union[str, date]) -> date:
    """
    Parse a YYYY-MM-DD calendar date.

    Raises:
        ValueError: if the value is not a real calendar date in that format
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not ISO_DATE_RE.match(value):
        raise ValueError(f"Invalid date format: {value!r}. Use YYYY-MM-DD format")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as e:
        raise ValueError(f"Invalid date: {value!r} ({e}). Use YYYY-MM-DD format") from e


def local_today(tz_name: Optional[str] = None) -> date:
    """Today's calendar date in the configured sync timezone"""
    tz = pytz.timezone(tz_name or get_settings().sync_timezone)
    return datetime.now(tz).date()


def yesterday_and_today(tz_name: Optional[str] = None) -> Tuple[str, str]:
    """ISO strings for yesterday and today in the sync timezone"""
    today = local_today(tz_name)
    return (today - timedelta(days=1)).isoformat(), today.isoformat()


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    """Half-open [start, end) datetime range covering one calendar day"""
    start = datetime(day.year, day.month, day.day)
    return start, start + timedelta(days=1)


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Safely divide two numbers"""
    try:
        return numerator / denominator if denominator != 0 else default
    except (TypeError, ZeroDivisionError):
        return default
