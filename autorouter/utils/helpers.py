"""
Helper Functions

This module contains utility functions used throughout the application.
"""

from datetime import date, datetime, timezone
from typing import Any, Optional, Union

from dateutil import parser as dtparser


def parse_ts(x: Any) -> Optional[datetime]:
    """Parse timestamp from various formats"""
    if not x:
        return None
    try:
        dt = dtparser.isoparse(str(x))
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None


def safe_int(x: Any) -> Optional[int]:
    """Safely convert to int"""
    try:
        return int(x) if x is not None else None
    except (TypeError, ValueError, OverflowError):
        return None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    """
    Render a datetime as UTC ISO-8601 with milliseconds.
    Example: 2025-12-04T10:48:37.123Z
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (
        dt.astimezone(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def day_key(value: Union[date, datetime, None]) -> str:
    """Date-only key (YYYY-MM-DD) of a UTC calendar day"""
    if value is None:
        value = utc_now()
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        value = value.date()
    return value.isoformat()


def format_uptime(uptime_ms: float) -> str:
    """Format milliseconds as a compact uptime string (e.g. 1d 2h 3m)"""
    seconds = int(uptime_ms // 1000)
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days}d {hours % 24}h {minutes % 60}m"
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"
