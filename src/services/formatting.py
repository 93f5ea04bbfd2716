"""Display formatting shared by the screens."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Union


def format_date(d: Optional[Union[date, datetime]]) -> str:
    if d is None:
        return "No deadline"
    return d.strftime("%Y-%m-%d")


def format_time(dt: Optional[datetime]) -> str:
    if dt is None:
        return "--:--"
    return dt.strftime("%H:%M")


def format_month_year(d: Union[date, datetime]) -> str:
    return d.strftime("%B %Y")


def format_duration(minutes: Optional[float]) -> str:
    """125 -> '2h 5m'."""
    if not minutes:
        return "0h 0m"
    total = int(minutes)
    return f"{total // 60}h {total % 60}m"


def format_memory_size(size: float) -> str:
    return f"{size:.1f}MB"


def memory_usage_percent(used: float, total: float) -> int:
    if not total:
        return 0
    return round(used / total * 100)
