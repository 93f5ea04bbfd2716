"""
Timestamp conversion at the store boundary.

The document store keeps dates as ISO-8601 strings. Everything above the
repository layer works with ``datetime`` objects. The Todo due date is the one
field that can be "no deadline": it is stored as the string ``"infinity"`` and
surfaces in Python as ``None``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

NO_DEADLINE = "infinity"


def to_store_timestamp(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return dt.isoformat(timespec="microseconds")


def from_store_timestamp(value: Any) -> Optional[datetime]:
    """Accept an ISO string, a datetime, or epoch seconds."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value)
    return datetime.fromisoformat(value)


def encode_due_date(due: Optional[datetime]) -> str:
    return NO_DEADLINE if due is None else to_store_timestamp(due)


def decode_due_date(value: Any) -> Optional[datetime]:
    if value is None or value == NO_DEADLINE:
        return None
    return from_store_timestamp(value)


def hours_between(later: datetime, earlier: datetime) -> float:
    return (later - earlier).total_seconds() / 3600.0


def minutes_between(later: datetime, earlier: datetime) -> float:
    return (later - earlier).total_seconds() / 60.0
