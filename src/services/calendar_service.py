"""
Calendar Service — month grid and per-day bucketing.

Pure functions over lists of records; no store access. The grid is always
six Sunday-first weeks so the calendar never changes height between months.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Union

from src.data.models import Goal, Memo, SleepLog, Todo

GRID_DAYS = 42


@dataclass
class DayData:
    day: date
    todos: List[Todo] = field(default_factory=list)
    goals: List[Goal] = field(default_factory=list)
    memos: List[Memo] = field(default_factory=list)
    sleep_logs: List[SleepLog] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return bool(self.todos or self.goals or self.memos or self.sleep_logs)


@dataclass
class MonthStats:
    todos: int = 0
    goals: int = 0
    memos: int = 0
    sleep_logs: int = 0


def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def _on(value: Optional[datetime], day: date) -> bool:
    return value is not None and value.date() == day


def _in_month(value: Optional[datetime], reference: date) -> bool:
    return (value is not None and value.year == reference.year
            and value.month == reference.month)


def month_grid(reference: Union[date, datetime]) -> List[date]:
    """42 consecutive days starting on the Sunday on/before the 1st."""
    first = _as_date(reference).replace(day=1)
    # weekday(): Monday=0 … Sunday=6
    start = first - timedelta(days=(first.weekday() + 1) % 7)
    return [start + timedelta(days=i) for i in range(GRID_DAYS)]


def shift_month(reference: Union[date, datetime], delta: int) -> date:
    """First day of the month ``delta`` months away."""
    ref = _as_date(reference)
    index = ref.year * 12 + (ref.month - 1) + delta
    return date(index // 12, index % 12 + 1, 1)


def day_data(day: Union[date, datetime],
             todos: Iterable[Todo] = (),
             goals: Iterable[Goal] = (),
             memos: Iterable[Memo] = (),
             sleep_logs: Iterable[SleepLog] = ()) -> DayData:
    d = _as_date(day)
    return DayData(
        day=d,
        todos=[t for t in todos if _on(t.created_at, d) or _on(t.due_date, d)],
        goals=[g for g in goals if _on(g.created_at, d) or _on(g.due_date, d)],
        memos=[m for m in memos if _on(m.created_at, d)],
        sleep_logs=[s for s in sleep_logs if _on(s.start_time, d)],
    )


def month_stats(reference: Union[date, datetime],
                todos: Iterable[Todo] = (),
                goals: Iterable[Goal] = (),
                memos: Iterable[Memo] = (),
                sleep_logs: Iterable[SleepLog] = ()) -> MonthStats:
    """Records created in the month; sleep counts finished sessions only."""
    ref = _as_date(reference)
    return MonthStats(
        todos=sum(1 for t in todos if _in_month(t.created_at, ref)),
        goals=sum(1 for g in goals if _in_month(g.created_at, ref)),
        memos=sum(1 for m in memos if _in_month(m.created_at, ref)),
        sleep_logs=sum(1 for s in sleep_logs
                       if not s.is_active and _in_month(s.start_time, ref)),
    )
