"""
Data models for MemoryTodo.

Plain dataclasses for every record the app keeps in the document store.
Repositories map store documents (camelCase keys) to these, so the services
and screens never see raw dictionaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


class TodoStatus:
    PROCESS = "process"
    VIRTUAL = "virtual"
    DONE = "done"

    ALL = (PROCESS, VIRTUAL, DONE)


class TodoType:
    DEADLINE = "deadline"
    NO_DEADLINE = "nodeadline"
    RECURRING = "recurring"

    ALL = (DEADLINE, NO_DEADLINE, RECURRING)


@dataclass
class User:
    """The signed-in identity every repository call is scoped to."""
    id: str = ""
    email: str = ""
    display_name: str = ""


@dataclass
class Todo:
    """
    A task. ``due_date`` is None when the todo has no deadline.

    While status is 'process' the todo owns exactly one Process record.
    """
    id: Optional[str] = None
    text: str = ""
    due_date: Optional[datetime] = None
    status: str = TodoStatus.PROCESS
    type: str = TodoType.NO_DEADLINE
    recurring: int = 0          # times per week, 0 = not recurring
    stack_count: int = 0
    overdue: bool = False
    created_at: Optional[datetime] = None

    @property
    def completed(self) -> bool:
        return self.status == TodoStatus.DONE

    @property
    def has_deadline(self) -> bool:
        return self.due_date is not None


@dataclass
class Goal:
    id: Optional[str] = None
    title: str = ""
    is_achieved: bool = False
    due_date: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass
class Counter:
    """A tally for one habit, e.g. 'coffee' or 'water'. Never negative."""
    id: Optional[str] = None
    sort: str = ""
    count: int = 0
    created_at: Optional[datetime] = None


@dataclass
class Memo:
    id: Optional[str] = None
    text: str = ""
    content: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class SleepLog:
    """
    One sleep session. While active, end_time and duration are unset;
    ending the session fills both and clears the flag.
    """
    id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = None   # minutes
    is_active: bool = False


@dataclass
class Memory:
    total_capacity: float = 0.0
    used_capacity: float = 0.0
    is_full: bool = False
    last_updated: Optional[datetime] = None


@dataclass
class MemorySpace:
    """A named capacity pool ('memory' or 'hwvm')."""
    id: Optional[str] = None
    name: str = ""
    memory: Memory = field(default_factory=Memory)

    @property
    def usage_percent(self) -> int:
        total = self.memory.total_capacity
        if not total:
            return 0
        return round(self.memory.used_capacity / total * 100)


@dataclass
class Process:
    """The simulated load an open todo puts on a memory pool."""
    id: Optional[str] = None
    todo_id: str = ""
    memory_space_id: str = ""
    created_at: Optional[datetime] = None
    size: float = 0.0
    growth_rate: float = 0.0    # size units per hour
    last_updated: Optional[datetime] = None
