"""
Memory Service — the memory-pool simulation behind open todos.

Each todo in 'process' status owns a Process that occupies a fixed amount of
the primary pool. Completing or deleting the todo frees exactly that amount.
Processes "grow" over time, but the growth is only projected for display and
never written back.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from src.config import MemorySettings
from src.data.models import MemorySpace, Process
from src.data.repository import MemorySpaceRepository, ProcessRepository
from src.data.store import Subscription
from src.data.timestamps import hours_between

logger = logging.getLogger(__name__)


class MemorySpaceNotFoundError(RuntimeError):
    """The primary pool has not been initialized for this user."""


class MemoryService:
    """Keeps pool usage in step with the set of live processes."""

    def __init__(self, spaces: MemorySpaceRepository, processes: ProcessRepository,
                 settings: Optional[MemorySettings] = None,
                 clock: Callable[[], datetime] = datetime.now) -> None:
        self.spaces = spaces
        self.processes = processes
        self.settings = settings or MemorySettings()
        self.clock = clock

    # ── Pools ───────────────────────────────────────────────────────────────

    def initialize_spaces(self, user_id: str) -> None:
        """Create the two default pools when the user has none. Idempotent."""
        if not self.spaces.store.available:
            logger.info("Initializing memory spaces in offline mode for user %s", user_id)
            return
        if self.spaces.list(user_id):
            logger.info("Memory spaces already exist")
            return
        s = self.settings
        self.spaces.add(user_id, s.primary_name, s.primary_capacity)
        self.spaces.add(user_id, s.secondary_name, s.secondary_capacity)
        logger.info("Initial memory spaces created - %s: %s, %s: %s",
                    s.primary_name, s.primary_capacity,
                    s.secondary_name, s.secondary_capacity)

    # ── Processes ───────────────────────────────────────────────────────────

    def create_process(self, user_id: str, todo_id: str) -> Optional[str]:
        """
        Allocate a process for ``todo_id`` in the primary pool.

        Usage is increased by the process size and may exceed the pool's
        capacity; ``is_full`` just reports it.
        """
        if not self.spaces.store.available:
            logger.info("Creating process in offline mode for todo %s", todo_id)
            return None
        space = self.spaces.find_by_name(user_id, self.settings.primary_name)
        if space is None:
            raise MemorySpaceNotFoundError(
                f"Memory space '{self.settings.primary_name}' not found"
            )

        size = self.settings.process_size
        process_id = self.processes.add(user_id, todo_id, space.id,
                                        size, self.settings.growth_rate)
        used = space.memory.used_capacity + size
        self.spaces.set_usage(user_id, space.id, used,
                              used >= space.memory.total_capacity)
        logger.info("Process %s created for todo %s - size %s", process_id, todo_id, size)
        return process_id

    def delete_process_by_todo(self, user_id: str, todo_id: str) -> bool:
        """Free the todo's process. Returns False when it had none."""
        if not self.processes.store.available:
            logger.info("Deleting process in offline mode for todo %s", todo_id)
            return False
        process = self.processes.find_by_todo(user_id, todo_id)
        if process is None:
            return False

        space = self.spaces.get(user_id, process.memory_space_id)
        if space is not None:
            used = max(0, space.memory.used_capacity - process.size)
            self.spaces.set_usage(user_id, space.id, used,
                                  used >= space.memory.total_capacity)
        self.processes.delete(user_id, process.id)
        logger.info("Process %s deleted", process.id)
        return True

    def has_process(self, user_id: str, todo_id: str) -> bool:
        return self.processes.find_by_todo(user_id, todo_id) is not None

    # ── Projection ──────────────────────────────────────────────────────────

    @staticmethod
    def current_size(process: Process, now: datetime) -> float:
        """Stored size plus growth since ``last_updated``. Never below size."""
        if process.last_updated is None:
            return process.size
        growth = hours_between(now, process.last_updated) * process.growth_rate
        return process.size + max(0.0, growth)

    @classmethod
    def project_usage(cls, space: MemorySpace, processes: Iterable[Process],
                      now: datetime) -> float:
        """Persisted usage plus the growth of every process in ``space``."""
        growth = sum(cls.current_size(p, now) - p.size
                     for p in processes if p.memory_space_id == space.id)
        return space.memory.used_capacity + growth

    # ── Subscriptions ───────────────────────────────────────────────────────

    def subscribe_spaces(self, user_id: str,
                         callback: Callable[[List[MemorySpace]], None]) -> Subscription:
        return self.spaces.subscribe(user_id, callback)

    def subscribe_processes(self, user_id: str,
                            callback: Callable[[List[Process]], None]) -> Subscription:
        return self.processes.subscribe(user_id, callback)


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Gamifies open todos: every todo you're working on takes 10 units of a
#   100-unit "memory" pool. Finish it and the memory is freed.
#
# Key pieces:
#   - create_process(): adds the process and bumps usedCapacity. There is no
#     clamp, so twelve open todos read 120/100 and is_full stays True.
#   - delete_process_by_todo(): subtracts exactly the stored size, floored
#     at zero, then removes the process.
#   - current_size(): pure function of (process, now). The dashboard calls
#     it on a timer to animate growth without writing anything.
#
# Interviewer-friendly talking points:
#   1. Read-then-write without a transaction: two quick completions could
#      lose an update. Acceptable for a single-user app.
#   2. Keeping projection out of storage means the stored numbers only
#      change on user actions, which keeps them easy to reason about.
