"""
Sleep Service — start/end lifecycle of a sleep session.

At most one log is active per user. start() while a session is already
running hands back the running one instead of opening a second.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional

from src.data.models import SleepLog
from src.data.repository import SleepLogRepository
from src.data.store import StoreError, Subscription
from src.data.timestamps import minutes_between

logger = logging.getLogger(__name__)


class SleepState:
    IDLE = "idle"
    ACTIVE = "active"


class SleepService:
    """
    Manages sleep sessions. State transitions:
        idle → active (start) → idle (end)
    """

    def __init__(self, repo: SleepLogRepository,
                 clock: Callable[[], datetime] = datetime.now) -> None:
        self.repo = repo
        self.clock = clock

    # ── Lifecycle ───────────────────────────────────────────────────────────

    def start(self, user_id: str) -> Optional[str]:
        active = self.get_active(user_id)
        if active is not None:
            logger.info("Sleep %s already active", active.id)
            return active.id
        sleep_id = self.repo.create_active(user_id, self.clock())
        logger.info("Sleep started with ID: %s", sleep_id)
        return sleep_id

    def end(self, user_id: str, sleep_id: str) -> Optional[SleepLog]:
        """Close the session. Duration is whole minutes, rounded."""
        if not self.repo.store.available:
            logger.info("Ending sleep in offline mode: %s", sleep_id)
            return None
        log = self.repo.get(user_id, sleep_id)
        if log is None:
            raise RuntimeError(f"Sleep log {sleep_id} not found.")
        if not log.is_active:
            raise RuntimeError(f"Sleep log {sleep_id} is not active.")

        end_time = self.clock()
        duration = round(minutes_between(end_time, log.start_time))
        self.repo.update(user_id, sleep_id, {
            "end_time": end_time, "duration": duration, "is_active": False,
        })
        log.end_time = end_time
        log.duration = duration
        log.is_active = False
        logger.info("Sleep ended. Duration: %d minutes", duration)
        return log

    def delete(self, user_id: str, sleep_id: str) -> None:
        self.repo.delete(user_id, sleep_id)

    # ── Queries ─────────────────────────────────────────────────────────────

    def get_active(self, user_id: str) -> Optional[SleepLog]:
        try:
            return self.repo.find_active(user_id)
        except StoreError:
            logger.exception("Error getting active sleep")
            return None

    def state(self, user_id: str) -> str:
        return SleepState.ACTIVE if self.get_active(user_id) else SleepState.IDLE

    def elapsed_minutes(self, log: SleepLog, now: Optional[datetime] = None) -> float:
        """Minutes slept so far (or in total, once ended)."""
        if log.start_time is None:
            return 0.0
        end = log.end_time or now or self.clock()
        return max(0.0, minutes_between(end, log.start_time))

    def subscribe(self, user_id: str, callback: Callable[[List[SleepLog]], None]) -> Subscription:
        return self.repo.subscribe(user_id, callback)


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Tracks "I'm going to sleep" / "I woke up". A tiny two-state machine
#   whose state lives in the store (isActive), not in memory, so it survives
#   a restart.
#
# Key pieces:
#   - start(): idempotent; a second tap returns the running session.
#   - end(): refuses unknown or already-ended logs with RuntimeError, the
#     same way the UI's other state machines refuse invalid transitions.
#   - clock injection: tests pass a fake clock to get exact durations.
#
# Interviewer-friendly talking points:
#   1. State derived from data instead of a field on the service: no risk of
#      the in-memory flag and the store disagreeing.
#   2. round() vs floor(): a 7h59m30s night reads as 8h, which is what a
#      person expects from a sleep tracker.
