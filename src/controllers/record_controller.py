"""
Record Controller — goals, counters, memos and sleep logs.

Every action validates its input first (empty text alerts and returns
False), then runs through _run() so a store failure becomes an alert
instead of an exception in the Qt event loop.
"""

from __future__ import annotations

import calendar
import logging
from datetime import datetime
from typing import Callable, List, Optional

from src.controllers.base import AlertFn, ScreenController
from src.data.models import Counter, Goal, Memo, SleepLog
from src.services.app_session import AppSession

logger = logging.getLogger(__name__)


def one_month_after(dt: datetime) -> datetime:
    """Same day next month, clamped to that month's last day."""
    year, month = (dt.year + 1, 1) if dt.month == 12 else (dt.year, dt.month + 1)
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


class RecordController(ScreenController):

    def __init__(self, session: AppSession,
                 on_change: Optional[Callable[[], None]] = None,
                 alert: Optional[AlertFn] = None) -> None:
        super().__init__(session, on_change, alert)
        self.goals: List[Goal] = []
        self.counters: List[Counter] = []
        self.memos: List[Memo] = []
        self.sleep_logs: List[SleepLog] = []

    def start(self) -> None:
        s = self.session
        self._watch(s.goals.subscribe, "goals")
        self._watch(s.counters.subscribe, "counters")
        self._watch(s.memos.subscribe, "memos")
        self._watch(s.sleep.subscribe, "sleep_logs")

    @property
    def finished_sleep_logs(self) -> List[SleepLog]:
        return [log for log in self.sleep_logs if not log.is_active]

    @property
    def active_sleep(self) -> Optional[SleepLog]:
        return next((log for log in self.sleep_logs if log.is_active), None)

    # ── Goals ───────────────────────────────────────────────────────────────

    def create_goal(self, title: str, due_date: Optional[datetime] = None) -> bool:
        if not self._require(title, "Error", "Please enter a goal title."):
            return False
        due = due_date or one_month_after(self.session.clock())
        return self._run("Failed to create goal", self.session.goals.create,
                         self.user_id, title.strip(), due)

    def toggle_goal(self, goal_id: str, is_achieved: bool) -> bool:
        """``is_achieved`` is the current value; the goal gets the opposite."""
        return self._run("Failed to update goal", self.session.goals.update_achievement,
                         self.user_id, goal_id, not is_achieved)

    def delete_goal(self, goal_id: str) -> bool:
        return self._run("Failed to delete goal", self.session.goals.delete,
                         self.user_id, goal_id)

    # ── Counters ────────────────────────────────────────────────────────────

    def create_counter(self, sort: str) -> bool:
        if not self._require(sort, "Error", "Please enter a counter name."):
            return False
        return self._run("Failed to create counter", self.session.counters.create,
                         self.user_id, sort.strip())

    def increment(self, counter_id: str) -> bool:
        return self._run("Failed to increment counter", self.session.counters.increment,
                         self.user_id, counter_id)

    def decrement(self, counter_id: str) -> bool:
        return self._run("Failed to decrement counter", self.session.counters.decrement,
                         self.user_id, counter_id)

    def delete_counter(self, counter_id: str) -> bool:
        return self._run("Failed to delete counter", self.session.counters.delete,
                         self.user_id, counter_id)

    # ── Memos ───────────────────────────────────────────────────────────────

    def create_memo(self, text: str, content: Optional[str] = None) -> bool:
        if not self._require(text, "Error", "Please enter memo text."):
            return False
        return self._run("Failed to create memo", self.session.memos.create,
                         self.user_id, text.strip(), content)

    def update_memo(self, memo_id: str, text: str) -> bool:
        if not self._require(text, "Error", "Please enter memo text."):
            return False
        return self._run("Failed to update memo", self.session.memos.update_text,
                         self.user_id, memo_id, text.strip())

    def delete_memo(self, memo_id: str) -> bool:
        return self._run("Failed to delete memo", self.session.memos.delete,
                         self.user_id, memo_id)

    # ── Sleep ───────────────────────────────────────────────────────────────

    def start_sleep(self) -> bool:
        return self._run("Failed to start sleep", self.session.sleep.start, self.user_id)

    def end_sleep(self) -> bool:
        active = self.active_sleep
        if active is None:
            self.alert("Error", "No active sleep session.")
            return False
        return self._run("Failed to end sleep", self.session.sleep.end,
                         self.user_id, active.id)

    def delete_sleep_log(self, sleep_id: str) -> bool:
        return self._run("Failed to delete sleep log", self.session.sleep.delete,
                         self.user_id, sleep_id)
