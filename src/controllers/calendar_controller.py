"""
Calendar Controller — month navigation and the selected day's records.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, List, Optional

from src.controllers.base import AlertFn, ScreenController
from src.data.models import Goal, Memo, SleepLog, Todo
from src.services import calendar_service
from src.services.app_session import AppSession
from src.services.calendar_service import DayData, MonthStats

logger = logging.getLogger(__name__)


class CalendarController(ScreenController):

    def __init__(self, session: AppSession,
                 on_change: Optional[Callable[[], None]] = None,
                 alert: Optional[AlertFn] = None) -> None:
        super().__init__(session, on_change, alert)
        today = session.clock().date()
        self.current_month: date = today.replace(day=1)
        self.selected_date: date = today
        self.todos: List[Todo] = []
        self.goals: List[Goal] = []
        self.memos: List[Memo] = []
        self.sleep_logs: List[SleepLog] = []

    def start(self) -> None:
        s = self.session
        self._watch(s.todo_service.subscribe, "todos")
        self._watch(s.goals.subscribe, "goals")
        self._watch(s.memos.subscribe, "memos")
        self._watch(s.sleep.subscribe, "sleep_logs")

    @property
    def today(self) -> date:
        return self.session.clock().date()

    # ── Navigation ──────────────────────────────────────────────────────────

    def previous_month(self) -> None:
        self.current_month = calendar_service.shift_month(self.current_month, -1)
        self._changed()

    def next_month(self) -> None:
        self.current_month = calendar_service.shift_month(self.current_month, 1)
        self._changed()

    def go_to_today(self) -> None:
        today = self.today
        self.current_month = today.replace(day=1)
        self.selected_date = today
        self._changed()

    def select(self, day: date) -> None:
        self.selected_date = day
        self._changed()

    # ── View state ──────────────────────────────────────────────────────────

    def grid(self) -> List[date]:
        return calendar_service.month_grid(self.current_month)

    def in_current_month(self, day: date) -> bool:
        return (day.year, day.month) == (self.current_month.year, self.current_month.month)

    def day_data(self, day: Optional[date] = None) -> DayData:
        return calendar_service.day_data(day or self.selected_date, self.todos,
                                         self.goals, self.memos, self.sleep_logs)

    def month_stats(self) -> MonthStats:
        return calendar_service.month_stats(self.current_month, self.todos,
                                            self.goals, self.memos, self.sleep_logs)
