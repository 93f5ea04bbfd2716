"""
Calendar Widget — six-week month grid with a details panel for the
selected day. Days that have any record get a dot.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, List, Optional

from PySide6.QtCore import Slot
from PySide6.QtWidgets import (
    QGridLayout, QHBoxLayout, QLabel, QListWidget, QPushButton, QVBoxLayout,
    QWidget,
)

from src.controllers.calendar_controller import CalendarController
from src.services.app_session import AppSession
from src.services.formatting import (
    format_date, format_duration, format_month_year, format_time,
)
from src.ui.components import (
    BORDER, DIM, HOVER, MUTED, SURFACE, TEXT, MetricCard, SectionHeader,
)

logger = logging.getLogger(__name__)

_WEEKDAYS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
_ACCENT = "#58C4DD"
_WEEKEND = "#FC6255"


class DayCell(QPushButton):

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.day: Optional[date] = None
        self.setMinimumSize(44, 40)

    def set_day(self, day: date, in_month: bool, is_today: bool,
                is_selected: bool, has_data: bool) -> None:
        self.day = day
        self.setText(f"{day.day}\n•" if has_data else f"{day.day}\n ")
        if not in_month:
            color = DIM
        elif day.weekday() in (5, 6):
            color = _WEEKEND
        else:
            color = TEXT
        background = _ACCENT if is_selected else (HOVER if is_today else SURFACE)
        if is_selected:
            color = SURFACE
        border = _ACCENT if is_today else BORDER
        self.setStyleSheet(f"""
            QPushButton {{
                background-color: {background}; color: {color};
                border: 1px solid {border}; border-radius: 6px;
                padding: 2px; font-size: 12px;
            }}
            QPushButton:hover {{ border-color: {_ACCENT}; }}
        """)


class CalendarWidget(QWidget):

    def __init__(self, session: AppSession, alert: Callable[[str, str], None],
                 parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.controller = CalendarController(session, on_change=self.render, alert=alert)
        self._cells: List[DayCell] = []
        self._setup_ui()

    def start(self) -> None:
        self.controller.start()
        self.render()

    def stop(self) -> None:
        self.controller.stop()

    # ── UI Construction ─────────────────────────────────────────────────

    def _setup_ui(self) -> None:
        layout = QHBoxLayout(self)
        layout.setContentsMargins(20, 16, 20, 20)
        layout.setSpacing(20)

        left = QVBoxLayout()
        nav = QHBoxLayout()
        prev_btn = QPushButton("<")
        prev_btn.clicked.connect(self.controller.previous_month)
        next_btn = QPushButton(">")
        next_btn.clicked.connect(self.controller.next_month)
        today_btn = QPushButton("today")
        today_btn.setObjectName("flat")
        today_btn.clicked.connect(self.controller.go_to_today)
        self.month_label = QLabel()
        self.month_label.setObjectName("title")
        nav.addWidget(prev_btn)
        nav.addStretch()
        nav.addWidget(self.month_label)
        nav.addStretch()
        nav.addWidget(today_btn)
        nav.addWidget(next_btn)
        left.addLayout(nav)

        grid = QGridLayout()
        grid.setSpacing(4)
        for col, name in enumerate(_WEEKDAYS):
            lbl = QLabel(name)
            lbl.setStyleSheet(f"color: {_WEEKEND if col in (0, 6) else MUTED}; font-size: 11px;")
            grid.addWidget(lbl, 0, col)
        for i in range(42):
            cell = DayCell()
            cell.clicked.connect(self._on_cell_clicked)
            grid.addWidget(cell, 1 + i // 7, i % 7)
            self._cells.append(cell)
        left.addLayout(grid)

        left.addWidget(SectionHeader("this month"))
        stats = QHBoxLayout()
        self.card_todos = MetricCard("todos", "#58C4DD")
        self.card_goals = MetricCard("goals", "#83C167")
        self.card_memos = MetricCard("memos", "#5CD0B3")
        self.card_sleep = MetricCard("sleeps", "#9A72AC")
        for c in (self.card_todos, self.card_goals, self.card_memos, self.card_sleep):
            stats.addWidget(c)
        left.addLayout(stats)
        left.addStretch()
        layout.addLayout(left, 3)

        right = QVBoxLayout()
        self.day_header = SectionHeader("")
        right.addWidget(self.day_header)
        self.day_list = QListWidget()
        right.addWidget(self.day_list)
        layout.addLayout(right, 2)

    # ── Rendering ───────────────────────────────────────────────────────

    def render(self) -> None:
        c = self.controller
        self.month_label.setText(format_month_year(c.current_month))
        today = c.today
        for cell, day in zip(self._cells, c.grid()):
            cell.set_day(day, c.in_current_month(day), day == today,
                         day == c.selected_date, c.day_data(day).has_data)

        stats = c.month_stats()
        self.card_todos.set_value(stats.todos)
        self.card_goals.set_value(stats.goals)
        self.card_memos.set_value(stats.memos)
        self.card_sleep.set_value(stats.sleep_logs)

        self._render_day()

    def _render_day(self) -> None:
        data = self.controller.day_data()
        self.day_header.set_text(format_date(data.day))
        self.day_list.clear()
        if not data.has_data:
            self.day_list.addItem("No records on this day.")
            return
        for t in data.todos:
            self.day_list.addItem(f"todo  ·  {t.text}  ({t.status})")
        for g in data.goals:
            kind = "due" if g.due_date and g.due_date.date() == data.day else "created"
            self.day_list.addItem(f"goal  ·  {g.title}  ({kind})")
        for m in data.memos:
            self.day_list.addItem(f"memo  ·  {m.text}")
        for s in data.sleep_logs:
            if s.is_active:
                self.day_list.addItem(f"sleep  ·  since {format_time(s.start_time)}")
            else:
                self.day_list.addItem(
                    f"sleep  ·  {format_time(s.start_time)} - {format_time(s.end_time)}"
                    f"  ({format_duration(s.duration)})"
                )

    @Slot()
    def _on_cell_clicked(self) -> None:
        cell = self.sender()
        if isinstance(cell, DayCell) and cell.day is not None:
            self.controller.select(cell.day)
