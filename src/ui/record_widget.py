"""
Record Widget — manage goals, counters, memos and sleep logs.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from PySide6.QtCore import Qt, Slot
from PySide6.QtWidgets import (
    QGridLayout, QHBoxLayout, QInputDialog, QLineEdit, QListWidget,
    QListWidgetItem, QMessageBox, QPushButton, QScrollArea, QVBoxLayout,
    QWidget,
)

from src.controllers.record_controller import RecordController
from src.services.app_session import AppSession
from src.services.formatting import format_date, format_duration, format_time
from src.ui import plot_backend
from src.ui.components import ChartSlot, SectionHeader, muted_label

logger = logging.getLogger(__name__)


def _list_widget(min_height: int = 140) -> QListWidget:
    lw = QListWidget()
    lw.setMinimumHeight(min_height)
    return lw


def _item(text: str, doc_id: str) -> QListWidgetItem:
    item = QListWidgetItem(text)
    item.setData(Qt.ItemDataRole.UserRole, doc_id)
    return item


def _selected(lw: QListWidget) -> Optional[str]:
    item = lw.currentItem()
    return item.data(Qt.ItemDataRole.UserRole) if item else None


class RecordWidget(QWidget):

    def __init__(self, session: AppSession, alert: Callable[[str, str], None],
                 parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.controller = RecordController(session, on_change=self.render, alert=alert)
        self._setup_ui()

    def start(self) -> None:
        self.controller.start()
        self.render()

    def stop(self) -> None:
        self.controller.stop()

    # ── UI Construction ─────────────────────────────────────────────────

    def _setup_ui(self) -> None:
        outer = QVBoxLayout(self)
        outer.setContentsMargins(0, 0, 0, 0)
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        outer.addWidget(scroll)

        content = QWidget()
        grid = QGridLayout(content)
        grid.setContentsMargins(20, 16, 20, 20)
        grid.setHorizontalSpacing(20)
        grid.addLayout(self._build_goals(), 0, 0)
        grid.addLayout(self._build_counters(), 0, 1)
        grid.addLayout(self._build_memos(), 1, 0)
        grid.addLayout(self._build_sleep(), 1, 1)
        scroll.setWidget(content)

    def _input_row(self, placeholder: str, on_submit: Callable[[], None]):
        row = QHBoxLayout()
        edit = QLineEdit()
        edit.setPlaceholderText(placeholder)
        edit.returnPressed.connect(on_submit)
        btn = QPushButton("add")
        btn.setObjectName("primary")
        btn.clicked.connect(on_submit)
        row.addWidget(edit)
        row.addWidget(btn)
        return row, edit

    @staticmethod
    def _button_row(*buttons) -> QHBoxLayout:
        row = QHBoxLayout()
        row.addStretch()
        for text, name, slot in buttons:
            btn = QPushButton(text)
            if name:
                btn.setObjectName(name)
            btn.clicked.connect(slot)
            row.addWidget(btn)
        return row

    def _build_goals(self) -> QVBoxLayout:
        box = QVBoxLayout()
        self.goal_header = SectionHeader("goals")
        box.addWidget(self.goal_header)
        row, self.goal_input = self._input_row("New goal (due in one month)...",
                                               self._on_create_goal)
        box.addLayout(row)
        self.goal_list = _list_widget()
        self.goal_list.itemDoubleClicked.connect(lambda _: self._on_toggle_goal())
        box.addWidget(self.goal_list)
        box.addLayout(self._button_row(
            ("achieved / reopen", "success", self._on_toggle_goal),
            ("delete", "danger", self._on_delete_goal),
        ))
        return box

    def _build_counters(self) -> QVBoxLayout:
        box = QVBoxLayout()
        self.counter_header = SectionHeader("counters")
        box.addWidget(self.counter_header)
        row, self.counter_input = self._input_row("Counter name (e.g. coffee)...",
                                                  self._on_create_counter)
        box.addLayout(row)
        self.counter_list = _list_widget(100)
        box.addWidget(self.counter_list)
        box.addLayout(self._button_row(
            ("+1", "success", self._on_increment),
            ("-1", None, self._on_decrement),
            ("delete", "danger", self._on_delete_counter),
        ))
        self.chart_counters = ChartSlot()
        box.addWidget(self.chart_counters)
        return box

    def _build_memos(self) -> QVBoxLayout:
        box = QVBoxLayout()
        self.memo_header = SectionHeader("memos")
        box.addWidget(self.memo_header)
        row, self.memo_input = self._input_row("Write a memo...", self._on_create_memo)
        box.addLayout(row)
        self.memo_list = _list_widget()
        self.memo_list.itemDoubleClicked.connect(lambda _: self._on_edit_memo())
        box.addWidget(self.memo_list)
        box.addLayout(self._button_row(
            ("edit", None, self._on_edit_memo),
            ("delete", "danger", self._on_delete_memo),
        ))
        return box

    def _build_sleep(self) -> QVBoxLayout:
        box = QVBoxLayout()
        self.sleep_header = SectionHeader("sleep logs")
        box.addWidget(self.sleep_header)
        self.sleep_status = muted_label()
        box.addWidget(self.sleep_status)
        box.addLayout(self._button_row(
            ("start sleep", "primary", self._on_start_sleep),
            ("wake up", None, self._on_end_sleep),
        ))
        self.sleep_list = _list_widget(100)
        box.addWidget(self.sleep_list)
        box.addLayout(self._button_row(("delete", "danger", self._on_delete_sleep)))
        self.chart_sleep = ChartSlot()
        box.addWidget(self.chart_sleep)
        return box

    # ── Rendering ───────────────────────────────────────────────────────

    def render(self) -> None:
        c = self.controller

        self.goal_header.set_text(f"goals ({len(c.goals)})")
        self.goal_list.clear()
        for g in c.goals:
            mark = "[x]" if g.is_achieved else "[ ]"
            self.goal_list.addItem(_item(f"{mark} {g.title}  ·  due {format_date(g.due_date)}", g.id))

        self.counter_header.set_text(f"counters ({len(c.counters)})")
        self.counter_list.clear()
        for counter in c.counters:
            self.counter_list.addItem(_item(f"{counter.sort}: {counter.count}", counter.id))
        self.chart_counters.set_chart(plot_backend.plot_counters(c.counters))

        self.memo_header.set_text(f"memos ({len(c.memos)})")
        self.memo_list.clear()
        for m in c.memos:
            self.memo_list.addItem(_item(f"{format_date(m.created_at)}  {m.text}", m.id))

        finished = c.finished_sleep_logs
        self.sleep_header.set_text(f"sleep logs ({len(finished)})")
        active = c.active_sleep
        self.sleep_status.setText(
            f"Sleeping since {format_time(active.start_time)}" if active else "Not sleeping"
        )
        self.sleep_list.clear()
        for log in finished:
            text = (f"{format_date(log.start_time)}  {format_time(log.start_time)}"
                    f" - {format_time(log.end_time)}  ·  {format_duration(log.duration)}")
            self.sleep_list.addItem(_item(text, log.id))
        self.chart_sleep.set_chart(plot_backend.plot_sleep_distribution(c.sleep_logs))

    # ── Actions ─────────────────────────────────────────────────────────

    def _confirm(self, title: str, text: str) -> bool:
        reply = QMessageBox.question(
            self, title, text,
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
        )
        return reply == QMessageBox.StandardButton.Yes

    @Slot()
    def _on_create_goal(self) -> None:
        if self.controller.create_goal(self.goal_input.text()):
            self.goal_input.clear()

    @Slot()
    def _on_toggle_goal(self) -> None:
        goal_id = _selected(self.goal_list)
        goal = next((g for g in self.controller.goals if g.id == goal_id), None)
        if goal:
            self.controller.toggle_goal(goal.id, goal.is_achieved)

    @Slot()
    def _on_delete_goal(self) -> None:
        goal_id = _selected(self.goal_list)
        if goal_id and self._confirm("Delete goal", "Delete this goal?"):
            self.controller.delete_goal(goal_id)

    @Slot()
    def _on_create_counter(self) -> None:
        if self.controller.create_counter(self.counter_input.text()):
            self.counter_input.clear()

    @Slot()
    def _on_increment(self) -> None:
        counter_id = _selected(self.counter_list)
        if counter_id:
            self.controller.increment(counter_id)

    @Slot()
    def _on_decrement(self) -> None:
        counter_id = _selected(self.counter_list)
        if counter_id:
            self.controller.decrement(counter_id)

    @Slot()
    def _on_delete_counter(self) -> None:
        counter_id = _selected(self.counter_list)
        if counter_id and self._confirm("Delete counter", "Delete this counter?"):
            self.controller.delete_counter(counter_id)

    @Slot()
    def _on_create_memo(self) -> None:
        if self.controller.create_memo(self.memo_input.text()):
            self.memo_input.clear()

    @Slot()
    def _on_edit_memo(self) -> None:
        memo_id = _selected(self.memo_list)
        memo = next((m for m in self.controller.memos if m.id == memo_id), None)
        if memo is None:
            return
        text, ok = QInputDialog.getText(self, "Edit memo", "Memo:", QLineEdit.EchoMode.Normal,
                                        memo.text)
        if ok:
            self.controller.update_memo(memo.id, text)

    @Slot()
    def _on_delete_memo(self) -> None:
        memo_id = _selected(self.memo_list)
        if memo_id and self._confirm("Delete memo", "Delete this memo?"):
            self.controller.delete_memo(memo_id)

    @Slot()
    def _on_start_sleep(self) -> None:
        self.controller.start_sleep()

    @Slot()
    def _on_end_sleep(self) -> None:
        if self._confirm("End sleep", "End the current sleep session?"):
            self.controller.end_sleep()

    @Slot()
    def _on_delete_sleep(self) -> None:
        sleep_id = _selected(self.sleep_list)
        if sleep_id and self._confirm("Delete sleep log", "Delete this sleep log?"):
            self.controller.delete_sleep_log(sleep_id)
