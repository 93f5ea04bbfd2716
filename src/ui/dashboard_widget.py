"""
Dashboard Widget — today at a glance.

Metric cards, the memory pools, the todo list with add/complete/delete,
the sleep toggle and a sleep history chart. All numbers come from
DashboardController.state(); this widget only renders.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from PySide6.QtCore import Qt, QTimer, Slot
from PySide6.QtWidgets import (
    QHBoxLayout, QLabel, QLineEdit, QListWidget, QListWidgetItem,
    QPushButton, QScrollArea, QVBoxLayout, QWidget,
)

from src.controllers.dashboard_controller import DashboardController, DashboardState
from src.services.app_session import AppSession
from src.services.formatting import format_date, format_duration, format_time
from src.ui import plot_backend
from src.ui.components import (
    BG, BORDER, MUTED, ChartSlot, MemoryBarWidget, MetricCard, SectionHeader,
    muted_label,
)

logger = logging.getLogger(__name__)


class DashboardWidget(QWidget):

    def __init__(self, session: AppSession, alert: Callable[[str, str], None],
                 refresh_interval_ms: int = 60000,
                 parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.controller = DashboardController(session, on_change=self.render, alert=alert)
        self._bar_widgets: List[MemoryBarWidget] = []
        self._setup_ui()

        # growth is only projected, so re-render on a timer
        self._projection_timer = QTimer(self)
        self._projection_timer.timeout.connect(self._on_tick)
        self._projection_timer.setInterval(refresh_interval_ms)

    def start(self) -> None:
        self.controller.start()
        self._projection_timer.start()
        self.render()

    def stop(self) -> None:
        self._projection_timer.stop()
        self.controller.stop()

    # ── UI Construction ─────────────────────────────────────────────────

    def _setup_ui(self) -> None:
        outer = QVBoxLayout(self)
        outer.setContentsMargins(0, 0, 0, 0)

        header = QWidget()
        header.setStyleSheet(f"background-color: {BG}; border-bottom: 1px solid {BORDER};")
        header.setFixedHeight(46)
        hl = QHBoxLayout(header)
        hl.setContentsMargins(24, 0, 24, 0)
        title = QLabel("dashboard")
        title.setStyleSheet(
            f"font-size: 13px; font-weight: 600; color: {MUTED}; letter-spacing: 1.5px;"
        )
        hl.addWidget(title)
        hl.addStretch()
        outer.addWidget(header)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        content = QWidget()
        cl = QVBoxLayout(content)
        cl.setContentsMargins(24, 20, 24, 24)
        cl.setSpacing(12)

        # ── Overview ──────────────────────────────────────────────
        cl.addWidget(SectionHeader("overview"))
        cards = QHBoxLayout()
        cards.setSpacing(8)
        self.card_todos = MetricCard("active todos", "#58C4DD")
        self.card_goals = MetricCard("active goals", "#83C167")
        self.card_counts = MetricCard("total counts", "#F4D345",
                                      "Sum of every counter.")
        self.card_sleep = MetricCard("last sleep", "#9A72AC",
                                     "Whole hours of the most recent finished sleep.")
        self.card_avg_sleep = MetricCard("avg sleep (7)", "#E48D9E",
                                         "Average of the last seven finished sleeps.")
        self.card_memos = MetricCard("memos", "#5CD0B3")
        for c in (self.card_todos, self.card_goals, self.card_counts,
                  self.card_sleep, self.card_avg_sleep, self.card_memos):
            cards.addWidget(c)
        cl.addLayout(cards)

        # ── Memory ────────────────────────────────────────────────
        cl.addWidget(SectionHeader("memory"))
        self.bars_layout = QVBoxLayout()
        cl.addLayout(self.bars_layout)
        self.memory_empty = muted_label("No memory spaces.")
        cl.addWidget(self.memory_empty)

        # ── Todos ─────────────────────────────────────────────────
        self.todo_header = SectionHeader("todos")
        cl.addWidget(self.todo_header)
        add_row = QHBoxLayout()
        self.todo_input = QLineEdit()
        self.todo_input.setPlaceholderText("Add a new todo...")
        self.todo_input.returnPressed.connect(self._on_add_todo)
        add_btn = QPushButton("add")
        add_btn.setObjectName("primary")
        add_btn.clicked.connect(self._on_add_todo)
        add_row.addWidget(self.todo_input)
        add_row.addWidget(add_btn)
        cl.addLayout(add_row)

        self.todo_list = QListWidget()
        self.todo_list.setMinimumHeight(180)
        self.todo_list.itemDoubleClicked.connect(self._on_todo_double_clicked)
        cl.addWidget(self.todo_list)

        todo_btns = QHBoxLayout()
        self.btn_complete = QPushButton("complete")
        self.btn_complete.setObjectName("success")
        self.btn_complete.clicked.connect(self._on_complete_todo)
        self.btn_delete = QPushButton("delete")
        self.btn_delete.setObjectName("danger")
        self.btn_delete.clicked.connect(self._on_delete_todo)
        todo_btns.addStretch()
        todo_btns.addWidget(self.btn_complete)
        todo_btns.addWidget(self.btn_delete)
        cl.addLayout(todo_btns)
        self.completed_label = muted_label()
        cl.addWidget(self.completed_label)

        # ── Sleep ─────────────────────────────────────────────────
        cl.addWidget(SectionHeader("sleep"))
        sleep_row = QHBoxLayout()
        self.sleep_status = QLabel("Not sleeping")
        self.sleep_status.setObjectName("timer")
        self.btn_sleep = QPushButton("start sleep")
        self.btn_sleep.setObjectName("primary")
        self.btn_sleep.setMinimumHeight(40)
        self.btn_sleep.clicked.connect(self._on_toggle_sleep)
        sleep_row.addWidget(self.sleep_status)
        sleep_row.addStretch()
        sleep_row.addWidget(self.btn_sleep)
        cl.addLayout(sleep_row)

        charts = QHBoxLayout()
        charts.setSpacing(10)
        self.chart_sleep = ChartSlot()
        self.chart_memory = ChartSlot()
        charts.addWidget(self.chart_sleep)
        charts.addWidget(self.chart_memory)
        cl.addLayout(charts)

        cl.addStretch()
        scroll.setWidget(content)
        outer.addWidget(scroll)

    # ── Rendering ───────────────────────────────────────────────────────

    def render(self) -> None:
        state = self.controller.state()
        self.card_todos.set_value(len(state.active_todos))
        self.card_goals.set_value(len(state.active_goals))
        self.card_counts.set_value(state.total_counts)
        self.card_sleep.set_value(state.recent_sleep_hours, suffix="h")
        self.card_avg_sleep.set_value(state.average_sleep_hours or None, "{:.1f}", "h")
        self.card_memos.set_value(state.memo_count)

        self._render_memory(state)
        self._render_todos(state)
        self._render_sleep(state)

    def _render_memory(self, state: DashboardState) -> None:
        while len(self._bar_widgets) < len(state.memory_bars):
            widget = MemoryBarWidget()
            self.bars_layout.addWidget(widget)
            self._bar_widgets.append(widget)
        for widget, bar in zip(self._bar_widgets, state.memory_bars):
            widget.set_bar(bar)
            widget.show()
        for widget in self._bar_widgets[len(state.memory_bars):]:
            widget.hide()
        self.memory_empty.setVisible(not state.memory_bars)
        self.chart_memory.set_chart(plot_backend.plot_memory_usage(state.memory_bars))

    def _render_todos(self, state: DashboardState) -> None:
        self.todo_header.set_text(f"todos ({len(state.active_todos)})")
        selected = self._selected_todo_id()
        self.todo_list.clear()
        for todo in state.active_todos:
            due = format_date(todo.due_date) if todo.has_deadline else "no deadline"
            item = QListWidgetItem(f"{todo.text}    ·  {todo.status}  ·  {due}")
            item.setData(Qt.ItemDataRole.UserRole, todo.id)
            self.todo_list.addItem(item)
            if todo.id == selected:
                self.todo_list.setCurrentItem(item)
        if not state.active_todos:
            placeholder = QListWidgetItem("Nothing to do. Add a todo above.")
            placeholder.setFlags(Qt.ItemFlag.NoItemFlags)
            self.todo_list.addItem(placeholder)
        self.completed_label.setText(
            f"{len(state.completed_todos)} completed, {state.completed_today} today"
        )

    def _render_sleep(self, state: DashboardState) -> None:
        active = state.active_sleep
        if active:
            elapsed = self.controller.session.sleep.elapsed_minutes(active, self.controller.now)
            self.sleep_status.setText(
                f"Sleeping since {format_time(active.start_time)}  ({format_duration(elapsed)})"
            )
            self.btn_sleep.setText("wake up")
            self.btn_sleep.setObjectName("danger")
        else:
            self.sleep_status.setText("Not sleeping")
            self.btn_sleep.setText("start sleep")
            self.btn_sleep.setObjectName("primary")
        self.btn_sleep.style().unpolish(self.btn_sleep)
        self.btn_sleep.style().polish(self.btn_sleep)
        self.chart_sleep.set_chart(plot_backend.plot_sleep_history(self.controller.sleep_logs))

    # ── Actions ─────────────────────────────────────────────────────────

    def _selected_todo_id(self) -> Optional[str]:
        item = self.todo_list.currentItem()
        return item.data(Qt.ItemDataRole.UserRole) if item else None

    @Slot()
    def _on_add_todo(self) -> None:
        if self.controller.add_todo(self.todo_input.text()):
            self.todo_input.clear()

    @Slot()
    def _on_complete_todo(self) -> None:
        todo_id = self._selected_todo_id()
        if todo_id:
            self.controller.complete_todo(todo_id)

    @Slot()
    def _on_delete_todo(self) -> None:
        todo_id = self._selected_todo_id()
        if todo_id:
            self.controller.delete_todo(todo_id)

    @Slot(QListWidgetItem)
    def _on_todo_double_clicked(self, item: QListWidgetItem) -> None:
        todo_id = item.data(Qt.ItemDataRole.UserRole)
        if todo_id:
            self.controller.complete_todo(todo_id)

    @Slot()
    def _on_toggle_sleep(self) -> None:
        self.controller.toggle_sleep()

    @Slot()
    def _on_tick(self) -> None:
        self.controller.refresh_projection()
