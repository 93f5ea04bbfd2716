"""
Main Window — the central hub of MemoryTodo.

Contains:
  - Tab navigation to Dashboard, Records, Calendar
  - The AppSession for the signed-in user
  - Alerts (QMessageBox) for every controller
"""

from __future__ import annotations

import logging
from typing import Callable

from PySide6.QtCore import QTimer, Signal, Slot
from PySide6.QtGui import QAction, QCloseEvent
from PySide6.QtWidgets import QLabel, QMainWindow, QMessageBox, QTabWidget

from src.config import AppConfig
from src.services.app_session import AppSession
from src.services.auth_service import AuthService
from src.ui.calendar_widget import CalendarWidget
from src.ui.dashboard_widget import DashboardWidget
from src.ui.record_widget import RecordWidget

logger = logging.getLogger(__name__)


def qt_dispatch(fn: Callable[[], None]) -> None:
    """Deliver store snapshots on the Qt event loop."""
    QTimer.singleShot(0, fn)


class MainWindow(QMainWindow):
    """The main application window. Owns the session until logout."""

    logged_out = Signal()
    closed = Signal()

    def __init__(self, config: AppConfig, auth: AuthService) -> None:
        super().__init__()
        self.config = config
        self.auth = auth
        self.setWindowTitle("MemoryTodo")
        self.setMinimumSize(900, 650)
        self.resize(1100, 780)

        # ── Session ─────────────────────────────────────────────────────
        self.session = AppSession(config, auth.current_user, dispatch=qt_dispatch).open()

        # ── Build UI ────────────────────────────────────────────────────
        self._build_ui()
        for screen in self.screens:
            screen.start()

        if not self.session.store.available:
            self.statusBar().showMessage("Offline: changes will not be saved.")

    # ── UI Construction ─────────────────────────────────────────────────

    def _build_ui(self) -> None:
        self.tabs = QTabWidget()
        self.setCentralWidget(self.tabs)

        self.dashboard = DashboardWidget(self.session, self.show_alert,
                                         self.config.refresh_interval_ms)
        self.records = RecordWidget(self.session, self.show_alert)
        self.calendar = CalendarWidget(self.session, self.show_alert)
        self.tabs.addTab(self.dashboard, "Dashboard")
        self.tabs.addTab(self.records, "Records")
        self.tabs.addTab(self.calendar, "Calendar")
        self.screens = [self.dashboard, self.records, self.calendar]

        user = self.session.user
        self.statusBar().addPermanentWidget(QLabel(f"{user.display_name} <{user.email}>"))

        account = self.menuBar().addMenu("Account")
        logout_action = QAction("Log out", self)
        logout_action.triggered.connect(self._on_logout)
        account.addAction(logout_action)

    # ── Alerts ──────────────────────────────────────────────────────────

    def show_alert(self, title: str, message: str) -> None:
        QMessageBox.warning(self, title, message)

    # ── Lifecycle ───────────────────────────────────────────────────────

    @Slot()
    def _on_logout(self) -> None:
        reply = QMessageBox.question(
            self, "Log out", "Log out of MemoryTodo?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
        )
        if reply != QMessageBox.StandardButton.Yes:
            return
        self._shutdown()
        self.hide()
        self.auth.logout()
        self.logged_out.emit()

    def _shutdown(self) -> None:
        for screen in self.screens:
            screen.stop()
        self.session.close()

    def closeEvent(self, event: QCloseEvent) -> None:
        if self.session.is_open:
            self._shutdown()
            self.closed.emit()
        event.accept()


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   The window you see after signing in. It opens the AppSession, builds the
#   three tabs and gives every screen the same alert function.
#
# Data flow:
#   Store write -> DocumentStore._notify -> qt_dispatch (QTimer.singleShot)
#   -> repository maps docs -> controller updates its lists -> on_change
#   -> widget.render()
#
# Interviewer-friendly talking points:
#   1. Snapshots are posted to the event loop instead of called inline, so a
#      button handler finishes before the list re-renders.
#   2. Logout tears the session down in one call: screens stop, every
#      subscription is cancelled, the database closes.
