"""
Login Dialog — the sign-in screen.

There is only one identity, so "Continue" always succeeds; the dialog
exists so the app has the same entry flow it would with a real provider.
"""

from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import Qt, Slot
from PySide6.QtWidgets import QDialog, QLabel, QPushButton, QVBoxLayout, QWidget

from src.services.auth_service import AuthService

logger = logging.getLogger(__name__)


class LoginDialog(QDialog):

    def __init__(self, auth: AuthService, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.auth = auth
        self.setWindowTitle("MemoryTodo - Sign in")
        self.setMinimumWidth(360)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(32, 32, 32, 32)
        layout.setSpacing(14)

        title = QLabel("MemoryTodo")
        title.setObjectName("title")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(title)

        subtitle = QLabel("Todos, goals, counters, memos and sleep in one place.")
        subtitle.setObjectName("subtitle")
        subtitle.setAlignment(Qt.AlignmentFlag.AlignCenter)
        subtitle.setWordWrap(True)
        layout.addWidget(subtitle)

        self.login_btn = QPushButton("Continue with Google")
        self.login_btn.setObjectName("primary")
        self.login_btn.setMinimumHeight(40)
        self.login_btn.clicked.connect(self._on_login)
        layout.addWidget(self.login_btn)

    @Slot()
    def _on_login(self) -> None:
        user = self.auth.login()
        logger.info("Signed in as %s", user.email)
        self.accept()
