"""
MemoryTodo — todos, goals, counters, memos and sleep on the desktop.
Entry point for the application.
"""

import faulthandler
import logging
import sys
from pathlib import Path
from typing import List

faulthandler.enable()

# Ensure src is importable
sys.path.insert(0, str(Path(__file__).resolve().parent))

from PySide6.QtWidgets import QApplication, QDialog

from src.config import AppConfig
from src.services.auth_service import AuthService
from src.ui.login_widget import LoginDialog
from src.ui.main_window import MainWindow
from src.ui.styles import DARK_STYLESHEET


def setup_logging(config: AppConfig) -> None:
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(config.log_file, encoding="utf-8"),
        ],
    )


class Launcher:
    """Login dialog -> main window, and back to login after logout."""

    def __init__(self, app: QApplication, config: AppConfig, auth: AuthService) -> None:
        self.app = app
        self.config = config
        self.auth = auth
        self.windows: List[MainWindow] = []

    def show_login(self) -> None:
        if LoginDialog(self.auth).exec() != QDialog.DialogCode.Accepted:
            self.app.quit()
            return
        window = MainWindow(self.config, self.auth)
        window.logged_out.connect(lambda: self.on_logged_out(window))
        window.closed.connect(self.app.quit)
        self.windows.append(window)
        window.show()

    def on_logged_out(self, window: MainWindow) -> None:
        # at most one window alive at a time
        if window in self.windows:
            self.windows.remove(window)
        window.deleteLater()
        self.show_login()


def main() -> None:
    config = AppConfig.load()
    setup_logging(config)
    logger = logging.getLogger(__name__)
    logger.info("Starting MemoryTodo...")

    app = QApplication(sys.argv)
    app.setApplicationName("MemoryTodo")
    app.setOrganizationName("MemoryTodo")
    app.setStyleSheet(DARK_STYLESHEET)
    app.setQuitOnLastWindowClosed(False)

    launcher = Launcher(app, config, AuthService(config.user, logged_in=False))
    launcher.show_login()
    if not launcher.windows:
        logger.info("Login cancelled.")
        return

    logger.info("Application started.")
    sys.exit(app.exec())


if __name__ == "__main__":
    main()


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   The entry point. Loads config/app.json, sets up logging, creates the Qt
#   application, shows the login dialog and then the main window.
#
# Key points:
#   - setup_logging(): console for development, file for user reports.
#     Level and file name come from the config.
#   - Launcher.show_login(): runs again after logout, so sign-out returns to the
#     login screen instead of exiting. The old window is deleted first.
#   - app.exec(): starts the Qt event loop; store snapshots are delivered
#     on it.
