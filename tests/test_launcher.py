"""Tests for the login -> main window -> logout cycle."""

import os
import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtWidgets import QApplication, QDialog, QMessageBox

import main
from src.config import AppConfig
from src.data.models import User
from src.services.auth_service import AuthService
from src.ui.main_window import MainWindow

USER = User(id="u1", email="dummy.user@gmail.com", display_name="Dummy User")


class FakeSignal:
    def __init__(self) -> None:
        self.slots = []

    def connect(self, slot) -> None:
        self.slots.append(slot)

    def emit(self) -> None:
        for slot in list(self.slots):
            slot()


class FakeWindow:
    def __init__(self, config, auth) -> None:
        self.logged_out = FakeSignal()
        self.closed = FakeSignal()
        self.shown = False
        self.deleted = False

    def show(self) -> None:
        self.shown = True

    def deleteLater(self) -> None:
        self.deleted = True


class FakeApp:
    def __init__(self) -> None:
        self.quit_called = False

    def quit(self) -> None:
        self.quit_called = True


@pytest.fixture
def dialog_results(monkeypatch):
    """Queue of exec() results for successive login dialogs."""
    results = []

    class FakeDialog:
        def __init__(self, auth) -> None:
            pass

        def exec(self):
            return results.pop(0)

    monkeypatch.setattr(main, "LoginDialog", FakeDialog)
    monkeypatch.setattr(main, "MainWindow", FakeWindow)
    return results


@pytest.fixture
def qapp():
    return QApplication.instance() or QApplication([])


class TestLauncher:
    def test_cancelled_login_quits(self, dialog_results):
        app = FakeApp()
        dialog_results.append(QDialog.DialogCode.Rejected)
        launcher = main.Launcher(app, AppConfig({"db_path": ":memory:"}), AuthService(USER))
        launcher.show_login()
        assert launcher.windows == []
        assert app.quit_called

    def test_logout_drops_old_window(self, dialog_results):
        accepted = QDialog.DialogCode.Accepted
        dialog_results.extend([accepted, accepted, accepted])
        launcher = main.Launcher(FakeApp(), AppConfig({"db_path": ":memory:"}),
                                 AuthService(USER))
        launcher.show_login()
        first = launcher.windows[0]

        first.logged_out.emit()
        assert first.deleted
        assert len(launcher.windows) == 1
        second = launcher.windows[0]
        assert second is not first and second.shown

        second.logged_out.emit()
        assert len(launcher.windows) == 1


class TestMainWindowLogout:
    def test_hidden_before_logged_out(self, qapp, monkeypatch):
        monkeypatch.setattr(QMessageBox, "question",
                            staticmethod(lambda *a, **k: QMessageBox.StandardButton.Yes))
        auth = AuthService(USER)
        window = MainWindow(AppConfig({"db_path": ":memory:"}), auth)
        window.show()

        visible_at_emit = []
        window.logged_out.connect(lambda: visible_at_emit.append(window.isVisible()))
        window._on_logout()

        assert visible_at_emit == [False]
        assert not auth.is_logged_in
        assert not window.session.is_open
        window.deleteLater()
