from .main_window import MainWindow
from .login_widget import LoginDialog
from .dashboard_widget import DashboardWidget
from .record_widget import RecordWidget
from .calendar_widget import CalendarWidget

__all__ = ["MainWindow", "LoginDialog", "DashboardWidget", "RecordWidget", "CalendarWidget"]
