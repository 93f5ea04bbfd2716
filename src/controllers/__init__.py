from .calendar_controller import CalendarController
from .dashboard_controller import DashboardController, DashboardState, MemoryBar
from .record_controller import RecordController

__all__ = [
    "CalendarController", "DashboardController", "DashboardState",
    "MemoryBar", "RecordController",
]
