"""
Small building blocks shared by every screen: metric cards, section
headers, chart slots and the memory-pool bar.
"""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QFrame, QHBoxLayout, QLabel, QProgressBar, QSizePolicy, QVBoxLayout,
    QWidget,
)
from PySide6.QtCharts import QChartView

from src.services.formatting import format_memory_size

# Notion dark mode palette
BG       = "#191919"
SURFACE  = "#252525"
HOVER    = "#2f2f2f"
BORDER   = "#333333"
TEXT     = "#e3e3e3"
MUTED    = "#9b9a97"
DIM      = "#5a5a5a"


class MetricCard(QFrame):
    """Neon value over a small lowercase label."""

    def __init__(self, label: str, accent: str = "#58C4DD",
                 tooltip: str = "", parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setMinimumWidth(110)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Fixed)
        self.setFixedHeight(70)
        self.setStyleSheet(f"""
            MetricCard {{
                background-color: {SURFACE};
                border-radius: 6px;
                border: 1px solid {BORDER};
            }}
            MetricCard:hover {{ background-color: {HOVER}; }}
        """)
        if tooltip:
            self.setToolTip(tooltip)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(14, 10, 14, 8)
        layout.setSpacing(2)

        self.value_label = QLabel("—")
        self.value_label.setStyleSheet(
            f"font-size: 20px; font-weight: 500; color: {accent}; background: transparent;"
        )
        self.name_label = QLabel(label.lower())
        self.name_label.setStyleSheet(
            f"font-size: 9px; color: {DIM}; background: transparent; letter-spacing: 0.5px;"
        )
        layout.addWidget(self.value_label)
        layout.addWidget(self.name_label)

    def set_value(self, value: Optional[float], fmt: str = "{:.0f}",
                  suffix: str = "") -> None:
        if value is None:
            self.value_label.setText("—")
        else:
            self.value_label.setText(fmt.format(value) + suffix)


class SectionHeader(QWidget):

    def __init__(self, text: str, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        layout = QHBoxLayout(self)
        layout.setContentsMargins(2, 16, 0, 6)
        self.label = QLabel(text.lower())
        self.label.setStyleSheet(
            f"font-size: 11px; font-weight: 600; color: {MUTED}; letter-spacing: 1px;"
        )
        layout.addWidget(self.label)
        layout.addStretch()

    def set_text(self, text: str) -> None:
        self.label.setText(text.lower())


class ChartSlot(QFrame):
    """Holds one QChartView; set_chart() swaps it on refresh."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setStyleSheet(f"""
            ChartSlot {{
                background-color: {SURFACE};
                border-radius: 8px;
                border: 1px solid {BORDER};
            }}
        """)
        self._layout = QVBoxLayout(self)
        self._layout.setContentsMargins(2, 2, 2, 2)
        self._current_view: Optional[QChartView] = None
        self.setMinimumHeight(220)

    def set_chart(self, view: QChartView) -> None:
        if self._current_view is not None:
            self._layout.removeWidget(self._current_view)
            self._current_view.deleteLater()
        self._current_view = view
        self._layout.addWidget(view)


class MemoryBarWidget(QWidget):
    """Name, usage text and a progress bar clamped at 100%."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 4, 0, 4)
        layout.setSpacing(4)

        top = QHBoxLayout()
        self.name_label = QLabel()
        self.name_label.setStyleSheet(f"font-weight: 600; color: {TEXT};")
        self.usage_label = QLabel()
        self.usage_label.setStyleSheet(f"color: {MUTED}; font-size: 11px;")
        top.addWidget(self.name_label)
        top.addStretch()
        top.addWidget(self.usage_label)
        layout.addLayout(top)

        self.bar = QProgressBar()
        self.bar.setRange(0, 1000)
        self.bar.setTextVisible(False)
        self.bar.setFixedHeight(12)
        layout.addWidget(self.bar)

    def set_bar(self, bar) -> None:
        """``bar`` is a MemoryBar from the dashboard controller."""
        self.name_label.setText(bar.name)
        text = (f"{format_memory_size(bar.projected)} / "
                f"{format_memory_size(bar.total)}  ({bar.percent}%)")
        if bar.is_full:
            text += "  FULL"
        self.usage_label.setText(text)
        self.bar.setObjectName("full" if bar.is_full else "")
        self.bar.style().unpolish(self.bar)
        self.bar.style().polish(self.bar)
        self.bar.setValue(int(bar.fill_ratio * 1000))


def muted_label(text: str = "", align: Qt.AlignmentFlag = Qt.AlignmentFlag.AlignLeft) -> QLabel:
    label = QLabel(text)
    label.setObjectName("subtitle")
    label.setAlignment(align)
    label.setWordWrap(True)
    return label
