"""
Interactive chart backend for the dashboard and records screens.

QtCharts views on the dark palette: glowing lines for sleep history, bars
for counters and memory pools, a numpy histogram for sleep length. Every
public function returns a ready QChartView.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Sequence

import numpy as np
from PySide6.QtCore import Qt, QPointF, QMargins
from PySide6.QtGui import QColor, QPen, QBrush, QFont, QPainter, QCursor
from PySide6.QtWidgets import QToolTip
from PySide6.QtCharts import (
    QChart, QChartView, QLineSeries, QScatterSeries, QAreaSeries,
    QBarSeries, QBarSet, QHorizontalBarSeries, QBarCategoryAxis,
    QValueAxis, QDateTimeAxis, QAbstractAxis,
)

from src.data.models import Counter, SleepLog

logger = logging.getLogger(__name__)

# ── Palette ─────────────────────────────────────────────────────────────────
BG        = QColor("#191919")
MUTED     = QColor("#9b9a97")
DIM       = QColor("#5a5a5a")
GRID_CLR  = QColor("#2a2a2a")
CLEAR     = QColor(0, 0, 0, 0)

BLUE   = "#58C4DD"
GREEN  = "#83C167"
RED    = "#FC6255"
GOLD   = "#F4D345"
PURPLE = "#9A72AC"

_FONT = "Segoe UI"


def _base_chart(title: str = "") -> QChart:
    chart = QChart()
    chart.setBackgroundBrush(QBrush(BG))
    chart.setBackgroundRoundness(0)
    chart.setMargins(QMargins(8, 8, 8, 8))
    if title:
        chart.setTitle(title)
        chart.setTitleFont(QFont(_FONT, 10))
        chart.setTitleBrush(QBrush(MUTED))
    chart.legend().setVisible(False)
    chart.setAnimationOptions(QChart.AnimationOption.SeriesAnimations)
    chart.setAnimationDuration(400)
    return chart


def _style_axis(axis: QAbstractAxis, grid: bool = True,
                color: QColor = DIM) -> QAbstractAxis:
    axis.setLabelsColor(color)
    axis.setLabelsFont(QFont(_FONT, 8))
    axis.setGridLineColor(GRID_CLR)
    axis.setGridLineVisible(grid)
    axis.setLineVisible(False)
    axis.setMinorGridLineVisible(False)
    return axis


def _value_axis(title: str = "") -> QValueAxis:
    axis = _style_axis(QValueAxis())
    if title:
        axis.setTitleText(title)
        axis.setTitleBrush(QBrush(DIM))
        axis.setTitleFont(QFont(_FONT, 8))
    return axis


def _date_axis(fmt: str = "MMM dd") -> QDateTimeAxis:
    axis = _style_axis(QDateTimeAxis())
    axis.setFormat(fmt)
    return axis


def _label_axis(labels: Sequence[str]) -> QBarCategoryAxis:
    axis = _style_axis(QBarCategoryAxis(), grid=False, color=MUTED)
    axis.append(list(labels))
    return axis


def _attach(chart: QChart, series, x_axis, y_axis) -> None:
    chart.addSeries(series)
    series.attachAxis(x_axis)
    series.attachAxis(y_axis)


def _glow_line(chart: QChart, points: List[QPointF], color_hex: str,
               x_axis, y_axis, width: float = 2.5) -> None:
    """Faded wide strokes under a bright core stroke."""
    base = QColor(color_hex)
    for scale, alpha in ((5.0, 15), (3.0, 35), (1.8, 70), (1.0, 255)):
        line = QLineSeries()
        line.append(points)
        color = QColor(base)
        color.setAlpha(alpha)
        pen = QPen(color, width * scale)
        pen.setCapStyle(Qt.PenCapStyle.RoundCap)
        line.setPen(pen)
        _attach(chart, line, x_axis, y_axis)


def _fill_under(chart: QChart, points: List[QPointF], color_hex: str,
                x_axis, y_axis) -> None:
    # boundary series are parented to the chart so they outlive this frame
    upper = QLineSeries(chart)
    lower = QLineSeries(chart)
    upper.append(points)
    lower.append([QPointF(p.x(), 0) for p in points])
    area = QAreaSeries(upper, lower)
    fill = QColor(color_hex)
    fill.setAlpha(20)
    area.setBrush(QBrush(fill))
    area.setPen(QPen(Qt.PenStyle.NoPen))
    _attach(chart, area, x_axis, y_axis)


def _hover_dots(chart: QChart, points: List[QPointF], labels: List[str],
                color_hex: str, x_axis, y_axis) -> None:
    for size, alpha in ((16, 40), (8, 255)):
        dots = QScatterSeries()
        dots.setMarkerSize(size)
        color = QColor(color_hex)
        color.setAlpha(alpha)
        dots.setColor(color)
        dots.setBorderColor(CLEAR)
        dots.append(points)
        _attach(chart, dots, x_axis, y_axis)

    def on_hover(point: QPointF, state: bool) -> None:
        if not state:
            return
        nearest = min(range(len(points)),
                      key=lambda i: abs(points[i].x() - point.x()) + abs(points[i].y() - point.y()))
        QToolTip.showText(QCursor.pos(), labels[nearest])

    dots.hovered.connect(on_hover)


def _bar_hover(fmt: Callable[[int, QBarSet], str]):
    def on_hover(status: bool, index: int, barset: QBarSet) -> None:
        if status:
            QToolTip.showText(QCursor.pos(), fmt(index, barset))
    return on_hover


def make_chart_view(chart: QChart) -> QChartView:
    view = QChartView(chart)
    view.setRenderHint(QPainter.RenderHint.Antialiasing)
    view.setStyleSheet("background: transparent; border: none;")
    view.setMinimumHeight(200)
    return view


def _empty(chart: QChart, title: str) -> QChartView:
    chart.setTitle(f"{title}: no data yet")
    return make_chart_view(chart)


# ── Public chart functions ──────────────────────────────────────────────────

def plot_sleep_history(sleep_logs: List[SleepLog], limit: int = 14) -> QChartView:
    """Hours slept per finished session, oldest to newest."""
    title = "sleep history"
    chart = _base_chart(title)
    finished = [log for log in sleep_logs
                if not log.is_active and log.start_time and log.duration is not None]
    if not finished:
        return _empty(chart, title)

    finished = sorted(finished, key=lambda log: log.start_time)[-limit:]
    hours = np.array([log.duration for log in finished], dtype=float) / 60.0

    x_axis = _date_axis()
    y_axis = _value_axis("hours")
    chart.addAxis(x_axis, Qt.AlignmentFlag.AlignBottom)
    chart.addAxis(y_axis, Qt.AlignmentFlag.AlignLeft)

    points = [QPointF(log.start_time.timestamp() * 1000, h)
              for log, h in zip(finished, hours)]
    labels = [f"{log.start_time.strftime('%b %d')}: {h:.1f}h"
              for log, h in zip(finished, hours)]

    _glow_line(chart, points, BLUE, x_axis, y_axis)
    _fill_under(chart, points, BLUE, x_axis, y_axis)
    _hover_dots(chart, points, labels, BLUE, x_axis, y_axis)

    if len(points) == 1:
        center = finished[0].start_time.timestamp()
        x_axis.setRange(datetime.fromtimestamp(center - 86400),
                        datetime.fromtimestamp(center + 86400))
    y_axis.setRange(0, float(hours.max()) * 1.2 + 1)
    return make_chart_view(chart)


def plot_sleep_distribution(sleep_logs: List[SleepLog]) -> QChartView:
    title = "sleep length distribution"
    chart = _base_chart(title)
    durations = [log.duration / 60.0 for log in sleep_logs
                 if not log.is_active and log.duration is not None]
    if not durations:
        return _empty(chart, title)

    n_bins = min(10, max(3, len(durations) // 2))
    counts, edges = np.histogram(durations, bins=n_bins)
    categories = [f"{edges[i]:.1f}" for i in range(len(edges) - 1)]

    x_axis = _label_axis(categories)
    y_axis = _value_axis()
    chart.addAxis(x_axis, Qt.AlignmentFlag.AlignBottom)
    chart.addAxis(y_axis, Qt.AlignmentFlag.AlignLeft)

    bars = QBarSet("nights")
    bars.setColor(QColor(PURPLE))
    bars.setBorderColor(CLEAR)
    bars.append([float(c) for c in counts])

    series = QBarSeries()
    series.append(bars)
    series.setBarWidth(0.85)
    series.hovered.connect(_bar_hover(
        lambda i, _: f"{edges[i]:.1f}-{edges[i + 1]:.1f}h: {counts[i]} nights"))
    _attach(chart, series, x_axis, y_axis)

    y_axis.setRange(0, float(counts.max()) * 1.2 + 1)
    return make_chart_view(chart)


def plot_counters(counters: List[Counter]) -> QChartView:
    title = "counters"
    chart = _base_chart(title)
    if not counters:
        return _empty(chart, title)

    names = [c.sort for c in counters]
    y_axis = _label_axis(names[::-1])
    x_axis = _value_axis()
    chart.addAxis(x_axis, Qt.AlignmentFlag.AlignBottom)
    chart.addAxis(y_axis, Qt.AlignmentFlag.AlignLeft)

    bars = QBarSet("count")
    bars.setColor(QColor(GOLD))
    bars.setBorderColor(CLEAR)
    bars.append([float(c.count) for c in reversed(counters)])

    series = QHorizontalBarSeries()
    series.append(bars)
    series.setBarWidth(0.5)
    series.hovered.connect(_bar_hover(
        lambda i, barset: f"{names[::-1][i]}: {barset.at(i):.0f}"))
    _attach(chart, series, x_axis, y_axis)

    x_axis.setRange(0, max(c.count for c in counters) * 1.15 + 1)
    return make_chart_view(chart)


def plot_memory_usage(bars: list) -> QChartView:
    """Projected usage against capacity for each pool (MemoryBar list)."""
    title = "memory pools"
    chart = _base_chart(title)
    if not bars:
        return _empty(chart, title)

    chart.legend().setVisible(True)
    chart.legend().setLabelColor(MUTED)
    chart.legend().setFont(QFont(_FONT, 8))
    chart.legend().setAlignment(Qt.AlignmentFlag.AlignBottom)

    names = [b.name for b in bars]
    used = QBarSet("used")
    used.setColor(QColor(RED if any(b.is_full for b in bars) else GREEN))
    used.setBorderColor(CLEAR)
    used.append([float(b.projected) for b in bars])

    total = QBarSet("capacity")
    total.setColor(QColor(BLUE))
    total.setBorderColor(CLEAR)
    total.append([float(b.total) for b in bars])

    series = QBarSeries()
    series.append(used)
    series.append(total)
    series.setBarWidth(0.6)
    series.hovered.connect(_bar_hover(
        lambda i, barset: f"{names[i]} {barset.label()}: {barset.at(i):.1f}MB"))

    x_axis = _label_axis(names)
    y_axis = _value_axis("MB")
    chart.addAxis(x_axis, Qt.AlignmentFlag.AlignBottom)
    chart.addAxis(y_axis, Qt.AlignmentFlag.AlignLeft)
    _attach(chart, series, x_axis, y_axis)

    top = max(max(b.projected, b.total) for b in bars)
    y_axis.setRange(0, top * 1.15 + 1)
    return make_chart_view(chart)
