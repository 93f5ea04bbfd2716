"""
Dark mode stylesheet for the entire application.
Notion dark palette with neon accents.
"""

DARK_STYLESHEET = """
/* ── Base ────────────────────────────────────────────────────────── */
QWidget {
    background-color: #191919;
    color: #e3e3e3;
    font-family: "Segoe UI", "Inter", sans-serif;
    font-size: 13px;
}

QMainWindow, QDialog, QMessageBox {
    background-color: #191919;
}

/* ── Buttons ─────────────────────────────────────────────────────── */
QPushButton {
    background-color: #252525;
    color: #e3e3e3;
    border: 1px solid #333333;
    border-radius: 6px;
    padding: 6px 16px;
    font-weight: 500;
    min-height: 22px;
}

QPushButton:hover {
    background-color: #2f2f2f;
    border-color: #58C4DD;
}

QPushButton:disabled {
    color: #5a5a5a;
    border-color: #252525;
}

QPushButton#primary {
    background-color: #58C4DD;
    color: #191919;
    border: none;
}

QPushButton#danger {
    background-color: #FC6255;
    color: #191919;
    border: none;
}

QPushButton#success {
    background-color: #83C167;
    color: #191919;
    border: none;
}

QPushButton#flat {
    background: transparent;
    border: none;
    color: #9b9a97;
    padding: 2px 8px;
}

QPushButton#flat:hover {
    color: #e3e3e3;
}

/* ── Inputs ──────────────────────────────────────────────────────── */
QLineEdit, QPlainTextEdit {
    background-color: #252525;
    color: #e3e3e3;
    border: 1px solid #333333;
    border-radius: 6px;
    padding: 6px 10px;
    selection-background-color: #58C4DD;
    selection-color: #191919;
}

QLineEdit:focus, QPlainTextEdit:focus {
    border-color: #58C4DD;
}

/* ── Labels ──────────────────────────────────────────────────────── */
QLabel {
    background: transparent;
    color: #e3e3e3;
}

QLabel#title {
    font-size: 22px;
    font-weight: 700;
    color: #e3e3e3;
}

QLabel#subtitle {
    font-size: 13px;
    color: #9b9a97;
}

QLabel#timer {
    font-size: 28px;
    font-weight: 700;
    font-family: "Consolas", "Courier New", monospace;
    color: #F4D345;
}

/* ── Lists ───────────────────────────────────────────────────────── */
QListWidget {
    background-color: #252525;
    border: 1px solid #333333;
    border-radius: 6px;
    padding: 4px;
}

QListWidget::item {
    padding: 6px 4px;
    border-bottom: 1px solid #2a2a2a;
}

QListWidget::item:selected {
    background-color: #2f2f2f;
    color: #e3e3e3;
}

/* ── Tab Widget ──────────────────────────────────────────────────── */
QTabWidget::pane {
    border: none;
    background-color: #191919;
}

QTabBar::tab {
    background-color: #191919;
    color: #9b9a97;
    padding: 10px 22px;
    font-weight: 600;
    border-bottom: 2px solid transparent;
}

QTabBar::tab:selected {
    color: #e3e3e3;
    border-bottom: 2px solid #58C4DD;
}

QTabBar::tab:hover:!selected {
    background-color: #252525;
}

/* ── Scroll Area ─────────────────────────────────────────────────── */
QScrollArea {
    border: none;
    background-color: transparent;
}

QScrollBar:vertical {
    background: #191919;
    width: 6px;
    border: none;
}

QScrollBar::handle:vertical {
    background: #333333;
    border-radius: 3px;
    min-height: 30px;
}

QScrollBar::add-line:vertical, QScrollBar::sub-line:vertical {
    height: 0;
}

/* ── Progress Bar (memory pools) ─────────────────────────────────── */
QProgressBar {
    background-color: #252525;
    border: 1px solid #333333;
    border-radius: 4px;
    text-align: center;
    color: #e3e3e3;
    height: 14px;
}

QProgressBar::chunk {
    background-color: #83C167;
    border-radius: 4px;
}

QProgressBar#full::chunk {
    background-color: #FC6255;
}

/* ── Tooltip ─────────────────────────────────────────────────────── */
QToolTip {
    background-color: #252525;
    color: #e3e3e3;
    border: 1px solid #333333;
    border-radius: 4px;
    padding: 4px 8px;
}
"""
