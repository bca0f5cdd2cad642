from PySide6.QtGui import QTextCursor
from PySide6.QtWidgets import (
    QApplication,
    QComboBox,
    QDialog,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QTextEdit,
    QVBoxLayout,
)

from ..logging_utils import LOG_LEVEL_OPTIONS, clear_console_log_lines, get_console_log_lines, level_number


class DebugLogsDialog(QDialog):
    def __init__(self, parent=None, page_count: int = 3) -> None:
        super().__init__(parent)
        self.setWindowTitle("Logs")
        self.resize(760, 420)

        layout = QVBoxLayout(self)
        filters_row = QHBoxLayout()
        self.page_combo = QComboBox(self)
        self.page_combo.addItem("All pages", None)
        for index in range(page_count):
            self.page_combo.addItem(f"Page {index + 1}", index)
        self.level_combo = QComboBox(self)
        self.level_combo.addItems(list(LOG_LEVEL_OPTIONS))
        filters_row.addWidget(QLabel("Show:", self))
        filters_row.addWidget(self.page_combo)
        filters_row.addWidget(QLabel("Level:", self))
        filters_row.addWidget(self.level_combo)
        filters_row.addStretch(1)
        layout.addLayout(filters_row)

        self.logs_view = QTextEdit(self)
        self.logs_view.setReadOnly(True)
        self.logs_view.setLineWrapMode(QTextEdit.NoWrap)
        layout.addWidget(self.logs_view)

        buttons_row = QHBoxLayout()
        self.refresh_button = QPushButton("Refresh", self)
        self.copy_button = QPushButton("Copy", self)
        self.clear_button = QPushButton("Clear", self)
        self.close_button = QPushButton("Close", self)
        buttons_row.addWidget(self.refresh_button)
        buttons_row.addWidget(self.copy_button)
        buttons_row.addWidget(self.clear_button)
        buttons_row.addStretch(1)
        buttons_row.addWidget(self.close_button)
        layout.addLayout(buttons_row)

        self.page_combo.currentIndexChanged.connect(self.refresh)
        self.level_combo.currentIndexChanged.connect(self.refresh)
        self.refresh_button.clicked.connect(self.refresh)
        self.copy_button.clicked.connect(self._copy_shown)
        self.clear_button.clicked.connect(self._clear_all)
        self.close_button.clicked.connect(self.close)
        self.refresh()

    def refresh(self) -> None:
        lines = get_console_log_lines(
            page=self.page_combo.currentData(),
            min_level=level_number(self.level_combo.currentText(), "DEBUG"),
        )
        self.logs_view.setPlainText("\n".join(lines))
        cursor = self.logs_view.textCursor()
        cursor.movePosition(QTextCursor.End)
        self.logs_view.setTextCursor(cursor)

    def _copy_shown(self) -> None:
        QApplication.clipboard().setText(self.logs_view.toPlainText())

    def _clear_all(self) -> None:
        clear_console_log_lines()
        self.logs_view.clear()
