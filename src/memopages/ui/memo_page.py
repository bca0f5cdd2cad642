from __future__ import annotations

from PySide6.QtCore import QEvent, QMimeData, Qt, QTimer, Signal
from PySide6.QtGui import QFont
from PySide6.QtWidgets import QHBoxLayout, QLabel, QLineEdit, QPlainTextEdit, QPushButton, QVBoxLayout, QWidget

SAVE_STATE_CLEAR_MS = 3000


def dropped_file_paths(mime_data: QMimeData | None) -> list[str]:
    if mime_data is None or not mime_data.hasUrls():
        return []
    return [url.toLocalFile() for url in mime_data.urls() if url.isLocalFile()]


class MemoPage(QWidget):
    edited = Signal()
    save_requested = Signal()
    file_dropped = Signal(str)

    def __init__(self, index: int, parent=None) -> None:
        super().__init__(parent)
        self.index = index
        self._suppress_edited = False

        self.filename_edit = QLineEdit(self)
        self.filename_edit.setPlaceholderText("File name")
        self.save_button = QPushButton("Save", self)
        self.save_state_label = QLabel("", self)
        self.save_state_label.setAlignment(Qt.AlignRight | Qt.AlignVCenter)

        self.text_edit = QPlainTextEdit(self)
        self.text_edit.setVerticalScrollBarPolicy(Qt.ScrollBarAlwaysOn)

        header = QHBoxLayout()
        header.setContentsMargins(0, 0, 0, 0)
        header.addWidget(self.filename_edit, 1)
        header.addWidget(self.save_button)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.addLayout(header)
        layout.addWidget(self.text_edit, 1)
        layout.addWidget(self.save_state_label)

        self._save_state_timer = QTimer(self)
        self._save_state_timer.setSingleShot(True)
        self._save_state_timer.timeout.connect(lambda: self.save_state_label.setText(""))

        # Text drags still go to the editor; file drops open the file in this page.
        self.text_edit.viewport().installEventFilter(self)
        self.text_edit.textChanged.connect(self._on_text_changed)
        self.save_button.clicked.connect(self.save_requested)
        self.filename_edit.returnPressed.connect(self.save_requested)

    def eventFilter(self, watched, event) -> bool:
        if watched is self.text_edit.viewport() and event.type() in (
            QEvent.Type.DragEnter,
            QEvent.Type.DragMove,
            QEvent.Type.Drop,
        ):
            paths = dropped_file_paths(event.mimeData())
            if paths:
                event.acceptProposedAction()
                if event.type() == QEvent.Type.Drop:
                    self.file_dropped.emit(paths[0])
                return True
        return super().eventFilter(watched, event)

    def _on_text_changed(self) -> None:
        if not self._suppress_edited:
            self.edited.emit()

    def get_text(self) -> str:
        return self.text_edit.toPlainText()

    def set_text(self, text: str) -> None:
        self._suppress_edited = True
        try:
            self.text_edit.setPlainText(text)
        finally:
            self._suppress_edited = False

    def filename(self) -> str:
        return self.filename_edit.text().strip()

    def set_filename(self, name: str | None) -> None:
        self.filename_edit.setText(name or "")

    def clear_content(self) -> None:
        self.set_text("")
        self.set_filename("")
        self.save_state_label.setText("")

    def set_locked(self, locked: bool) -> None:
        self.text_edit.setReadOnly(locked)
        self.filename_edit.setReadOnly(locked)
        self.save_button.setEnabled(not locked)

    def show_save_state(self, message: str) -> None:
        self.save_state_label.setText(message)
        self._save_state_timer.start(SAVE_STATE_CLEAR_MS)

    def apply_font(self, family: str, size: float) -> None:
        font = QFont(family)
        font.setPointSizeF(float(size))
        self.text_edit.setFont(font)
