from __future__ import annotations

from pathlib import Path

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import QFileDialog, QMainWindow, QMessageBox, QStatusBar, QTabWidget

from ..core.errors import MemoError
from ..core.registry import SlotRegistry
from ..logging_utils import get_logger
from .confirmations import DIALOG_TITLE, ConfirmationFlow
from .debug_logs_dialog import DebugLogsDialog
from .memo_page import MemoPage, dropped_file_paths
from .settings_dialog import EncodingDialog, GlobalSettingsDialog

_LOGGER = get_logger(__name__)


class QMessageBoxPrompter:
    def __init__(self, parent) -> None:
        self.parent = parent

    def confirm(self, title: str, message: str) -> bool:
        answer = QMessageBox.question(
            self.parent,
            title,
            message,
            QMessageBox.StandardButton.Ok | QMessageBox.StandardButton.Cancel,
            QMessageBox.StandardButton.Cancel,
        )
        return answer == QMessageBox.StandardButton.Ok

    def inform(self, title: str, message: str, level: str = "info") -> None:
        if level == "error":
            QMessageBox.critical(self.parent, title, message)
        elif level == "warning":
            QMessageBox.warning(self.parent, title, message)
        else:
            QMessageBox.information(self.parent, title, message)


class MemoWindow(QMainWindow):
    def __init__(self, registry: SlotRegistry, settings_path: Path | None = None) -> None:
        super().__init__()
        self.registry = registry
        self.settings_path = settings_path
        self.prompter = QMessageBoxPrompter(self)
        self.flow = ConfirmationFlow(registry, self.prompter)
        self.debug_logs_dialog: DebugLogsDialog | None = None

        self.setWindowTitle(DIALOG_TITLE)
        self.resize(420, 360)

        self.tab_widget = QTabWidget(self)
        self.pages: list[MemoPage] = []
        for index in range(registry.slot_count):
            page = MemoPage(index, self.tab_widget)
            page.edited.connect(lambda idx=index: self._on_page_edited(idx))
            page.save_requested.connect(lambda idx=index: self.save_page(idx))
            page.file_dropped.connect(lambda path, idx=index: self._open_dropped_file(idx, path))
            self.tab_widget.addTab(page, self._tab_title(index))
            self.pages.append(page)
        self.setCentralWidget(self.tab_widget)
        self.setAcceptDrops(True)
        self.setStatusBar(QStatusBar(self))

        self._build_actions()
        self.tab_widget.currentChanged.connect(self._on_current_changed)
        self.apply_ui_settings()
        _LOGGER.debug("MemoWindow created pages=%d settings_path=%s", len(self.pages), settings_path)

    # ---------- Setup ----------
    def _build_actions(self) -> None:
        file_menu = self.menuBar().addMenu("&File")
        self.open_action = QAction("&Open...", self)
        self.open_action.setShortcut(QKeySequence.StandardKey.Open)
        self.open_action.triggered.connect(self.open_file)
        file_menu.addAction(self.open_action)
        self.save_action = QAction("&Save", self)
        self.save_action.setShortcut(QKeySequence.StandardKey.Save)
        self.save_action.triggered.connect(lambda: self.save_page(self.active_index()))
        file_menu.addAction(self.save_action)
        self.clear_action = QAction("&Clear Page", self)
        self.clear_action.triggered.connect(lambda: self.clear_page(self.active_index()))
        file_menu.addAction(self.clear_action)
        file_menu.addSeparator()
        quit_action = QAction("E&xit", self)
        quit_action.triggered.connect(self.close)
        file_menu.addAction(quit_action)

        page_menu = self.menuBar().addMenu("&Page")
        self.lock_action = QAction("&Lock", self)
        self.lock_action.setCheckable(True)
        self.lock_action.triggered.connect(lambda: self.toggle_lock(self.active_index()))
        page_menu.addAction(self.lock_action)
        self.local_settings_action = QAction("Page &Encoding...", self)
        self.local_settings_action.triggered.connect(self.open_local_settings)
        page_menu.addAction(self.local_settings_action)
        self.reload_encoding_action = QAction("&Reopen With Encoding...", self)
        self.reload_encoding_action.triggered.connect(self.open_reload_encoding)
        page_menu.addAction(self.reload_encoding_action)

        options_menu = self.menuBar().addMenu("&Options")
        self.always_on_top_action = QAction("Always on &Top", self)
        self.always_on_top_action.setCheckable(True)
        self.always_on_top_action.triggered.connect(self.toggle_always_on_top)
        options_menu.addAction(self.always_on_top_action)
        self.global_settings_action = QAction("&Settings...", self)
        self.global_settings_action.triggered.connect(self.open_global_settings)
        options_menu.addAction(self.global_settings_action)
        self.logs_action = QAction("&Logs...", self)
        self.logs_action.triggered.connect(self.show_logs)
        options_menu.addAction(self.logs_action)

    def active_index(self) -> int:
        return max(0, self.tab_widget.currentIndex())

    def _tab_title(self, index: int) -> str:
        marker = "*" if index in self.registry.get_unsaved_indices() else ""
        lock = " [locked]" if self.registry.get_lock_states()[index] else ""
        return f"{marker}Page {index + 1}{lock}"

    def _refresh_tab(self, index: int) -> None:
        self.tab_widget.setTabText(index, self._tab_title(index))

    def _refresh_action_states(self) -> None:
        locked = self.registry.get_lock_states()[self.active_index()]
        self.lock_action.setChecked(locked)
        self.clear_action.setEnabled(not locked)
        self.save_action.setEnabled(not locked)

    def apply_ui_settings(self) -> None:
        ui = self.registry.get_ui_settings()
        for page in self.pages:
            page.apply_font(ui["font_family"], ui["font_size"])
        self.always_on_top_action.setChecked(bool(ui["always_on_top"]))
        self._set_stays_on_top(bool(ui["always_on_top"]))
        self._refresh_action_states()

    def _set_stays_on_top(self, enabled: bool) -> None:
        if bool(self.windowFlags() & Qt.WindowStaysOnTopHint) == enabled:
            return
        was_visible = self.isVisible()
        self.setWindowFlag(Qt.WindowStaysOnTopHint, enabled)
        if was_visible:
            self.show()

    # ---------- Page events ----------
    def _on_page_edited(self, index: int) -> None:
        if index in self.registry.get_unsaved_indices():
            return
        self.registry.mark_unsaved(index)
        self._refresh_tab(index)

    def _on_current_changed(self, index: int) -> None:
        if index < 0:
            return
        self.registry.set_focused_index(index)
        self._refresh_action_states()

    # ---------- Commands ----------
    def save_page(self, index: int) -> bool:
        page = self.pages[index]
        result = self.flow.save_page(index, page.filename(), page.get_text())
        if not result.error.ok:
            return False
        page.show_save_state("Saved" if result.save_count == 1 else "Overwritten")
        self._refresh_tab(index)
        self.statusBar().showMessage(f"Page {index + 1} saved", 3000)
        return True

    def open_file(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Open", "", "Text Documents (*.txt);;All Files (*)")
        if not path:
            return
        self.load_file(self.active_index(), path)

    def load_file(self, index: int, path: str) -> bool:
        _LOGGER.debug("load_file index=%d path=%s", index, path)
        result = self.flow.load_page(index, path)
        if not result.error.ok:
            return False
        self._show_loaded(index, result.text or "", result.filename)
        return True

    def _show_loaded(self, index: int, text: str, filename: str | None) -> None:
        page = self.pages[index]
        page.set_text(text)
        page.set_filename(filename)
        info = self.registry.get_file_info(index) or {}
        self._refresh_tab(index)
        self.statusBar().showMessage(f"Opened {filename} ({info.get('encoding', '')})", 3000)

    def _open_dropped_file(self, index: int, path: str) -> None:
        self.tab_widget.setCurrentIndex(index)
        self.load_file(index, path)

    def dragEnterEvent(self, event) -> None:
        if dropped_file_paths(event.mimeData()):
            event.acceptProposedAction()
        else:
            super().dragEnterEvent(event)

    def dropEvent(self, event) -> None:
        paths = dropped_file_paths(event.mimeData())
        if not paths:
            super().dropEvent(event)
            return
        event.acceptProposedAction()
        self._open_dropped_file(self.active_index(), paths[0])

    def clear_page(self, index: int) -> None:
        result = self.registry.clear(index)
        if result.error is MemoError.LOCKED:
            self.prompter.inform(DIALOG_TITLE, "This page is locked.", "info")
            return
        self.pages[index].clear_content()
        self._refresh_tab(index)

    def toggle_lock(self, index: int) -> None:
        result = self.registry.toggle_lock(index)
        self.pages[index].set_locked(bool(result.locked))
        self._refresh_tab(index)
        self._refresh_action_states()

    def toggle_always_on_top(self) -> None:
        enabled = self.registry.toggle_always_on_top()
        self.always_on_top_action.setChecked(enabled)
        self._set_stays_on_top(enabled)

    def open_global_settings(self) -> None:
        dialog = GlobalSettingsDialog(self, self.registry.get_global_settings(), on_apply=self._apply_global_settings)
        dialog.exec()

    def _apply_global_settings(self, payload: dict) -> bool:
        if not self.flow.apply_global_settings(payload).ok:
            return False
        self.apply_ui_settings()
        return True

    def open_local_settings(self) -> None:
        local = self.registry.get_local_settings()
        dialog = EncodingDialog(
            self,
            title="Page Encoding",
            page_index=local["index"],
            current_encoding=local["encoding"],
            on_apply=lambda payload: self.flow.apply_local_settings(payload).ok,
        )
        dialog.exec()

    def open_reload_encoding(self) -> None:
        local = self.registry.get_local_settings()
        dialog = EncodingDialog(
            self,
            title="Reopen With Encoding",
            page_index=local["index"],
            current_encoding=local["encoding"],
            on_apply=self._reload_with_encoding,
        )
        dialog.exec()

    def _reload_with_encoding(self, payload: dict) -> bool:
        index = payload["index"]
        result = self.flow.reload_page_encoding(index, payload["encoding"])
        if not result.error.ok:
            return False
        self._show_loaded(index, result.text or "", result.filename)
        return True

    def show_logs(self) -> None:
        if self.debug_logs_dialog is None:
            self.debug_logs_dialog = DebugLogsDialog(self, page_count=self.registry.slot_count)
        self.debug_logs_dialog.refresh()
        self.debug_logs_dialog.show()
        self.debug_logs_dialog.raise_()

    # ---------- Close ----------
    def closeEvent(self, event) -> None:
        unsaved = self.registry.get_unsaved_indices()
        if not self.registry.get_global_settings()["no_close_dialog"]:
            message = ""
            if unsaved:
                pages = ", ".join(str(index + 1) for index in unsaved)
                message = f"Unsaved pages: {pages}\n"
            if not self.prompter.confirm(DIALOG_TITLE, message + "Exit Memo Pages?"):
                event.ignore()
                return
        if self.settings_path is not None:
            self.registry.save_settings_file(self.settings_path)
        event.accept()
