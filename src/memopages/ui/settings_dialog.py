from __future__ import annotations

from typing import Callable

from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QDoubleSpinBox,
    QFileDialog,
    QFontComboBox,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from ..core.encoding import persistable_encoding_names

ApplyCallback = Callable[[dict], bool]
SAVED_ONLY_HINT = "Greyed-out options are saved with your settings but are not used by this version."


def _encoding_combo(parent: QWidget, current: str) -> QComboBox:
    combo = QComboBox(parent)
    combo.addItems(list(persistable_encoding_names()))
    if current and combo.findText(current) < 0:
        combo.addItem(current)
    combo.setCurrentText(current)
    return combo


def _number_value(value: float) -> int | float:
    return int(value) if float(value).is_integer() else value


class GlobalSettingsDialog(QDialog):
    """Edits the whole settings record; the payload always carries every key."""

    def __init__(self, parent, settings: dict, on_apply: ApplyCallback | None = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self.resize(520, 380)
        self._settings = dict(settings)
        self._on_apply = on_apply

        root = QVBoxLayout(self)

        basic = QGroupBox("General", self)
        form = QFormLayout(basic)
        dir_row = QHBoxLayout()
        self.save_dir_edit = QLineEdit(basic)
        self.browse_button = QPushButton("Browse...", basic)
        self.browse_button.clicked.connect(self._browse_save_dir)
        dir_row.addWidget(self.save_dir_edit, 1)
        dir_row.addWidget(self.browse_button)
        form.addRow("Save folder:", dir_row)
        self.font_combo = QFontComboBox(basic)
        form.addRow("Font:", self.font_combo)
        self.font_size_spin = QDoubleSpinBox(basic)
        self.font_size_spin.setDecimals(1)
        self.font_size_spin.setSingleStep(0.5)
        self.font_size_spin.setRange(0, 200)
        form.addRow("Font size:", self.font_size_spin)
        self.encoding_combo = _encoding_combo(basic, str(self._settings.get("encoding", "")))
        form.addRow("Default encoding:", self.encoding_combo)
        self.auto_encoding_checkbox = QCheckBox("Detect encoding when opening files", basic)
        form.addRow(self.auto_encoding_checkbox)
        self.always_on_top_checkbox = QCheckBox("Always on top", basic)
        form.addRow(self.always_on_top_checkbox)
        root.addWidget(basic)

        advanced = QGroupBox("Advanced", self)
        adv_form = QFormLayout(advanced)
        self.file_size_warning_spin = QSpinBox(advanced)
        self.file_size_warning_spin.setRange(1, 1024 * 1024)
        self.file_size_warning_spin.setSuffix(" KiB")
        adv_form.addRow("Warn when opening files over:", self.file_size_warning_spin)
        self.load_last_file_checkbox = QCheckBox("Reopen last files on start", advanced)
        adv_form.addRow(self.load_last_file_checkbox)
        self.no_close_dialog_checkbox = QCheckBox("Do not ask before closing", advanced)
        adv_form.addRow(self.no_close_dialog_checkbox)
        self.auto_save_checkbox = QCheckBox("Auto save", advanced)
        adv_form.addRow(self.auto_save_checkbox)
        self.auto_save_span_spin = QSpinBox(advanced)
        self.auto_save_span_spin.setRange(1, 1440)
        self.auto_save_span_spin.setSuffix(" min")
        adv_form.addRow("Auto save every:", self.auto_save_span_spin)
        self.auto_lock_checkbox = QCheckBox("Lock pages after saving", advanced)
        adv_form.addRow(self.auto_lock_checkbox)
        # Kept in the settings file for compatibility; nothing acts on them yet.
        for control in (
            self.load_last_file_checkbox,
            self.auto_save_checkbox,
            self.auto_save_span_spin,
            self.auto_lock_checkbox,
        ):
            control.setEnabled(False)
            control.setToolTip(SAVED_ONLY_HINT)
        adv_form.addRow(QLabel(SAVED_ONLY_HINT, advanced))
        root.addWidget(advanced)

        self.button_box = QDialogButtonBox(QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel, self)
        self.button_box.accepted.connect(self._accept_with_apply)
        self.button_box.rejected.connect(self.reject)
        root.addWidget(self.button_box)

        self._load_controls_from_settings(self._settings)

    def _load_controls_from_settings(self, settings: dict) -> None:
        self.save_dir_edit.setText(str(settings.get("save_dir", "")))
        self.font_combo.setCurrentText(str(settings.get("font_family", "")))
        self.font_size_spin.setValue(float(settings.get("font_size", 16)))
        self.auto_encoding_checkbox.setChecked(bool(settings.get("auto_encoding", True)))
        self.always_on_top_checkbox.setChecked(bool(settings.get("always_on_top", True)))
        self.file_size_warning_spin.setValue(max(1, int(settings.get("file_size_warning_bytes", 1048576)) // 1024))
        self.load_last_file_checkbox.setChecked(bool(settings.get("load_last_file", False)))
        self.no_close_dialog_checkbox.setChecked(bool(settings.get("no_close_dialog", False)))
        self.auto_save_checkbox.setChecked(bool(settings.get("auto_save", False)))
        self.auto_save_span_spin.setValue(int(settings.get("auto_save_span_min", 5)))
        self.auto_lock_checkbox.setChecked(bool(settings.get("auto_lock", False)))

    def _browse_save_dir(self) -> None:
        path = QFileDialog.getExistingDirectory(self, "Save Folder", self.save_dir_edit.text())
        if path:
            self.save_dir_edit.setText(path)

    def get_payload(self) -> dict:
        payload = dict(self._settings)
        payload.update(
            {
                "save_dir": self.save_dir_edit.text().strip(),
                "font_family": self.font_combo.currentText(),
                "font_size": _number_value(self.font_size_spin.value()),
                "encoding": self.encoding_combo.currentText(),
                "auto_encoding": self.auto_encoding_checkbox.isChecked(),
                "always_on_top": self.always_on_top_checkbox.isChecked(),
                "file_size_warning_bytes": self.file_size_warning_spin.value() * 1024,
                "load_last_file": self.load_last_file_checkbox.isChecked(),
                "no_close_dialog": self.no_close_dialog_checkbox.isChecked(),
                "auto_save": self.auto_save_checkbox.isChecked(),
                "auto_save_span_min": self.auto_save_span_spin.value(),
                "auto_lock": self.auto_lock_checkbox.isChecked(),
            }
        )
        return payload

    def _accept_with_apply(self) -> None:
        if self._on_apply is None or self._on_apply(self.get_payload()):
            self.accept()


class EncodingDialog(QDialog):
    """Picks an encoding for one page, either for saving or for re-reading its file."""

    def __init__(
        self,
        parent,
        *,
        title: str,
        page_index: int,
        current_encoding: str,
        on_apply: ApplyCallback | None = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle(title)
        self.resize(360, 160)
        self._page_index = page_index
        self._on_apply = on_apply

        root = QVBoxLayout(self)
        form = QFormLayout()
        form.addRow("Page:", QLabel(str(page_index + 1), self))
        form.addRow("Current encoding:", QLabel(current_encoding, self))
        self.encoding_combo = _encoding_combo(self, current_encoding)
        form.addRow("Encoding:", self.encoding_combo)
        root.addLayout(form)

        self.button_box = QDialogButtonBox(QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel, self)
        self.button_box.accepted.connect(self._accept_with_apply)
        self.button_box.rejected.connect(self.reject)
        root.addWidget(self.button_box)

    def get_payload(self) -> dict:
        return {"index": self._page_index, "encoding": self.encoding_combo.currentText()}

    def _accept_with_apply(self) -> None:
        if self._on_apply is None or self._on_apply(self.get_payload()):
            self.accept()
