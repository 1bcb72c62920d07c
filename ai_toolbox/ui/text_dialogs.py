import json

from PyQt6.QtGui import QFont
from PyQt6.QtWidgets import (
    QDialog, QVBoxLayout, QLabel, QPlainTextEdit, QDialogButtonBox, QMessageBox,
)

from ai_toolbox.core.errors import ParseError


def _mono_font() -> QFont:
    font = QFont("monospace")
    font.setStyleHint(QFont.StyleHint.TypeWriter)
    return font


class CommonConfigDialog(QDialog):
    """Edit the layer shared by every profile of a family. Validated before closing."""

    def __init__(self, family, text: str = "", parent=None):
        super().__init__(parent)
        self.family = family
        self.setWindowTitle(f"{family.title} Common Config")
        self.resize(560, 420)

        layout = QVBoxLayout(self)
        hint = QLabel("Merged under every profile; values set by a profile win.")
        hint.setStyleSheet("color: #888;")
        layout.addWidget(hint)

        self.editor = QPlainTextEdit()
        self.editor.setFont(_mono_font())
        self.editor.setPlainText(text)
        layout.addWidget(self.editor)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Save | QDialogButtonBox.StandardButton.Cancel)
        buttons.accepted.connect(self._on_accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def text(self) -> str:
        return self.editor.toPlainText()

    def _on_accept(self):
        try:
            self.family.validate_common(self.text())
        except ParseError as e:
            QMessageBox.warning(self, "Invalid Config", str(e))
            return
        self.accept()


class PreviewDialog(QDialog):
    """Read-only view of the tool's current config files."""

    def __init__(self, title: str, sections: dict, parent=None):
        super().__init__(parent)
        self.setWindowTitle(title)
        self.resize(600, 480)

        layout = QVBoxLayout(self)
        for name, value in sections.items():
            layout.addWidget(QLabel(name))
            view = QPlainTextEdit()
            view.setReadOnly(True)
            view.setFont(_mono_font())
            if value is None:
                view.setPlaceholderText("(file not found)")
            elif isinstance(value, str):
                view.setPlainText(value)
            else:
                view.setPlainText(json.dumps(value, indent=2, ensure_ascii=False))
            layout.addWidget(view)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Close)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)
