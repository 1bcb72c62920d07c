import json
import re

from PyQt6.QtGui import QFont
from PyQt6.QtWidgets import (
    QDialog, QVBoxLayout, QFormLayout, QLineEdit, QPlainTextEdit, QLabel,
    QDialogButtonBox, QMessageBox,
)

from ai_toolbox.core.errors import ParseError
from ai_toolbox.core.profiles import config_merge
from ai_toolbox.core.profiles.models import Profile

SLUG_RE = re.compile(r'^[A-Za-z0-9][A-Za-z0-9._-]*$')


def _mono_editor(text: str, placeholder: str = "") -> QPlainTextEdit:
    editor = QPlainTextEdit()
    editor.setPlainText(text)
    editor.setPlaceholderText(placeholder)
    font = QFont("monospace")
    font.setStyleHint(QFont.StyleHint.TypeWriter)
    editor.setFont(font)
    return editor


class ProfileDialog(QDialog):
    """
    Create / edit one profile.
    Codex profiles are edited as separate auth.json and config.toml sections;
    other families edit the settings JSON directly.
    """

    def __init__(self, family, profile: Profile = None, is_edit: bool = False, parent=None):
        super().__init__(parent)
        self.family = family
        self.profile = profile
        self.is_edit = is_edit and profile is not None
        self.setWindowTitle(f"{'Edit' if self.is_edit else 'Add'} {family.title} Profile")
        self.resize(640, 560)
        self._init_ui()

    def _init_ui(self):
        layout = QVBoxLayout(self)
        form = QFormLayout()
        p = self.profile or Profile(id="", name="")

        self.id_edit = QLineEdit(p.id)
        self.id_edit.setPlaceholderText("e.g. openai-default")
        # The id is the record key and never changes after creation
        self.id_edit.setReadOnly(self.is_edit)
        form.addRow("ID", self.id_edit)

        self.name_edit = QLineEdit(p.name)
        form.addRow("Name", self.name_edit)
        self.category_edit = QLineEdit(p.category)
        form.addRow("Category", self.category_edit)
        self.website_edit = QLineEdit(p.website_url or "")
        form.addRow("Website", self.website_edit)
        self.notes_edit = QLineEdit(p.notes or "")
        form.addRow("Notes", self.notes_edit)
        layout.addLayout(form)

        if self.family.key == "codex":
            auth, config_text = self._split_codex(p.settings_config)
            layout.addWidget(QLabel("auth.json"))
            self.auth_edit = _mono_editor(auth, '{"OPENAI_API_KEY": "sk-..."}')
            layout.addWidget(self.auth_edit)
            layout.addWidget(QLabel("config.toml"))
            self.config_edit = _mono_editor(config_text, 'model = "gpt-5"')
            layout.addWidget(self.config_edit)
        else:
            layout.addWidget(QLabel(f"{self.family.title} settings (JSON)"))
            self.settings_edit = _mono_editor(p.settings_config if self.profile else "{\n  \"env\": {}\n}")
            layout.addWidget(self.settings_edit)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Save | QDialogButtonBox.StandardButton.Cancel)
        buttons.accepted.connect(self._on_accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    @staticmethod
    def _split_codex(settings_config: str):
        try:
            payload = json.loads(settings_config or "{}")
        except json.JSONDecodeError:
            return "{}", ""
        if not isinstance(payload, dict):
            return "{}", ""
        auth = json.dumps(payload.get("auth") or {}, indent=2, ensure_ascii=False)
        config_text = payload.get("config") if isinstance(payload.get("config"), str) else ""
        return auth, config_text

    def _build_settings(self) -> str:
        if self.family.key == "codex":
            try:
                auth = json.loads(self.auth_edit.toPlainText() or "{}")
            except json.JSONDecodeError as e:
                raise ParseError(f"auth.json is not valid JSON: {e}") from e
            if not isinstance(auth, dict):
                raise ParseError("auth.json must be a JSON object")
            config_text = self.config_edit.toPlainText()
            config_merge.validate_toml(config_text)
            return json.dumps({"auth": auth, "config": config_text}, ensure_ascii=False)

        text = self.settings_edit.toPlainText()
        try:
            settings = json.loads(text or "{}")
        except json.JSONDecodeError as e:
            raise ParseError(f"Settings are not valid JSON: {e}") from e
        if not isinstance(settings, dict):
            raise ParseError("Settings must be a JSON object")
        return json.dumps(settings, ensure_ascii=False)

    def _on_accept(self):
        profile_id = self.id_edit.text().strip()
        if not SLUG_RE.match(profile_id):
            QMessageBox.warning(self, "Invalid ID", "ID may contain letters, digits, '.', '_' and '-' only.")
            return
        if not self.name_edit.text().strip():
            QMessageBox.warning(self, "Missing Name", "Please enter a name.")
            return
        try:
            self._settings = self._build_settings()
        except ParseError as e:
            QMessageBox.warning(self, "Invalid Settings", str(e))
            return
        self.accept()

    def result_profile(self) -> Profile:
        base = self.profile or Profile(id="", name="")
        return base.copy(
            id=self.id_edit.text().strip(),
            name=self.name_edit.text().strip(),
            category=self.category_edit.text().strip(),
            website_url=self.website_edit.text().strip() or None,
            notes=self.notes_edit.text().strip() or None,
            settings_config=self._settings,
        )
