from PyQt6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QFormLayout, QLineEdit, QPushButton,
    QCheckBox, QDialogButtonBox, QFileDialog,
)

from ai_toolbox.core.profiles import core_paths
from ai_toolbox.core.profiles.models import SkillSettings, AppSettings


class SettingsDialog(QDialog):
    """Skills repository location + tray behaviour."""

    def __init__(self, skill_settings: SkillSettings, app_settings: AppSettings, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self.resize(520, 160)

        layout = QVBoxLayout(self)
        form = QFormLayout()

        path_row = QHBoxLayout()
        self.repo_edit = QLineEdit(skill_settings.central_repo_path)
        self.repo_edit.setPlaceholderText(core_paths.default_central_repo_dir())
        path_row.addWidget(self.repo_edit)
        browse_btn = QPushButton("Browse...")
        browse_btn.clicked.connect(self._browse)
        path_row.addWidget(browse_btn)
        form.addRow("Skills repository", path_row)

        self.tray_check = QCheckBox("Minimize to tray when the window is closed")
        self.tray_check.setChecked(app_settings.minimize_to_tray)
        form.addRow("", self.tray_check)
        layout.addLayout(form)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Save | QDialogButtonBox.StandardButton.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def _browse(self):
        start = self.repo_edit.text().strip() or core_paths.default_central_repo_dir()
        folder = QFileDialog.getExistingDirectory(self, "Select Skills Repository", start)
        if folder:
            self.repo_edit.setText(folder)

    def skill_settings(self) -> SkillSettings:
        return SkillSettings(central_repo_path=self.repo_edit.text().strip())

    def app_settings(self) -> AppSettings:
        return AppSettings(minimize_to_tray=self.tray_check.isChecked())
