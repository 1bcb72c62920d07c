"""
AI Toolbox: Main Window
One tab per tool family. Every store / file call goes through the TaskRunner;
lists are re-queried after each config-changed broadcast regardless of origin.
"""
import logging
from functools import partial

from PyQt6.QtCore import Qt, QUrl
from PyQt6.QtGui import QAction, QDesktopServices
from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QTabWidget, QVBoxLayout, QHBoxLayout, QLabel,
    QPushButton, QListWidget, QListWidgetItem, QMessageBox, QApplication,
)

from ai_toolbox.core.profiles import core_paths
from ai_toolbox.core.profiles.models import AppSettings
from ai_toolbox.core.profiles.sync import ORIGIN_TRAY
from ai_toolbox.core.version import VERSION_STRING
from ai_toolbox.ui.profile_dialog import ProfileDialog
from ai_toolbox.ui.settings_dialog import SettingsDialog
from ai_toolbox.ui.text_dialogs import CommonConfigDialog, PreviewDialog


class FamilyPanel(QWidget):
    """Profile list + actions for one tool family."""

    def __init__(self, family, engine, runner, parent=None):
        super().__init__(parent)
        self.logger = logging.getLogger(f"FamilyPanel.{family.key}")
        self.family = family
        self.engine = engine
        self.runner = runner
        self.profiles = []
        self._init_ui()

    def _init_ui(self):
        layout = QVBoxLayout(self)

        header = QHBoxLayout()
        self.path_label = QLabel(self.family.config_dir())
        self.path_label.setStyleSheet("color: #888;")
        self.path_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        header.addWidget(self.path_label, 1)
        for text, slot in (
            ("Open Folder", self._open_folder),
            ("Preview Current", self._preview_current),
            ("Common Config", self._edit_common_config),
        ):
            btn = QPushButton(text)
            btn.clicked.connect(slot)
            header.addWidget(btn)
        layout.addLayout(header)

        self.list_widget = QListWidget()
        self.list_widget.itemDoubleClicked.connect(lambda _item: self._edit_profile())
        layout.addWidget(self.list_widget, 1)

        actions = QHBoxLayout()
        self.buttons = {}
        for key, text, slot in (
            ("add", "Add", self._add_profile),
            ("edit", "Edit", self._edit_profile),
            ("duplicate", "Duplicate", self._duplicate_profile),
            ("delete", "Delete", self._delete_profile),
            ("up", "▲", partial(self._move_profile, -1)),
            ("down", "▼", partial(self._move_profile, 1)),
        ):
            btn = QPushButton(text)
            btn.clicked.connect(slot)
            actions.addWidget(btn)
            self.buttons[key] = btn
        actions.addStretch()

        self.select_btn = QPushButton("Mark Applied")
        self.select_btn.setToolTip("Mark as applied without rewriting the config files")
        self.select_btn.clicked.connect(self._select_profile)
        actions.addWidget(self.select_btn)

        self.apply_btn = QPushButton("Apply")
        self.apply_btn.setStyleSheet("font-weight: bold;")
        self.apply_btn.clicked.connect(self._apply_profile)
        actions.addWidget(self.apply_btn)
        layout.addLayout(actions)

    # --- Data ---
    def refresh(self):
        self.runner.submit(self.engine.profiles(self.family.key).list, on_done=self._populate,
                           on_error=self._show_error)

    def _populate(self, profiles):
        current_id = self._current_id()
        self.profiles = profiles
        self.list_widget.clear()
        for profile in profiles:
            text = profile.name
            if profile.category:
                text += f"  [{profile.category}]"
            if profile.is_applied:
                text += "  ✓ Applied"
            item = QListWidgetItem(text)
            item.setData(Qt.ItemDataRole.UserRole, profile.id)
            item.setToolTip(profile.notes or profile.id)
            if profile.is_applied:
                font = item.font()
                font.setBold(True)
                item.setFont(font)
            self.list_widget.addItem(item)
            if profile.id == current_id:
                self.list_widget.setCurrentItem(item)

    def _current_id(self):
        item = self.list_widget.currentItem()
        return item.data(Qt.ItemDataRole.UserRole) if item else None

    def _current_profile(self):
        current_id = self._current_id()
        for profile in self.profiles:
            if profile.id == current_id:
                return profile
        return None

    def _show_error(self, error):
        QMessageBox.warning(self, self.family.title, str(error))

    def _submit(self, fn, *args, on_done=None):
        self.runner.submit(fn, self.family.key, *args, on_done=on_done, on_error=self._show_error)

    # --- Profile actions ---
    def _add_profile(self):
        dialog = ProfileDialog(self.family, parent=self)
        if dialog.exec():
            profile = dialog.result_profile().copy(sort_index=len(self.profiles))
            self._submit(self.engine.create_profile, profile)

    def _edit_profile(self):
        profile = self._current_profile()
        if profile is None:
            return
        dialog = ProfileDialog(self.family, profile, is_edit=True, parent=self)
        if dialog.exec():
            self._submit(self.engine.update_profile, dialog.result_profile())

    def _duplicate_profile(self):
        profile = self._current_profile()
        if profile is None:
            return
        taken = {p.id for p in self.profiles}
        new_id = f"{profile.id}-copy"
        n = 2
        while new_id in taken:
            new_id = f"{profile.id}-copy-{n}"
            n += 1
        draft = profile.copy(
            id=new_id,
            name=f"{profile.name} (Copy)",
            source_profile_id=profile.id,
            sort_index=len(self.profiles),
            is_applied=False,
            created_at="",
            updated_at="",
        )
        dialog = ProfileDialog(self.family, draft, parent=self)
        if dialog.exec():
            self._submit(self.engine.create_profile, dialog.result_profile())

    def _delete_profile(self):
        profile = self._current_profile()
        if profile is None:
            return
        msg = f"Delete profile '{profile.name}'?"
        if profile.is_applied:
            msg += "\nIt is currently applied; the config files on disk are left as they are."
        reply = QMessageBox.question(self, "Delete Profile", msg)
        if reply == QMessageBox.StandardButton.Yes:
            self._submit(self.engine.delete_profile, profile.id)

    def _move_profile(self, step: int):
        profile = self._current_profile()
        if profile is None:
            return
        ids = [p.id for p in self.profiles]
        row = ids.index(profile.id)
        target = row + step
        if target < 0 or target >= len(ids):
            return
        ids[row], ids[target] = ids[target], ids[row]
        self._submit(self.engine.reorder_profiles, ids)

    def _select_profile(self):
        profile = self._current_profile()
        if profile is not None:
            self._submit(self.engine.select, profile.id)

    def _apply_profile(self):
        profile = self._current_profile()
        if profile is None:
            QMessageBox.information(self, self.family.title, "Select a profile to apply.")
            return
        self._submit(self.engine.apply, profile.id)

    # --- Family actions ---
    def _open_folder(self):
        self.runner.submit(self.engine.files.ensure_directory, self.family.config_dir(),
                           on_done=_open_local_path, on_error=self._show_error)

    def _preview_current(self):
        self._submit(self.engine.read_current_settings, on_done=self._show_preview)

    def _show_preview(self, sections):
        PreviewDialog(f"Current {self.family.title} Config", sections, parent=self).exec()

    def _edit_common_config(self):
        self.runner.submit(self.engine.profiles(self.family.key).get_common_config,
                           on_done=self._show_common_config, on_error=self._show_error)

    def _show_common_config(self, common):
        dialog = CommonConfigDialog(self.family, common.config if common else "", parent=self)
        if dialog.exec():
            self._submit(self.engine.save_common_config, dialog.text())


def _open_local_path(path: str):
    QDesktopServices.openUrl(QUrl.fromLocalFile(path))


class ToolboxWindow(QMainWindow):
    def __init__(self, engine, settings, notifier, runner, parent=None):
        super().__init__(parent)
        self.logger = logging.getLogger("ToolboxWindow")
        self.engine = engine
        self.settings = settings
        self.runner = runner
        self.tray_available = False
        self.app_settings = AppSettings()

        self.setWindowTitle(VERSION_STRING)
        self.resize(820, 560)

        self.tabs = QTabWidget()
        self.panels = {}
        for key, family in engine.families.items():
            panel = FamilyPanel(family, engine, runner, self)
            self.tabs.addTab(panel, family.title)
            self.panels[key] = panel
        self.setCentralWidget(self.tabs)
        self._init_menu()

        notifier.config_changed.connect(self._on_config_changed)
        self.runner.submit(self.settings.get_app_settings, on_done=self._set_app_settings)
        self.refresh_all()

    def _init_menu(self):
        file_menu = self.menuBar().addMenu("&File")

        settings_action = QAction("Settings...", self)
        settings_action.triggered.connect(self._open_settings)
        file_menu.addAction(settings_action)

        skills_action = QAction("Open Skills Folder", self)
        skills_action.triggered.connect(self._open_skills_folder)
        file_menu.addAction(skills_action)

        file_menu.addSeparator()
        quit_action = QAction("Quit", self)
        quit_action.triggered.connect(QApplication.quit)
        file_menu.addAction(quit_action)

    def refresh_all(self):
        for panel in self.panels.values():
            panel.refresh()

    def _on_config_changed(self, event):
        # Content of the event is not trusted; every panel re-queries
        self.refresh_all()
        if event.origin == ORIGIN_TRAY:
            self.statusBar().showMessage("Profile switched from the tray", 4000)

    def _set_app_settings(self, app_settings):
        self.app_settings = app_settings

    def _show_error(self, error):
        QMessageBox.warning(self, "AI Toolbox", str(error))

    # --- Settings ---
    def _open_settings(self):
        self.runner.submit(
            lambda: (self.settings.get_skill_settings(), self.settings.get_app_settings()),
            on_done=self._show_settings, on_error=self._show_error,
        )

    def _show_settings(self, loaded):
        skill_settings, app_settings = loaded
        dialog = SettingsDialog(skill_settings, app_settings, parent=self)
        if not dialog.exec():
            return
        new_skills = dialog.skill_settings()
        new_app = dialog.app_settings()
        self.runner.submit(self._save_settings, new_skills, new_app,
                           on_done=self._set_app_settings, on_error=self._show_error)

    def _save_settings(self, skill_settings, app_settings):
        self.settings.save_skill_settings(skill_settings)
        self.settings.save_app_settings(app_settings)
        return app_settings

    def _open_skills_folder(self):
        self.runner.submit(
            lambda: core_paths.ensure_central_repo(self.settings.resolve_central_repo_path()),
            on_done=_open_local_path, on_error=self._show_error,
        )

    # --- Window ---
    def show_and_raise(self):
        self.show()
        self.setWindowState(self.windowState() & ~Qt.WindowState.WindowMinimized)
        self.raise_()
        self.activateWindow()

    def closeEvent(self, event):
        if self.tray_available and self.app_settings.minimize_to_tray:
            event.ignore()
            self.hide()
            self.logger.info("Window hidden to tray")
            return
        event.accept()
        QApplication.quit()
