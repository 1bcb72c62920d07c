"""
AI Toolbox: System Tray
Flat menu with one checkable row per profile. The menu is rebuilt from a fresh
query after every config-changed event; clicking a row applies that profile.
"""
import logging
from functools import partial

from PyQt6.QtCore import QObject, pyqtSignal
from PyQt6.QtGui import QAction, QIcon
from PyQt6.QtWidgets import QMenu, QSystemTrayIcon

from ai_toolbox.core.profiles.sync import ORIGIN_TRAY
from ai_toolbox.core.profiles.tray_menu import (
    build_tray_menu, parse_menu_id, SHOW_ID, QUIT_ID,
    KIND_SEPARATOR, KIND_CHECK,
)
from ai_toolbox.core.version import APP_NAME


class TrayController(QObject):
    show_requested = pyqtSignal()
    quit_requested = pyqtSignal()

    def __init__(self, engine, notifier, runner, icon: QIcon, parent=None):
        super().__init__(parent)
        self.logger = logging.getLogger("TrayController")
        self.engine = engine
        self.runner = runner
        self._menu = None

        self.tray = QSystemTrayIcon(icon, self)
        self.tray.setToolTip(APP_NAME)
        self.tray.activated.connect(self._on_activated)
        notifier.config_changed.connect(self.refresh)

    def show(self):
        self.tray.show()
        self.refresh()

    def refresh(self, _event=None):
        self.runner.submit(self.engine.snapshot, on_done=self._render)

    def _render(self, families):
        menu = QMenu()
        for entry in build_tray_menu(families):
            if entry.kind == KIND_SEPARATOR:
                menu.addSeparator()
                continue
            action = QAction(entry.label, menu)
            action.setEnabled(entry.enabled)
            if entry.kind == KIND_CHECK:
                action.setCheckable(True)
                action.setChecked(entry.checked)
            action.triggered.connect(partial(self._on_entry, entry.id))
            menu.addAction(action)

        self.tray.setContextMenu(menu)
        # Replaced wholesale; the previous menu is dropped with its actions
        self._menu = menu

    def _on_entry(self, entry_id: str, _checked=False):
        if entry_id == SHOW_ID:
            self.show_requested.emit()
            return
        if entry_id == QUIT_ID:
            self.quit_requested.emit()
            return

        parsed = parse_menu_id(entry_id, self.engine.families.keys())
        if parsed is None:
            return
        family_key, profile_id = parsed
        self.runner.submit(
            self.engine.apply, family_key, profile_id, ORIGIN_TRAY,
            on_error=partial(self._on_apply_failed, family_key, profile_id),
        )

    def _on_apply_failed(self, family_key, profile_id, error):
        self.logger.error(f"Failed to apply {family_key} profile '{profile_id}': {error}")
        self.tray.showMessage(APP_NAME, f"Failed to apply '{profile_id}': {error}",
                              QSystemTrayIcon.MessageIcon.Warning)
        # Undo the optimistic check mark Qt set on click
        self.refresh()

    def _on_activated(self, reason):
        if reason == QSystemTrayIcon.ActivationReason.Trigger:
            self.show_requested.emit()
