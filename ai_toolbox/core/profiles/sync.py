"""
AI Toolbox: Change Broadcast
One signal for every surface (tray, window). The payload only says who caused the
change; subscribers re-query state instead of trusting it.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from PyQt6.QtCore import QObject, pyqtSignal

ORIGIN_WINDOW = "window"
ORIGIN_TRAY = "tray"
ORIGIN_STARTUP = "startup"


@dataclass(frozen=True)
class ConfigChangedEvent:
    origin: str
    family: Optional[str] = None


class SyncNotifier(QObject):
    config_changed = pyqtSignal(object)  # ConfigChangedEvent

    def __init__(self, parent=None):
        super().__init__(parent)
        self.logger = logging.getLogger("SyncNotifier")

    def notify(self, origin: str, family: str = None):
        event = ConfigChangedEvent(origin=origin, family=family)
        self.logger.debug(f"config-changed: {event}")
        self.config_changed.emit(event)
