"""
Shared pytest fixtures for AI Toolbox tests.

Every test gets its own home directory (where ~/.codex and ~/.claude live) and
its own app data directory, so nothing touches the real user config.
"""
import os
from pathlib import Path

import pytest

# Run Qt headless when no display is available.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from ai_toolbox.core.profiles.apply_engine import ApplyEngine
from ai_toolbox.core.profiles.database import DocumentStore
from ai_toolbox.core.profiles.settings_store import SettingsStore


class RecordingNotifier:
    """Stands in for SyncNotifier where no Qt event loop is needed."""

    def __init__(self):
        self.events = []

    def notify(self, origin, family=None):
        self.events.append((origin, family))


@pytest.fixture
def home_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    return home


@pytest.fixture
def data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    data = tmp_path / "data"
    monkeypatch.setenv("AI_TOOLBOX_DATA_DIR", str(data))
    return data


@pytest.fixture
def store(data_dir: Path):
    db = DocumentStore(str(data_dir / "toolbox.db")).open()
    yield db
    db.close()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def engine(home_dir: Path, store: DocumentStore, notifier: RecordingNotifier) -> ApplyEngine:
    return ApplyEngine(store, notifier)


@pytest.fixture
def settings(home_dir: Path, store: DocumentStore) -> SettingsStore:
    return SettingsStore(store)
