import logging

from ai_toolbox.core.errors import StoreFailure
from ai_toolbox.core.profiles import core_paths
from ai_toolbox.core.profiles.codec import (
    decode_skill_settings, encode_skill_settings, decode_app_settings, encode_app_settings,
)
from ai_toolbox.core.profiles.database import DocumentStore
from ai_toolbox.core.profiles.models import SkillSettings, AppSettings

SKILL_TABLE = "skill_settings"
SKILL_KEY = "skills"
APP_TABLE = "app_settings"
APP_KEY = "app"


class SettingsStore:
    """Singleton settings records: skills repository location and app preferences."""

    def __init__(self, store: DocumentStore):
        self.logger = logging.getLogger("SettingsStore")
        self.store = store

    def _load(self, table: str, key: str):
        try:
            with self.store.session():
                return self.store.get(table, key)
        except StoreFailure as e:
            self.logger.error(f"Failed to load {table}: {e}")
            return None

    def _replace(self, table: str, key: str, content: dict):
        with self.store.session():
            self.store.delete(table, key)
            self.store.create(table, key, content)

    # --- Skills ---
    def get_skill_settings(self) -> SkillSettings:
        record = self._load(SKILL_TABLE, SKILL_KEY)
        return decode_skill_settings(record) if record is not None else SkillSettings()

    def save_skill_settings(self, settings: SkillSettings):
        if settings.central_repo_path.strip():
            # Reject unusable input before it is stored
            core_paths.expand_home(settings.central_repo_path)
        self._replace(SKILL_TABLE, SKILL_KEY, encode_skill_settings(settings))

    def resolve_central_repo_path(self) -> str:
        """Configured path (with ~ expanded) or <app data>/skills."""
        configured = self.get_skill_settings().central_repo_path
        if configured.strip():
            return core_paths.expand_home(configured)
        return core_paths.default_central_repo_dir()

    def to_stored_skill_path(self, absolute_path: str) -> str:
        return core_paths.to_relative(absolute_path, self.resolve_central_repo_path())

    def resolve_skill_path(self, stored_path: str) -> str:
        return core_paths.resolve_stored(stored_path, self.resolve_central_repo_path())

    # --- App ---
    def get_app_settings(self) -> AppSettings:
        record = self._load(APP_TABLE, APP_KEY)
        return decode_app_settings(record) if record is not None else AppSettings()

    def save_app_settings(self, settings: AppSettings):
        self._replace(APP_TABLE, APP_KEY, encode_app_settings(settings))
