"""
AI Toolbox: Apply Engine
Generates a tool's config files from one profile and moves the "applied" mark.

apply(family, id):
    1. look up the profile                      (NotFound)
    2. split its payload                        (ParseError)
    3. fetch the family's common layer          (absent = empty)
    4. merge the layers
    5. write the destination files              (IOFailure; flags untouched)
    6. unset every applied flag, then set one   (two commits, not a transaction)
    7. broadcast config-changed with the origin

Every mutation here ends with exactly one broadcast.
"""
import logging
from functools import partial
from typing import Optional

from ai_toolbox.core.errors import ToolboxError
from ai_toolbox.core.file_handler import FileHandler
from ai_toolbox.core.profiles.codec import encode_profile
from ai_toolbox.core.profiles.database import DocumentStore
from ai_toolbox.core.profiles.families import ToolFamily, default_families
from ai_toolbox.core.profiles.models import Profile, FamilyState, now_iso
from ai_toolbox.core.profiles.profile_store import ProfileStore
from ai_toolbox.core.profiles.sync import SyncNotifier, ORIGIN_WINDOW

IMPORTED_PROFILE_ID = "default-config"


class ApplyEngine:
    def __init__(self, store: DocumentStore, notifier: SyncNotifier = None,
                 files: FileHandler = None, families: dict = None):
        self.logger = logging.getLogger("ApplyEngine")
        self.store = store
        self.notifier = notifier
        self.files = files or FileHandler()
        self.families = families if families is not None else default_families()
        self._profile_stores = {
            key: ProfileStore(store, family, reapply=partial(self.write_profile_files, key))
            for key, family in self.families.items()
        }

    # --- Lookup ---
    def family(self, family_key: str) -> ToolFamily:
        try:
            return self.families[family_key]
        except KeyError:
            raise ToolboxError(f"Unknown tool family '{family_key}'") from None

    def profiles(self, family_key: str) -> ProfileStore:
        self.family(family_key)
        return self._profile_stores[family_key]

    def snapshot(self) -> list:
        """Fresh per-family state for the tray and the window."""
        return [
            FamilyState(key=key, title=family.title, profiles=self._profile_stores[key].list())
            for key, family in self.families.items()
        ]

    def _notify(self, origin: str, family_key: str = None):
        if self.notifier is not None:
            self.notifier.notify(origin, family_key)

    # --- Apply / Select ---
    def write_profile_files(self, family_key: str, profile_id: str):
        """Steps 1-5: render the profile over the common layer and write the files."""
        family = self.family(family_key)
        profiles = self.profiles(family_key)

        with self.store.session():
            profile = profiles.require(profile_id)
            common = profiles.get_common_config()
            rendered = family.render(profile.settings_config, common.config if common else None)

            paths = family.destination_paths()
            self.files.ensure_directory(family.config_dir())
            for name, content in rendered.items():
                self.files.write_text_file(paths[name], content)

        self.logger.info(f"Wrote {family_key} config files for '{profile_id}'")

    def apply(self, family_key: str, profile_id: str, origin: str = ORIGIN_WINDOW):
        profiles = self.profiles(family_key)
        with self.store.session():
            # Files first: a failed write must leave the applied flag where it was
            self.write_profile_files(family_key, profile_id)
            profiles.select(profile_id)

        self.logger.info(f"Applied {family_key} profile '{profile_id}' (origin={origin})")
        self._notify(origin, family_key)

    def select(self, family_key: str, profile_id: str, origin: str = ORIGIN_WINDOW):
        """Mark as applied without regenerating files."""
        self.profiles(family_key).select(profile_id)
        self._notify(origin, family_key)

    # --- Profile mutations ---
    def create_profile(self, family_key: str, profile: Profile, origin: str = ORIGIN_WINDOW) -> Profile:
        created = self.profiles(family_key).create(profile)
        self._notify(origin, family_key)
        return created

    def update_profile(self, family_key: str, profile: Profile, origin: str = ORIGIN_WINDOW) -> Profile:
        updated = self.profiles(family_key).update(profile)
        self._notify(origin, family_key)
        return updated

    def delete_profile(self, family_key: str, profile_id: str, origin: str = ORIGIN_WINDOW):
        self.profiles(family_key).delete(profile_id)
        self._notify(origin, family_key)

    def reorder_profiles(self, family_key: str, ids: list, origin: str = ORIGIN_WINDOW):
        self.profiles(family_key).reorder(ids)
        self._notify(origin, family_key)

    def save_common_config(self, family_key: str, text: str, origin: str = ORIGIN_WINDOW):
        common = self.profiles(family_key).save_common_config(text)
        self._notify(origin, family_key)
        return common

    # --- Files on disk ---
    def read_current_settings(self, family_key: str) -> dict:
        return self.family(family_key).read_current(self.files)

    def import_from_existing_files(self, family_key: str) -> Optional[Profile]:
        """
        Seed an empty family table from the tool's existing config files.
        Guarded only by "table is empty": deleting every profile re-enables it.
        """
        family = self.family(family_key)
        profiles = self.profiles(family_key)

        with self.store.session():
            if profiles.count() > 0:
                return None

            settings = family.legacy_settings(self.files)
            if settings is None:
                return None

            now = now_iso()
            profile = Profile(
                id=IMPORTED_PROFILE_ID,
                name=family.import_name,
                settings_config=settings,
                notes=family.import_notes,
                sort_index=0,
                is_applied=True,
                created_at=now,
                updated_at=now,
            )
            self.store.create(family.profile_table, profile.id, encode_profile(profile))

        self.logger.info(f"Imported {family.title} settings as default profile")
        return profile

    def import_all(self) -> list:
        """Run the first-run import for every family. Failures are logged per family."""
        imported = []
        for key in self.families:
            try:
                profile = self.import_from_existing_files(key)
            except ToolboxError as e:
                self.logger.error(f"Failed to import existing {key} settings: {e}")
                continue
            if profile is not None:
                imported.append((key, profile))
        return imported
