import logging
from typing import Callable, Optional

from ai_toolbox.core.errors import ToolboxError, NotFound, DuplicateId, StoreFailure
from ai_toolbox.core.profiles.codec import (
    decode_profile, encode_profile, decode_common_config, encode_common_config,
)
from ai_toolbox.core.profiles.database import DocumentStore
from ai_toolbox.core.profiles.families import ToolFamily
from ai_toolbox.core.profiles.models import Profile, CommonConfig, now_iso

COMMON_KEY = "common"


class ProfileStore:
    """
    CRUD over one family's profile table plus its common-config record.

    Every method holds the store lock for its whole duration. `reapply` is the
    file-regeneration callback (profile id -> None) run after the applied
    profile or the common config changes.
    """

    def __init__(self, store: DocumentStore, family: ToolFamily,
                 reapply: Optional[Callable[[str], None]] = None):
        self.logger = logging.getLogger(f"ProfileStore.{family.key}")
        self.store = store
        self.family = family
        self.reapply = reapply

    @property
    def table(self) -> str:
        return self.family.profile_table

    # --- Reads ---
    def list(self) -> list:
        """All profiles ordered by sort_index (missing = 0). Never raises."""
        try:
            with self.store.session():
                records = self.store.select(self.table)
        except StoreFailure as e:
            self.logger.error(f"Failed to load {self.family.key} profiles: {e}")
            return []

        profiles = [decode_profile(record, rid) for rid, record in records]
        profiles.sort(key=lambda p: p.sort_index if p.sort_index is not None else 0)
        return profiles

    def get(self, profile_id: str) -> Optional[Profile]:
        with self.store.session():
            record = self.store.get(self.table, profile_id)
        return decode_profile(record, profile_id) if record is not None else None

    def require(self, profile_id: str) -> Profile:
        profile = self.get(profile_id)
        if profile is None:
            raise NotFound(self.family.key, profile_id)
        return profile

    def count(self) -> int:
        with self.store.session():
            return self.store.count(self.table)

    def applied(self) -> Optional[Profile]:
        for profile in self.list():
            if profile.is_applied:
                return profile
        return None

    # --- Mutations ---
    def create(self, profile: Profile) -> Profile:
        if not profile.id or not profile.id.strip():
            raise ToolboxError("Profile ID is required")

        with self.store.session():
            if self.store.get(self.table, profile.id) is not None:
                raise DuplicateId(self.family.key, profile.id)

            now = now_iso()
            created = profile.copy(is_applied=False, created_at=now, updated_at=now)
            self.store.create(self.table, created.id, encode_profile(created))

        self.logger.info(f"Created profile '{created.id}'")
        return created

    def update(self, profile: Profile) -> Profile:
        """
        Full-record replace (delete, then create under the same id).
        The applied flag is owned by select/apply, so the stored value is kept.
        """
        with self.store.session():
            record = self.store.get(self.table, profile.id)
            if record is None:
                raise NotFound(self.family.key, profile.id)
            existing = decode_profile(record, profile.id)

            now = now_iso()
            updated = profile.copy(
                created_at=profile.created_at or existing.created_at or now,
                updated_at=now,
                is_applied=existing.is_applied,
            )

            self.store.delete(self.table, profile.id)
            self.store.create(self.table, updated.id, encode_profile(updated))
            self.logger.info(f"Updated profile '{updated.id}'")

            if updated.is_applied:
                self._reapply(updated.id, "auto-apply updated config")

        return updated

    def delete(self, profile_id: str):
        with self.store.session():
            self.store.delete(self.table, profile_id)
        self.logger.info(f"Deleted profile '{profile_id}'")

    def reorder(self, ids: list):
        """sort_index = position. The first failing item aborts the rest; earlier items stay."""
        with self.store.session():
            now = now_iso()
            for index, profile_id in enumerate(ids):
                try:
                    self.store.patch(self.table, {'sort_index': index, 'updated_at': now}, record_id=profile_id)
                except StoreFailure as e:
                    raise StoreFailure(f"Failed to update profile {profile_id}: {e}") from e

    def select(self, profile_id: str):
        """
        Unset every applied flag, then set one. Two separate commits: a crash in
        between leaves the family with no applied profile until the next select/apply.
        """
        with self.store.session():
            if self.store.get(self.table, profile_id) is None:
                raise NotFound(self.family.key, profile_id)
            now = now_iso()
            self.store.patch(self.table, {'is_applied': False, 'updated_at': now})
            self.store.patch(self.table, {'is_applied': True, 'updated_at': now}, record_id=profile_id)

    # --- Common config ---
    def get_common_config(self) -> Optional[CommonConfig]:
        """Returns None when absent or unreadable."""
        try:
            with self.store.session():
                record = self.store.get(self.family.common_table, COMMON_KEY)
        except StoreFailure as e:
            self.logger.error(f"Failed to load {self.family.key} common config: {e}")
            return None
        return decode_common_config(record) if record is not None else None

    def save_common_config(self, text: str) -> CommonConfig:
        """Validate, replace the record wholesale, then regenerate the applied profile's files."""
        self.family.validate_common(text)

        common = CommonConfig(config=text, updated_at=now_iso())
        with self.store.session():
            self.store.delete(self.family.common_table, COMMON_KEY)
            self.store.create(self.family.common_table, COMMON_KEY, encode_common_config(common))
            self.logger.info(f"Saved {self.family.key} common config")

            applied = self.applied()
            if applied is not None:
                self._reapply(applied.id, "re-apply config")

        return common

    def _reapply(self, profile_id: str, action: str):
        if self.reapply is None:
            return
        try:
            self.reapply(profile_id)
        except ToolboxError as e:
            self.logger.error(f"Failed to {action} for '{profile_id}': {e}")
