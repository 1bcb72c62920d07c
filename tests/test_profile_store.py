import sqlite3

import pytest

from ai_toolbox.core.errors import ToolboxError, NotFound, DuplicateId, ParseError, StoreFailure
from ai_toolbox.core.profiles.families import CodexFamily
from ai_toolbox.core.profiles.models import Profile
from ai_toolbox.core.profiles.profile_store import ProfileStore


@pytest.fixture
def reapplied() -> list:
    return []


@pytest.fixture
def profiles(store, reapplied) -> ProfileStore:
    return ProfileStore(store, CodexFamily(), reapply=reapplied.append)


def _seed(profiles: ProfileStore, *ids: str) -> None:
    for index, profile_id in enumerate(ids):
        profiles.create(Profile(id=profile_id, name=profile_id.upper(), sort_index=index))


def test_create_stamps_timestamps_and_clears_applied(profiles: ProfileStore) -> None:
    created = profiles.create(Profile(id="a", name="A", is_applied=True))

    assert created.is_applied is False
    assert created.created_at
    assert created.created_at == created.updated_at
    assert profiles.get("a") == created


def test_create_rejects_duplicate_and_blank_ids(profiles: ProfileStore) -> None:
    _seed(profiles, "a")
    with pytest.raises(DuplicateId):
        profiles.create(Profile(id="a", name="Again"))
    with pytest.raises(ToolboxError):
        profiles.create(Profile(id="  ", name="Blank"))
    assert profiles.count() == 1


def test_update_replaces_record_but_keeps_created_and_applied(profiles: ProfileStore) -> None:
    _seed(profiles, "a")
    original = profiles.get("a")
    profiles.select("a")

    updated = profiles.update(original.copy(name="Renamed", created_at="", is_applied=False))

    assert updated.name == "Renamed"
    assert updated.created_at == original.created_at
    assert updated.is_applied is True
    assert profiles.get("a").name == "Renamed"


def test_update_of_applied_profile_triggers_reapply(profiles: ProfileStore, reapplied: list) -> None:
    _seed(profiles, "a", "b")
    profiles.update(profiles.get("b").copy(notes="not applied"))
    assert reapplied == []

    profiles.select("a")
    profiles.update(profiles.get("a").copy(notes="applied"))
    assert reapplied == ["a"]


def test_update_missing_profile_raises(profiles: ProfileStore) -> None:
    with pytest.raises(NotFound):
        profiles.update(Profile(id="ghost", name="Ghost"))


def test_delete(profiles: ProfileStore) -> None:
    _seed(profiles, "a", "b")
    profiles.delete("a")
    assert [p.id for p in profiles.list()] == ["b"]


def test_reorder_sets_sort_index_to_position(profiles: ProfileStore) -> None:
    _seed(profiles, "a", "b", "c")

    profiles.reorder(["b", "a", "c"])

    listed = profiles.list()
    assert [p.id for p in listed] == ["b", "a", "c"]
    assert [p.sort_index for p in listed] == [0, 1, 2]


def test_reorder_stops_at_first_failure_without_rollback(profiles: ProfileStore, store, monkeypatch) -> None:
    _seed(profiles, "a", "b", "c")
    real_patch = store.patch

    def _patch(table, changes, record_id=None):
        if record_id == "a":
            raise StoreFailure("disk I/O error")
        return real_patch(table, changes, record_id=record_id)

    monkeypatch.setattr(store, "patch", _patch)

    with pytest.raises(StoreFailure, match="Failed to update profile a"):
        profiles.reorder(["c", "a", "b"])

    positions = {p.id: p.sort_index for p in profiles.list()}
    assert positions == {"c": 0, "a": 0, "b": 1}


def test_list_degrades_to_empty_on_corrupt_record(profiles: ProfileStore, store, caplog) -> None:
    _seed(profiles, "a")
    conn = sqlite3.connect(store.db_path)
    conn.execute(
        "INSERT INTO documents (tbl, record_id, content) VALUES (?, ?, ?)",
        (profiles.table, "broken", "{not json"),
    )
    conn.commit()
    conn.close()

    assert profiles.list() == []
    assert "Failed to load codex profiles" in caplog.text


def test_list_treats_missing_sort_index_as_zero(profiles: ProfileStore) -> None:
    profiles.create(Profile(id="late", name="Late", sort_index=5))
    profiles.create(Profile(id="unsorted", name="Unsorted"))
    assert [p.id for p in profiles.list()] == ["unsorted", "late"]


def test_list_degrades_to_empty_when_store_fails(profiles: ProfileStore, store) -> None:
    _seed(profiles, "a")
    store.close()
    assert profiles.list() == []
    assert profiles.get_common_config() is None


def test_select_moves_the_applied_flag(profiles: ProfileStore) -> None:
    _seed(profiles, "a", "b", "c")

    profiles.select("a")
    profiles.select("c")

    applied = [p.id for p in profiles.list() if p.is_applied]
    assert applied == ["c"]
    assert profiles.applied().id == "c"


def test_select_unknown_profile_leaves_flags(profiles: ProfileStore) -> None:
    _seed(profiles, "a")
    profiles.select("a")
    with pytest.raises(NotFound):
        profiles.select("ghost")
    assert profiles.applied().id == "a"


def test_common_config_round_trip(profiles: ProfileStore, reapplied: list) -> None:
    assert profiles.get_common_config() is None

    profiles.save_common_config('approval_policy = "never"')
    assert profiles.get_common_config().config == 'approval_policy = "never"'
    assert reapplied == []

    _seed(profiles, "a")
    profiles.select("a")
    profiles.save_common_config('approval_policy = "on-request"')
    assert profiles.get_common_config().config == 'approval_policy = "on-request"'
    assert reapplied == ["a"]


def test_invalid_common_config_is_not_stored(profiles: ProfileStore) -> None:
    profiles.save_common_config('region = "us"')
    with pytest.raises(ParseError):
        profiles.save_common_config("region = ")
    assert profiles.get_common_config().config == 'region = "us"'


def test_failing_reapply_is_logged_not_raised(store, caplog) -> None:
    def _fail(profile_id):
        raise ToolboxError(f"cannot write {profile_id}")

    profiles = ProfileStore(store, CodexFamily(), reapply=_fail)
    _seed(profiles, "a")
    profiles.select("a")

    profiles.save_common_config('model = "x"')

    assert profiles.get_common_config().config == 'model = "x"'
    assert "cannot write a" in caplog.text
