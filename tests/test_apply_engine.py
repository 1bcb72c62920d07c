import json
import tomllib

import pytest

from ai_toolbox.core.errors import IOFailure, NotFound, ParseError, ToolboxError
from ai_toolbox.core.profiles.apply_engine import ApplyEngine, IMPORTED_PROFILE_ID
from ai_toolbox.core.profiles.models import Profile
from ai_toolbox.core.profiles.sync import ORIGIN_TRAY, ORIGIN_WINDOW

CODEX_PAYLOAD = json.dumps({"auth": {"key": "abc"}, "config": 'model="x"'})


def _codex_profile(profile_id: str, model: str = "x", sort_index: int = 0) -> Profile:
    payload = json.dumps({"auth": {"key": profile_id}, "config": f'model="{model}"'})
    return Profile(id=profile_id, name=profile_id, settings_config=payload, sort_index=sort_index)


def _applied_ids(engine: ApplyEngine, family: str) -> list:
    return [p.id for p in engine.profiles(family).list() if p.is_applied]


def test_apply_writes_files_and_marks_applied(engine: ApplyEngine, home_dir) -> None:
    engine.create_profile("codex", Profile(id="anthropic-default", name="Default", settings_config=CODEX_PAYLOAD))

    engine.apply("codex", "anthropic-default")

    codex_dir = home_dir / ".codex"
    assert json.loads((codex_dir / "auth.json").read_text(encoding="utf-8")) == {"key": "abc"}
    assert (codex_dir / "config.toml").read_text(encoding="utf-8") == 'model="x"'
    assert _applied_ids(engine, "codex") == ["anthropic-default"]


def test_at_most_one_applied_per_family(engine: ApplyEngine) -> None:
    for index, profile_id in enumerate(("a", "b", "c")):
        engine.create_profile("codex", _codex_profile(profile_id, sort_index=index))

    engine.apply("codex", "a")
    engine.apply("codex", "b")
    engine.select("codex", "c")
    engine.apply("codex", "b")

    assert _applied_ids(engine, "codex") == ["b"]


def test_apply_broadcasts_once_with_origin(engine: ApplyEngine, notifier) -> None:
    engine.create_profile("codex", _codex_profile("a"))
    notifier.events.clear()

    engine.apply("codex", "a", ORIGIN_TRAY)

    assert notifier.events == [(ORIGIN_TRAY, "codex")]


def test_every_mutation_broadcasts(engine: ApplyEngine, notifier) -> None:
    engine.create_profile("codex", _codex_profile("a"))
    engine.create_profile("codex", _codex_profile("b", sort_index=1))
    engine.update_profile("codex", engine.profiles("codex").get("a").copy(name="A2"))
    engine.reorder_profiles("codex", ["b", "a"])
    engine.save_common_config("codex", 'region = "us"')
    engine.delete_profile("codex", "b")

    assert len(notifier.events) == 6
    assert all(event == (ORIGIN_WINDOW, "codex") for event in notifier.events)


def test_failed_write_leaves_flags_untouched(engine: ApplyEngine, notifier, monkeypatch) -> None:
    engine.create_profile("codex", _codex_profile("a"))
    engine.create_profile("codex", _codex_profile("b", sort_index=1))
    engine.apply("codex", "a")
    notifier.events.clear()

    def _fail(path, content):
        raise IOFailure("disk full", path)

    monkeypatch.setattr(engine.files, "write_text_file", _fail)

    with pytest.raises(IOFailure):
        engine.apply("codex", "b")

    assert _applied_ids(engine, "codex") == ["a"]
    assert notifier.events == []


def test_malformed_payload_raises_parse_error(engine: ApplyEngine, home_dir) -> None:
    engine.create_profile("codex", Profile(id="bad", name="Bad", settings_config="not json"))

    with pytest.raises(ParseError):
        engine.apply("codex", "bad")

    assert _applied_ids(engine, "codex") == []
    assert not (home_dir / ".codex" / "auth.json").exists()


@pytest.mark.parametrize(
    "payload",
    [
        {"auth": "abc", "config": 'model="x"'},
        {"auth": ["key"], "config": 'model="x"'},
        {"auth": {}, "config": 0},
        {"auth": {}, "config": False},
        {"auth": {}, "config": []},
    ],
)
def test_codex_payload_shape_is_enforced(engine: ApplyEngine, home_dir, payload) -> None:
    engine.create_profile("codex", Profile(id="p", name="P", settings_config=json.dumps(payload)))

    with pytest.raises(ParseError):
        engine.apply("codex", "p")

    assert _applied_ids(engine, "codex") == []
    assert not (home_dir / ".codex").exists()


def test_codex_payload_without_auth_or_config(engine: ApplyEngine, home_dir) -> None:
    engine.create_profile("codex", Profile(id="p", name="P", settings_config=json.dumps({"config": None})))

    engine.apply("codex", "p")

    assert json.loads((home_dir / ".codex" / "auth.json").read_text(encoding="utf-8")) == {}
    assert (home_dir / ".codex" / "config.toml").read_text(encoding="utf-8") == ""


def test_import_rejects_non_object_auth_file(engine: ApplyEngine, home_dir) -> None:
    (home_dir / ".codex").mkdir()
    (home_dir / ".codex" / "auth.json").write_text('"sk-plain-string"', encoding="utf-8")

    assert engine.import_all() == []
    assert engine.profiles("codex").count() == 0


def test_apply_unknown_profile_raises(engine: ApplyEngine) -> None:
    with pytest.raises(NotFound):
        engine.apply("codex", "ghost")


def test_unknown_family_raises(engine: ApplyEngine) -> None:
    with pytest.raises(ToolboxError):
        engine.apply("gemini", "x")


def test_common_config_is_layered_and_reapplied(engine: ApplyEngine, home_dir) -> None:
    engine.create_profile("codex", _codex_profile("a", model="y"))
    engine.apply("codex", "a")

    engine.save_common_config("codex", 'region = "us"\nmodel = "fallback"')

    config = tomllib.loads((home_dir / ".codex" / "config.toml").read_text(encoding="utf-8"))
    assert config == {"region": "us", "model": "y"}


def test_updating_applied_profile_rewrites_files(engine: ApplyEngine, home_dir) -> None:
    engine.create_profile("codex", _codex_profile("a", model="old"))
    engine.apply("codex", "a")

    updated = engine.profiles("codex").get("a").copy(
        settings_config=json.dumps({"auth": {"key": "new"}, "config": 'model="new"'})
    )
    engine.update_profile("codex", updated)

    assert (home_dir / ".codex" / "config.toml").read_text(encoding="utf-8") == 'model="new"'
    assert json.loads((home_dir / ".codex" / "auth.json").read_text(encoding="utf-8")) == {"key": "new"}


def test_select_does_not_write_files(engine: ApplyEngine, home_dir) -> None:
    engine.create_profile("codex", _codex_profile("a"))
    engine.select("codex", "a")
    assert _applied_ids(engine, "codex") == ["a"]
    assert not (home_dir / ".codex").exists()


def test_claude_settings_are_deep_merged_and_pruned(engine: ApplyEngine, home_dir) -> None:
    engine.save_common_config("claude", json.dumps({
        "env": {"DISABLE_TELEMETRY": "1"},
        "permissions": {"allow": ["Bash(ls)"]},
    }))
    engine.create_profile("claude", Profile(
        id="kimi",
        name="Kimi",
        settings_config=json.dumps({
            "env": {"ANTHROPIC_BASE_URL": "https://api.moonshot.invalid", "ANTHROPIC_MODEL": None},
            "hooks": {},
        }),
    ))

    engine.apply("claude", "kimi")

    settings = json.loads((home_dir / ".claude" / "settings.json").read_text(encoding="utf-8"))
    assert settings == {
        "env": {"DISABLE_TELEMETRY": "1", "ANTHROPIC_BASE_URL": "https://api.moonshot.invalid"},
        "permissions": {"allow": ["Bash(ls)"]},
    }


def test_claude_common_config_must_be_json_object(engine: ApplyEngine) -> None:
    with pytest.raises(ParseError):
        engine.save_common_config("claude", "[1, 2]")


def test_first_run_import_creates_one_applied_profile(engine: ApplyEngine, home_dir, store) -> None:
    codex_dir = home_dir / ".codex"
    codex_dir.mkdir()
    (codex_dir / "auth.json").write_text('{"OPENAI_API_KEY": "sk-test"}', encoding="utf-8")
    (codex_dir / "config.toml").write_text('model = "gpt-5"\n', encoding="utf-8")

    imported = engine.import_all()

    assert [(key, p.id) for key, p in imported] == [("codex", IMPORTED_PROFILE_ID)]
    profiles = engine.profiles("codex").list()
    assert len(profiles) == 1
    assert profiles[0].is_applied is True
    assert json.loads(profiles[0].settings_config) == {
        "auth": {"OPENAI_API_KEY": "sk-test"},
        "config": 'model = "gpt-5"\n',
    }

    # Next startup: the table is no longer empty
    restarted = ApplyEngine(store)
    assert restarted.import_all() == []
    assert restarted.profiles("codex").count() == 1


def test_import_skipped_without_files(engine: ApplyEngine) -> None:
    assert engine.import_all() == []
    assert engine.profiles("codex").count() == 0
    assert engine.profiles("claude").count() == 0


def test_import_failure_is_logged_per_family(engine: ApplyEngine, home_dir, caplog) -> None:
    (home_dir / ".codex").mkdir()
    (home_dir / ".codex" / "auth.json").write_text("{broken", encoding="utf-8")
    (home_dir / ".claude").mkdir()
    (home_dir / ".claude" / "settings.json").write_text('{"model": "opus"}', encoding="utf-8")

    imported = engine.import_all()

    assert [key for key, _ in imported] == ["claude"]
    assert "Failed to import existing codex settings" in caplog.text


def test_snapshot_and_read_current(engine: ApplyEngine) -> None:
    engine.create_profile("claude", Profile(id="a", name="A", settings_config='{"model": "opus"}'))
    engine.apply("claude", "a")

    snapshot = engine.snapshot()

    assert [state.key for state in snapshot] == ["codex", "claude"]
    assert snapshot[0].profiles == []
    assert snapshot[1].applied.id == "a"
    assert engine.read_current_settings("claude") == {"settings": {"model": "opus"}}
    assert engine.read_current_settings("codex") == {"auth": None, "config": None}
