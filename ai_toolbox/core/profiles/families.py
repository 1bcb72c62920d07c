"""
AI Toolbox: Tool Families
One ToolFamily per supported CLI tool. A family knows its store tables, its
destination directory, how to split a profile payload, how to layer the common
config under it, and how to rebuild a profile from files already on disk.
"""
import os
import json
from typing import Optional

from ai_toolbox.core.errors import ParseError
from ai_toolbox.core.profiles import config_merge
from ai_toolbox.core.profiles.core_paths import get_tool_config_dir


def _dump_json(value) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def _load_json_object(text: str, label: str) -> dict:
    try:
        value = json.loads(text)
    except (TypeError, json.JSONDecodeError) as e:
        raise ParseError(f"Failed to parse {label}: {e}") from e
    if not isinstance(value, dict):
        raise ParseError(f"Failed to parse {label}: expected a JSON object")
    return value


class ToolFamily:
    key = ""
    title = ""
    subfolder = ""
    import_name = "Default Config"
    import_notes = "Imported from existing config files"

    @property
    def profile_table(self) -> str:
        return f"{self.key}_provider"

    @property
    def common_table(self) -> str:
        return f"{self.key}_common_config"

    def config_dir(self) -> str:
        return get_tool_config_dir(self.subfolder)

    def destination_paths(self) -> dict:
        """Destination file name -> absolute path."""
        raise NotImplementedError

    def validate_common(self, text: str) -> None:
        raise NotImplementedError

    def render(self, settings_config: str, common_text: Optional[str]) -> dict:
        """Split the payload, merge the common layer under it, return {file name: content}."""
        raise NotImplementedError

    def legacy_settings(self, files) -> Optional[str]:
        """settings_config rebuilt from files on disk, or None if there is nothing to import."""
        raise NotImplementedError

    def read_current(self, files) -> dict:
        raise NotImplementedError


class CodexFamily(ToolFamily):
    """~/.codex/auth.json + ~/.codex/config.toml; common layer is TOML."""
    key = "codex"
    title = "Codex"
    subfolder = ".codex"
    AUTH_FILE = "auth.json"
    CONFIG_FILE = "config.toml"

    def destination_paths(self) -> dict:
        base = self.config_dir()
        return {
            self.AUTH_FILE: os.path.join(base, self.AUTH_FILE),
            self.CONFIG_FILE: os.path.join(base, self.CONFIG_FILE),
        }

    def validate_common(self, text: str) -> None:
        config_merge.validate_toml(text)

    def split_payload(self, settings_config: str):
        payload = _load_json_object(settings_config, "profile config")
        auth = payload.get("auth")
        if auth is None:
            auth = {}
        elif not isinstance(auth, dict):
            raise ParseError("Failed to parse profile config: 'auth' must be a JSON object")
        config_text = payload.get("config")
        if config_text is None:
            config_text = ""
        elif not isinstance(config_text, str):
            raise ParseError("Failed to parse profile config: 'config' must be TOML text")
        return auth, config_text

    def render(self, settings_config: str, common_text: Optional[str]) -> dict:
        auth, config_text = self.split_payload(settings_config)
        merged = config_merge.merge_layered_text(common_text or "", config_text)
        return {
            self.AUTH_FILE: _dump_json(auth),
            self.CONFIG_FILE: merged,
        }

    def legacy_settings(self, files) -> Optional[str]:
        paths = self.destination_paths()
        if not files.exists(paths[self.AUTH_FILE]):
            return None
        auth = files.read_json_file(paths[self.AUTH_FILE])
        if not isinstance(auth, dict):
            raise ParseError(f"Failed to parse {self.AUTH_FILE}: expected a JSON object")
        config_text = ""
        if files.exists(paths[self.CONFIG_FILE]):
            config_text = files.read_text_file(paths[self.CONFIG_FILE])
        return json.dumps({"auth": auth, "config": config_text}, ensure_ascii=False)

    def read_current(self, files) -> dict:
        paths = self.destination_paths()
        auth = None
        config_text = None
        if files.exists(paths[self.AUTH_FILE]):
            auth = files.read_json_file(paths[self.AUTH_FILE])
        if files.exists(paths[self.CONFIG_FILE]):
            config_text = files.read_text_file(paths[self.CONFIG_FILE])
        return {"auth": auth, "config": config_text}


class ClaudeFamily(ToolFamily):
    """~/.claude/settings.json; common layer is a JSON object deep-merged under the profile."""
    key = "claude"
    title = "Claude Code"
    subfolder = ".claude"
    SETTINGS_FILE = "settings.json"

    def destination_paths(self) -> dict:
        return {self.SETTINGS_FILE: os.path.join(self.config_dir(), self.SETTINGS_FILE)}

    def _common_layer(self, text: Optional[str]) -> dict:
        if not text or not text.strip():
            return {}
        return _load_json_object(text, "common config")

    def validate_common(self, text: str) -> None:
        self._common_layer(text)

    def render(self, settings_config: str, common_text: Optional[str]) -> dict:
        profile_layer = _load_json_object(settings_config, "profile config")
        merged = config_merge.deep_merge(self._common_layer(common_text), profile_layer)
        return {self.SETTINGS_FILE: _dump_json(config_merge.prune_empty(merged))}

    def legacy_settings(self, files) -> Optional[str]:
        path = self.destination_paths()[self.SETTINGS_FILE]
        if not files.exists(path):
            return None
        settings = files.read_json_file(path)
        if not isinstance(settings, dict):
            raise ParseError(f"Failed to parse {self.SETTINGS_FILE}: expected a JSON object")
        return json.dumps(settings, ensure_ascii=False)

    def read_current(self, files) -> dict:
        path = self.destination_paths()[self.SETTINGS_FILE]
        settings = files.read_json_file(path) if files.exists(path) else None
        return {"settings": settings}


def default_families() -> dict:
    """Families in tray / tab order."""
    families = [CodexFamily(), ClaudeFamily()]
    return {f.key: f for f in families}
