"""
AI Toolbox: Config Merging
Layering rules shared by every tool family.

- deep_merge: recursive dict merge, overlay wins, lists are replaced (never concatenated)
- prune_empty: drop None values and empty dicts before writing a config
- merge_layered_text: TOML table-level override (common layer under the profile layer)
"""
import copy
import tomllib
from typing import Any

import tomli_w

from ai_toolbox.core.errors import ParseError


def deep_merge(base: Any, overlay: Any) -> Any:
    """Return a new structure with overlay merged onto base. Inputs are not modified."""
    if not (isinstance(base, dict) and isinstance(overlay, dict)):
        return copy.deepcopy(overlay)

    merged = copy.deepcopy(base)
    for key, value in overlay.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def prune_empty(value: Any) -> Any:
    """Recursively drop dict entries that are None or empty dicts. Lists are kept as-is."""
    if not isinstance(value, dict):
        return value

    cleaned = {}
    for key, item in value.items():
        item = prune_empty(item)
        if item is None:
            continue
        if isinstance(item, dict) and not item:
            continue
        cleaned[key] = item
    return cleaned


def parse_toml(text: str, label: str = "config") -> dict:
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ParseError(f"Failed to parse {label} TOML: {e}") from e


def validate_toml(text: str) -> None:
    """Blank text is a valid (empty) layer."""
    if text and text.strip():
        parse_toml(text)


def merge_layered_text(common: str, profile: str) -> str:
    """
    Merge two TOML documents, profile taking precedence.

    Each top-level key of the profile layer replaces the common layer's value
    wholesale (no recursion into tables). A blank layer returns the other verbatim.
    """
    common = common or ""
    profile = profile or ""
    if not common.strip():
        return profile
    if not profile.strip():
        return common

    merged = parse_toml(common, "common")
    for key, value in parse_toml(profile, "profile").items():
        merged[key] = value

    return tomli_w.dumps(merged)
