"""
AI Toolbox: Tray Menu Model
Pure function from a fresh FamilyState snapshot to a flat, ordered list of menu rows.
The tray rebuilds the whole menu from this on every change; nothing is patched in place.

    Open Main Window
    ────────────
    ──── Codex ────
      [x] Profile A
      [ ] Profile B
    ────────────
    ──── Claude Code ────
        No profiles
    Quit
"""
from dataclasses import dataclass
from typing import Optional

KIND_ACTION = "action"
KIND_CHECK = "check"
KIND_SEPARATOR = "separator"
KIND_HEADER = "header"
KIND_PLACEHOLDER = "placeholder"

SHOW_ID = "show"
QUIT_ID = "quit"
PROFILE_ID_MARKER = "_profile_"


@dataclass(frozen=True)
class MenuEntry:
    kind: str
    id: str = ""
    label: str = ""
    checked: bool = False
    enabled: bool = True


def profile_entry_id(family_key: str, profile_id: str) -> str:
    return f"{family_key}{PROFILE_ID_MARKER}{profile_id}"


def parse_menu_id(entry_id: str, family_keys=None) -> Optional[tuple]:
    """'codex_profile_abc' -> ('codex', 'abc'). None for non-profile rows."""
    if PROFILE_ID_MARKER not in entry_id:
        return None
    family_key, profile_id = entry_id.split(PROFILE_ID_MARKER, 1)
    if not family_key or not profile_id:
        return None
    if family_keys is not None and family_key not in family_keys:
        return None
    return family_key, profile_id


def build_tray_menu(families: list) -> list:
    """families: [FamilyState] in display order; profiles already sorted by sort_index."""
    entries = [MenuEntry(KIND_ACTION, SHOW_ID, "Open Main Window")]

    for state in families:
        entries.append(MenuEntry(KIND_SEPARATOR))
        entries.append(MenuEntry(KIND_HEADER, f"{state.key}_header", f"──── {state.title} ────", enabled=False))

        if not state.profiles:
            entries.append(MenuEntry(KIND_PLACEHOLDER, f"{state.key}_empty", "  No profiles", enabled=False))
            continue

        for profile in state.profiles:
            entries.append(MenuEntry(
                KIND_CHECK,
                profile_entry_id(state.key, profile.id),
                profile.name,
                checked=profile.is_applied,
            ))

    entries.append(MenuEntry(KIND_SEPARATOR))
    entries.append(MenuEntry(KIND_ACTION, QUIT_ID, "Quit"))
    return entries
