from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional


def now_iso() -> str:
    """Local time with UTC offset, e.g. 2025-01-31T10:00:00.123456+08:00"""
    return datetime.now().astimezone().isoformat()


@dataclass
class Profile:
    id: str
    name: str
    settings_config: str = "{}"
    category: str = ""
    source_profile_id: Optional[str] = None
    website_url: Optional[str] = None
    notes: Optional[str] = None
    icon: Optional[str] = None
    icon_color: Optional[str] = None
    sort_index: Optional[int] = None
    is_applied: bool = False
    created_at: str = ""
    updated_at: str = ""

    def copy(self, **changes) -> "Profile":
        return replace(self, **changes)


@dataclass
class CommonConfig:
    config: str = ""
    updated_at: Optional[str] = None


@dataclass
class SkillSettings:
    central_repo_path: str = ""


@dataclass
class AppSettings:
    minimize_to_tray: bool = True


@dataclass
class FamilyState:
    """Fresh query result used to render the tray and the window."""
    key: str
    title: str
    profiles: list = field(default_factory=list)

    @property
    def applied(self) -> Optional[Profile]:
        for p in self.profiles:
            if p.is_applied:
                return p
        return None
