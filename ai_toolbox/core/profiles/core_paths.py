"""
AI Toolbox: Centralized Path Management
Home / app-data directory lookup and the path rules of the shared skills repository.
Stored repository paths may have been written on another OS, so classification
never relies on os.path.isabs alone.
"""
import os
import re
import sys

from ai_toolbox.core.errors import InvalidPath, IOFailure
from ai_toolbox.core.version import APP_ID

CENTRAL_DIR_NAME = "skills"
DATA_DIR_ENV = "AI_TOOLBOX_DATA_DIR"

_WINDOWS_ABS_RE = re.compile(r'^[A-Za-z]:[\\/]')


def get_home_dir() -> str:
    """USERPROFILE first (Windows), then HOME, then whatever expanduser finds."""
    home = os.environ.get("USERPROFILE") or os.environ.get("HOME")
    if home:
        return home
    return os.path.expanduser("~")


def get_app_data_dir() -> str:
    """
    Get the writable application data directory.
    AI_TOOLBOX_DATA_DIR overrides the platform default.
    """
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return override

    if sys.platform == "win32":
        base = os.environ.get("APPDATA") or os.path.join(get_home_dir(), "AppData", "Roaming")
    elif sys.platform == "darwin":
        base = os.path.join(get_home_dir(), "Library", "Application Support")
    else:
        base = os.environ.get("XDG_DATA_HOME") or os.path.join(get_home_dir(), ".local", "share")
    return os.path.join(base, APP_ID)


def get_log_dir() -> str:
    return os.path.join(get_app_data_dir(), "logs")


def get_db_path() -> str:
    return os.path.join(get_app_data_dir(), "toolbox.db")


def get_tool_config_dir(subfolder: str) -> str:
    """
    Home directory + tool subfolder (e.g. ~/.codex).
    Not created here; writers create it on first write.
    """
    return os.path.join(get_home_dir(), subfolder)


def expand_home(path: str) -> str:
    """Expand a bare '~' or a '~/' prefix against the home directory."""
    trimmed = (path or "").strip()
    if not trimmed:
        raise InvalidPath("storage path is empty")
    if trimmed == "~":
        return get_home_dir()
    if trimmed.startswith("~/"):
        return os.path.join(get_home_dir(), trimmed[2:])
    return trimmed


def is_any_platform_absolute(path: str) -> bool:
    """True for '/…' (Unix) and 'C:\\…' / 'C:/…' (Windows), whatever OS we run on."""
    if path.startswith('/'):
        return True
    return bool(_WINDOWS_ABS_RE.match(path))


def _last_segment(path: str) -> str:
    parts = [p for p in re.split(r'[\\/]', path) if p]
    return parts[-1] if parts else path


def to_relative(absolute_path: str, central_dir: str) -> str:
    """
    Convert an absolute repository path to the form stored in the database.

    Under central_dir: relative path with '/' separators.
    Anywhere else (including paths imported from another machine): final component only.
    """
    abs_norm = os.path.normpath(absolute_path)
    central_norm = os.path.normpath(central_dir)
    try:
        common = os.path.commonpath([abs_norm, central_norm])
    except ValueError:
        # Different drives or mixed absolute/relative
        common = None

    if common is not None and os.path.normcase(common) == os.path.normcase(central_norm):
        rel = os.path.relpath(abs_norm, central_norm)
        return "" if rel == "." else rel.replace('\\', '/')

    return _last_segment(absolute_path).replace('\\', '/')


def resolve_stored(stored_path: str, central_dir: str) -> str:
    """
    Resolve a stored repository path (relative or legacy absolute) against the
    current central directory.
    """
    if os.path.isabs(stored_path) and os.path.exists(stored_path):
        return stored_path

    # Legacy absolute path, possibly from another platform: keep only the name
    if is_any_platform_absolute(stored_path):
        return os.path.join(central_dir, _last_segment(stored_path))

    parts = [p for p in re.split(r'[\\/]', stored_path) if p]
    return os.path.join(central_dir, *parts)


def default_central_repo_dir() -> str:
    return os.path.join(get_app_data_dir(), CENTRAL_DIR_NAME)


def ensure_central_repo(path: str) -> str:
    """Create the central repository directory if it does not exist yet."""
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise IOFailure(f"Failed to create {path}: {e}", path) from e
    return path
