"""
AI Toolbox: Error Taxonomy
Every failure raised by the profile store and apply engine derives from ToolboxError,
so UI surfaces can catch one type at the action boundary.
"""


class ToolboxError(Exception):
    """Base class for all profile / apply failures."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class NotFound(ToolboxError):
    """Raised when a profile id does not exist in its family table."""
    def __init__(self, family: str, profile_id: str):
        self.family = family
        self.profile_id = profile_id
        super().__init__(f"{family} profile '{profile_id}' not found")


class DuplicateId(ToolboxError):
    """Raised when creating a profile whose id already exists."""
    def __init__(self, family: str, profile_id: str):
        self.family = family
        self.profile_id = profile_id
        super().__init__(f"{family} profile with ID '{profile_id}' already exists")


class ParseError(ToolboxError):
    """Malformed JSON / TOML payload."""


class IOFailure(ToolboxError):
    """File read, write or directory creation failed."""
    def __init__(self, message: str, path: str = None):
        self.path = path
        super().__init__(message)


class StoreFailure(ToolboxError):
    """Document store query failed or the store is closed."""


class InvalidPath(ToolboxError):
    """A user supplied path could not be resolved."""
