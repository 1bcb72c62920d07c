import os
import json
import logging

from ai_toolbox.core.errors import IOFailure, ParseError


class FileHandler:
    """File-system layer used by the apply engine.

    All reads and writes of tool config files go through here so that OS errors
    surface as IOFailure with the offending path attached.
    """

    def __init__(self):
        self.logger = logging.getLogger("FileHandler")

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def ensure_directory(self, path: str) -> str:
        """Create the directory (and parents) if missing."""
        if not os.path.isdir(path):
            try:
                os.makedirs(path, exist_ok=True)
                self.logger.info(f"Created directory {path}")
            except OSError as e:
                raise IOFailure(f"Failed to create directory {path}: {e}", path) from e
        return path

    def read_text_file(self, path: str) -> str:
        """Reads a text file safely."""
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return f.read()
        except OSError as e:
            self.logger.error(f"Failed to read file {path}: {e}")
            raise IOFailure(f"Failed to read {os.path.basename(path)}: {e}", path) from e

    def write_text_file(self, path: str, content: str) -> None:
        """Writes content to a text file, creating the parent directory first."""
        self.ensure_directory(os.path.dirname(path))
        try:
            with open(path, 'w', encoding='utf-8') as f:
                f.write(content)
            self.logger.info(f"Successfully wrote to {path}")
        except OSError as e:
            self.logger.error(f"Failed to write file {path}: {e}")
            raise IOFailure(f"Failed to write {os.path.basename(path)}: {e}", path) from e

    def read_json_file(self, path: str):
        content = self.read_text_file(path)
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise ParseError(f"Failed to parse {os.path.basename(path)}: {e}") from e
