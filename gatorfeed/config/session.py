"""
User Session File
=================

Persists the name of the logged-in user between CLI invocations in a small
JSON file (``~/.gatorconfig.json`` by default).
"""

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from ..utils.exceptions import ConfigurationError, ErrorCode


class UserSession(BaseModel):
    """Contents of the session file."""
    current_user_name: Optional[str] = Field(default=None, description="Logged-in user")

    @classmethod
    def load(cls, path: str) -> "UserSession":
        """Read the session file; a missing file is an empty session.

        Raises:
            ConfigurationError: If the file exists but cannot be decoded
        """
        session_path = Path(path).expanduser()
        if not session_path.exists():
            return cls()

        try:
            return cls.model_validate_json(session_path.read_text(encoding="utf-8"))
        except (OSError, PydanticValidationError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Failed to read session file {session_path}: {e}",
                config_key="session_file",
                error_code=ErrorCode.CONFIG_PARSE_ERROR,
            ) from e

    def save(self, path: str) -> None:
        session_path = Path(path).expanduser()
        session_path.parent.mkdir(parents=True, exist_ok=True)
        session_path.write_text(self.model_dump_json(), encoding="utf-8")

    def set_user(self, name: str, path: str) -> None:
        """Record ``name`` as the current user and write the file."""
        self.current_user_name = name
        self.save(path)
