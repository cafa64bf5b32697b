"""Reading and writing the user's gator configuration file."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_FILE_NAME = ".gatorconfig.json"


def config_file_path() -> Path:
    """Return the location of the configuration file in the home directory."""
    return Path.home() / CONFIG_FILE_NAME


@dataclass
class Config:
    """Database location and the name of the logged-in user."""

    db_url: str = ""
    current_user_name: str = ""
    path: Path | None = field(default=None, compare=False, repr=False)

    def set_user(self, username: str) -> None:
        """Make ``username`` the current user and save the configuration."""
        self.current_user_name = username
        self.write()

    def write(self) -> None:
        """Save the configuration as JSON to its file."""
        target = Path(self.path) if self.path is not None else config_file_path()
        payload = {"db_url": self.db_url, "current_username": self.current_user_name}
        target.write_text(
            json.dumps(payload, separators=(",", ":"), ensure_ascii=False),
            encoding="utf-8",
        )


def _string_field(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"configuration field {key!r} must be a string")
    return value


def read(path: str | Path | None = None) -> Config:
    """Load the configuration from ``path`` or from the home directory."""
    target = Path(path) if path is not None else config_file_path()
    data = json.loads(target.read_text(encoding="utf-8"))
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("configuration file must hold a JSON object")
    return Config(
        db_url=_string_field(data, "db_url"),
        current_user_name=_string_field(data, "current_username"),
        path=target,
    )