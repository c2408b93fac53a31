"""Persisted client storage for the bearer token and the monthly budget.

The remote service never sees the budget; it lives here as a decimal string
next to the token, in a small TOML file in the XDG data directory.
"""

import os
import tomllib
from pathlib import Path
from typing import Protocol

import tomli_w

from tally.logging_setup import get_logger

logger = get_logger(__name__)

TOKEN_KEY = "token"
BUDGET_KEY = "monthly_budget"


class ClientStorage(Protocol):
    """Key/value storage of string values."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


def get_xdg_data_home() -> Path:
    """Get XDG data directory, with fallback to ~/.local/share."""
    xdg_data = os.environ.get("XDG_DATA_HOME")
    if xdg_data:
        return Path(xdg_data)
    return Path.home() / ".local" / "share"


def get_storage_path() -> Path:
    """Get the default storage file path (XDG compliant)."""
    return get_xdg_data_home() / "tally" / "storage.toml"


class MemoryStorage:
    """In-process storage, for tests and embedding."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)


class FileStorage:
    """Storage backed by a TOML file with 0600 permissions.

    The file is re-read on every access so several processes see each
    other's writes (e.g. `tally logout` while another command runs).
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = path if path is not None else get_storage_path()

    def _load(self) -> dict[str, str]:
        try:
            with open(self.path, "rb") as f:
                data = tomllib.load(f)
        except FileNotFoundError:
            return {}
        except tomllib.TOMLDecodeError as e:
            logger.warning("Ignoring unreadable storage file %s: %s", self.path, e)
            return {}
        return {key: str(value) for key, value in data.items()}

    def _save(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "wb") as f:
            tomli_w.dump(data, f)
        os.chmod(self.path, 0o600)

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)
