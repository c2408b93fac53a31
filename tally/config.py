"""Configuration file management for tally.

Settings live in a TOML file under the XDG config directory. Every key is
optional; missing keys (or a missing file) fall back to the defaults below.
"""

import os
import tomllib
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import tomli_w

DEFAULT_API_URL = "http://localhost:5000"
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_RETRY_DELAY = 1.0
DEFAULT_CURRENCY = "₹"


@dataclass(frozen=True)
class Settings:
    """Immutable client settings."""

    api_url: str = DEFAULT_API_URL
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_delay: float = DEFAULT_RETRY_DELAY
    timeout: float | None = None  # None waits on the transport indefinitely
    log_level: str | None = None
    currency: str = DEFAULT_CURRENCY


def get_xdg_config_home() -> Path:
    """Get XDG config directory, with fallback to ~/.config."""
    configured = os.environ.get("XDG_CONFIG_HOME")
    return Path(configured) if configured else Path.home() / ".config"


def get_config_path() -> Path:
    """Path of the tally config file (XDG compliant)."""
    return get_xdg_config_home() / "tally" / "config.toml"


def create_default_config(config_path: Path | None = None) -> None:
    """Write a config file holding every default setting.

    Args:
        config_path: Where to write. Defaults to ``get_config_path()``.
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    # TOML has no null, so unset optional settings are left out
    defaults = {key: value for key, value in asdict(Settings()).items() if value is not None}
    save_config(defaults, path)


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Read the raw config dictionary.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If config file is not valid TOML.
    """
    with open(config_path or get_config_path(), "rb") as f:
        return tomllib.load(f)


def save_config(config: dict[str, Any], config_path: Path | None = None) -> None:
    """Write the config dictionary, readable by the owner only."""
    path = config_path or get_config_path()
    with open(path, "wb") as f:
        tomli_w.dump(config, f)
    os.chmod(path, 0o600)


def settings_from_config(config: dict[str, Any]) -> Settings:
    """Build Settings from a config dictionary.

    Unknown keys are ignored so newer config files still load.

    Args:
        config: Raw config as read from TOML.

    Returns:
        Settings with config values merged over defaults.

    Raises:
        ValueError: If a value cannot be converted to its setting's type.
    """
    known = {f.name for f in fields(Settings)}
    values = {key: value for key, value in config.items() if key in known}

    if "api_url" in values:
        values["api_url"] = str(values["api_url"]).rstrip("/")
    if "max_attempts" in values:
        values["max_attempts"] = int(values["max_attempts"])
    for key in ("retry_delay", "timeout"):
        if values.get(key) is not None:
            values[key] = float(values[key])
    for key in ("log_level", "currency"):
        if key in values:
            values[key] = str(values[key])

    return Settings(**values)


def load_settings(config_path: Path | None = None) -> Settings:
    """Load settings, falling back to defaults when the file is missing.

    Raises:
        tomllib.TOMLDecodeError: If config file is not valid TOML.
        ValueError: If a value has the wrong type.
    """
    try:
        config = load_config(config_path)
    except FileNotFoundError:
        return Settings()
    return settings_from_config(config)
