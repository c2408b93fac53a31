"""Tests for tally.config and tally.store.storage."""

import stat
import tomllib
from pathlib import Path

import pytest

from tally.config import (
    DEFAULT_API_URL,
    Settings,
    create_default_config,
    get_config_path,
    load_settings,
    save_config,
)
from tally.store.storage import BUDGET_KEY, TOKEN_KEY, FileStorage, MemoryStorage, get_storage_path


class TestConfigPaths:
    """Tests for XDG path resolution."""

    def test_config_path_uses_xdg(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

        assert get_config_path() == tmp_path / "tally" / "config.toml"

    def test_config_path_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should fall back to ~/.config."""
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))

        assert get_config_path() == tmp_path / ".config" / "tally" / "config.toml"

    def test_storage_path_uses_xdg(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))

        assert get_storage_path() == tmp_path / "tally" / "storage.toml"


class TestLoadSettings:
    """Tests for load_settings."""

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        assert load_settings(tmp_path / "absent.toml") == Settings()

    def test_default_config_round_trip(self, tmp_path: Path) -> None:
        """Should create a config with owner-only permissions that loads as defaults."""
        config_path = tmp_path / "tally" / "config.toml"

        create_default_config(config_path)

        assert stat.S_IMODE(config_path.stat().st_mode) == 0o600
        settings = load_settings(config_path)
        assert settings.api_url == DEFAULT_API_URL
        assert settings.max_attempts == 5
        assert settings.retry_delay == 1.0
        assert settings.timeout is None

    def test_values_override_defaults(self, tmp_path: Path) -> None:
        config_path = tmp_path / "config.toml"
        save_config(
            {"api_url": "https://expenses.example/", "max_attempts": 3, "timeout": 10, "log_level": "DEBUG"},
            config_path,
        )

        settings = load_settings(config_path)

        assert settings.api_url == "https://expenses.example"
        assert settings.max_attempts == 3
        assert settings.timeout == 10.0
        assert settings.log_level == "DEBUG"
        assert settings.currency == "₹"

    def test_unknown_keys_ignored(self, tmp_path: Path) -> None:
        config_path = tmp_path / "config.toml"
        save_config({"currency": "$", "theme": "dark"}, config_path)

        assert load_settings(config_path) == Settings(currency="$")

    def test_invalid_toml_raises(self, tmp_path: Path) -> None:
        config_path = tmp_path / "config.toml"
        config_path.write_text("api_url = ", encoding="utf-8")

        with pytest.raises(tomllib.TOMLDecodeError):
            load_settings(config_path)

    def test_wrong_type_raises(self, tmp_path: Path) -> None:
        config_path = tmp_path / "config.toml"
        save_config({"max_attempts": "many"}, config_path)

        with pytest.raises(ValueError):
            load_settings(config_path)


class TestMemoryStorage:
    """Tests for MemoryStorage."""

    def test_set_get_remove(self) -> None:
        storage = MemoryStorage({TOKEN_KEY: "abc"})

        storage.set(BUDGET_KEY, "5000")
        storage.remove(TOKEN_KEY)

        assert storage.get(BUDGET_KEY) == "5000"
        assert storage.get(TOKEN_KEY) is None

    def test_remove_missing_key(self) -> None:
        MemoryStorage().remove(TOKEN_KEY)


class TestFileStorage:
    """Tests for FileStorage."""

    def test_persists_between_instances(self, tmp_path: Path) -> None:
        """Should let a second instance read what the first wrote."""
        path = tmp_path / "data" / "storage.toml"

        FileStorage(path).set(BUDGET_KEY, "5000")

        assert FileStorage(path).get(BUDGET_KEY) == "5000"
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_missing_file_reads_empty(self, tmp_path: Path) -> None:
        assert FileStorage(tmp_path / "absent.toml").get(TOKEN_KEY) is None

    def test_corrupt_file_reads_empty(self, tmp_path: Path) -> None:
        """Should treat an unparseable file as empty instead of raising."""
        path = tmp_path / "storage.toml"
        path.write_text("token = [unterminated\n", encoding="utf-8")

        assert FileStorage(path).get(TOKEN_KEY) is None

    def test_corrupt_file_is_replaced_on_write(self, tmp_path: Path) -> None:
        path = tmp_path / "storage.toml"
        path.write_text("token = [unterminated\n", encoding="utf-8")

        FileStorage(path).set(BUDGET_KEY, "100")

        assert tomllib.loads(path.read_text(encoding="utf-8")) == {BUDGET_KEY: "100"}

    def test_remove(self, tmp_path: Path) -> None:
        storage = FileStorage(tmp_path / "storage.toml")
        storage.set(TOKEN_KEY, "abc")
        storage.set(BUDGET_KEY, "100")

        storage.remove(TOKEN_KEY)

        assert storage.get(TOKEN_KEY) is None
        assert storage.get(BUDGET_KEY) == "100"

    def test_default_path(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))

        FileStorage().set(TOKEN_KEY, "abc")

        assert (tmp_path / "tally" / "storage.toml").exists()
