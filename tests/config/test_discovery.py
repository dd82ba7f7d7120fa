"""Tests for fifoctl.toml discovery."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from fifoctl.config.discovery import CONFIG_ENV_VAR, find_config, load_config


@pytest.fixture(autouse=True)
def _no_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


class TestFindConfig:
    def test_in_start_directory(self, tmp_path: Path) -> None:
        (tmp_path / "fifoctl.toml").write_text("")
        assert find_config(tmp_path) == (tmp_path / "fifoctl.toml").resolve()

    def test_walks_up(self, tmp_path: Path) -> None:
        (tmp_path / "fifoctl.toml").write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config(nested) == (tmp_path / "fifoctl.toml").resolve()

    def test_nearest_wins(self, tmp_path: Path) -> None:
        (tmp_path / "fifoctl.toml").write_text("")
        inner = tmp_path / "inner"
        inner.mkdir()
        (inner / "fifoctl.toml").write_text("")
        assert find_config(inner) == (inner / "fifoctl.toml").resolve()

    def test_directory_named_like_config_is_skipped(self, tmp_path: Path) -> None:
        (tmp_path / "fifoctl.toml").mkdir()
        found = find_config(tmp_path)
        assert found != tmp_path / "fifoctl.toml"

    def test_env_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom.toml"
        custom.write_text("")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(custom))
        assert find_config(tmp_path / "elsewhere") == custom

    def test_env_override_missing_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "gone.toml"))
        (tmp_path / "fifoctl.toml").write_text("")
        assert find_config(tmp_path) is None


class TestLoadConfig:
    def test_defaults_without_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "gone.toml"))
        config = load_config(start=tmp_path)
        assert config.server.poll_interval == 0.05
        assert config.client.lock is True

    def test_sparse_overrides(self, tmp_path: Path) -> None:
        path = tmp_path / "fifoctl.toml"
        path.write_text("[server]\npoll_interval = 0.2\n\n[client]\nlock = false\n")
        config = load_config(path)
        assert config.server.poll_interval == 0.2
        assert config.server.failure_history == 32
        assert config.client.lock is False

    def test_discovered(self, tmp_path: Path) -> None:
        (tmp_path / "fifoctl.toml").write_text("[plugins]\nenabled = false\n")
        assert load_config(start=tmp_path).plugins.enabled is False

    def test_invalid_value(self, tmp_path: Path) -> None:
        path = tmp_path / "fifoctl.toml"
        path.write_text("[server]\npoll_interval = 0\n")
        with pytest.raises(ValidationError):
            load_config(path)
