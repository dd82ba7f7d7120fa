"""FifoSettings: the resolved view of flags, environment, and fifoctl.toml.

Later sources lose to earlier ones:
  1. keyword arguments (Click flags)
  2. ``FIFOCTL_*`` environment variables, ``__`` between section and key
     (``FIFOCTL_SERVER__POLL_INTERVAL=0.2``)
  3. the nearest ``fifoctl.toml``
  4. defaults from :mod:`fifoctl.config.models`
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from fifoctl.config.discovery import find_config
from fifoctl.config.models import ClientConfig, FifoConfig, PluginsConfig, ServerConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Feed the sections of a fifoctl.toml file into pydantic-settings."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path is None or not toml_path.is_file():
            return
        try:
            self._data = tomllib.loads(toml_path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as exc:
            msg = f"Invalid TOML in {toml_path}: {exc}"
            raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# The TOML path has to reach settings_customise_sources, which pydantic calls
# as a classmethod during __init__.
_tls = threading.local()


class FifoSettings(BaseSettings):
    """Settings for the fifoctl CLI and for library hosts.

    Attributes:
        config_path: The TOML file the sections came from, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "FIFOCTL_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    server: ServerConfig = Field(default_factory=ServerConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert the TOML source between env vars and defaults."""
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, getattr(_tls, "toml_path", None)),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        start: Path | None = None,
        **cli_flags: Any,
    ) -> FifoSettings:
        """Build settings for a CLI invocation.

        An explicit *config_path* wins over discovery; a missing explicit
        file is an error rather than a silent fallback to defaults.
        """
        toml_path: Path | None
        if config_path:
            toml_path = Path(config_path)
            if not toml_path.is_file():
                msg = f"Config file not found: {config_path}"
                raise click.ClickException(msg)
        else:
            toml_path = find_config(start)

        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **cli_flags)
        finally:
            _tls.toml_path = None

    def sections(self) -> FifoConfig:
        """The TOML-level sections as a plain :class:`FifoConfig`."""
        return FifoConfig(server=self.server, client=self.client, plugins=self.plugins)
