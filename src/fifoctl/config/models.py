"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, fifoctl.toml only contains overrides.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ServerConfig(BaseModel):
    """[server] section."""

    model_config = {"frozen": True}

    pipe_mode: int = Field(default=0o600, ge=0, le=0o777)
    poll_interval: float = Field(default=0.05, gt=0)
    idle_interval: float = Field(default=0.01, ge=0)
    join_timeout: float = Field(default=2.0, ge=0)
    encoding: str = "utf-8"
    strip_line_ending: bool = True
    failure_history: int = Field(default=32, ge=0)
    lock_suffix: str = ".lock"


class ClientConfig(BaseModel):
    """[client] section."""

    model_config = {"frozen": True}

    open_timeout: float = Field(default=5.0, ge=0)
    lock: bool = True
    lock_suffix: str = ".lock"
    encoding: str = "utf-8"


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True


class FifoConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    server: ServerConfig = Field(default_factory=ServerConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
