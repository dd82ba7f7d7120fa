"""fifoctl.toml discovery.

Lookup order: ``FIFOCTL_CONFIG`` env var, then a walk up the directory tree
from the starting point (cwd by default). Library hosts that do not go
through the CLI use :func:`load_config` to get the same sections.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path

from fifoctl.config.models import FifoConfig

CONFIG_FILENAME = "fifoctl.toml"
CONFIG_ENV_VAR = "FIFOCTL_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the nearest fifoctl.toml at or above *start*, or None."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override)
        return path if path.is_file() else None

    origin = (start or Path.cwd()).resolve()
    for directory in (origin, *origin.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Path | None = None, *, start: Path | None = None) -> FifoConfig:
    """Validate the discovered (or given) TOML file; defaults when there is none."""
    resolved = path or find_config(start)
    if resolved is None:
        return FifoConfig()
    with resolved.open("rb") as fh:
        return FifoConfig.model_validate(tomllib.load(fh))
