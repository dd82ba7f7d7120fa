"""Shared pytest fixtures and test helpers for fifoctl tests."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from fifoctl.config.models import ServerConfig
from fifoctl.infrastructure.client import send_record
from fifoctl.services.server import Server


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """CLI invocations reconfigure the root logger; undo that after each test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    fifo_level = logging.getLogger("fifoctl").level
    yield
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("fifoctl").setLevel(fifo_level)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def pipe_path(tmp_path: Path) -> Path:
    """Path for a FIFO inside the test's temp directory (not created)."""
    return tmp_path / "namedpipe"


@pytest.fixture
def fast_config() -> ServerConfig:
    """Server settings with short poll slices so tests finish quickly."""
    return ServerConfig(poll_interval=0.02, idle_interval=0.005, join_timeout=2.0)


@pytest.fixture
def server(pipe_path: Path, fast_config: ServerConfig) -> Generator[Server]:
    """Running server on ``pipe_path``; closed (and the FIFO removed) afterwards."""
    srv = Server(pipe_path, config=fast_config)
    try:
        yield srv
    finally:
        srv.close()


@pytest.fixture
def send(pipe_path: Path) -> Callable[[str], None]:
    """Write one record to ``pipe_path`` through the locking client."""

    def _send(text: str) -> None:
        send_record(pipe_path, text, timeout=2.0)

    return _send


def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    """Poll *predicate* until it is true or *timeout* elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


@pytest.fixture(name="wait_for")
def wait_for_fixture() -> Callable[..., bool]:
    """Bounded polling helper, for tests that observe the reader thread."""
    return wait_for
