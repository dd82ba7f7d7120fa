"""Tests for named-pipe file operations."""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from fifoctl.domain.errors import NotNamedPipeError, PipeIOError
from fifoctl.infrastructure.fifo import (
    close_reader,
    ensure_named_pipe,
    is_named_pipe,
    open_reader,
    remove_named_pipe,
)

pytestmark = pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="needs named pipes")


class TestIsNamedPipe:
    def test_fifo(self, pipe_path: Path) -> None:
        os.mkfifo(pipe_path)
        assert is_named_pipe(pipe_path)

    def test_regular_file(self, tmp_path: Path) -> None:
        path = tmp_path / "file"
        path.write_text("")
        assert not is_named_pipe(path)

    def test_missing(self, pipe_path: Path) -> None:
        assert not is_named_pipe(pipe_path)


class TestEnsureNamedPipe:
    def test_creates(self, pipe_path: Path) -> None:
        assert ensure_named_pipe(pipe_path) is True
        assert stat.S_ISFIFO(os.stat(pipe_path).st_mode)

    def test_reuses_existing(self, pipe_path: Path) -> None:
        os.mkfifo(pipe_path)
        assert ensure_named_pipe(pipe_path) is False

    def test_mode(self, pipe_path: Path) -> None:
        ensure_named_pipe(pipe_path, 0o600)
        assert stat.S_IMODE(os.stat(pipe_path).st_mode) == 0o600

    def test_rejects_regular_file(self, pipe_path: Path) -> None:
        pipe_path.write_text("data")
        with pytest.raises(NotNamedPipeError) as exc_info:
            ensure_named_pipe(pipe_path)
        assert exc_info.value.path == str(pipe_path)

    def test_rejects_directory(self, tmp_path: Path) -> None:
        with pytest.raises(NotNamedPipeError):
            ensure_named_pipe(tmp_path)

    def test_missing_parent(self, tmp_path: Path) -> None:
        with pytest.raises(PipeIOError, match="creating named pipe") as exc_info:
            ensure_named_pipe(tmp_path / "nope" / "pipe")
        assert isinstance(exc_info.value.cause, FileNotFoundError)


class TestReaderHandle:
    def test_open_does_not_wait_for_writer(self, pipe_path: Path) -> None:
        os.mkfifo(pipe_path)
        fd = open_reader(pipe_path)
        try:
            assert os.read(fd, 16) == b""
        finally:
            close_reader(fd, pipe_path)

    def test_open_missing(self, pipe_path: Path) -> None:
        with pytest.raises(PipeIOError, match="opening named pipe"):
            open_reader(pipe_path)

    def test_close_bad_descriptor(self, pipe_path: Path) -> None:
        os.mkfifo(pipe_path)
        fd = open_reader(pipe_path)
        os.close(fd)
        with pytest.raises(PipeIOError, match="closing"):
            close_reader(fd, pipe_path)


class TestRemoveNamedPipe:
    def test_removes(self, pipe_path: Path) -> None:
        os.mkfifo(pipe_path)
        remove_named_pipe(pipe_path)
        assert not pipe_path.exists()

    def test_missing(self, pipe_path: Path) -> None:
        with pytest.raises(PipeIOError, match="removing") as exc_info:
            remove_named_pipe(pipe_path)
        assert isinstance(exc_info.value, OSError)
