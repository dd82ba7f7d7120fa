"""Named-pipe file operations.

Thin wrappers over ``os`` that translate OSError into the fifoctl error
families, each tagged with what was being attempted.
"""

from __future__ import annotations

import os
import stat
from pathlib import Path

from fifoctl.domain.errors import NotNamedPipeError, PipeIOError

DEFAULT_MODE = 0o600


def is_named_pipe(path: str | Path) -> bool:
    """True if *path* exists and is a FIFO (symlinks are followed)."""
    try:
        return stat.S_ISFIFO(os.stat(path).st_mode)
    except FileNotFoundError:
        return False


def ensure_named_pipe(path: str | Path, mode: int = DEFAULT_MODE) -> bool:
    """Create a FIFO at *path* unless one is already there.

    Returns True when the pipe was created by this call.

    Raises:
        NotNamedPipeError: Something other than a FIFO exists at *path*.
        PipeIOError: The FIFO could not be created or inspected.
    """
    try:
        info = os.stat(path)
    except FileNotFoundError:
        try:
            os.mkfifo(path, mode)
        except OSError as exc:
            raise PipeIOError("creating named pipe", str(path), exc) from exc
        return True
    except OSError as exc:
        raise PipeIOError("inspecting", str(path), exc) from exc

    if not stat.S_ISFIFO(info.st_mode):
        raise NotNamedPipeError(str(path))
    return False


def open_reader(path: str | Path) -> int:
    """Open the FIFO read-only and non-blocking; returns the descriptor.

    Non-blocking so the open itself does not wait for a writer, and so an
    idle pipe reports end-of-stream instead of hanging the reader.
    """
    try:
        return os.open(path, os.O_RDONLY | os.O_NONBLOCK)
    except OSError as exc:
        raise PipeIOError("opening named pipe", str(path), exc) from exc


def close_reader(fd: int, path: str | Path) -> None:
    try:
        os.close(fd)
    except OSError as exc:
        raise PipeIOError("closing", str(path), exc) from exc


def remove_named_pipe(path: str | Path) -> None:
    """Unlink the FIFO. Raises PipeIOError if it cannot be removed."""
    try:
        os.remove(path)
    except OSError as exc:
        raise PipeIOError("removing", str(path), exc) from exc
