"""The ``<pipe>.lock`` sidecar: writer lock plus reader cycle counter.

Locking writers ``flock`` the sidecar to take turns. The server stores a
cycle counter in it and bumps the counter each time it has seen a writer
hang up and re-armed for the next one. A locking writer keeps the lock
until the counter moves past the value it read before writing, so the next
locking writer cannot connect while the reader is still attached to the
previous cycle.

Writers that skip the lock (``echo cmd > pipe``) still bump the counter
when they hang up, but nothing orders them against anyone else.
"""

from __future__ import annotations

import os
from pathlib import Path

from fifoctl.domain.errors import PipeIOError

_WIDTH = 20


def sidecar_path(path: str | Path, suffix: str = ".lock") -> Path:
    return Path(f"{path}{suffix}")


def open_sidecar(path: str | Path) -> int:
    """Open (creating if needed) the sidecar read-write; returns the descriptor."""
    try:
        return os.open(path, os.O_RDWR | os.O_CREAT, 0o600)
    except OSError as exc:
        raise PipeIOError("opening lock file", str(path), exc) from exc


def read_cycle_count(fd: int) -> int:
    """Current counter value; 0 for an empty or unreadable sidecar."""
    # The reader rewrites the counter in place; retry until two reads agree.
    while True:
        first = os.pread(fd, _WIDTH + 1, 0)
        if os.pread(fd, _WIDTH + 1, 0) == first:
            break
    try:
        return int(first.strip() or b"0")
    except ValueError:
        return 0


def write_cycle_count(fd: int, count: int, path: str | Path) -> None:
    try:
        os.pwrite(fd, f"{count:0{_WIDTH}d}\n".encode("ascii"), 0)
    except OSError as exc:
        raise PipeIOError("acknowledging cycle in", str(path), exc) from exc


def remove_sidecar(path: str | Path) -> None:
    """Unlink the sidecar if it is there."""
    try:
        os.remove(path)
    except FileNotFoundError:
        return
    except OSError as exc:
        raise PipeIOError("removing", str(path), exc) from exc
