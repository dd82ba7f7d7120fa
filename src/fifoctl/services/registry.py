"""Name -> callback registries for commands and fields.

Not lock-protected: registration is expected to finish before records
arrive (see the concurrency notes in :mod:`fifoctl.services.server`).
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from typing import Generic, Protocol, TypeVar

from fifoctl.domain.errors import DuplicateRegistrationError, InvalidNameError


class CommandFunc(Protocol):
    def __call__(self, name: str, *args: str) -> object: ...


class FieldFunc(Protocol):
    def __call__(self, field: str, value: str) -> object: ...


F = TypeVar("F", bound=Callable[..., object])

# Keys must survive the tokenizer intact: no whitespace, '=' or '"'.
COMMAND_NAME_RE = re.compile(r'[^\s="]+')
FIELD_NAME_RE = re.compile(r"[A-Za-z0-9_][A-Za-z0-9_.\-]*")


class Registry(Generic[F]):
    """Insert-once mapping from a wire key to its callback."""

    def __init__(self, kind: str, name_pattern: re.Pattern[str]) -> None:
        self.kind = kind
        self._pattern = name_pattern
        self._entries: dict[str, F] = {}

    def register(self, name: str, fn: F) -> None:
        """Add *fn* under *name*.

        Raises:
            InvalidNameError: *name* cannot appear as a key on the wire.
            DuplicateRegistrationError: *name* is taken; the existing entry stays.
            TypeError: *fn* is not callable.
        """
        if not isinstance(name, str) or not self._pattern.fullmatch(name):
            raise InvalidNameError(self.kind, str(name))
        if not callable(fn):
            msg = f"{self.kind} {name!r} callback must be callable, got {type(fn).__name__}"
            raise TypeError(msg)
        if name in self._entries:
            raise DuplicateRegistrationError(self.kind, name)
        self._entries[name] = fn

    def get(self, name: str) -> F | None:
        return self._entries.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def names(self) -> list[str]:
        return sorted(self._entries)


def command_registry() -> Registry[CommandFunc]:
    return Registry("command", COMMAND_NAME_RE)


def field_registry() -> Registry[FieldFunc]:
    return Registry("field", FIELD_NAME_RE)
