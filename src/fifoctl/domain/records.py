"""Record types produced by the tokenizer, one per pipe write/close cycle."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class RecordOp(StrEnum):
    """How a record is dispatched."""

    COMMAND = "command"
    ASSIGN = "assign"


@dataclass(frozen=True)
class Command:
    """``<name> [<arg> ...]``: invoke a registered command."""

    name: str
    args: tuple[str, ...] = ()

    op = RecordOp.COMMAND

    @property
    def key(self) -> str:
        return self.name


@dataclass(frozen=True)
class Assignment:
    """``<field> = <value>``: set a registered field."""

    field: str
    value: str

    op = RecordOp.ASSIGN

    @property
    def key(self) -> str:
        return self.field


Record = Command | Assignment
