"""DispatchResult and DispatchError: the outcome of one record.

INVARIANT: Server.dispatch() always returns a DispatchResult; callback
exceptions are captured into ``error``, never propagated to the loop.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class DispatchError(BaseModel):
    """Structured error payload within a DispatchResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class DispatchResult(BaseModel):
    """Outcome of dispatching one record.

    Attributes:
        ok: False only when a registered callback raised.
        op: ``command``, ``assign``, or ``ignored`` (no registered key).
        key: Command or field name the record addressed.
        data: Arguments or value that were dispatched.
        error: Set when ``ok`` is False.
    """

    model_config = {"frozen": True}

    ok: bool
    op: Literal["command", "assign", "ignored"]
    key: str
    data: dict[str, Any] = Field(default_factory=dict)
    error: DispatchError | None = None
