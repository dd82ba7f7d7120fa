"""Bind targets: a destination's declared type plus write access to it.

Built once at ``bind_field`` time so dispatch never inspects values.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from fifoctl.domain.coercion import coerce
from fifoctl.domain.errors import InvalidBindFieldError
from fifoctl.domain.kinds import AttributeRef, ValueType, Var


@dataclass(frozen=True)
class BindTarget:
    """Tagged descriptor of a bound destination.

    Attributes:
        type: Declared kind/width of the destination.
        setter: Write capability into the caller-owned destination.
        field: Field name reported in coercion errors.
        struct: Owning class name reported in coercion errors.
    """

    type: ValueType
    setter: Callable[[Any], None]
    field: str = ""
    struct: str = ""

    def assign(self, text: str) -> Any:
        """Coerce *text* and write it into the destination.

        The destination is untouched when coercion fails.
        """
        value = coerce(text, self.type, field=self.field, struct=self.struct)
        self.setter(value)
        return value


def bind_target(destination: object, *, field: str = "") -> BindTarget:
    """Build a :class:`BindTarget` over *destination*.

    Raises:
        InvalidBindFieldError: *destination* is ``None`` or not a
            :class:`Var` / :class:`AttributeRef`.
    """
    if isinstance(destination, Var):
        return BindTarget(destination.type, destination.set, field=field)
    if isinstance(destination, AttributeRef):
        return BindTarget(
            destination.type,
            destination.set,
            field=destination.attribute,
            struct=destination.struct_name,
        )
    raise InvalidBindFieldError(destination)
