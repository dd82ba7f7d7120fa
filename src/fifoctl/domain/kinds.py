"""Destination kinds, value types, and caller-owned destinations.

A :class:`ValueType` is the explicit description of what a bound variable
holds: its :class:`Kind`, its bit width for numeric kinds, and its element
type for sequences. Destinations carry their ``ValueType`` so the coercion
engine never has to inspect Python values to decide how to parse text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class Kind(StrEnum):
    """Primitive kinds a destination can declare."""

    BOOL = "bool"
    INT = "int"
    UINT = "uint"
    FLOAT = "float"
    STRING = "str"
    SEQUENCE = "sequence"
    # Declarable, but no coercion rule exists for it.
    MAP = "map"


INT_WIDTHS = frozenset({8, 16, 32, 64})
FLOAT_WIDTHS = frozenset({32, 64})


@dataclass(frozen=True)
class ValueType:
    """Kind + width (+ element type) of a destination."""

    kind: Kind
    width: int | None = None
    element: ValueType | None = None
    max_length: int | None = None

    def __post_init__(self) -> None:
        if self.kind in (Kind.INT, Kind.UINT) and self.width not in INT_WIDTHS:
            msg = f"{self.kind} width must be one of {sorted(INT_WIDTHS)}, got {self.width}"
            raise ValueError(msg)
        if self.kind is Kind.FLOAT and self.width not in FLOAT_WIDTHS:
            msg = f"float width must be one of {sorted(FLOAT_WIDTHS)}, got {self.width}"
            raise ValueError(msg)
        if self.kind is Kind.SEQUENCE and self.element is None:
            msg = "sequence types need an element type"
            raise ValueError(msg)
        if self.max_length is not None and self.max_length < 0:
            msg = f"max_length must be >= 0, got {self.max_length}"
            raise ValueError(msg)

    @property
    def name(self) -> str:
        """Display name: ``int8``, ``float32``, ``[]int64``, ``[4]str``."""
        if self.kind is Kind.SEQUENCE:
            assert self.element is not None
            bound = "" if self.max_length is None else str(self.max_length)
            return f"[{bound}]{self.element.name}"
        if self.width is not None:
            return f"{self.kind}{self.width}"
        return str(self.kind)

    def __str__(self) -> str:
        return self.name

    def zero(self) -> Any:
        """The value a fresh destination of this type holds."""
        if self.kind is Kind.SEQUENCE:
            return []
        return _ZERO_VALUES.get(self.kind)


_ZERO_VALUES: dict[Kind, Any] = {
    Kind.BOOL: False,
    Kind.INT: 0,
    Kind.UINT: 0,
    Kind.FLOAT: 0.0,
    Kind.STRING: "",
}

BOOL = ValueType(Kind.BOOL)
INT8 = ValueType(Kind.INT, 8)
INT16 = ValueType(Kind.INT, 16)
INT32 = ValueType(Kind.INT, 32)
INT64 = ValueType(Kind.INT, 64)
INT = INT64
UINT8 = ValueType(Kind.UINT, 8)
UINT16 = ValueType(Kind.UINT, 16)
UINT32 = ValueType(Kind.UINT, 32)
UINT64 = ValueType(Kind.UINT, 64)
UINT = UINT64
FLOAT32 = ValueType(Kind.FLOAT, 32)
FLOAT64 = ValueType(Kind.FLOAT, 64)
STRING = ValueType(Kind.STRING)
MAP = ValueType(Kind.MAP)


def sequence_of(element: ValueType, max_length: int | None = None) -> ValueType:
    """Build a (optionally bounded) sequence type over *element*."""
    return ValueType(Kind.SEQUENCE, element=element, max_length=max_length)


# Names accepted by parse_type(); ``int``/``uint``/``float`` default to 64 bits.
_SCALAR_NAMES: dict[str, ValueType] = {
    "bool": BOOL,
    "int": INT,
    "int8": INT8,
    "int16": INT16,
    "int32": INT32,
    "int64": INT64,
    "uint": UINT,
    "uint8": UINT8,
    "uint16": UINT16,
    "uint32": UINT32,
    "uint64": UINT64,
    "float": FLOAT64,
    "float32": FLOAT32,
    "float64": FLOAT64,
    "str": STRING,
    "string": STRING,
    "map": MAP,
}

_SEQUENCE_RE = re.compile(r"^\[(\d*)\](.+)$")


def parse_type(name: str) -> ValueType:
    """Parse a display name (``uint16``, ``[]int``, ``[3]float32``) into a ValueType."""
    text = name.strip()
    match = _SEQUENCE_RE.match(text)
    if match:
        bound, element = match.groups()
        return sequence_of(parse_type(element), int(bound) if bound else None)
    try:
        return _SCALAR_NAMES[text.lower()]
    except KeyError:
        msg = f"Unknown value type: {name!r}"
        raise ValueError(msg) from None


# ---------------------------------------------------------------------------
# Destinations
# ---------------------------------------------------------------------------


@dataclass
class Var:
    """A typed, caller-owned variable.

    The server writes ``value`` from its reader thread only; other threads
    may read it but must treat it as eventually consistent.

    Usage::

        debug = Var(BOOL)
        server.bind_field("app.debug", debug)
    """

    type: ValueType
    value: Any = field(default=None)

    def __post_init__(self) -> None:
        if self.value is None:
            self.value = self.type.zero()

    def set(self, value: Any) -> None:
        self.value = value


@dataclass(frozen=True)
class AttributeRef:
    """A named attribute on a caller-owned object, with its declared type."""

    obj: object
    attribute: str
    type: ValueType

    @property
    def struct_name(self) -> str:
        return type(self.obj).__name__

    def set(self, value: Any) -> None:
        setattr(self.obj, self.attribute, value)


def attribute(obj: object, name: str, vtype: ValueType) -> AttributeRef:
    """Reference ``obj.<name>`` as a bind destination of type *vtype*."""
    if obj is None:
        msg = "attribute() needs an object, got None"
        raise TypeError(msg)
    if not name.isidentifier():
        msg = f"Not an attribute name: {name!r}"
        raise ValueError(msg)
    return AttributeRef(obj, name, vtype)
