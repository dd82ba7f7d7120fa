"""Value coercion engine: raw record text -> typed destination value.

Dispatch is on the destination's declared :class:`~fifoctl.domain.kinds.Kind`.
Width checks are exact for the declared bit width: integers are parsed
with unbounded precision and range-checked, float32 values are rounded to
single precision and rejected if they overflow.

INVARIANT: every failure is a :class:`BindTypeError`, never a bare parse error.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Callable
from struct import pack, unpack
from typing import Any

from fifoctl.domain.errors import BindTypeError
from fifoctl.domain.kinds import Kind, ValueType

TRUE_LITERALS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
FALSE_LITERALS = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_INT_RE = re.compile(r"[+-]?[0-9]+", re.ASCII)
_UINT_RE = re.compile(r"[0-9]+", re.ASCII)
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?", re.ASCII)
_SPECIAL_FLOAT_RE = re.compile(r"[+-]?(?:inf|infinity|nan)", re.IGNORECASE)


def int_bounds(vtype: ValueType) -> tuple[int, int]:
    """Inclusive ``(min, max)`` for an int/uint type of the declared width."""
    assert vtype.width is not None
    if vtype.kind is Kind.UINT:
        return 0, (1 << vtype.width) - 1
    half = 1 << (vtype.width - 1)
    return -half, half - 1


def round_float32(value: float) -> float:
    """Round to the nearest float32. Raises OverflowError if that is infinite."""
    return unpack("<f", pack("<f", value))[0]


# ---------------------------------------------------------------------------
# Scalar rules
# ---------------------------------------------------------------------------


def _coerce_bool(text: str, vtype: ValueType, where: dict[str, str]) -> bool:
    if text in TRUE_LITERALS:
        return True
    if text in FALSE_LITERALS:
        return False
    raise BindTypeError(f"string {text!r}", vtype.name, reason="not a boolean", **where)


def _check_int_range(number: int, desc: str, vtype: ValueType, where: dict[str, str]) -> int:
    low, high = int_bounds(vtype)
    if number < low or number > high:
        raise BindTypeError(desc, vtype.name, reason=f"outside [{low}, {high}]", **where)
    return number


def _coerce_int(text: str, vtype: ValueType, where: dict[str, str]) -> int:
    pattern = _UINT_RE if vtype.kind is Kind.UINT else _INT_RE
    if not pattern.fullmatch(text):
        reason = "not a non-negative integer" if vtype.kind is Kind.UINT else "not an integer"
        raise BindTypeError(f"string {text!r}", vtype.name, reason=reason, **where)
    try:
        number = int(text, 10)
    except ValueError as exc:
        # Digit strings past the interpreter's int conversion limit.
        raise BindTypeError(
            f"number {text[:32]}...", vtype.name, reason="too many digits", **where
        ) from exc
    return _check_int_range(number, f"number {text}", vtype, where)


def _check_float_width(number: float, desc: str, vtype: ValueType, where: dict[str, str]) -> float:
    if math.isinf(number) or math.isnan(number) or vtype.width == 64:
        return number
    try:
        return round_float32(number)
    except OverflowError as exc:
        raise BindTypeError(desc, vtype.name, reason="overflows float32", **where) from exc


def _coerce_float(text: str, vtype: ValueType, where: dict[str, str]) -> float:
    if _SPECIAL_FLOAT_RE.fullmatch(text):
        return float(text)
    if not _FLOAT_RE.fullmatch(text):
        raise BindTypeError(f"string {text!r}", vtype.name, reason="not a number", **where)
    number = float(text)
    if math.isinf(number):
        raise BindTypeError(f"number {text}", vtype.name, reason="overflows float64", **where)
    return _check_float_width(number, f"number {text}", vtype, where)


def _coerce_string(text: str, vtype: ValueType, where: dict[str, str]) -> str:
    return text


# ---------------------------------------------------------------------------
# Sequences
# ---------------------------------------------------------------------------


def _describe_json(value: Any) -> str:
    """Describe a decoded JSON value the way error messages name it."""
    if isinstance(value, bool):
        return f"bool {json.dumps(value)}"
    if isinstance(value, (int, float)):
        return f"number {value}"
    if isinstance(value, str):
        return f"string {value!r}"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return "null"


def _reject_constant(name: str) -> float:
    msg = f"{name} is not a JSON number"
    raise ValueError(msg)


def _coerce_element(item: Any, vtype: ValueType, where: dict[str, str]) -> Any:
    """Coerce one decoded JSON element against its declared element type."""
    desc = _describe_json(item)
    kind = vtype.kind
    if kind is Kind.BOOL and isinstance(item, bool):
        return item
    if kind in (Kind.INT, Kind.UINT) and isinstance(item, int) and not isinstance(item, bool):
        return _check_int_range(item, desc, vtype, where)
    if kind is Kind.FLOAT and isinstance(item, (int, float)) and not isinstance(item, bool):
        number = float(item)
        if math.isinf(number):
            raise BindTypeError(desc, vtype.name, reason="overflows float64", **where)
        return _check_float_width(number, desc, vtype, where)
    if kind is Kind.STRING and isinstance(item, str):
        return item
    if kind is Kind.SEQUENCE and isinstance(item, list):
        return _collect(item, vtype, where)
    raise BindTypeError(desc, vtype.name, **where)


def _collect(items: list[Any], vtype: ValueType, where: dict[str, str]) -> list[Any]:
    assert vtype.element is not None
    if vtype.max_length is not None and len(items) > vtype.max_length:
        raise BindTypeError(
            f"array of {len(items)} elements",
            vtype.name,
            reason=f"longer than {vtype.max_length}",
            **where,
        )
    base_field = where.get("field", "")
    result: list[Any] = []
    for index, item in enumerate(items):
        element_where = {**where, "field": f"{base_field}[{index}]"}
        result.append(_coerce_element(item, vtype.element, element_where))
    return result


def _coerce_sequence(text: str, vtype: ValueType, where: dict[str, str]) -> list[Any]:
    try:
        decoded = json.loads(text, parse_constant=_reject_constant)
    except ValueError as exc:
        raise BindTypeError(
            f"string {text!r}", vtype.name, reason="malformed array literal", **where
        ) from exc
    if not isinstance(decoded, list):
        raise BindTypeError(_describe_json(decoded), vtype.name, **where)
    return _collect(decoded, vtype, where)


_RULES: dict[Kind, Callable[[str, ValueType, dict[str, str]], Any]] = {
    Kind.BOOL: _coerce_bool,
    Kind.INT: _coerce_int,
    Kind.UINT: _coerce_int,
    Kind.FLOAT: _coerce_float,
    Kind.STRING: _coerce_string,
    Kind.SEQUENCE: _coerce_sequence,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def coerce(text: str, vtype: ValueType, *, field: str = "", struct: str = "") -> Any:
    """Convert *text* into a value of *vtype*.

    Args:
        text: Raw value text from an assignment record.
        vtype: Declared destination type.
        field: Field name used in error messages.
        struct: Owning class name used in error messages.

    Raises:
        BindTypeError: *text* is not a valid value of *vtype*, does not fit
            its width, or *vtype* has no coercion rule.
    """
    where = {"field": field, "struct": struct}
    rule = _RULES.get(vtype.kind)
    if rule is None:
        raise BindTypeError(
            f"string {text!r}", vtype.name, reason="unsupported destination kind", **where
        )
    return rule(text, vtype, where)


def _shortest_float32(value: float) -> str:
    for precision in range(1, 10):
        candidate = f"{value:.{precision}g}"
        if round_float32(float(candidate)) == value:
            return candidate
    return repr(value)


def render(value: Any, vtype: ValueType) -> str:
    """Render a stored value back to the text :func:`coerce` accepts."""
    kind = vtype.kind
    if kind is Kind.BOOL:
        return "true" if value else "false"
    if kind is Kind.FLOAT:
        if math.isinf(value) or math.isnan(value):
            return repr(value)
        if vtype.width == 32:
            return _shortest_float32(value)
        return repr(value)
    if kind is Kind.SEQUENCE:
        assert vtype.element is not None
        element = vtype.element
        parts = [
            json.dumps(item) if element.kind is Kind.STRING else render(item, element)
            for item in value
        ]
        return "[" + ", ".join(parts) + "]"
    return str(value)
