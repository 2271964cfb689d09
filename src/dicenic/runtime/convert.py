"""
Conversions between runtime value kinds.

All functions here are pure. Numeric parsing follows the lenient
"longest numeric prefix" rule scripts expect: "12abc" reads as 12 and
text without a numeric prefix reads as 0.
"""

import re
from decimal import Decimal
from typing import Any, Optional, Tuple

from ..tokens import TokenType
from .values import (
    Value, ValueKind, number_val, string_val, dice_val, bool_val,
)


_NUMERIC_PREFIX = re.compile(
    r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
)

ARITHMETIC_OPERATORS = frozenset({
    TokenType.PLUS, TokenType.MINUS, TokenType.STAR, TokenType.SLASH, TokenType.PERCENT,
})
EQUALITY_OPERATORS = frozenset({TokenType.EQ, TokenType.NE})
ORDERING_OPERATORS = frozenset({TokenType.LT, TokenType.GT, TokenType.LE, TokenType.GE})
LOGICAL_OPERATORS = frozenset({TokenType.AND, TokenType.OR})


def parse_number(text: str) -> Optional[float]:
    """Parse the longest numeric prefix of text, or None if there is none."""
    match = _NUMERIC_PREFIX.match(text.lstrip())
    if match is None:
        return None
    result = float(match.group(0))
    if result != result or result in (float("inf"), float("-inf")):
        return None
    return result


def is_numeric_text(text: str) -> bool:
    return parse_number(text) is not None


def fails_numeric_conversion(value: Value) -> bool:
    """True for a non-blank string with no numeric prefix."""
    return (value.kind == ValueKind.STRING
            and value.payload.strip() != ""
            and parse_number(value.payload) is None)


def format_number(x: float) -> str:
    """Shortest decimal text: 3 -> "3", 2.5 -> "2.5", 1e21 -> "1e+21"."""
    if x == 0:
        return "0"
    text = repr(x)
    if 1e-6 <= abs(x) < 1e21:
        if "e" in text:
            return format(Decimal(text), "f")
        if x.is_integer():
            return str(int(x))
        return text
    mantissa, exponent = text.split("e")
    sign = "-" if exponent.startswith("-") else "+"
    digits = exponent.lstrip("+-").lstrip("0") or "0"
    return f"{mantissa}e{sign}{digits}"


def to_number(value: Value) -> float:
    """Numeric payload; strings without a numeric prefix read as 0."""
    if value.kind in (ValueKind.NUMBER, ValueKind.DICE):
        return value.payload
    if value.kind == ValueKind.STRING:
        result = parse_number(value.payload)
        return 0.0 if result is None else result
    raise ValueError(f"Unknown value kind: {value.kind}")


def to_string(value: Value) -> str:
    if value.kind == ValueKind.STRING:
        return value.payload
    if value.kind in (ValueKind.NUMBER, ValueKind.DICE):
        return format_number(value.payload)
    raise ValueError(f"Unknown value kind: {value.kind}")


def to_boolean(value: Value) -> bool:
    return value.is_truthy()


def default_value(kind: ValueKind) -> Value:
    """The value used when a variable is missing or a conversion fails."""
    if kind == ValueKind.NUMBER:
        return number_val(0)
    if kind == ValueKind.STRING:
        return string_val("")
    if kind == ValueKind.DICE:
        return dice_val(0)
    raise ValueError(f"Unknown value kind: {kind}")


def implicit_convert(value: Value, target_kind: ValueKind) -> Value:
    """Convert a value to another kind. Same-kind conversion is a no-op."""
    if value.kind == target_kind:
        return value
    if target_kind == ValueKind.NUMBER:
        return number_val(to_number(value))
    if target_kind == ValueKind.STRING:
        return string_val(to_string(value))
    if target_kind == ValueKind.DICE:
        return dice_val(to_number(value))
    raise ValueError(f"Unknown value kind: {target_kind}")


def validate_kind(value: Value, kind: ValueKind) -> bool:
    return value.kind == kind


def to_value(raw: Any, target_kind: Optional[ValueKind] = None) -> Value:
    """
    Wrap a host (Python) value as a script Value.

    bool -> 1/0 (or "true"/"false" for a STRING target), int/float ->
    NUMBER, str -> STRING (parsed for a numeric target), None and
    unsupported types -> the target kind's default.
    """
    if isinstance(raw, Value):
        return raw if target_kind is None else implicit_convert(raw, target_kind)

    if isinstance(raw, bool):
        if target_kind == ValueKind.STRING:
            return string_val("true" if raw else "false")
        result = bool_val(raw)
    elif isinstance(raw, (int, float)):
        result = number_val(raw)
    elif isinstance(raw, str):
        if target_kind in (ValueKind.NUMBER, ValueKind.DICE):
            result = number_val(to_number(string_val(raw)))
        else:
            result = string_val(raw)
    else:
        return default_value(target_kind or ValueKind.STRING)

    if target_kind is None:
        return result
    return implicit_convert(result, target_kind)


def from_value(value: Value) -> Any:
    """Unwrap a Value to a plain Python value (int when integral)."""
    if value.kind == ValueKind.STRING:
        return value.payload
    if value.kind in (ValueKind.NUMBER, ValueKind.DICE):
        payload = value.payload
        return int(payload) if payload.is_integer() else payload
    raise ValueError(f"Unknown value kind: {value.kind}")


def coerce_for_operator(left: Value, right: Value, op: TokenType) -> Tuple[Value, Value]:
    """
    Coerce a pair of operands for a binary operator.

    - `+`: concatenation (both strings) when either side is a string with
      no numeric prefix, numeric addition otherwise
    - `- * / %` and ordering: both numbers
    - equality: unchanged when both sides are numeric or both strings,
      otherwise both strings
    - `&& ||`: unchanged
    """
    if op == TokenType.PLUS:
        if ((left.is_string and not is_numeric_text(left.payload))
                or (right.is_string and not is_numeric_text(right.payload))):
            return string_val(to_string(left)), string_val(to_string(right))
        return number_val(to_number(left)), number_val(to_number(right))

    if op in ARITHMETIC_OPERATORS or op in ORDERING_OPERATORS:
        return number_val(to_number(left)), number_val(to_number(right))

    if op in EQUALITY_OPERATORS:
        if left.is_numeric == right.is_numeric:
            return left, right
        return string_val(to_string(left)), string_val(to_string(right))

    if op in LOGICAL_OPERATORS:
        return left, right

    raise ValueError(f"Unknown operator: {op}")
