"""
Runtime values for the Dicenic interpreter.

A Value is a tagged union of three kinds: NUMBER, STRING and DICE. DICE
values are numbers that remember they came from a dice roll; every
operator treats them exactly like NUMBER.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class ValueKind(Enum):
    """The closed set of runtime value kinds."""
    NUMBER = "number"
    STRING = "string"
    DICE = "dice"


NUMERIC_KINDS = frozenset({ValueKind.NUMBER, ValueKind.DICE})


@dataclass(frozen=True)
class Value:
    """
    An immutable runtime value.

    `payload` is a finite float for NUMBER and DICE, text for STRING.
    Use the constructors below rather than building Values directly.
    """
    kind: ValueKind
    payload: Union[float, str]

    def __repr__(self) -> str:
        return f"Value({self.kind.value}, {self.payload!r})"

    @property
    def is_numeric(self) -> bool:
        return self.kind in NUMERIC_KINDS

    @property
    def is_string(self) -> bool:
        return self.kind == ValueKind.STRING

    def is_truthy(self) -> bool:
        """Numbers are truthy when non-zero, strings when non-empty."""
        if self.kind in NUMERIC_KINDS:
            return self.payload != 0
        if self.kind == ValueKind.STRING:
            return self.payload != ""
        raise ValueError(f"Unknown value kind: {self.kind}")


def _finite(x: Any) -> float:
    """Coerce to float, mapping NaN and infinities to 0."""
    x = float(x)
    if math.isnan(x) or math.isinf(x):
        return 0.0
    return x


# Convenience constructors

def number_val(x: float) -> Value:
    """Create a number value."""
    return Value(ValueKind.NUMBER, _finite(x))


def string_val(s: str) -> Value:
    """Create a string value."""
    return Value(ValueKind.STRING, str(s))


def dice_val(total: float) -> Value:
    """Create a dice result value."""
    return Value(ValueKind.DICE, _finite(total))


def bool_val(b: bool) -> Value:
    """Truth as a number: 1 or 0."""
    return number_val(1 if b else 0)


ZERO = number_val(0)
ONE = number_val(1)
EMPTY = string_val("")
