"""
Dice expression parsing and rolling.

A dice expression is `NdM`: roll N dice with M sides and sum them.
"""

import random
import re
from typing import Optional, Tuple

from ..tokens import SourceSpan
from ..errors import DiceError, warning_invalid_dice
from .values import Value, dice_val


MAX_DICE_COUNT = 1000
MAX_DICE_SIDES = 10000

_DICE_PATTERN = re.compile(r"^\s*([0-9]+)[dD]([0-9]+)\s*$")


def is_dice_expression(text: str) -> bool:
    """Check whether text has the NdM shape (bounds not checked)."""
    return _DICE_PATTERN.match(text) is not None


def _invalid(expression: str, reason: str) -> DiceError:
    return warning_invalid_dice(expression, reason, SourceSpan.unknown())


class DiceCalculator:
    """
    Parses, validates and rolls dice expressions.

    Randomness comes from a `random.Random` instance; pass `seed` (or
    your own `rng`) for reproducible rolls.
    """

    def __init__(self, rng: Optional[random.Random] = None, seed: Optional[int] = None):
        if rng is None:
            rng = random.Random(seed)
        self.rng = rng

    def parse(self, expression: str) -> Tuple[int, int]:
        """Split `NdM` into (count, sides). Raises DiceError on any other shape."""
        match = _DICE_PATTERN.match(expression)
        if match is None:
            raise _invalid(expression, "expected the form NdM, e.g. 3d6")
        return int(match.group(1)), int(match.group(2))

    @staticmethod
    def validate(count: int, sides: int) -> bool:
        """Both positive integers, count <= 1000 and sides <= 10000."""
        for n in (count, sides):
            if isinstance(n, bool) or not isinstance(n, int):
                return False
        return 0 < count <= MAX_DICE_COUNT and 0 < sides <= MAX_DICE_SIDES

    def calculate(self, count: int, sides: int) -> int:
        """Sum of `count` rolls of a `sides`-sided die."""
        if not self.validate(count, sides):
            raise _invalid(f"{count}d{sides}", self._bounds_reason(count, sides))
        return sum(self.rng.randint(1, sides) for _ in range(count))

    def evaluate(self, expression: str) -> Value:
        """Parse, validate and roll, returning a dice Value."""
        count, sides = self._checked(expression)
        return dice_val(self.calculate(count, sides))

    def roll(self, expression: str) -> int:
        return int(self.evaluate(expression).payload)

    def min_value(self, expression: str) -> int:
        count, _ = self._checked(expression)
        return count

    def max_value(self, expression: str) -> int:
        count, sides = self._checked(expression)
        return count * sides

    def average_value(self, expression: str) -> float:
        count, sides = self._checked(expression)
        return count * (sides + 1) / 2

    def _checked(self, expression: str) -> Tuple[int, int]:
        count, sides = self.parse(expression)
        if not self.validate(count, sides):
            raise _invalid(expression, self._bounds_reason(count, sides))
        return count, sides

    @staticmethod
    def _bounds_reason(count, sides) -> str:
        if isinstance(count, int) and isinstance(sides, int):
            if count > MAX_DICE_COUNT:
                return f"dice count {count} exceeds {MAX_DICE_COUNT}"
            if sides > MAX_DICE_SIDES:
                return f"dice sides {sides} exceed {MAX_DICE_SIDES}"
        return "dice count and sides must be positive integers"
