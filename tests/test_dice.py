"""
Tests for dice parsing and rolling.
"""

import random
import pytest

from dicenic import DiceCalculator, DiceError, ErrorKind
from dicenic.runtime import ValueKind, is_dice_expression, MAX_DICE_COUNT, MAX_DICE_SIDES


@pytest.fixture
def dice():
    return DiceCalculator(seed=1234)


class TestParse:
    """Test NdM parsing."""

    def test_parse(self, dice):
        assert dice.parse("3d6") == (3, 6)
        assert dice.parse("1D20") == (1, 20)

    def test_surrounding_whitespace(self, dice):
        assert dice.parse(" 2d8 ") == (2, 8)

    @pytest.mark.parametrize("text", ["d6", "3d", "3x6", "3d6+1", "1.5d6", "-1d6", "", "abc"])
    def test_rejects_other_shapes(self, dice, text):
        with pytest.raises(DiceError) as exc:
            dice.parse(text)
        assert exc.value.kind == ErrorKind.DICE
        assert exc.value.expression == text

    def test_is_dice_expression(self):
        assert is_dice_expression("4d4")
        assert not is_dice_expression("4d")


class TestValidate:
    """Test count/sides bounds."""

    def test_limits(self):
        assert DiceCalculator.validate(1, 1)
        assert DiceCalculator.validate(MAX_DICE_COUNT, MAX_DICE_SIDES)
        assert not DiceCalculator.validate(MAX_DICE_COUNT + 1, 6)
        assert not DiceCalculator.validate(1, MAX_DICE_SIDES + 1)

    def test_non_positive(self):
        assert not DiceCalculator.validate(0, 6)
        assert not DiceCalculator.validate(3, 0)
        assert not DiceCalculator.validate(-1, 6)

    def test_non_integers(self):
        assert not DiceCalculator.validate(1.5, 6)
        assert not DiceCalculator.validate(True, 6)
        assert not DiceCalculator.validate("3", 6)


class TestRoll:
    """Test rolling."""

    @pytest.mark.parametrize("count,sides", [(1, 1), (1, 6), (3, 6), (10, 20), (100, 100)])
    def test_calculate_in_range(self, dice, count, sides):
        for _ in range(50):
            total = dice.calculate(count, sides)
            assert count <= total <= count * sides

    def test_one_sided_die(self, dice):
        assert dice.calculate(7, 1) == 7

    def test_calculate_rejects_out_of_bounds(self, dice):
        with pytest.raises(DiceError) as exc:
            dice.calculate(1001, 6)
        assert "1000" in exc.value.message

    def test_evaluate_returns_dice_value(self, dice):
        value = dice.evaluate("2d6")
        assert value.kind == ValueKind.DICE
        assert 2 <= value.payload <= 12

    def test_evaluate_rejects_large_dice(self, dice):
        with pytest.raises(DiceError):
            dice.evaluate("1d10001")

    def test_seed_is_reproducible(self):
        a = DiceCalculator(seed=99)
        b = DiceCalculator(seed=99)
        assert [a.roll("3d6") for _ in range(10)] == [b.roll("3d6") for _ in range(10)]

    def test_custom_rng(self):
        rng = random.Random(5)
        dice = DiceCalculator(rng=rng)
        assert dice.rng is rng

    def test_statistics(self, dice):
        assert dice.min_value("3d6") == 3
        assert dice.max_value("3d6") == 18
        assert dice.average_value("3d6") == 10.5
