"""
Tests for the numeric evaluator.

Tests:
- Arithmetic rounding per tier
- Division by zero
- Function cards (unary and binary)
- Constants
"""

import math

import pytest

from ..engine_core.cards import ArithmeticOperator, Card, Difficulty, FunctionOperator
from ..engine_core.errors import DivisionByZeroError, IllegalMoveError
from ..engine_core.numeric import (
    apply_arithmetic,
    apply_function,
    card_value,
    factorial,
    format_value,
    get_constant_value,
    round3,
)


class TestRounding:

    def test_round_to_three_decimals(self):
        assert round3(1.23456) == 1.235
        assert round3(2.0) == 2.0

    def test_half_rounds_up(self):
        assert round3(0.0625) == 0.063

    def test_non_finite_passes_through(self):
        assert round3(math.inf) == math.inf
        assert math.isnan(round3(math.nan))

    def test_format_value(self):
        assert format_value(8.0) == "8"
        assert format_value(3.5) == "3.5"
        assert format_value(None) == "-"


class TestApplyArithmetic:

    @pytest.mark.parametrize("operator", list(ArithmeticOperator))
    @pytest.mark.parametrize("difficulty", list(Difficulty))
    def test_zero_accumulator_takes_operand(self, operator, difficulty):
        """0 op b is b for every operator and tier."""
        assert apply_arithmetic(0, 7, operator, difficulty) == 7

    def test_zero_accumulator_rounds_operand(self):
        assert apply_arithmetic(0, 3.14159, "+", Difficulty.DECIMALS) == 3.142

    @pytest.mark.parametrize("difficulty", list(Difficulty))
    @pytest.mark.parametrize("a", [1, -4, 2.5, 100])
    def test_divide_by_zero_raises(self, a, difficulty):
        with pytest.raises(DivisionByZeroError):
            apply_arithmetic(a, 0, "÷", difficulty)

    def test_divide_by_zero_is_zero_division_error(self):
        with pytest.raises(ZeroDivisionError):
            apply_arithmetic(5, 0, "÷")

    def test_basic_division_floors(self):
        assert apply_arithmetic(7, 2, "÷", Difficulty.BASIC) == 3
        assert apply_arithmetic(-7, 2, "÷", Difficulty.BASIC) == -4

    def test_other_tiers_round_division(self):
        assert apply_arithmetic(7, 2, "÷", Difficulty.DECIMALS) == 3.5
        assert apply_arithmetic(10, 3, "÷", Difficulty.FUNCTIONS) == 3.333

    def test_basic_operators(self):
        assert apply_arithmetic(5, 3, "+") == 8
        assert apply_arithmetic(5, 3, "-") == 2
        assert apply_arithmetic(5, 3, "×") == 15

    def test_multiplication_rounds(self):
        assert apply_arithmetic(3.142, 2.718, "×", Difficulty.DECIMALS) == 8.54


class TestApplyFunction:

    def test_zero_value_returns_zero(self):
        for operator in (FunctionOperator.SQRT, FunctionOperator.EXP, FunctionOperator.COS):
            assert apply_function(0, operator) == 0

    def test_zero_value_binary_returns_second(self):
        assert apply_function(0, "x^y", 3) == 3
        assert apply_function(0, "pyth", 2.7182) == 2.718

    def test_sqrt(self):
        assert apply_function(16, "√") == 4
        assert apply_function(2, "√") == 1.414

    def test_sqrt_negative_unchanged(self):
        assert apply_function(-4, "√") == -4

    def test_cube_root(self):
        assert apply_function(27, "∛") == 3
        assert apply_function(-8, "∛") == -2

    def test_trig_uses_degrees(self):
        assert apply_function(30, "sin") == 0.5
        assert apply_function(60, "cos") == 0.5
        assert apply_function(45, "tan") == 1

    def test_reciprocal(self):
        assert apply_function(4, "1/x") == 0.25
        assert apply_function(3, "1/x") == 0.333

    def test_mod_is_absolute_value(self):
        assert apply_function(-5, "mod") == 5
        assert apply_function(5, "mod") == 5

    def test_factorial_not_rounded(self):
        assert apply_function(5, "!") == 120
        assert apply_function(4.6, "!") == 120
        assert apply_function(20, "!") == 2432902008176640000

    def test_factorial_overflow(self):
        assert factorial(171) == math.inf

    def test_powers(self):
        assert apply_function(3, "x^2") == 9
        assert apply_function(3, "x^3") == 27
        assert apply_function(2, "x^y", 10) == 1024

    def test_pyth(self):
        assert apply_function(3, "pyth", 4) == 5

    def test_binary_without_second_unchanged(self):
        assert apply_function(5, "x^y") == 5
        assert apply_function(5, "pyth") == 5
        assert apply_function(5, "modulus") == 5

    def test_modulus(self):
        assert apply_function(7, "modulus", 3) == 1
        assert apply_function(-7, "modulus", 3) == 2
        assert apply_function(7, "modulus", 0) == 7

    def test_ln(self):
        assert apply_function(1, "ln") == 0
        assert apply_function(-3, "ln") == -3
        assert apply_function(10, "ln") == math.log(10)

    def test_percent(self):
        assert apply_function(0.5, "%") == 50

    def test_exp(self):
        assert apply_function(1, "exp") == 2.718

    def test_huge_power_is_infinite(self):
        assert apply_function(10, "x^y", 400) == math.inf


class TestConstants:

    def test_constant_values(self):
        assert get_constant_value("π") == 3.142
        assert get_constant_value("e") == 2.718

    def test_unknown_constant_is_zero(self):
        assert get_constant_value("φ") == 0

    def test_card_value(self):
        assert card_value(Card.number(4)) == 4
        assert card_value(Card.negative(-2)) == -2
        assert card_value(Card.zero()) == 0
        assert card_value(Card.constant_card("π")) == 3.142

    def test_card_value_rejects_operators(self):
        with pytest.raises(IllegalMoveError):
            card_value(Card.arithmetic("+"))
