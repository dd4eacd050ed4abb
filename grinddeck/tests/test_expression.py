"""
Tests for algebra expression trees.

Tests:
- Building trees from card plays
- Evaluation and its fallbacks
- Rendering and parsing
"""

import pytest

from ..engine_core.cards import ArithmeticOperator, FunctionOperator
from ..engine_core.errors import ExpressionEvaluationFault
from ..engine_core.expression import (
    BinaryOp,
    Constant,
    ExpressionEvaluator,
    ExpressionSyntaxError,
    UnaryOp,
    Variable,
    evaluate_algebraic_expression,
    parse_expression,
    render,
    wrap_arithmetic,
    wrap_function,
)


class TestBuilding:

    def test_wrap_arithmetic(self):
        expr = wrap_arithmetic(Variable(), ArithmeticOperator.ADD, 3)
        assert expr == BinaryOp("+", Variable(), Constant(3))

    def test_wrap_unary_function(self):
        expr = wrap_function(Variable(), FunctionOperator.SQRT)
        assert expr == UnaryOp("sqrt", Variable())

    def test_reciprocal_is_division(self):
        expr = wrap_function(Variable(), FunctionOperator.RECIPROCAL)
        assert expr == BinaryOp("/", Constant(1), Variable())

    def test_binary_function_needs_second_value(self):
        assert wrap_function(Variable(), FunctionOperator.POWER) == Variable()
        assert wrap_function(Variable(), FunctionOperator.POWER, 2) == BinaryOp("pow", Variable(), Constant(2))

    def test_mod_card_is_absolute_value(self):
        assert wrap_function(Variable(), FunctionOperator.MOD) == UnaryOp("abs", Variable())

    @pytest.mark.parametrize(
        "operator,node",
        [
            (FunctionOperator.FACTORIAL, "fact"),
            (FunctionOperator.SQUARE, "square"),
            (FunctionOperator.CUBE, "cube"),
            (FunctionOperator.LN, "ln"),
            (FunctionOperator.PERCENT, "percent"),
            (FunctionOperator.EXP, "exp"),
        ],
    )
    def test_every_unary_function_wraps(self, operator, node):
        assert wrap_function(Variable(), operator) == UnaryOp(node, Variable())


class TestEvaluation:

    def test_substitutes_variable(self):
        expr = wrap_arithmetic(Variable(), ArithmeticOperator.MULTIPLY, 2)
        expr = wrap_arithmetic(expr, ArithmeticOperator.ADD, 1)
        assert evaluate_algebraic_expression(expr, 4) == 9

    def test_nested_function(self):
        expr = wrap_function(wrap_arithmetic(Variable(), ArithmeticOperator.ADD, 3), FunctionOperator.SQRT)
        assert evaluate_algebraic_expression(expr, 6) == 3

    def test_result_rounded(self):
        expr = wrap_arithmetic(Variable(), ArithmeticOperator.DIVIDE, 3)
        assert evaluate_algebraic_expression(expr, 10) == 3.333

    def test_trig_in_radians(self):
        expr = wrap_function(Variable(), FunctionOperator.COS)
        assert evaluate_algebraic_expression(expr, 0.5) == 0.878

    def test_non_finite_falls_back_to_x(self):
        sqrt_x = wrap_function(Variable(), FunctionOperator.SQRT)
        assert evaluate_algebraic_expression(sqrt_x, -4) == -4

        reciprocal = wrap_function(wrap_arithmetic(Variable(), ArithmeticOperator.SUBTRACT, 2), FunctionOperator.RECIPROCAL)
        assert evaluate_algebraic_expression(reciprocal, 2) == 2

    def test_overflow_falls_back_to_x(self):
        expr = wrap_function(Variable(), FunctionOperator.POWER, 500)
        assert evaluate_algebraic_expression(expr, 10) == 10

    def test_malformed_tree_evaluates_to_zero(self):
        assert evaluate_algebraic_expression(UnaryOp("bogus", Variable()), 5) == 0
        assert evaluate_algebraic_expression(BinaryOp("?", Variable(), Constant(1)), 5) == 0

    def test_evaluator_raises_on_malformed_tree(self):
        with pytest.raises(ExpressionEvaluationFault):
            ExpressionEvaluator().evaluate(UnaryOp("bogus", Variable()), 1)
        with pytest.raises(ExpressionEvaluationFault):
            ExpressionEvaluator().evaluate("x + 1", 1)

    def test_unparseable_text_evaluates_to_zero(self):
        assert evaluate_algebraic_expression("(x +", 5) == 0

    def test_text_input(self):
        assert evaluate_algebraic_expression("x^2 + 1", 3) == 10
        assert evaluate_algebraic_expression("-x * 2", 3) == -6


class TestRenderAndParse:

    def test_render(self):
        expr = wrap_function(wrap_arithmetic(Variable(), ArithmeticOperator.ADD, 3), FunctionOperator.SQRT)
        assert render(expr) == "sqrt((x + 3))"
        assert render(Variable()) == "x"

    def test_render_binary_function(self):
        expr = wrap_function(Variable(), FunctionOperator.PYTH, 4)
        assert render(expr) == "pyth(x, 4)"

    def test_parse_inverts_render(self):
        expr = wrap_arithmetic(
            wrap_function(wrap_arithmetic(Variable(), ArithmeticOperator.SUBTRACT, -2), FunctionOperator.LN),
            ArithmeticOperator.MULTIPLY,
            3.5,
        )
        assert parse_expression(render(expr)) == expr

    def test_parse_precedence(self):
        assert parse_expression("1 + 2 * x") == BinaryOp(
            "+", Constant(1.0), BinaryOp("*", Constant(2.0), Variable())
        )

    def test_parse_named_constants(self):
        assert evaluate_algebraic_expression("pi * x", 1) == 3.142

    @pytest.mark.parametrize("text", ["", "x +", "foo(x)", "sqrt(x, 2)", "x $ 2", "y"])
    def test_parse_errors(self, text):
        with pytest.raises(ExpressionSyntaxError):
            parse_expression(text)
