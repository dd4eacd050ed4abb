"""
Numeric Evaluator - Pure functions behind every scoring move.

Rules shared by all functions:
- Results are rounded half-up to 3 decimals unless noted.
- A value of 0 means "nothing accumulated yet": arithmetic replaces it
  with the second operand instead of operating on it.
- NaN and infinities are returned, not raised. Only division by a zero
  card is an error.
"""

from __future__ import annotations
import math

from .cards import (
    ArithmeticOperator,
    Card,
    CardType,
    ConstantSymbol,
    Difficulty,
    FunctionOperator,
)
from .errors import DivisionByZeroError, IllegalMoveError

# Largest n whose factorial is a finite float
_MAX_FACTORIAL = 170

# Beyond this magnitude floats carry no fractional digits
_EXACT_LIMIT = 2.0 ** 52


def round3(value: float) -> float:
    """Round half-up to 3 decimals. Non-finite values pass through."""
    if not math.isfinite(value) or abs(value) >= _EXACT_LIMIT:
        return value
    return math.floor(value * 1000 + 0.5) / 1000


def format_value(value: float | None) -> str:
    """Render a value without a trailing '.0' for whole numbers."""
    if value is None:
        return "-"
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return str(value)


def apply_arithmetic(
    a: float,
    b: float,
    operator: ArithmeticOperator | str,
    difficulty: Difficulty | str = Difficulty.BASIC,
) -> float:
    """
    Apply an arithmetic card.

    Args:
        a: Current accumulated value
        b: Value of the number-like card played with the operator
        operator: +, -, × or ÷
        difficulty: Tier, which controls division rounding

    Raises:
        DivisionByZeroError: ÷ with b == 0 (and a != 0)
    """
    operator = ArithmeticOperator(operator)
    difficulty = Difficulty(difficulty)
    a, b = float(a), float(b)
    integer_division = difficulty == Difficulty.BASIC and operator == ArithmeticOperator.DIVIDE

    def finish(result: float) -> float:
        if integer_division and math.isfinite(result):
            return math.floor(result)
        return round3(result)

    if a == 0:
        return finish(b)

    if operator == ArithmeticOperator.ADD:
        return finish(a + b)
    if operator == ArithmeticOperator.SUBTRACT:
        return finish(a - b)
    if operator == ArithmeticOperator.MULTIPLY:
        return finish(a * b)

    if b == 0:
        raise DivisionByZeroError("Division by zero is not allowed")
    return finish(a / b)


def factorial(value: float) -> float:
    """Iterative factorial of the operand rounded to an integer. Not rounded."""
    if not math.isfinite(value):
        return value
    n = math.floor(value + 0.5)
    if n > _MAX_FACTORIAL:
        return math.inf
    result = 1.0
    for i in range(n, 0, -1):
        result *= i
    return result


def safe_pow(base: float, exponent: float) -> float:
    """Power that yields inf/nan instead of raising."""
    try:
        return math.pow(base, exponent)
    except OverflowError:
        return math.inf
    except ValueError:
        return math.nan


def safe_exp(value: float) -> float:
    try:
        return math.exp(value)
    except OverflowError:
        return math.inf


def cube_root(value: float) -> float:
    return math.copysign(abs(value) ** (1.0 / 3.0), value)


def _trig(fn, degrees: float) -> float:
    try:
        return fn(math.radians(degrees))
    except ValueError:
        return math.nan


def apply_function(
    value: float,
    operator: FunctionOperator | str,
    second_value: float | None = None,
) -> float:
    """
    Apply a function card to a value.

    Trig functions take degrees. Binary operators (x^y, pyth, modulus)
    return the value unchanged when no second operand is given.
    """
    operator = FunctionOperator(operator)
    value = float(value)

    if value == 0:
        if second_value is not None and operator in (FunctionOperator.POWER, FunctionOperator.PYTH):
            return round3(second_value)
        return 0

    if operator == FunctionOperator.SQRT:
        return round3(math.sqrt(value)) if value > 0 else value
    elif operator == FunctionOperator.CBRT:
        return round3(cube_root(value))
    elif operator == FunctionOperator.SIN:
        return round3(_trig(math.sin, value))
    elif operator == FunctionOperator.COS:
        return round3(_trig(math.cos, value))
    elif operator == FunctionOperator.TAN:
        return round3(_trig(math.tan, value))
    elif operator == FunctionOperator.RECIPROCAL:
        return round3(1 / value)
    elif operator == FunctionOperator.POWER:
        if second_value is None:
            return value
        return round3(safe_pow(value, second_value))
    elif operator == FunctionOperator.MOD:
        return abs(value)
    elif operator == FunctionOperator.PYTH:
        if second_value is None:
            return value
        return round3(math.hypot(value, second_value))
    elif operator == FunctionOperator.FACTORIAL:
        return factorial(value)
    elif operator == FunctionOperator.SQUARE:
        return round3(value * value)
    elif operator == FunctionOperator.CUBE:
        return round3(value * value * value)
    elif operator == FunctionOperator.MODULUS:
        if second_value is None or second_value == 0:
            return value
        return round3(value % second_value)
    elif operator == FunctionOperator.LN:
        return math.log(value) if value > 0 else value
    elif operator == FunctionOperator.PERCENT:
        return value * 100
    elif operator == FunctionOperator.EXP:
        return round3(safe_exp(value))

    return round3(value)


def get_constant_value(symbol: ConstantSymbol | str) -> float:
    """Value of π or e rounded to 3 decimals; unknown symbols are 0."""
    try:
        symbol = ConstantSymbol(symbol)
    except ValueError:
        return 0
    if symbol == ConstantSymbol.PI:
        return round3(math.pi)
    return round3(math.e)


def card_value(card: Card) -> float:
    """Numeric value of a number-like card."""
    if card.card_type == CardType.CONSTANT:
        return get_constant_value(card.constant)
    if card.card_type in (CardType.NUMBER, CardType.ZERO, CardType.NEGATIVE):
        return card.value
    raise IllegalMoveError(f"{card.card_type.value} card has no numeric value")
