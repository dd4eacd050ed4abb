"""
Engine errors.

Every rejection carries a short machine-readable code so the reducer can
turn it into an ActionResult failure without inspecting messages.
"""


class GrindDeckError(Exception):
    """Base class for all engine faults."""
    code = "ENGINE_ERROR"


class IllegalMoveError(GrindDeckError):
    """Wrong card type, target or ordering."""
    code = "ILLEGAL_MOVE"


class GameOverError(IllegalMoveError):
    """A command arrived after the solo session reached its end."""
    code = "GAME_OVER"


class DivisionByZeroError(GrindDeckError, ZeroDivisionError):
    """Division card played with a zero divisor."""
    code = "DIVISION_BY_ZERO"


class ExpressionEvaluationFault(GrindDeckError):
    """An algebra function could not be parsed or evaluated."""
    code = "EXPRESSION_FAULT"
