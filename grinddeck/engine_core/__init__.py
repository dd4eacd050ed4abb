"""
Engine Core - Deterministic state management for a Grind Deck game.

The engine is the runtime that:
1. Deals difficulty-gated decks and balanced hands
2. Manages GameState
3. Generates legal actions
4. Applies actions via the reducer
5. Tracks unlocks and solo end conditions
"""

from .cards import (
    Card,
    CardType,
    Difficulty,
    ArithmeticOperator,
    FunctionOperator,
    ConstantSymbol,
)
from .errors import (
    GrindDeckError,
    IllegalMoveError,
    GameOverError,
    DivisionByZeroError,
    ExpressionEvaluationFault,
)
from .expression import (
    Variable,
    Constant,
    UnaryOp,
    BinaryOp,
    Expression,
    ExpressionEvaluator,
    evaluate_algebraic_expression,
    parse_expression,
    render,
)
from .numeric import apply_arithmetic, apply_function, get_constant_value
from .state import (
    GameState,
    GamePhase,
    TargetDeck,
    SoloMode,
    EndReason,
    Feature,
    Move,
    MoveType,
    PlayerProgress,
    SessionSummary,
)
from .action import Action, ActionType, ActionPayload, ActionResult
from .reducer import Reducer
from .action_generator import ActionGenerator, legal_actions
from .setup import setup_game
from .engine import GameEngine

__all__ = [
    "Card",
    "CardType",
    "Difficulty",
    "ArithmeticOperator",
    "FunctionOperator",
    "ConstantSymbol",
    "GrindDeckError",
    "IllegalMoveError",
    "GameOverError",
    "DivisionByZeroError",
    "ExpressionEvaluationFault",
    "Variable",
    "Constant",
    "UnaryOp",
    "BinaryOp",
    "Expression",
    "ExpressionEvaluator",
    "evaluate_algebraic_expression",
    "parse_expression",
    "render",
    "apply_arithmetic",
    "apply_function",
    "get_constant_value",
    "GameState",
    "GamePhase",
    "TargetDeck",
    "SoloMode",
    "EndReason",
    "Feature",
    "Move",
    "MoveType",
    "PlayerProgress",
    "SessionSummary",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "Reducer",
    "ActionGenerator",
    "legal_actions",
    "setup_game",
    "GameEngine",
]
