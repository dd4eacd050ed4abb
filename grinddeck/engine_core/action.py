"""
Action System - Commands, payloads, and results.

Every engine command is expressed as an Action:
1. Card plays (number, arithmetic, function, constant, variable)
2. Deck commands (draw, choose target deck, apply algebra function)
   and click-style card selection
3. Session commands (end game)

All state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ActionType(Enum):
    """Types of actions in the system."""
    DRAW = "draw"
    SELECT_CARD = "select_card"
    DESELECT = "deselect"
    PLAY_NUMBER = "play_number"
    PLAY_ARITHMETIC = "play_arithmetic"
    PLAY_FUNCTION = "play_function"
    PLAY_CONSTANT = "play_constant"
    PLAY_VARIABLE = "play_variable"
    SET_TARGET = "set_target"
    APPLY_ALGEBRA = "apply_algebra"
    END_GAME = "end_game"


@dataclass
class ActionPayload:
    """
    Parameters of an action.

    Different action types use different fields.
    Validation happens in the reducer.
    """
    card_id: str | None = None
    second_card_id: str | None = None
    target: Any | None = None  # TargetDeck or None
    reason: Any | None = None  # EndReason


@dataclass
class Action:
    """
    A complete action to be applied to the game state.

    Actions are:
    - Validated before application
    - Applied atomically by the reducer
    - Timestamped by the engine clock
    """
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)
    timestamp: float | None = None

    @classmethod
    def draw(cls) -> Action:
        return cls(action_type=ActionType.DRAW)

    @classmethod
    def select_card(cls, card_id: str) -> Action:
        return cls(action_type=ActionType.SELECT_CARD, payload=ActionPayload(card_id=card_id))

    @classmethod
    def deselect(cls) -> Action:
        return cls(action_type=ActionType.DESELECT)

    @classmethod
    def play_number(cls, card_id: str) -> Action:
        return cls(action_type=ActionType.PLAY_NUMBER, payload=ActionPayload(card_id=card_id))

    @classmethod
    def play_constant(cls, card_id: str) -> Action:
        return cls(action_type=ActionType.PLAY_CONSTANT, payload=ActionPayload(card_id=card_id))

    @classmethod
    def play_arithmetic(cls, card_id: str, second_card_id: str) -> Action:
        return cls(
            action_type=ActionType.PLAY_ARITHMETIC,
            payload=ActionPayload(card_id=card_id, second_card_id=second_card_id),
        )

    @classmethod
    def play_function(cls, card_id: str, second_card_id: str | None = None) -> Action:
        return cls(
            action_type=ActionType.PLAY_FUNCTION,
            payload=ActionPayload(card_id=card_id, second_card_id=second_card_id),
        )

    @classmethod
    def play_variable(cls, card_id: str) -> Action:
        return cls(action_type=ActionType.PLAY_VARIABLE, payload=ActionPayload(card_id=card_id))

    @classmethod
    def set_target(cls, target) -> Action:
        return cls(action_type=ActionType.SET_TARGET, payload=ActionPayload(target=target))

    @classmethod
    def apply_algebra(cls) -> Action:
        return cls(action_type=ActionType.APPLY_ALGEBRA)

    @classmethod
    def end_game(cls, reason=None) -> Action:
        return cls(action_type=ActionType.END_GAME, payload=ActionPayload(reason=reason))


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether the action succeeded
    - New state (if succeeded)
    - Error and error code (if rejected)
    - Human-readable changes for the UI
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: str | None = None

    state_changes: list[str] = field(default_factory=list)
    unlocked: list[Any] = field(default_factory=list)  # Feature values unlocked by this action

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
        )
