"""
Reducer - Applies actions to game state.

The reducer is the single point of state mutation.
All state changes must go through Reducer.apply().

Design principles:
- (state, action) -> ActionResult; the input state is never touched
- Handlers work on a clone, so a rejected move leaves no trace
- Every successful card play ends with the same pipeline:
  unlocks -> hand replenishment -> solo end check
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import time
import uuid

from .action import Action, ActionResult, ActionType
from .cards import ArithmeticOperator, Card, CardType, FunctionOperator, NUMBER_LIKE_TYPES
from .deck import draw_cards, ensure_hand_balance, generate_deck, replenish_hand
from .errors import DivisionByZeroError, GameOverError, GrindDeckError, IllegalMoveError
from .expression import evaluate_algebraic_expression, render, wrap_arithmetic, wrap_function
from .numeric import apply_arithmetic, apply_function, card_value, format_value
from .progression import check_for_unlocks
from .solo import SoloSessionController
from .state import EndReason, GamePhase, GameState, Move, MoveType, TargetDeck

logger = logging.getLogger(__name__)


@dataclass
class Reducer:
    """
    Reducer applies actions to game state.

    Stateless - all state is in GameState.
    """
    solo: SoloSessionController = field(default_factory=SoloSessionController)

    def apply(self, state: GameState, action: Action) -> ActionResult:
        """
        Apply an action to the game state.

        Returns ActionResult with new state or error.
        """
        validation_error = self._validate_action(state, action)
        if validation_error:
            message, code = validation_error
            logger.debug("Rejected %s: %s", action.action_type.value, message)
            return ActionResult.failure(message, error_code=code)

        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}",
                error_code="NO_HANDLER",
            )

        now = action.timestamp if action.timestamp is not None else time.time()
        new_state = state.clone()
        try:
            return handler(new_state, action, now)
        except GrindDeckError as e:
            logger.debug("Rejected %s: %s", action.action_type.value, e)
            return ActionResult.failure(str(e), error_code=e.code)
        except Exception as e:
            logger.exception("Handler for %s failed", action.action_type.value)
            return ActionResult.failure(str(e), error_code="HANDLER_ERROR")

    def _validate_action(self, state: GameState, action: Action) -> tuple[str, str] | None:
        """
        Validate that an action is allowed in the current phase.

        Returns (message, code) if invalid, None if valid.
        """
        if state.is_over:
            return "Game is over - no actions allowed", GameOverError.code

        if state.phase == GamePhase.SETUP:
            return "Game not started", IllegalMoveError.code

        return None

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.DRAW: self._handle_draw,
            ActionType.SELECT_CARD: self._handle_select_card,
            ActionType.DESELECT: self._handle_deselect,
            ActionType.PLAY_NUMBER: self._handle_play_number,
            ActionType.PLAY_CONSTANT: self._handle_play_constant,
            ActionType.PLAY_ARITHMETIC: self._handle_play_arithmetic,
            ActionType.PLAY_FUNCTION: self._handle_play_function,
            ActionType.PLAY_VARIABLE: self._handle_play_variable,
            ActionType.SET_TARGET: self._handle_set_target,
            ActionType.APPLY_ALGEBRA: self._handle_apply_algebra,
            ActionType.END_GAME: self._handle_end_game,
        }
        return handlers.get(action_type)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_card(self, state: GameState, card_id: str | None, allowed: set[CardType] | frozenset[CardType]) -> Card:
        card = state.find_in_hand(card_id)
        if card is None:
            raise IllegalMoveError(f"Card {card_id} not in hand")
        if card.card_type not in allowed:
            raise IllegalMoveError(f"Card {card_id} is a {card.card_type.value} card")
        return card

    def _require_target(self, state: GameState) -> TargetDeck:
        target = state.resolve_target()
        if target is None:
            raise IllegalMoveError("Nothing to operate on - play a number card first")
        return target

    def _record_move(
        self,
        state: GameState,
        move_type: MoveType,
        cards: list[Card],
        description: str,
        now: float,
        result_value: float | None = None,
    ) -> Move:
        move = Move(
            move_id=str(uuid.uuid4()),
            move_type=move_type,
            timestamp=now,
            cards=tuple(cards),
            description=description,
            result_value=result_value,
        )
        state.moves.append(move)
        return move

    def _update_score(self, state: GameState, value: float):
        """Score is the highest value reached; high score follows it."""
        if value > state.current_score:
            state.current_score = value
        if state.current_score > state.high_score:
            state.high_score = state.current_score

    def _finish_play(self, state: GameState, now: float, changes: list[str]) -> ActionResult:
        """Unlocks, hand replenishment and the solo end check after a play."""
        state.pending_card_id = None

        unlocked = check_for_unlocks(state)
        for feature in unlocked:
            changes.append(f"Unlocked {feature.value}")

        state.hand, state.deck = replenish_hand(
            state.hand, state.deck, state.hand_size, state.difficulty, state.random_state,
        )

        reason = self.solo.check_and_end(state, now)
        if reason is not None:
            changes.append(f"Game ended: {reason.value}")

        result = ActionResult.success_with_state(state, changes)
        result.unlocked = unlocked
        return result

    # =========================================================================
    # Deck commands
    # =========================================================================

    def _handle_draw(self, state: GameState, action: Action, now: float) -> ActionResult:
        """Draw one card, regenerating an empty deck first."""
        if len(state.hand) >= state.hand_size:
            raise IllegalMoveError("Hand is full")

        if not state.deck:
            state.deck = generate_deck(state.difficulty, state.random_state)

        drawn, state.deck = draw_cards(state.deck, 1)
        state.hand.extend(drawn)
        state.hand, state.deck = ensure_hand_balance(
            state.hand, state.deck, state.difficulty, state.random_state,
        )
        return ActionResult.success_with_state(state, ["Drew a card"])

    def _handle_set_target(self, state: GameState, action: Action, now: float) -> ActionResult:
        target = action.payload.target
        state.active_target = TargetDeck(target) if target is not None else None
        label = state.active_target.value if state.active_target else "none"
        return ActionResult.success_with_state(state, [f"Target deck: {label}"])

    # =========================================================================
    # Card selection
    # =========================================================================

    def _handle_select_card(self, state: GameState, action: Action, now: float) -> ActionResult:
        """
        Click-style play: select a card, then complete the play.

        Idle:
        - number-like card: seeds the Grind Deck (only as the first play)
        - arithmetic / binary function: wait for a number-like card
        - unary function / variable: played at once
        Awaiting second card:
        - same card again: deselect
        - number-like card: completes the pending play
        - another arithmetic / binary function: replaces the selection
        """
        card = state.find_in_hand(action.payload.card_id)
        if card is None:
            raise IllegalMoveError(f"Card {action.payload.card_id} not in hand")

        pending = state.find_in_hand(state.pending_card_id)
        if pending is not None:
            if card == pending:
                state.pending_card_id = None
                return ActionResult.success_with_state(state, ["Selection cleared"])
            if card.is_number_like:
                state.pending_card_id = None
                if pending.card_type == CardType.ARITHMETIC:
                    return self._handle_play_arithmetic(
                        state, Action.play_arithmetic(pending.card_id, card.card_id), now,
                    )
                return self._handle_play_function(
                    state, Action.play_function(pending.card_id, card.card_id), now,
                )
            if card.card_type == CardType.ARITHMETIC or card.is_binary_function:
                state.pending_card_id = card.card_id
                return ActionResult.success_with_state(state, [f"Selected {card.label}"])
            raise IllegalMoveError("Select a number card to complete the play")

        if card.is_number_like:
            if card.card_type == CardType.CONSTANT:
                return self._handle_play_constant(state, Action.play_constant(card.card_id), now)
            return self._handle_play_number(state, Action.play_number(card.card_id), now)

        if card.card_type == CardType.VARIABLE:
            return self._handle_play_variable(state, Action.play_variable(card.card_id), now)

        self._require_target(state)
        if card.card_type == CardType.FUNCTION and not card.is_binary_function:
            return self._handle_play_function(state, Action.play_function(card.card_id), now)

        state.pending_card_id = card.card_id
        return ActionResult.success_with_state(state, [f"Selected {card.label}"])

    def _handle_deselect(self, state: GameState, action: Action, now: float) -> ActionResult:
        state.pending_card_id = None
        return ActionResult.success_with_state(state, ["Selection cleared"])

    # =========================================================================
    # Card plays
    # =========================================================================

    def _seed(self, state: GameState, card: Card, move_type: MoveType, now: float) -> ActionResult:
        if not state.awaiting_seed:
            raise IllegalMoveError(
                "A number card can only be played alone as the first card"
            )
        if state.algebra.is_active:
            raise IllegalMoveError("A number card cannot be played alone while the Algebra Deck is active")
        value = card_value(card)
        state.remove_from_hand(card.card_id)
        state.grind.push([card], value)
        description = f"Started with {format_value(value)}"
        self._record_move(state, move_type, [card], description, now, result_value=value)
        return self._finish_play(state, now, [description])

    def _handle_play_number(self, state: GameState, action: Action, now: float) -> ActionResult:
        """Seed the Grind Deck with a number-like card."""
        card = self._require_card(state, action.payload.card_id, NUMBER_LIKE_TYPES)
        move_type = MoveType.CONSTANT if card.card_type == CardType.CONSTANT else MoveType.NUMBER
        return self._seed(state, card, move_type, now)

    def _handle_play_constant(self, state: GameState, action: Action, now: float) -> ActionResult:
        """Constants are played exactly like number cards."""
        card = self._require_card(state, action.payload.card_id, {CardType.CONSTANT})
        return self._seed(state, card, MoveType.CONSTANT, now)

    def _handle_play_arithmetic(self, state: GameState, action: Action, now: float) -> ActionResult:
        """Apply an arithmetic card with a number-like card."""
        op_card = self._require_card(state, action.payload.card_id, {CardType.ARITHMETIC})
        number_card = self._require_card(state, action.payload.second_card_id, NUMBER_LIKE_TYPES)
        target = self._require_target(state)

        operator: ArithmeticOperator = op_card.operator
        value = card_value(number_card)
        if operator == ArithmeticOperator.DIVIDE and value == 0:
            raise DivisionByZeroError("Division by zero is not allowed")

        state.remove_from_hand(op_card.card_id, number_card.card_id)
        played = [op_card, number_card]

        if target == TargetDeck.ALGEBRA:
            state.algebra.push(played, wrap_arithmetic(state.algebra.function, operator, value))
            return self._finish_play(state, now, [f"Algebra function: {state.algebra.function_text}"])

        old_value = state.grind.value
        new_value = apply_arithmetic(old_value, value, operator, state.difficulty)
        state.grind.push(played, new_value)
        self._update_score(state, new_value)
        state.solo.cards_played += len(played)

        description = (
            f"{format_value(old_value)} {operator.value} {format_value(value)} = {format_value(new_value)}"
        )
        self._record_move(state, MoveType.ARITHMETIC, played, description, now, result_value=new_value)
        return self._finish_play(state, now, [description])

    def _handle_play_function(self, state: GameState, action: Action, now: float) -> ActionResult:
        """Apply a function card, with a second number-like card for binary functions."""
        fn_card = self._require_card(state, action.payload.card_id, {CardType.FUNCTION})
        operator: FunctionOperator = fn_card.operator

        second_card = None
        second_value = None
        if operator.is_binary:
            if action.payload.second_card_id is None:
                raise IllegalMoveError(f"{operator.value} needs a second number card")
            second_card = self._require_card(state, action.payload.second_card_id, NUMBER_LIKE_TYPES)
            second_value = card_value(second_card)
        elif action.payload.second_card_id is not None:
            raise IllegalMoveError(f"{operator.value} takes no second card")

        target = self._require_target(state)

        played = [fn_card] if second_card is None else [fn_card, second_card]
        state.remove_from_hand(*(c.card_id for c in played))

        if target == TargetDeck.ALGEBRA:
            state.algebra.push(played, wrap_function(state.algebra.function, operator, second_value))
            return self._finish_play(state, now, [f"Algebra function: {state.algebra.function_text}"])

        old_value = state.grind.value
        new_value = apply_function(old_value, operator, second_value)
        state.grind.push(played, new_value)
        self._update_score(state, new_value)
        state.solo.cards_played += len(played)

        if second_value is not None:
            description = (
                f"{operator.value}({format_value(old_value)}, {format_value(second_value)})"
                f" = {format_value(new_value)}"
            )
        else:
            description = f"{operator.value}({format_value(old_value)}) = {format_value(new_value)}"
        self._record_move(state, MoveType.FUNCTION, played, description, now, result_value=new_value)
        return self._finish_play(state, now, [description])

    def _handle_play_variable(self, state: GameState, action: Action, now: float) -> ActionResult:
        """Open the Algebra Deck with the function x."""
        card = self._require_card(state, action.payload.card_id, {CardType.VARIABLE})
        if state.algebra.is_active:
            raise IllegalMoveError("Algebra Deck is already active")

        state.remove_from_hand(card.card_id)
        state.algebra.activate(card)
        state.active_target = TargetDeck.ALGEBRA
        return self._finish_play(state, now, [f"Algebra function: {state.algebra.function_text}"])

    def _handle_apply_algebra(self, state: GameState, action: Action, now: float) -> ActionResult:
        """Evaluate the algebra function at the Grind Deck value and consume it."""
        if not state.algebra.is_active:
            raise IllegalMoveError("No active Algebra Deck")
        if state.grind.is_empty:
            raise IllegalMoveError("Grind Deck has no value to substitute")

        function_text = render(state.algebra.function)
        old_value = state.grind.value
        new_value = evaluate_algebraic_expression(state.algebra.function, old_value)
        cards = list(state.algebra.cards)

        state.grind.value = new_value
        self._update_score(state, new_value)
        state.algebra.clear()
        state.active_target = TargetDeck.GRIND

        description = (
            f"f(x) = {function_text}; f({format_value(old_value)}) = {format_value(new_value)}"
        )
        self._record_move(state, MoveType.ALGEBRA, cards, description, now, result_value=new_value)
        return self._finish_play(state, now, [description])

    # =========================================================================
    # Session commands
    # =========================================================================

    def _handle_end_game(self, state: GameState, action: Action, now: float) -> ActionResult:
        reason = action.payload.reason
        reason = EndReason(reason) if reason is not None else EndReason.MANUAL_END
        self.solo.end(state, reason, now)
        return ActionResult.success_with_state(state, [f"Game ended: {reason.value}"])
