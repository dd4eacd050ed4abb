"""
Action Generator - Generates all legal actions from a game state.

The action generator is used by:
1. The CLI to show hints
2. The API's legal-actions endpoint
3. Tests (every generated action must be accepted by the reducer)

Design: Generates Action objects, not just action types.
This ensures all generated actions are fully specified.
"""

from __future__ import annotations
from dataclasses import dataclass

from .action import Action
from .cards import ArithmeticOperator, Card, CardType
from .numeric import card_value
from .state import GamePhase, GameState, TargetDeck


@dataclass
class ActionGenerator:
    """
    Generates legal actions for the current game state.

    Selection actions (select/deselect) are not enumerated; they are
    shortcuts for the plays listed here.
    """
    include_end_game: bool = True

    def generate(self, state: GameState) -> list[Action]:
        """Generate all legal actions. Empty once the game is over."""
        if state.is_over or state.phase == GamePhase.SETUP:
            return []

        actions = []
        actions.extend(self._generate_draw_actions(state))

        if state.awaiting_seed and not state.algebra.is_active:
            actions.extend(self._generate_seed_actions(state))
        actions.extend(self._generate_arithmetic_actions(state))
        actions.extend(self._generate_function_actions(state))
        actions.extend(self._generate_variable_actions(state))
        actions.extend(self._generate_algebra_actions(state))

        if self.include_end_game:
            actions.append(Action.end_game())

        return actions

    def _number_cards(self, state: GameState) -> list[Card]:
        return [c for c in state.hand if c.is_number_like]

    def _generate_draw_actions(self, state: GameState) -> list[Action]:
        if len(state.hand) >= state.hand_size:
            return []
        return [Action.draw()]

    def _generate_seed_actions(self, state: GameState) -> list[Action]:
        actions = []
        for card in self._number_cards(state):
            if card.card_type == CardType.CONSTANT:
                actions.append(Action.play_constant(card.card_id))
            else:
                actions.append(Action.play_number(card.card_id))
        return actions

    def _generate_arithmetic_actions(self, state: GameState) -> list[Action]:
        """One action per (operator card, number-like card) pair."""
        if state.resolve_target() is None:
            return []

        actions = []
        numbers = self._number_cards(state)
        for card in state.hand:
            if card.card_type != CardType.ARITHMETIC:
                continue
            for number in numbers:
                if card.operator == ArithmeticOperator.DIVIDE and card_value(number) == 0:
                    continue
                actions.append(Action.play_arithmetic(card.card_id, number.card_id))
        return actions

    def _generate_function_actions(self, state: GameState) -> list[Action]:
        """Unary functions alone, binary functions with each number-like card."""
        if state.resolve_target() is None:
            return []

        actions = []
        numbers = self._number_cards(state)
        for card in state.hand:
            if card.card_type != CardType.FUNCTION:
                continue
            if card.is_binary_function:
                for number in numbers:
                    actions.append(Action.play_function(card.card_id, number.card_id))
            else:
                actions.append(Action.play_function(card.card_id))
        return actions

    def _generate_variable_actions(self, state: GameState) -> list[Action]:
        if state.algebra.is_active:
            return []
        return [
            Action.play_variable(card.card_id)
            for card in state.hand
            if card.card_type == CardType.VARIABLE
        ]

    def _generate_algebra_actions(self, state: GameState) -> list[Action]:
        """Target switching and applying the function, while the Algebra Deck is open."""
        if not state.algebra.is_active:
            return []

        actions = [
            Action.set_target(target)
            for target in TargetDeck
            if target != state.active_target
        ]
        if not state.grind.is_empty:
            actions.append(Action.apply_algebra())
        return actions


def legal_actions(state: GameState) -> list[Action]:
    """Convenience function to get legal actions."""
    return ActionGenerator().generate(state)
