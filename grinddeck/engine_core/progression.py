"""
Progression - Score-driven feature unlocks.

| Feature   | Score | Tiers                                  |
|-----------|-------|----------------------------------------|
| zero      | 100   | all                                    |
| negative  | 500   | negative, functions, algebra           |
| functions | 1000  | functions, algebra                     |
| constants | 10000 | decimals, negative, functions, algebra |
| variable  | 10000 | algebra                                |

An unlock adds one fresh card of its kind to the hand if there is room.
Without room the card is lost. Unlocking functions also grows the hand
from 7 to 9 cards.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import random
from typing import Callable

from .cards import Card, Difficulty
from .deck import (
    EXPANDED_HAND_SIZE,
    random_constant_card,
    random_function_card,
    random_negative_card,
)
from .state import Feature, GameState

logger = logging.getLogger(__name__)

_ALL_TIERS = frozenset(Difficulty)


@dataclass(frozen=True)
class UnlockRule:
    feature: Feature
    score: float
    tiers: frozenset[Difficulty]
    make_card: Callable[[random.Random], Card]


UNLOCK_RULES = (
    UnlockRule(Feature.ZERO, 100, _ALL_TIERS, lambda rng: Card.zero()),
    UnlockRule(
        Feature.NEGATIVE,
        500,
        frozenset({Difficulty.NEGATIVE, Difficulty.FUNCTIONS, Difficulty.ALGEBRA}),
        random_negative_card,
    ),
    UnlockRule(
        Feature.FUNCTIONS,
        1000,
        frozenset({Difficulty.FUNCTIONS, Difficulty.ALGEBRA}),
        random_function_card,
    ),
    UnlockRule(
        Feature.CONSTANTS,
        10000,
        frozenset({Difficulty.DECIMALS, Difficulty.NEGATIVE, Difficulty.FUNCTIONS, Difficulty.ALGEBRA}),
        random_constant_card,
    ),
    UnlockRule(
        Feature.VARIABLE,
        10000,
        frozenset({Difficulty.ALGEBRA}),
        lambda rng: Card.variable(),
    ),
)


def can_unlock(feature: Feature, score: float, difficulty: Difficulty) -> bool:
    """True if score and tier both allow the feature."""
    for rule in UNLOCK_RULES:
        if rule.feature == feature:
            return score >= rule.score and difficulty in rule.tiers
    return False


def check_for_unlocks(state: GameState) -> list[Feature]:
    """
    Flip any unlock flags the current score has earned.

    Mutates state in place (flags, hand size, hand). Returns the features
    unlocked by this call, in table order.
    """
    newly_unlocked = []
    new_cards = []

    for rule in UNLOCK_RULES:
        if state.progress.is_unlocked(rule.feature):
            continue
        if not can_unlock(rule.feature, state.current_score, state.difficulty):
            continue

        state.progress.unlock(rule.feature)
        newly_unlocked.append(rule.feature)
        new_cards.append(rule.make_card(state.random_state))

        if rule.feature == Feature.FUNCTIONS and state.hand_size < EXPANDED_HAND_SIZE:
            state.hand_size = EXPANDED_HAND_SIZE

    if new_cards:
        room = max(0, state.hand_size - len(state.hand))
        state.hand.extend(new_cards[:room])
        if len(new_cards) > room:
            logger.debug("Hand full, dropped %d unlock card(s)", len(new_cards) - room)

    for feature in newly_unlocked:
        logger.info("Unlocked %s at score %s", feature.value, state.current_score)

    return newly_unlocked
