"""
Decks - Generation, shuffling, drawing and hand repair.

Two deck recipes exist:
- the initial deck, dealt at game start
- the regeneration deck, built whenever the draw pile runs short; it uses
  fewer copies per card so late-game draws cycle faster

Both are gated by difficulty tier:
- always: numbers 1-9, the four arithmetic operators, one zero
- negative tier and up: negatives -1..-9
- functions tier and up: every dealt function operator
- decimals tier and up: π and e

All randomness flows through a caller-supplied random.Random so games
can be replayed from a seed.
"""

from __future__ import annotations
from dataclasses import dataclass
import random
from typing import Callable, TypeVar

from .cards import (
    ArithmeticOperator,
    Card,
    CardType,
    ConstantSymbol,
    Difficulty,
    FunctionOperator,
    DEALT_FUNCTIONS,
)

T = TypeVar("T")

INITIAL_HAND_SIZE = 7
EXPANDED_HAND_SIZE = 9

# Functions dealt once even in the initial deck
HARD_FUNCTIONS = (
    FunctionOperator.POWER,
    FunctionOperator.FACTORIAL,
    FunctionOperator.EXP,
)
COMMON_FUNCTIONS = tuple(op for op in DEALT_FUNCTIONS if op not in HARD_FUNCTIONS)


@dataclass(frozen=True)
class DeckRecipe:
    """Copies per card for one deck variant."""
    numbers: int
    arithmetic: int
    zeros: int
    negatives: int
    common_functions: int
    hard_functions: int
    constants: int


INITIAL_RECIPE = DeckRecipe(
    numbers=3,
    arithmetic=3,
    zeros=1,
    negatives=2,
    common_functions=2,
    hard_functions=1,
    constants=1,
)

REGENERATION_RECIPE = DeckRecipe(
    numbers=2,
    arithmetic=2,
    zeros=1,
    negatives=1,
    common_functions=1,
    hard_functions=1,
    constants=1,
)


def shuffle(items: list[T], rng: random.Random) -> list[T]:
    """Fisher-Yates shuffle. Returns a new list."""
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def build_cards(difficulty: Difficulty, recipe: DeckRecipe) -> list[Card]:
    """Unshuffled card multiset for a tier and recipe."""
    difficulty = Difficulty(difficulty)
    cards: list[Card] = []

    for value in range(1, 10):
        cards.extend(Card.number(value) for _ in range(recipe.numbers))

    for op in ArithmeticOperator:
        cards.extend(Card.arithmetic(op) for _ in range(recipe.arithmetic))

    cards.extend(Card.zero() for _ in range(recipe.zeros))

    if difficulty.at_least(Difficulty.NEGATIVE):
        for value in range(1, 10):
            cards.extend(Card.negative(-value) for _ in range(recipe.negatives))

    if difficulty.at_least(Difficulty.FUNCTIONS):
        for op in COMMON_FUNCTIONS:
            cards.extend(Card.function(op) for _ in range(recipe.common_functions))
        for op in HARD_FUNCTIONS:
            cards.extend(Card.function(op) for _ in range(recipe.hard_functions))

    if difficulty.at_least(Difficulty.DECIMALS):
        for symbol in ConstantSymbol:
            cards.extend(Card.constant_card(symbol) for _ in range(recipe.constants))

    return cards


def generate_initial_deck(difficulty: Difficulty, rng: random.Random) -> list[Card]:
    """Shuffled deck dealt at the start of a game."""
    return shuffle(build_cards(difficulty, INITIAL_RECIPE), rng)


def generate_deck(difficulty: Difficulty, rng: random.Random) -> list[Card]:
    """Shuffled (thinner) deck used when the draw pile runs short."""
    return shuffle(build_cards(difficulty, REGENERATION_RECIPE), rng)


def draw_cards(deck: list[Card], count: int) -> tuple[list[Card], list[Card]]:
    """
    Take cards from the front of the deck.

    Returns (drawn, remaining). A short deck yields fewer than `count`
    cards; callers check the length.
    """
    count = max(0, count)
    return deck[:count], deck[count:]


# =============================================================================
# Synthesized cards
# =============================================================================

def random_number_card(rng: random.Random) -> Card:
    return Card.number(rng.randint(1, 9))


def random_negative_card(rng: random.Random) -> Card:
    return Card.negative(-rng.randint(1, 9))


def random_arithmetic_card(rng: random.Random) -> Card:
    return Card.arithmetic(rng.choice(list(ArithmeticOperator)))


def random_function_card(rng: random.Random) -> Card:
    return Card.function(rng.choice(DEALT_FUNCTIONS))


def random_constant_card(rng: random.Random) -> Card:
    return Card.constant_card(rng.choice(list(ConstantSymbol)))


# =============================================================================
# Hand management
# =============================================================================

def _is_number_like(card: Card) -> bool:
    return card.is_number_like


def _is_arithmetic(card: Card) -> bool:
    return card.card_type == CardType.ARITHMETIC


def _is_function(card: Card) -> bool:
    return card.card_type == CardType.FUNCTION


def _top_up(
    hand: list[Card],
    deck: list[Card],
    matches: Callable[[Card], bool],
    minimum: int,
    synthesize: Callable[[], Card],
):
    """Move matching cards from deck to hand (or synthesize them) until `minimum` are held."""
    missing = minimum - sum(1 for c in hand if matches(c))
    for _ in range(missing):
        index = next((i for i, c in enumerate(deck) if matches(c)), None)
        if index is not None:
            hand.append(deck.pop(index))
        else:
            hand.append(synthesize())


def ensure_hand_balance(
    hand: list[Card],
    deck: list[Card],
    difficulty: Difficulty,
    rng: random.Random,
) -> tuple[list[Card], list[Card]]:
    """
    Repair a hand so it always has something to play.

    Guarantees at least one number-like card, plus either one function and
    one arithmetic card (functions tier) or two arithmetic cards (every
    other tier). Cards come from the deck when possible, otherwise they are
    created. The hand may exceed its capacity afterwards.

    Returns (hand, deck) as new lists.
    """
    hand = list(hand)
    deck = list(deck)

    _top_up(hand, deck, _is_number_like, 1, lambda: random_number_card(rng))

    if Difficulty(difficulty) == Difficulty.FUNCTIONS:
        _top_up(hand, deck, _is_function, 1, lambda: random_function_card(rng))
        _top_up(hand, deck, _is_arithmetic, 1, lambda: random_arithmetic_card(rng))
    else:
        _top_up(hand, deck, _is_arithmetic, 2, lambda: random_arithmetic_card(rng))

    return hand, deck


def replenish_hand(
    hand: list[Card],
    deck: list[Card],
    hand_size: int,
    difficulty: Difficulty,
    rng: random.Random,
) -> tuple[list[Card], list[Card]]:
    """
    Balance the hand, then fill it to `hand_size`.

    If the deck is smaller than the shortfall it is replaced by a freshly
    generated regeneration deck before drawing.

    Returns (hand, deck) as new lists.
    """
    hand, deck = ensure_hand_balance(hand, deck, difficulty, rng)
    shortfall = hand_size - len(hand)
    if shortfall <= 0:
        return hand, deck

    if len(deck) < shortfall:
        deck = generate_deck(difficulty, rng)

    drawn, deck = draw_cards(deck, shortfall)
    return hand + drawn, deck
