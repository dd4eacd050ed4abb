"""
Pytest fixtures for Grind Deck tests.
"""

import random

import pytest

from ..engine_core.cards import Card, Difficulty
from ..engine_core.engine import GameEngine
from ..engine_core.reducer import Reducer
from ..engine_core.state import GamePhase, GameState, SoloConfig, SoloMode
from ..storage import InMemoryKeyValueStore, MatchHistory


class FakeClock:
    """Manually advanced clock for engines and sessions."""

    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def make_state(
    hand: list[Card],
    deck: list[Card] | None = None,
    difficulty: Difficulty = Difficulty.BASIC,
    grind_value: float | None = None,
    solo: SoloConfig | None = None,
    seed: int = 7,
) -> GameState:
    """A PLAYING state with a hand-crafted hand (and optionally a seeded Grind Deck)."""
    state = GameState(
        game_id="test_game",
        difficulty=difficulty,
        phase=GamePhase.PLAYING,
        hand=list(hand),
        deck=list(deck) if deck is not None else [Card.number(n) for n in range(1, 10)] * 3,
        solo=solo or SoloConfig(start_time=1_000.0),
        random_seed=seed,
        random_state=random.Random(seed),
    )
    if grind_value is not None:
        state.grind.push([Card.number(1, card_id="seed")], grind_value)
    return state


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def reducer() -> Reducer:
    return Reducer()


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def history() -> MatchHistory:
    return MatchHistory()


@pytest.fixture
def engine(kv_store, history, clock) -> GameEngine:
    """A seeded engine on a fake clock (game not started)."""
    return GameEngine(kv_store=kv_store, history=history, clock=clock, random_seed=42)


@pytest.fixture
def basic_state() -> GameState:
    """Basic tier, empty Grind Deck, hand: 5, 3, 2, +, ÷, ×, 0."""
    return make_state([
        Card.number(5, card_id="n5"),
        Card.number(3, card_id="n3"),
        Card.number(2, card_id="n2"),
        Card.arithmetic("+", card_id="add"),
        Card.arithmetic("÷", card_id="div"),
        Card.arithmetic("×", card_id="mul"),
        Card.zero(card_id="zero"),
    ])


@pytest.fixture
def algebra_state() -> GameState:
    """Algebra tier, Grind Deck at 6, hand holding a variable card."""
    return make_state(
        [
            Card.variable(card_id="var"),
            Card.number(3, card_id="n3"),
            Card.number(2, card_id="n2"),
            Card.arithmetic("+", card_id="add"),
            Card.arithmetic("×", card_id="mul"),
            Card.function("√", card_id="sqrt"),
            Card.function("x^y", card_id="pow"),
        ],
        difficulty=Difficulty.ALGEBRA,
        grind_value=6,
    )


def start_engine_with_hand(engine: GameEngine, hand: list[Card], **kwargs) -> GameEngine:
    """Start a game, then swap in a known hand."""
    engine.start_game(**kwargs)
    engine.state.hand = list(hand)
    return engine
