"""
Game Setup - Creates initial game state.

This module handles:
- Seeding the game's random source for determinism
- Dealing the initial deck for the chosen tier
- Drawing and balancing the opening hand
- Filling in solo mode limits
"""

from __future__ import annotations
import random
import time
import uuid

from .cards import Difficulty
from .deck import INITIAL_HAND_SIZE, draw_cards, ensure_hand_balance, generate_initial_deck
from .solo import make_solo_config
from .state import GamePhase, GameState, SoloMode


def setup_game(
    difficulty: Difficulty | str = Difficulty.BASIC,
    solo_mode: SoloMode | str | None = None,
    limit: float | None = None,
    random_seed: int | None = None,
    high_score: float = 0,
    now: float | None = None,
    game_id: str | None = None,
) -> GameState:
    """
    Set up a new solo game.

    Args:
        difficulty: Tier, which gates the card types dealt
        solo_mode: Solo sub-mode (unlimited when omitted)
        limit: Seconds, cards or target score for the limited modes
        random_seed: Seed for deterministic shuffling
        high_score: Best score carried over from earlier games
        now: Start timestamp (defaults to the wall clock)
        game_id: Explicit id (generated when omitted)

    Returns:
        Initial GameState ready for play
    """
    difficulty = Difficulty(difficulty)
    rng = random.Random(random_seed)
    start_time = time.time() if now is None else now

    deck = generate_initial_deck(difficulty, rng)
    hand, deck = draw_cards(deck, INITIAL_HAND_SIZE)
    hand, deck = ensure_hand_balance(hand, deck, difficulty, rng)

    return GameState(
        game_id=game_id or str(uuid.uuid4()),
        difficulty=difficulty,
        phase=GamePhase.PLAYING,
        deck=deck,
        hand=hand,
        hand_size=INITIAL_HAND_SIZE,
        high_score=high_score,
        solo=make_solo_config(solo_mode, limit, start_time),
        random_seed=random_seed,
        random_state=rng,
    )
