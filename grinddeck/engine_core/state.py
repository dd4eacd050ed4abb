"""
Game State - Everything one solo game owns.

Design principles:
- The reducer mutates a clone, never the committed state
- Serializable parts (cards, moves, summaries) round-trip through dicts
- Randomness lives in the state so a rejected move cannot consume it
"""

from __future__ import annotations
from dataclasses import dataclass, field
from copy import deepcopy
from enum import Enum
from typing import Any
import random

from .cards import Card, Difficulty
from .deck import INITIAL_HAND_SIZE
from .expression import Expression, Variable, render


class GamePhase(Enum):
    """High-level game phases."""
    SETUP = "setup"
    PLAYING = "playing"
    GAME_OVER = "game_over"


class TargetDeck(Enum):
    """Where arithmetic and function plays are routed."""
    GRIND = "grind"
    ALGEBRA = "algebra"


class SoloMode(Enum):
    UNLIMITED = "unlimited"
    TIME_LIMITED = "time_limited"
    DECK_LIMITED = "deck_limited"
    REACH_SCORE = "reach_score"


class EndReason(Enum):
    TIME_UP = "time_up"
    DECK_FINISHED = "deck_finished"
    SCORE_REACHED = "score_reached"
    MANUAL_END = "manual_end"


class Feature(Enum):
    """Unlockable card categories."""
    ZERO = "zero"
    NEGATIVE = "negative"
    FUNCTIONS = "functions"
    CONSTANTS = "constants"
    VARIABLE = "variable"


class MoveType(Enum):
    NUMBER = "number"
    ARITHMETIC = "arithmetic"
    FUNCTION = "function"
    CONSTANT = "constant"
    VARIABLE = "variable"
    ALGEBRA = "algebra"


@dataclass
class PlayerProgress:
    """Unlock flags. Once set they stay set for the rest of the game."""
    has_unlocked_zero: bool = False
    has_unlocked_negative: bool = False
    has_unlocked_functions: bool = False
    has_unlocked_constants: bool = False
    has_unlocked_variable: bool = False

    def is_unlocked(self, feature: Feature) -> bool:
        return getattr(self, f"has_unlocked_{feature.value}")

    def unlock(self, feature: Feature):
        setattr(self, f"has_unlocked_{feature.value}", True)

    @property
    def unlocked(self) -> list[Feature]:
        return [f for f in Feature if self.is_unlocked(f)]


@dataclass
class GrindDeck:
    """Played cards plus the running value. value is None until seeded."""
    cards: list[Card] = field(default_factory=list)
    value: float | None = None

    @property
    def is_empty(self) -> bool:
        return len(self.cards) == 0

    def push(self, cards: list[Card], value: float):
        self.cards.extend(cards)
        self.value = value


@dataclass
class AlgebraDeck:
    """
    The symbolic accumulator.

    Inactive with function `x` until a Variable card is played.
    """
    cards: list[Card] = field(default_factory=list)
    function: Expression = field(default_factory=Variable)
    is_active: bool = False

    @property
    def function_text(self) -> str:
        return render(self.function)

    def activate(self, variable_card: Card):
        self.cards = [variable_card]
        self.function = Variable()
        self.is_active = True

    def push(self, cards: list[Card], function: Expression):
        self.cards.extend(cards)
        self.function = function

    def clear(self):
        self.cards = []
        self.function = Variable()
        self.is_active = False


@dataclass
class SoloConfig:
    """Solo sub-mode, its limit, and the session clock/counters."""
    mode: SoloMode = SoloMode.UNLIMITED
    limit: float | None = None
    start_time: float = 0.0
    cards_played: int = 0
    end_time: float | None = None
    end_reason: EndReason | None = None
    is_ended: bool = False

    @property
    def time_limit(self) -> float | None:
        return self.limit if self.mode == SoloMode.TIME_LIMITED else None

    @property
    def deck_limit(self) -> int | None:
        return int(self.limit) if self.mode == SoloMode.DECK_LIMITED and self.limit else None

    @property
    def target_score(self) -> float | None:
        return self.limit if self.mode == SoloMode.REACH_SCORE else None


@dataclass(frozen=True)
class Move:
    """One entry of the append-only move log."""
    move_id: str
    move_type: MoveType
    timestamp: float
    cards: tuple[Card, ...]
    description: str
    result_value: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.move_id,
            "type": self.move_type.value,
            "timestamp": self.timestamp,
            "cards": [c.to_dict() for c in self.cards],
            "result_value": self.result_value,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Move:
        return cls(
            move_id=data["id"],
            move_type=MoveType(data["type"]),
            timestamp=data["timestamp"],
            cards=tuple(Card.from_dict(c) for c in data.get("cards", [])),
            description=data.get("description", ""),
            result_value=data.get("result_value"),
        )


@dataclass(frozen=True)
class SessionSummary:
    """Finalized record of a completed game, handed to the match history."""
    session_id: str
    date: float
    difficulty: Difficulty
    solo_mode: SoloMode
    score: float
    time_played: int
    cards_played: int
    end_reason: EndReason
    moves: tuple[Move, ...] = ()
    time_limit: float | None = None
    deck_limit: int | None = None
    target_score: float | None = None
    game_mode: str = "solo"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.session_id,
            "date": self.date,
            "difficulty": self.difficulty.value,
            "game_mode": self.game_mode,
            "solo_mode": self.solo_mode.value,
            "score": self.score,
            "time_played": self.time_played,
            "cards_played": self.cards_played,
            "end_reason": self.end_reason.value,
            "moves": [m.to_dict() for m in self.moves],
            "time_limit": self.time_limit,
            "deck_limit": self.deck_limit,
            "target_score": self.target_score,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionSummary:
        return cls(
            session_id=data["id"],
            date=data["date"],
            difficulty=Difficulty(data["difficulty"]),
            solo_mode=SoloMode(data["solo_mode"]),
            score=data["score"],
            time_played=data["time_played"],
            cards_played=data["cards_played"],
            end_reason=EndReason(data["end_reason"]),
            moves=tuple(Move.from_dict(m) for m in data.get("moves", [])),
            time_limit=data.get("time_limit"),
            deck_limit=data.get("deck_limit"),
            target_score=data.get("target_score"),
            game_mode=data.get("game_mode", "solo"),
        )


@dataclass
class GameState:
    """
    Complete state of one solo game.

    This is the canonical state that the engine operates on.
    All state changes go through the reducer.
    """
    game_id: str
    difficulty: Difficulty = Difficulty.BASIC
    phase: GamePhase = GamePhase.SETUP

    # Cards
    deck: list[Card] = field(default_factory=list)
    hand: list[Card] = field(default_factory=list)
    hand_size: int = INITIAL_HAND_SIZE

    # Accumulators
    grind: GrindDeck = field(default_factory=GrindDeck)
    algebra: AlgebraDeck = field(default_factory=AlgebraDeck)
    active_target: TargetDeck | None = None

    # Scoring
    current_score: float = 0
    high_score: float = 0
    progress: PlayerProgress = field(default_factory=PlayerProgress)

    # Session
    solo: SoloConfig = field(default_factory=SoloConfig)
    moves: list[Move] = field(default_factory=list)

    # Card selection in progress (first card of a two-card play)
    pending_card_id: str | None = None

    random_seed: int | None = None
    random_state: random.Random = field(default_factory=random.Random)

    @property
    def is_over(self) -> bool:
        return self.phase == GamePhase.GAME_OVER or self.solo.is_ended

    @property
    def awaiting_seed(self) -> bool:
        """True while the first number-like card has yet to be played."""
        return self.grind.is_empty

    def resolve_target(self) -> TargetDeck | None:
        """
        Deck an arithmetic or function play would operate on.

        The Algebra Deck when it is active and selected, otherwise the Grind
        Deck if it has a value. None means there is nothing to operate on.
        """
        if self.active_target == TargetDeck.ALGEBRA and self.algebra.is_active:
            return TargetDeck.ALGEBRA
        if not self.grind.is_empty:
            return TargetDeck.GRIND
        return None

    def find_in_hand(self, card_id: str | None) -> Card | None:
        for card in self.hand:
            if card.card_id == card_id:
                return card
        return None

    def remove_from_hand(self, *card_ids: str):
        self.hand = [c for c in self.hand if c.card_id not in card_ids]

    def clone(self) -> GameState:
        """Deep copy the state."""
        return deepcopy(self)
