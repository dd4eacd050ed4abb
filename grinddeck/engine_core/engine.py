"""
Game Engine - The command/query facade over one solo game.

The engine owns the committed GameState and serializes every command:
1. Timestamp the action with the engine clock
2. Apply it with the reducer (on a clone)
3. Commit the new state only if the action succeeded
4. Persist the high score and, on the end transition, hand a
   SessionSummary to the match history (exactly once per game)

A lock guards steps 1-4, so the 1-second tick cannot interleave with a
move in flight. Many engines may coexist; nothing is module-global.
"""

from __future__ import annotations
import logging
import threading
import time
from typing import Callable

from ..storage import DIFFICULTY_KEY, HIGH_SCORE_KEY, InMemoryKeyValueStore, KeyValueStore, MatchHistory
from .action import Action, ActionResult
from .action_generator import legal_actions
from .cards import Card, Difficulty
from .errors import IllegalMoveError
from .expression import Expression
from .reducer import Reducer
from .setup import setup_game
from .solo import elapsed_seconds
from .state import EndReason, GameState, Move, PlayerProgress, SessionSummary, SoloMode, TargetDeck

logger = logging.getLogger(__name__)


class GameEngine:
    """
    One player's game engine.

    Usage:
        engine = GameEngine()
        engine.start_game("basic", solo_mode="deck_limited", limit=20)
        engine.play_number_card(engine.hand[0].card_id)
        ...
        engine.tick()   # once a second from the UI
    """

    def __init__(
        self,
        kv_store: KeyValueStore | None = None,
        history: MatchHistory | None = None,
        clock: Callable[[], float] = time.time,
        random_seed: int | None = None,
        reducer: Reducer | None = None,
    ):
        self.kv_store = kv_store if kv_store is not None else InMemoryKeyValueStore()
        self.history = history if history is not None else MatchHistory()
        self.clock = clock
        self.random_seed = random_seed
        self.reducer = reducer or Reducer()

        self._lock = threading.RLock()
        self._state: GameState | None = None
        self._summary: SessionSummary | None = None
        self._settings: tuple[Difficulty, SoloMode, float | None] | None = None

    # =========================================================================
    # Commands
    # =========================================================================

    def start_game(
        self,
        difficulty: Difficulty | str | None = None,
        solo_mode: SoloMode | str | None = None,
        limit: float | None = None,
    ) -> GameState:
        """
        Start a new game, replacing any current one.

        The difficulty defaults to the last one chosen.
        Raises ValueError for an unknown tier/mode or a non-positive limit.
        """
        if difficulty is None:
            difficulty = self.kv_store.get(DIFFICULTY_KEY, Difficulty.BASIC.value)
        difficulty = Difficulty(difficulty)

        with self._lock:
            state = setup_game(
                difficulty=difficulty,
                solo_mode=solo_mode,
                limit=limit,
                random_seed=self.random_seed,
                high_score=self.high_score,
                now=self.clock(),
            )
            self._state = state
            self._summary = None
            self._settings = (difficulty, state.solo.mode, state.solo.limit)
            self.kv_store.set(DIFFICULTY_KEY, difficulty.value)

        logger.info(
            "Started game %s (%s, %s, limit=%s)",
            state.game_id, difficulty.value, state.solo.mode.value, state.solo.limit,
        )
        return state

    def draw_card(self) -> ActionResult:
        return self.dispatch(Action.draw())

    def select_card(self, card_id: str) -> ActionResult:
        """Click-style play; see Reducer._handle_select_card."""
        return self.dispatch(Action.select_card(card_id))

    def deselect(self) -> ActionResult:
        return self.dispatch(Action.deselect())

    def play_number_card(self, card_id: str) -> ActionResult:
        return self.dispatch(Action.play_number(card_id))

    def play_arithmetic_card(self, card_id: str, second_card_id: str) -> ActionResult:
        return self.dispatch(Action.play_arithmetic(card_id, second_card_id))

    def play_function_card(self, card_id: str, second_card_id: str | None = None) -> ActionResult:
        return self.dispatch(Action.play_function(card_id, second_card_id))

    def play_constant_card(self, card_id: str) -> ActionResult:
        return self.dispatch(Action.play_constant(card_id))

    def play_variable_card(self, card_id: str) -> ActionResult:
        return self.dispatch(Action.play_variable(card_id))

    def set_active_target_deck(self, target: TargetDeck | str | None) -> ActionResult:
        return self.dispatch(Action.set_target(target))

    def apply_algebra_function(self) -> ActionResult:
        return self.dispatch(Action.apply_algebra())

    def end_game(self, reason: EndReason | str = EndReason.MANUAL_END) -> ActionResult:
        return self.dispatch(Action.end_game(reason))

    def dispatch(self, action: Action) -> ActionResult:
        """Apply an action and commit the result if it succeeded."""
        with self._lock:
            if self._state is None:
                return ActionResult.failure("Game not started", error_code=IllegalMoveError.code)

            action.timestamp = self.clock()
            result = self.reducer.apply(self._state, action)
            if result.success:
                self._commit(result.new_state)
            return result

    def tick(self) -> EndReason | None:
        """
        Run the solo end check against the clock.

        Returns the end reason if this tick ended the game.
        """
        with self._lock:
            if self._state is None or self._state.is_over:
                return None

            now = self.clock()
            reason = self.reducer.solo.check(self._state, now)
            if reason is None:
                return None

            state = self._state.clone()
            self.reducer.solo.end(state, reason, now)
            self._commit(state)
            return reason

    def reset_game(self):
        """Drop the current game. The high score is kept."""
        with self._lock:
            self._state = None
            self._summary = None

    def restart_with_same_difficulty(self) -> GameState:
        """Start a fresh game with the previous tier and solo settings."""
        if self._settings is None:
            raise IllegalMoveError("No previous game to restart")
        difficulty, solo_mode, limit = self._settings
        return self.start_game(difficulty, solo_mode, limit)

    def _commit(self, state: GameState):
        self._state = state

        if state.high_score > self.kv_store.get(HIGH_SCORE_KEY, 0):
            self.kv_store.set(HIGH_SCORE_KEY, state.high_score)

        if state.is_over and self._summary is None:
            self._summary = self.build_summary(state)
            try:
                self.history.add(self._summary)
            except OSError as e:
                logger.warning("Could not record game %s in history: %s", state.game_id, e)

    def build_summary(self, state: GameState) -> SessionSummary:
        """Summarize a (finished) game for the match history."""
        solo = state.solo
        now = solo.end_time if solo.end_time is not None else self.clock()
        return SessionSummary(
            session_id=state.game_id,
            date=now,
            difficulty=state.difficulty,
            solo_mode=solo.mode,
            score=state.current_score,
            time_played=elapsed_seconds(solo, now),
            cards_played=solo.cards_played,
            end_reason=solo.end_reason or EndReason.MANUAL_END,
            moves=tuple(state.moves),
            time_limit=solo.time_limit,
            deck_limit=solo.deck_limit,
            target_score=solo.target_score,
        )

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def state(self) -> GameState | None:
        """The committed state. Treat as read-only."""
        return self._state

    @property
    def is_started(self) -> bool:
        return self._state is not None

    def _require_state(self) -> GameState:
        if self._state is None:
            raise IllegalMoveError("Game not started")
        return self._state

    @property
    def difficulty(self) -> Difficulty:
        return self._require_state().difficulty

    @property
    def hand(self) -> list[Card]:
        return list(self._require_state().hand)

    @property
    def hand_size(self) -> int:
        return self._require_state().hand_size

    @property
    def deck_size(self) -> int:
        return len(self._require_state().deck)

    @property
    def pending_card_id(self) -> str | None:
        return self._require_state().pending_card_id

    @property
    def grind_value(self) -> float | None:
        return self._require_state().grind.value

    @property
    def grind_cards(self) -> list[Card]:
        return list(self._require_state().grind.cards)

    @property
    def algebra_active(self) -> bool:
        return self._require_state().algebra.is_active

    @property
    def algebra_function(self) -> Expression:
        return self._require_state().algebra.function

    @property
    def algebra_function_text(self) -> str:
        return self._require_state().algebra.function_text

    @property
    def algebra_cards(self) -> list[Card]:
        return list(self._require_state().algebra.cards)

    @property
    def active_target(self) -> TargetDeck | None:
        return self._require_state().active_target

    @property
    def current_score(self) -> float:
        return self._require_state().current_score

    @property
    def high_score(self) -> float:
        stored = self.kv_store.get(HIGH_SCORE_KEY, 0)
        if self._state is None:
            return stored
        return max(stored, self._state.high_score)

    @property
    def progress(self) -> PlayerProgress:
        return self._require_state().progress

    @property
    def moves(self) -> list[Move]:
        return list(self._require_state().moves)

    @property
    def is_game_over(self) -> bool:
        return self._state is not None and self._state.is_over

    @property
    def end_reason(self) -> EndReason | None:
        return self._require_state().solo.end_reason

    @property
    def solo_mode(self) -> SoloMode:
        return self._require_state().solo.mode

    @property
    def cards_played(self) -> int:
        return self._require_state().solo.cards_played

    @property
    def summary(self) -> SessionSummary | None:
        """Summary of the current game once it has ended."""
        return self._summary

    def elapsed_seconds(self) -> int:
        return elapsed_seconds(self._require_state().solo, self.clock())

    def remaining_time(self) -> int | None:
        return self.reducer.solo.remaining_time(self._require_state(), self.clock())

    def remaining_cards(self) -> int | None:
        return self.reducer.solo.remaining_cards(self._require_state())

    def legal_actions(self) -> list[Action]:
        if self._state is None:
            return []
        return legal_actions(self._state)
