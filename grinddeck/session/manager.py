"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. Client creates a session -> a GameEngine is started (in memory)
2. During the game, commands go to the session's engine
3. The UI (or the API's tick endpoint) ticks the engine once a second
4. Game ends -> the engine hands its summary to the shared match history
5. Ended sessions stay readable until removed or cleaned up as stale

PERSISTENCE RULES:
- Live game state is never persisted
- High score and last difficulty go to the shared key-value store
- Completed games go to the shared match history
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
import logging
import threading
import time

from ..engine_core.cards import Difficulty
from ..engine_core.engine import GameEngine
from ..engine_core.state import EndReason, SoloMode
from ..storage import InMemoryKeyValueStore, KeyValueStore, MatchHistory

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a game session."""
    ACTIVE = "active"  # Game in progress
    GAME_OVER = "game_over"  # Game reached an end condition
    ABANDONED = "abandoned"  # Removed before the game ended


@dataclass
class Session:
    """
    One game session: an engine plus metadata.
    """
    session_id: str
    engine: GameEngine
    created_at: float
    state: SessionState = SessionState.ACTIVE
    metadata: dict[str, Any] = field(default_factory=dict)

    def is_active(self) -> bool:
        """Check if the game is still in progress."""
        if self.state == SessionState.ACTIVE and self.engine.is_game_over:
            self.state = SessionState.GAME_OVER
        return self.state == SessionState.ACTIVE


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions (one engine each) sharing one store and history
    - Track active sessions
    - Tick all running sessions
    - Clean up finished sessions
    """

    def __init__(
        self,
        kv_store: KeyValueStore | None = None,
        history: MatchHistory | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.kv_store = kv_store if kv_store is not None else InMemoryKeyValueStore()
        self.history = history if history is not None else MatchHistory()
        self.clock = clock
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def create_session(
        self,
        difficulty: Difficulty | str | None = None,
        solo_mode: SoloMode | str | None = None,
        limit: float | None = None,
        random_seed: int | None = None,
    ) -> Session:
        """
        Create a session and start its game.

        Args:
            difficulty: Tier (defaults to the last one chosen)
            solo_mode: Solo sub-mode (defaults to unlimited)
            limit: Limit for the limited sub-modes
            random_seed: Seed for deterministic decks

        Returns:
            New Session whose id is the game id
        """
        engine = GameEngine(
            kv_store=self.kv_store,
            history=self.history,
            clock=self.clock,
            random_seed=random_seed,
        )
        game_state = engine.start_game(difficulty, solo_mode, limit)

        session = Session(
            session_id=game_state.game_id,
            engine=engine,
            created_at=self.clock(),
        )
        with self._lock:
            self._sessions[session.session_id] = session
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        with self._lock:
            return self._sessions.get(session_id)

    def end_session(self, session_id: str, remove: bool = False) -> Session | None:
        """
        End a session's game manually.

        The ended game is recorded in the match history by its engine.
        With remove=True the session is also dropped from memory.
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if remove:
                del self._sessions[session_id]

        if not session.engine.is_game_over:
            session.engine.end_game(EndReason.MANUAL_END)
        session.state = SessionState.ABANDONED if remove else SessionState.GAME_OVER
        logger.info("Ended session %s", session_id)
        return session

    def list_sessions(self) -> list[Session]:
        with self._lock:
            return list(self._sessions.values())

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [s.session_id for s in self.list_sessions() if s.is_active()]

    def tick_all(self) -> dict[str, EndReason]:
        """
        Tick every active session.

        Returns the sessions that ended on this tick, with their reasons.
        """
        ended = {}
        for session in self.list_sessions():
            if not session.is_active():
                continue
            reason = session.engine.tick()
            if reason is not None:
                session.state = SessionState.GAME_OVER
                ended[session.session_id] = reason
        return ended

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> list[str]:
        """
        Remove finished sessions older than max_age.

        Called periodically to free memory. Returns the removed IDs.
        """
        current_time = self.clock()
        with self._lock:
            stale = [
                sid for sid, session in self._sessions.items()
                if current_time - session.created_at > max_age_seconds and not session.is_active()
            ]
            for sid in stale:
                del self._sessions[sid]

        if stale:
            logger.info("Removed %d stale session(s)", len(stale))
        return stale
