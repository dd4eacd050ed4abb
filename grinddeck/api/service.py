"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine commands
2. Manages sessions (one engine per game)
3. Maps engine rejections to structured error codes
4. Formats engine state for clients

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable
import math

from .schemas import (
    # Requests
    CreateGameRequest,
    PlayCardRequest,
    PlayPairRequest,
    PlayFunctionRequest,
    SetTargetRequest,
    # Responses
    ActionResponse,
    ErrorResponse,
    GameStateResponse,
    HistoryEntry,
    HistoryResponse,
    HistoryStatsResponse,
    LegalActionInfo,
    LegalActionsResponse,
    MovesResponse,
    TickResponse,
    # Shared
    CardInfo,
    MoveInfo,
    ProgressInfo,
    SoloInfo,
    # Enums
    ErrorCode,
    SessionStatus,
)
from ..engine_core.action import ActionResult
from ..engine_core.cards import Card
from ..engine_core.engine import GameEngine
from ..engine_core.numeric import card_value, format_value
from ..engine_core.state import Move, SessionSummary
from ..session import Session, SessionManager, SessionState
from ..storage import HIGH_SCORE_KEY


def _finite(value: float | None) -> float | None:
    """JSON has no nan or inf; send them as null."""
    if value is None or not math.isfinite(value):
        return None
    return value


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        state = service.create_game(CreateGameRequest(difficulty="basic"))
        result = service.play_number(state.session_id, PlayCardRequest(card_id=...))
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_game(self, request: CreateGameRequest) -> GameStateResponse | ErrorResponse:
        """Start a new game in its own session."""
        try:
            session = self.session_manager.create_session(
                difficulty=request.difficulty.value if request.difficulty else None,
                solo_mode=request.solo_mode.value,
                limit=request.limit,
                random_seed=request.random_seed,
            )
        except ValueError as e:
            return ErrorResponse(error=str(e), error_code=ErrorCode.VALIDATION_ERROR)
        return self._build_game_state(session)

    def get_game(self, session_id: str) -> GameStateResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        return self._build_game_state(session)

    def list_games(self) -> list[str]:
        """IDs of games still in progress."""
        return self.session_manager.list_active_sessions()

    def end_game(self, session_id: str) -> ErrorResponse | Session:
        """End a game manually. The session stays readable."""
        session = self.session_manager.end_session(session_id)
        if not session:
            return self._not_found(session_id)
        return session

    # =========================================================================
    # Commands
    # =========================================================================

    def draw(self, session_id: str) -> ActionResponse | ErrorResponse:
        return self._run(session_id, lambda engine: engine.draw_card())

    def play_number(self, session_id: str, request: PlayCardRequest) -> ActionResponse | ErrorResponse:
        return self._run(session_id, lambda engine: engine.play_number_card(request.card_id))

    def play_constant(self, session_id: str, request: PlayCardRequest) -> ActionResponse | ErrorResponse:
        return self._run(session_id, lambda engine: engine.play_constant_card(request.card_id))

    def play_variable(self, session_id: str, request: PlayCardRequest) -> ActionResponse | ErrorResponse:
        return self._run(session_id, lambda engine: engine.play_variable_card(request.card_id))

    def play_arithmetic(self, session_id: str, request: PlayPairRequest) -> ActionResponse | ErrorResponse:
        return self._run(
            session_id,
            lambda engine: engine.play_arithmetic_card(request.card_id, request.second_card_id),
        )

    def play_function(self, session_id: str, request: PlayFunctionRequest) -> ActionResponse | ErrorResponse:
        return self._run(
            session_id,
            lambda engine: engine.play_function_card(request.card_id, request.second_card_id),
        )

    def set_target(self, session_id: str, request: SetTargetRequest) -> ActionResponse | ErrorResponse:
        target = request.target.value if request.target else None
        return self._run(session_id, lambda engine: engine.set_active_target_deck(target))

    def apply_algebra(self, session_id: str) -> ActionResponse | ErrorResponse:
        return self._run(session_id, lambda engine: engine.apply_algebra_function())

    def tick(self, session_id: str) -> TickResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        reason = session.engine.tick()
        if reason is not None:
            session.state = SessionState.GAME_OVER
        return TickResponse(
            session_id=session_id,
            ended=reason is not None,
            end_reason=reason.value if reason else None,
            remaining_time=session.engine.remaining_time(),
        )

    def _run(
        self,
        session_id: str,
        command: Callable[[GameEngine], ActionResult],
    ) -> ActionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)

        result = command(session.engine)
        if not result.success:
            return ErrorResponse(
                error=result.error or "Move rejected",
                error_code=self._error_code(result.error_code),
            )

        return ActionResponse(
            state_changes=result.state_changes,
            unlocked=[feature.value for feature in result.unlocked],
            game_state=self._build_game_state(session),
        )

    # =========================================================================
    # Queries
    # =========================================================================

    def get_moves(self, session_id: str) -> MovesResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        moves = [self._move_info(m) for m in session.engine.moves]
        return MovesResponse(session_id=session_id, moves=moves, count=len(moves))

    def get_legal_actions(self, session_id: str) -> LegalActionsResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)

        actions = []
        for action in session.engine.legal_actions():
            payload = action.payload
            target = payload.target
            actions.append(
                LegalActionInfo(
                    action_type=action.action_type.value,
                    card_id=payload.card_id,
                    second_card_id=payload.second_card_id,
                    target=getattr(target, "value", target),
                )
            )
        return LegalActionsResponse(session_id=session_id, actions=actions, count=len(actions))

    def get_history(self, limit: int | None = None) -> HistoryResponse:
        entries = [self._history_entry(s) for s in self.session_manager.history.recent(limit)]
        return HistoryResponse(entries=entries, count=len(entries))

    def get_history_stats(self) -> HistoryStatsResponse:
        history = self.session_manager.history
        return HistoryStatsResponse(
            total_games=history.total_games(),
            total_time_played=history.total_time_played(),
            highest_score=_finite(history.highest_score()),
            high_score=_finite(self.session_manager.kv_store.get(HIGH_SCORE_KEY, 0)),
        )

    # =========================================================================
    # Conversion Helpers
    # =========================================================================

    def _not_found(self, session_id: str) -> ErrorResponse:
        return ErrorResponse(
            error="Session not found",
            error_code=ErrorCode.SESSION_NOT_FOUND,
            details={"session_id": session_id},
        )

    def _error_code(self, code: str | None) -> ErrorCode:
        try:
            return ErrorCode(code)
        except ValueError:
            return ErrorCode.INTERNAL_ERROR

    def _session_status(self, session: Session) -> SessionStatus:
        if session.is_active():
            return SessionStatus.ACTIVE
        if session.state == SessionState.ABANDONED:
            return SessionStatus.ABANDONED
        return SessionStatus.GAME_OVER

    def _card_info(self, card: Card) -> CardInfo:
        return CardInfo(
            card_id=card.card_id,
            card_type=card.card_type.value,
            label=card.label,
            value=card_value(card) if card.is_number_like else None,
        )

    def _move_info(self, move: Move) -> MoveInfo:
        return MoveInfo(
            move_id=move.move_id,
            move_type=move.move_type.value,
            timestamp=move.timestamp,
            description=move.description,
            result_value=_finite(move.result_value),
            cards=[self._card_info(c) for c in move.cards],
        )

    def _history_entry(self, summary: SessionSummary) -> HistoryEntry:
        return HistoryEntry(
            session_id=summary.session_id,
            date=summary.date,
            difficulty=summary.difficulty.value,
            game_mode=summary.game_mode,
            solo_mode=summary.solo_mode.value,
            score=_finite(summary.score),
            time_played=summary.time_played,
            cards_played=summary.cards_played,
            end_reason=summary.end_reason.value,
            time_limit=summary.time_limit,
            deck_limit=summary.deck_limit,
            target_score=summary.target_score,
            move_count=len(summary.moves),
        )

    def _build_game_state(self, session: Session) -> GameStateResponse:
        """Build complete game state response."""
        engine = session.engine
        state = engine.state
        solo = state.solo

        return GameStateResponse(
            session_id=session.session_id,
            status=self._session_status(session),
            difficulty=state.difficulty.value,
            phase=state.phase.value,
            hand=[self._card_info(c) for c in state.hand],
            hand_size=state.hand_size,
            deck_size=len(state.deck),
            pending_card_id=state.pending_card_id,
            grind_value=_finite(state.grind.value),
            grind_display=format_value(state.grind.value),
            grind_cards=[self._card_info(c) for c in state.grind.cards],
            algebra_active=state.algebra.is_active,
            algebra_function=state.algebra.function_text,
            algebra_cards=[self._card_info(c) for c in state.algebra.cards],
            active_target=state.active_target.value if state.active_target else None,
            current_score=_finite(state.current_score),
            high_score=_finite(engine.high_score),
            progress=ProgressInfo.model_validate(state.progress),
            solo=SoloInfo(
                mode=solo.mode.value,
                limit=solo.limit,
                cards_played=solo.cards_played,
                elapsed_seconds=engine.elapsed_seconds(),
                remaining_time=engine.remaining_time(),
                remaining_cards=engine.remaining_cards(),
                is_ended=solo.is_ended,
                end_reason=solo.end_reason.value if solo.end_reason else None,
            ),
            move_count=len(state.moves),
        )
