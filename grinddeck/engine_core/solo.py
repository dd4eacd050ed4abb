"""
Solo Session Controller - End conditions for solo sub-modes.

- unlimited: never ends on its own
- time_limited: ends when whole elapsed seconds reach the limit
- deck_limited: ends when cards played reach the limit
- reach_score: ends when the score reaches the target

The check runs after every move and on a 1-second tick (time can run out
with no move in flight). Ending is one-way: an ended session is never
checked again.
"""

from __future__ import annotations
import logging
import math

from .state import EndReason, GamePhase, GameState, SoloConfig, SoloMode

logger = logging.getLogger(__name__)

# Limits used when a limited mode is started without one
DEFAULT_TIME_LIMIT = 300
DEFAULT_DECK_LIMIT = 50
DEFAULT_TARGET_SCORE = 1000

_DEFAULT_LIMITS = {
    SoloMode.TIME_LIMITED: DEFAULT_TIME_LIMIT,
    SoloMode.DECK_LIMITED: DEFAULT_DECK_LIMIT,
    SoloMode.REACH_SCORE: DEFAULT_TARGET_SCORE,
}


def make_solo_config(
    mode: SoloMode | str | None,
    limit: float | None,
    start_time: float,
) -> SoloConfig:
    """Build the solo config for a new game, filling in default limits."""
    mode = SoloMode(mode) if mode is not None else SoloMode.UNLIMITED
    if mode == SoloMode.UNLIMITED:
        limit = None
    elif limit is None:
        limit = _DEFAULT_LIMITS[mode]
    elif limit <= 0:
        raise ValueError(f"{mode.value} needs a positive limit, got {limit}")
    return SoloConfig(mode=mode, limit=limit, start_time=start_time)


def elapsed_seconds(solo: SoloConfig, now: float) -> int:
    """Whole seconds since the game started (frozen once ended)."""
    end = solo.end_time if solo.is_ended and solo.end_time is not None else now
    return max(0, math.floor(end - solo.start_time))


class SoloSessionController:
    """Evaluates and applies solo end conditions on a GameState."""

    def check(self, state: GameState, now: float) -> EndReason | None:
        """Return the reason the session should end now, or None."""
        solo = state.solo
        if solo.is_ended or solo.limit is None:
            return None

        if solo.mode == SoloMode.TIME_LIMITED:
            if elapsed_seconds(solo, now) >= solo.limit:
                return EndReason.TIME_UP
        elif solo.mode == SoloMode.DECK_LIMITED:
            if solo.cards_played >= solo.limit:
                return EndReason.DECK_FINISHED
        elif solo.mode == SoloMode.REACH_SCORE:
            if state.current_score >= solo.limit:
                return EndReason.SCORE_REACHED
        return None

    def end(self, state: GameState, reason: EndReason, now: float) -> bool:
        """
        Mark the session ended. Returns False if it had already ended.
        """
        solo = state.solo
        if solo.is_ended:
            return False
        solo.is_ended = True
        solo.end_reason = reason
        solo.end_time = now
        state.phase = GamePhase.GAME_OVER
        state.pending_card_id = None
        logger.info(
            "Game %s ended (%s) with score %s after %d card(s)",
            state.game_id, reason.value, state.current_score, solo.cards_played,
        )
        return True

    def check_and_end(self, state: GameState, now: float) -> EndReason | None:
        """Run the check and end the session if it fires."""
        reason = self.check(state, now)
        if reason is not None:
            self.end(state, reason, now)
        return reason

    def remaining_time(self, state: GameState, now: float) -> int | None:
        """Seconds left in a time_limited game, otherwise None."""
        solo = state.solo
        if solo.mode != SoloMode.TIME_LIMITED or solo.limit is None:
            return None
        return max(0, int(solo.limit) - elapsed_seconds(solo, now))

    def remaining_cards(self, state: GameState) -> int | None:
        """Cards left in a deck_limited game, otherwise None."""
        solo = state.solo
        if solo.mode != SoloMode.DECK_LIMITED or solo.limit is None:
            return None
        return max(0, int(solo.limit) - solo.cards_played)
