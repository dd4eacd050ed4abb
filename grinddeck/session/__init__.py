"""
Session Module - Manages in-memory game sessions.

A session represents one play-through:
- Created when a client starts a game
- Holds the game's engine
- Ends when a solo end condition fires or the player quits

Live game state is never persisted. Only the high score, the last
difficulty and the match history outlive a session.
"""

from .manager import SessionManager, Session, SessionState

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
]
