"""
API Module - HTTP interface for Grind Deck clients.

Exposes the engine via a REST API. A client:
1. Creates a game (tier, solo mode, limit)
2. Sends card plays and deck commands
3. Ticks the game clock once a second
4. Reads the move log and the match history

Game state lives in memory, one session per game.
"""

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
    HistoryResponse,
    HistoryStatsResponse,
    LegalActionsResponse,
    MovesResponse,
    TickResponse,
    # Shared
    CardInfo,
    MoveInfo,
    ErrorCode,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateGameRequest",
    "PlayCardRequest",
    "PlayPairRequest",
    "PlayFunctionRequest",
    "SetTargetRequest",
    # Responses
    "ActionResponse",
    "ErrorResponse",
    "GameStateResponse",
    "HistoryResponse",
    "HistoryStatsResponse",
    "LegalActionsResponse",
    "MovesResponse",
    "TickResponse",
    # Shared
    "CardInfo",
    "MoveInfo",
    "ErrorCode",
    # Service
    "APIService",
    "create_app",
]
