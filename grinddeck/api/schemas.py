"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between a client UI and the engine.
All responses include explicit types for OpenAPI schema generation.
Non-finite numbers (nan, inf) are sent as null.

Error Codes:
- SESSION_NOT_FOUND: Game does not exist or was cleaned up
- ILLEGAL_MOVE: Move rejected, state unchanged
- DIVISION_BY_ZERO: ÷ played with a zero-valued card
- GAME_OVER: The game has ended; no more moves
- VALIDATION_ERROR: Bad request parameters (unknown tier, bad limit)
- INTERNAL_ERROR: Unexpected engine failure
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    ACTIVE = "active"
    GAME_OVER = "game_over"
    ABANDONED = "abandoned"


class DifficultyLevel(str, Enum):
    BASIC = "basic"
    DECIMALS = "decimals"
    NEGATIVE = "negative"
    FUNCTIONS = "functions"
    ALGEBRA = "algebra"


class SoloModeName(str, Enum):
    UNLIMITED = "unlimited"
    TIME_LIMITED = "time_limited"
    DECK_LIMITED = "deck_limited"
    REACH_SCORE = "reach_score"


class TargetName(str, Enum):
    GRIND = "grind"
    ALGEBRA = "algebra"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    ILLEGAL_MOVE = "ILLEGAL_MOVE"
    DIVISION_BY_ZERO = "DIVISION_BY_ZERO"
    GAME_OVER = "GAME_OVER"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    """Card information for display."""
    card_id: str
    card_type: str = Field(description="number, zero, negative, arithmetic, function, constant, variable")
    label: str = Field(description="Text printed on the card")
    value: Optional[float] = Field(None, description="Numeric value of number-like cards")


class MoveInfo(BaseModel):
    """One entry of the move log."""
    move_id: str
    move_type: str
    timestamp: float
    description: str
    result_value: Optional[float] = None
    cards: list[CardInfo] = Field(default_factory=list)


class ProgressInfo(BaseModel):
    """Unlock flags."""
    has_unlocked_zero: bool = False
    has_unlocked_negative: bool = False
    has_unlocked_functions: bool = False
    has_unlocked_constants: bool = False
    has_unlocked_variable: bool = False

    model_config = {"from_attributes": True}


class SoloInfo(BaseModel):
    """Solo sub-mode and its budget."""
    mode: SoloModeName
    limit: Optional[float] = None
    cards_played: int = 0
    elapsed_seconds: int = 0
    remaining_time: Optional[int] = None
    remaining_cards: Optional[int] = None
    is_ended: bool = False
    end_reason: Optional[str] = None


# =============================================================================
# Request Models
# =============================================================================

class CreateGameRequest(BaseModel):
    """Request to start a new solo game."""
    difficulty: Optional[DifficultyLevel] = Field(
        None, description="Tier; defaults to the last one chosen"
    )
    solo_mode: SoloModeName = Field(SoloModeName.UNLIMITED, description="Solo sub-mode")
    limit: Optional[float] = Field(
        None, gt=0, description="Seconds, cards or target score (defaults: 300, 50, 1000)"
    )
    random_seed: Optional[int] = Field(None, description="Seed for reproducible decks")


class PlayCardRequest(BaseModel):
    """Play a single card."""
    card_id: str


class PlayPairRequest(BaseModel):
    """Play an arithmetic card with a number-like card."""
    card_id: str = Field(..., description="Arithmetic card")
    second_card_id: str = Field(..., description="Number-like card")


class PlayFunctionRequest(BaseModel):
    """Play a function card; binary functions need a second card."""
    card_id: str
    second_card_id: Optional[str] = None


class SetTargetRequest(BaseModel):
    """Choose where arithmetic and function plays go."""
    target: Optional[TargetName] = None


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class GameStateResponse(BaseModel):
    """Complete game state for display."""
    session_id: str
    status: SessionStatus
    difficulty: DifficultyLevel
    phase: str

    hand: list[CardInfo] = Field(default_factory=list)
    hand_size: int = 7
    deck_size: int = 0
    pending_card_id: Optional[str] = None

    grind_value: Optional[float] = Field(None, description="null until seeded, or when not finite")
    grind_display: str = Field("-", description="Grind Deck value as text (nan and inf included)")
    grind_cards: list[CardInfo] = Field(default_factory=list)
    algebra_active: bool = False
    algebra_function: str = "x"
    algebra_cards: list[CardInfo] = Field(default_factory=list)
    active_target: Optional[TargetName] = None

    current_score: Optional[float] = 0
    high_score: Optional[float] = 0
    progress: ProgressInfo = Field(default_factory=ProgressInfo)
    solo: SoloInfo
    move_count: int = 0
    api_version: str = "v1"


class ActionResponse(BaseModel):
    """Result of an accepted command."""
    success: bool = True
    state_changes: list[str] = Field(default_factory=list)
    unlocked: list[str] = Field(default_factory=list)
    game_state: GameStateResponse
    api_version: str = "v1"


class TickResponse(BaseModel):
    """Result of a clock tick."""
    session_id: str
    ended: bool = False
    end_reason: Optional[str] = None
    remaining_time: Optional[int] = None


class MovesResponse(BaseModel):
    session_id: str
    moves: list[MoveInfo] = Field(default_factory=list)
    count: int = 0


class LegalActionInfo(BaseModel):
    """A fully specified command the engine would accept now."""
    action_type: str
    card_id: Optional[str] = None
    second_card_id: Optional[str] = None
    target: Optional[str] = None


class LegalActionsResponse(BaseModel):
    session_id: str
    actions: list[LegalActionInfo] = Field(default_factory=list)
    count: int = 0


class HistoryEntry(BaseModel):
    """Summary of one completed game."""
    session_id: str
    date: float
    difficulty: DifficultyLevel
    game_mode: str = "solo"
    solo_mode: SoloModeName
    score: Optional[float]
    time_played: int
    cards_played: int
    end_reason: str
    time_limit: Optional[float] = None
    deck_limit: Optional[int] = None
    target_score: Optional[float] = None
    move_count: int = 0


class HistoryResponse(BaseModel):
    entries: list[HistoryEntry] = Field(default_factory=list)
    count: int = 0


class HistoryStatsResponse(BaseModel):
    total_games: int = 0
    total_time_played: int = 0
    highest_score: Optional[float] = 0
    high_score: Optional[float] = Field(0, description="Persisted best score")


class SessionListResponse(BaseModel):
    """Response listing active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a game."""
    success: bool
    session_id: str
    end_reason: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    environment: str
