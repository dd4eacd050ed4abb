"""
FastAPI Application - REST API for Grind Deck clients.

Endpoints:
    GET    /api/v1/health                         Health check
    POST   /api/v1/games                          Start a game
    GET    /api/v1/games                          List games in progress
    GET    /api/v1/games/{id}                     Get game state
    DELETE /api/v1/games/{id}                     End game (manual_end)
    POST   /api/v1/games/{id}/draw                Draw a card
    POST   /api/v1/games/{id}/play/number         Play a number-like card alone
    POST   /api/v1/games/{id}/play/arithmetic     Play arithmetic + number card
    POST   /api/v1/games/{id}/play/function       Play a function card
    POST   /api/v1/games/{id}/play/constant       Play a constant card alone
    POST   /api/v1/games/{id}/play/variable       Open the Algebra Deck
    POST   /api/v1/games/{id}/target              Choose the target deck
    POST   /api/v1/games/{id}/algebra/apply       Apply the algebra function
    POST   /api/v1/games/{id}/tick                Run the solo clock check
    GET    /api/v1/games/{id}/moves               Move log
    GET    /api/v1/games/{id}/legal-actions       Commands accepted now
    GET    /api/v1/history                        Completed games
    GET    /api/v1/history/stats                  History totals

All responses are JSON with explicit Pydantic schemas.
Rejected moves return an ErrorResponse and leave the game unchanged.
"""

from typing import Annotated, Optional, Union
import os

# Environment configuration
GRINDDECK_ENV = os.getenv("GRINDDECK_ENV", "development")
GRINDDECK_DATA_DIR = os.getenv("GRINDDECK_DATA_DIR", None)
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

API_VERSION = "1.0.0"


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    from pathlib import Path

    from fastapi import FastAPI, Query
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.responses import JSONResponse

    from .service import APIService
    from .schemas import (
        # Request models
        CreateGameRequest,
        PlayCardRequest,
        PlayPairRequest,
        PlayFunctionRequest,
        SetTargetRequest,
        # Response models
        ActionResponse,
        EndSessionResponse,
        ErrorResponse,
        GameStateResponse,
        HealthResponse,
        HistoryResponse,
        HistoryStatsResponse,
        LegalActionsResponse,
        MovesResponse,
        SessionListResponse,
        TickResponse,
        # Enums
        ErrorCode,
    )
    from ..session import SessionManager
    from ..storage import JsonFileKeyValueStore, MatchHistory

    app = FastAPI(
        title="Grind Deck API",
        description="""
Single-player arithmetic card game engine.

## Playing

1. `POST /games` to deal a game (tier, solo mode, optional limit)
2. Seed the Grind Deck with `POST /play/number` (or `/play/constant`)
3. Keep playing arithmetic and function cards against it
4. Call `POST /tick` once a second for time-limited games

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Game does not exist |
| `ILLEGAL_MOVE` | Move rejected, nothing changed |
| `DIVISION_BY_ZERO` | ÷ with a zero card |
| `GAME_OVER` | The game has ended |
| `VALIDATION_ERROR` | Bad parameters |
        """,
        version=API_VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Service instance
    if service is None:
        if GRINDDECK_DATA_DIR:
            data_dir = Path(GRINDDECK_DATA_DIR)
            manager = SessionManager(
                kv_store=JsonFileKeyValueStore(data_dir / "settings.json"),
                history=MatchHistory(data_dir / "history.json"),
            )
        else:
            manager = SessionManager()
        service = APIService(session_manager=manager)
    api_service = service

    # =========================================================================
    # Error helpers
    # =========================================================================

    status_codes = {
        ErrorCode.SESSION_NOT_FOUND: 404,
        ErrorCode.GAME_OVER: 409,
        ErrorCode.INTERNAL_ERROR: 500,
    }

    def make_error_response(error: ErrorResponse) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_codes.get(error.error_code, 400),
            content=error.model_dump(mode="json"),
        )

    def respond(response):
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    error_responses = {
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    }

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games",
        response_model=GameStateResponse,
        responses={400: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Start a new game",
    )
    async def create_game(request: CreateGameRequest) -> Union[GameStateResponse, JSONResponse]:
        """
        Deal a new game.

        Limited solo modes without a `limit` use 300 seconds,
        50 cards or a 1000 point target.
        """
        return respond(api_service.create_game(request))

    @app.get(
        "/api/v1/games",
        response_model=SessionListResponse,
        tags=["Games"],
        summary="List games in progress",
    )
    async def list_games() -> SessionListResponse:
        games = api_service.list_games()
        return SessionListResponse(sessions=games, count=len(games))

    @app.get(
        "/api/v1/games/{session_id}",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Get game state",
    )
    async def get_game(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        return respond(api_service.get_game(session_id))

    @app.delete(
        "/api/v1/games/{session_id}",
        response_model=EndSessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="End a game",
    )
    async def end_game(session_id: str) -> Union[EndSessionResponse, JSONResponse]:
        """End the game with reason `manual_end` (no-op if it already ended)."""
        session = api_service.end_game(session_id)
        if isinstance(session, ErrorResponse):
            return make_error_response(session)
        reason = session.engine.end_reason
        return EndSessionResponse(
            success=True,
            session_id=session_id,
            end_reason=reason.value if reason else None,
        )

    # =========================================================================
    # Command Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games/{session_id}/draw",
        response_model=ActionResponse,
        responses=error_responses,
        tags=["Commands"],
        summary="Draw a card",
    )
    async def draw(session_id: str) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.draw(session_id))

    @app.post(
        "/api/v1/games/{session_id}/play/number",
        response_model=ActionResponse,
        responses=error_responses,
        tags=["Commands"],
        summary="Seed the Grind Deck with a number-like card",
    )
    async def play_number(session_id: str, request: PlayCardRequest) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.play_number(session_id, request))

    @app.post(
        "/api/v1/games/{session_id}/play/arithmetic",
        response_model=ActionResponse,
        responses=error_responses,
        tags=["Commands"],
        summary="Play an arithmetic card with a number-like card",
    )
    async def play_arithmetic(session_id: str, request: PlayPairRequest) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.play_arithmetic(session_id, request))

    @app.post(
        "/api/v1/games/{session_id}/play/function",
        response_model=ActionResponse,
        responses=error_responses,
        tags=["Commands"],
        summary="Play a function card",
    )
    async def play_function(session_id: str, request: PlayFunctionRequest) -> Union[ActionResponse, JSONResponse]:
        """Binary functions (x^y, pyth, modulus) need `second_card_id`."""
        return respond(api_service.play_function(session_id, request))

    @app.post(
        "/api/v1/games/{session_id}/play/constant",
        response_model=ActionResponse,
        responses=error_responses,
        tags=["Commands"],
        summary="Seed the Grind Deck with a constant card",
    )
    async def play_constant(session_id: str, request: PlayCardRequest) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.play_constant(session_id, request))

    @app.post(
        "/api/v1/games/{session_id}/play/variable",
        response_model=ActionResponse,
        responses=error_responses,
        tags=["Commands"],
        summary="Open the Algebra Deck",
    )
    async def play_variable(session_id: str, request: PlayCardRequest) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.play_variable(session_id, request))

    @app.post(
        "/api/v1/games/{session_id}/target",
        response_model=ActionResponse,
        responses=error_responses,
        tags=["Commands"],
        summary="Choose the target deck",
    )
    async def set_target(session_id: str, request: SetTargetRequest) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.set_target(session_id, request))

    @app.post(
        "/api/v1/games/{session_id}/algebra/apply",
        response_model=ActionResponse,
        responses=error_responses,
        tags=["Commands"],
        summary="Apply the algebra function to the Grind Deck value",
    )
    async def apply_algebra(session_id: str) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.apply_algebra(session_id))

    @app.post(
        "/api/v1/games/{session_id}/tick",
        response_model=TickResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Commands"],
        summary="Run the solo end check against the clock",
    )
    async def tick(session_id: str) -> Union[TickResponse, JSONResponse]:
        return respond(api_service.tick(session_id))

    # =========================================================================
    # Query Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/games/{session_id}/moves",
        response_model=MovesResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Queries"],
        summary="Move log",
    )
    async def get_moves(session_id: str) -> Union[MovesResponse, JSONResponse]:
        return respond(api_service.get_moves(session_id))

    @app.get(
        "/api/v1/games/{session_id}/legal-actions",
        response_model=LegalActionsResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Queries"],
        summary="Commands the engine would accept now",
    )
    async def get_legal_actions(session_id: str) -> Union[LegalActionsResponse, JSONResponse]:
        return respond(api_service.get_legal_actions(session_id))

    @app.get(
        "/api/v1/history",
        response_model=HistoryResponse,
        tags=["History"],
        summary="Completed games, newest first",
    )
    async def get_history(
        limit: Annotated[Optional[int], Query(ge=1, le=100, description="Max entries")] = None,
    ) -> HistoryResponse:
        return api_service.get_history(limit)

    @app.get(
        "/api/v1/history/stats",
        response_model=HistoryStatsResponse,
        tags=["History"],
        summary="History totals",
    )
    async def get_history_stats() -> HistoryStatsResponse:
        return api_service.get_history_stats()

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/api/v1/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="grinddeck",
            version=API_VERSION,
            environment=GRINDDECK_ENV,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Grind Deck API",
            "version": API_VERSION,
            "docs": "/api/docs",
            "health": "/api/v1/health",
        }

    return app
