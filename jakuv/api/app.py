"""
FastAPI Application - REST API for a Jakuv table client.

Endpoints:
    POST   /api/v1/sessions                     Create game session
    GET    /api/v1/sessions                     List active sessions
    GET    /api/v1/sessions/{id}                Get session status
    DELETE /api/v1/sessions/{id}                End session
    GET    /api/v1/sessions/{id}/state          Get game state (redacted)
    GET    /api/v1/sessions/{id}/legal-actions  Intents the human may submit
    POST   /api/v1/sessions/{id}/intents        Submit an intent
    POST   /api/v1/sessions/{id}/new-game       Deal a fresh game
    POST   /api/v1/sessions/{id}/reset          Back to the start screen

After every accepted intent the AI seat is driven until the human must
act again; its actions are listed in the response.

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Optional, Union
import logging
import os

from .. import __version__
from ..session import SessionNotFound

logger = logging.getLogger(__name__)

# Environment configuration
JAKUV_ENV = os.getenv("JAKUV_ENV", "development")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .service import APIService
    from .schemas import (
        # Request models
        CreateSessionRequest,
        IntentRequest,
        # Response models
        SessionResponse,
        GameStateResponse,
        IntentResponse,
        LegalActionsResponse,
        ErrorResponse,
        SessionListResponse,
        EndSessionResponse,
        HealthResponse,
        # Enums
        ErrorCode,
    )

    app = FastAPI(
        title="Jakuv Engine API",
        description="""
Two-player Jakuv card game against an AI opponent.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `ILLEGAL_ACTION` | The engine rejected the intent; state is unchanged |
| `VALIDATION_ERROR` | Malformed request |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        debug=JAKUV_ENV == "development",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService()

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def not_found(session_id: str) -> JSONResponse:
        return make_error_response(
            ErrorCode.SESSION_NOT_FOUND,
            f"Session {session_id} not found",
            status_code=404,
        )

    def intent_response(response: IntentResponse):
        if response.success:
            return response
        return make_error_response(
            ErrorCode.ILLEGAL_ACTION,
            response.error or "Illegal action",
            details={"engine_code": response.error_code},
        )

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        responses={400: {"model": ErrorResponse, "description": "Invalid rules or provider"}},
        tags=["Sessions"],
        summary="Create a new game session",
    )
    async def create_session(body: CreateSessionRequest) -> Union[SessionResponse, JSONResponse]:
        """
        Create a new game session.

        The game is dealt immediately unless `start=false`.
        """
        try:
            return api_service.create_session(body)
        except ValueError as e:
            return make_error_response(ErrorCode.VALIDATION_ERROR, str(e))

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        """List all active session IDs."""
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session status",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        """Get the current status of a game session."""
        try:
            return api_service.get_session(session_id)
        except SessionNotFound:
            return not_found(session_id)

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="End a game session",
    )
    async def end_session(session_id: str) -> Union[EndSessionResponse, JSONResponse]:
        """End a game session and release resources."""
        try:
            return api_service.end_session(session_id)
        except SessionNotFound:
            return not_found(session_id)

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Get the game state for the human seat",
    )
    async def get_game_state(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        """Current state; the AI hand and the deck order are redacted."""
        try:
            return api_service.get_game_state(session_id)
        except SessionNotFound:
            return not_found(session_id)

    @app.get(
        "/api/v1/sessions/{session_id}/legal-actions",
        response_model=LegalActionsResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="List legal intents for the human seat",
    )
    async def get_legal_actions(session_id: str) -> Union[LegalActionsResponse, JSONResponse]:
        """Empty unless the human seat must act."""
        try:
            return api_service.legal_actions(session_id)
        except SessionNotFound:
            return not_found(session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/intents",
        response_model=IntentResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Illegal or malformed intent"},
            404: {"model": ErrorResponse, "description": "Session not found"},
        },
        tags=["Game"],
        summary="Submit an intent",
    )
    async def submit_intent(session_id: str, body: IntentRequest) -> Union[IntentResponse, JSONResponse]:
        """
        Submit an intent for the human seat.

        **Request Body:**
        ```json
        {"action_type": "play_to_row", "card_id": "7H", "row": "score_row"}
        ```
        """
        try:
            response = api_service.submit_intent(session_id, body)
        except SessionNotFound:
            return not_found(session_id)
        except ValueError as e:
            return make_error_response(ErrorCode.VALIDATION_ERROR, str(e))
        return intent_response(response)

    @app.post(
        "/api/v1/sessions/{session_id}/new-game",
        response_model=IntentResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Deal a fresh game",
    )
    async def new_game(session_id: str) -> Union[IntentResponse, JSONResponse]:
        """Replace the session's state with a freshly dealt game."""
        try:
            return intent_response(api_service.start_new_game(session_id))
        except SessionNotFound:
            return not_found(session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/reset",
        response_model=IntentResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Return to the start screen",
    )
    async def reset_game(session_id: str) -> Union[IntentResponse, JSONResponse]:
        """Replace the session's state with a fresh start-screen state."""
        try:
            return intent_response(api_service.reset(session_id))
        except SessionNotFound:
            return not_found(session_id)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="jakuv-engine",
            version=__version__,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Jakuv Engine API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# For running directly: uvicorn jakuv.api.app:app
app = None
try:
    app = create_app()
except ImportError:
    # FastAPI not installed
    pass
