"""
API Module - HTTP interface to the engine.

A table client:
1. Creates a game session
2. Reads the redacted game state and the legal intents
3. Submits intents; the AI seat answers within the same request

All state is session-scoped. No persistent user accounts required.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    IntentRequest,
    # Responses
    SessionResponse,
    GameStateResponse,
    IntentResponse,
    LegalActionsResponse,
    ErrorResponse,
    # Shared
    PlayerInfo,
    CardInfo,
    # Enums
    AIProvider,
    ErrorCode,
    SessionStatus,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "IntentRequest",
    # Responses
    "SessionResponse",
    "GameStateResponse",
    "IntentResponse",
    "LegalActionsResponse",
    "ErrorResponse",
    # Shared
    "PlayerInfo",
    "CardInfo",
    # Enums
    "AIProvider",
    "ErrorCode",
    "SessionStatus",
    # Service
    "APIService",
    "create_app",
]
