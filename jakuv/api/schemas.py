"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a table client and the engine.
Every state the client receives is redacted for the human seat: the
AI hand (unless revealed), the deck order and face-down swap-bar cards
are never serialized.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has ended
- ILLEGAL_ACTION: The engine rejected the intent (engine code in details)
- VALIDATION_ERROR: The request could not be turned into an intent
- INTERNAL_ERROR: Unexpected failure
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    CREATED = "created"
    YOUR_TURN = "your_turn"
    OPPONENT_TURN = "opponent_turn"
    GAME_OVER = "game_over"


class AIProvider(str, Enum):
    """Decision adapters available for the AI seat."""
    HEURISTIC = "heuristic"
    RANDOM = "random"
    FIRST = "first"
    LLM = "llm"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    ILLEGAL_ACTION = "ILLEGAL_ACTION"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    """Card information for display."""
    card_id: str
    rank: str
    suit: str
    color: str
    label: str
    face_up: bool = True
    ace_value: Optional[int] = None
    protected: bool = False

    model_config = {"from_attributes": True}


class SwapSlotInfo(BaseModel):
    """One swap-bar slot; face-down cards keep their identity hidden."""
    slot_index: int
    occupied: bool
    face_up: bool = False
    card: Optional[CardInfo] = None


class OptionInfo(BaseModel):
    """An option offered during a forced sub-choice."""
    label: str
    value: str


class PlayerInfo(BaseModel):
    """Player information for display."""
    player_id: str
    name: str
    is_ai: bool
    is_current_turn: bool = False
    score: int = 0
    hand: list[CardInfo] = Field(default_factory=list)
    hand_size: int = 0
    hand_revealed: bool = False
    score_row: list[CardInfo] = Field(default_factory=list)
    royalty_row: list[CardInfo] = Field(default_factory=list)
    is_immune: bool = False

    model_config = {"from_attributes": True}


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to create a new game session."""
    player_name: str = Field("Player 1", description="Display name for the human seat")
    ai_name: str = Field("AI Opponent", description="Display name for the AI seat")
    ai_provider: Optional[AIProvider] = Field(
        None, description="Decision adapter for the AI seat (defaults to JAKUV_AI_PROVIDER)"
    )
    random_seed: Optional[int] = Field(None, description="Seed for reproducible games")
    start: bool = Field(True, description="Deal a game immediately")
    rules: Optional[dict[str, Any]] = Field(None, description="Rule overrides, e.g. target_score")


class IntentRequest(BaseModel):
    """An intent for the engine; fields depend on action_type."""
    action_type: str = Field(..., description="e.g. draw, play_to_row, scuttle, choose_card")
    player_id: Optional[str] = Field(None, description="Defaults to the human seat")
    card_id: Optional[str] = None
    target_card_id: Optional[str] = None
    target_player_id: Optional[str] = None
    row: Optional[str] = Field(None, description="score_row or royalty_row")
    slot_index: Optional[int] = None
    choice_value: Optional[str] = None
    card_ids: Optional[list[str]] = None


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
    """Game state redacted for the human seat."""
    session_id: str
    status: SessionStatus
    phase: str
    action_state: str
    turn_number: int
    current_player_id: Optional[str] = None
    players: list[PlayerInfo] = Field(default_factory=list)
    deck_size: int = 0
    discard_pile: list[CardInfo] = Field(default_factory=list)
    swap_bar: list[SwapSlotInfo] = Field(default_factory=list)
    card_choices: list[CardInfo] = Field(default_factory=list)
    option_choices: list[OptionInfo] = Field(default_factory=list)
    pending_action: Optional[str] = None
    counter_stack: list[CardInfo] = Field(default_factory=list)
    winner_id: Optional[str] = None
    win_reason: Optional[str] = None
    log: list[str] = Field(default_factory=list)
    api_version: str = "v1"


class SessionResponse(BaseModel):
    """Response containing session information."""
    session_id: str
    status: SessionStatus
    ai_policy: str
    players: list[PlayerInfo] = Field(default_factory=list)
    current_player_id: Optional[str] = None
    turn_number: int = 0
    created_at: float = 0.0
    api_version: str = "v1"


class IntentResponse(BaseModel):
    """Outcome of an intent plus the AI steps it triggered."""
    session_id: str
    success: bool
    error: Optional[str] = None
    error_code: Optional[str] = Field(None, description="Engine error code when rejected")
    changes: list[str] = Field(default_factory=list)
    ai_actions: list[str] = Field(default_factory=list)
    fallbacks: list[str] = Field(default_factory=list)
    game_state: Optional[GameStateResponse] = None
    api_version: str = "v1"


class LegalActionsResponse(BaseModel):
    """Intents the human seat may submit right now."""
    session_id: str
    actions: list[IntentRequest] = Field(default_factory=list)
    count: int = 0


class SessionListResponse(BaseModel):
    """Response listing active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
