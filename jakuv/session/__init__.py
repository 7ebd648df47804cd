"""
Session module - Session ownership and the AI driving loop.

Sessions are in-memory only; nothing is persisted.
"""

from .manager import (
    Session,
    SessionManager,
    SessionNotFound,
    SessionState,
    HUMAN_PLAYER_ID,
    AI_PLAYER_ID,
)
from .game_loop import GameLoop, LoopState, TurnResult

__all__ = [
    "Session",
    "SessionManager",
    "SessionNotFound",
    "SessionState",
    "HUMAN_PLAYER_ID",
    "AI_PLAYER_ID",
    "GameLoop",
    "LoopState",
    "TurnResult",
]
