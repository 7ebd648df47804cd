"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. A client creates a session (in-memory only) with a human seat and an AI seat
2. start_new_game deals a fresh game; reset returns to the start screen
3. During the game:
   - The human submits intents, which the reducer applies atomically
   - The GameLoop drives the AI seat until the human must act again
4. The session is ended explicitly or cleaned up when stale

PERSISTENCE RULES:
- NO database
- Game state is session-scoped and replaced wholesale on new game/reset
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import logging
import random
import time
import uuid

from ..bots import BotPolicy, HeuristicPolicy
from ..engine_core.action import Action, ActionResult
from ..engine_core.errors import JakuvError
from ..engine_core.reducer import Reducer
from ..engine_core.rules import RuleConfig
from ..engine_core.state import GameState, GamePhase

logger = logging.getLogger(__name__)


HUMAN_PLAYER_ID = "player1"
AI_PLAYER_ID = "player2"


class SessionNotFound(JakuvError):
    """No session exists with the requested id."""

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class SessionState(Enum):
    """State of a game session."""
    CREATED = "created"  # At the start screen
    ACTIVE = "active"  # Game in progress
    GAME_OVER = "game_over"  # Winner declared
    ENDED = "ended"  # Removed by the client


@dataclass
class Session:
    """
    An ephemeral game session.

    Contains:
    - Current canonical game state
    - The reducer (rules + seeded random source)
    - Policies for AI-controlled seats, keyed by player id
    - Session metadata
    """
    session_id: str
    game_state: GameState
    reducer: Reducer
    created_at: float

    state: SessionState = SessionState.CREATED
    bots: dict[str, BotPolicy] = field(default_factory=dict)
    human_player_id: str | None = HUMAN_PLAYER_ID

    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def rules(self) -> RuleConfig:
        return self.reducer.rules

    def is_active(self) -> bool:
        """Check if session is still active."""
        return self.state in {SessionState.CREATED, SessionState.ACTIVE}

    def is_human_turn(self) -> bool:
        """Check if the human seat must act."""
        if self.game_state.is_game_over or self.game_state.phase == GamePhase.START_SCREEN:
            return False
        return self.game_state.current_player.player_id == self.human_player_id

    def apply(self, action: Action) -> ActionResult:
        """Apply an intent and adopt the new state on success."""
        result = self.reducer.apply(self.game_state, action)
        if result.success and result.new_state is not None:
            self.game_state = result.new_state
            self._sync_state()
        return result

    def _sync_state(self) -> None:
        if self.game_state.is_game_over:
            self.state = SessionState.GAME_OVER
        elif self.game_state.phase == GamePhase.START_SCREEN:
            self.state = SessionState.CREATED
        else:
            self.state = SessionState.ACTIVE


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions with their reducer and AI policies
    - Track active sessions
    - Start new games and reset sessions
    - Clean up ended sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(self, rules: RuleConfig | None = None):
        self.rules = rules or RuleConfig()
        self._sessions: dict[str, Session] = {}

    def create_session(
        self,
        player_name: str = "Player 1",
        ai_name: str = "AI Opponent",
        ai_policy: BotPolicy | None = None,
        rules: RuleConfig | None = None,
        seed: int | None = None,
        start: bool = True,
    ) -> Session:
        """
        Create a new game session.

        Args:
            player_name: Display name of the human seat
            ai_name: Display name of the AI seat
            ai_policy: Policy for the AI seat (HeuristicPolicy by default)
            rules: Rule overrides for this session
            seed: Seed for shuffles and random tie-breaks
            start: Deal a game immediately instead of waiting at the start screen

        Returns:
            New Session
        """
        session_id = str(uuid.uuid4())
        rules = rules or self.rules
        reducer = Reducer(rules=rules, rng=random.Random(seed))
        session = Session(
            session_id=session_id,
            game_state=GameState.create(session_id[:12], player_name, ai_name),
            reducer=reducer,
            created_at=time.time(),
            bots={AI_PLAYER_ID: ai_policy or HeuristicPolicy(rules=rules)},
            metadata={"seed": seed},
        )
        self._sessions[session_id] = session
        logger.info("Created session %s (ai=%s)", session_id, session.bots[AI_PLAYER_ID].get_name())

        if start:
            self.start_new_game(session_id)
        return session

    def get_session(self, session_id: str) -> Session:
        """Get a session by ID."""
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    def start_new_game(self, session_id: str) -> ActionResult:
        """Replace the session's state with a freshly dealt game."""
        session = self.get_session(session_id)
        return session.apply(Action.start_new_game())

    def reset(self, session_id: str) -> ActionResult:
        """Replace the session's state with a fresh start-screen state."""
        session = self.get_session(session_id)
        return session.apply(Action.reset_game())

    def end_session(self, session_id: str) -> None:
        """End a session and remove it from memory."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFound(session_id)
        session.state = SessionState.ENDED
        logger.info("Ended session %s", session_id)

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        Remove finished sessions older than max_age.

        Returns the number of sessions removed.
        """
        now = time.time()
        stale = [
            sid for sid, session in self._sessions.items()
            if now - session.created_at > max_age_seconds and not session.is_active()
        ]
        for sid in stale:
            self.end_session(sid)
        return len(stale)
