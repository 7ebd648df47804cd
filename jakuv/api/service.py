"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine intents
2. Manages sessions and their game loops
3. Redacts state for the human seat before it leaves the engine

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import os

from .schemas import (
    # Requests
    CreateSessionRequest,
    IntentRequest,
    # Responses
    EndSessionResponse,
    GameStateResponse,
    IntentResponse,
    LegalActionsResponse,
    SessionResponse,
    # Shared
    CardInfo,
    OptionInfo,
    PlayerInfo,
    SwapSlotInfo,
    # Enums
    AIProvider,
    SessionStatus,
)
from ..bots import create_policy
from ..engine_core.action import Action, ActionPayload, ActionType
from ..engine_core.action_generator import ActionGenerator
from ..engine_core.cards import Card
from ..engine_core.rules import create_rules
from ..engine_core.scoring import player_score
from ..engine_core.state import GamePhase
from ..engine_core.view import StateView, redacted_view
from ..session import SessionManager, Session, GameLoop, TurnResult

logger = logging.getLogger(__name__)

DEFAULT_AI_PROVIDER = os.getenv("JAKUV_AI_PROVIDER", AIProvider.HEURISTIC.value)

# Narration entries returned with each state
LOG_TAIL = 20


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        session = service.create_session(CreateSessionRequest())
        response = service.submit_intent(
            session.session_id, IntentRequest(action_type="draw")
        )
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    # Game loops per session
    _game_loops: dict[str, GameLoop] = field(default_factory=dict)

    def create_session(self, request: CreateSessionRequest) -> SessionResponse:
        """
        Create a new game session.

        Raises ValueError for unknown providers or invalid rule overrides.
        """
        rules = create_rules(**(request.rules or {}))
        provider = request.ai_provider.value if request.ai_provider else DEFAULT_AI_PROVIDER
        policy = create_policy(provider, seed=request.random_seed, rules=rules)

        session = self.session_manager.create_session(
            player_name=request.player_name,
            ai_name=request.ai_name,
            ai_policy=policy,
            rules=rules,
            seed=request.random_seed,
            start=request.start,
        )
        self._game_loops[session.session_id] = GameLoop(session)
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse:
        """Get session status. Raises SessionNotFound."""
        return self._session_to_response(self.session_manager.get_session(session_id))

    def get_game_state(self, session_id: str) -> GameStateResponse:
        """Get the current state, redacted for the human seat."""
        return self._build_game_state(self.session_manager.get_session(session_id))

    def submit_intent(self, session_id: str, request: IntentRequest) -> IntentResponse:
        """
        Apply a human intent and drive the AI seat afterwards.

        Raises ValueError when action_type is unknown.
        """
        session = self.session_manager.get_session(session_id)
        action = self._request_to_action(session, request)
        result = self._game_loops[session_id].submit(action)
        return self._turn_result_to_response(session, result)

    def start_new_game(self, session_id: str) -> IntentResponse:
        """Deal a fresh game in an existing session."""
        return self.submit_intent(session_id, IntentRequest(action_type=ActionType.START_NEW_GAME.value))

    def reset(self, session_id: str) -> IntentResponse:
        """Return the session to the start screen."""
        return self.submit_intent(session_id, IntentRequest(action_type=ActionType.RESET_GAME.value))

    def legal_actions(self, session_id: str) -> LegalActionsResponse:
        """List the intents the human seat may submit right now."""
        session = self.session_manager.get_session(session_id)
        actions = []
        if session.is_human_turn():
            generator = ActionGenerator(rules=session.rules)
            actions = [self._action_to_request(a) for a in generator.generate(session.game_state)]
        return LegalActionsResponse(session_id=session_id, actions=actions, count=len(actions))

    def end_session(self, session_id: str) -> EndSessionResponse:
        """End a game session."""
        self.session_manager.end_session(session_id)
        loop = self._game_loops.pop(session_id, None)
        if loop is not None:
            loop.close()
        return EndSessionResponse(success=True, session_id=session_id)

    def list_sessions(self) -> list[str]:
        """List active session IDs."""
        return self.session_manager.list_active_sessions()

    # =========================================================================
    # Conversion helpers
    # =========================================================================

    def _request_to_action(self, session: Session, request: IntentRequest) -> Action:
        try:
            action_type = ActionType(request.action_type)
        except ValueError:
            raise ValueError(f"Unknown action type: {request.action_type}")
        return Action(
            action_type=action_type,
            payload=ActionPayload(
                player_id=request.player_id or session.human_player_id,
                card_id=request.card_id,
                target_card_id=request.target_card_id,
                target_player_id=request.target_player_id,
                row=request.row,
                slot_index=request.slot_index,
                choice_value=request.choice_value,
                card_ids=request.card_ids,
            ),
        )

    def _action_to_request(self, action: Action) -> IntentRequest:
        payload = action.payload
        return IntentRequest(
            action_type=action.action_type.value,
            player_id=payload.player_id,
            card_id=payload.card_id,
            target_card_id=payload.target_card_id,
            target_player_id=payload.target_player_id,
            row=payload.row,
            slot_index=payload.slot_index,
            choice_value=payload.choice_value,
            card_ids=payload.card_ids,
        )

    def _turn_result_to_response(self, session: Session, result: TurnResult) -> IntentResponse:
        return IntentResponse(
            session_id=session.session_id,
            success=result.success,
            error=result.errors[0] if result.errors else None,
            error_code=result.error_code,
            changes=result.changes,
            ai_actions=result.ai_actions,
            fallbacks=result.fallbacks,
            game_state=self._build_game_state(session),
        )

    def _status(self, session: Session) -> SessionStatus:
        state = session.game_state
        if state.is_game_over:
            return SessionStatus.GAME_OVER
        if state.phase == GamePhase.START_SCREEN:
            return SessionStatus.CREATED
        if session.is_human_turn():
            return SessionStatus.YOUR_TURN
        return SessionStatus.OPPONENT_TURN

    def _human_view(self, session: Session) -> StateView:
        seat = session.game_state.index_of(session.human_player_id)
        return redacted_view(session.game_state, seat if seat is not None else 0)

    def _session_to_response(self, session: Session) -> SessionResponse:
        """Convert Session to SessionResponse."""
        view = self._human_view(session)
        state = session.game_state
        bot = next(iter(session.bots.values()), None)
        return SessionResponse(
            session_id=session.session_id,
            status=self._status(session),
            ai_policy=bot.get_name() if bot else "none",
            players=self._players(view),
            current_player_id=state.current_player.player_id,
            turn_number=state.turn,
            created_at=session.created_at,
        )

    def _build_game_state(self, session: Session) -> GameStateResponse:
        view = self._human_view(session)
        state = view.state
        human_to_act = session.is_human_turn()
        winner_id = state.players[state.winner].player_id if state.winner is not None else None
        return GameStateResponse(
            session_id=session.session_id,
            status=self._status(session),
            phase=state.phase.value,
            action_state=state.action_state.value,
            turn_number=state.turn,
            current_player_id=state.current_player.player_id,
            players=self._players(view),
            deck_size=view.deck_size,
            discard_pile=[_card_info(c) for c in state.discard_pile],
            swap_bar=[
                SwapSlotInfo(
                    slot_index=i,
                    occupied=card is not None or i in view.hidden_swap_slots,
                    face_up=bool(card and card.is_face_up),
                    card=_card_info(card) if card is not None and card.is_face_up else None,
                )
                for i, card in enumerate(state.swap_bar)
            ],
            card_choices=[_card_info(c) for c in state.card_choices] if human_to_act else [],
            option_choices=[OptionInfo(label=o.label, value=o.value) for o in state.option_choices],
            pending_action=state.action_context.action_type.value if state.action_context else None,
            counter_stack=[_card_info(c) for c in state.counter_stack],
            winner_id=winner_id,
            win_reason=state.win_reason,
            log=[entry.message for entry in state.log[-LOG_TAIL:]],
        )

    def _players(self, view: StateView) -> list[PlayerInfo]:
        state = view.state
        players = []
        for i, player in enumerate(state.players):
            is_me = i == view.seat
            players.append(
                PlayerInfo(
                    player_id=player.player_id,
                    name=player.name,
                    is_ai=player.is_ai,
                    is_current_turn=i == state.current_player_index,
                    score=player_score(player),
                    hand=[_card_info(c) for c in player.hand],
                    hand_size=len(player.hand) if is_me else view.opponent_hand_size,
                    hand_revealed=is_me or view.opponent_hand_revealed,
                    score_row=[_card_info(c) for c in player.score_row],
                    royalty_row=[_card_info(c) for c in player.royalty_row],
                    is_immune=player.is_immune,
                )
            )
        return players


def _card_info(card: Card) -> CardInfo:
    return CardInfo(
        card_id=card.id,
        rank=card.rank.value,
        suit=card.suit.value,
        color=card.color.value,
        label=card.label,
        face_up=card.is_face_up,
        ace_value=card.ace_value,
        protected=card.protected,
    )
