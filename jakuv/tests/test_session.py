"""
Tests for session lifecycle.
"""

import pytest

from ..bots import FirstLegalPolicy, HeuristicPolicy
from ..engine_core.action import Action
from ..engine_core.rules import RuleConfig
from ..engine_core.state import GamePhase
from ..session import SessionManager, SessionNotFound, SessionState, AI_PLAYER_ID


class TestSessionManager:
    """Tests for SessionManager."""

    @pytest.fixture
    def manager(self):
        return SessionManager()

    def test_create_deals_game(self, manager):
        """A new session is dealt and waits for the human's opening turn."""
        session = manager.create_session(player_name="Ada", seed=1)
        assert session.state == SessionState.ACTIVE
        assert session.game_state.phase == GamePhase.PLAYER1_START
        assert session.game_state.players[0].name == "Ada"
        assert session.is_human_turn()

    def test_create_without_start(self, manager):
        session = manager.create_session(start=False)
        assert session.state == SessionState.CREATED
        assert session.game_state.phase == GamePhase.START_SCREEN
        assert not session.is_human_turn()

    def test_default_policy_is_heuristic(self, manager):
        session = manager.create_session()
        assert isinstance(session.bots[AI_PLAYER_ID], HeuristicPolicy)

    def test_custom_policy_and_rules(self, manager):
        rules = RuleConfig(target_score=15)
        session = manager.create_session(ai_policy=FirstLegalPolicy(), rules=rules)
        assert session.rules.target_score == 15
        assert isinstance(session.bots[AI_PLAYER_ID], FirstLegalPolicy)

    def test_seeded_sessions_deal_alike(self, manager):
        a = manager.create_session(seed=42)
        b = manager.create_session(seed=42)
        assert [c.id for c in a.game_state.deck] == [c.id for c in b.game_state.deck]

    def test_get_missing_session(self, manager):
        with pytest.raises(SessionNotFound):
            manager.get_session("nope")

    def test_rejected_intent_keeps_state(self, manager):
        session = manager.create_session(seed=1)
        before = session.game_state
        result = session.apply(Action.draw(AI_PLAYER_ID))
        assert not result.success
        assert session.game_state is before

    def test_reset_and_new_game(self, manager):
        session = manager.create_session(seed=1)
        manager.reset(session.session_id)
        assert session.state == SessionState.CREATED
        assert session.game_state.phase == GamePhase.START_SCREEN

        manager.start_new_game(session.session_id)
        assert session.state == SessionState.ACTIVE

    def test_end_session(self, manager):
        session = manager.create_session()
        manager.end_session(session.session_id)
        assert session.state == SessionState.ENDED
        assert session.session_id not in manager.list_active_sessions()
        with pytest.raises(SessionNotFound):
            manager.end_session(session.session_id)

    def test_cleanup_removes_only_finished(self, manager):
        finished = manager.create_session()
        finished.state = SessionState.GAME_OVER
        finished.created_at -= 7200
        running = manager.create_session()
        running.created_at -= 7200

        assert manager.cleanup_stale_sessions(max_age_seconds=3600) == 1
        assert manager.list_active_sessions() == [running.session_id]
