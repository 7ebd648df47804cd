"""
Tests for the action resolution (counter) protocol.
"""

import pytest

from ..engine_core import errors
from ..engine_core.action import Action
from ..engine_core.cards import Rank
from ..engine_core.contexts import (
    BaseEffect,
    GameActionType,
    PlayToRow,
    Row,
    RummagerEffect,
    Scuttle,
)
from ..engine_core.counter import legal_counter_cards, legal_counter_ranks
from ..engine_core.state import GamePhase, ActionState

P1, P2 = "player1", "player2"

# Alternating counters after seat 0 proposes QH: seat 1 opens with a King,
# then only Aces can answer.
COUNTER_SEQUENCE = [(P2, "KS"), (P1, "AH"), (P2, "AS"), (P1, "AD")]


def queen_state(build):
    return build(hands={0: ["QH", "AH", "AD", "2C"], 1: ["KS", "AS", "AC"]})


class TestCounterRanks:
    """Tests for which ranks may counter."""

    def test_opening_counters(self):
        """Each counterable action has its opening counter ranks."""
        assert legal_counter_ranks(PlayToRow(0, "QH", Row.ROYALTY, True), 0) == {Rank.KING}
        assert legal_counter_ranks(Scuttle(0, "9H", "7S", 1), 0) == {Rank.NINE}
        assert legal_counter_ranks(BaseEffect(0, Rank.SEVEN, "7H"), 0) == {Rank.ACE}
        assert legal_counter_ranks(RummagerEffect(0), 0) == {Rank.ACE}

    def test_only_aces_answer_a_counter(self):
        """Once the stack is non-empty only an Ace may be played."""
        action = PlayToRow(0, "QH", Row.ROYALTY, True)
        assert legal_counter_ranks(action, 1) == {Rank.ACE}
        assert legal_counter_ranks(action, 3) == {Rank.ACE}

    def test_plain_play_is_uncounterable(self):
        """Plain row plays and the Farmer cannot be countered."""
        assert not PlayToRow(0, "7H", Row.SCORE, False).counterable
        assert not BaseEffect(0, Rank.SIX, "6H").counterable


class TestProposal:
    """Tests for proposing actions."""

    def test_royal_play_opens_counter_window(self, build, apply_ok):
        """A royal play waits for the opponent's response."""
        state = apply_ok(queen_state(build), Action.play_to_row(P1, "QH", "royalty_row"))
        assert state.phase == GamePhase.COUNTER
        assert state.action_state == ActionState.AWAITING_COUNTER
        assert state.current_player_index == 1
        assert state.action_context.action_type == GameActionType.ROYAL_PLAY
        assert [c.id for c in legal_counter_cards(state)] == ["KS"]

    def test_plain_play_resolves_immediately(self, build, apply_ok):
        """A number card to the score row resolves at once and ends the turn."""
        state = apply_ok(build(hands={0: ["7H"]}), Action.play_to_row(P1, "7H", "score_row"))
        assert state.phase == GamePhase.PLAYER_TURN
        assert [c.id for c in state.players[0].score_row] == ["7H"]
        assert state.current_player_index == 1
        assert state.action_context is None

    def test_only_counter_actions_while_pending(self, build, apply_ok, reducer):
        """Other intents are refused while a counter window is open."""
        state = apply_ok(queen_state(build), Action.play_to_row(P1, "QH", "royalty_row"))
        result = reducer.apply(state, Action.draw(P2))
        assert not result.success
        assert result.error_code == errors.ACTION_PENDING

    def test_wrong_counter_rank_rejected(self, build, apply_ok, reducer):
        """An Ace cannot open a counter against a royal play."""
        state = apply_ok(queen_state(build), Action.play_to_row(P1, "QH", "royalty_row"))
        result = reducer.apply(state, Action.play_counter(P2, "AS"))
        assert not result.success
        assert result.error_code == errors.INVALID_CHOICE


class TestResolutionParity:
    """An action survives iff an even number of counters was played."""

    @pytest.mark.parametrize("n_counters", [0, 1, 2, 3, 4])
    def test_parity(self, build, apply_ok, n_counters):
        """Proposal, N counters and the opposite seat's closing pass."""
        state = apply_ok(queen_state(build), Action.play_to_row(P1, "QH", "royalty_row"))
        for player_id, card_id in COUNTER_SEQUENCE[:n_counters]:
            state = apply_ok(state, Action.play_counter(player_id, card_id))
        assert len(state.counter_stack) == n_counters

        if state.current_player_index == 0:
            # The proposer's pass hands the decision back
            state = apply_ok(state, Action.pass_counter(P1))
            assert state.phase == GamePhase.COUNTER
        state = apply_ok(state, Action.pass_counter(P2))

        succeeded = n_counters % 2 == 0
        royalty = [c.id for c in state.players[0].royalty_row]
        discard = {c.id for c in state.discard_pile}
        assert royalty == (["QH"] if succeeded else [])
        assert ("QH" in discard) is not succeeded
        assert {cid for _, cid in COUNTER_SEQUENCE[:n_counters]} <= discard
        assert state.counter_stack == []
        assert state.action_context is None
        assert state.phase == GamePhase.PLAYER_TURN
        assert state.current_player_index == 1
        assert state.turn == 3

    def test_scenario_royal_play_countered_by_king(self, build, apply_ok):
        """A King counter with no Ace reply denies the play and ends the turn."""
        state = build(hands={0: ["QH", "2C"], 1: ["KS"]})
        state = apply_ok(state, Action.play_to_row(P1, "QH", "royalty_row"))
        state = apply_ok(state, Action.play_counter(P2, "KS"))
        state = apply_ok(state, Action.pass_counter(P1))
        state = apply_ok(state, Action.pass_counter(P2))

        assert state.players[0].royalty_row == []
        assert state.players[0].score_row == []
        assert [c.id for c in state.players[0].hand] == ["2C"]
        assert {"QH", "KS"} <= {c.id for c in state.discard_pile}
        assert state.current_player_index == 1


class TestRummager:
    """Tests for the 5-to-score-row follow-up."""

    def test_five_proposes_rummager(self, build, apply_ok):
        """A 5 scored onto a non-empty discard pile proposes a Rummager."""
        state = build(hands={0: ["5H"]}, discard=["2C", "3C"])
        state = apply_ok(state, Action.play_to_row(P1, "5H", "score_row"))
        assert state.phase == GamePhase.COUNTER
        assert isinstance(state.action_context, RummagerEffect)
        assert state.current_player_index == 1

    def test_rummager_takes_one_returns_other(self, build, apply_ok):
        """The chosen discard goes to hand and the other back on the pile."""
        state = build(hands={0: ["5H"]}, discard=["9C", "2C", "3C"])
        state = apply_ok(state, Action.play_to_row(P1, "5H", "score_row"))
        state = apply_ok(state, Action.pass_counter(P2))

        assert state.action_state == ActionState.AWAITING_RUMMAGER_CHOICE
        assert [c.id for c in state.card_choices] == ["3C", "2C"]

        state = apply_ok(state, Action.choose_card(P1, "2C"))
        assert [c.id for c in state.players[0].hand] == ["2C"]
        assert [c.id for c in state.discard_pile] == ["9C", "3C"]
        assert state.current_player_index == 1

    def test_five_on_empty_discard_ends_turn(self, build, apply_ok):
        """Without discards the 5 is a plain play."""
        state = apply_ok(build(hands={0: ["5H"]}), Action.play_to_row(P1, "5H", "score_row"))
        assert state.phase == GamePhase.PLAYER_TURN
        assert state.current_player_index == 1
