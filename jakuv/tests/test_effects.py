"""
Tests for scuttles, row-play triggers and base effects.
"""

from ..engine_core import errors
from ..engine_core.action import Action
from ..engine_core.action_generator import legal_actions
from ..engine_core.contexts import SecondQueenEdict
from ..engine_core.effect_resolver import (
    DRAW_BOTTOM,
    DRAW_DISCARD,
    DRAW_SWAP_PREFIX,
    DRAW_TOP,
    INTERROGATE_DISCARD,
    INTERROGATE_STEAL,
)
from ..engine_core.state import GamePhase, ActionState
from ..engine_core.view import redacted_view

P1, P2 = "player1", "player2"


def ids(cards):
    return [c.id for c in cards]


class TestScuttle:
    """Tests for scuttling."""

    def test_nine_scuttle_peek(self, build, apply_ok):
        """A 9 scuttle peeks two cards; one is drawn, the other returns on top."""
        state = build(hands={0: ["9H"]}, score_rows={1: ["7S"]}, deck_top=["2D", "3D"])
        deck_before = len(state.deck)

        state = apply_ok(state, Action.scuttle(P1, "9H", "7S", P2))
        state = apply_ok(state, Action.pass_counter(P2))

        assert state.action_state == ActionState.AWAITING_NINE_PEEK_CHOICE
        assert ids(state.card_choices) == ["3D", "2D"]
        assert {"9H", "7S"} <= set(ids(state.discard_pile))
        hand_at_peek = len(state.players[0].hand)

        state = apply_ok(state, Action.choose_card(P1, "3D"))

        assert len(state.players[0].hand) == hand_at_peek + 1
        assert len(state.deck) == deck_before - 1
        assert state.deck[-1].id == "2D"
        assert state.deck[-1].is_face_up
        assert state.players[1].score_row == []
        assert state.current_player_index == 1

    def test_nine_peek_after_small_reshuffle(self, build, apply_ok):
        """A 9 scuttle that forces a two-card reshuffle still offers a card."""
        state = build(hands={0: ["9H"]}, score_rows={1: ["5C"]}, swap_bar=[None, None, None])
        state.deck = []

        state = apply_ok(state, Action.scuttle(P1, "9H", "5C", P2))
        state = apply_ok(state, Action.pass_counter(P2))

        assert state.action_state == ActionState.AWAITING_NINE_PEEK_CHOICE
        assert len(state.card_choices) == 1
        assert len(legal_actions(state)) == 1
        peeked = state.card_choices[0].id

        state = apply_ok(state, Action.choose_card(P1, peeked))

        assert ids(state.players[0].hand) == [peeked]
        assert state.action_state == ActionState.IDLE
        assert state.current_player_index == 1

    def test_weaker_attacker_rejected(self, build, reducer):
        """A non-royal attacker below the target's value cannot scuttle."""
        state = build(hands={0: ["5H"]}, score_rows={1: ["7S"]})
        result = reducer.apply(state, Action.scuttle(P1, "5H", "7S", P2))
        assert not result.success
        assert result.error_code == errors.INSUFFICIENT_VALUE

    def test_royal_attacker_beats_any_value(self, build, apply_ok):
        """A Jack may scuttle a 10."""
        state = apply_ok(
            build(hands={0: ["JH"]}, score_rows={1: ["10S"]}),
            Action.scuttle(P1, "JH", "10S", P2),
        )
        assert state.phase == GamePhase.COUNTER

    def test_ace_only_scuttled_by_ten(self, build, reducer):
        """Aces are immune to anything but a 10."""
        state = build(hands={0: ["9H", "10H"]}, score_rows={1: ["AS"]})
        result = reducer.apply(state, Action.scuttle(P1, "9H", "AS", P2))
        assert result.error_code == errors.TARGET_PROTECTED
        assert reducer.apply(state, Action.scuttle(P1, "10H", "AS", P2)).success

    def test_ten_bypasses_queen_protection(self, build, reducer):
        """A Queen in royalty shields the score row from all but a 10."""
        state = build(
            hands={0: ["KH", "10H"]},
            score_rows={1: ["5S"]},
            royalty_rows={1: ["QS"]},
        )
        result = reducer.apply(state, Action.scuttle(P1, "KH", "5S", P2))
        assert result.error_code == errors.TARGET_PROTECTED
        assert reducer.apply(state, Action.scuttle(P1, "10H", "5S", P2)).success

    def test_immune_owner_cannot_be_targeted(self, build, reducer):
        """An immune player's rows are never targets."""
        state = build(hands={0: ["10H"]}, score_rows={1: ["5S"]})
        state.players[1].is_immune = True
        result = reducer.apply(state, Action.scuttle(P1, "10H", "5S", P2))
        assert result.error_code == errors.TARGET_IMMUNE

    def test_eight_protection_absorbs_one_scuttle(self, build, apply_ok):
        """A protected 8 survives one scuttle; only the attacker is spent."""
        state = build(hands={0: ["9H"]}, score_rows={1: ["8S"]})
        state.players[1].score_row[0].protected = True

        state = apply_ok(state, Action.scuttle(P1, "9H", "8S", P2))
        state = apply_ok(state, Action.pass_counter(P2))

        eight = state.players[1].score_row[0]
        assert eight.id == "8S"
        assert not eight.protected
        assert ids(state.discard_pile) == ["9H"]
        assert state.action_state == ActionState.IDLE

    def test_ten_ignores_eight_protection(self, build, apply_ok):
        """A 10 removes a protected 8 outright."""
        state = build(hands={0: ["10H"]}, score_rows={1: ["8S"]})
        state.players[1].score_row[0].protected = True

        state = apply_ok(state, Action.scuttle(P1, "10H", "8S", P2))
        state = apply_ok(state, Action.pass_counter(P2))

        assert state.players[1].score_row == []
        assert set(ids(state.discard_pile)) == {"10H", "8S"}

    def test_countered_scuttle_spends_attacker(self, build, apply_ok):
        """A 9 counter denies the scuttle and both cards are discarded."""
        state = build(hands={0: ["10H"], 1: ["9S"]}, score_rows={1: ["5S"]})
        state = apply_ok(state, Action.scuttle(P1, "10H", "5S", P2))
        state = apply_ok(state, Action.play_counter(P2, "9S"))
        state = apply_ok(state, Action.pass_counter(P1))
        state = apply_ok(state, Action.pass_counter(P2))

        assert ids(state.players[1].score_row) == ["5S"]
        assert set(ids(state.discard_pile)) == {"10H", "9S"}


class TestRowTriggers:
    """Tests for effects triggered by playing to a row."""

    def test_eight_becomes_protected(self, build, apply_ok):
        """An 8 in the score row gains one-shot protection."""
        state = apply_ok(build(hands={0: ["8H"]}), Action.play_to_row(P1, "8H", "score_row"))
        assert state.players[0].score_row[0].protected

    def test_second_eight_reveals_opponent_hand(self, build, apply_ok, rules):
        """A second 8 reveals the opponent's hand for a few turns."""
        state = build(hands={0: ["8D"], 1: ["2S", "3S"]}, score_rows={0: ["8H"]})
        state = apply_ok(state, Action.play_to_row(P1, "8D", "score_row"))

        assert state.players[1].hand_revealed_until_turn == 2 + rules.hand_reveal_turns
        view = redacted_view(state, 0)
        assert view.opponent_hand_revealed
        assert ids(view.opponent.hand) == ["2S", "3S"]

    def test_eight_with_queen_draws_bonus(self, build, apply_ok):
        """Under Queen protection an 8 also draws a card."""
        state = build(hands={0: ["8H"]}, royalty_rows={0: ["QH"]}, deck_top=["4C"])
        state = apply_ok(state, Action.play_to_row(P1, "8H", "score_row"))
        assert ids(state.players[0].hand) == ["4C"]

    def test_second_queen_edict(self, build, apply_ok):
        """A second Queen proposes an edict: draw one, opponent discards one."""
        state = build(hands={0: ["QD"], 1: ["2S", "3S"]}, royalty_rows={0: ["QH"]})
        state = apply_ok(state, Action.play_to_row(P1, "QD", "royalty_row"))
        state = apply_ok(state, Action.pass_counter(P2))

        assert ids(state.players[0].royalty_row) == ["QH", "QD"]
        assert isinstance(state.action_context, SecondQueenEdict)
        assert state.phase == GamePhase.COUNTER

        state = apply_ok(state, Action.pass_counter(P2))
        assert len(state.players[0].hand) == 1
        assert len(state.players[1].hand) == 1
        assert state.current_player_index == 1

    def test_royal_marriage(self, build, apply_ok):
        """A same-color King and Queen are crowned together."""
        state = build(hands={0: ["KH", "QD", "2C"]})
        state = apply_ok(state, Action.royal_marriage(P1, "KH"))
        state = apply_ok(state, Action.pass_counter(P2))
        assert ids(state.players[0].royalty_row) == ["KH", "QD"]

    def test_marriage_needs_same_color(self, build, reducer):
        """A red King cannot marry a black Queen."""
        result = reducer.apply(build(hands={0: ["KH", "QS"]}), Action.royal_marriage(P1, "KH"))
        assert result.error_code == errors.INVALID_CHOICE


class TestBaseEffects:
    """Tests for abilities played from hand."""

    def test_lucky_draw_scores_chosen_card(self, build, apply_ok):
        """Lucky Draw scores one of two cards and hands over the other."""
        state = build(hands={0: ["7H"]}, deck_top=["2D", "5D"])
        state = apply_ok(state, Action.play_for_effect(P1, "7H"))
        state = apply_ok(state, Action.pass_counter(P2))

        assert state.action_state == ActionState.AWAITING_LUCKY_DRAW_CHOICE
        assert ids(state.card_choices) == ["5D", "2D"]

        state = apply_ok(state, Action.choose_card(P1, "5D"))
        assert ids(state.players[0].score_row) == ["5D"]
        assert ids(state.players[0].hand) == ["2D"]
        assert "7H" in ids(state.discard_pile)

    def test_lucky_draw_chains_once(self, build, apply_ok):
        """Choosing a 7 chains one more Lucky Draw, then scores normally."""
        state = build(hands={0: ["7H"]}, deck_top=["7C", "7S", "2D", "7D"])
        state = apply_ok(state, Action.play_for_effect(P1, "7H"))
        state = apply_ok(state, Action.pass_counter(P2))
        state = apply_ok(state, Action.choose_card(P1, "7D"))

        assert state.action_state == ActionState.AWAITING_LUCKY_DRAW_CHOICE
        assert ids(state.card_choices) == ["7S", "7C"]
        assert "7D" in ids(state.discard_pile)

        state = apply_ok(state, Action.choose_card(P1, "7S"))
        assert ids(state.players[0].score_row) == ["7S"]
        assert sorted(ids(state.players[0].hand)) == ["2D", "7C"]
        assert state.current_player_index == 1

    def test_farmer_is_uncounterable(self, build, apply_ok):
        """The Farmer resolves at once: keep two, return one on top."""
        state = build(hands={0: ["6H"]}, deck_top=["2D", "3D", "4D"])
        state = apply_ok(state, Action.play_for_effect(P1, "6H"))

        assert state.phase == GamePhase.PLAYER_TURN
        assert state.action_state == ActionState.AWAITING_FARMER_CHOICE
        assert ids(state.card_choices) == ["4D", "3D", "2D"]

        state = apply_ok(state, Action.choose_card(P1, "3D"))
        assert sorted(ids(state.players[0].hand)) == ["2D", "4D"]
        assert state.deck[-1].id == "3D"
        assert not state.deck[-1].is_face_up

    def test_soft_reset_single_discard_draws(self, build, apply_ok):
        """Discarding one card from a row draws a replacement."""
        state = build(hands={0: ["4H"]}, score_rows={1: ["9S", "5S"]}, deck_top=["2D"])
        state = apply_ok(state, Action.play_for_effect(P1, "4H"))
        state = apply_ok(state, Action.pass_counter(P2))
        assert state.action_state == ActionState.AWAITING_SOFT_RESET_TARGET_ROW

        state = apply_ok(state, Action.choose_target(P1, P2, "9S"))
        assert state.action_state == ActionState.AWAITING_SOFT_RESET_DISCARD_CHOICE

        state = apply_ok(state, Action.confirm_discard(P1, ["9S"]))
        assert ids(state.players[1].score_row) == ["5S"]
        assert ids(state.players[0].hand) == ["2D"]
        assert state.current_player_index == 1

    def test_soft_reset_two_discards_offers_sources(self, build, apply_ok):
        """Discarding two cards offers a choice of draw source."""
        state = build(hands={0: ["4H"]}, score_rows={1: ["9S", "5S"]})
        state = apply_ok(state, Action.play_for_effect(P1, "4H"))
        state = apply_ok(state, Action.pass_counter(P2))
        state = apply_ok(state, Action.choose_target(P1, P2, "5S"))
        state = apply_ok(state, Action.confirm_discard(P1, ["9S", "5S"]))

        assert state.action_state == ActionState.AWAITING_SOFT_RESET_DRAW_CHOICE
        values = [o.value for o in state.option_choices]
        assert DRAW_TOP in values
        assert DRAW_DISCARD in values

        state = apply_ok(state, Action.choose_option(P1, DRAW_DISCARD))
        assert ids(state.players[0].hand) == ["4H"]
        assert set(ids(state.discard_pile)) == {"9S", "5S"}

    def _two_card_soft_reset(self, build, apply_ok, **kwargs):
        state = build(hands={0: ["4H"]}, score_rows={1: ["9S", "5S"]}, **kwargs)
        state = apply_ok(state, Action.play_for_effect(P1, "4H"))
        state = apply_ok(state, Action.pass_counter(P2))
        state = apply_ok(state, Action.choose_target(P1, P2, "5S"))
        return state

    def test_soft_reset_draws_top_of_deck(self, build, apply_ok):
        """The top source draws the top card of the deck."""
        state = self._two_card_soft_reset(build, apply_ok, deck_top=["2D"])
        state = apply_ok(state, Action.confirm_discard(P1, ["9S", "5S"]))
        deck_size = len(state.deck)

        state = apply_ok(state, Action.choose_option(P1, DRAW_TOP))

        assert ids(state.players[0].hand) == ["2D"]
        assert "2D" not in ids(state.deck)
        assert len(state.deck) == deck_size - 1
        assert state.current_player_index == 1

    def test_soft_reset_draws_bottom_of_deck(self, build, apply_ok):
        """The bottom source takes the first card of the deck stack."""
        state = self._two_card_soft_reset(build, apply_ok, deck_top=["2D"])
        state = apply_ok(state, Action.confirm_discard(P1, ["9S", "5S"]))
        bottom, next_bottom = state.deck[0].id, state.deck[1].id

        state = apply_ok(state, Action.choose_option(P1, DRAW_BOTTOM))

        assert ids(state.players[0].hand) == [bottom]
        assert state.deck[0].id == next_bottom
        assert state.deck[-1].id == "2D"
        assert state.current_player_index == 1

    def test_soft_reset_draws_from_swap_bar(self, build, apply_ok):
        """A swap-bar source empties that slot into the actor's hand."""
        state = self._two_card_soft_reset(
            build, apply_ok, swap_bar=[("2C", False), ("5C", True), ("9C", False)]
        )
        state = apply_ok(state, Action.confirm_discard(P1, ["9S", "5S"]))
        values = [o.value for o in state.option_choices]
        assert f"{DRAW_SWAP_PREFIX}0" in values
        assert f"{DRAW_SWAP_PREFIX}2" in values

        state = apply_ok(state, Action.choose_option(P1, f"{DRAW_SWAP_PREFIX}2"))

        assert ids(state.players[0].hand) == ["9C"]
        assert state.players[0].hand[0].is_face_up
        assert state.swap_bar[2] is None
        assert ids(state.swap_bar[:2]) == ["2C", "5C"]
        assert state.current_player_index == 1

    def test_soft_reset_without_source_ends_turn(self, build, apply_ok):
        """With no deck, swap bar or older discard, the turn just ends."""
        state = self._two_card_soft_reset(build, apply_ok)
        state.deck = []
        state.discard_pile = []

        state = apply_ok(state, Action.confirm_discard(P1, ["9S", "5S"]))

        assert state.action_state == ActionState.IDLE
        assert state.option_choices == []
        assert state.players[0].hand == []
        assert set(ids(state.discard_pile)) == {"9S", "5S"}
        assert state.current_player_index == 1

    def test_interrogator_discard(self, build, apply_ok):
        """The opponent discards two random cards."""
        state = build(hands={0: ["3H"], 1: ["2S", "5S", "9S", "KS"]})
        state = apply_ok(state, Action.play_for_effect(P1, "3H"))
        state = apply_ok(state, Action.pass_counter(P2))
        assert state.action_state == ActionState.AWAITING_INTERROGATOR_CHOICE

        state = apply_ok(state, Action.choose_option(P1, INTERROGATE_DISCARD))
        assert len(state.players[1].hand) == 2
        assert len(state.discard_pile) == 3

    def test_interrogator_steal(self, build, apply_ok):
        """Three cards are revealed; one is stolen, the rest go back."""
        state = build(hands={0: ["3H"], 1: ["2S", "5S", "9S", "KS"]})
        state = apply_ok(state, Action.play_for_effect(P1, "3H"))
        state = apply_ok(state, Action.pass_counter(P2))
        state = apply_ok(state, Action.choose_option(P1, INTERROGATE_STEAL))

        assert state.action_state == ActionState.AWAITING_INTERROGATOR_STEAL_CHOICE
        assert len(state.card_choices) == 3
        stolen = state.card_choices[0].id

        state = apply_ok(state, Action.choose_card(P1, stolen))
        assert ids(state.players[0].hand) == [stolen]
        assert len(state.players[1].hand) == 3

    def test_jack_steal_and_place(self, build, apply_ok):
        """A Jack steals a score-row card and places it in a legal row."""
        state = build(hands={0: ["JH"]}, score_rows={1: ["9S"]})
        state = apply_ok(state, Action.play_for_effect(P1, "JH"))
        state = apply_ok(state, Action.pass_counter(P2))
        assert state.action_state == ActionState.AWAITING_JACK_TARGET

        state = apply_ok(state, Action.choose_target(P1, P2, "9S"))
        assert state.action_state == ActionState.AWAITING_JACK_PLACEMENT
        assert [o.value for o in state.option_choices] == ["score_row"]

        state = apply_ok(state, Action.choose_option(P1, "score_row"))
        assert ids(state.players[0].score_row) == ["9S"]
        assert state.players[1].score_row == []

    def test_jack_needs_a_target(self, build, reducer):
        """A Jack with nothing to steal cannot be played."""
        state = build(hands={0: ["JH"]}, score_rows={1: ["9S"]}, royalty_rows={1: ["QS"]})
        result = reducer.apply(state, Action.play_for_effect(P1, "JH"))
        assert result.error_code == errors.NO_VALID_TARGET

    def test_mimic_offers_four_abilities(self, build, apply_ok):
        """The 2 may mimic a 3, 4, 6 or 7."""
        state = build(hands={0: ["2H"]})
        state = apply_ok(state, Action.play_for_effect(P1, "2H"))
        state = apply_ok(state, Action.pass_counter(P2))
        assert state.action_state == ActionState.AWAITING_MIMIC_CHOICE
        assert [o.value for o in state.option_choices] == ["3", "4", "6", "7"]

    def test_mimic_farmer_resolves_immediately(self, build, apply_ok):
        """Mimicking a 6 goes straight to the Farmer choice."""
        state = build(hands={0: ["2H"]}, deck_top=["8C", "9C", "10C"])
        state = apply_ok(state, Action.play_for_effect(P1, "2H"))
        state = apply_ok(state, Action.pass_counter(P2))
        state = apply_ok(state, Action.choose_option(P1, "6"))

        assert state.action_state == ActionState.AWAITING_FARMER_CHOICE
        assert len(state.card_choices) == 3

    def test_countered_effect_discards_card(self, build, apply_ok):
        """An Ace counter denies the ability and spends the card."""
        state = build(hands={0: ["7H"], 1: ["AS"]})
        state = apply_ok(state, Action.play_for_effect(P1, "7H"))
        state = apply_ok(state, Action.play_counter(P2, "AS"))
        state = apply_ok(state, Action.pass_counter(P1))
        state = apply_ok(state, Action.pass_counter(P2))

        assert state.players[0].hand == []
        assert set(ids(state.discard_pile)) == {"7H", "AS"}
        assert state.current_player_index == 1
