"""
Action Generator - Generates all legal intents from a game state.

The action generator is used by:
1. Bots and adapters to enumerate possible moves
2. The game loop to validate adapter answers and pick fallbacks
3. The API, to show what the human may do next

Design: Generates Action objects, not just action types.
This ensures all generated actions are fully specified.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from itertools import combinations

from .action import Action
from .cards import BASE_EFFECT_RANKS, Rank
from .contexts import Row, SoftResetContext
from .counter import legal_counter_cards
from .legality import (
    effect_violation,
    jack_targets,
    marriage_partner,
    row_violation,
    scuttle_violation,
    soft_reset_rows,
)
from .rules import RuleConfig
from .state import GameState, GamePhase, ActionState, TURN_OPEN_STATES


CARD_PICK_STATES = {
    ActionState.AWAITING_NINE_PEEK_CHOICE,
    ActionState.AWAITING_LUCKY_DRAW_CHOICE,
    ActionState.AWAITING_FARMER_CHOICE,
    ActionState.AWAITING_RUMMAGER_CHOICE,
    ActionState.AWAITING_INTERROGATOR_STEAL_CHOICE,
}


@dataclass
class ActionGenerator:
    """
    Generates legal intents for the seat that must act.

    Selection intents (SELECT_CARD) are not generated; they never
    change the game.
    """
    rules: RuleConfig = field(default_factory=RuleConfig)

    def generate(self, state: GameState) -> list[Action]:
        """
        Generate all legal intents for the seat to act.

        Returns a list of fully-specified Action objects.
        """
        if state.is_game_over or state.phase == GamePhase.START_SCREEN:
            return []
        if state.phase == GamePhase.COUNTER:
            return self.counter_actions(state)
        if state.action_state in TURN_OPEN_STATES:
            return self.turn_actions(state)
        return self.mid_turn_picks(state)

    def turn_actions(self, state: GameState) -> list[Action]:
        """Moves that start or end a turn."""
        if state.action_state not in TURN_OPEN_STATES or state.phase == GamePhase.COUNTER:
            return []
        player = state.current_player
        pid = player.player_id
        actions = [Action.draw(pid)]
        actions.extend(self._swap_bar_actions(state))
        if state.phase == GamePhase.PLAYER1_START:
            return actions

        actor = state.current_player_index
        opponent_index = state.opponent_index(actor)
        opponent = state.players[opponent_index]
        for card in player.hand:
            for row in Row:
                if row_violation(card, row) is None:
                    actions.append(Action.play_to_row(pid, card.id, row.value))
            for target in opponent.score_row:
                if scuttle_violation(state, actor, card, opponent_index, target.id) is None:
                    actions.append(Action.scuttle(pid, card.id, target.id, opponent.player_id))
            if card.rank in BASE_EFFECT_RANKS and effect_violation(state, actor, card) is None:
                actions.append(Action.play_for_effect(pid, card.id))
            if card.rank == Rank.KING and marriage_partner(player, card) is not None:
                actions.append(Action.royal_marriage(pid, card.id))
        return actions

    def _swap_bar_actions(self, state: GameState) -> list[Action]:
        if state.swap_used_this_turn:
            return []
        player = state.current_player
        actions = []
        for slot, card in enumerate(state.swap_bar):
            if card is None:
                continue
            if card.is_face_up:
                actions.append(Action.swap_bar(player.player_id, slot))
            else:
                actions.extend(
                    Action.swap_bar(player.player_id, slot, hand_card.id)
                    for hand_card in player.hand
                )
        return actions

    def counter_actions(self, state: GameState) -> list[Action]:
        """Pass, or counter with any legal card."""
        if state.phase != GamePhase.COUNTER:
            return []
        pid = state.current_player.player_id
        actions = [Action.pass_counter(pid)]
        actions.extend(Action.play_counter(pid, c.id) for c in legal_counter_cards(state))
        return actions

    def mid_turn_picks(self, state: GameState) -> list[Action]:
        """Answers to the forced sub-choice the seat to act is facing."""
        player = state.current_player
        pid = player.player_id
        awaiting = state.action_state

        if awaiting in CARD_PICK_STATES:
            return [Action.choose_card(pid, c.id) for c in state.card_choices]

        if state.option_choices:
            return [Action.choose_option(pid, o.value) for o in state.option_choices]

        if awaiting == ActionState.AWAITING_JACK_TARGET:
            return [
                Action.choose_target(pid, state.players[i].player_id, card.id)
                for i, card in jack_targets(state, state.current_player_index)
            ]

        if awaiting == ActionState.AWAITING_SOFT_RESET_TARGET_ROW:
            return [
                Action.choose_target(pid, state.players[i].player_id, state.players[i].row(row)[0].id)
                for i, row in soft_reset_rows(state)
            ]

        if awaiting == ActionState.AWAITING_SOFT_RESET_DISCARD_CHOICE:
            ctx = state.effect_context
            if not isinstance(ctx, SoftResetContext):
                return []
            ids = [c.id for c in state.players[ctx.target_player_index].row(ctx.target_row)]
            picks = [Action.confirm_discard(pid, [cid]) for cid in ids]
            picks.extend(Action.confirm_discard(pid, list(pair)) for pair in combinations(ids, 2))
            return picks

        if awaiting == ActionState.AWAITING_END_TURN_DISCARD:
            return [Action.discard(pid, c.id) for c in player.hand]

        if awaiting == ActionState.AWAITING_OVERCHARGE_DISCARD:
            return [Action.discard(pid, c.id) for c in player.board]

        return []


def legal_actions(state: GameState, rules: RuleConfig | None = None) -> list[Action]:
    """
    Convenience function to get legal intents.

    Creates a generator and returns the intents for the seat to act.
    """
    generator = ActionGenerator(rules=rules or RuleConfig())
    return generator.generate(state)


def is_legal(state: GameState, action: Action, rules: RuleConfig | None = None) -> bool:
    """Check if an intent is among the generated legal intents."""
    return action in legal_actions(state, rules)
