"""
Turn Controller - Start-of-turn maintenance and end-of-turn checks.

Lifecycle:
    start -> maintenance (turn >= 2) -> active play -> end-turn checks -> next start

End-turn checks may park the game in a forced discard sub-phase
(hand limit for the player ending the turn, overcharge for the player
about to start one); the turn only advances once it is satisfied.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from . import errors
from .cards import take_card
from .errors import IllegalActionError
from .rules import RuleConfig
from .scoring import player_score
from .state import GameState, GamePhase, ActionState
from .deck import DeckManager
from .win import WinEvaluator, REACHED_TARGET_MAINTENANCE

logger = logging.getLogger(__name__)


@dataclass
class TurnController:
    rules: RuleConfig = field(default_factory=RuleConfig)
    deck: DeckManager | None = None
    win: WinEvaluator | None = None

    def __post_init__(self):
        if self.win is None:
            self.win = WinEvaluator(rules=self.rules)
        if self.deck is None:
            self.deck = DeckManager(rules=self.rules, win=self.win)

    def start_turn(self, state: GameState) -> None:
        """Run maintenance (from turn 2 on) and reset per-turn flags."""
        if state.is_game_over:
            return
        if state.turn > 1:
            for index in (state.current_player_index, state.opponent_index(state.current_player_index)):
                player = state.players[index]
                if player.is_immune:
                    continue
                for card in player.board:
                    card.cycle_ace()
                if self.win.check_target(state, index, REACHED_TARGET_MAINTENANCE):
                    return

        state.action_state = ActionState.IDLE
        state.clear_selection()
        state.swap_used_this_turn = False
        state.lucky_draw_chains = 0
        state.effect_context = None
        state.option_choices = []
        state.add_log(f"Turn {state.turn}: {state.current_player.name} to play")
        logger.debug("Game %s turn %d starts", state.game_id, state.turn)

    def end_turn(self, state: GameState) -> None:
        """End the current player's turn, or park it in a forced discard."""
        if state.is_game_over:
            return
        player = state.current_player

        if len(player.hand) > self.rules.hand_limit:
            state.action_state = ActionState.AWAITING_END_TURN_DISCARD
            state.clear_selection()
            state.add_log(f"{player.name} must discard down to {self.rules.hand_limit}")
            return

        if self.win.check_target(state, state.current_player_index):
            return

        state.current_player_index = state.opponent_index(state.current_player_index)
        state.turn += 1
        state.phase = GamePhase.PLAYER_TURN

        if player_score(state.current_player) > self.rules.target_score:
            state.action_state = ActionState.AWAITING_OVERCHARGE_DISCARD
            state.clear_selection()
            state.add_log(f"{state.current_player.name} is overcharged")
            return

        self.start_turn(state)

    def discard(self, state: GameState, card_id: str) -> None:
        """Handle one forced discard (hand limit or overcharge)."""
        player = state.current_player

        if state.action_state == ActionState.AWAITING_END_TURN_DISCARD:
            card = take_card(player.hand, card_id)
            if card is None:
                raise IllegalActionError(errors.CARD_NOT_FOUND, f"{card_id} is not in your hand")
            self._to_discard(state, card)
            if len(player.hand) <= self.rules.hand_limit:
                state.action_state = ActionState.IDLE
                self.end_turn(state)
            return

        if state.action_state == ActionState.AWAITING_OVERCHARGE_DISCARD:
            row = player.locate(card_id)
            if row is None:
                raise IllegalActionError(errors.CARD_NOT_FOUND, f"{card_id} is not on your board")
            self._to_discard(state, take_card(player.row(row), card_id))
            score = player_score(player)
            if score == self.rules.target_score:
                self.win.check_target(state, state.current_player_index)
            elif score < self.rules.target_score:
                self.start_turn(state)
            return

        raise IllegalActionError(errors.WRONG_PHASE, "No discard is required")

    def _to_discard(self, state: GameState, card) -> None:
        card.is_face_up = True
        card.protected = False
        state.discard_pile.append(card)
        state.add_log(f"{state.current_player.name} discarded {card.label}")
