"""
Reducer - Applies intents to game state.

The reducer is the single point of state mutation.
All state changes must go through apply_action().

Design principles:
- Transactional: handlers mutate a clone, which replaces the state only on success
- Validates before applying
- Returns ActionResult with success/failure; a rejected intent leaves the
  caller's state untouched
- Delegates proposals to the ResolutionProtocol and effects to the EffectResolver
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import random
import uuid

from . import errors
from .action import Action, ActionType, ActionResult
from .cards import Rank, find_card, take_card
from .contexts import BaseEffect, PlayToRow, RoyalMarriage, Row, Scuttle
from .counter import ResolutionProtocol
from .deck import DeckManager
from .effect_resolver import EffectResolver
from .errors import IllegalActionError
from .legality import (
    effect_violation,
    is_royal_play,
    marriage_partner,
    row_violation,
    scuttle_violation,
)
from .rules import RuleConfig
from .state import GameState, GamePhase, ActionState, TURN_OPEN_STATES
from .turn import TurnController
from .win import WinEvaluator

logger = logging.getLogger(__name__)


SESSION_ACTIONS = {ActionType.START_NEW_GAME, ActionType.RESET_GAME}

COUNTER_ACTIONS = {ActionType.PLAY_COUNTER, ActionType.PASS_COUNTER}

TURN_ACTIONS = {
    ActionType.SELECT_CARD,
    ActionType.PLAY_TO_ROW,
    ActionType.SCUTTLE,
    ActionType.PLAY_FOR_EFFECT,
    ActionType.ROYAL_MARRIAGE,
    ActionType.SWAP_BAR,
    ActionType.DRAW,
}

# The opening turn only allows a draw or a swap-bar use.
OPENING_TURN_ACTIONS = {ActionType.SELECT_CARD, ActionType.SWAP_BAR, ActionType.DRAW}

# Sub-phases in which each answer intent is accepted.
CHOICE_STATES = {
    ActionType.CHOOSE_CARD: {
        ActionState.AWAITING_NINE_PEEK_CHOICE,
        ActionState.AWAITING_LUCKY_DRAW_CHOICE,
        ActionState.AWAITING_FARMER_CHOICE,
        ActionState.AWAITING_RUMMAGER_CHOICE,
        ActionState.AWAITING_INTERROGATOR_STEAL_CHOICE,
    },
    ActionType.CHOOSE_OPTION: {
        ActionState.AWAITING_JACK_PLACEMENT,
        ActionState.AWAITING_INTERROGATOR_CHOICE,
        ActionState.AWAITING_MIMIC_CHOICE,
        ActionState.AWAITING_SOFT_RESET_DRAW_CHOICE,
    },
    ActionType.CHOOSE_TARGET: {
        ActionState.AWAITING_JACK_TARGET,
        ActionState.AWAITING_SOFT_RESET_TARGET_ROW,
    },
    ActionType.CONFIRM_DISCARD: {ActionState.AWAITING_SOFT_RESET_DISCARD_CHOICE},
    ActionType.DISCARD: {
        ActionState.AWAITING_END_TURN_DISCARD,
        ActionState.AWAITING_OVERCHARGE_DISCARD,
    },
}


@dataclass
class Reducer:
    """
    Reducer applies intents to game state.

    Holds no game state of its own: only rules and the random source,
    which tests seed for reproducible shuffles and random discards.
    """
    rules: RuleConfig = field(default_factory=RuleConfig)
    rng: random.Random = field(default_factory=random.Random)

    def __post_init__(self):
        self.win = WinEvaluator(rules=self.rules, rng=self.rng)
        self.deck = DeckManager(rules=self.rules, rng=self.rng, win=self.win)
        self.resolver = EffectResolver(
            rules=self.rules, rng=self.rng, deck=self.deck, win=self.win
        )
        self.turns = TurnController(rules=self.rules, deck=self.deck, win=self.win)
        self.protocol = ResolutionProtocol(resolver=self.resolver, turns=self.turns)

    def apply(self, state: GameState, action: Action) -> ActionResult:
        """
        Apply an intent to the game state.

        Returns ActionResult with new state or error.
        """
        validation_error = self._validate_action(state, action)
        if validation_error:
            return self._reject(validation_error, action)

        handler = self._get_handler(action.action_type)
        if not handler:
            return self._reject(
                IllegalActionError(
                    errors.UNKNOWN_INTENT, f"No handler for action type: {action.action_type}"
                ),
                action,
            )

        draft = state.clone()
        log_start = len(draft.log)
        try:
            new_state = handler(draft, action)
        except IllegalActionError as e:
            return self._reject(e, action)
        except Exception as e:
            logger.exception("Handler for %s failed", action.action_type.value)
            return ActionResult.failure(str(e), error_code=errors.HANDLER_ERROR)

        new_entries = new_state.log[log_start:] if new_state is draft else new_state.log
        changes = [entry.message for entry in new_entries]
        return ActionResult.success_with_state(new_state, changes=changes)

    def _reject(self, error: IllegalActionError, action: Action) -> ActionResult:
        logger.warning(
            "Rejected %s from %s: [%s] %s",
            action.action_type.value, action.player_id, error.code, error.message,
        )
        return ActionResult.failure(error.message, error_code=error.code)

    def _validate_action(self, state: GameState, action: Action) -> IllegalActionError | None:
        """
        Validate that an intent is acceptable in the current state.

        Returns the error if invalid, None if valid. Handlers perform the
        card-level legality checks.
        """
        action_type = action.action_type
        if action_type in SESSION_ACTIONS:
            return None

        if state.is_game_over:
            return IllegalActionError(errors.GAME_OVER, "Game is over - no actions allowed")
        if state.phase == GamePhase.START_SCREEN:
            return IllegalActionError(errors.WRONG_PHASE, "Game not started")

        if action.player_id != state.current_player.player_id:
            return IllegalActionError(errors.NOT_YOUR_TURN, f"Not {action.player_id}'s turn")

        if state.phase == GamePhase.COUNTER:
            if action_type not in COUNTER_ACTIONS:
                return IllegalActionError(
                    errors.ACTION_PENDING, "Respond to the pending action first"
                )
            return None
        if action_type in COUNTER_ACTIONS:
            return IllegalActionError(errors.NO_PENDING_ACTION, "No action awaits a counter")

        if action_type in TURN_ACTIONS:
            if state.action_state not in TURN_OPEN_STATES:
                return IllegalActionError(
                    errors.WRONG_PHASE,
                    f"Finish the pending choice first ({state.action_state.value})",
                )
            if state.phase == GamePhase.PLAYER1_START and action_type not in OPENING_TURN_ACTIONS:
                return IllegalActionError(
                    errors.WRONG_PHASE, "The opening turn allows only a draw or a swap"
                )
            return None

        allowed = CHOICE_STATES.get(action_type)
        if allowed is not None and state.action_state not in allowed:
            return IllegalActionError(
                errors.WRONG_PHASE, f"{action_type.value} is not awaited right now"
            )
        return None

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.START_NEW_GAME: self._handle_start_new_game,
            ActionType.RESET_GAME: self._handle_reset_game,
            ActionType.SELECT_CARD: self._handle_select_card,
            ActionType.PLAY_TO_ROW: self._handle_play_to_row,
            ActionType.SCUTTLE: self._handle_scuttle,
            ActionType.PLAY_FOR_EFFECT: self._handle_play_for_effect,
            ActionType.ROYAL_MARRIAGE: self._handle_royal_marriage,
            ActionType.SWAP_BAR: self._handle_swap_bar,
            ActionType.DRAW: self._handle_draw,
            ActionType.PLAY_COUNTER: self._handle_play_counter,
            ActionType.PASS_COUNTER: self._handle_pass_counter,
            ActionType.CHOOSE_CARD: self._handle_choose_card,
            ActionType.CHOOSE_OPTION: self._handle_choose_option,
            ActionType.CHOOSE_TARGET: self._handle_choose_target,
            ActionType.CONFIRM_DISCARD: self._handle_confirm_discard,
            ActionType.DISCARD: self._handle_discard,
        }
        return handlers.get(action_type)

    # =========================================================================
    # Session control
    # =========================================================================

    def _fresh_state(self, state: GameState) -> GameState:
        return GameState.create(
            game_id=uuid.uuid4().hex[:12],
            player_name=state.players[0].name,
            ai_name=state.players[1].name,
        )

    def _handle_start_new_game(self, state: GameState, action: Action) -> GameState:
        new_state = self._fresh_state(state)
        self.deck.deal_new_game(new_state)
        self.turns.start_turn(new_state)
        return new_state

    def _handle_reset_game(self, state: GameState, action: Action) -> GameState:
        return self._fresh_state(state)

    # =========================================================================
    # Turn moves
    # =========================================================================

    def _hand_card(self, state: GameState, card_id: str | None):
        card = find_card(state.current_player.hand, card_id)
        if card is None:
            raise IllegalActionError(errors.CARD_NOT_FOUND, f"{card_id} is not in your hand")
        return card

    def _handle_select_card(self, state: GameState, action: Action) -> GameState:
        card = self._hand_card(state, action.payload.card_id)
        if state.selected_card_id == card.id:
            state.selected_card_id = None
            state.action_state = ActionState.IDLE
        else:
            state.selected_card_id = card.id
            state.action_state = ActionState.CARD_SELECTED
        return state

    def _handle_play_to_row(self, state: GameState, action: Action) -> GameState:
        card = self._hand_card(state, action.payload.card_id)
        try:
            row = Row(action.payload.row)
        except ValueError:
            raise IllegalActionError(errors.INVALID_ROW, f"Unknown row: {action.payload.row}")
        violation = row_violation(card, row)
        if violation:
            raise violation

        self.protocol.propose(
            state,
            PlayToRow(
                player_index=state.current_player_index,
                card_id=card.id,
                row=row,
                royal=is_royal_play(card, row),
            ),
        )
        return state

    def _handle_scuttle(self, state: GameState, action: Action) -> GameState:
        actor = state.current_player_index
        attacker = self._hand_card(state, action.payload.card_id)
        target_index = state.opponent_index(actor)
        if action.payload.target_player_id is not None:
            target_index = state.index_of(action.payload.target_player_id)
            if target_index is None:
                raise IllegalActionError(
                    errors.INVALID_CHOICE, f"Unknown player {action.payload.target_player_id}"
                )
        violation = scuttle_violation(
            state, actor, attacker, target_index, action.payload.target_card_id
        )
        if violation:
            raise violation

        self.protocol.propose(
            state,
            Scuttle(
                player_index=actor,
                attacker_card_id=attacker.id,
                target_card_id=action.payload.target_card_id,
                target_player_index=target_index,
            ),
        )
        return state

    def _handle_play_for_effect(self, state: GameState, action: Action) -> GameState:
        actor = state.current_player_index
        card = self._hand_card(state, action.payload.card_id)
        violation = effect_violation(state, actor, card)
        if violation:
            raise violation
        self.protocol.propose(
            state, BaseEffect(player_index=actor, rank=card.rank, card_id=card.id)
        )
        return state

    def _handle_royal_marriage(self, state: GameState, action: Action) -> GameState:
        card = self._hand_card(state, action.payload.card_id)
        partner = marriage_partner(state.current_player, card)
        if partner is None:
            raise IllegalActionError(
                errors.INVALID_CHOICE, f"{card.label} has no same-color partner in hand"
            )
        king, queen = (card, partner) if card.rank == Rank.KING else (partner, card)
        self.protocol.propose(
            state,
            RoyalMarriage(
                player_index=state.current_player_index,
                king_card_id=king.id,
                queen_card_id=queen.id,
            ),
        )
        return state

    def _handle_swap_bar(self, state: GameState, action: Action) -> GameState:
        """
        Use the swap bar once per turn.

        Taking a face-up card ends the turn; trading a hand card into a
        face-down slot keeps it open, except on the opening turn.
        """
        if state.swap_used_this_turn:
            raise IllegalActionError(errors.SWAP_ALREADY_USED, "The swap bar was already used this turn")
        slot = action.payload.slot_index
        if slot is None or not 0 <= slot < len(state.swap_bar) or state.swap_bar[slot] is None:
            raise IllegalActionError(errors.INVALID_CHOICE, f"Swap-bar slot {slot} is empty")

        player = state.current_player
        bar_card = state.swap_bar[slot]
        if bar_card.is_face_up:
            state.swap_bar[slot] = None
            bar_card.is_face_up = not player.is_ai
            player.hand.append(bar_card)
            state.swap_used_this_turn = True
            state.clear_selection()
            state.action_state = ActionState.IDLE
            state.add_log(f"{player.name} took {bar_card.label} from the swap bar")
            self.turns.end_turn(state)
            return state

        if action.payload.card_id is None:
            raise IllegalActionError(
                errors.INVALID_CHOICE, "Choose a hand card to trade into a face-down slot"
            )
        hand_card = take_card(player.hand, action.payload.card_id)
        if hand_card is None:
            raise IllegalActionError(
                errors.CARD_NOT_FOUND, f"{action.payload.card_id} is not in your hand"
            )
        hand_card.is_face_up = True
        state.swap_bar[slot] = hand_card
        bar_card.is_face_up = not player.is_ai
        player.hand.append(bar_card)
        state.swap_used_this_turn = True
        state.clear_selection()
        state.action_state = ActionState.IDLE
        state.add_log(f"{player.name} swapped {hand_card.label} into the swap bar")
        if state.phase == GamePhase.PLAYER1_START:
            self.turns.end_turn(state)
        return state

    def _handle_draw(self, state: GameState, action: Action) -> GameState:
        state.clear_selection()
        state.action_state = ActionState.IDLE
        drawn = self.deck.draw(state, state.current_player_index)
        if drawn:
            state.add_log(f"{state.current_player.name} drew a card")
            self.turns.end_turn(state)
        return state

    # =========================================================================
    # Counter protocol
    # =========================================================================

    def _handle_play_counter(self, state: GameState, action: Action) -> GameState:
        self.protocol.play_counter(state, action.payload.card_id)
        return state

    def _handle_pass_counter(self, state: GameState, action: Action) -> GameState:
        self.protocol.pass_counter(state)
        return state

    # =========================================================================
    # Forced sub-choices
    # =========================================================================

    def _handle_choose_card(self, state: GameState, action: Action) -> GameState:
        outcome = self.resolver.choose_card(state, action.payload.card_id)
        self.protocol.settle(state, outcome)
        return state

    def _handle_choose_option(self, state: GameState, action: Action) -> GameState:
        outcome = self.resolver.choose_option(state, action.payload.choice_value)
        self.protocol.settle(state, outcome)
        return state

    def _handle_choose_target(self, state: GameState, action: Action) -> GameState:
        target_index = state.index_of(action.payload.target_player_id)
        if target_index is None:
            raise IllegalActionError(
                errors.INVALID_CHOICE, f"Unknown player {action.payload.target_player_id}"
            )
        outcome = self.resolver.choose_target(state, target_index, action.payload.target_card_id)
        self.protocol.settle(state, outcome)
        return state

    def _handle_confirm_discard(self, state: GameState, action: Action) -> GameState:
        outcome = self.resolver.confirm_discard(state, action.payload.card_ids or [])
        self.protocol.settle(state, outcome)
        return state

    def _handle_discard(self, state: GameState, action: Action) -> GameState:
        self.turns.discard(state, action.payload.card_id)
        return state


def apply_action(
    state: GameState,
    action: Action,
    rules: RuleConfig | None = None,
    rng: random.Random | None = None,
) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a reducer and applies the action.
    """
    reducer = Reducer(rules=rules or RuleConfig(), rng=rng or random.Random())
    return reducer.apply(state, action)
