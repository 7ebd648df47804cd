"""
Action Resolution Protocol - Proposals, the counter stack and resolution.

States:
    IDLE -> PROPOSED -> (uncounterable) resolved immediately
                     -> COUNTER_OPEN -> APPLIED | DENIED -> IDLE

While a counterable action is pending, current_player_index names the
seat that must respond. A counter flips the seat; a pass by the seat
opposing the proposer resolves the action, successful iff the counter
stack holds an even number of cards. A pass by the proposer only hands
the decision back to the opponent.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from . import errors
from .cards import Card, Rank, take_card
from .contexts import GameAction, GameActionType
from .effect_resolver import EffectOutcome, EffectResolver
from .errors import IllegalActionError
from .state import GameState, GamePhase, ActionState, TURN_OPEN_STATES
from .turn import TurnController

logger = logging.getLogger(__name__)


# Ranks that may answer a freshly proposed action.
OPENING_COUNTERS: dict[GameActionType, frozenset[Rank]] = {
    GameActionType.ROYAL_PLAY: frozenset({Rank.KING}),
    GameActionType.ROYAL_MARRIAGE: frozenset({Rank.KING}),
    GameActionType.SCUTTLE: frozenset({Rank.NINE}),
    GameActionType.BASE_EFFECT: frozenset({Rank.ACE}),
    GameActionType.RUMMAGER_EFFECT: frozenset({Rank.ACE}),
    GameActionType.SECOND_QUEEN_EDICT: frozenset({Rank.ACE, Rank.NINE, Rank.KING}),
}

# Once a counter is on the stack only an Ace can deny it.
DENIAL_COUNTERS = frozenset({Rank.ACE})


def legal_counter_ranks(action: GameAction, depth: int) -> frozenset[Rank]:
    """Ranks that may be played onto a stack of the given depth."""
    if depth >= 1:
        return DENIAL_COUNTERS
    return OPENING_COUNTERS.get(action.action_type, frozenset())


def legal_counter_cards(state: GameState) -> list[Card]:
    """Cards the seat to act may play as a counter right now."""
    if state.phase != GamePhase.COUNTER or state.action_context is None:
        return []
    ranks = legal_counter_ranks(state.action_context, len(state.counter_stack))
    return [c for c in state.current_player.hand if c.rank in ranks]


@dataclass
class ResolutionProtocol:
    """
    Runs the counter protocol and hands results to the EffectResolver.

    settle() is the single place that decides what happens after an
    effect step: propose a follow-up, end the turn, or wait for input.
    """
    resolver: EffectResolver = field(default_factory=EffectResolver)
    turns: TurnController | None = None

    def __post_init__(self):
        if self.turns is None:
            self.turns = TurnController(
                rules=self.resolver.rules, deck=self.resolver.deck, win=self.resolver.win
            )

    def propose(self, state: GameState, action: GameAction) -> None:
        """Propose an action; uncounterable actions resolve at once."""
        if state.action_context is not None:
            raise IllegalActionError(errors.ACTION_PENDING, "Another action is still pending")

        state.clear_selection()
        if not action.counterable:
            self._resolve(state, action, success=True)
            return

        state.action_context = action
        state.counter_stack = []
        state.consecutive_passes = 0
        state.phase = GamePhase.COUNTER
        state.action_state = ActionState.AWAITING_COUNTER
        state.current_player_index = state.opponent_index(action.player_index)
        state.add_log(
            f"{state.players[action.player_index].name} proposes {action.action_type.value}"
        )

    def play_counter(self, state: GameState, card_id: str) -> None:
        """Play a hand card onto the counter stack."""
        action = state.action_context
        if action is None:
            raise IllegalActionError(errors.NO_PENDING_ACTION, "Nothing to counter")
        player = state.current_player
        card = next((c for c in player.hand if c.id == card_id), None)
        if card is None:
            raise IllegalActionError(errors.CARD_NOT_FOUND, f"{card_id} is not in your hand")
        allowed = legal_counter_ranks(action, len(state.counter_stack))
        if card.rank not in allowed:
            names = ", ".join(sorted(r.value for r in allowed)) or "nothing"
            raise IllegalActionError(
                errors.INVALID_CHOICE, f"{card.label} cannot counter here (allowed: {names})"
            )

        take_card(player.hand, card_id)
        card.is_face_up = True
        state.counter_stack.append(card)
        state.consecutive_passes = 0
        state.current_player_index = state.opponent_index(state.current_player_index)
        state.add_log(f"{player.name} counters with {card.label}")

    def pass_counter(self, state: GameState) -> None:
        """Decline to counter."""
        action = state.action_context
        if action is None:
            raise IllegalActionError(errors.NO_PENDING_ACTION, "Nothing to pass on")

        state.consecutive_passes += 1
        state.add_log(f"{state.current_player.name} passes")
        if state.current_player_index == action.player_index:
            state.current_player_index = state.opponent_index(action.player_index)
            return

        success = len(state.counter_stack) % 2 == 0
        self._resolve(state, action, success)

    def _resolve(self, state: GameState, action: GameAction, success: bool) -> None:
        for card in state.counter_stack:
            state.discard_pile.append(card)
        state.counter_stack = []
        state.action_context = None
        state.consecutive_passes = 0
        state.current_player_index = action.player_index
        state.phase = GamePhase.PLAYER_TURN
        state.action_state = ActionState.IDLE
        logger.debug(
            "Resolving %s for seat %d: %s",
            action.action_type.value, action.player_index, "applied" if success else "denied",
        )
        outcome = self.resolver.resolve(state, action, success)
        self.settle(state, outcome)

    def settle(self, state: GameState, outcome: EffectOutcome) -> None:
        """Continue after an effect step."""
        if state.is_game_over:
            return
        if outcome.follow_up is not None:
            self.propose(state, outcome.follow_up)
            return
        if outcome.end_turn and state.action_state in TURN_OPEN_STATES:
            self.turns.end_turn(state)
