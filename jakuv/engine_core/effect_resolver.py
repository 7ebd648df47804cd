"""
Effect Resolver - Applies a resolved action and drives its forced sub-choices.

Flow:
1. The counter protocol hands over a GameAction and whether it survived
2. resolve() applies the consequences, possibly parking the actor in an
   AWAITING_* sub-phase (card choices, options or a target)
3. The actor answers through choose_card / choose_option / choose_target /
   confirm_discard until the effect completes
4. Every step returns an EffectOutcome telling the caller whether the turn
   may end and whether a follow-up action must be proposed

Scores are re-checked for an exact-target win after every step.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import random

from . import errors
from .cards import Card, Rank, MIMIC_RANKS, take_card, find_card
from .contexts import (
    BaseEffect,
    CardChoiceType,
    GameAction,
    JackStealContext,
    OptionChoice,
    PlayToRow,
    RoyalMarriage,
    RummagerEffect,
    Row,
    Scuttle,
    SecondQueenEdict,
    SoftResetContext,
)
from .deck import DeckManager
from .errors import IllegalActionError
from .legality import jack_targets, row_violation, soft_reset_rows
from .rules import RuleConfig
from .state import ActionState, GameState
from .win import WinEvaluator

logger = logging.getLogger(__name__)


CARD_CHOICE_STATES = {
    CardChoiceType.NINE_SCUTTLE_PEEK: ActionState.AWAITING_NINE_PEEK_CHOICE,
    CardChoiceType.LUCKY_DRAW: ActionState.AWAITING_LUCKY_DRAW_CHOICE,
    CardChoiceType.FARMER: ActionState.AWAITING_FARMER_CHOICE,
    CardChoiceType.RUMMAGER: ActionState.AWAITING_RUMMAGER_CHOICE,
    CardChoiceType.INTERROGATOR_STEAL: ActionState.AWAITING_INTERROGATOR_STEAL_CHOICE,
    CardChoiceType.JACK_STEAL: ActionState.AWAITING_JACK_PLACEMENT,
}

EFFECT_NAMES = {
    Rank.JACK: "Jack Steal",
    Rank.SEVEN: "Lucky Draw",
    Rank.SIX: "The Farmer",
    Rank.FOUR: "Soft Reset",
    Rank.THREE: "Interrogator",
    Rank.TWO: "Mimic",
}

# Soft Reset draw sources
DRAW_TOP = "top"
DRAW_BOTTOM = "bottom"
DRAW_DISCARD = "discard"
DRAW_SWAP_PREFIX = "swap:"

INTERROGATE_DISCARD = "discard"
INTERROGATE_STEAL = "steal"


@dataclass
class EffectOutcome:
    """What the caller must do after an effect step."""
    end_turn: bool = True
    follow_up: GameAction | None = None


@dataclass
class EffectResolver:
    """
    Resolves actions and their multi-step effects in place on a state.

    Usage:
        resolver = EffectResolver(rules, rng, deck, win)
        outcome = resolver.resolve(state, action, success=True)
        if state.action_state == ActionState.AWAITING_FARMER_CHOICE:
            outcome = resolver.choose_card(state, card_id)
    """
    rules: RuleConfig = field(default_factory=RuleConfig)
    rng: random.Random = field(default_factory=random.Random)
    deck: DeckManager | None = None
    win: WinEvaluator | None = None

    def __post_init__(self):
        if self.win is None:
            self.win = WinEvaluator(rules=self.rules, rng=self.rng)
        if self.deck is None:
            self.deck = DeckManager(rules=self.rules, rng=self.rng, win=self.win)

    # =========================================================================
    # Resolution of proposed actions
    # =========================================================================

    def resolve(self, state: GameState, action: GameAction, success: bool) -> EffectOutcome:
        """Apply a proposed action that survived (or lost) the counter protocol."""
        actor = action.player_index
        if not success:
            self._fail(state, action)
            return EffectOutcome()

        handler = self._get_handler(action)
        if handler is None:
            logger.warning("No resolution for %s", type(action).__name__)
            return EffectOutcome()

        outcome = handler(state, action)
        self.win.check_after_effect(state, actor)
        return outcome

    def _get_handler(self, action: GameAction):
        handlers = {
            PlayToRow: self._resolve_play_to_row,
            Scuttle: self._resolve_scuttle,
            BaseEffect: self._resolve_base_effect,
            RoyalMarriage: self._resolve_royal_marriage,
            SecondQueenEdict: self._resolve_second_queen_edict,
            RummagerEffect: self._resolve_rummager,
        }
        return handlers.get(type(action))

    def _fail(self, state: GameState, action: GameAction) -> None:
        """A countered action spends its initiating cards."""
        player = state.players[action.player_index]
        for card_id in action.initiator_card_ids:
            card = take_card(player.hand, card_id)
            if card is not None:
                self._discard(state, card)
        state.add_log(f"{player.name}'s {action.action_type.value} was countered")

    def _resolve_play_to_row(self, state: GameState, action: PlayToRow) -> EffectOutcome:
        actor = action.player_index
        player = state.players[actor]
        opponent = state.opponent_of(actor)
        card = take_card(player.hand, action.card_id)
        if card is None:
            logger.warning("Play to row: %s left %s's hand", action.card_id, player.player_id)
            return EffectOutcome()

        row = player.row(action.row)
        queens_before = sum(1 for c in player.royalty_row if c.rank == Rank.QUEEN)
        eights_before = sum(1 for c in player.score_row if c.rank == Rank.EIGHT)

        card.is_face_up = True
        card.protected = False
        row.append(card)
        state.add_log(f"{player.name} played {card.label} to their {action.row.value}")

        outcome = EffectOutcome()
        if action.row == Row.ROYALTY and card.rank == Rank.QUEEN and queens_before == 1:
            outcome.follow_up = SecondQueenEdict(player_index=actor)

        if action.row == Row.SCORE and card.rank == Rank.EIGHT:
            card.protected = True
            if eights_before == 1:
                opponent.hand_revealed_until_turn = state.turn + self.rules.hand_reveal_turns
                state.add_log(f"{opponent.name}'s hand is revealed")
            if player.has_queen_protection():
                self.deck.draw(state, actor)
                state.add_log(f"{player.name} draws a bonus card")

        if action.row == Row.SCORE and card.rank == Rank.FIVE and state.discard_pile:
            outcome.follow_up = RummagerEffect(player_index=actor)
        return outcome

    def _resolve_scuttle(self, state: GameState, action: Scuttle) -> EffectOutcome:
        player = state.players[action.player_index]
        owner = state.players[action.target_player_index]
        target = find_card(owner.score_row, action.target_card_id)
        attacker = find_card(player.hand, action.attacker_card_id)
        if target is None or attacker is None:
            logger.warning("Scuttle of %s no longer possible", action.target_card_id)
            return EffectOutcome()

        player.hand.remove(attacker)
        if target.protected and attacker.rank != Rank.TEN:
            target.protected = False
            self._discard(state, attacker)
            state.add_log(f"{target.label} absorbed {player.name}'s scuttle")
            return EffectOutcome()

        owner.score_row.remove(target)
        self._discard(state, attacker)
        self._discard(state, target)
        state.add_log(f"{player.name} scuttled {target.label} with {attacker.label}")

        if attacker.rank == Rank.NINE:
            if not self.deck.ensure_deck_has_cards(state):
                return EffectOutcome()
            peeked = self.deck.take_top(state, 2)
            if not peeked:
                return EffectOutcome()
            self._offer_cards(state, peeked, CardChoiceType.NINE_SCUTTLE_PEEK)
            return EffectOutcome(end_turn=False)
        return EffectOutcome()

    def _resolve_base_effect(self, state: GameState, action: BaseEffect) -> EffectOutcome:
        actor = action.player_index
        player = state.players[actor]
        if action.card_id is not None:
            card = take_card(player.hand, action.card_id)
            if card is None:
                logger.warning("Effect card %s left %s's hand", action.card_id, player.player_id)
                return EffectOutcome()
            self._discard(state, card)
            state.lucky_draw_chains = 0
        state.add_log(f"{player.name} uses {EFFECT_NAMES.get(action.rank, action.rank.value)}")

        if action.rank == Rank.JACK:
            if not jack_targets(state, actor):
                state.add_log("Jack Steal has no target")
                return EffectOutcome()
            self._await(state, ActionState.AWAITING_JACK_TARGET)
            return EffectOutcome(end_turn=False)

        if action.rank == Rank.SEVEN:
            return self._start_lucky_draw(state)

        if action.rank == Rank.SIX:
            self.deck.ensure_deck_has_cards(state)
            if len(state.deck) < 3:
                state.add_log("The Farmer needs 3 cards in the deck")
                return EffectOutcome()
            self._offer_cards(state, self.deck.take_top(state, 3), CardChoiceType.FARMER)
            return EffectOutcome(end_turn=False)

        if action.rank == Rank.FOUR:
            if not soft_reset_rows(state):
                state.add_log("Soft Reset has no target row")
                return EffectOutcome()
            self._await(state, ActionState.AWAITING_SOFT_RESET_TARGET_ROW)
            return EffectOutcome(end_turn=False)

        if action.rank == Rank.THREE:
            self._await(
                state,
                ActionState.AWAITING_INTERROGATOR_CHOICE,
                options=[
                    OptionChoice("Opponent discards 2 at random", INTERROGATE_DISCARD),
                    OptionChoice("Reveal 3 and steal 1", INTERROGATE_STEAL),
                ],
            )
            return EffectOutcome(end_turn=False)

        if action.rank == Rank.TWO and action.card_id is not None:
            self._await(
                state,
                ActionState.AWAITING_MIMIC_CHOICE,
                options=[
                    OptionChoice(f"Mimic {r.value} ({EFFECT_NAMES[r]})", r.value)
                    for r in MIMIC_RANKS
                ],
            )
            return EffectOutcome(end_turn=False)

        logger.warning("Unsupported effect rank %s", action.rank.value)
        return EffectOutcome()

    def _start_lucky_draw(self, state: GameState) -> EffectOutcome:
        self.deck.ensure_deck_has_cards(state)
        if len(state.deck) < 2:
            state.add_log("Lucky Draw needs 2 cards in the deck")
            return EffectOutcome()
        self._offer_cards(state, self.deck.take_top(state, 2), CardChoiceType.LUCKY_DRAW)
        return EffectOutcome(end_turn=False)

    def _resolve_royal_marriage(self, state: GameState, action: RoyalMarriage) -> EffectOutcome:
        player = state.players[action.player_index]
        king = find_card(player.hand, action.king_card_id)
        queen = find_card(player.hand, action.queen_card_id)
        if king is None or queen is None:
            logger.warning("Royal marriage pair left %s's hand", player.player_id)
            return EffectOutcome()
        for card in (king, queen):
            player.hand.remove(card)
            card.is_face_up = True
            player.royalty_row.append(card)
        state.add_log(f"{player.name} crowned {king.label} and {queen.label}")
        return EffectOutcome()

    def _resolve_second_queen_edict(
        self, state: GameState, action: SecondQueenEdict
    ) -> EffectOutcome:
        actor = action.player_index
        opponent = state.opponent_of(actor)
        self.deck.draw(state, actor)
        if opponent.hand:
            card = opponent.hand.pop(self.rng.randrange(len(opponent.hand)))
            self._discard(state, card)
            state.add_log(f"{opponent.name} discarded {card.label} by royal edict")
        return EffectOutcome()

    def _resolve_rummager(self, state: GameState, action: RummagerEffect) -> EffectOutcome:
        if not state.discard_pile:
            return EffectOutcome()
        offered = [state.discard_pile.pop() for _ in range(min(2, len(state.discard_pile)))]
        self._offer_cards(state, offered, CardChoiceType.RUMMAGER)
        return EffectOutcome(end_turn=False)

    # =========================================================================
    # Forced sub-choices
    # =========================================================================

    def choose_card(self, state: GameState, card_id: str) -> EffectOutcome:
        """Pick one of state.card_choices."""
        kind = state.card_choice_context
        chosen = find_card(state.card_choices, card_id)
        if kind is None or kind == CardChoiceType.JACK_STEAL or chosen is None:
            raise IllegalActionError(errors.INVALID_CHOICE, f"{card_id} is not on offer")

        actor = state.current_player_index
        player = state.current_player
        others = [c for c in state.card_choices if c.id != card_id]
        state.card_choices = []
        state.card_choice_context = None
        state.action_state = ActionState.IDLE
        state.clear_selection()

        outcome = EffectOutcome()
        if kind == CardChoiceType.NINE_SCUTTLE_PEEK:
            for card in others:
                card.is_face_up = True
                state.deck.append(card)
            self._to_hand(state, actor, chosen)
            state.add_log(f"{player.name} kept one peeked card")

        elif kind == CardChoiceType.LUCKY_DRAW:
            for card in others:
                self._to_hand(state, actor, card)
            if chosen.rank == Rank.SEVEN and state.lucky_draw_chains < self.rules.lucky_draw_chain_limit:
                state.lucky_draw_chains += 1
                self._discard(state, chosen)
                state.add_log(f"{player.name}'s Lucky Draw chains")
                outcome = self._start_lucky_draw(state)
            else:
                chosen.is_face_up = True
                player.score_row.append(chosen)
                state.add_log(f"{player.name} scored {chosen.label} from Lucky Draw")

        elif kind == CardChoiceType.FARMER:
            chosen.is_face_up = False
            state.deck.append(chosen)
            for card in others:
                self._to_hand(state, actor, card)
            state.add_log(f"{player.name} farmed 2 cards")

        elif kind == CardChoiceType.RUMMAGER:
            self._to_hand(state, actor, chosen)
            for card in reversed(others):
                state.discard_pile.append(card)
            state.add_log(f"{player.name} rummaged {chosen.label}")

        elif kind == CardChoiceType.INTERROGATOR_STEAL:
            victim = state.opponent_index(actor)
            self._to_hand(state, actor, chosen)
            for card in others:
                self._to_hand(state, victim, card)
            state.add_log(f"{player.name} stole a card")

        self.win.check_after_effect(state, actor)
        return outcome

    def choose_option(self, state: GameState, value: str) -> EffectOutcome:
        """Answer an option choice."""
        if value not in {o.value for o in state.option_choices}:
            raise IllegalActionError(errors.INVALID_CHOICE, f"'{value}' is not an option")

        actor = state.current_player_index
        awaiting = state.action_state
        state.option_choices = []
        state.action_state = ActionState.IDLE
        state.clear_selection()

        if awaiting == ActionState.AWAITING_MIMIC_CHOICE:
            rank = Rank.parse(value)
            state.add_log(f"{state.current_player.name} mimics {rank.value}")
            return EffectOutcome(
                end_turn=False, follow_up=BaseEffect(player_index=actor, rank=rank)
            )

        if awaiting == ActionState.AWAITING_JACK_PLACEMENT:
            outcome = self._place_stolen_card(state, Row(value))
        elif awaiting == ActionState.AWAITING_INTERROGATOR_CHOICE:
            outcome = self._interrogate(state, value)
        elif awaiting == ActionState.AWAITING_SOFT_RESET_DRAW_CHOICE:
            outcome = self._soft_reset_draw(state, value)
        else:
            logger.warning("Option chosen in unexpected state %s", awaiting.value)
            outcome = EffectOutcome()

        self.win.check_after_effect(state, actor)
        return outcome

    def choose_target(
        self, state: GameState, target_player_index: int, card_id: str
    ) -> EffectOutcome:
        """Point at a board card for a Jack Steal or a Soft Reset row."""
        actor = state.current_player_index
        owner = state.players[target_player_index]

        if state.action_state == ActionState.AWAITING_JACK_TARGET:
            legal = {(i, c.id) for i, c in jack_targets(state, actor)}
            if (target_player_index, card_id) not in legal:
                raise IllegalActionError(errors.NO_VALID_TARGET, f"{card_id} cannot be stolen")
            card = take_card(owner.score_row, card_id)
            card.protected = False
            card.is_face_up = True
            state.card_choices = [card]
            state.card_choice_context = CardChoiceType.JACK_STEAL
            state.effect_context = JackStealContext(
                card_id=card.id, from_player_index=target_player_index
            )
            options = [
                OptionChoice("Score Row" if row == Row.SCORE else "Royalty Row", row.value)
                for row in Row
                if row_violation(card, row) is None
            ]
            self._await(state, ActionState.AWAITING_JACK_PLACEMENT, options=options)
            state.add_log(f"{state.current_player.name} stole {card.label} from {owner.name}")
            return EffectOutcome(end_turn=False)

        if state.action_state == ActionState.AWAITING_SOFT_RESET_TARGET_ROW:
            row = owner.locate(card_id)
            if row is None or (target_player_index, row) not in soft_reset_rows(state):
                raise IllegalActionError(errors.NO_VALID_TARGET, "That row cannot be soft reset")
            state.effect_context = SoftResetContext(
                target_player_index=target_player_index, target_row=row
            )
            self._await(state, ActionState.AWAITING_SOFT_RESET_DISCARD_CHOICE)
            return EffectOutcome(end_turn=False)

        raise IllegalActionError(errors.WRONG_PHASE, "No target is awaited")

    def confirm_discard(self, state: GameState, card_ids: list[str]) -> EffectOutcome:
        """Discard 1 or 2 cards from the Soft Reset row."""
        ctx = state.effect_context
        if not isinstance(ctx, SoftResetContext):
            raise IllegalActionError(errors.NO_PENDING_ACTION, "No Soft Reset in progress")
        if not 1 <= len(card_ids) <= 2 or len(set(card_ids)) != len(card_ids):
            raise IllegalActionError(errors.INVALID_CHOICE, "Select one or two cards")

        actor = state.current_player_index
        row = state.players[ctx.target_player_index].row(ctx.target_row)
        if any(find_card(row, cid) is None for cid in card_ids):
            raise IllegalActionError(errors.CARD_NOT_FOUND, "Selected cards are not in that row")

        for cid in card_ids:
            self._discard(state, take_card(row, cid))
        ctx.discarded_card_ids = list(card_ids)
        state.clear_selection()
        state.add_log(f"Soft Reset discarded {len(card_ids)} card(s)")

        outcome = EffectOutcome()
        if len(card_ids) == 1:
            self._finish(state)
            self.deck.draw(state, actor)
        else:
            options = self._soft_reset_draw_options(state, ctx)
            if options:
                self._await(state, ActionState.AWAITING_SOFT_RESET_DRAW_CHOICE, options=options)
                outcome = EffectOutcome(end_turn=False)
            else:
                self._finish(state)

        self.win.check_after_effect(state, actor)
        return outcome

    # =========================================================================
    # Sub-choice helpers
    # =========================================================================

    def _place_stolen_card(self, state: GameState, row: Row) -> EffectOutcome:
        card = state.card_choices.pop() if state.card_choices else None
        state.card_choice_context = None
        state.effect_context = None
        if card is None:
            return EffectOutcome()
        state.current_player.row(row).append(card)
        state.add_log(f"{state.current_player.name} placed {card.label} in their {row.value}")
        return EffectOutcome()

    def _interrogate(self, state: GameState, value: str) -> EffectOutcome:
        actor = state.current_player_index
        opponent = state.opponent_of(actor)
        if value == INTERROGATE_DISCARD:
            if len(opponent.hand) < 2:
                state.add_log(f"{opponent.name} has too few cards to discard")
                return EffectOutcome()
            for card in self.rng.sample(opponent.hand, 2):
                opponent.hand.remove(card)
                self._discard(state, card)
            state.add_log(f"{opponent.name} discarded 2 cards")
            return EffectOutcome()

        if not opponent.hand:
            state.add_log(f"{opponent.name} has no cards to reveal")
            return EffectOutcome()
        revealed = self.rng.sample(opponent.hand, min(3, len(opponent.hand)))
        for card in revealed:
            opponent.hand.remove(card)
            card.is_face_up = True
        self._offer_cards(state, revealed, CardChoiceType.INTERROGATOR_STEAL)
        return EffectOutcome(end_turn=False)

    def _soft_reset_draw_options(
        self, state: GameState, ctx: SoftResetContext
    ) -> list[OptionChoice]:
        options = []
        if state.deck:
            options.append(OptionChoice("Top of Deck", DRAW_TOP))
        if len(state.deck) > 1:
            options.append(OptionChoice("Bottom of Deck", DRAW_BOTTOM))
        if self._discard_source(state, ctx) is not None:
            options.append(OptionChoice("Discard Pile", DRAW_DISCARD))
        for i, slot in enumerate(state.swap_bar):
            if slot is not None:
                options.append(OptionChoice(f"Swap Bar {i + 1}", f"{DRAW_SWAP_PREFIX}{i}"))
        return options

    def _discard_source(self, state: GameState, ctx: SoftResetContext) -> Card | None:
        """Topmost discard that was not just discarded by this Soft Reset."""
        for card in reversed(state.discard_pile):
            if card.id not in ctx.discarded_card_ids:
                return card
        return None

    def _soft_reset_draw(self, state: GameState, value: str) -> EffectOutcome:
        ctx = state.effect_context
        actor = state.current_player_index
        self._finish(state)
        if not isinstance(ctx, SoftResetContext):
            return EffectOutcome()

        card = None
        if value == DRAW_TOP:
            self.deck.draw(state, actor)
        elif value == DRAW_BOTTOM and state.deck:
            card = state.deck.pop(0)
        elif value == DRAW_DISCARD:
            card = self._discard_source(state, ctx)
            if card is not None:
                state.discard_pile.remove(card)
        elif value.startswith(DRAW_SWAP_PREFIX):
            slot = int(value[len(DRAW_SWAP_PREFIX):])
            card = state.swap_bar[slot]
            state.swap_bar[slot] = None
        if card is not None:
            self._to_hand(state, actor, card)
        return EffectOutcome()

    # =========================================================================
    # Zone helpers
    # =========================================================================

    def _offer_cards(self, state: GameState, cards: list[Card], kind: CardChoiceType) -> None:
        for card in cards:
            card.is_face_up = True
        state.card_choices = list(cards)
        state.card_choice_context = kind
        self._await(state, CARD_CHOICE_STATES[kind])

    def _await(
        self,
        state: GameState,
        action_state: ActionState,
        options: list[OptionChoice] | None = None,
    ) -> None:
        state.action_state = action_state
        state.option_choices = list(options or [])
        state.clear_selection()

    def _finish(self, state: GameState) -> None:
        state.action_state = ActionState.IDLE
        state.effect_context = None
        state.option_choices = []
        state.clear_selection()

    def _discard(self, state: GameState, card: Card) -> None:
        card.is_face_up = True
        card.protected = False
        state.discard_pile.append(card)

    def _to_hand(self, state: GameState, player_index: int, card: Card) -> None:
        player = state.players[player_index]
        card.protected = False
        card.is_face_up = not player.is_ai
        player.hand.append(card)
