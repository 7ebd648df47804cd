"""
Deck & Swap-Bar Manager - Dealing, drawing and reshuffling.

The deck is a stack (top = last element). When it runs dry the discard
pile and whatever is left in the swap bar are shuffled into a new deck
and the swap bar is dealt again with only its middle slot face-up. If
there is nothing to reshuffle, the game ends by exhaustion.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import random

from .cards import Card, create_deck
from .rules import RuleConfig
from .state import GameState, GamePhase, ActionState
from .win import WinEvaluator

logger = logging.getLogger(__name__)


@dataclass
class DeckManager:
    rules: RuleConfig = field(default_factory=RuleConfig)
    rng: random.Random = field(default_factory=random.Random)
    win: WinEvaluator | None = None

    def __post_init__(self):
        if self.win is None:
            self.win = WinEvaluator(rules=self.rules, rng=self.rng)

    def shuffle(self, cards: list[Card]) -> None:
        """Uniform in-place permutation (random.shuffle is Fisher-Yates)."""
        self.rng.shuffle(cards)

    def deal_new_game(self, state: GameState) -> None:
        """
        Deal a fresh game into a start-screen state.

        Every card is gathered back into the deck first, so dealing is
        valid on any state regardless of where the cards were.
        """
        cards = create_deck()
        self.shuffle(cards)
        state.deck = cards
        state.discard_pile = []
        state.card_choices = []
        state.counter_stack = []
        for player in state.players:
            player.hand = []
            player.score_row = []
            player.royalty_row = []
            player.hand_revealed_until_turn = 0
            player.is_immune = False

        for _ in range(self.rules.initial_hand_size):
            for player in state.players:
                card = state.deck.pop()
                card.is_face_up = not player.is_ai
                player.hand.append(card)

        state.swap_bar = []
        self._deal_swap_bar(state)

        state.phase = GamePhase.PLAYER1_START
        state.action_state = ActionState.IDLE
        state.turn = 1
        state.current_player_index = 0
        state.winner = None
        state.win_reason = None
        state.add_log("New game dealt")
        logger.debug("Dealt game %s: deck=%d", state.game_id, len(state.deck))

    def _deal_swap_bar(self, state: GameState, reserve: int = 0) -> None:
        """Deal the bar left to right, leaving at least `reserve` cards in the deck."""
        slots: list[Card | None] = []
        for i in range(self.rules.swap_bar_size):
            card = state.deck.pop() if len(state.deck) > reserve else None
            if card is not None:
                card.is_face_up = i == self.rules.middle_slot
            slots.append(card)
        state.swap_bar = slots

    def ensure_deck_has_cards(self, state: GameState) -> bool:
        """
        Make sure a card can be drawn.

        Returns False (after resolving the exhaustion win) when nothing is
        left anywhere to reshuffle.
        """
        if state.deck:
            return True

        pool = list(state.discard_pile)
        pool.extend(c for c in state.swap_bar if c is not None)
        if not pool:
            state.add_log("Deck and discard pile are empty")
            self.win.resolve_exhaustion(state)
            return False

        for card in pool:
            card.is_face_up = False
            card.protected = False
        self.shuffle(pool)
        state.deck = pool
        state.discard_pile = []
        # A small pool fills the bar only after one card is kept for the draw
        self._deal_swap_bar(state, reserve=1)
        state.add_log("Discard pile reshuffled into the deck")
        logger.info("Reshuffled %d cards in game %s", len(pool), state.game_id)
        return True

    def draw(self, state: GameState, player_index: int, count: int = 1) -> list[Card]:
        """Draw up to count cards into a hand, reshuffling as needed."""
        player = state.players[player_index]
        drawn = []
        for _ in range(count):
            if not self.ensure_deck_has_cards(state):
                break
            card = state.deck.pop()
            card.is_face_up = not player.is_ai
            player.hand.append(card)
            drawn.append(card)
        return drawn

    def take_top(self, state: GameState, count: int) -> list[Card]:
        """Pop up to count cards off the deck face-up, top card first."""
        taken = []
        for _ in range(min(count, len(state.deck))):
            card = state.deck.pop()
            card.is_face_up = True
            taken.append(card)
        return taken
