"""
Redacted views - What a seat is allowed to see.

Adapters never receive the authoritative state. They get a deep copy in
which the opposing hand (unless revealed by a second 8) and the deck
order are hidden; only their sizes remain. Face-down swap-bar slots are
emptied and listed in hidden_swap_slots.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .state import GameState


@dataclass
class StateView:
    """A read-only snapshot prepared for one seat."""
    state: GameState
    seat: int
    opponent_hand_size: int
    opponent_hand_revealed: bool
    deck_size: int
    hidden_swap_slots: list[int] = field(default_factory=list)

    @property
    def me(self):
        return self.state.players[self.seat]

    @property
    def opponent(self):
        return self.state.players[1 - self.seat]


def is_hand_revealed(state: GameState, player_index: int) -> bool:
    return state.players[player_index].hand_revealed_until_turn >= state.turn


def redacted_view(state: GameState, seat: int) -> StateView:
    """Copy state for seat with hidden information removed."""
    snapshot = state.clone()
    opponent_index = 1 - seat
    revealed = is_hand_revealed(state, opponent_index)
    opponent = snapshot.players[opponent_index]
    hand_size = len(opponent.hand)
    if not revealed:
        opponent.hand = []
    deck_size = len(snapshot.deck)
    snapshot.deck = []
    hidden = [i for i, c in enumerate(snapshot.swap_bar) if c is not None and not c.is_face_up]
    for i in hidden:
        snapshot.swap_bar[i] = None
    return StateView(
        state=snapshot,
        seat=seat,
        opponent_hand_size=hand_size,
        opponent_hand_revealed=revealed,
        deck_size=deck_size,
        hidden_swap_slots=hidden,
    )
