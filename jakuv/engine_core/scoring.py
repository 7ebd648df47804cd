"""
Scoring - Point value of a card and a player's total.

Pure functions of the cards passed in; no side effects.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from .cards import Card, Rank
from .contexts import Row

if TYPE_CHECKING:
    from .state import PlayerState


FACE_VALUES = {
    Rank.QUEEN: 2,
    Rank.KING: 7,
}


def card_value(card: Card, row: Row | None = None) -> int:
    """
    Point value of a card.

    A Jack is worth 4 in a score row and 5 in the royalty row; an Ace is
    worth its current cycle value. Cards outside a row (row=None) are
    valued as if they were in a score row.
    """
    if card.rank == Rank.ACE:
        return card.ace_value or 1
    if card.rank == Rank.JACK:
        return 5 if row == Row.ROYALTY else 4
    if card.rank in FACE_VALUES:
        return FACE_VALUES[card.rank]
    return int(card.rank.value)


def player_score(player: PlayerState) -> int:
    """Sum of card values across both of a player's rows."""
    return (
        sum(card_value(c, Row.SCORE) for c in player.score_row)
        + sum(card_value(c, Row.ROYALTY) for c in player.royalty_row)
    )


def distance_from_target(player: PlayerState, target: int) -> int:
    return abs(target - player_score(player))
