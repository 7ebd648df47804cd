"""
Legality checks shared by the Reducer and the ActionGenerator.

Each *_violation function returns the IllegalActionError that the move
would raise, or None when the move is legal.
"""

from __future__ import annotations

from . import errors
from .cards import Card, Rank, BASE_EFFECT_RANKS
from .contexts import Row
from .errors import IllegalActionError
from .scoring import card_value
from .state import GameState, PlayerState


def row_violation(card: Card, row: Row) -> IllegalActionError | None:
    """Only royals sit in the royalty row; a King never scores in the score row."""
    if row == Row.ROYALTY and not card.is_royal:
        return IllegalActionError(
            errors.INVALID_ROW, f"{card.label} cannot be played to the royalty row"
        )
    if row == Row.SCORE and card.rank == Rank.KING:
        return IllegalActionError(
            errors.INVALID_ROW, "Kings cannot be played to the score row"
        )
    return None


def is_royal_play(card: Card, row: Row) -> bool:
    """A Jack crowned into royalty, or any Queen or King."""
    if card.rank == Rank.JACK:
        return row == Row.ROYALTY
    return card.rank in (Rank.QUEEN, Rank.KING)


def scuttle_violation(
    state: GameState,
    player_index: int,
    attacker: Card,
    target_player_index: int,
    target_card_id: str,
) -> IllegalActionError | None:
    """Check an attack against a card in the opponent's score row."""
    if target_player_index == player_index:
        return IllegalActionError(errors.INVALID_CHOICE, "You cannot scuttle your own cards")
    owner = state.players[target_player_index]
    target = next((c for c in owner.score_row if c.id == target_card_id), None)
    if target is None:
        return IllegalActionError(
            errors.CARD_NOT_FOUND, f"{target_card_id} is not in {owner.name}'s score row"
        )
    if owner.is_immune:
        return IllegalActionError(errors.TARGET_IMMUNE, f"{owner.name} is immune")

    if attacker.rank != Rank.TEN:
        if owner.has_queen_protection():
            return IllegalActionError(
                errors.TARGET_PROTECTED, "A Queen protects that score row; only a 10 can scuttle it"
            )
        if target.rank == Rank.ACE:
            return IllegalActionError(
                errors.TARGET_PROTECTED, "Aces can only be scuttled by a 10"
            )

    if not attacker.is_royal and card_value(attacker, Row.SCORE) < card_value(target, Row.SCORE):
        return IllegalActionError(
            errors.INSUFFICIENT_VALUE,
            f"{attacker.label} is too weak to scuttle {target.label}",
        )
    return None


def jack_targets(state: GameState, actor_index: int) -> list[tuple[int, Card]]:
    """Score-row cards a Jack may steal."""
    targets = []
    for index, player in enumerate(state.players):
        if player.is_immune:
            continue
        if index != actor_index and player.has_queen_protection():
            continue
        targets.extend((index, card) for card in player.score_row)
    return targets


def soft_reset_rows(state: GameState) -> list[tuple[int, Row]]:
    """Non-empty rows of non-immune players."""
    rows = []
    for index, player in enumerate(state.players):
        if player.is_immune:
            continue
        for row in Row:
            if player.row(row):
                rows.append((index, row))
    return rows


def effect_violation(
    state: GameState, player_index: int, card: Card
) -> IllegalActionError | None:
    """Check playing a card from hand for its ability."""
    if card.rank not in BASE_EFFECT_RANKS:
        return IllegalActionError(
            errors.INVALID_CHOICE, f"{card.label} has no ability to play"
        )
    opponent = state.opponent_of(player_index)
    if opponent.is_immune and card.rank in (Rank.JACK, Rank.FOUR, Rank.THREE):
        return IllegalActionError(
            errors.TARGET_IMMUNE, f"{opponent.name} is immune to that ability"
        )
    if card.rank == Rank.JACK and not jack_targets(state, player_index):
        return IllegalActionError(errors.NO_VALID_TARGET, "No card can be stolen")
    if card.rank == Rank.FOUR and not soft_reset_rows(state):
        return IllegalActionError(errors.NO_VALID_TARGET, "No row can be soft reset")
    return None


def marriage_partner(player: PlayerState, card: Card) -> Card | None:
    """The same-color King or Queen that completes a marriage with card."""
    if card.rank == Rank.KING:
        wanted = Rank.QUEEN
    elif card.rank == Rank.QUEEN:
        wanted = Rank.KING
    else:
        return None
    for other in player.hand:
        if other.rank == wanted and other.color == card.color:
            return other
    return None
