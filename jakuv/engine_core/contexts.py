"""
In-flight contexts - Typed variants for everything the engine parks between intents.

Three families:
- GameAction: the single proposed action waiting on the counter protocol
- EffectContext: data an effect carries across its forced sub-choices
- CardChoiceType: which effect put the cards in state.card_choices

Each family is a closed set of dataclasses (or enum members); code
dispatches on the concrete type rather than on loose dict keys.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from .cards import Rank


class Row(Enum):
    """Board rows a card can be played to."""
    SCORE = "score_row"
    ROYALTY = "royalty_row"


class GameActionType(Enum):
    """Types of proposed actions."""
    PLAY_CARD = "play_card"
    ROYAL_PLAY = "royal_play"
    SCUTTLE = "scuttle"
    BASE_EFFECT = "base_effect"
    ROYAL_MARRIAGE = "royal_marriage"
    SECOND_QUEEN_EDICT = "second_queen_edict"
    RUMMAGER_EFFECT = "rummager_effect"


# =============================================================================
# Proposed actions
# =============================================================================

@dataclass
class PlayToRow:
    """Play a card from hand into one of the actor's rows."""
    player_index: int
    card_id: str
    row: Row
    royal: bool = False

    @property
    def action_type(self) -> GameActionType:
        return GameActionType.ROYAL_PLAY if self.royal else GameActionType.PLAY_CARD

    @property
    def counterable(self) -> bool:
        return self.royal

    @property
    def initiator_card_ids(self) -> list[str]:
        return [self.card_id]


@dataclass
class Scuttle:
    """Attack a card in the opponent's score row."""
    player_index: int
    attacker_card_id: str
    target_card_id: str
    target_player_index: int

    @property
    def action_type(self) -> GameActionType:
        return GameActionType.SCUTTLE

    @property
    def counterable(self) -> bool:
        return True

    @property
    def initiator_card_ids(self) -> list[str]:
        return [self.attacker_card_id]


@dataclass
class BaseEffect:
    """
    Play a card for its ability.

    card_id is None when the effect was copied by a Mimic, whose card is
    already in the discard pile.
    """
    player_index: int
    rank: Rank
    card_id: str | None = None

    @property
    def action_type(self) -> GameActionType:
        return GameActionType.BASE_EFFECT

    @property
    def counterable(self) -> bool:
        return self.rank != Rank.SIX

    @property
    def initiator_card_ids(self) -> list[str]:
        return [self.card_id] if self.card_id else []


@dataclass
class RoyalMarriage:
    """Play a King and Queen of the same color to the royalty row together."""
    player_index: int
    king_card_id: str
    queen_card_id: str

    @property
    def action_type(self) -> GameActionType:
        return GameActionType.ROYAL_MARRIAGE

    @property
    def counterable(self) -> bool:
        return True

    @property
    def initiator_card_ids(self) -> list[str]:
        return [self.king_card_id, self.queen_card_id]


@dataclass
class SecondQueenEdict:
    """Follow-up of a second Queen: actor draws 1, opponent discards 1 at random."""
    player_index: int

    @property
    def action_type(self) -> GameActionType:
        return GameActionType.SECOND_QUEEN_EDICT

    @property
    def counterable(self) -> bool:
        return True

    @property
    def initiator_card_ids(self) -> list[str]:
        return []


@dataclass
class RummagerEffect:
    """Follow-up of a 5 in the score row: take one of the top two discards."""
    player_index: int

    @property
    def action_type(self) -> GameActionType:
        return GameActionType.RUMMAGER_EFFECT

    @property
    def counterable(self) -> bool:
        return True

    @property
    def initiator_card_ids(self) -> list[str]:
        return []


GameAction = Union[
    PlayToRow, Scuttle, BaseEffect, RoyalMarriage, SecondQueenEdict, RummagerEffect,
]


# =============================================================================
# Effect contexts
# =============================================================================

@dataclass
class JackStealContext:
    """A stolen card (held in card_choices) awaiting a row."""
    card_id: str
    from_player_index: int


@dataclass
class SoftResetContext:
    """A Soft Reset that has picked its row and may have discarded from it."""
    target_player_index: int
    target_row: Row
    discarded_card_ids: list[str] = field(default_factory=list)


EffectContext = Union[JackStealContext, SoftResetContext]


class CardChoiceType(Enum):
    """Which effect produced state.card_choices."""
    NINE_SCUTTLE_PEEK = "nine_scuttle_peek"
    LUCKY_DRAW = "lucky_draw"
    FARMER = "farmer"
    RUMMAGER = "rummager"
    INTERROGATOR_STEAL = "interrogator_steal"
    JACK_STEAL = "jack_steal"


@dataclass
class OptionChoice:
    """A non-card decision offered to the actor."""
    label: str
    value: str
