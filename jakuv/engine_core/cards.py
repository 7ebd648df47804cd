"""
Card Universe - Ranks, suits and the card instances that move between zones.

Design principles:
- Cards are never created or destroyed after the deck is built; they only move
- Identity (id, rank, suit) is fixed, visibility and Ace value are mutable
- Zones are plain ordered lists; the end of a list is its "top"
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class Suit(Enum):
    """The four suits."""
    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"

    @property
    def color(self) -> Color:
        if self in (Suit.HEARTS, Suit.DIAMONDS):
            return Color.RED
        return Color.BLACK

    @property
    def symbol(self) -> str:
        return {
            Suit.HEARTS: "♥",
            Suit.DIAMONDS: "♦",
            Suit.CLUBS: "♣",
            Suit.SPADES: "♠",
        }[self]


class Color(Enum):
    RED = "red"
    BLACK = "black"


class Rank(Enum):
    """Card ranks. Values are the printed rank."""
    ACE = "A"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"

    @property
    def is_royal(self) -> bool:
        return self in ROYAL_RANKS

    @classmethod
    def parse(cls, value: str) -> Rank:
        """Parse a printed rank ("A", "10", "q")."""
        return cls(value.upper())


ROYAL_RANKS = frozenset({Rank.JACK, Rank.QUEEN, Rank.KING})

# Ranks that can be played for their special ability.
BASE_EFFECT_RANKS = frozenset({
    Rank.JACK, Rank.SEVEN, Rank.SIX, Rank.FOUR, Rank.THREE, Rank.TWO,
})

# Ranks a Mimic (2) may copy.
MIMIC_RANKS = (Rank.THREE, Rank.FOUR, Rank.SIX, Rank.SEVEN)

ACE_CYCLE = {1: 3, 3: 5, 5: 1}


@dataclass
class Card:
    """
    A physical card.

    ace_value is only meaningful for Aces; protected only for an 8
    sitting in a score row.
    """
    id: str
    rank: Rank
    suit: Suit
    is_face_up: bool = False
    ace_value: int | None = None
    protected: bool = False

    def __post_init__(self):
        if self.rank == Rank.ACE and self.ace_value is None:
            self.ace_value = 1

    def __hash__(self):
        return hash(self.id)

    def __eq__(self, other):
        if not isinstance(other, Card):
            return False
        return self.id == other.id

    @property
    def color(self) -> Color:
        return self.suit.color

    @property
    def is_royal(self) -> bool:
        return self.rank.is_royal

    @property
    def label(self) -> str:
        return f"{self.rank.value}{self.suit.symbol}"

    def cycle_ace(self) -> None:
        """Advance an Ace's value 1 -> 3 -> 5 -> 1."""
        if self.rank == Rank.ACE:
            self.ace_value = ACE_CYCLE.get(self.ace_value or 1, 1)

    def __repr__(self) -> str:
        return f"Card({self.id})"


def card_id_for(rank: Rank, suit: Suit) -> str:
    return f"{rank.value}{suit.name[0]}"


def create_deck() -> list[Card]:
    """Build the full, unshuffled 52-card universe."""
    return [
        Card(id=card_id_for(rank, suit), rank=rank, suit=suit)
        for suit in Suit
        for rank in Rank
    ]


def find_card(cards: list[Card], card_id: str | None) -> Card | None:
    """Find a card by id in a zone."""
    if card_id is None:
        return None
    for card in cards:
        if card.id == card_id:
            return card
    return None


def take_card(cards: list[Card], card_id: str) -> Card | None:
    """Remove a card from a zone and return it (None if absent)."""
    for i, card in enumerate(cards):
        if card.id == card_id:
            return cards.pop(i)
    return None
