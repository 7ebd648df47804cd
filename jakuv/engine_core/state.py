"""
Game State - The single authoritative aggregate the engine operates on.

Design principles:
- Owned by one Session; every change goes through the Reducer
- The Reducer mutates a clone and swaps it in, so transitions are atomic
- Serializable: plain dataclasses, enums and lists of Cards
- action_state is the authoritative "what input is awaited" signal
"""

from __future__ import annotations
from dataclasses import dataclass, field
from copy import deepcopy
from enum import Enum

from .cards import Card, Rank, create_deck
from .contexts import (
    CardChoiceType,
    EffectContext,
    GameAction,
    OptionChoice,
    Row,
)


class GamePhase(Enum):
    """Coarse game modes."""
    START_SCREEN = "start_screen"
    PLAYER1_START = "player1_start"  # first player's restricted opening turn
    PLAYER_TURN = "player_turn"
    COUNTER = "counter"
    GAME_OVER = "game_over"


class ActionState(Enum):
    """Fine-grained sub-phase: exactly which input the engine waits for."""
    IDLE = "idle"
    CARD_SELECTED = "card_selected"
    AWAITING_COUNTER = "awaiting_counter"
    AWAITING_NINE_PEEK_CHOICE = "awaiting_nine_peek_choice"
    AWAITING_JACK_TARGET = "awaiting_jack_target"
    AWAITING_JACK_PLACEMENT = "awaiting_jack_placement"
    AWAITING_LUCKY_DRAW_CHOICE = "awaiting_lucky_draw_choice"
    AWAITING_FARMER_CHOICE = "awaiting_farmer_choice"
    AWAITING_SOFT_RESET_TARGET_ROW = "awaiting_soft_reset_target_row"
    AWAITING_SOFT_RESET_DISCARD_CHOICE = "awaiting_soft_reset_discard_choice"
    AWAITING_SOFT_RESET_DRAW_CHOICE = "awaiting_soft_reset_draw_choice"
    AWAITING_INTERROGATOR_CHOICE = "awaiting_interrogator_choice"
    AWAITING_INTERROGATOR_STEAL_CHOICE = "awaiting_interrogator_steal_choice"
    AWAITING_MIMIC_CHOICE = "awaiting_mimic_choice"
    AWAITING_RUMMAGER_CHOICE = "awaiting_rummager_choice"
    AWAITING_END_TURN_DISCARD = "awaiting_end_turn_discard"
    AWAITING_OVERCHARGE_DISCARD = "awaiting_overcharge_discard"


# Sub-phases in which the acting seat may start a new turn action.
TURN_OPEN_STATES = frozenset({ActionState.IDLE, ActionState.CARD_SELECTED})


@dataclass
class LogEntry:
    """A line of game narration."""
    turn: int
    message: str


@dataclass
class PlayerState:
    """
    State for a single seat.

    hand is ordered; the rows keep insertion order.
    """
    player_id: str
    name: str
    is_ai: bool = False

    hand: list[Card] = field(default_factory=list)
    score_row: list[Card] = field(default_factory=list)
    royalty_row: list[Card] = field(default_factory=list)

    hand_revealed_until_turn: int = 0
    is_immune: bool = False

    def row(self, row: Row) -> list[Card]:
        """Get a board row by name."""
        if row == Row.SCORE:
            return self.score_row
        return self.royalty_row

    @property
    def board(self) -> list[Card]:
        return self.score_row + self.royalty_row

    def has_queen_protection(self) -> bool:
        """A Queen in the royalty row shields the score row."""
        return any(c.rank == Rank.QUEEN for c in self.royalty_row)

    def locate(self, card_id: str) -> Row | None:
        """Which row holds card_id, if any."""
        for row in Row:
            if any(c.id == card_id for c in self.row(row)):
                return row
        return None


@dataclass
class GameState:
    """
    Complete game state at a point in time.

    deck and discard_pile are stacks whose last element is the top.
    """
    game_id: str

    phase: GamePhase = GamePhase.START_SCREEN
    action_state: ActionState = ActionState.IDLE
    turn: int = 0
    current_player_index: int = 0

    players: list[PlayerState] = field(default_factory=list)

    # Shared zones
    deck: list[Card] = field(default_factory=list)
    discard_pile: list[Card] = field(default_factory=list)
    swap_bar: list[Card | None] = field(default_factory=list)

    # Transient selection
    selected_card_id: str | None = None
    selected_card_ids: list[str] = field(default_factory=list)
    selected_swap_card_id: str | None = None

    # Effect resolution
    effect_context: EffectContext | None = None
    card_choices: list[Card] = field(default_factory=list)
    card_choice_context: CardChoiceType | None = None
    option_choices: list[OptionChoice] = field(default_factory=list)

    # Counter protocol
    action_context: GameAction | None = None
    counter_stack: list[Card] = field(default_factory=list)
    consecutive_passes: int = 0

    # Per-turn flags
    swap_used_this_turn: bool = False
    lucky_draw_chains: int = 0

    # Outcome
    winner: int | None = None
    win_reason: str | None = None

    log: list[LogEntry] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        game_id: str,
        player_name: str = "Player 1",
        ai_name: str = "AI Opponent",
    ) -> GameState:
        """
        Create a fresh start-screen state.

        The whole unshuffled universe sits in the deck until a game is dealt.
        """
        return cls(
            game_id=game_id,
            players=[
                PlayerState(player_id="player1", name=player_name, is_ai=False),
                PlayerState(player_id="player2", name=ai_name, is_ai=True),
            ],
            deck=create_deck(),
        )

    @property
    def current_player(self) -> PlayerState:
        return self.players[self.current_player_index]

    @property
    def is_game_over(self) -> bool:
        return self.winner is not None or self.phase == GamePhase.GAME_OVER

    def opponent_index(self, player_index: int) -> int:
        return 1 - player_index

    def opponent_of(self, player_index: int) -> PlayerState:
        return self.players[1 - player_index]

    def index_of(self, player_id: str) -> int | None:
        for i, p in enumerate(self.players):
            if p.player_id == player_id:
                return i
        return None

    def add_log(self, message: str) -> None:
        self.log.append(LogEntry(turn=self.turn, message=message))

    def clear_selection(self) -> None:
        self.selected_card_id = None
        self.selected_card_ids = []
        self.selected_swap_card_id = None

    def all_cards(self) -> list[Card]:
        """Every card in every container, for conservation checks."""
        cards = list(self.deck) + list(self.discard_pile)
        cards.extend(c for c in self.swap_bar if c is not None)
        for p in self.players:
            cards.extend(p.hand)
            cards.extend(p.score_row)
            cards.extend(p.royalty_row)
        cards.extend(self.card_choices)
        cards.extend(self.counter_stack)
        return cards

    def clone(self) -> GameState:
        """Create a deep copy of this state."""
        return deepcopy(self)
