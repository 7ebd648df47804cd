"""
Action System - Player intents, payloads, and results.

Actions represent:
1. Turn moves (play to a row, scuttle, play for effect, marriage, draw, swap bar)
2. Counter-protocol responses (play a counter card, pass)
3. Answers to forced sub-choices (card, option, target, discard)
4. Session control (start a new game, reset)

All state changes flow through actions. The move an Action proposes to
the counter protocol is a GameAction (see contexts.py).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ActionType(Enum):
    """Types of intents the engine accepts."""
    # Session control
    START_NEW_GAME = "start_new_game"
    RESET_GAME = "reset_game"

    # Turn moves
    SELECT_CARD = "select_card"
    PLAY_TO_ROW = "play_to_row"
    SCUTTLE = "scuttle"
    PLAY_FOR_EFFECT = "play_for_effect"
    ROYAL_MARRIAGE = "royal_marriage"
    SWAP_BAR = "swap_bar"
    DRAW = "draw"  # ends the turn

    # Counter protocol
    PLAY_COUNTER = "play_counter"
    PASS_COUNTER = "pass_counter"

    # Forced sub-choices
    CHOOSE_CARD = "choose_card"
    CHOOSE_OPTION = "choose_option"
    CHOOSE_TARGET = "choose_target"
    CONFIRM_DISCARD = "confirm_discard"
    DISCARD = "discard"  # hand-limit and overcharge discards


@dataclass
class ActionPayload:
    """
    Parameters of an intent.

    Different action types use different fields; validation happens in
    the reducer.
    """
    player_id: str | None = None
    card_id: str | None = None

    # Scuttle / targeted effects
    target_card_id: str | None = None
    target_player_id: str | None = None

    # Play to row ("score_row" or "royalty_row")
    row: str | None = None

    # Swap bar
    slot_index: int | None = None

    # Choice responses
    choice_value: str | None = None
    card_ids: list[str] | None = None


@dataclass
class Action:
    """
    A complete intent to be applied to the game state.

    Two actions with the same type and payload are equal, so adapter
    answers can be checked against the enumerated legal list.
    """
    action_type: ActionType
    payload: ActionPayload
    action_id: str | None = field(default=None, compare=False)

    @property
    def player_id(self) -> str | None:
        return self.payload.player_id

    @classmethod
    def start_new_game(cls) -> Action:
        return cls(action_type=ActionType.START_NEW_GAME, payload=ActionPayload())

    @classmethod
    def reset_game(cls) -> Action:
        return cls(action_type=ActionType.RESET_GAME, payload=ActionPayload())

    @classmethod
    def select_card(cls, player_id: str, card_id: str) -> Action:
        return cls(
            action_type=ActionType.SELECT_CARD,
            payload=ActionPayload(player_id=player_id, card_id=card_id),
        )

    @classmethod
    def play_to_row(cls, player_id: str, card_id: str, row: str) -> Action:
        """Factory for playing a hand card to "score_row" or "royalty_row"."""
        return cls(
            action_type=ActionType.PLAY_TO_ROW,
            payload=ActionPayload(player_id=player_id, card_id=card_id, row=row),
        )

    @classmethod
    def scuttle(
        cls,
        player_id: str,
        card_id: str,
        target_card_id: str,
        target_player_id: str | None = None,
    ) -> Action:
        return cls(
            action_type=ActionType.SCUTTLE,
            payload=ActionPayload(
                player_id=player_id,
                card_id=card_id,
                target_card_id=target_card_id,
                target_player_id=target_player_id,
            ),
        )

    @classmethod
    def play_for_effect(cls, player_id: str, card_id: str) -> Action:
        return cls(
            action_type=ActionType.PLAY_FOR_EFFECT,
            payload=ActionPayload(player_id=player_id, card_id=card_id),
        )

    @classmethod
    def royal_marriage(cls, player_id: str, card_id: str) -> Action:
        """Factory for a marriage; card_id is either half of the pair."""
        return cls(
            action_type=ActionType.ROYAL_MARRIAGE,
            payload=ActionPayload(player_id=player_id, card_id=card_id),
        )

    @classmethod
    def swap_bar(
        cls, player_id: str, slot_index: int, card_id: str | None = None
    ) -> Action:
        """Take a face-up slot, or trade card_id into a face-down slot."""
        return cls(
            action_type=ActionType.SWAP_BAR,
            payload=ActionPayload(
                player_id=player_id, slot_index=slot_index, card_id=card_id
            ),
        )

    @classmethod
    def draw(cls, player_id: str) -> Action:
        return cls(action_type=ActionType.DRAW, payload=ActionPayload(player_id=player_id))

    @classmethod
    def play_counter(cls, player_id: str, card_id: str) -> Action:
        return cls(
            action_type=ActionType.PLAY_COUNTER,
            payload=ActionPayload(player_id=player_id, card_id=card_id),
        )

    @classmethod
    def pass_counter(cls, player_id: str) -> Action:
        return cls(
            action_type=ActionType.PASS_COUNTER,
            payload=ActionPayload(player_id=player_id),
        )

    @classmethod
    def choose_card(cls, player_id: str, card_id: str) -> Action:
        return cls(
            action_type=ActionType.CHOOSE_CARD,
            payload=ActionPayload(player_id=player_id, card_id=card_id),
        )

    @classmethod
    def choose_option(cls, player_id: str, value: str) -> Action:
        return cls(
            action_type=ActionType.CHOOSE_OPTION,
            payload=ActionPayload(player_id=player_id, choice_value=value),
        )

    @classmethod
    def choose_target(
        cls, player_id: str, target_player_id: str, card_id: str
    ) -> Action:
        """Point at a board card (Jack target, or any card of a Soft Reset row)."""
        return cls(
            action_type=ActionType.CHOOSE_TARGET,
            payload=ActionPayload(
                player_id=player_id,
                target_player_id=target_player_id,
                target_card_id=card_id,
            ),
        )

    @classmethod
    def confirm_discard(cls, player_id: str, card_ids: list[str]) -> Action:
        return cls(
            action_type=ActionType.CONFIRM_DISCARD,
            payload=ActionPayload(player_id=player_id, card_ids=list(card_ids)),
        )

    @classmethod
    def discard(cls, player_id: str, card_id: str) -> Action:
        return cls(
            action_type=ActionType.DISCARD,
            payload=ActionPayload(player_id=player_id, card_id=card_id),
        )


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New state (if succeeded)
    - Errors (if failed)
    - Narration produced by the transition
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: str | None = None

    state_changes: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(success=True, new_state=state, state_changes=changes or [])
