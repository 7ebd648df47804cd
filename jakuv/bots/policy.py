"""
Bot Policy - Interface for AI decision adapters.

A BotPolicy receives a redacted StateView plus the enumerated legal
choices and returns one of them. It must not mutate anything. Three
decision points exist:
- choose_turn_action: the seat starts or ends a turn
- choose_counter_response: the seat may counter a pending action
- choose_mid_turn_pick: the seat faces a forced sub-choice
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any
import random

from ..engine_core.action import Action
from ..engine_core.errors import JakuvError

if TYPE_CHECKING:
    from ..engine_core.cards import Card
    from ..engine_core.view import StateView


class AdapterError(JakuvError):
    """An adapter could not produce a usable decision."""


class CounterChoice(Enum):
    PASS = "pass"
    COUNTER = "counter"


@dataclass
class BotDecision:
    """
    A decision made by a bot.

    Contains:
    - The action to take
    - Reasoning (for narration/debugging)
    - Confidence in the decision
    """
    action: Action
    reasoning: str = ""
    confidence: float = 1.0

    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class CounterDecision:
    """Pass, or counter with a specific card from the legal set."""
    decision: CounterChoice
    card_id: str | None = None
    reasoning: str = ""

    def to_action(self, player_id: str) -> Action:
        if self.decision == CounterChoice.COUNTER and self.card_id:
            return Action.play_counter(player_id, self.card_id)
        return Action.pass_counter(player_id)


class BotPolicy(ABC):
    """
    Abstract base class for decision adapters.

    Implementations range from random play to a remote reasoning service.
    """

    @abstractmethod
    def choose_turn_action(
        self,
        view: StateView,
        legal_actions: list[Action],
    ) -> BotDecision:
        """
        Select a turn action.

        Args:
            view: Redacted state for the bot's seat
            legal_actions: Every legal turn action (never empty; draw is always offered)

        Returns:
            BotDecision with one of legal_actions
        """
        pass

    @abstractmethod
    def choose_counter_response(
        self,
        view: StateView,
        legal_counter_cards: list[Card],
    ) -> CounterDecision:
        """
        Respond to the pending action in view.state.action_context.

        Args:
            view: Redacted state for the bot's seat
            legal_counter_cards: Cards that may legally be played now

        Returns:
            CounterDecision passing or naming one of legal_counter_cards
        """
        pass

    @abstractmethod
    def choose_mid_turn_pick(
        self,
        view: StateView,
        legal_picks: list[Action],
    ) -> BotDecision:
        """
        Answer a forced sub-choice (view.state.action_state says which).

        Returns:
            BotDecision with one of legal_picks
        """
        pass

    def get_name(self) -> str:
        """Get the bot's name/identifier."""
        return self.__class__.__name__


class RandomPolicy(BotPolicy):
    """
    Random policy - selects uniformly at random.

    Used for:
    - Testing
    - Baseline comparison
    """

    def __init__(self, seed: int | None = None):
        self.rng = random.Random(seed)

    def choose_turn_action(self, view, legal_actions):
        if not legal_actions:
            raise AdapterError("No legal actions available")
        return BotDecision(
            action=self.rng.choice(legal_actions),
            reasoning="Random choice",
            confidence=1.0 / len(legal_actions),
        )

    def choose_counter_response(self, view, legal_counter_cards):
        options = [None] + list(legal_counter_cards)
        card = self.rng.choice(options)
        if card is None:
            return CounterDecision(CounterChoice.PASS, reasoning="Random pass")
        return CounterDecision(CounterChoice.COUNTER, card.id, reasoning="Random counter")

    def choose_mid_turn_pick(self, view, legal_picks):
        if not legal_picks:
            raise AdapterError("No legal picks available")
        return BotDecision(action=self.rng.choice(legal_picks), reasoning="Random pick")


class FirstLegalPolicy(BotPolicy):
    """
    Always takes the first legal option.

    Deterministic; useful for reproducible tests.
    """

    def choose_turn_action(self, view, legal_actions):
        if not legal_actions:
            raise AdapterError("No legal actions available")
        return BotDecision(action=legal_actions[0], reasoning="First legal action")

    def choose_counter_response(self, view, legal_counter_cards):
        if legal_counter_cards:
            return CounterDecision(
                CounterChoice.COUNTER, legal_counter_cards[0].id, reasoning="First legal counter"
            )
        return CounterDecision(CounterChoice.PASS, reasoning="No counter available")

    def choose_mid_turn_pick(self, view, legal_picks):
        if not legal_picks:
            raise AdapterError("No legal picks available")
        return BotDecision(action=legal_picks[0], reasoning="First legal pick")
