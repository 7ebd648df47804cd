"""
LLM Policy - Decision adapter backed by a remote reasoning service.

Supports (via an injected or auto-created completion client):
- OpenAI (GPT models)
- Anthropic (Claude models)

The model only ever picks an index into the engine's own legal list.
Anything else (transport errors, unparsable or out-of-range answers)
raises AdapterError; the game loop then applies its deterministic fallback.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol
import json
import logging
import os
import re

from .policy import BotPolicy, BotDecision, CounterDecision, CounterChoice, AdapterError
from .prompts import AdapterPrompts, describe_action
from ..engine_core.action import Action
from ..engine_core.cards import Card
from ..engine_core.rules import RuleConfig

if TYPE_CHECKING:
    from ..engine_core.view import StateView

logger = logging.getLogger(__name__)


class CompletionClient(Protocol):
    """Anything that turns a (system, prompt) pair into text."""

    def complete(self, system: str, prompt: str) -> str:
        ...


@dataclass
class OpenAIClient:
    """Completion client for OpenAI chat models."""
    model: str = "gpt-4o-mini"
    temperature: float = 0.3
    max_tokens: int = 512

    def __post_init__(self):
        self._client = None

    def _get_client(self):
        if self._client is None:
            from openai import OpenAI
            self._client = OpenAI(api_key=os.environ.get("OPENAI_API_KEY"))
        return self._client

    def complete(self, system: str, prompt: str) -> str:
        response = self._get_client().chat.completions.create(
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
        )
        return response.choices[0].message.content or ""


@dataclass
class AnthropicClient:
    """Completion client for Anthropic Claude models."""
    model: str = "claude-3-5-haiku-latest"
    max_tokens: int = 512

    def __post_init__(self):
        self._client = None

    def _get_client(self):
        if self._client is None:
            from anthropic import Anthropic
            self._client = Anthropic(api_key=os.environ.get("ANTHROPIC_API_KEY"))
        return self._client

    def complete(self, system: str, prompt: str) -> str:
        response = self._get_client().messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=system,
            messages=[{"role": "user", "content": prompt}],
        )
        return response.content[0].text


def create_client(model: str) -> CompletionClient:
    """Pick a provider from the model name."""
    if "claude" in model.lower():
        return AnthropicClient(model=model)
    return OpenAIClient(model=model)


class LLMPolicy(BotPolicy):
    """
    Policy that asks a language model for every decision.

    Usage:
        policy = LLMPolicy(model="gpt-4o-mini")
        decision = policy.choose_turn_action(view, legal)
    """

    def __init__(
        self,
        client: CompletionClient | None = None,
        model: str | None = None,
        rules: RuleConfig | None = None,
    ):
        self.model = model or os.getenv("JAKUV_LLM_MODEL", "gpt-4o-mini")
        self.client = client or create_client(self.model)
        self.rules = rules or RuleConfig()

    def get_name(self) -> str:
        return f"LLMPolicy({self.model})"

    def choose_turn_action(self, view: StateView, legal_actions: list[Action]) -> BotDecision:
        cards = _card_lookup(view)
        options = [describe_action(a, cards) for a in legal_actions]
        data = self._ask(AdapterPrompts.turn_action(view, options))
        action = _pick(legal_actions, data.get("action_index"))
        return BotDecision(action=action, reasoning=str(data.get("reasoning", "")))

    def choose_counter_response(self, view: StateView, legal_counter_cards: list[Card]) -> CounterDecision:
        pending = view.state.action_context
        description = pending.action_type.value if pending is not None else "unknown"
        data = self._ask(
            AdapterPrompts.counter_response(view, description, [c.label for c in legal_counter_cards])
        )
        reasoning = str(data.get("reasoning", ""))
        decision = str(data.get("decision", "")).lower()
        if decision == CounterChoice.PASS.value:
            return CounterDecision(CounterChoice.PASS, reasoning=reasoning)
        if decision == CounterChoice.COUNTER.value:
            card = _pick(legal_counter_cards, data.get("counter_index", 0))
            return CounterDecision(CounterChoice.COUNTER, card.id, reasoning)
        raise AdapterError(f"Unknown counter decision: {decision!r}")

    def choose_mid_turn_pick(self, view: StateView, legal_picks: list[Action]) -> BotDecision:
        cards = _card_lookup(view)
        options = [describe_action(a, cards) for a in legal_picks]
        data = self._ask(AdapterPrompts.mid_turn_pick(view, options))
        action = _pick(legal_picks, data.get("choice_index"))
        return BotDecision(action=action, reasoning=str(data.get("reasoning", "")))

    def _ask(self, prompt: str) -> dict[str, Any]:
        try:
            raw = self.client.complete(AdapterPrompts.system(self.rules.target_score), prompt)
        except Exception as e:
            raise AdapterError(f"Completion failed: {e}") from e
        logger.debug("LLM raw answer: %s", raw)
        return parse_json_answer(raw)


def parse_json_answer(raw: str) -> dict[str, Any]:
    """Extract the first JSON object from a model reply."""
    match = re.search(r"\{.*\}", raw or "", re.DOTALL)
    if not match:
        raise AdapterError("No JSON object in reply")
    try:
        data = json.loads(match.group())
    except json.JSONDecodeError as e:
        raise AdapterError(f"Malformed JSON in reply: {e}") from e
    if not isinstance(data, dict):
        raise AdapterError("Reply JSON is not an object")
    return data


def _pick(options: list, index: Any):
    try:
        i = int(index)
    except (TypeError, ValueError):
        raise AdapterError(f"Invalid index: {index!r}")
    if not 0 <= i < len(options):
        raise AdapterError(f"Index {i} out of range (0-{len(options) - 1})")
    return options[i]


def _card_lookup(view: StateView) -> dict[str, Card]:
    return {c.id: c for c in view.state.all_cards()}
