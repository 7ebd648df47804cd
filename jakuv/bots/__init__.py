"""
Bots module - Decision adapters for the AI seat.

Provides:
- BotPolicy: Interface for adapter decisions
- RandomPolicy / FirstLegalPolicy: Trivial baselines
- HeuristicPolicy: Local greedy opponent
- LLMPolicy: Remote reasoning service behind a completion client
"""

from .policy import (
    AdapterError,
    BotPolicy,
    BotDecision,
    CounterChoice,
    CounterDecision,
    RandomPolicy,
    FirstLegalPolicy,
)
from .heuristic import HeuristicPolicy
from .llm_policy import LLMPolicy, CompletionClient, create_client
from ..engine_core.rules import RuleConfig

__all__ = [
    "AdapterError",
    "BotPolicy",
    "BotDecision",
    "CounterChoice",
    "CounterDecision",
    "RandomPolicy",
    "FirstLegalPolicy",
    "HeuristicPolicy",
    "LLMPolicy",
    "CompletionClient",
    "create_client",
    "create_policy",
]


def create_policy(provider: str, seed: int | None = None, rules: RuleConfig | None = None) -> BotPolicy:
    """Build a policy by name: "heuristic", "random", "first" or "llm"."""
    if provider == "random":
        return RandomPolicy(seed=seed)
    if provider == "first":
        return FirstLegalPolicy()
    if provider == "llm":
        return LLMPolicy(rules=rules)
    if provider == "heuristic":
        return HeuristicPolicy(rules=rules or RuleConfig())
    raise ValueError(f"Unknown AI provider: {provider}")
