"""
Engine Core - Authoritative game state and rules resolution.

The engine:
1. Deals and owns the deck, discard pile and swap bar
2. Generates legal intents
3. Applies intents via the reducer, atomically
4. Runs the counter protocol for proposed actions
5. Resolves card effects step-by-step through forced sub-choices
6. Ends turns and detects wins
"""

from .cards import Card, Rank, Suit, Color, create_deck
from .contexts import (
    Row,
    GameActionType,
    PlayToRow,
    Scuttle,
    BaseEffect,
    RoyalMarriage,
    SecondQueenEdict,
    RummagerEffect,
    JackStealContext,
    SoftResetContext,
    CardChoiceType,
    OptionChoice,
)
from .state import GameState, PlayerState, GamePhase, ActionState, LogEntry
from .action import Action, ActionType, ActionPayload, ActionResult
from .rules import RuleConfig, create_rules
from .errors import JakuvError, IllegalActionError
from .scoring import card_value, player_score
from .reducer import Reducer, apply_action
from .action_generator import ActionGenerator, legal_actions, is_legal
from .counter import ResolutionProtocol, legal_counter_cards, legal_counter_ranks
from .effect_resolver import EffectResolver, EffectOutcome
from .view import StateView, redacted_view

__all__ = [
    "Card",
    "Rank",
    "Suit",
    "Color",
    "create_deck",
    "Row",
    "GameActionType",
    "PlayToRow",
    "Scuttle",
    "BaseEffect",
    "RoyalMarriage",
    "SecondQueenEdict",
    "RummagerEffect",
    "JackStealContext",
    "SoftResetContext",
    "CardChoiceType",
    "OptionChoice",
    "GameState",
    "PlayerState",
    "GamePhase",
    "ActionState",
    "LogEntry",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "RuleConfig",
    "create_rules",
    "JakuvError",
    "IllegalActionError",
    "card_value",
    "player_score",
    "Reducer",
    "apply_action",
    "ActionGenerator",
    "legal_actions",
    "is_legal",
    "ResolutionProtocol",
    "legal_counter_cards",
    "legal_counter_ranks",
    "EffectResolver",
    "EffectOutcome",
    "StateView",
    "redacted_view",
]
