"""
Adapter Prompts - Prompts and state serialization for LLM-backed play.

The model always sees an enumerated list of legal options and must
answer with a JSON object naming one of them by index, so a reply can be
validated mechanically against the engine's own legal set.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
import json

from ..engine_core.action import Action, ActionType
from ..engine_core.cards import Card
from ..engine_core.scoring import player_score

if TYPE_CHECKING:
    from ..engine_core.view import StateView


RULES_SUMMARY = """
Jakuv is a two-player race to exactly {target} points.
- Score = value of cards in your score row + royalty row. A=1/3/5 (cycles each turn), 2-10 face value,
  J=4 in the score row and 5 in royalty, Q=2, K=7. Only J/Q/K go to the royalty row; K never to the score row.
- Going over {target} forces you to discard from your rows at the start of your turn.
- Scuttle: discard an opponent's score-row card with a card of equal or higher value (royals beat anything).
  A Queen in royalty protects the score row, Aces are immune, and an 8 absorbs one scuttle; a 10 ignores all of that.
- Abilities: J steals a score-row card, 7 Lucky Draw, 6 Farmer, 4 Soft Reset, 3 Interrogator, 2 Mimic.
- Counters: K answers royal plays, 9 answers scuttles, A answers abilities; only an A answers a counter.
"""


def describe_card(card: Card | None) -> str:
    if card is None:
        return "empty"
    if not card.is_face_up:
        return "face-down"
    return card.label


def serialize_view(view: StateView) -> dict[str, Any]:
    """Compact JSON-able description of what the seat can see."""
    state = view.state
    me, opponent = view.me, view.opponent
    return {
        "turn": state.turn,
        "you": {
            "score": player_score(me),
            "hand": [c.label for c in me.hand],
            "score_row": [c.label for c in me.score_row],
            "royalty_row": [c.label for c in me.royalty_row],
        },
        "opponent": {
            "score": player_score(opponent),
            "hand_size": view.opponent_hand_size,
            "hand": [c.label for c in opponent.hand] if view.opponent_hand_revealed else None,
            "score_row": [c.label for c in opponent.score_row],
            "royalty_row": [c.label for c in opponent.royalty_row],
            "immune": opponent.is_immune,
        },
        "deck_size": view.deck_size,
        "discard_top": describe_card(state.discard_pile[-1]) if state.discard_pile else None,
        "swap_bar": [
            "face-down" if i in view.hidden_swap_slots else describe_card(c)
            for i, c in enumerate(state.swap_bar)
        ],
        "awaiting": state.action_state.value,
        "card_choices": [c.label for c in state.card_choices],
    }


def describe_action(action: Action, cards: dict[str, Card]) -> str:
    """One-line human description of an intent."""
    p = action.payload

    def label(card_id: str | None) -> str:
        card = cards.get(card_id) if card_id else None
        return card.label if card else str(card_id)

    kind = action.action_type
    if kind == ActionType.DRAW:
        return "Draw a card and end your turn"
    if kind == ActionType.PLAY_TO_ROW:
        return f"Play {label(p.card_id)} to your {p.row}"
    if kind == ActionType.SCUTTLE:
        return f"Scuttle {label(p.target_card_id)} with {label(p.card_id)}"
    if kind == ActionType.PLAY_FOR_EFFECT:
        return f"Use the ability of {label(p.card_id)}"
    if kind == ActionType.ROYAL_MARRIAGE:
        return f"Royal Marriage with {label(p.card_id)}"
    if kind == ActionType.SWAP_BAR:
        if p.card_id:
            return f"Trade {label(p.card_id)} into swap-bar slot {p.slot_index + 1}"
        return f"Take the face-up card from swap-bar slot {p.slot_index + 1}"
    if kind in (ActionType.CHOOSE_CARD, ActionType.DISCARD):
        return f"{kind.value.replace('_', ' ').capitalize()} {label(p.card_id)}"
    if kind == ActionType.CHOOSE_OPTION:
        return f"Choose option '{p.choice_value}'"
    if kind == ActionType.CHOOSE_TARGET:
        return f"Target {label(p.target_card_id)} of {p.target_player_id}"
    if kind == ActionType.CONFIRM_DISCARD:
        return "Discard " + ", ".join(label(cid) for cid in p.card_ids or [])
    return kind.value


@dataclass
class AdapterPrompts:
    """
    Collection of prompts for the LLM adapter.

    Each prompt asks for a single JSON object with "reasoning" and the
    decision fields.
    """

    @staticmethod
    def system(target: int) -> str:
        return (
            "You are an expert Jakuv player controlling the AI seat. "
            "Answer with a single JSON object and nothing else.\n"
            + RULES_SUMMARY.format(target=target)
        )

    @staticmethod
    def turn_action(view: StateView, options: list[str]) -> str:
        return TURN_TEMPLATE.format(
            state=json.dumps(serialize_view(view), indent=2),
            options=_numbered(options),
        )

    @staticmethod
    def counter_response(view: StateView, pending: str, counters: list[str]) -> str:
        return COUNTER_TEMPLATE.format(
            state=json.dumps(serialize_view(view), indent=2),
            pending=pending,
            options=_numbered(counters) if counters else "(none)",
        )

    @staticmethod
    def mid_turn_pick(view: StateView, options: list[str]) -> str:
        return PICK_TEMPLATE.format(
            state=json.dumps(serialize_view(view), indent=2),
            awaiting=view.state.action_state.value,
            options=_numbered(options),
        )


def _numbered(options: list[str]) -> str:
    return "\n".join(f"{i}. {text}" for i, text in enumerate(options))


TURN_TEMPLATE = """
It is your turn. Current state:
{state}

Legal actions:
{options}

Respond as JSON:
{{"reasoning": "short explanation", "action_index": <number from the list>}}
"""

COUNTER_TEMPLATE = """
Your opponent's action is waiting for your response: {pending}
Current state:
{state}

Cards you may counter with:
{options}

Respond as JSON:
{{"reasoning": "short explanation", "decision": "pass" or "counter", "counter_index": <number, only when countering>}}
"""

PICK_TEMPLATE = """
An effect requires a choice from you ({awaiting}). Current state:
{state}

Options:
{options}

Respond as JSON:
{{"reasoning": "short explanation", "choice_index": <number from the list>}}
"""
