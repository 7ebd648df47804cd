"""
Heuristic Bot - Local rule-of-thumb opponent.

Turn priorities:
1. A row play that lands exactly on the target score
2. A Royal Marriage
3. A scuttle of a high-value target (8+)
4. The highest-value row play that does not overshoot the target
5. Draw

Forced sub-choices follow simple greedy rules per sub-phase. The bot
never looks at hidden information; it works from the redacted view.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .policy import BotPolicy, BotDecision, CounterDecision, CounterChoice, AdapterError
from ..engine_core.action import Action, ActionType
from ..engine_core.cards import Card, Rank
from ..engine_core.contexts import Row, SoftResetContext
from ..engine_core.effect_resolver import (
    DRAW_BOTTOM,
    DRAW_DISCARD,
    DRAW_SWAP_PREFIX,
    DRAW_TOP,
    INTERROGATE_DISCARD,
    INTERROGATE_STEAL,
)
from ..engine_core.rules import RuleConfig
from ..engine_core.scoring import card_value, player_score
from ..engine_core.state import ActionState

if TYPE_CHECKING:
    from ..engine_core.view import StateView


HIGH_VALUE_SCUTTLE = 8


@dataclass
class HeuristicPolicy(BotPolicy):
    """
    Greedy opponent mirroring how a casual player approaches the race to 21.

    Usage:
        bot = HeuristicPolicy()
        decision = bot.choose_turn_action(view, legal)
    """
    rules: RuleConfig = field(default_factory=RuleConfig)

    # =========================================================================
    # Turn actions
    # =========================================================================

    def choose_turn_action(self, view: StateView, legal_actions: list[Action]) -> BotDecision:
        if not legal_actions:
            raise AdapterError("No legal actions available")
        cards = self._cards(view)
        me = view.me
        score = player_score(me)
        target = self.rules.target_score

        row_plays = [
            (a, card_value(cards[a.payload.card_id], Row(a.payload.row)))
            for a in legal_actions
            if a.action_type == ActionType.PLAY_TO_ROW
        ]

        for action, value in row_plays:
            if score + value == target:
                return BotDecision(action, f"Playing {cards[action.payload.card_id].label} to reach {target}")

        marriage = next((a for a in legal_actions if a.action_type == ActionType.ROYAL_MARRIAGE), None)
        if marriage is not None:
            return BotDecision(marriage, "Performing a Royal Marriage")

        scuttles = [
            (a, card_value(cards[a.payload.target_card_id], Row.SCORE))
            for a in legal_actions
            if a.action_type == ActionType.SCUTTLE
        ]
        if scuttles:
            action, value = max(scuttles, key=lambda pair: pair[1])
            if value >= HIGH_VALUE_SCUTTLE:
                return BotDecision(action, f"Scuttling a high-value target ({value})")

        safe = [(a, v) for a, v in row_plays if score + v <= target]
        if safe:
            action, value = max(safe, key=lambda pair: pair[1])
            return BotDecision(action, f"Safe point play worth {value}")

        draw = next((a for a in legal_actions if a.action_type == ActionType.DRAW), None)
        return BotDecision(draw or legal_actions[0], "Nothing better to do; drawing", confidence=0.5)

    # =========================================================================
    # Counter responses
    # =========================================================================

    def choose_counter_response(self, view: StateView, legal_counter_cards: list[Card]) -> CounterDecision:
        if legal_counter_cards:
            card = legal_counter_cards[0]
            return CounterDecision(CounterChoice.COUNTER, card.id, f"Countering with {card.label}")
        return CounterDecision(CounterChoice.PASS, reasoning="No counter available")

    # =========================================================================
    # Forced sub-choices
    # =========================================================================

    def choose_mid_turn_pick(self, view: StateView, legal_picks: list[Action]) -> BotDecision:
        if not legal_picks:
            raise AdapterError("No legal picks available")
        awaiting = view.state.action_state
        cards = self._cards(view)

        def value_of(action: Action) -> int:
            card = cards.get(action.payload.card_id)
            return card_value(card) if card else 0

        if awaiting in (ActionState.AWAITING_OVERCHARGE_DISCARD, ActionState.AWAITING_END_TURN_DISCARD):
            return BotDecision(min(legal_picks, key=value_of), "Discarding the lowest card")

        if awaiting in (
            ActionState.AWAITING_NINE_PEEK_CHOICE,
            ActionState.AWAITING_RUMMAGER_CHOICE,
            ActionState.AWAITING_INTERROGATOR_STEAL_CHOICE,
        ):
            return BotDecision(max(legal_picks, key=value_of), "Taking the highest card")

        if awaiting == ActionState.AWAITING_FARMER_CHOICE:
            return BotDecision(min(legal_picks, key=value_of), "Returning the lowest card")

        if awaiting == ActionState.AWAITING_LUCKY_DRAW_CHOICE:
            return self._lucky_draw_pick(view, legal_picks, value_of)

        if awaiting == ActionState.AWAITING_INTERROGATOR_CHOICE:
            value = INTERROGATE_STEAL if view.opponent_hand_size <= 3 else INTERROGATE_DISCARD
            return self._option(legal_picks, [value], f"Interrogator: {value}")

        if awaiting == ActionState.AWAITING_MIMIC_CHOICE:
            return self._option(legal_picks, self._mimic_preference(view), "Mimic choice")

        if awaiting == ActionState.AWAITING_SOFT_RESET_DRAW_CHOICE:
            values = [o.value for o in view.state.option_choices]
            preference = [v for v in values if v.startswith(DRAW_SWAP_PREFIX)]
            preference += [DRAW_DISCARD, DRAW_TOP, DRAW_BOTTOM]
            return self._option(legal_picks, preference, "Soft Reset draw")

        if awaiting == ActionState.AWAITING_JACK_PLACEMENT:
            stolen = view.state.card_choices[0] if view.state.card_choices else None
            preference = [Row.ROYALTY.value, Row.SCORE.value] if stolen and stolen.is_royal else [Row.SCORE.value]
            return self._option(legal_picks, preference, "Placing the stolen card")

        if awaiting == ActionState.AWAITING_JACK_TARGET:
            opponent_id = view.opponent.player_id
            theirs = [a for a in legal_picks if a.payload.target_player_id == opponent_id]
            pool = theirs or legal_picks
            best = max(pool, key=lambda a: card_value(cards[a.payload.target_card_id]))
            return BotDecision(best, "Stealing the opponent's best card")

        if awaiting == ActionState.AWAITING_SOFT_RESET_TARGET_ROW:
            return self._soft_reset_row(view, legal_picks)

        if awaiting == ActionState.AWAITING_SOFT_RESET_DISCARD_CHOICE:
            return self._soft_reset_discard(view, legal_picks, cards)

        return BotDecision(legal_picks[0], "Default pick", confidence=0.5)

    def _lucky_draw_pick(self, view, legal_picks, value_of) -> BotDecision:
        score = player_score(view.me)
        target = self.rules.target_score
        exact = [a for a in legal_picks if score + value_of(a) == target]
        if exact:
            return BotDecision(exact[0], "Lucky Draw lands on the target")
        safe = [a for a in legal_picks if score + value_of(a) < target]
        if safe:
            return BotDecision(max(safe, key=value_of), "Scoring the highest safe card")
        return BotDecision(min(legal_picks, key=value_of), "Scoring the lowest card")

    def _mimic_preference(self, view: StateView) -> list[str]:
        opponent = view.opponent
        preference = []
        if len(opponent.score_row) > 1 and not opponent.is_immune:
            preference.append(Rank.FOUR.value)
        if view.opponent_hand_size > 3:
            preference.append(Rank.THREE.value)
        if len(view.me.hand) < 3:
            preference.append(Rank.SIX.value)
        preference.append(Rank.SEVEN.value)
        return preference

    def _soft_reset_row(self, view: StateView, legal_picks: list[Action]) -> BotDecision:
        opponent = view.opponent
        for row in (Row.SCORE, Row.ROYALTY):
            ids = {c.id for c in opponent.row(row)}
            for action in legal_picks:
                if action.payload.target_player_id == opponent.player_id and action.payload.target_card_id in ids:
                    return BotDecision(action, f"Soft resetting the opponent's {row.value}")
        return BotDecision(legal_picks[0], "Soft resetting the only available row", confidence=0.5)

    def _soft_reset_discard(self, view, legal_picks, cards) -> BotDecision:
        ctx = view.state.effect_context
        own_row = isinstance(ctx, SoftResetContext) and ctx.target_player_index == view.seat

        def total(action: Action) -> int:
            return sum(card_value(cards[cid]) for cid in action.payload.card_ids or [])

        if own_row:
            singles = [a for a in legal_picks if len(a.payload.card_ids or []) == 1]
            return BotDecision(min(singles or legal_picks, key=total), "Trimming my own row")
        pairs = [a for a in legal_picks if len(a.payload.card_ids or []) == 2]
        return BotDecision(max(pairs or legal_picks, key=total), "Discarding the opponent's best cards")

    def _option(self, legal_picks: list[Action], preference: list[str], reasoning: str) -> BotDecision:
        by_value = {a.payload.choice_value: a for a in legal_picks}
        for value in preference:
            if value in by_value:
                return BotDecision(by_value[value], reasoning)
        return BotDecision(legal_picks[0], reasoning, confidence=0.5)

    def _cards(self, view: StateView) -> dict[str, Card]:
        return {c.id: c for c in view.state.all_cards()}
