"""
Win Evaluator - Exact-target wins and deck-exhaustion tie-breaks.

A declared winner is final: the winner becomes immune, the phase freezes
at GAME_OVER and later declarations are ignored.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import random

from .rules import RuleConfig
from .scoring import player_score, distance_from_target
from .state import GameState, GamePhase, ActionState

logger = logging.getLogger(__name__)


REACHED_TARGET = "reached target"
REACHED_TARGET_MAINTENANCE = "reached target during maintenance"
EXHAUSTION_CLOSEST = "exhaustion: closest to target"
EXHAUSTION_ROYALTY = "exhaustion tie-break: most royalty cards"
EXHAUSTION_FEWEST_HAND = "exhaustion tie-break: fewest cards in hand"
EXHAUSTION_RANDOM = "exhaustion tie-break: random"


@dataclass
class WinEvaluator:
    rules: RuleConfig = field(default_factory=RuleConfig)
    rng: random.Random = field(default_factory=random.Random)

    def declare_winner(self, state: GameState, player_index: int, reason: str) -> bool:
        """Record a winner. Returns False if the game was already decided."""
        if state.winner is not None:
            return False
        winner = state.players[player_index]
        state.winner = player_index
        state.win_reason = reason
        state.phase = GamePhase.GAME_OVER
        state.action_state = ActionState.IDLE
        winner.is_immune = True
        state.add_log(f"{winner.name} wins ({reason})")
        logger.info("Game %s won by %s: %s", state.game_id, winner.player_id, reason)
        return True

    def check_target(
        self,
        state: GameState,
        player_index: int,
        reason: str = REACHED_TARGET,
    ) -> bool:
        """Declare player_index the winner if their score is exactly the target."""
        if state.winner is not None:
            return True
        if player_score(state.players[player_index]) == self.rules.target_score:
            return self.declare_winner(state, player_index, reason)
        return False

    def check_after_effect(self, state: GameState, actor_index: int) -> bool:
        """Check the actor first, then the opponent."""
        return (
            self.check_target(state, actor_index)
            or self.check_target(state, state.opponent_index(actor_index))
        )

    def resolve_exhaustion(self, state: GameState) -> int:
        """Pick a winner once deck and discard pile are both empty."""
        target = self.rules.target_score
        p0, p1 = state.players
        logger.info(
            "Deck exhausted in game %s (scores %d / %d)",
            state.game_id, player_score(p0), player_score(p1),
        )

        d0, d1 = distance_from_target(p0, target), distance_from_target(p1, target)
        if d0 != d1:
            winner, reason = (0 if d0 < d1 else 1), EXHAUSTION_CLOSEST
        elif len(p0.royalty_row) != len(p1.royalty_row):
            winner = 0 if len(p0.royalty_row) > len(p1.royalty_row) else 1
            reason = EXHAUSTION_ROYALTY
        elif len(p0.hand) != len(p1.hand):
            winner = 0 if len(p0.hand) < len(p1.hand) else 1
            reason = EXHAUSTION_FEWEST_HAND
        else:
            winner, reason = self.rng.randrange(2), EXHAUSTION_RANDOM

        self.declare_winner(state, winner, reason)
        return winner
