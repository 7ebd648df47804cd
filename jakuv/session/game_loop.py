"""
Game Loop - Drives AI seats between human intents.

The loop:
1. The human submits an intent; the reducer applies it atomically
2. While an AI seat must act (its turn, a counter window, or a forced pick),
   its policy is asked for a decision against a redacted view
3. The decision is validated against the enumerated legal set
4. Failures, timeouts and illegal answers fall back deterministically:
   - turn action: draw
   - counter response: first legal counter card, else pass
   - mid-turn pick: first offered pick
5. Repeat until the human must act or the game ends

Adapter calls run on a worker thread so a hung adapter cannot block the
engine past the configured timeout. A timed-out call is abandoned with its
worker pool and the next call starts on a new one.
"""

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor, TimeoutError as AdapterTimeout
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, TYPE_CHECKING
import logging

from ..bots.policy import BotPolicy, CounterChoice
from ..engine_core.action import Action
from ..engine_core.action_generator import ActionGenerator
from ..engine_core.counter import legal_counter_cards
from ..engine_core.state import GamePhase, TURN_OPEN_STATES
from ..engine_core.view import redacted_view

if TYPE_CHECKING:
    from .manager import Session

logger = logging.getLogger(__name__)


class LoopState(Enum):
    """State of the game loop."""
    WAITING_START = "waiting_start"
    RUNNING_AI = "running_ai"
    WAITING_HUMAN_ACTION = "waiting_human_action"
    STEP_LIMIT = "step_limit"
    GAME_OVER = "game_over"


@dataclass
class TurnResult:
    """
    Result of processing an intent plus the AI steps it triggered.
    """
    success: bool
    loop_state: LoopState

    # Narration produced by the human intent and the AI steps
    changes: list[str] = field(default_factory=list)

    # AI actions taken ("<name>: <intent>")
    ai_actions: list[str] = field(default_factory=list)

    # Decision points where a fallback replaced the adapter's answer
    fallbacks: list[str] = field(default_factory=list)

    errors: list[str] = field(default_factory=list)
    error_code: str | None = None

    # Game over info
    winner: str | None = None
    win_reason: str | None = None


class GameLoop:
    """
    The main game loop driver.

    Usage:
        loop = GameLoop(session)
        result = loop.submit(Action.draw("player1"))
        if not result.success:
            show_error(result.errors)
    """

    def __init__(self, session: Session, max_steps: int = 500):
        self.session = session
        self.max_steps = max_steps
        self.generator = ActionGenerator(rules=session.rules)
        self._executor = self._new_executor()

    def _new_executor(self) -> ThreadPoolExecutor:
        return ThreadPoolExecutor(max_workers=2, thread_name_prefix="jakuv-adapter")

    @property
    def timeout(self) -> float:
        return self.session.rules.adapter_timeout_seconds

    def close(self) -> None:
        """Release the adapter worker threads without waiting for hung calls."""
        self._executor.shutdown(wait=False)

    def submit(self, action: Action) -> TurnResult:
        """
        Apply a human intent, then run AI seats until the human must act.
        """
        result = self.session.apply(action)
        if not result.success:
            return TurnResult(
                success=False,
                loop_state=self._loop_state(),
                errors=[result.error or "Illegal action"],
                error_code=result.error_code,
            )
        turn_result = self.run_ai()
        turn_result.changes = result.state_changes + turn_result.changes
        return turn_result

    def run_ai(self) -> TurnResult:
        """Run AI decisions until a non-AI seat must act or the game ends."""
        changes: list[str] = []
        ai_actions: list[str] = []
        fallbacks: list[str] = []
        steps = 0

        while True:
            state = self.session.game_state
            if state.is_game_over or state.phase == GamePhase.START_SCREEN:
                break
            bot = self.session.bots.get(state.current_player.player_id)
            if bot is None:
                break
            if steps >= self.max_steps:
                logger.warning("AI step limit (%d) reached", self.max_steps)
                return self._result(LoopState.STEP_LIMIT, changes, ai_actions, fallbacks)

            outcome = self._ai_step(bot, fallbacks)
            if outcome is None:
                return TurnResult(
                    success=False,
                    loop_state=self._loop_state(),
                    changes=changes,
                    ai_actions=ai_actions,
                    fallbacks=fallbacks,
                    errors=["AI seat could not produce a legal action"],
                )
            name, action, step_changes = outcome
            ai_actions.append(f"{name}: {action.action_type.value}")
            changes.extend(step_changes)
            steps += 1

        return self._result(self._loop_state(), changes, ai_actions, fallbacks)

    # =========================================================================
    # AI decisions
    # =========================================================================

    def _ai_step(self, bot: BotPolicy, fallbacks: list[str]):
        state = self.session.game_state
        player = state.current_player
        view = redacted_view(state, state.current_player_index)

        if state.phase == GamePhase.COUNTER:
            action, fell_back = self._counter_action(bot, view, state, player.player_id)
            point = "counter response"
        elif state.action_state in TURN_OPEN_STATES:
            legal = self.generator.turn_actions(state)
            action, fell_back = self._pick(
                bot.choose_turn_action, view, legal, Action.draw(player.player_id)
            )
            point = "turn action"
        else:
            legal = self.generator.mid_turn_picks(state)
            if not legal:
                logger.error("No legal picks in %s", state.action_state.value)
                return None
            action, fell_back = self._pick(bot.choose_mid_turn_pick, view, legal, legal[0])
            point = f"pick ({state.action_state.value})"

        if fell_back:
            fallbacks.append(f"{player.name}: {point}")

        result = self.session.apply(action)
        if not result.success:
            logger.error(
                "AI action %s rejected: [%s] %s",
                action.action_type.value, result.error_code, result.error,
            )
            return None
        return player.name, action, result.state_changes

    def _pick(
        self,
        choose: Callable[..., Any],
        view,
        legal: list[Action],
        fallback: Action,
    ) -> tuple[Action, bool]:
        decision = self._call(choose, view, legal)
        if decision is None:
            return fallback, True
        if decision.action not in legal:
            logger.warning("Adapter returned an illegal action: %s", decision.action.action_type.value)
            return fallback, True
        logger.debug("Adapter chose %s (%s)", decision.action.action_type.value, decision.reasoning)
        return decision.action, False

    def _counter_action(self, bot: BotPolicy, view, state, player_id: str) -> tuple[Action, bool]:
        counters = legal_counter_cards(state)
        if counters:
            fallback = Action.play_counter(player_id, counters[0].id)
        else:
            fallback = Action.pass_counter(player_id)

        decision = self._call(bot.choose_counter_response, view, counters)
        if decision is None:
            return fallback, True
        if decision.decision == CounterChoice.COUNTER and decision.card_id not in {c.id for c in counters}:
            logger.warning("Adapter countered with an illegal card: %s", decision.card_id)
            return fallback, True
        return decision.to_action(player_id), False

    def _call(self, fn: Callable[..., Any], *args):
        """Run an adapter call under the timeout; None means it failed."""
        future = self._executor.submit(fn, *args)
        try:
            return future.result(timeout=self.timeout)
        except AdapterTimeout:
            logger.warning("Adapter call timed out after %.1fs", self.timeout)
            # The hung call keeps its worker; later calls get a fresh pool
            self._executor.shutdown(wait=False)
            self._executor = self._new_executor()
        except Exception as e:
            logger.warning("Adapter call failed: %s: %s", type(e).__name__, e)
        return None

    # =========================================================================
    # Helpers
    # =========================================================================

    def _loop_state(self) -> LoopState:
        state = self.session.game_state
        if state.is_game_over:
            return LoopState.GAME_OVER
        if state.phase == GamePhase.START_SCREEN:
            return LoopState.WAITING_START
        if state.current_player.player_id in self.session.bots:
            return LoopState.RUNNING_AI
        return LoopState.WAITING_HUMAN_ACTION

    def _result(self, loop_state, changes, ai_actions, fallbacks) -> TurnResult:
        state = self.session.game_state
        winner = state.players[state.winner].player_id if state.winner is not None else None
        return TurnResult(
            success=True,
            loop_state=loop_state,
            changes=changes,
            ai_actions=ai_actions,
            fallbacks=fallbacks,
            winner=winner,
            win_reason=state.win_reason,
        )
