"""
Pytest fixtures for Jakuv tests.
"""

import random

import pytest

from ..engine_core.cards import take_card
from ..engine_core.reducer import Reducer
from ..engine_core.rules import RuleConfig
from ..engine_core.state import GameState, GamePhase


SEED = 1234


def build_state(
    hands=None,
    score_rows=None,
    royalty_rows=None,
    discard=(),
    deck_top=(),
    swap_bar=None,
    phase=GamePhase.PLAYER_TURN,
    turn=2,
    current=0,
) -> GameState:
    """
    Build a mid-game state by moving named cards out of the full deck.

    hands/score_rows/royalty_rows map a seat index to card ids.
    deck_top lists ids placed on top of the deck, the last one on top.
    swap_bar holds (card_id, face_up) pairs or None for empty slots.
    Every card not placed stays in the deck, so the universe is intact.
    """
    state = GameState.create("test_game", "Human", "Bot")

    def take(card_id):
        card = take_card(state.deck, card_id)
        assert card is not None, f"{card_id} already placed"
        return card

    for seat, ids in (hands or {}).items():
        player = state.players[seat]
        for cid in ids:
            card = take(cid)
            card.is_face_up = not player.is_ai
            player.hand.append(card)
    for rows, attr in ((score_rows, "score_row"), (royalty_rows, "royalty_row")):
        for seat, ids in (rows or {}).items():
            for cid in ids:
                card = take(cid)
                card.is_face_up = True
                getattr(state.players[seat], attr).append(card)
    for cid in discard:
        card = take(cid)
        card.is_face_up = True
        state.discard_pile.append(card)
    if swap_bar is not None:
        for slot in swap_bar:
            if slot is None:
                state.swap_bar.append(None)
                continue
            card_id, face_up = slot
            card = take(card_id)
            card.is_face_up = face_up
            state.swap_bar.append(card)
    top = [take(cid) for cid in deck_top]
    state.deck.extend(top)

    state.phase = phase
    state.turn = turn
    state.current_player_index = current
    return state


def card_ids(cards):
    return sorted(c.id for c in cards)


@pytest.fixture
def rules() -> RuleConfig:
    """Default rules."""
    return RuleConfig()


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source."""
    return random.Random(SEED)


@pytest.fixture
def reducer(rules, rng) -> Reducer:
    """Reducer with default rules and a seeded random source."""
    return Reducer(rules=rules, rng=rng)


@pytest.fixture
def build():
    """The mid-game state builder."""
    return build_state


@pytest.fixture
def apply_ok(reducer):
    """Apply an action and assert it was accepted."""
    def _apply(state, action):
        result = reducer.apply(state, action)
        assert result.success, (
            f"{action.action_type.value} rejected: [{result.error_code}] {result.error}"
        )
        return result.new_state
    return _apply


@pytest.fixture
def dealt_state(reducer) -> GameState:
    """A freshly dealt game."""
    from ..engine_core.action import Action

    start = GameState.create("test_game", "Human", "Bot")
    result = reducer.apply(start, Action.start_new_game())
    assert result.success
    return result.new_state
