from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from .actions import Move
from .game import GameState, StepResult, apply_move, clone_state, derived_score, legal_moves
from .hashing import state_hash
from .types import HAND_SIZE, Owner

logger = logging.getLogger(__name__)

# Rewards are always read from blue's side of the board.
REFERENCE_OWNER: Owner = "blue"

BASELINE_POINTS = 89
WIN_POINTS = 120
DRAW_POINTS = 80
LOSS_POINTS = 40
CONFIDENCE_STEP = 0.2
ADVANTAGE_SCALE = 4


def confidence_factor(score: int) -> float:
    """Weight lopsided positions more heavily than close ones."""
    return (abs(score) - 1) * CONFIDENCE_STEP + 1


def _point_delta(score: int) -> int:
    if score > 0:
        return WIN_POINTS - BASELINE_POINTS
    if score == 0:
        return DRAW_POINTS - BASELINE_POINTS
    return LOSS_POINTS - BASELINE_POINTS


def _scaled_delta(score: int) -> float:
    return _point_delta(score) * confidence_factor(score)


_SPREAD = _scaled_delta(HAND_SIZE) - _scaled_delta(-HAND_SIZE)


def evaluate(state: GameState) -> float:
    """Bounded search value of `state` for the reference owner, in [-1, 1]."""
    return _scaled_delta(derived_score(state, REFERENCE_OWNER)) / _SPREAD


@dataclass(frozen=True)
class SearchConfig:
    """Tuning for the tree search driver.

    playouts: total simulated games per decision
    workers: threads running playouts concurrently
    exploration: UCT exploration constant
    seed: makes move ordering among equal candidates reproducible
    """

    playouts: int = 2000
    workers: int = 4
    exploration: float = 1.4
    seed: int | None = None


class SearchState(Protocol):
    def current_player(self) -> Owner: ...
    def available_moves(self) -> list[Move]: ...
    def make_move(self, move: Move) -> None: ...
    def transposition_hash(self) -> int: ...
    def clone(self) -> "SearchState": ...
    def is_terminal(self) -> bool: ...


class Evaluator(Protocol):
    def evaluate_new_state(self, state: SearchState, moves: Sequence[Move]) -> tuple[list[None], float]: ...

    def evaluate_existing_state(self, state: SearchState, existing: float) -> float: ...

    def interpret_evaluation_for_player(self, evaluation: float, player: Owner) -> int: ...


class TreeSearch(Protocol):
    def best_move(self, root: SearchState, evaluator: Evaluator) -> Move | None: ...


class TriadSearchState:
    """Search-facing view over a private copy of a game."""

    def __init__(self, game: GameState) -> None:
        self._game = clone_state(game, keep_log=False)

    @property
    def game(self) -> GameState:
        return self._game

    def current_player(self) -> Owner:
        return self._game.turn

    def available_moves(self) -> list[Move]:
        return legal_moves(self._game)

    def make_move(self, move: Move) -> None:
        result = apply_move(self._game, move)
        if not result.ok:
            raise ValueError(f"Search tried an illegal move: {result.error}")

    def transposition_hash(self) -> int:
        return state_hash(self._game)

    def clone(self) -> "TriadSearchState":
        return TriadSearchState(self._game)

    def is_terminal(self) -> bool:
        return self._game.is_over()


class TriadEvaluator:
    def evaluate_new_state(
        self, state: SearchState, moves: Sequence[Move]
    ) -> tuple[list[None], float]:
        assert isinstance(state, TriadSearchState)
        return [None for _ in moves], evaluate(state.game)

    def evaluate_existing_state(self, state: SearchState, existing: float) -> float:
        return existing

    def interpret_evaluation_for_player(self, evaluation: float, player: Owner) -> int:
        # Same sign for both players: the search reads every node from blue's side.
        return int(evaluation * ADVANTAGE_SCALE)


def ai_pick_move(
    state: GameState, search: TreeSearch, evaluator: Evaluator | None = None
) -> Move | None:
    if state.is_over():
        return None
    move = search.best_move(TriadSearchState(state), evaluator or TriadEvaluator())
    if move is not None:
        logger.debug("AI picked %s at %d,%d", move.card.face.name, move.coord.row, move.coord.col)
    return move


def ai_take_turn(state: GameState, player: Owner, search: TreeSearch) -> StepResult | None:
    """Play one move for `player` if it is their turn."""
    if state.is_over() or state.turn != player:
        return None
    move = ai_pick_move(state, search)
    if move is None:
        return None
    return apply_move(state, move)
