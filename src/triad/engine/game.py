from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Literal

from .actions import Move
from .types import (
    HAND_SIZE,
    OPPOSITE_SIDE,
    OWNERS,
    Board,
    CardFace,
    Cell,
    Coord,
    Hand,
    Owner,
    PlacedCard,
    RuleFlag,
    Side,
    empty_board,
    empty_hand,
    other_owner,
    parse_rules,
)

logger = logging.getLogger(__name__)

Event = dict[str, object]
Outcome = Literal["continue", "draw", "win"]

# (row offset, col offset, side of the placed card facing that neighbour)
_NEIGHBOR_OFFSETS: tuple[tuple[int, int, Side], ...] = (
    (-1, 0, "top"),
    (0, 1, "right"),
    (1, 0, "bottom"),
    (0, -1, "left"),
)


class EngineInvariantError(RuntimeError):
    pass


@dataclass(frozen=True)
class GameConfig:
    rules: frozenset[RuleFlag] = frozenset({"all_open", "plus"})
    first_player: Owner = "red"

    def __post_init__(self) -> None:
        object.__setattr__(self, "rules", parse_rules(self.rules))
        if self.first_player not in OWNERS:
            raise ValueError(f"Unknown player: {self.first_player}")


@dataclass(frozen=True)
class Comparison:
    """An occupied neighbour of a placement and how the two cards meet."""

    coord: Coord
    card: PlacedCard
    neighbor_side: Side
    diff: int
    total: int


@dataclass
class StepResult:
    ok: bool
    events: list[Event]
    outcome: Outcome | None = None
    winner: Owner | None = None
    error: str | None = None


@dataclass
class GameState:
    board: Board
    hands: dict[Owner, Hand]
    turn: Owner
    first_player: Owner
    rules: frozenset[RuleFlag]
    outcome: Outcome = "continue"
    winner: Owner | None = None
    event_log: list[Event] = field(default_factory=list)

    def cell(self, coord: Coord) -> Cell:
        return self.board[coord.index]

    def is_over(self) -> bool:
        return self.outcome != "continue"


def new_game(config: GameConfig | None = None) -> GameState:
    cfg = config or GameConfig()
    return GameState(
        board=empty_board(),
        hands={owner: empty_hand() for owner in OWNERS},
        turn=cfg.first_player,
        first_player=cfg.first_player,
        rules=cfg.rules,
    )


def add_card_to_hand(state: GameState, face: CardFace, owner: Owner) -> int:
    """Put `face` into the first free slot of `owner`'s hand and return the slot."""
    hand = state.hands[owner]
    for slot, held in enumerate(hand):
        if held is None:
            hand[slot] = PlacedCard(face=face, owner=owner)
            return slot
    raise ValueError("Hand is full.")


def deal(
    hand_red: Sequence[CardFace],
    hand_blue: Sequence[CardFace],
    config: GameConfig | None = None,
) -> GameState:
    if len(hand_red) != HAND_SIZE or len(hand_blue) != HAND_SIZE:
        raise ValueError(f"Hands must be exactly {HAND_SIZE} cards.")
    state = new_game(config)
    for face in hand_red:
        add_card_to_hand(state, face, "red")
    for face in hand_blue:
        add_card_to_hand(state, face, "blue")
    return state


def open_cells(state: GameState) -> list[Coord]:
    return [coord for coord in Coord.all() if state.board[coord.index] is None]


def cards_in_play(state: GameState) -> int:
    held = sum(1 for hand in state.hands.values() for c in hand if c is not None)
    placed = sum(1 for c in state.board if c is not None)
    return held + placed


def derived_score(state: GameState, owner: Owner) -> int:
    """Hand cards plus owned board cards, relative to the 5-5 baseline."""
    held = sum(1 for c in state.hands[owner] if c is not None)
    owned = sum(1 for c in state.board if c is not None and c.owner == owner)
    return held + owned - HAND_SIZE


def _find_hand_slot(state: GameState, move: Move) -> int | None:
    hand = state.hands[move.player]
    if move.hand_index is not None:
        if 0 <= move.hand_index < len(hand) and hand[move.hand_index] == move.card:
            return move.hand_index
        return None
    for slot, held in enumerate(hand):
        if held == move.card:
            return slot
    return None


def _check_move(state: GameState, move: Move) -> str | None:
    if move.is_combo:
        return None
    if move.player != state.turn:
        return "Not your turn."
    if _find_hand_slot(state, move) is None:
        return "Card is not in hand."
    if state.board[move.coord.index] is not None:
        return "Cell is occupied."
    return None


def is_valid_move(state: GameState, move: Move) -> bool:
    return not state.is_over() and _check_move(state, move) is None


def compare_neighbors(state: GameState, move: Move) -> list[Comparison]:
    comparisons: list[Comparison] = []
    for row_adj, col_adj, side in _NEIGHBOR_OFFSETS:
        coord = Coord.at(move.coord.row + row_adj, move.coord.col + col_adj)
        if coord is None:
            continue
        neighbor = state.board[coord.index]
        if neighbor is None:
            continue
        neighbor_side = OPPOSITE_SIDE[side]
        mine = move.card.edge(side)
        theirs = neighbor.edge(neighbor_side)
        comparisons.append(
            Comparison(
                coord=coord,
                card=neighbor,
                neighbor_side=neighbor_side,
                diff=mine - theirs,
                total=mine + theirs,
            )
        )
    return comparisons


def _identify_captures(comparisons: Iterable[Comparison], player: Owner) -> list[Comparison]:
    return [c for c in comparisons if c.diff > 0 and c.card.owner != player]


def _capture(state: GameState, captured: Sequence[Comparison], player: Owner) -> None:
    for c in captured:
        state.board[c.coord.index] = c.card.with_owner(player)
        state.event_log.append(
            {
                "type": "CARD_CAPTURED",
                "player": player,
                "card_id": c.card.face.id,
                "row": c.coord.row,
                "col": c.coord.col,
            }
        )
        logger.debug("%s captures %s at %d,%d", player, c.card.face.name, c.coord.row, c.coord.col)


def _remove_from_hand(state: GameState, move: Move) -> None:
    slot = _find_hand_slot(state, move)
    if slot is None:
        raise EngineInvariantError(
            f"{move.card.face.name} is not in {move.player}'s hand; refusing to place it."
        )
    state.hands[move.player][slot] = None


def _play(state: GameState, move: Move) -> None:
    if not move.is_combo:
        _remove_from_hand(state, move)
    state.board[move.coord.index] = move.card.with_owner(move.player)
    state.event_log.append(
        {
            "type": "COMBO_PLACED" if move.is_combo else "CARD_PLAYED",
            "player": move.player,
            "card_id": move.card.face.id,
            "row": move.coord.row,
            "col": move.coord.col,
        }
    )
    logger.debug(
        "Playing %s card %s at %d,%d%s",
        move.player,
        move.card.face.name,
        move.coord.row,
        move.coord.col,
        " (combo)" if move.is_combo else "",
    )


def _lift_for_combo(state: GameState, members: Sequence[Comparison], player: Owner) -> list[Move]:
    """Clear each member's cell and return the combo moves that re-place it."""
    for c in members:
        state.board[c.coord.index] = None
    return [Move.combo(c.card, c.coord, player) for c in members]


def resolve_comparisons(state: GameState, move: Move, comparisons: Sequence[Comparison]) -> list[Move]:
    """Apply captures for `move`, place it, and return follow-up combo moves."""
    player = move.player

    if move.is_combo:
        captured = _identify_captures(comparisons, player)
        _play(state, move)
        for c in captured:
            state.event_log.append(
                {
                    "type": "CARD_CAPTURED",
                    "player": player,
                    "card_id": c.card.face.id,
                    "row": c.coord.row,
                    "col": c.coord.col,
                    "combo": True,
                }
            )
        return _lift_for_combo(state, captured, player)

    # Plus is never checked while a combo unwinds.
    if "plus" in state.rules:
        groups: dict[int, list[Comparison]] = {}
        for c in comparisons:
            groups.setdefault(c.total, []).append(c)
        singles = [group[0] for group in groups.values() if len(group) == 1]

        _capture(state, _identify_captures(singles, player), player)
        _play(state, move)

        follow_ups: list[Move] = []
        for total, group in groups.items():
            if len(group) < 2:
                continue
            if all(c.card.owner == player for c in group):
                continue
            state.event_log.append(
                {
                    "type": "PLUS_TRIGGERED",
                    "player": player,
                    "sum": total,
                    "cells": [[c.coord.row, c.coord.col] for c in group],
                }
            )
            logger.debug("Plus on sum %d for %s (%d cards)", total, player, len(group))
            follow_ups.extend(_lift_for_combo(state, group, player))
        return follow_ups

    if not comparisons:
        _play(state, move)
        return []

    _capture(state, _identify_captures(comparisons, player), player)
    _play(state, move)
    return []


def _update_result(state: GameState) -> None:
    if any(c is None for c in state.board):
        state.outcome = "continue"
        state.winner = None
        return
    red = derived_score(state, "red")
    blue = derived_score(state, "blue")
    if red == blue:
        state.outcome = "draw"
        state.winner = None
    else:
        state.outcome = "win"
        state.winner = "red" if red > blue else "blue"
    state.event_log.append(
        {"type": "GAME_ENDED", "outcome": state.outcome, "winner": state.winner, "red": red, "blue": blue}
    )
    logger.debug("Game ended: %s (red %d, blue %d)", state.outcome, red, blue)


def apply_move(state: GameState, move: Move) -> StepResult:
    """Apply a move and its whole combo chain to the game state.

    Illegal moves leave the state untouched and come back with ok=False.
    Follow-up combo moves are worked off a stack so each chain resolves
    depth-first, in the order the resolver produced it.
    """
    if state.is_over():
        return StepResult(ok=False, events=[], error="Game already ended.")
    error = _check_move(state, move)
    if error is not None:
        return StepResult(ok=False, events=[], error=error)

    start = len(state.event_log)
    pending: list[Move] = [move]
    while pending:
        current = pending.pop()
        follow_ups = resolve_comparisons(state, current, compare_neighbors(state, current))
        pending.extend(reversed(follow_ups))

    if not move.is_combo:
        state.event_log.append({"type": "TURN_ENDED", "player": state.turn})
        state.turn = other_owner(state.turn)

    _update_result(state)
    return StepResult(
        ok=True,
        events=state.event_log[start:],
        outcome=state.outcome,
        winner=state.winner,
    )


def legal_moves(state: GameState) -> list[Move]:
    if state.is_over():
        return []
    player = state.turn
    held = [(slot, card) for slot, card in enumerate(state.hands[player]) if card is not None]
    cells = open_cells(state)
    return [
        Move(card=card, coord=coord, player=player, hand_index=slot)
        for slot, card in held
        for coord in cells
    ]


def clone_state(state: GameState, keep_log: bool = True) -> GameState:
    """Copy a game so that simulations never share board or hand lists."""
    return GameState(
        board=list(state.board),
        hands={owner: list(hand) for owner, hand in state.hands.items()},
        turn=state.turn,
        first_player=state.first_player,
        rules=state.rules,
        outcome=state.outcome,
        winner=state.winner,
        event_log=list(state.event_log) if keep_log else [],
    )
