from __future__ import annotations

from .actions import Move
from .game import GameState
from .types import OWNERS, Cell


def card_to_dict(c: Cell) -> dict[str, object] | None:
    if c is None:
        return None
    face = c.face
    return {
        "card_id": face.id,
        "owner": c.owner,
        "edges": [face.top, face.right, face.bottom, face.left],
    }


def move_to_dict(m: Move) -> dict[str, object]:
    return {
        "player": m.player,
        "card_id": m.card.face.id,
        "row": m.coord.row,
        "col": m.coord.col,
        "hand_index": m.hand_index,
        "combo": m.is_combo,
    }


def snapshot(state: GameState) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the current game state."""
    return {
        "first_player": state.first_player,
        "turn": state.turn,
        "rules": sorted(state.rules),
        "outcome": state.outcome,
        "winner": state.winner,
        "board": [card_to_dict(c) for c in state.board],
        "hands": {owner: [card_to_dict(c) for c in state.hands[owner]] for owner in OWNERS},
    }
