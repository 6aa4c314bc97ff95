from __future__ import annotations

from triad.engine.game import GameState, derived_score
from triad.engine.types import BOARD_SIZE, HAND_SIZE, OWNERS, Affinity, Cell, Hand, Owner

_AFFINITY_MARK: dict[Affinity, str] = {
    "primal": "p",
    "scion": "s",
    "beastman": "b",
    "garlean": "g",
}

_OWNER_MARK: dict[Owner, str] = {"red": "R", "blue": "B"}

_EMPTY_CELL = ["╔─────╗", "┃     ┃", "┃     ┃", "┃     ┃", "╚─────╝"]
_HIDDEN_CARD = ["╔━━━━━╗", "┃░░░░░┃", "┃░░?░░┃", "┃░░░░░┃", "╚━━━━━╝"]


def format_number(n: int) -> str:
    if 1 <= n <= 9:
        return str(n)
    if n == 10:
        return "A"
    return "#"


def card_lines(cell: Cell) -> list[str]:
    if cell is None:
        return list(_EMPTY_CELL)
    face = cell.face
    mark = _AFFINITY_MARK[face.affinity] if face.affinity else " "
    return [
        "╔━━━━━╗",
        f"┃  {format_number(face.top)} {mark}┃",
        f"┃{format_number(face.left)} {_OWNER_MARK[cell.owner]} {format_number(face.right)}┃",
        f"┃  {format_number(face.bottom)}  ┃",
        "╚━━━━━╝",
    ]


def _side_by_side(blocks: list[list[str]], sep: str) -> list[str]:
    return [sep.join(parts) for parts in zip(*blocks)]


def render_board(state: GameState) -> str:
    board_top = "┌─────────┬─────────┬─────────┐"
    row_sep = "├─────────┼─────────┼─────────┤"
    board_bottom = "└─────────┴─────────┴─────────┘"

    out = [board_top]
    for row in range(BOARD_SIZE):
        cells = [card_lines(state.board[row * BOARD_SIZE + col]) for col in range(BOARD_SIZE)]
        out.extend(f"│ {line} │" for line in _side_by_side(cells, " │ "))
        out.append(row_sep if row < BOARD_SIZE - 1 else board_bottom)
    return "\n".join(out)


def render_hand(hand: Hand, hidden: bool = False) -> str:
    blocks: list[list[str]] = []
    for cell in hand:
        if cell is not None and hidden:
            blocks.append(list(_HIDDEN_CARD))
        elif cell is None:
            blocks.append([" " * 7 for _ in _EMPTY_CELL])
        else:
            blocks.append(card_lines(cell))
    header = " ".join(f"   {i}   " for i in range(HAND_SIZE))
    return "\n".join([header, *_side_by_side(blocks, " ")])


def render_score(state: GameState) -> str:
    """Blue blocks left of the divider, red blocks right, around a 5-5 baseline."""
    x = derived_score(state, "blue")
    if not -HAND_SIZE <= x <= HAND_SIZE:
        return "   ##########ERROR##########   "
    blue = "[]" * (HAND_SIZE + x)
    red = "[]" * (HAND_SIZE - x)
    return f"  B {blue}║{red} R  "


def render_game(state: GameState, hidden: frozenset[Owner] = frozenset()) -> str:
    """Text view of the whole game; hands in `hidden` are drawn face down
    unless the open-hands rule is in play."""
    show_all = "all_open" in state.rules
    parts = [render_score(state), render_board(state)]
    for owner in OWNERS:
        marker = " <" if state.turn == owner and not state.is_over() else ""
        parts.append(f"{owner.capitalize()} hand{marker}")
        parts.append(render_hand(state.hands[owner], hidden=owner in hidden and not show_all))
    return "\n".join(parts)


def render_result(state: GameState) -> str:
    red = derived_score(state, "red")
    blue = derived_score(state, "blue")
    if state.outcome == "draw":
        return f"Draw! ({red} : {blue})"
    if state.outcome == "win" and state.winner is not None:
        return f"{state.winner.capitalize()} wins! (red {red} : blue {blue})"
    return "Game in progress."
