from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from triad.engine.types import HAND_SIZE, CardCatalog, CardFace, Coord, Hand, Owner

T = TypeVar("T")


class InputError(ValueError):
    pass


def valid_hand_idx(hand: Hand, text: str) -> int:
    try:
        idx = int(text.strip())
    except ValueError as e:
        raise InputError("Failed to parse input as an int!") from e
    if not 0 <= idx < HAND_SIZE:
        raise InputError(f"Invalid card index! Please enter a number between 0 and {HAND_SIZE - 1}")
    if hand[idx] is None:
        raise InputError("You already played the card in that position! Select a different position")
    return idx


def parse_coord(text: str) -> Coord:
    """Parse a 1-based "row,col" pair such as "1,3"."""
    parts = [p.strip() for p in text.strip().split(",")]
    if len(parts) != 2:
        raise InputError("Coordinates must look like row,col (for example 2,3)")
    try:
        row, col = int(parts[0]), int(parts[1])
    except ValueError as e:
        raise InputError("Encountered parse int error when reading coordinates") from e
    coord = Coord.at(row - 1, col - 1)
    if coord is None:
        raise InputError("Coordinates must be between 1 and 3")
    return coord


def parse_move_line(hand: Hand, line: str) -> tuple[int, Coord]:
    """Parse "<slot> <row>,<col>", reporting every problem found at once."""
    inputs = line.split()
    if len(inputs) != 2:
        raise InputError("Enter a hand slot and a cell, for example: 0 2,3")
    errors: list[str] = []
    slot: int | None = None
    coord: Coord | None = None
    try:
        slot = valid_hand_idx(hand, inputs[0])
    except InputError as e:
        errors.append(str(e))
    try:
        coord = parse_coord(inputs[1])
    except InputError as e:
        errors.append(str(e))
    if errors or slot is None or coord is None:
        raise InputError("\n".join(errors))
    return slot, coord


def parse_color(text: str) -> Owner:
    key = text.strip().lower()
    if key in ("r", "red"):
        return "red"
    if key in ("b", "blue"):
        return "blue"
    raise InputError("Please answer red or blue")


def parse_card(catalog: CardCatalog, text: str) -> CardFace:
    card = catalog.find(text)
    if card is None:
        raise InputError(f"No card matches '{text.strip()}'")
    return card


def ask(
    prompt: str,
    parse: Callable[[str], T],
    input_fn: Callable[[str], str] = input,
    output_fn: Callable[[str], None] = print,
) -> T:
    """Keep prompting until `parse` accepts a line."""
    while True:
        line = input_fn(f"{prompt} ")
        try:
            return parse(line)
        except InputError as e:
            output_fn(str(e))
