from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, replace
from typing import Literal, Optional

Owner = Literal["red", "blue"]
Affinity = Literal["primal", "scion", "beastman", "garlean"]
Side = Literal["top", "right", "bottom", "left"]

RuleFlag = Literal["all_open", "plus"]

# Canonical owner order; hashing and rendering always walk owners this way.
OWNERS: tuple[Owner, ...] = ("red", "blue")

IMPLEMENTED_RULES: frozenset[str] = frozenset({"all_open", "plus"})
UNIMPLEMENTED_RULES: frozenset[str] = frozenset(
    {
        "three_open",
        "chaos",
        "order",
        "same",
        "reverse",
        "ascension",
        "descension",
        "fallen_ace",
    }
)

OPPOSITE_SIDE: dict[Side, Side] = {
    "top": "bottom",
    "right": "left",
    "bottom": "top",
    "left": "right",
}

BOARD_SIZE = 3
HAND_SIZE = 5
TOTAL_CARDS = 2 * HAND_SIZE


class RuleError(ValueError):
    pass


def other_owner(owner: Owner) -> Owner:
    return "blue" if owner == "red" else "red"


def parse_rules(names: Iterable[str]) -> frozenset[RuleFlag]:
    """Validate rule names, rejecting variants the engine does not play."""
    out: set[RuleFlag] = set()
    for name in names:
        key = name.strip().lower().replace("-", "_")
        if key in UNIMPLEMENTED_RULES:
            raise RuleError(f"Rule '{name}' is not supported.")
        if key not in IMPLEMENTED_RULES:
            raise RuleError(f"Unknown rule '{name}'.")
        out.add(key)  # type: ignore[arg-type]
    return frozenset(out)


@dataclass(frozen=True)
class CardFace:
    id: int
    name: str
    stars: int
    top: int
    right: int
    bottom: int
    left: int
    affinity: Affinity | None = None

    def edge(self, side: Side) -> int:
        return getattr(self, side)

    def edges(self) -> tuple[int, int, int, int]:
        return (self.top, self.right, self.bottom, self.left)


@dataclass(frozen=True)
class CardCatalog:
    """Immutable card catalog, loaded once before a game starts."""

    cards: dict[int, CardFace]

    def get(self, card_id: int) -> CardFace:
        return self.cards[card_id]

    def all_ids(self) -> Sequence[int]:
        return sorted(self.cards.keys())

    def by_stars(self, stars: int) -> list[CardFace]:
        return [c for c in self.cards.values() if c.stars == stars]

    def find(self, text: str) -> CardFace | None:
        """Look a card up by numeric id or by case-insensitive name."""
        key = text.strip()
        if key.isdigit():
            return self.cards.get(int(key))
        lowered = key.lower()
        for card in self.cards.values():
            if card.name.lower() == lowered:
                return card
        return None


@dataclass(frozen=True)
class PlacedCard:
    face: CardFace
    owner: Owner

    def with_owner(self, owner: Owner) -> "PlacedCard":
        return replace(self, owner=owner)

    def edge(self, side: Side) -> int:
        return self.face.edge(side)


@dataclass(frozen=True)
class Coord:
    row: int
    col: int

    def __post_init__(self) -> None:
        if not (0 <= self.row < BOARD_SIZE and 0 <= self.col < BOARD_SIZE):
            raise ValueError(f"Coordinate out of range: ({self.row}, {self.col})")

    @staticmethod
    def at(row: int, col: int) -> Optional["Coord"]:
        if 0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE:
            return Coord(row, col)
        return None

    @staticmethod
    def all() -> Iterator["Coord"]:
        for row in range(BOARD_SIZE):
            for col in range(BOARD_SIZE):
                yield Coord(row, col)

    @property
    def index(self) -> int:
        return self.row * BOARD_SIZE + self.col


Cell = Optional[PlacedCard]
Board = list[Cell]  # row-major, length 9
Hand = list[Cell]  # length 5


def empty_board() -> Board:
    return [None for _ in range(BOARD_SIZE * BOARD_SIZE)]


def empty_hand() -> Hand:
    return [None for _ in range(HAND_SIZE)]
