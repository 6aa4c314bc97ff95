from __future__ import annotations

from dataclasses import dataclass

from .types import Coord, Owner, PlacedCard


@dataclass(frozen=True)
class Move:
    """Place `card` at `coord` on behalf of `player`.

    Combo moves are produced by the resolver while a capture chain unwinds:
    the card is already on the board under `player`'s ownership and is being
    re-placed so it can capture its own neighbours. They skip the turn and
    hand checks and never touch a hand.

    `hand_index` pins the hand slot a player move refers to. When it is
    None the first slot holding an equal card is used.
    """

    card: PlacedCard
    coord: Coord
    player: Owner
    is_combo: bool = False
    hand_index: int | None = None

    @staticmethod
    def combo(card: PlacedCard, coord: Coord, player: Owner) -> "Move":
        return Move(card=card.with_owner(player), coord=coord, player=player, is_combo=True)
