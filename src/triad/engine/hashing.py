from __future__ import annotations

import hashlib
import json

from .game import GameState
from .serialize import card_to_dict
from .types import OWNERS


def state_key(state: GameState) -> list[object]:
    """Canonical transposition key: board, both hands (red then blue), first mover.

    Whose turn it is follows from the first mover and the number of cards
    placed, so it is left out.
    """
    return [
        [card_to_dict(c) for c in state.board],
        [[card_to_dict(c) for c in state.hands[owner]] for owner in OWNERS],
        state.first_player,
    ]


def state_hash(state: GameState) -> int:
    """Stable 64-bit fingerprint of `state`; identical across processes."""
    payload = json.dumps(state_key(state), separators=(",", ":"), sort_keys=True)
    digest = hashlib.blake2b(payload.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big")
