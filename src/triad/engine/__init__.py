"""Deterministic, headless rules engine and search adapter for triad.

IMPORTANT: This package must never do terminal I/O.
"""

from .actions import Move
from .ai import SearchConfig, TriadEvaluator, TriadSearchState, ai_pick_move, evaluate
from .game import (
    GameConfig,
    GameState,
    StepResult,
    apply_move,
    deal,
    derived_score,
    legal_moves,
    new_game,
)
from .hashing import state_hash
from .search import UCTSearch
from .types import CardCatalog, CardFace, Coord, Owner, PlacedCard, RuleFlag

__all__ = [
    "CardCatalog",
    "CardFace",
    "Coord",
    "GameConfig",
    "GameState",
    "Move",
    "Owner",
    "PlacedCard",
    "RuleFlag",
    "SearchConfig",
    "StepResult",
    "TriadEvaluator",
    "TriadSearchState",
    "UCTSearch",
    "ai_pick_move",
    "apply_move",
    "deal",
    "derived_score",
    "evaluate",
    "legal_moves",
    "new_game",
    "state_hash",
]
