"""Meta classification of catalog cards.

Three-star cards fall into a handful of groups that matter in competitive
play:

- corner 8s: two adjacent 8 edges (the highest a 3* card can carry); placed
  in a corner with the 8s outward they can only be taken by 4*/5* cards or
  by Plus
- opposing 8s: two 8 edges on opposite sides, used to punish corner 8s in
  adjacent corners under Plus
- triple highs (usually some form of 6-8-7-1): fewer 8 surfaces exposed to
  Plus, and good at exploiting small edge differences
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Literal

from triad.engine.types import CardCatalog, CardFace

MetaClass = Literal[
    "tr_corner",
    "br_corner",
    "tl_corner",
    "bl_corner",
    "lr_eight",
    "tb_eight",
    "triple_t",
    "triple_r",
    "triple_l",
    "triple_b",
]

# Declaration order, used for stable reporting; cards with no class come first.
META_CLASSES: tuple[MetaClass, ...] = (
    "tr_corner",
    "br_corner",
    "tl_corner",
    "bl_corner",
    "lr_eight",
    "tb_eight",
    "triple_t",
    "triple_r",
    "triple_l",
    "triple_b",
)

_TRIPLE_FLANK_MIN = 6 + 7


def sum_value_score(card: CardFace) -> int:
    return card.top + card.right + card.bottom + card.left


def square_value_score(card: CardFace) -> int:
    return card.top**2 + card.right**2 + card.bottom**2 + card.left**2


def double_eights(card: CardFace) -> bool:
    return sum(1 for v in card.edges() if v == 8) >= 2


def is_corner_eight(card: CardFace) -> bool:
    t, r, b, l = card.edges()
    return (t == 8 and r == 8) or (r == 8 and b == 8) or (b == 8 and l == 8) or (t == 8 and l == 8)


def classify_three_star(card: CardFace) -> MetaClass | None:
    if card.stars != 3:
        return None
    t, r, b, l = card.edges()
    if t == 8 and r == 8:
        return "tr_corner"
    if r == 8 and b == 8:
        return "br_corner"
    if b == 8 and l == 8:
        return "bl_corner"
    if t == 8 and l == 8:
        return "tl_corner"
    if t == 8 and b == 8:
        return "lr_eight"
    if r == 8 and l == 8:
        return "tb_eight"
    if t == 8 and r + l >= _TRIPLE_FLANK_MIN:
        return "triple_t"
    if r == 8 and t + b >= _TRIPLE_FLANK_MIN:
        return "triple_r"
    if b == 8 and r + l >= _TRIPLE_FLANK_MIN:
        return "triple_b"
    if l == 8 and t + b >= _TRIPLE_FLANK_MIN:
        return "triple_l"
    return None


@dataclass(frozen=True)
class CatalogSummary:
    by_stars: dict[int, int]
    three_star_groups: dict[MetaClass | None, list[CardFace]]


def summarize_catalog(catalog: CardCatalog) -> CatalogSummary:
    by_stars = Counter(card.stars for card in catalog.cards.values())
    groups: dict[MetaClass | None, list[CardFace]] = {}
    for card_id in catalog.all_ids():
        card = catalog.get(card_id)
        if card.stars != 3:
            continue
        groups.setdefault(classify_three_star(card), []).append(card)
    ordered: dict[MetaClass | None, list[CardFace]] = {}
    for key in (None, *META_CLASSES):
        if key in groups:
            ordered[key] = groups[key]
    return CatalogSummary(by_stars=dict(sorted(by_stars.items())), three_star_groups=ordered)
