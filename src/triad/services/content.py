from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from triad.engine.types import Affinity, CardCatalog, CardFace


class ContentError(RuntimeError):
    pass


# Card type ids as published by the card API.
_AFFINITY_BY_TYPE_ID: dict[int, Affinity] = {
    1: "primal",
    2: "scion",
    3: "beastman",
    4: "garlean",
}


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: [str(p) for p in e.path])
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _require_int(obj: Mapping[str, object], key: str) -> int:
    v = obj.get(key)
    if not isinstance(v, int) or isinstance(v, bool):
        raise ContentError(f"Expected int for {key}")
    return v


def _require_str(obj: Mapping[str, object], key: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


def _require_dict(obj: Mapping[str, object], key: str) -> Mapping[str, object]:
    v = obj.get(key)
    if not isinstance(v, dict):
        raise ContentError(f"Expected object for {key}")
    return v


def _translate_affinity(raw_type: object) -> Affinity | None:
    if not isinstance(raw_type, dict):
        return None
    type_id = raw_type.get("id")
    if not isinstance(type_id, int):
        return None
    return _AFFINITY_BY_TYPE_ID.get(type_id)


def translate_card(item: Mapping[str, object]) -> CardFace:
    """Turn one card-API result entry into a CardFace."""
    numeric = _require_dict(_require_dict(item, "stats"), "numeric")
    return CardFace(
        id=_require_int(item, "id"),
        name=_require_str(item, "name"),
        stars=_require_int(item, "stars"),
        top=_require_int(numeric, "top"),
        right=_require_int(numeric, "right"),
        bottom=_require_int(numeric, "bottom"),
        left=_require_int(numeric, "left"),
        affinity=_translate_affinity(item.get("type")),
    )


def parse_catalog(raw: object, *, context: str = "catalog") -> CardCatalog:
    if not isinstance(raw, dict):
        raise ContentError(f"{context} must be an object")
    results = raw.get("results")
    if not isinstance(results, list):
        raise ContentError(f"{context}.results must be a list")

    cards: dict[int, CardFace] = {}
    for item in results:
        if not isinstance(item, dict):
            continue
        card = translate_card(item)
        if card.id in cards:
            raise ContentError(f"Duplicate card id {card.id} in {context}")
        cards[card.id] = card
    return CardCatalog(cards=cards)


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def load_catalog(self, path: Path | None = None) -> CardCatalog:
        cards_path = path or self._data_dir / "cards.json"
        raw = _load_json(cards_path)
        schema = _load_json(self._schema_dir / "cards.schema.json")
        validate_json(raw, schema, context=str(cards_path))
        return parse_catalog(raw, context=str(cards_path))

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_catalog()
