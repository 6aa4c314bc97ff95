from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping

from triad.engine.actions import Move
from triad.engine.game import GameState, derived_score
from triad.engine.serialize import move_to_dict, snapshot


@dataclass
class TelemetryService:
    """Append-only JSON-lines record of games played through the CLI."""

    path: Path
    enabled: bool = True

    def log(self, event_type: str, payload: Mapping[str, object]) -> None:
        if not self.enabled:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        rec = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "type": event_type,
            "payload": dict(payload),
        }
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")

    def log_game_started(self, state: GameState) -> None:
        self.log("game_started", snapshot(state))

    def log_move(self, move: Move) -> None:
        self.log("move_played", move_to_dict(move))

    def log_game_ended(self, state: GameState) -> None:
        self.log(
            "game_ended",
            {
                "outcome": state.outcome,
                "winner": state.winner,
                "red": derived_score(state, "red"),
                "blue": derived_score(state, "blue"),
            },
        )
