from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping

from momentrivals.engine.match import MatchState


@dataclass
class TelemetryService:
    """Append-only JSON lines sink for client events."""

    path: Path

    def log(self, event_type: str, payload: Mapping[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        rec = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "type": event_type,
            "payload": dict(payload),
        }
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")

    def match_started(self, state: MatchState, difficulty: str) -> None:
        self.log(
            "match_started",
            {
                "match_id": state.match_id,
                "seed": state.seed,
                "rule_set": state.rules.name,
                "difficulty": difficulty,
            },
        )

    def match_ended(self, state: MatchState) -> None:
        self.log(
            "match_ended",
            {
                "match_id": state.match_id,
                "winner": state.winner,
                "reason": state.win_reason,
                "score": [state.player.total_score, state.opponent.total_score],
                "rounds_won": [state.player.rounds_won, state.opponent.rounds_won],
            },
        )

    def read_all(self) -> list[dict[str, object]]:
        if not self.path.exists():
            return []
        out: list[dict[str, object]] = []
        for line in self.path.read_text(encoding="utf-8").splitlines():
            if line.strip():
                out.append(json.loads(line))
        return out
