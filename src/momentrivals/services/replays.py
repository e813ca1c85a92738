from __future__ import annotations

import re
from pathlib import Path

from momentrivals.engine.match import MatchState
from momentrivals.engine.replay import export_replay, import_replay


class ReplayStoreError(RuntimeError):
    pass


_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")


def replay_filename(match_id: str) -> str:
    return f"moment-rivals-replay-{_UNSAFE.sub('_', match_id)}.json"


class ReplayStore:
    """Replay files under a user data directory, one JSON file per match."""

    def __init__(self, directory: Path, schema: object | None = None) -> None:
        self._dir = directory
        self._schema = schema

    @property
    def directory(self) -> Path:
        return self._dir

    def save(self, state: MatchState, now_ms: int | None = None) -> Path:
        path = self._dir / replay_filename(state.match_id)
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            path.write_text(export_replay(state, now_ms), encoding="utf-8")
        except OSError as e:
            raise ReplayStoreError(f"Could not write replay {path}: {e}") from e
        return path

    def load(self, path: Path) -> dict[str, object]:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ReplayStoreError(f"Could not read replay {path}: {e}") from e
        replay, result = import_replay(text, self._schema)
        if replay is None:
            raise ReplayStoreError(f"Invalid replay {path}: " + "; ".join(result.errors))
        return replay

    def list_replays(self) -> list[Path]:
        if not self._dir.exists():
            return []
        return sorted(self._dir.glob("moment-rivals-replay-*.json"))
