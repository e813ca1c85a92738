from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Paths:
    repo_root: Path
    data_dir: Path
    schema_dir: Path
    userdata_dir: Path

    @property
    def telemetry_path(self) -> Path:
        return self.userdata_dir / "telemetry.jsonl"

    @property
    def replays_dir(self) -> Path:
        return self.userdata_dir / "replays"


def get_paths(userdata_dir: Path | None = None) -> Paths:
    # src/momentrivals/paths.py -> parents: [momentrivals, src, repo_root]
    repo_root = Path(__file__).resolve().parents[2]
    data_dir = Path(__file__).resolve().parent / "data"
    return Paths(
        repo_root=repo_root,
        data_dir=data_dir,
        schema_dir=data_dir / "schemas",
        userdata_dir=userdata_dir or repo_root / "userdata",
    )
