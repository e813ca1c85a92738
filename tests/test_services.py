from __future__ import annotations

from pathlib import Path

import pytest

from momentrivals.cli import run_simulation
from momentrivals.paths import get_paths
from momentrivals.services.content import ContentService
from momentrivals.services.replays import ReplayStore, ReplayStoreError, replay_filename
from momentrivals.services.telemetry import TelemetryService


def test_paths_use_userdata_override(tmp_path: Path) -> None:
    paths = get_paths(tmp_path)
    assert paths.telemetry_path == tmp_path / "telemetry.jsonl"
    assert paths.replays_dir == tmp_path / "replays"
    assert (paths.data_dir / "config.json").exists()


def test_telemetry_appends_jsonl(tmp_path: Path) -> None:
    telemetry = TelemetryService(tmp_path / "t" / "telemetry.jsonl")
    assert telemetry.read_all() == []

    state = run_simulation(9)
    telemetry.match_started(state, "hard")
    telemetry.match_ended(state)

    records = telemetry.read_all()
    assert [r["type"] for r in records] == ["match_started", "match_ended"]
    assert records[0]["payload"]["difficulty"] == "hard"  # type: ignore[index]
    assert records[1]["payload"]["winner"] == state.winner  # type: ignore[index]


def test_replay_filename_is_safe() -> None:
    assert replay_filename("match_1_2") == "moment-rivals-replay-match_1_2.json"
    assert replay_filename("a/b c") == "moment-rivals-replay-a_b_c.json"


def test_replay_store_save_and_load(tmp_path: Path) -> None:
    paths = get_paths()
    schema = ContentService(paths.data_dir, paths.schema_dir).load_replay_schema()
    store = ReplayStore(tmp_path / "replays", schema)
    assert store.list_replays() == []

    state = run_simulation(10)
    path = store.save(state)
    assert path.parent == store.directory
    assert store.list_replays() == [path]

    replay = store.load(path)
    assert replay["matchId"] == state.match_id


def test_replay_store_rejects_bad_files(tmp_path: Path) -> None:
    store = ReplayStore(tmp_path)
    with pytest.raises(ReplayStoreError, match="Could not read"):
        store.load(tmp_path / "missing.json")

    bad = tmp_path / "moment-rivals-replay-bad.json"
    bad.write_text("{}", encoding="utf-8")
    with pytest.raises(ReplayStoreError, match="Missing version"):
        store.load(bad)
