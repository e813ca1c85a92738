from __future__ import annotations

import json
from pathlib import Path

import pytest

from momentrivals.cli import main


def test_simulate_writes_replay(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    out = tmp_path / "replays" / "r.json"
    rc = main(["simulate", "--seed", "5", "--difficulty", "hard", "--out", str(out)])
    assert rc == 0

    printed = capsys.readouterr().out
    assert "Winner:" in printed
    assert f"Replay written to: {out}" in printed
    replay = json.loads(out.read_text(encoding="utf-8"))
    assert replay["metadata"]["seed"] == 5


def test_simulate_event_log(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["simulate", "--seed", "2", "--rules", "classic", "--log"]) == 0
    printed = capsys.readouterr().out
    assert "[R1 T1] Match started (classic rules)." in printed


def test_summary_of_written_replay(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    out = tmp_path / "r.json"
    assert main(["simulate", "--seed", "8", "--out", str(out)]) == 0
    capsys.readouterr()

    assert main(["summary", str(out)]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["totalTurns"] == 12


def test_summary_rejects_invalid_files(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"version": "1.0"}), encoding="utf-8")
    assert main(["summary", str(bad)]) == 1
    assert "invalid: Missing matchId" in capsys.readouterr().err

    assert main(["summary", str(tmp_path / "nope.json")]) == 2


def test_no_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert main([]) == 1
    assert "simulate" in capsys.readouterr().out
