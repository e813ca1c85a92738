from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from momentrivals.engine.ai import DIFFICULTIES, Difficulty
from momentrivals.engine.cards import moment_to_card
from momentrivals.engine.match import MatchConfig, config_from_mapping
from momentrivals.engine.replay import validate_replay
from momentrivals.engine.types import Card, ValidationResult


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.path))
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _require_str(obj: Mapping[str, object], key: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


def _require_dict(obj: Mapping[str, object], key: str) -> dict[str, object]:
    v = obj.get(key)
    if not isinstance(v, dict):
        raise ContentError(f"Expected object for {key}")
    return v


def _optional_float(obj: Mapping[str, object], key: str, default: float) -> float:
    v = obj.get(key, default)
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise ContentError(f"Expected number for {key}")
    return float(v)


@dataclass(frozen=True)
class ClientConfig:
    version: str
    match: MatchConfig
    ai_difficulty: Difficulty
    reveal_delay: float = 1.0
    auto_advance_delay: float = 2.0


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def _load_validated(self, name: str) -> object:
        path = self._data_dir / f"{name}.json"
        raw = _load_json(path)
        schema = _load_json(self._schema_dir / f"{name}.schema.json")
        validate_json(raw, schema, context=str(path))
        return raw

    def load_config(self) -> ClientConfig:
        raw = self._load_validated("config")
        if not isinstance(raw, dict):
            raise ContentError("config.json must be an object")
        version = _require_str(raw, "version")
        try:
            match = config_from_mapping(_require_dict(raw, "game"))
        except TypeError as e:
            raise ContentError(f"Invalid game settings in config.json: {e}") from e

        ai = raw.get("ai", {})
        difficulty = ai.get("difficulty", "medium") if isinstance(ai, dict) else "medium"
        if difficulty not in DIFFICULTIES:
            raise ContentError(f"Unknown AI difficulty: {difficulty}")

        ui = raw.get("ui", {})
        if not isinstance(ui, dict):
            raise ContentError("config.json.ui must be an object")
        return ClientConfig(
            version=version,
            match=match,
            ai_difficulty=difficulty,  # type: ignore[arg-type]
            reveal_delay=_optional_float(ui, "reveal_delay", 1.0),
            auto_advance_delay=_optional_float(ui, "auto_advance_delay", 2.0),
        )

    def load_moment_records(self) -> list[dict[str, object]]:
        raw = self._load_validated("moments")
        if not isinstance(raw, dict):
            raise ContentError("moments.json must be an object")
        records = raw.get("moments")
        if not isinstance(records, list):
            raise ContentError("moments.json.moments must be a list")
        return [r for r in records if isinstance(r, dict)]

    def load_moments(self) -> list[Card]:
        try:
            return [moment_to_card(r) for r in self.load_moment_records()]
        except ValueError as e:
            raise ContentError(f"Invalid moment in moments.json: {e}") from e

    def load_replay_schema(self) -> object:
        return _load_json(self._schema_dir / "replay.schema.json")

    def validate_replay(self, replay: object) -> ValidationResult:
        return validate_replay(replay, self.load_replay_schema())

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_config()
        _ = self.load_moments()
        Draft202012Validator.check_schema(self.load_replay_schema())
