"""Match replays: a JSON document describing a finished (or abandoned) match.

Keys are camelCase so replays stay readable by older clients.
"""

from __future__ import annotations

import json
import logging
import math
import time
from collections.abc import Mapping
from datetime import datetime, timezone

from jsonschema import Draft202012Validator

from .match import MatchState, PlayerState, config_to_mapping
from .types import Card, CardPlay, Play, ValidationResult

logger = logging.getLogger(__name__)

REPLAY_VERSION = "1.0"
GENERATOR = "momentrivals"


def simplify_card(card: Card) -> dict[str, object]:
    return {
        "id": card.id,
        "momentId": card.moment_id,
        "playerName": card.name,
        "cardType": card.card_type,
        "energyCost": card.cost,
        "power": card.power,
        "offense": card.offense,
        "defense": card.defense,
        "speed": card.speed,
        "agility": card.agility,
    }


def simplify_play(play: Play | None) -> dict[str, object] | None:
    if play is None:
        return None
    if not isinstance(play, CardPlay):
        return {"type": "PASS"}
    return {"type": play.main.card_type, "cards": [simplify_card(c) for c in play.cards]}


def _player_entry(ps: PlayerState) -> dict[str, object]:
    return {
        "id": ps.side,
        "deck": [simplify_card(c) for c in ps.deck],
        "finalScore": ps.total_score,
        "roundsWon": ps.rounds_won,
    }


def create_replay(state: MatchState, now_ms: int | None = None) -> dict[str, object]:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    start_ms = int(state.started_at * 1000)
    replay: dict[str, object] = {
        "version": REPLAY_VERSION,
        "matchId": state.match_id,
        "startTime": start_ms,
        "endTime": now_ms,
        "duration": max(0, now_ms - start_ms),
        "config": config_to_mapping(state.config),
        "players": {
            "player": _player_entry(state.player),
            "opponent": _player_entry(state.opponent),
        },
        "winner": state.winner,
        "winReason": state.win_reason,
        "rounds": [
            {
                "roundNumber": r.round_number,
                "finalScore": dict(r.final_score),
                "winner": r.winner,
                "turns": [
                    {
                        "turnNumber": t.turn_number,
                        "playerPlay": simplify_play(t.player_play),
                        "opponentPlay": simplify_play(t.opponent_play),
                        "playerPoints": t.player_points,
                        "opponentPoints": t.opponent_points,
                    }
                    for t in r.turns
                ],
            }
            for r in state.rounds
        ],
        "events": [{"round": e.round, "turn": e.turn, "message": e.message} for e in state.event_log],
        "metadata": {
            "generator": GENERATOR,
            "ruleSet": state.rules.name,
            "seed": state.seed,
            "timestamp": datetime.fromtimestamp(now_ms / 1000, tz=timezone.utc).isoformat(),
        },
    }
    logger.info("replay created for %s", state.match_id)
    return replay


def export_replay(state: MatchState, now_ms: int | None = None) -> str:
    return json.dumps(create_replay(state, now_ms), indent=2, ensure_ascii=False)


def validate_replay(replay: object, schema: object | None = None) -> ValidationResult:
    """Check the fields a replay viewer relies on.

    When a JSON schema is given, its violations are reported after the
    basic checks.
    """
    if not isinstance(replay, Mapping):
        return ValidationResult.from_errors(["Replay must be a JSON object"])

    errors: list[str] = []
    if not replay.get("version"):
        errors.append("Missing version")
    if not replay.get("matchId"):
        errors.append("Missing matchId")
    players = replay.get("players")
    if not isinstance(players, Mapping) or not players.get("player") or not players.get("opponent"):
        errors.append("Invalid players data")
    if not isinstance(replay.get("rounds"), list):
        errors.append("Invalid rounds data")

    if schema is not None:
        validator = Draft202012Validator(schema)
        for err in sorted(validator.iter_errors(replay), key=lambda e: list(e.path)):
            loc = "/".join(str(p) for p in err.absolute_path)
            errors.append(f"{loc or '<root>'}: {err.message}")
    return ValidationResult.from_errors(errors)


def import_replay(text: str, schema: object | None = None) -> tuple[dict[str, object] | None, ValidationResult]:
    try:
        replay = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("failed to import replay: %s", e)
        return None, ValidationResult.from_errors([f"Invalid JSON: {e.msg}"])

    result = validate_replay(replay, schema)
    if not result.valid:
        logger.warning("rejected replay: %s", "; ".join(result.errors))
        return None, result
    logger.info("replay imported: %s", replay.get("matchId"))
    return replay, result


def format_duration(ms: int | float) -> str:
    seconds = math.floor(ms / 1000)
    minutes = seconds // 60
    rest = seconds % 60
    if minutes > 0:
        return f"{minutes}m {rest}s"
    return f"{seconds}s"


def _mapping(value: object) -> Mapping[str, object]:
    return value if isinstance(value, Mapping) else {}


def replay_summary(replay: Mapping[str, object]) -> dict[str, object]:
    players = _mapping(replay.get("players"))
    p, o = _mapping(players.get("player")), _mapping(players.get("opponent"))
    rounds = replay.get("rounds")
    if not isinstance(rounds, list):
        rounds = []
    metadata = replay.get("metadata")
    duration = replay.get("duration")
    return {
        "matchId": replay.get("matchId"),
        "duration": format_duration(duration if isinstance(duration, (int, float)) else 0),
        "winner": replay.get("winner"),
        "finalScore": f"{p.get('finalScore', 0)} - {o.get('finalScore', 0)}",
        "roundsWon": f"{p.get('roundsWon', 0)} - {o.get('roundsWon', 0)}",
        "totalTurns": sum(len(r.get("turns") or []) for r in rounds if isinstance(r, Mapping)),
        "date": metadata.get("timestamp", "Unknown") if isinstance(metadata, Mapping) else "Unknown",
    }
