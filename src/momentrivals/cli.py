"""Headless entry point: simulate seeded AI-vs-AI matches and inspect replays."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from momentrivals.engine.actions import (
    ManualDrawAction,
    PassAction,
    PlayCardAction,
    ProceedAction,
    SelectCardAction,
)
from momentrivals.engine.ai import DIFFICULTIES, AIPolicy, AISpec, Difficulty
from momentrivals.engine.cards import opponent_deck, validate_deck
from momentrivals.engine.match import MatchConfig, MatchState, new_match, step
from momentrivals.engine.replay import export_replay, import_replay, replay_summary
from momentrivals.engine.rules import RULE_SETS
from momentrivals.paths import get_paths
from momentrivals.services.content import ContentError, ContentService

MAX_STEPS = 2000


def autoplay(state: MatchState, player_ai: AIPolicy) -> MatchState:
    """Drive the player side with `player_ai` until the match ends."""
    for _ in range(MAX_STEPS):
        if state.winner is not None:
            break
        if state.phase == "DRAW" and state.waiting_for_draw:
            step(state, ManualDrawAction())
        elif state.phase == "ACTION":
            choice = player_ai.choose(state)
            if choice.is_pass:
                step(state, PassAction())
                continue
            step(state, SelectCardAction(card_id=choice.main_id or ""))
            if choice.support_id:
                step(state, SelectCardAction(card_id=choice.support_id))
            if not step(state, PlayCardAction()).ok:
                step(state, PassAction())
        else:
            step(state, ProceedAction())
    return state


def run_simulation(
    seed: int,
    *,
    difficulty: Difficulty = "medium",
    player_difficulty: Difficulty = "medium",
    rule_set: str | None = None,
    content: ContentService | None = None,
) -> MatchState:
    paths = get_paths()
    content = content or ContentService(paths.data_dir, paths.schema_dir)
    cfg: MatchConfig = content.load_config().match
    if rule_set is not None:
        cfg = replace(cfg, rule_set=rule_set)

    deck = content.load_moments()
    check = validate_deck(deck, cfg.deck_size)
    if not check.valid:
        raise ContentError("Bundled deck is not playable: " + "; ".join(check.errors))

    policy = AIPolicy(AISpec(difficulty), seed=seed)
    state = new_match(deck, opponent_deck(), seed=seed, config=cfg, policy=policy)
    return autoplay(state, AIPolicy(AISpec(player_difficulty), seed=seed + 1, side="player"))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="momentrivals-sim", description="Moment Rivals headless tools")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    # --- simulate ---
    p_sim = sub.add_parser("simulate", help="Play one seeded AI-vs-AI match")
    p_sim.add_argument("--seed", type=int, default=42)
    p_sim.add_argument("--difficulty", choices=DIFFICULTIES, default="medium", help="Opponent AI")
    p_sim.add_argument("--player-difficulty", choices=DIFFICULTIES, default="medium", help="Player-side AI")
    p_sim.add_argument("--rules", choices=sorted(RULE_SETS), default=None, help="Override the rule set")
    p_sim.add_argument("--out", default=None, help="Write the replay JSON to this path")
    p_sim.add_argument("--log", action="store_true", help="Print the event log")

    # --- summary ---
    p_sum = sub.add_parser("summary", help="Validate a replay file and print its summary")
    p_sum.add_argument("file", help="Path to a replay JSON file")

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if args.command is None:
        parser.print_help()
        return 1
    if args.command == "simulate":
        return _cmd_simulate(args)
    return _cmd_summary(args)


def _cmd_simulate(args: argparse.Namespace) -> int:
    try:
        state = run_simulation(
            args.seed,
            difficulty=args.difficulty,
            player_difficulty=args.player_difficulty,
            rule_set=args.rules,
        )
    except ContentError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    if args.log:
        for e in state.event_log:
            print(f"[R{e.round} T{e.turn}] {e.message}")
    print(f"Winner: {state.winner} ({state.win_reason})")
    print(f"Score: {state.player.total_score} - {state.opponent.total_score}")
    print(f"Rounds won: {state.player.rounds_won} - {state.opponent.rounds_won}")

    if args.out:
        out = Path(args.out)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(export_replay(state), encoding="utf-8")
        print(f"Replay written to: {out}")
    return 0


def _cmd_summary(args: argparse.Namespace) -> int:
    paths = get_paths()
    schema = ContentService(paths.data_dir, paths.schema_dir).load_replay_schema()
    try:
        text = Path(args.file).read_text(encoding="utf-8")
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    replay, result = import_replay(text, schema)
    if replay is None:
        for err in result.errors:
            print(f"invalid: {err}", file=sys.stderr)
        return 1
    print(json.dumps(replay_summary(replay), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
