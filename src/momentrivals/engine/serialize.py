from __future__ import annotations

from .actions import (
    Action,
    CycleCardAction,
    DeselectCardAction,
    ForfeitAction,
    ManualDrawAction,
    PassAction,
    PlayCardAction,
    ProceedAction,
    SelectCardAction,
    TimeoutAction,
)
from .match import MatchState, PlayerState, Round, Turn
from .types import Card, CardPlay, Play, Side


def action_to_dict(a: Action) -> dict[str, object]:
    if isinstance(a, SelectCardAction):
        return {"type": "select", "side": a.side, "card_id": a.card_id}
    if isinstance(a, DeselectCardAction):
        return {"type": "deselect", "side": a.side, "card_id": a.card_id}
    if isinstance(a, PlayCardAction):
        return {"type": "play", "side": a.side}
    if isinstance(a, PassAction):
        return {"type": "pass", "side": a.side}
    if isinstance(a, CycleCardAction):
        return {"type": "cycle", "side": a.side, "card_id": a.card_id}
    if isinstance(a, ManualDrawAction):
        return {"type": "manual_draw"}
    if isinstance(a, ProceedAction):
        return {"type": "proceed"}
    if isinstance(a, TimeoutAction):
        return {"type": "timeout", "token": a.token}
    if isinstance(a, ForfeitAction):
        return {"type": "forfeit", "side": a.side}
    # should be unreachable
    return {"type": "unknown"}


def card_to_dict(c: Card) -> dict[str, object]:
    return {
        "id": c.id,
        "name": c.name,
        "card_type": c.card_type,
        "cost": c.cost,
        "power": c.power,
        "offense": c.offense,
        "defense": c.defense,
        "speed": c.speed,
        "agility": c.agility,
    }


def play_to_dict(p: Play | None) -> dict[str, object] | None:
    if p is None:
        return None
    if isinstance(p, CardPlay):
        return {
            "kind": "CARD",
            "main": card_to_dict(p.main),
            "support": card_to_dict(p.support) if p.support is not None else None,
        }
    return {"kind": "PASS"}


def _player_to_dict(p: PlayerState, hidden: bool) -> dict[str, object]:
    out: dict[str, object] = {
        "side": p.side,
        "energy": p.energy,
        "max_energy": p.max_energy,
        "deck_count": len(p.deck),
        "hand_count": len(p.hand),
        "graveyard": [c.id for c in p.graveyard],
        "total_score": p.total_score,
        "round_score": p.round_score,
        "rounds_won": p.rounds_won,
        "cycled_this_turn": p.cycled_this_turn,
        "passed_last_turn": p.passed_last_turn,
        "locked": p.locked_play is not None,
    }
    if hidden:
        return out
    out["deck"] = [c.id for c in p.deck]
    out["hand"] = [card_to_dict(c) for c in p.hand]
    out["selected"] = list(p.selected)
    out["locked_play"] = play_to_dict(p.locked_play)
    return out


def _turn_to_dict(t: Turn, viewer: Side | None) -> dict[str, object]:
    show_player = t.revealed or viewer in (None, "player")
    show_opponent = t.revealed or viewer in (None, "opponent")
    return {
        "turn_number": t.turn_number,
        "player_play": play_to_dict(t.player_play) if show_player else None,
        "opponent_play": play_to_dict(t.opponent_play) if show_opponent else None,
        "player_points": t.player_points,
        "opponent_points": t.opponent_points,
        "revealed": t.revealed,
        "resolved": t.resolved,
    }


def _round_to_dict(r: Round, viewer: Side | None) -> dict[str, object]:
    return {
        "round_number": r.round_number,
        "winner": r.winner,
        "final_score": dict(r.final_score),
        "turns": [_turn_to_dict(t, viewer) for t in r.turns],
    }


def snapshot(state: MatchState, viewer: Side | None = None) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the current match state.

    With `viewer` set, the other side's hand, deck and pending play are left
    out, as are plays still face down. Wall-clock fields are never included,
    so equal inputs give equal snapshots.
    """
    hide = viewer is not None
    return {
        "seed": state.seed,
        "rule_set": state.rules.name,
        "phase": state.phase,
        "current_round": state.current_round,
        "current_turn": state.current_turn,
        "waiting_for_draw": state.waiting_for_draw,
        "turn_token": state.turn_token,
        "winner": state.winner,
        "win_reason": state.win_reason,
        "players": {
            "player": _player_to_dict(state.player, hidden=hide and viewer != "player"),
            "opponent": _player_to_dict(state.opponent, hidden=hide and viewer != "opponent"),
        },
        "rounds": [_round_to_dict(r, viewer) for r in state.rounds],
        "events": [e.message for e in state.event_log],
        "action_log": [action_to_dict(a) for a in state.action_log],
    }
