from __future__ import annotations

import math
from typing import TYPE_CHECKING

from .rand import SeededRandom
from .types import Card, CardPlay, Play, ScoreResult, TieBreak

if TYPE_CHECKING:
    from .match import PlayerState


def boosted_power(play: CardPlay) -> int:
    boost = play.support.power if play.support is not None else 0
    return play.main.power + boost


def _describe_power(play: CardPlay) -> str:
    if play.support is not None:
        return f"{play.main.name} + {play.support.name} (Power:{boosted_power(play)})"
    return f"{play.main.name} (Power:{boosted_power(play)})"


def calculate_score(player_play: Play, opponent_play: Play) -> ScoreResult:
    """Points for one simultaneously revealed pair under the power/momentum rules.

    Pure and role-symmetric: swapping the arguments swaps the points.
    """
    if isinstance(player_play, CardPlay) and isinstance(opponent_play, CardPlay):
        p_power = boosted_power(player_play)
        o_power = boosted_power(opponent_play)
        p_type = player_play.main.card_type
        o_type = opponent_play.main.card_type
        p_points = 0
        o_points = 0
        if p_type == "OFFENSE" and o_type == "DEFENSE":
            p_points = max(0, p_power - o_power)
        elif p_type == "DEFENSE" and o_type == "OFFENSE":
            o_points = max(0, o_power - p_power)
        elif p_type == "OFFENSE" and o_type == "OFFENSE":
            p_points = p_power
            o_points = o_power
        return ScoreResult(
            player_points=p_points,
            opponent_points=o_points,
            description=f"{_describe_power(player_play)} vs {_describe_power(opponent_play)}",
        )

    if isinstance(player_play, CardPlay):
        return ScoreResult(
            player_points=boosted_power(player_play),
            opponent_points=0,
            description=f"{_describe_power(player_play)} scores unopposed",
        )
    if isinstance(opponent_play, CardPlay):
        return ScoreResult(
            player_points=0,
            opponent_points=boosted_power(opponent_play),
            description=f"{_describe_power(opponent_play)} scores unopposed",
        )
    return ScoreResult(player_points=0, opponent_points=0, description="Both players passed")


def classic_offense(play: Play) -> int:
    if not isinstance(play, CardPlay) or play.main.card_type != "OFFENSE":
        return 0
    value = play.main.offense
    if play.support is not None:
        # support adds half its agility
        value += math.floor(play.support.agility * 0.5)
    return value


def classic_defense(play: Play) -> int:
    if not isinstance(play, CardPlay):
        return 0
    if play.main.card_type == "DEFENSE":
        return play.main.defense
    # offense cards carry 30% of their defense passively
    return math.floor(play.main.defense * 0.3)


def calculate_classic_score(player_play: Play, opponent_play: Play) -> ScoreResult:
    """Points for one revealed pair under the classic offense/defense rules."""
    p_card = isinstance(player_play, CardPlay)
    o_card = isinstance(opponent_play, CardPlay)
    if not p_card and not o_card:
        return ScoreResult(0, 0, "Both players passed")
    if not p_card:
        return ScoreResult(0, classic_offense(opponent_play), "Player passed, opponent scores freely")
    if not o_card:
        return ScoreResult(classic_offense(player_play), 0, "Opponent passed, player scores freely")

    p_off, p_def = classic_offense(player_play), classic_defense(player_play)
    o_off, o_def = classic_offense(opponent_play), classic_defense(opponent_play)
    return ScoreResult(
        player_points=max(0, p_off - o_def),
        opponent_points=max(0, o_off - p_def),
        description=f"Player OFF:{p_off} DEF:{p_def} vs Opponent OFF:{o_off} DEF:{o_def}",
    )


def hand_strength(hand: list[Card]) -> int:
    """Sum of the top three offense values among OFFENSE cards in hand."""
    offense = sorted((c.offense for c in hand if c.card_type == "OFFENSE"), reverse=True)
    return sum(offense[:3])


def _compare(label: str, p: int, o: int) -> TieBreak | None:
    if p > o:
        return TieBreak(winner="player", reason=f"{label}: {p} vs {o}")
    if o > p:
        return TieBreak(winner="opponent", reason=f"{label}: {o} vs {p}")
    return None


def power_momentum_tie_break(player: PlayerState, opponent: PlayerState, rng: SeededRandom) -> TieBreak:
    """Total score, then rounds won, then remaining energy, then a seeded coin flip."""
    for label, p, o in (
        ("Total score", player.total_score, opponent.total_score),
        ("Rounds won", player.rounds_won, opponent.rounds_won),
        ("Remaining energy", player.energy, opponent.energy),
    ):
        res = _compare(label, p, o)
        if res is not None:
            return res
    winner = "player" if rng.next() < 0.5 else "opponent"
    return TieBreak(winner=winner, reason="Coin flip (all other factors equal)")


def classic_tie_break(player: PlayerState, opponent: PlayerState) -> TieBreak:
    """Total score, hand strength, remaining energy, then card-count parity."""
    for label, p, o in (
        ("Total score", player.total_score, opponent.total_score),
        ("Hand strength", hand_strength(player.hand), hand_strength(opponent.hand)),
        ("Remaining energy", player.energy, opponent.energy),
    ):
        res = _compare(label, p, o)
        if res is not None:
            return res
    cards_left = sum(len(ps.deck) + len(ps.hand) + len(ps.graveyard) for ps in (player, opponent))
    winner = "player" if cards_left % 2 == 0 else "opponent"
    return TieBreak(winner=winner, reason="Coin flip (all other factors equal)")
