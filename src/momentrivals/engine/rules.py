"""Rule-set strategies sharing one match state machine.

`POWER_MOMENTUM` is the canonical rule set: momentum refreshes to a cap that
grows each round, plays are scored by boosted power, and turn 2 of a round
is revealed together with turn 3. `CLASSIC` keeps the older offense/defense
ruleset: uncapped regeneration with a bonus for passing, the four-stat
scoring model and a best-of-N short circuit.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from . import energy
from .rand import SeededRandom
from .scoring import (
    boosted_power,
    calculate_classic_score,
    calculate_score,
    classic_offense,
    classic_tie_break,
    power_momentum_tie_break,
)
from .types import Card, CardPlay, Play, ScoreResult, Side, TieBreak

if TYPE_CHECKING:
    from .match import MatchConfig, PlayerState

RuleSetName = Literal["power_momentum", "classic"]


@dataclass(frozen=True)
class RuleSet(ABC):
    name: RuleSetName
    delayed_reveal: bool
    manual_draw_gate: bool
    support_with_defense: bool
    rounds_to_win: int | None

    def play_cost(self, cards: Iterable[Card]) -> int:
        return energy.play_cost(cards)

    def allows_support(self, main: Card) -> bool:
        return main.card_type == "OFFENSE" or self.support_with_defense

    @abstractmethod
    def play_power(self, play: Play) -> int:
        ...

    @abstractmethod
    def score_pair(self, player_play: Play, opponent_play: Play) -> ScoreResult:
        ...

    @abstractmethod
    def refresh_energy(self, ps: PlayerState, config: MatchConfig, *, first_turn_of_round: bool) -> None:
        ...

    @abstractmethod
    def on_round_end(self, ps: PlayerState, config: MatchConfig) -> None:
        ...

    @abstractmethod
    def decide_winner(self, player: PlayerState, opponent: PlayerState, rng: SeededRandom) -> TieBreak:
        ...

    @abstractmethod
    def offense_value(self, cards: Sequence[Card]) -> float:
        ...

    @abstractmethod
    def defense_value(self, cards: Sequence[Card]) -> float:
        ...

    def early_winner(self, player: PlayerState, opponent: PlayerState) -> Side | None:
        """Best-of-N short circuit; None while the match must continue."""
        if self.rounds_to_win is None:
            return None
        if player.rounds_won >= self.rounds_to_win:
            return "player"
        if opponent.rounds_won >= self.rounds_to_win:
            return "opponent"
        return None


@dataclass(frozen=True)
class PowerMomentumRules(RuleSet):
    def play_power(self, play: Play) -> int:
        if isinstance(play, CardPlay):
            return boosted_power(play)
        return 0

    def score_pair(self, player_play: Play, opponent_play: Play) -> ScoreResult:
        return calculate_score(player_play, opponent_play)

    def refresh_energy(self, ps: PlayerState, config: MatchConfig, *, first_turn_of_round: bool) -> None:
        ps.energy = energy.refresh_to_max(ps.max_energy)

    def on_round_end(self, ps: PlayerState, config: MatchConfig) -> None:
        ps.max_energy += config.energy_per_turn

    def decide_winner(self, player: PlayerState, opponent: PlayerState, rng: SeededRandom) -> TieBreak:
        return power_momentum_tie_break(player, opponent, rng)

    def offense_value(self, cards: Sequence[Card]) -> float:
        if not cards or cards[0].card_type != "OFFENSE":
            return 0.0
        return float(sum(c.power for c in cards))

    def defense_value(self, cards: Sequence[Card]) -> float:
        if not cards or cards[0].card_type != "DEFENSE":
            return 0.0
        return float(sum(c.power for c in cards))


@dataclass(frozen=True)
class ClassicRules(RuleSet):
    def play_power(self, play: Play) -> int:
        return classic_offense(play)

    def score_pair(self, player_play: Play, opponent_play: Play) -> ScoreResult:
        return calculate_classic_score(player_play, opponent_play)

    def refresh_energy(self, ps: PlayerState, config: MatchConfig, *, first_turn_of_round: bool) -> None:
        if first_turn_of_round:
            ps.energy = config.starting_energy
        else:
            ps.energy = energy.regenerate(
                ps.energy, ps.passed_last_turn, config.energy_per_turn, config.pass_bonus
            )
        ps.passed_last_turn = False

    def on_round_end(self, ps: PlayerState, config: MatchConfig) -> None:
        ps.passed_last_turn = False

    def decide_winner(self, player: PlayerState, opponent: PlayerState, rng: SeededRandom) -> TieBreak:
        if player.rounds_won > opponent.rounds_won:
            return TieBreak(winner="player", reason=f"Rounds won: {player.rounds_won} vs {opponent.rounds_won}")
        if opponent.rounds_won > player.rounds_won:
            return TieBreak(winner="opponent", reason=f"Rounds won: {opponent.rounds_won} vs {player.rounds_won}")
        return classic_tie_break(player, opponent)

    def offense_value(self, cards: Sequence[Card]) -> float:
        return float(sum(c.offense for c in cards if c.card_type == "OFFENSE"))

    def defense_value(self, cards: Sequence[Card]) -> float:
        total = 0.0
        for c in cards:
            if c.card_type == "DEFENSE":
                total += c.defense
            elif c.card_type == "OFFENSE":
                total += c.defense * 0.3
        return total


POWER_MOMENTUM = PowerMomentumRules(
    name="power_momentum",
    delayed_reveal=True,
    manual_draw_gate=True,
    support_with_defense=True,
    rounds_to_win=None,
)

CLASSIC = ClassicRules(
    name="classic",
    delayed_reveal=False,
    manual_draw_gate=False,
    support_with_defense=False,
    rounds_to_win=3,
)

RULE_SETS: dict[str, RuleSet] = {r.name: r for r in (POWER_MOMENTUM, CLASSIC)}


def rules_for(name: str) -> RuleSet:
    try:
        return RULE_SETS[name]
    except KeyError as e:
        raise ValueError(f"Unknown rule set: {name}") from e
