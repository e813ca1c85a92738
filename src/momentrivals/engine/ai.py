from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal

from .energy import PlayOption, affordable_plays, energy_efficiency
from .match import MatchState, PlayChoice
from .rand import SeededRandom
from .types import Card, CardPlay, Play, Side, other_side

logger = logging.getLogger(__name__)

Difficulty = Literal["baseline", "easy", "medium", "hard"]
DIFFICULTIES: tuple[Difficulty, ...] = ("baseline", "easy", "medium", "hard")


@dataclass(frozen=True)
class AISpec:
    """AI tuning.

    difficulty:
      baseline = strongest affordable main card, sometimes with a support
      easy     = random, leaning towards offense, passes often
      medium   = reacts to the last revealed play, weighted top-3 pick
      hard     = energy planning, counters, score-aware evaluation
    """

    difficulty: Difficulty = "medium"


@dataclass
class Tendencies:
    aggression: float = 0.0  # -1 defensive .. 1 aggressive
    pass_frequency: float = 0.0  # 0 .. 1


@dataclass
class Memory:
    last_play: Play | None = None
    seen: tuple[int, int] | None = None  # (round, turn) of the last play read
    tendencies: Tendencies = field(default_factory=Tendencies)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _choice(option: PlayOption | None) -> PlayChoice:
    if option is None or not isinstance(option.play, CardPlay):
        return PlayChoice()
    play = option.play
    return PlayChoice(main_id=play.main.id, support_id=play.support.id if play.support else None)


class AIPolicy:
    """Rule-based opponent policy.

    Owns its own generator, so its decisions depend only on its seed and the
    states it is shown. It never looks at the other side's hand or at plays
    that are still face down.
    """

    def __init__(self, spec: AISpec | None = None, seed: int = 42, side: Side = "opponent") -> None:
        self.spec = spec or AISpec()
        self.rng = SeededRandom(seed)
        self.side: Side = side
        self.memory = Memory()

    # --- memory -----------------------------------------------------------------

    def observe(self, state: MatchState) -> None:
        """Remember the rival's most recently revealed play."""
        latest: tuple[tuple[int, int], Play] | None = None
        for rnd in state.rounds:
            for turn in rnd.turns:
                if not turn.revealed:
                    continue
                play = turn.player_play if self.side == "opponent" else turn.opponent_play
                if play is not None:
                    latest = ((rnd.round_number, turn.turn_number), play)
        if latest is None or latest[0] == self.memory.seen:
            return

        self.memory.seen, play = latest
        self.memory.last_play = play
        t = self.memory.tendencies
        kind = _play_type(play)
        if kind == "OFFENSE":
            t.aggression += 0.1
        elif kind == "DEFENSE":
            t.aggression -= 0.1
        else:
            t.pass_frequency += 0.1
        t.aggression = _clamp(t.aggression, -1.0, 1.0)
        t.pass_frequency = _clamp(t.pass_frequency, 0.0, 1.0)

    # --- entry point --------------------------------------------------------------

    def choose(self, state: MatchState) -> PlayChoice:
        self.observe(state)
        me = state.side(self.side)
        options = affordable_plays(
            me.hand, me.energy, support_with_defense=state.rules.support_with_defense
        )

        difficulty = self.spec.difficulty
        if difficulty == "baseline":
            picked = self._baseline(state)
            logger.debug("AI (%s) picked %s", difficulty, picked)
            return picked
        if difficulty == "easy":
            option = self._easy(options)
        elif difficulty == "hard":
            option = self._hard(options, state)
        else:
            option = self._medium(options, state)
        picked = _choice(option)
        logger.debug("AI (%s) picked %s", difficulty, picked)
        return picked

    # --- difficulties ---------------------------------------------------------------

    def _baseline(self, state: MatchState) -> PlayChoice:
        me = state.side(self.side)
        rules = state.rules
        mains = [c for c in me.hand if c.is_main and rules.play_cost([c]) <= me.energy]
        if not mains:
            return PlayChoice()
        best = mains[0]
        for c in mains[1:]:
            if rules.play_power(CardPlay(main=c)) > rules.play_power(CardPlay(main=best)):
                best = c
        if not rules.allows_support(best):
            return PlayChoice(main_id=best.id)
        remaining = me.energy - rules.play_cost([best])
        supports = [c for c in me.hand if c.card_type == "SUPPORT" and c.cost <= remaining]
        if supports and self.rng.next() < 0.3:
            return PlayChoice(main_id=best.id, support_id=supports[0].id)
        return PlayChoice(main_id=best.id)

    def _easy(self, options: list[PlayOption]) -> PlayOption | None:
        if self.rng.next() < 0.2:
            return _pass_option(options)
        offense = [o for o in options if any(c.card_type == "OFFENSE" for c in o.cards)]
        if offense:
            return offense[int(self.rng.next() * len(offense))]
        return options[int(self.rng.next() * len(options))]

    def _medium(self, options: list[PlayOption], state: MatchState) -> PlayOption | None:
        me = state.side(self.side)
        if me.energy <= 2 and state.current_turn <= 2:
            if self.rng.next() < 0.3:
                return _pass_option(options)

        if _play_type(self.memory.last_play) == "OFFENSE":
            defense = [o for o in options if any(c.card_type == "DEFENSE" for c in o.cards)]
            if defense and self.rng.next() < 0.6:
                best = defense[0]
                for o in defense[1:]:
                    if state.rules.defense_value(o.cards) > state.rules.defense_value(best.cards):
                        best = o
                return best

        scored = [(self._score(o, state), o) for o in options if not o.is_pass]
        scored.sort(key=lambda s: s[0], reverse=True)
        if not scored:
            return _pass_option(options)

        top = [o for _, o in scored[:3]]
        weights = [2 ** (len(top) - i) for i in range(len(top))]
        r = self.rng.next() * sum(weights)
        for option, w in zip(top, weights):
            r -= w
            if r <= 0:
                return option
        return top[0]

    def _hard(self, options: list[PlayOption], state: MatchState) -> PlayOption | None:
        me = state.side(self.side)
        turns_remaining = state.config.turns_per_round - state.current_turn + 1

        if turns_remaining == 1 and me.energy < 4:
            all_in = sorted((o for o in options if not o.is_pass), key=lambda o: o.cost, reverse=True)
            if all_in:
                return all_in[0]
        elif turns_remaining > 1 and me.energy < 3:
            if self.rng.next() < 0.7:
                return _pass_option(options)

        if self.memory.last_play is not None:
            counter = _find_counter(options, self.memory.last_play)
            if counter is not None and self.rng.next() < 0.8:
                return counter

        scored = [(self._score_advanced(o, state), o) for o in options if not o.is_pass]
        scored.sort(key=lambda s: s[0], reverse=True)
        if not scored:
            return _pass_option(options)
        if len(scored) > 1 and self.rng.next() < 0.2:
            return scored[1][1]
        return scored[0][1]

    # --- evaluation ------------------------------------------------------------------

    def _score(self, option: PlayOption, state: MatchState) -> float:
        if option.is_pass:
            return 0.0
        cards = option.cards
        score = state.rules.offense_value(cards) * 2
        score += state.rules.defense_value(cards) * 1.5
        score += energy_efficiency(cards) * 10
        score *= 0.9 + self.rng.next() * 0.2
        return score

    def _score_advanced(self, option: PlayOption, state: MatchState) -> float:
        if option.is_pass:
            return 0.0
        score = self._score(option, state)
        me = state.side(self.side)
        rival = state.side(other_side(self.side))
        diff = me.total_score - rival.total_score
        if diff < 0:
            score += state.rules.offense_value(option.cards) * 0.5
        elif diff > 5:
            score += state.rules.defense_value(option.cards) * 0.5
        if len(me.hand) <= 3:
            score *= 1.2
        return score


def _play_type(play: Play | None) -> str | None:
    if play is None:
        return None
    if isinstance(play, CardPlay):
        return play.main.card_type
    return "PASS"


def _pass_option(options: list[PlayOption]) -> PlayOption | None:
    for o in options:
        if o.is_pass:
            return o
    return None


def _find_counter(options: list[PlayOption], last: Play) -> PlayOption | None:
    if not isinstance(last, CardPlay) or last.main.card_type != "OFFENSE":
        return None
    threat = last.main.offense
    for o in options:
        defense: Card | None = next((c for c in o.cards if c.card_type == "DEFENSE"), None)
        if defense is not None and defense.defense >= threat:
            return o
    return None
