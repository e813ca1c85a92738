from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .types import Card, CardPlay, PASS, Play


@dataclass(frozen=True)
class PlayOption:
    """A candidate play with its precomputed cost."""

    play: Play
    cost: int

    @property
    def is_pass(self) -> bool:
        return self.play.kind == "PASS"

    @property
    def cards(self) -> tuple[Card, ...]:
        if isinstance(self.play, CardPlay):
            return self.play.cards
        return ()


def play_cost(cards: Iterable[Card]) -> int:
    return sum(c.cost for c in cards)


def can_afford(cards: Sequence[Card], energy: int) -> bool:
    # an empty play is a pass, always affordable
    if not cards:
        return True
    return play_cost(cards) <= energy


def spend(energy: int, cost: int) -> int:
    return max(0, energy - cost)


def refresh_to_max(max_energy: int) -> int:
    """Power/momentum refresh: reset to the current cap (unspent energy is lost)."""
    return max_energy


def regenerate(energy: int, passed_last_turn: bool, energy_per_turn: int, pass_bonus: int) -> int:
    """Classic regeneration: fixed increment plus pass bonus, no cap."""
    gained = energy + energy_per_turn
    if passed_last_turn:
        gained += pass_bonus
    return gained


def energy_efficiency(cards: Sequence[Card]) -> float:
    cost = play_cost(cards)
    if cost == 0:
        return 0.0
    offense = sum(c.offense for c in cards if c.card_type == "OFFENSE")
    return offense / cost


def affordable_plays(
    hand: Sequence[Card], energy: int, *, support_with_defense: bool = True
) -> list[PlayOption]:
    """All legal plays within `energy`: offense (+support), defense (+support), then PASS."""
    options: list[PlayOption] = []
    supports = [c for c in hand if c.card_type == "SUPPORT"]

    def add_main(main: Card, allow_support: bool) -> None:
        if main.cost > energy:
            return
        options.append(PlayOption(play=CardPlay(main=main), cost=main.cost))
        if not allow_support:
            return
        for sup in supports:
            total = main.cost + sup.cost
            if total <= energy:
                options.append(PlayOption(play=CardPlay(main=main, support=sup), cost=total))

    for card in hand:
        if card.card_type == "OFFENSE":
            add_main(card, True)
    for card in hand:
        if card.card_type == "DEFENSE":
            add_main(card, support_with_defense)

    options.append(PlayOption(play=PASS, cost=0))
    return options
