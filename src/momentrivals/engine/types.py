from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

CardType = Literal["OFFENSE", "DEFENSE", "SUPPORT"]
Tier = Literal["Legendary", "Rare", "Fandom", "Common"]
Side = Literal["player", "opponent"]
Winner = Literal["player", "opponent", "tie"]

MAIN_TYPES: tuple[CardType, ...] = ("OFFENSE", "DEFENSE")


@dataclass(frozen=True)
class Card:
    """A playable card.

    `power` and `cost` drive the power/momentum rules; the classic rules read
    the four-stat block (`offense`, `defense`, `speed`, `agility`) and use
    `cost` as the energy cost.
    """

    id: str
    name: str
    card_type: CardType
    cost: int
    power: int
    offense: int = 0
    defense: int = 0
    speed: int = 0
    agility: int = 0
    moment_id: int | None = None
    team: str | None = None
    tier: str | None = None
    serial_number: int | None = None
    set_name: str | None = None
    play_category: str | None = None
    play_type: str | None = None

    @property
    def is_main(self) -> bool:
        return self.card_type in MAIN_TYPES


@dataclass(frozen=True)
class PassPlay:
    kind: Literal["PASS"] = "PASS"


@dataclass(frozen=True)
class CardPlay:
    main: Card
    support: Card | None = None
    kind: Literal["CARD"] = "CARD"

    @property
    def cards(self) -> tuple[Card, ...]:
        if self.support is None:
            return (self.main,)
        return (self.main, self.support)


Play = PassPlay | CardPlay

PASS = PassPlay()


@dataclass(frozen=True)
class ScoreResult:
    player_points: int
    opponent_points: int
    description: str


@dataclass(frozen=True)
class TieBreak:
    winner: Side
    reason: str


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: tuple[str, ...] = ()

    @staticmethod
    def from_errors(errors: Sequence[str]) -> "ValidationResult":
        return ValidationResult(valid=not errors, errors=tuple(errors))


def other_side(side: Side) -> Side:
    return "opponent" if side == "player" else "player"
