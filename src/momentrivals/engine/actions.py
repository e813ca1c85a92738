from __future__ import annotations

from dataclasses import dataclass

from .types import Side


@dataclass(frozen=True)
class SelectCardAction:
    card_id: str
    side: Side = "player"


@dataclass(frozen=True)
class DeselectCardAction:
    card_id: str
    side: Side = "player"


@dataclass(frozen=True)
class PassAction:
    side: Side = "player"


@dataclass(frozen=True)
class PlayCardAction:
    """Lock in the current selection."""

    side: Side = "player"


@dataclass(frozen=True)
class CycleCardAction:
    card_id: str
    side: Side = "player"


@dataclass(frozen=True)
class ManualDrawAction:
    pass


@dataclass(frozen=True)
class ProceedAction:
    """Advance one post-lock phase when the match is not auto-advancing."""


@dataclass(frozen=True)
class TimeoutAction:
    token: int


@dataclass(frozen=True)
class ForfeitAction:
    side: Side = "player"


Action = (
    SelectCardAction
    | DeselectCardAction
    | PassAction
    | PlayCardAction
    | CycleCardAction
    | ManualDrawAction
    | ProceedAction
    | TimeoutAction
    | ForfeitAction
)
