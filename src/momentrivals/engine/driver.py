from __future__ import annotations

import logging
from collections.abc import Sequence

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
from .ai import AIPolicy, AISpec
from .match import MatchConfig, MatchEvent, MatchState, new_match, step
from .serialize import snapshot
from .timer import TurnTimer
from .types import Card, Side

logger = logging.getLogger(__name__)


class MatchDriver:
    """Facade a presentation layer talks to.

    Every call returns the new snapshot as seen by `viewer`. Calls that are not
    legal right now leave the match untouched and record `last_error`; nothing
    here raises for gameplay reasons. The driver owns the turn timer and keeps
    it in step with the match's action phases.
    """

    def __init__(self, state: MatchState, viewer: Side = "player") -> None:
        self.state = state
        self.viewer: Side = viewer
        self.timer = TurnTimer(state.config.turn_seconds)
        self.last_error: str | None = None
        self.closed = False
        self._sync_timer()

    @classmethod
    def start(
        cls,
        player_deck: Sequence[Card],
        opponent_deck: Sequence[Card],
        seed: int,
        config: MatchConfig | None = None,
        ai: AISpec | None = None,
    ) -> "MatchDriver":
        policy = AIPolicy(ai or AISpec(), seed=seed)
        state = new_match(player_deck, opponent_deck, seed=seed, config=config, policy=policy)
        return cls(state)

    # --- intents ----------------------------------------------------------------

    def select_card(self, card_id: str) -> dict[str, object]:
        return self._dispatch(SelectCardAction(card_id=card_id, side=self.viewer))

    def deselect_card(self, card_id: str) -> dict[str, object]:
        return self._dispatch(DeselectCardAction(card_id=card_id, side=self.viewer))

    def select_pass(self) -> dict[str, object]:
        return self._dispatch(PassAction(side=self.viewer))

    def play_card(self) -> dict[str, object]:
        return self._dispatch(PlayCardAction(side=self.viewer))

    def cycle_card(self, card_id: str) -> dict[str, object]:
        return self._dispatch(CycleCardAction(card_id=card_id, side=self.viewer))

    def advance_manual_draw(self) -> dict[str, object]:
        return self._dispatch(ManualDrawAction())

    def forfeit(self) -> dict[str, object]:
        return self._dispatch(ForfeitAction(side=self.viewer))

    def proceed(self) -> dict[str, object]:
        return self._dispatch(ProceedAction())

    def tick(self, dt: float) -> dict[str, object]:
        token = self.timer.advance(dt)
        if token is not None:
            logger.debug("turn timer expired (token %s)", token)
            return self._dispatch(TimeoutAction(token=token))
        return self.snapshot()

    # --- views ------------------------------------------------------------------

    def snapshot(self) -> dict[str, object]:
        return snapshot(self.state, viewer=self.viewer)

    @property
    def events(self) -> list[MatchEvent]:
        return list(self.state.event_log)

    @property
    def finished(self) -> bool:
        return self.state.winner is not None

    @property
    def seconds_left(self) -> int:
        return self.timer.seconds_left if self.timer.running else 0

    def close(self) -> None:
        self.timer.cancel()
        self.closed = True

    # --- internals --------------------------------------------------------------

    def _dispatch(self, action: Action) -> dict[str, object]:
        if self.closed:
            self.last_error = "Driver is closed."
            return self.snapshot()
        res = step(self.state, action)
        self.last_error = res.error
        self._sync_timer()
        return self.snapshot()

    def _sync_timer(self) -> None:
        state = self.state
        waiting = state.phase == "ACTION" and state.side(self.viewer).locked_play is None
        if not waiting:
            self.timer.cancel()
        elif self.timer.token != state.turn_token:
            self.timer.start(state.turn_token)
