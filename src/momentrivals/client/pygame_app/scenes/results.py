from __future__ import annotations

import logging

import pygame  # type: ignore[import-not-found]

from momentrivals.engine.match import MatchState
from momentrivals.engine.replay import create_replay, replay_summary
from momentrivals.services.replays import ReplayStoreError

from ..app import GameContext
from ..scene_base import SceneTransition
from ..ui import Button, draw_text

logger = logging.getLogger(__name__)


class ResultsScene:
    def __init__(self, ctx: GameContext, state: MatchState) -> None:
        self.ctx = ctx
        self.state = state
        self._next: SceneTransition | None = None
        self.summary = replay_summary(create_replay(state))
        self.saved_to: str | None = None
        self._save_replay()
        self.btn_lobby = Button(rect=pygame.Rect(60, 600, 300, 56), text="Back to Lobby", on_click=self._on_lobby)

    def _save_replay(self) -> None:
        store = self.ctx.replays
        if store is None:
            return
        try:
            path = store.save(self.state)
        except ReplayStoreError as e:
            logger.error("replay not saved: %s", e)
            return
        self.saved_to = str(path)
        self.ctx.telemetry.log("replay_saved", {"match_id": self.state.match_id, "path": self.saved_to})

    def _on_lobby(self) -> None:
        from .lobby import LobbyScene

        self._next = SceneTransition(LobbyScene(self.ctx))

    def handle_event(self, event: pygame.event.Event) -> None:
        self.btn_lobby.handle_event(event)

    def update(self, dt: float) -> SceneTransition | None:
        return self._next

    def render(self, screen: pygame.Surface) -> None:
        screen.fill((12, 12, 18))
        fonts = self.ctx.assets.fonts
        title = "Victory" if self.state.winner == "player" else "Defeat"
        draw_text(screen, fonts.big, title, (60, 40))
        draw_text(screen, fonts.ui, str(self.state.win_reason), (60, 90))

        y = 140
        for key in ("finalScore", "roundsWon", "totalTurns", "duration"):
            draw_text(screen, fonts.ui, f"{key}: {self.summary[key]}", (60, y))
            y += 30

        y += 10
        for rnd in self.state.rounds:
            if rnd.winner is None:
                continue
            score = rnd.final_score
            draw_text(
                screen,
                fonts.small,
                f"Round {rnd.round_number}: {score['player']} - {score['opponent']} ({rnd.winner})",
                (60, y),
            )
            y += 22

        if self.saved_to:
            draw_text(screen, fonts.small, f"Replay saved: {self.saved_to}", (60, 560), color=(160, 200, 160))
        self.btn_lobby.draw(screen, fonts.ui)
