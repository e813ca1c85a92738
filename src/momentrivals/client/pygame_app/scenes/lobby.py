from __future__ import annotations

import random
from dataclasses import replace

import pygame  # type: ignore[import-not-found]

from momentrivals.engine.ai import DIFFICULTIES, AISpec, Difficulty
from momentrivals.engine.cards import opponent_deck, validate_deck
from momentrivals.engine.driver import MatchDriver
from momentrivals.engine.match import MatchConfig
from momentrivals.engine.rules import RULE_SETS

from ..app import GameContext
from ..scene_base import SceneTransition
from ..ui import Button, draw_text
from .match import MatchScene

RULE_LABELS = {"power_momentum": "Power / Momentum", "classic": "Classic"}


class LobbyScene:
    def __init__(self, ctx: GameContext) -> None:
        self.ctx = ctx
        self._next: SceneTransition | None = None
        self._message = ""
        cfg = ctx.config
        self.difficulty: Difficulty = cfg.ai_difficulty if cfg is not None else "medium"
        self.rule_set = cfg.match.rule_set if cfg is not None else "power_momentum"
        self._buttons: list[Button] = []
        self._build_ui()

    def _build_ui(self) -> None:
        x, y, w, h, gap = 60, 200, 150, 48, 12
        self._difficulty_buttons = [
            Button(
                rect=pygame.Rect(x + i * (w + gap), y, w, h),
                text=d.capitalize(),
                on_click=lambda d=d: self._set_difficulty(d),
            )
            for i, d in enumerate(DIFFICULTIES)
        ]
        self._rule_buttons = [
            Button(
                rect=pygame.Rect(x + i * (w * 2 + gap), y + 110, w * 2, h),
                text=RULE_LABELS.get(name, name),
                on_click=lambda name=name: self._set_rules(name),
            )
            for i, name in enumerate(sorted(RULE_SETS, reverse=True))
        ]
        self._buttons = [
            *self._difficulty_buttons,
            *self._rule_buttons,
            Button(rect=pygame.Rect(x, y + 240, 320, 56), text="Start Match", on_click=self._on_start),
            Button(
                rect=pygame.Rect(x, y + 310, 320, 56),
                text="Quit",
                on_click=lambda: pygame.event.post(pygame.event.Event(pygame.QUIT)),
            ),
        ]
        self._refresh_selection()

    def _refresh_selection(self) -> None:
        for b, d in zip(self._difficulty_buttons, DIFFICULTIES):
            b.selected = d == self.difficulty
        for b, name in zip(self._rule_buttons, sorted(RULE_SETS, reverse=True)):
            b.selected = name == self.rule_set

    def _set_difficulty(self, difficulty: Difficulty) -> None:
        self.difficulty = difficulty
        self._refresh_selection()

    def _set_rules(self, name: str) -> None:
        self.rule_set = name
        self._refresh_selection()

    def _on_start(self) -> None:
        base = self.ctx.config.match if self.ctx.config is not None else MatchConfig()
        # the match scene paces post-lock phases itself
        cfg = replace(base, rule_set=self.rule_set, auto_advance=False)
        deck = list(self.ctx.moments)
        check = validate_deck(deck, cfg.deck_size)
        if not check.valid:
            self._message = check.errors[0]
            return

        seed = random.randrange(1, 2**31 - 1)
        driver = MatchDriver.start(deck, opponent_deck(), seed=seed, config=cfg, ai=AISpec(self.difficulty))
        self.ctx.telemetry.match_started(driver.state, self.difficulty)
        self._next = SceneTransition(MatchScene(self.ctx, driver))

    def handle_event(self, event: pygame.event.Event) -> None:
        for b in self._buttons:
            if b.handle_event(event):
                return

    def update(self, dt: float) -> SceneTransition | None:
        return self._next

    def render(self, screen: pygame.Surface) -> None:
        screen.fill((12, 12, 18))
        fonts = self.ctx.assets.fonts
        draw_text(screen, fonts.big, "Moment Rivals", (60, 40))
        draw_text(screen, fonts.ui, f"Deck: {len(self.ctx.moments)} moments", (60, 100))
        draw_text(screen, fonts.ui, "AI difficulty", (60, 170))
        draw_text(screen, fonts.ui, "Rule set", (60, 280))
        for b in self._buttons:
            b.draw(screen, fonts.ui)
        if self._message:
            draw_text(screen, fonts.ui, self._message, (60, 600), color=(240, 120, 120))
