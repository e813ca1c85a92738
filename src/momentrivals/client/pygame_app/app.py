from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import pygame  # type: ignore[import-not-found]

from momentrivals.engine.types import Card
from momentrivals.paths import Paths
from momentrivals.services.content import ClientConfig, ContentService
from momentrivals.services.replays import ReplayStore
from momentrivals.services.telemetry import TelemetryService

from .asset_manager import AssetManager
from .scene_base import Scene, leave_scene


@dataclass
class GameContext:
    screen: pygame.Surface
    clock: pygame.time.Clock
    paths: Paths
    assets: AssetManager
    content: ContentService
    telemetry: TelemetryService

    # Loaded at boot
    config: Optional[ClientConfig] = None
    moments: list[Card] = field(default_factory=list)
    replays: Optional[ReplayStore] = None


class App:
    def __init__(self, ctx: GameContext, initial_scene: Scene) -> None:
        self.ctx = ctx
        self.scene: Scene = initial_scene
        self.running = True

    def run(self) -> int:
        while self.running:
            dt = self.ctx.clock.tick(60) / 1000.0
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    self.running = False
                    break
                self.scene.handle_event(event)

            tr = self.scene.update(dt)
            if tr is not None:
                leave_scene(self.scene)
                self.scene = tr.next_scene

            self.scene.render(self.ctx.screen)
            pygame.display.flip()

        leave_scene(self.scene)
        return 0
