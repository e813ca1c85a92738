from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import pygame  # type: ignore[import-not-found]


@dataclass
class SceneTransition:
    next_scene: "Scene"


class Scene(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def update(self, dt: float) -> SceneTransition | None: ...
    def render(self, screen: pygame.Surface) -> None: ...


@runtime_checkable
class ClosableScene(Protocol):
    """A scene holding resources (a live match, its timer) to release on exit."""

    def close(self) -> None: ...


def leave_scene(scene: Scene) -> None:
    if isinstance(scene, ClosableScene):
        scene.close()
