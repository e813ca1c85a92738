from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import pygame  # type: ignore[import-not-found]

Color = tuple[int, int, int]


def draw_text(
    screen: pygame.Surface,
    font: pygame.font.Font,
    text: str,
    pos: tuple[int, int],
    color: Color = (240, 240, 240),
) -> None:
    img = font.render(text, True, color)
    screen.blit(img, pos)


@dataclass
class Button:
    rect: pygame.Rect
    text: str
    on_click: Callable[[], None]
    enabled: bool = True
    selected: bool = False

    def handle_event(self, event: pygame.event.Event) -> bool:
        if not self.enabled:
            return False
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self.rect.collidepoint(event.pos):
                self.on_click()
                return True
        return False

    def draw(self, screen: pygame.Surface, font: pygame.font.Font) -> None:
        if not self.enabled:
            bg = (30, 30, 30)
        elif self.selected:
            bg = (90, 90, 40)
        else:
            bg = (60, 60, 60)
        pygame.draw.rect(screen, bg, self.rect, border_radius=8)
        pygame.draw.rect(screen, (0, 0, 0), self.rect, width=2, border_radius=8)
        img = font.render(self.text, True, (240, 240, 240))
        r = img.get_rect(center=self.rect.center)
        screen.blit(img, r.topleft)


@dataclass
class Meter:
    """Horizontal bar for energy and round progress."""

    rect: pygame.Rect
    color: Color = (230, 190, 60)

    def draw(self, screen: pygame.Surface, value: int, maximum: int) -> None:
        pygame.draw.rect(screen, (25, 25, 25), self.rect, border_radius=4)
        if maximum > 0:
            fill = self.rect.copy()
            fill.width = int(self.rect.width * min(1.0, value / maximum))
            pygame.draw.rect(screen, self.color, fill, border_radius=4)
        pygame.draw.rect(screen, (0, 0, 0), self.rect, width=1, border_radius=4)
