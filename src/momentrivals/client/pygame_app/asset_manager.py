from __future__ import annotations

from dataclasses import dataclass

import pygame  # type: ignore[import-not-found]

Color = tuple[int, int, int]

CARD_COLORS: dict[str, Color] = {
    "OFFENSE": (150, 50, 50),
    "DEFENSE": (50, 80, 150),
    "SUPPORT": (60, 130, 70),
}


@dataclass
class Fonts:
    ui: pygame.font.Font
    small: pygame.font.Font
    big: pygame.font.Font


class AssetManager:
    """Fonts and flat card-type colours; cards are drawn procedurally."""

    def __init__(self) -> None:
        pygame.font.init()
        self.fonts = Fonts(
            ui=pygame.font.SysFont(None, 24),
            small=pygame.font.SysFont(None, 18),
            big=pygame.font.SysFont(None, 34),
        )

    def card_color(self, card_type: str) -> Color:
        return CARD_COLORS.get(card_type, (70, 70, 70))
