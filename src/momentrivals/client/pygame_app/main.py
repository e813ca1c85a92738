from __future__ import annotations

import argparse
import logging
from pathlib import Path

import pygame  # type: ignore[import-not-found]

from momentrivals.paths import get_paths
from momentrivals.services.content import ContentService
from momentrivals.services.telemetry import TelemetryService

from .app import App, GameContext
from .asset_manager import AssetManager
from .scenes.boot import BootScene


def main() -> int:
    parser = argparse.ArgumentParser(prog="momentrivals")
    parser.add_argument("--width", type=int, default=1024)
    parser.add_argument("--height", type=int, default=768)
    parser.add_argument("--userdata", type=Path, default=None, help="Directory for telemetry and replays")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    pygame.init()
    screen = pygame.display.set_mode((args.width, args.height))
    pygame.display.set_caption("Moment Rivals")

    clock = pygame.time.Clock()
    paths = get_paths(args.userdata)

    ctx = GameContext(
        screen=screen,
        clock=clock,
        paths=paths,
        assets=AssetManager(),
        content=ContentService(data_dir=paths.data_dir, schema_dir=paths.schema_dir),
        telemetry=TelemetryService(paths.telemetry_path),
    )

    app = App(ctx, BootScene(ctx))
    code = app.run()
    pygame.quit()
    return code


if __name__ == "__main__":
    raise SystemExit(main())
