from __future__ import annotations

import argparse
import logging
from pathlib import Path

import pygame  # type: ignore[import-not-found]

from cardduel.paths import get_paths
from cardduel.services.catalog import CatalogConfig
from cardduel.services.content import ContentService
from cardduel.services.telemetry import TelemetryService

from .app import App, GameContext
from .asset_manager import AssetManager
from .scenes.boot import BootScene


def main() -> int:
    parser = argparse.ArgumentParser(prog="cardduel")
    parser.add_argument("--width", type=int, default=1024)
    parser.add_argument("--height", type=int, default=768)
    parser.add_argument("--offline", action="store_true", help="Skip the remote catalog; use fallback cards.")
    parser.add_argument("--seed", type=int, default=None, help="Seed the duel for reproducible play.")
    parser.add_argument("--ai-delay", type=float, default=0.8, help="Seconds before machine moves are shown.")
    parser.add_argument("--catalog-url", default=CatalogConfig.url)
    parser.add_argument("--userdata", type=Path, default=None)
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    pygame.init()
    screen = pygame.display.set_mode((args.width, args.height))
    pygame.display.set_caption("CardDuel")

    clock = pygame.time.Clock()
    paths = get_paths(args.userdata)

    ctx = GameContext(
        screen=screen,
        clock=clock,
        paths=paths,
        assets=AssetManager(cache_dir=paths.artwork_cache_dir),
        content=ContentService(data_dir=paths.data_dir, schema_dir=paths.schema_dir),
        telemetry=TelemetryService(paths.userdata_dir / "telemetry.jsonl"),
        catalog_config=CatalogConfig(url=args.catalog_url),
        offline=args.offline,
        seed=args.seed,
        ai_delay=max(0.0, args.ai_delay),
    )

    app = App(ctx, BootScene(ctx))
    try:
        return app.run()
    finally:
        pygame.quit()


if __name__ == "__main__":
    raise SystemExit(main())
