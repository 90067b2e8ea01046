from __future__ import annotations

import logging
from dataclasses import dataclass

import pygame  # type: ignore[import-not-found]

from cardduel.paths import Paths
from cardduel.services.catalog import CatalogConfig
from cardduel.services.content import ContentService, FallbackTable
from cardduel.services.telemetry import TelemetryService

from .asset_manager import AssetManager
from .scene_base import Scene

logger = logging.getLogger(__name__)


@dataclass
class GameContext:
    screen: pygame.Surface
    clock: pygame.time.Clock
    paths: Paths
    assets: AssetManager
    content: ContentService
    telemetry: TelemetryService
    catalog_config: CatalogConfig

    offline: bool = False
    seed: int | None = None
    # Seconds the machine's moves stay hidden before they are shown
    ai_delay: float = 0.8

    # Loaded at boot
    fallback: FallbackTable | None = None


FPS = 60
# Upper bound on a single frame step
MAX_FRAME_SECONDS = 0.25


class App:
    def __init__(self, ctx: GameContext, initial_scene: Scene) -> None:
        self.ctx = ctx
        self.scene: Scene = initial_scene
        self.running = True

    def _wants_quit(self, event: pygame.event.Event) -> bool:
        if event.type == pygame.QUIT:
            return True
        return event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE

    def run(self) -> int:
        logger.info("CardDuel window open (offline=%s, seed=%s)", self.ctx.offline, self.ctx.seed)
        self.ctx.telemetry.log("app_started", {"offline": self.ctx.offline, "seed": self.ctx.seed})
        while self.running:
            dt = min(self.ctx.clock.tick(FPS) / 1000.0, MAX_FRAME_SECONDS)
            for event in pygame.event.get():
                if self._wants_quit(event):
                    self.running = False
                    break
                self.scene.handle_event(event)

            transition = self.scene.update(dt)
            if transition is not None:
                logger.debug("Scene change: %s", type(transition.next_scene).__name__)
                self.scene = transition.next_scene

            self.scene.render(self.ctx.screen)
            pygame.display.flip()

        self.ctx.telemetry.log("app_closed", {})
        return 0
