from __future__ import annotations

import logging
import random
import traceback
from concurrent.futures import Future, ThreadPoolExecutor

import pygame  # type: ignore[import-not-found]

from cardduel.engine.duel import DuelState, assign_cards, new_duel, subscribe
from cardduel.engine.types import HUMAN, MACHINE, Card
from cardduel.services.catalog import CardSource
from cardduel.services.content import FallbackTable

from ..app import GameContext
from ..scene_base import SceneTransition, TransitionMixin
from ..ui import DANGER, Button, draw_text

logger = logging.getLogger(__name__)

CARDS_PER_SIDE = 3


def fetch_duel_cards(ctx: GameContext, fallback: FallbackTable) -> list[Card]:
    """Worker-thread job: six cards plus their artwork."""
    count = CARDS_PER_SIDE * 2
    if ctx.offline:
        rng = random.Random(ctx.seed)
        cards = [fallback.random_card(rng) for _ in range(count)]
    else:
        with CardSource(fallback, config=ctx.catalog_config) as source:
            cards = source.fetch_many(count)
    for card in cards:
        ctx.assets.prefetch(card)
    return cards


def build_duel(ctx: GameContext, cards: list[Card]) -> DuelState:
    state = new_duel(seed=ctx.seed)
    subscribe(state, ctx.telemetry.listener())
    for side, hand in ((HUMAN, cards[:CARDS_PER_SIDE]), (MACHINE, cards[CARDS_PER_SIDE:])):
        res = assign_cards(state, side, hand)
        if not res.ok:
            raise RuntimeError(res.error or "Card assignment failed.")
    return state


class BootScene(TransitionMixin):
    def __init__(self, ctx: GameContext) -> None:
        self.ctx = ctx
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="card-fetch")
        self._future: Future[list[Card]] | None = None
        self._error: str | None = None
        self._elapsed = 0.0
        self._buttons: list[Button] = []

    def _begin(self) -> None:
        self.ctx.content.validate_all()
        if self.ctx.fallback is None:
            self.ctx.fallback = self.ctx.content.load_fallback_table()
        self._future = self._executor.submit(fetch_duel_cards, self.ctx, self.ctx.fallback)

    def _fail(self, e: BaseException) -> None:
        tb = "".join(traceback.format_exception(type(e), e, e.__traceback__, limit=8))
        self._error = f"{e}\n\n{tb}"
        logger.error("Boot failed: %s", e)
        self.ctx.telemetry.log("boot", {"ok": False, "error": str(e)})
        self._buttons = [
            Button(rect=pygame.Rect(20, 700, 140, 44), text="Retry", on_click=self._on_retry),
            Button(
                rect=pygame.Rect(180, 700, 140, 44),
                text="Quit",
                on_click=lambda: pygame.event.post(pygame.event.Event(pygame.QUIT)),
            ),
        ]

    def _on_retry(self) -> None:
        self._error = None
        self._buttons = []
        self._future = None

    def handle_event(self, event: pygame.event.Event) -> None:
        for b in self._buttons:
            if b.handle_event(event):
                return

    def update(self, dt: float) -> SceneTransition | None:
        self._elapsed += dt
        if self._error is not None:
            return None
        try:
            if self._future is None:
                self._begin()
                return None
            if not self._future.done():
                return None
            cards = self._future.result()
            state = build_duel(self.ctx, cards)
        except Exception as e:
            self._fail(e)
            return None

        self._executor.shutdown(wait=False)
        self.ctx.telemetry.log("boot", {"ok": True, "cards": [c.name for c in cards]})
        from .duel import DuelScene

        self._go(DuelScene(self.ctx, state))
        return self._take_transition()

    def render(self, screen: pygame.Surface) -> None:
        screen.fill((10, 10, 10))
        font = self.ctx.assets.fonts.big
        draw_text(screen, font, "CardDuel", (20, 20))

        font2 = self.ctx.assets.fonts.ui
        if self._error is None:
            dots = "." * (1 + int(self._elapsed * 2) % 3)
            source = "fallback table" if self.ctx.offline else "the card catalog"
            draw_text(screen, font2, f"Loading cards from {source}{dots}", (20, 80))
        else:
            draw_text(screen, font2, "BOOT ERROR", (20, 80), color=DANGER)
            y = 120
            for line in self._error.splitlines()[:28]:
                draw_text(screen, self.ctx.assets.fonts.small, line[:120], (20, y), color=(230, 230, 230))
                y += 18
            for b in self._buttons:
                b.draw(screen, font2)
