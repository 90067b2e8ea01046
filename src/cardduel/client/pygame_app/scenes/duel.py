from __future__ import annotations

import pygame  # type: ignore[import-not-found]

from cardduel.engine.duel import DuelState, is_waiting_for_human, select_card, start, subscribe
from cardduel.engine.events import (
    CARD_SELECTED,
    DUEL_ENDED,
    DUEL_STARTED,
    ERROR,
    ROUND_RESULT,
    ROUND_STARTED,
    SCORE_CHANGED,
    STANCE_SET,
    Event,
    describe_event,
)
from cardduel.engine.types import HUMAN, MACHINE, SIDE_NAMES, Card, Stance

from ..app import GameContext
from ..scene_base import SceneTransition, TransitionMixin
from ..ui import ACCENT, MUTED, Button, LogView, draw_text, fit_text

CARD_W, CARD_H = 150, 220
ART_H = 150
RESULT_PAUSE = 1.5


def _int(event: Event, key: str) -> int:
    value = event.get(key)
    assert isinstance(value, int)
    return value


class DuelScene(TransitionMixin):
    """Renders a duel and feeds the player's clicks into the engine.

    The engine finishes the machine's move inside the same call as the
    player's; this scene only delays *showing* those events.
    """

    def __init__(self, ctx: GameContext, state: DuelState) -> None:
        self.ctx = ctx
        self.state = state

        self._queue: list[Event] = []
        self._hold = 0.0
        self._paused_for: Event | None = None
        self._unsubscribe = subscribe(state, self._queue.append)

        self._round = 1
        self._scores = (0, 0)
        self._arena: list[tuple[Card, Stance | None] | None] = [None, None]
        self._used_human: set[int] = set()
        self._machine_reveals = 0
        self._message = "Press Start Duel when ready."
        self._result: str | None = None

        self.log = LogView(rect=pygame.Rect(700, 80, 304, 600))
        self.log.add("Cards ready. Press Start Duel!")

        self.btn_start = Button(rect=pygame.Rect(700, 20, 150, 44), text="Start Duel", on_click=self._on_start)
        self.btn_new = Button(rect=pygame.Rect(860, 20, 144, 44), text="New Cards", on_click=self._on_new_cards)

    # -- intents -------------------------------------------------------

    def _on_start(self) -> None:
        if self.state.started or self._queue:
            return
        self._reset_view()
        res = start(self.state)
        if not res.ok:
            self._message = res.error or "Could not start the duel."

    def _on_new_cards(self) -> None:
        from .boot import BootScene

        self._unsubscribe()
        self._go(BootScene(self.ctx))

    def _reset_view(self) -> None:
        self.log.clear()
        self._round = 1
        self._scores = (0, 0)
        self._arena = [None, None]
        self._used_human.clear()
        self._machine_reveals = 0
        self._result = None

    def _input_enabled(self) -> bool:
        return not self._queue and is_waiting_for_human(self.state)

    def _hand_rect(self, side: int, index: int) -> pygame.Rect:
        y = 470 if side == HUMAN else 80
        return pygame.Rect(40 + index * (CARD_W + 16), y, CARD_W, CARD_H)

    def _handle_click(self, pos: tuple[int, int]) -> None:
        for i in range(len(self.state.sides[HUMAN].cards)):
            if self._hand_rect(HUMAN, i).collidepoint(pos):
                if not self._input_enabled():
                    self._message = "Wait for your turn."
                    return
                res = select_card(self.state, HUMAN, i)
                if not res.ok:
                    self._message = res.error or "Invalid selection."
                return

    def handle_event(self, event: pygame.event.Event) -> None:
        self.btn_start.enabled = not self.state.started and not self._queue
        self.btn_new.enabled = not self.state.started and not self._queue
        if self.btn_start.handle_event(event) or self.btn_new.handle_event(event):
            return
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            self._handle_click(event.pos)

    # -- pacing --------------------------------------------------------

    def _needs_pause(self, event: Event) -> bool:
        return event.get("type") == CARD_SELECTED and event.get("side") == MACHINE

    def _reveal(self, event: Event) -> None:
        line = describe_event(event)
        if line:
            self.log.add(line)
        t = event.get("type")
        side = event.get("side")
        if t == DUEL_STARTED:
            self._message = f"{SIDE_NAMES[_int(event, 'first_side')]} goes first."
        elif t == ROUND_STARTED:
            self._round = _int(event, "round")
            self._arena = [None, None]
        elif t == CARD_SELECTED and isinstance(side, int):
            if side == HUMAN:
                index = _int(event, "index")
                self._used_human.add(index)
                card = self.state.sides[HUMAN].cards[index]
            else:
                used = self.state.sides[MACHINE].used
                card = self.state.sides[MACHINE].cards[used[self._machine_reveals]]
                self._machine_reveals += 1
            self._arena[side] = (card, None)
        elif t == STANCE_SET and isinstance(side, int):
            slot = self._arena[side]
            if slot is not None:
                self._arena[side] = (slot[0], "offense" if event.get("is_offense") else "defense")
        elif t == ROUND_RESULT:
            self._hold = RESULT_PAUSE
        elif t == SCORE_CHANGED:
            scores = event["scores"]
            assert isinstance(scores, (list, tuple))
            self._scores = (int(scores[0]), int(scores[1]))
        elif t == DUEL_ENDED:
            w = event.get("winner")
            self._result = "DRAW" if w is None else ("YOU WIN!" if w == HUMAN else "YOU LOSE")
        elif t == ERROR:
            self._message = str(event.get("message"))

    def update(self, dt: float) -> SceneTransition | None:
        self._hold -= dt
        while self._queue and self._hold <= 0:
            event = self._queue[0]
            if self._needs_pause(event) and self._paused_for is not event:
                self._paused_for = event
                self._hold = self.ctx.ai_delay
                continue
            self._queue.pop(0)
            self._reveal(event)

        if self._input_enabled():
            self._message = "Your turn: pick a card."
        elif self.state.started and self._queue:
            self._message = "Machine is thinking..."
        return self._take_transition()

    # -- drawing -------------------------------------------------------

    def render(self, screen: pygame.Surface) -> None:
        screen.fill((8, 10, 14))
        fonts = self.ctx.assets.fonts

        self.btn_start.draw(screen, fonts.ui)
        self.btn_new.draw(screen, fonts.ui)
        draw_text(screen, fonts.big, f"Round {self._round}", (40, 20))
        draw_text(
            screen,
            fonts.ui,
            f"Player {self._scores[0]} - {self._scores[1]} Machine",
            (220, 28),
        )

        for side in (MACHINE, HUMAN):
            for i, card in enumerate(self.state.sides[side].cards):
                used = i in self._used_human if side == HUMAN else i in self._revealed_machine_used()
                self._draw_card(screen, self._hand_rect(side, i), card, dim=used)

        self._draw_arena(screen)
        draw_text(screen, fonts.ui, self._message, (40, 710), color=ACCENT)
        self.log.draw(screen, fonts.small)

        if self._result is not None and not self._queue:
            self._draw_game_over(screen)

    def _revealed_machine_used(self) -> set[int]:
        return set(self.state.sides[MACHINE].used[: self._machine_reveals])

    def _draw_card(self, screen: pygame.Surface, rect: pygame.Rect, card: Card, dim: bool) -> None:
        fonts = self.ctx.assets.fonts
        pygame.draw.rect(screen, (28, 28, 40), rect, border_radius=8)
        art = self.ctx.assets.get_card_image(card, (rect.width - 12, ART_H))
        screen.blit(art, (rect.x + 6, rect.y + 6))
        draw_text(screen, fonts.small, fit_text(fonts.small, card.name, rect.width - 12), (rect.x + 6, rect.y + ART_H + 12))
        draw_text(screen, fonts.small, f"ATK {card.offense} / DEF {card.defense}", (rect.x + 6, rect.y + ART_H + 32))
        draw_text(screen, fonts.small, card.power_level(), (rect.x + 6, rect.y + ART_H + 50), color=MUTED)
        if dim:
            shade = pygame.Surface(rect.size, pygame.SRCALPHA)
            shade.fill((0, 0, 0, 160))
            screen.blit(shade, rect.topleft)
            draw_text(screen, fonts.ui, "USED", (rect.centerx - 22, rect.centery - 10), color=MUTED)
        pygame.draw.rect(screen, (0, 0, 0), rect, width=2, border_radius=8)

    def _draw_arena(self, screen: pygame.Surface) -> None:
        fonts = self.ctx.assets.fonts
        area = pygame.Rect(40, 318, 630, 140)
        pygame.draw.rect(screen, (18, 18, 24), area, border_radius=10)
        for side, x in ((HUMAN, area.x + 20), (MACHINE, area.x + 340)):
            slot = self._arena[side]
            label = SIDE_NAMES[side]
            if slot is None:
                draw_text(screen, fonts.ui, f"{label}: waiting...", (x, area.y + 20), color=MUTED)
                continue
            card, stance = slot
            draw_text(screen, fonts.ui, f"{label}: {fit_text(fonts.ui, card.name, 220)}", (x, area.y + 20))
            if stance is not None:
                power = card.power(stance == "offense")
                mode = "ATK" if stance == "offense" else "DEF"
                draw_text(screen, fonts.big, f"{mode} {power}", (x, area.y + 60), color=ACCENT)

    def _draw_game_over(self, screen: pygame.Surface) -> None:
        assert self._result is not None
        overlay = pygame.Surface((630, 140), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 200))
        screen.blit(overlay, (40, 318))
        draw_text(screen, self.ctx.assets.fonts.big, self._result, (300, 350))
        draw_text(
            screen,
            self.ctx.assets.fonts.ui,
            "Start Duel for a rematch, or New Cards to draw again.",
            (140, 400),
        )
