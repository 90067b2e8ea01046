from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

import pygame  # type: ignore[import-not-found]


Color = tuple[int, int, int]

TEXT = (240, 240, 240)
MUTED = (130, 130, 150)
ACCENT = (240, 200, 120)
DANGER = (240, 80, 80)


def draw_text(
    screen: pygame.Surface,
    font: pygame.font.Font,
    text: str,
    pos: tuple[int, int],
    color: Color = TEXT,
) -> None:
    img = font.render(text, True, color)
    screen.blit(img, pos)


def fit_text(font: pygame.font.Font, text: str, max_width: int) -> str:
    """Truncate `text` with an ellipsis so it renders within `max_width`."""
    if font.size(text)[0] <= max_width:
        return text
    while text and font.size(text + "...")[0] > max_width:
        text = text[:-1]
    return text + "..."


@dataclass
class Button:
    rect: pygame.Rect
    text: str
    on_click: Callable[[], None]
    enabled: bool = True

    def handle_event(self, event: pygame.event.Event) -> bool:
        if not self.enabled:
            return False
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self.rect.collidepoint(event.pos):
                self.on_click()
                return True
        return False

    def draw(self, screen: pygame.Surface, font: pygame.font.Font) -> None:
        bg = (60, 60, 60) if self.enabled else (30, 30, 30)
        pygame.draw.rect(screen, bg, self.rect, border_radius=8)
        pygame.draw.rect(screen, (0, 0, 0), self.rect, width=2, border_radius=8)
        img = font.render(self.text, True, TEXT if self.enabled else MUTED)
        r = img.get_rect(center=self.rect.center)
        screen.blit(img, r.topleft)


@dataclass
class LogView:
    """Scrolling battle log; keeps only the newest lines."""

    rect: pygame.Rect
    max_lines: int = 200
    lines: list[str] = field(default_factory=list)

    def add(self, line: str) -> None:
        self.lines.extend(line.splitlines() or [""])
        del self.lines[: -self.max_lines]

    def clear(self) -> None:
        self.lines.clear()

    def draw(self, screen: pygame.Surface, font: pygame.font.Font) -> None:
        pygame.draw.rect(screen, (16, 16, 22), self.rect, border_radius=8)
        pygame.draw.rect(screen, (0, 0, 0), self.rect, width=2, border_radius=8)
        line_h = font.get_linesize()
        visible = max(1, (self.rect.height - 12) // line_h)
        y = self.rect.y + 6
        for line in self.lines[-visible:]:
            color = DANGER if line.startswith("ERROR") else TEXT
            draw_text(screen, font, fit_text(font, line, self.rect.width - 16), (self.rect.x + 8, y), color)
            y += line_h
