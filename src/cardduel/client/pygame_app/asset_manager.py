from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path

import httpx
import pygame  # type: ignore[import-not-found]

from cardduel.engine.types import Card

logger = logging.getLogger(__name__)


@dataclass
class Fonts:
    ui: pygame.font.Font
    small: pygame.font.Font
    big: pygame.font.Font


def placeholder_color(offense: int) -> tuple[int, int, int]:
    """Tint placeholders by offense so weak and strong cards read differently."""
    if offense >= 2500:
        return (150, 40, 40)
    if offense >= 2000:
        return (170, 90, 30)
    if offense >= 1500:
        return (150, 140, 40)
    if offense >= 1000:
        return (50, 110, 60)
    return (50, 70, 130)


class AssetManager:
    def __init__(self, cache_dir: Path, client: httpx.Client | None = None) -> None:
        self.cache_dir = cache_dir
        self._client = client
        self._cache: dict[tuple[str, int, int], pygame.Surface] = {}

        pygame.font.init()
        self.fonts = Fonts(
            ui=pygame.font.SysFont(None, 24),
            small=pygame.font.SysFont(None, 18),
            big=pygame.font.SysFont(None, 34),
        )

    def _cache_path(self, url: str) -> Path:
        digest = hashlib.sha1(url.encode("utf-8")).hexdigest()
        suffix = Path(url).suffix or ".img"
        return self.cache_dir / f"{digest}{suffix}"

    def prefetch(self, card: Card) -> Path | None:
        """Download a card's artwork into the disk cache. Safe to call off the UI thread."""
        if not card.has_artwork():
            return None
        path = self._cache_path(card.artwork_ref)
        if path.exists():
            return path
        client = self._client or httpx.Client(timeout=20.0, follow_redirects=True)
        try:
            response = client.get(card.artwork_ref)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Could not download artwork for %s: %s", card.name, e)
            return None
        finally:
            if self._client is None:
                client.close()
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        path.write_bytes(response.content)
        return path

    def get_card_image(self, card: Card, size: tuple[int, int]) -> pygame.Surface:
        w, h = size
        key = (card.artwork_ref, w, h)
        if key in self._cache:
            return self._cache[key]

        if card.has_artwork():
            path = self._cache_path(card.artwork_ref)
            if path.exists():
                try:
                    img = pygame.image.load(path.as_posix()).convert_alpha()
                    img = pygame.transform.smoothscale(img, size)
                    self._cache[key] = img
                    return img
                except pygame.error as e:
                    logger.warning("Unreadable artwork %s: %s", path, e)

        # Fallback placeholder
        fallback = pygame.Surface(size)
        fallback.fill(placeholder_color(card.offense))
        self._cache[key] = fallback
        return fallback
