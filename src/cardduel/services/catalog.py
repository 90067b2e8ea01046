"""
Remote card catalog.

Fetches random monster cards from the YGOProDeck API, retrying a bounded
number of times and falling back to the curated table when the remote
source keeps returning unusable data.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping

import httpx

from cardduel.engine.ai import RandomSource
from cardduel.engine.types import Card

from .content import ContentError, FallbackTable

logger = logging.getLogger(__name__)

RANDOM_CARD_URL = "https://db.ygoprodeck.com/api/v7/randomcard.php"
IMAGE_BASE_URL = "https://images.ygoprodeck.com/images/cards/"

_IMAGE_LIST_FIELDS = ("image_url", "image_url_cropped", "image_url_small")
_DIRECT_IMAGE_FIELDS = ("card_image", "image_url", "image_url_cropped")

# Failures that mean "could not reach the catalog at all"
CONNECTIVITY_ERRORS = (httpx.TimeoutException, httpx.NetworkError)


class SourceUnavailable(ContentError):
    """Every attempt to reach the remote catalog failed on connectivity."""


class CatalogResponseError(ContentError):
    """The catalog answered, but not with something we can use."""


@dataclass(frozen=True)
class CatalogConfig:
    url: str = RANDOM_CARD_URL
    connect_timeout: float = 15.0
    request_timeout: float = 20.0
    max_attempts: int = 5
    backoff_seconds: float = 0.8
    user_agent: str = "CardDuel/1.0"


def fix_image_url(url: str | None) -> str:
    """Normalize protocol-relative URLs and bare file names to absolute URLs."""
    if not url:
        return ""
    if url.startswith("//"):
        return "https:" + url
    if not url.startswith("http") and url.endswith((".jpg", ".png")):
        return IMAGE_BASE_URL + url
    return url


def parse_stat(payload: Mapping[str, Any], key: str) -> int:
    """Read ATK/DEF. Unknown ("?") or missing values count as 0."""
    value = payload.get(key)
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text or text == "?":
            return 0
        try:
            return int(text)
        except ValueError:
            logger.warning("Unparseable %s value: %r", key, value)
            return 0
    return 0


def parse_image_url(payload: Mapping[str, Any]) -> str:
    """Find the best artwork URL: card_images first, then direct fields, then the id."""
    images = payload.get("card_images")
    if isinstance(images, list) and images and isinstance(images[0], dict):
        first = images[0]
        for key in _IMAGE_LIST_FIELDS:
            url = first.get(key)
            if isinstance(url, str) and url:
                return fix_image_url(url)

    for key in _DIRECT_IMAGE_FIELDS:
        url = payload.get(key)
        if isinstance(url, str) and url:
            return fix_image_url(url)

    card_id = payload.get("id")
    if card_id is not None and str(card_id):
        return f"{IMAGE_BASE_URL}{card_id}.jpg"
    return ""


def parse_card(payload: Mapping[str, Any]) -> Card | None:
    """
    Build a Card from a catalog payload.

    Accepts a bare card object or a ``{"data": [card, ...]}`` envelope.

    Returns:
        The card, or None if the payload is not a monster.
    """
    data = payload.get("data")
    if isinstance(data, list):
        if not data or not isinstance(data[0], dict):
            return None
        payload = data[0]

    category = payload.get("type")
    name = payload.get("name")
    if not isinstance(category, str) or not isinstance(name, str):
        return None

    card = Card(
        name=name,
        offense=parse_stat(payload, "atk"),
        defense=parse_stat(payload, "def"),
        artwork_ref=parse_image_url(payload),
        category=category,
    )
    if not card.is_monster():
        return None
    return card


class CardSource:
    """Supplies duel-ready monster cards. Safe to use as a context manager."""

    def __init__(
        self,
        fallback: FallbackTable,
        config: CatalogConfig | None = None,
        client: httpx.Client | None = None,
        rng: RandomSource | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.fallback = fallback
        self.config = config or CatalogConfig()
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=httpx.Timeout(self.config.request_timeout, connect=self.config.connect_timeout),
            follow_redirects=True,
            headers={"User-Agent": self.config.user_agent, "Accept": "application/json"},
        )
        self._rng = rng or random.Random()
        self._sleep = sleep

    def __enter__(self) -> "CardSource":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def fallback_card(self) -> Card:
        card = self.fallback.random_card(self._rng)
        logger.info("Using fallback card: %s (%s)", card.name, card.stats_short())
        return card

    def _request_card(self) -> Card | None:
        response = self._client.get(self.config.url)
        response.raise_for_status()
        if not response.content.strip():
            raise CatalogResponseError("Empty response from card catalog")
        try:
            payload = response.json()
        except ValueError as e:
            raise CatalogResponseError(f"Invalid JSON from card catalog: {e}") from e
        if not isinstance(payload, dict):
            raise CatalogResponseError("Card catalog returned a non-object payload")
        return parse_card(payload)

    def fetch_random_monster(self) -> Card:
        """
        Fetch one valid monster card.

        Returns:
            A card from the remote catalog, or a fallback card once the
            attempts run out.

        Raises:
            SourceUnavailable: If every attempt failed to reach the catalog.
        """
        attempts = self.config.max_attempts
        connectivity_failures = 0
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            try:
                card = self._request_card()
                if card is not None and card.is_valid_monster():
                    logger.info("Fetched %s (%s) from catalog", card.name, card.stats_short())
                    return card
                logger.info("Discarded non-monster card on attempt %d/%d", attempt, attempts)
            except CONNECTIVITY_ERRORS as e:
                connectivity_failures += 1
                last_error = e
                logger.warning("Catalog unreachable on attempt %d/%d: %s", attempt, attempts, e)
            except (httpx.HTTPError, CatalogResponseError) as e:
                last_error = e
                logger.warning("Catalog error on attempt %d/%d: %s", attempt, attempts, e)

            if attempt < attempts:
                self._sleep(self.config.backoff_seconds)

        if connectivity_failures == attempts:
            raise SourceUnavailable(
                f"Could not reach the card catalog after {attempts} attempts"
            ) from last_error
        return self.fallback_card()

    def fetch_many(self, count: int) -> list[Card]:
        """Best effort: always returns exactly `count` cards."""
        cards: list[Card] = []
        max_calls = count * 3
        calls = 0
        while len(cards) < count and calls < max_calls:
            calls += 1
            try:
                cards.append(self.fetch_random_monster())
            except SourceUnavailable as e:
                logger.warning("Card catalog unavailable, padding with fallback cards: %s", e)
                break
            logger.debug("Progress: %d/%d cards", len(cards), count)

        while len(cards) < count:
            cards.append(self.fallback_card())
        return cards

    def test_connection(self) -> bool:
        try:
            response = self._client.head(self.config.url, timeout=10.0)
        except httpx.HTTPError as e:
            logger.warning("Catalog connection test failed: %s", e)
            return False
        return response.status_code == 200
