from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

Stance = Literal["offense", "defense"]
STANCES: tuple[Stance, ...] = ("offense", "defense")

HUMAN = 0
MACHINE = 1
SIDE_NAMES = ("Player", "Machine")

UNKNOWN_NAME = "Unknown Card"
UNKNOWN_CATEGORY = "Unknown Type"

_SENTINEL_STRINGS = ("null", "undefined")
_NON_MONSTER_MARKERS = ("spell", "trap", "token", "skill", "magic")


def _stat(value: object) -> int:
    """Coerce a raw stat to a non-negative int; anything unreadable is 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, float):
        return max(0, int(value))
    if isinstance(value, str):
        try:
            return max(0, int(value.strip()))
        except ValueError:
            return 0
    return 0


@dataclass(frozen=True)
class Card:
    """One creature card. Equality ignores the artwork reference."""

    name: str
    offense: int
    defense: int
    artwork_ref: str = field(default="", compare=False)
    category: str = "Normal Monster"

    def __post_init__(self) -> None:
        # Normalize in place so a Card is always well-formed
        object.__setattr__(self, "name", self.name if self.name else UNKNOWN_NAME)
        object.__setattr__(self, "offense", _stat(self.offense))
        object.__setattr__(self, "defense", _stat(self.defense))
        object.__setattr__(self, "artwork_ref", self.artwork_ref or "")
        object.__setattr__(self, "category", self.category or UNKNOWN_CATEGORY)

    def power(self, offense: bool) -> int:
        return self.offense if offense else self.defense

    def is_monster(self) -> bool:
        lowered = self.category.lower()
        if "monster" not in lowered:
            return False
        return not any(marker in lowered for marker in _NON_MONSTER_MARKERS)

    def is_valid_monster(self) -> bool:
        if not self.is_monster():
            return False
        if self.offense < 0 or self.defense < 0:
            return False
        return bool(self.name) and self.name not in (*_SENTINEL_STRINGS, UNKNOWN_NAME)

    def has_artwork(self) -> bool:
        ref = self.artwork_ref
        if not ref or ref in _SENTINEL_STRINGS:
            return False
        return ref.startswith("http://") or ref.startswith("https://")

    def stats_short(self) -> str:
        return f"{self.offense}/{self.defense}"

    def total_power(self) -> int:
        return self.offense + self.defense

    def power_level(self) -> str:
        if self.offense >= 2500:
            return "very high"
        if self.offense >= 2000:
            return "high"
        if self.offense >= 1500:
            return "medium"
        if self.offense >= 1000:
            return "low"
        return "very low"


def side_name(side: int) -> str:
    return SIDE_NAMES[side]


def opponent(side: int) -> int:
    return 1 - side
