from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, TypeVar

from .types import STANCES, Stance

T = TypeVar("T")


class RandomSource(Protocol):
    """The slice of `random.Random` the engine relies on.

    Every random decision (turn owner, stances, the machine's card) goes
    through `choice`, so tests can script outcomes with a tiny stub.
    """

    def choice(self, seq: Sequence[T]) -> T: ...


def pick_turn_owner(rng: RandomSource) -> int:
    return rng.choice((0, 1))


def pick_stance(rng: RandomSource) -> Stance:
    return rng.choice(STANCES)


def pick_card(rng: RandomSource, available: Sequence[int]) -> int:
    """Uniformly pick one of the still-available hand indices."""
    if not available:
        raise ValueError("No cards available to pick from.")
    return rng.choice(list(available))
