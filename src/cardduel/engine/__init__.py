"""Deterministic, headless duel engine for CardDuel.

IMPORTANT: This package must never import pygame.
"""

from .duel import (
    DuelConfig,
    DuelState,
    StepResult,
    assign_cards,
    new_duel,
    reset,
    select_card,
    start,
    subscribe,
)
from .events import DuelErrorKind, Event
from .rules import BattleOutcome, resolve_battle
from .types import HUMAN, MACHINE, Card, Stance

__all__ = [
    "BattleOutcome",
    "Card",
    "DuelConfig",
    "DuelErrorKind",
    "DuelState",
    "Event",
    "HUMAN",
    "MACHINE",
    "Stance",
    "StepResult",
    "assign_cards",
    "new_duel",
    "reset",
    "resolve_battle",
    "select_card",
    "start",
    "subscribe",
]
