from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Callable

from .ai import RandomSource, pick_card, pick_stance, pick_turn_owner
from .events import (
    CARD_SELECTED,
    CARDS_READY,
    DUEL_ENDED,
    DUEL_RESET,
    DUEL_STARTED,
    ERROR,
    HIDDEN_INDEX,
    ROUND_RESULT,
    ROUND_STARTED,
    SCORE_CHANGED,
    STANCE_SET,
    TURN_STARTED,
    DuelErrorKind,
    Event,
    Listener,
)
from .rules import BattleOutcome, resolve_battle
from .types import MACHINE, Card, Stance, opponent, side_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DuelConfig:
    hand_size: int = 3
    winning_score: int = 2
    max_rounds: int = 3
    # None: every side is driven through select_card (hot-seat / tests)
    automated_side: int | None = MACHINE


@dataclass
class SideState:
    cards: list[Card] = field(default_factory=list)
    available: list[int] = field(default_factory=list)
    used: list[int] = field(default_factory=list)
    score: int = 0
    selected: int | None = None
    stance: Stance | None = None
    has_selected: bool = False

    def available_cards(self) -> list[Card]:
        return [self.cards[i] for i in self.available]

    def used_cards(self) -> list[Card]:
        return [self.cards[i] for i in self.used]

    def selected_card(self) -> Card | None:
        if self.selected is None:
            return None
        return self.cards[self.selected]

    def restore_pool(self) -> None:
        self.available = list(range(len(self.cards)))
        self.used = []

    def clear_selection(self) -> None:
        self.selected = None
        self.stance = None
        self.has_selected = False


@dataclass
class StepResult:
    ok: bool
    events: list[Event]
    error: str | None = None
    error_kind: DuelErrorKind | None = None


@dataclass
class DuelState:
    config: DuelConfig
    rng: RandomSource
    seed: int | None = None
    sides: list[SideState] = field(default_factory=lambda: [SideState(), SideState()])
    round: int = 1
    turn_owner: int = 0
    started: bool = False
    ended: bool = False
    final_winner: int | None = None
    history: list[BattleOutcome] = field(default_factory=list)
    event_log: list[Event] = field(default_factory=list)
    listeners: list[Listener] = field(default_factory=list)

    def opponent(self, side: int) -> int:
        return opponent(side)

    def is_automated(self, side: int) -> bool:
        return self.config.automated_side == side

    def scores(self) -> tuple[int, int]:
        return (self.sides[0].score, self.sides[1].score)

    def has_full_hand(self, side: int) -> bool:
        return len(self.sides[side].cards) == self.config.hand_size


def new_duel(
    seed: int | None = None,
    config: DuelConfig | None = None,
    rng: RandomSource | None = None,
) -> DuelState:
    """Create an idle duel. Pass `seed` (or a scripted `rng`) for reproducible play."""
    cfg = config or DuelConfig()
    return DuelState(config=cfg, rng=rng if rng is not None else random.Random(seed), seed=seed)


def subscribe(state: DuelState, listener: Listener) -> Callable[[], None]:
    """Register a listener for every event the duel emits. Returns an unsubscribe callable."""
    state.listeners.append(listener)

    def unsubscribe() -> None:
        if listener in state.listeners:
            state.listeners.remove(listener)

    return unsubscribe


def _emit(state: DuelState, event_type: str, **payload: object) -> Event:
    event: Event = {"type": event_type, **payload}
    state.event_log.append(event)
    for listener in list(state.listeners):
        # A failing observer must not interrupt resolution
        try:
            listener(event)
        except Exception:
            logger.exception("Duel listener failed on %s", event_type)
    return event


def _fail(state: DuelState, kind: DuelErrorKind, message: str) -> StepResult:
    logger.info("Rejected duel action (%s): %s", kind, message)
    event = _emit(state, ERROR, message=message, kind=kind)
    return StepResult(ok=False, events=[event], error=message, error_kind=kind)


def _check_side(side: int) -> None:
    if side not in (0, 1):
        raise ValueError(f"Unknown side: {side!r}")


def assign_cards(state: DuelState, side: int, cards: Sequence[Card] | None) -> StepResult:
    """Give `side` its hand. Both hands must be assigned before `start`."""
    _check_side(side)
    cards = list(cards or ())
    mark = len(state.event_log)
    name = side_name(side)
    size = state.config.hand_size

    if state.started:
        return _fail(state, "InvalidCardSet", "Cards cannot be changed while a duel is in progress.")
    if len(cards) != size:
        return _fail(state, "InvalidCardSet", f"{name} must have exactly {size} cards (got {len(cards)}).")
    for card in cards:
        if not isinstance(card, Card) or not card.is_valid_monster():
            label = card.name if isinstance(card, Card) else repr(card)
            return _fail(state, "InvalidCardSet", f"Invalid card for {name}: {label}")

    ss = state.sides[side]
    ss.cards = list(cards)
    ss.restore_pool()
    ss.clear_selection()
    logger.debug("%s hand: %s", name, ", ".join(c.name for c in ss.cards))

    if state.has_full_hand(0) and state.has_full_hand(1):
        _emit(state, CARDS_READY)
    return StepResult(ok=True, events=state.event_log[mark:])


def start(state: DuelState) -> StepResult:
    """Begin a fresh best-of-N duel with the assigned hands."""
    mark = len(state.event_log)
    if not (state.has_full_hand(0) and state.has_full_hand(1)):
        return _fail(state, "InvalidCardSet", "Both sides need a full hand before the duel starts.")

    for ss in state.sides:
        ss.restore_pool()
        ss.clear_selection()
        ss.score = 0
    state.round = 1
    state.started = True
    state.ended = False
    state.final_winner = None
    state.history.clear()
    state.turn_owner = pick_turn_owner(state.rng)
    logger.debug("Duel started, %s goes first", side_name(state.turn_owner))

    _emit(state, DUEL_STARTED, first_side=state.turn_owner, round=state.round)
    _emit(state, ROUND_STARTED, round=state.round, scores=state.scores())
    _begin_turn(state)
    return StepResult(ok=True, events=state.event_log[mark:])


def select_card(state: DuelState, side: int, card_index: int) -> StepResult:
    """Play the card at `card_index` of `side`'s hand for the current round.

    Resolution (and the automated side's reply) happens inside this call, so
    the returned events may run all the way to the end of the duel.
    """
    _check_side(side)
    mark = len(state.event_log)
    if not state.started:
        return _fail(state, "NotStarted", "The duel has not started.")

    ss = state.sides[side]
    if side != state.turn_owner:
        return _fail(state, "WrongTurn", f"It is not {side_name(side)}'s turn.")
    if ss.has_selected:
        return _fail(state, "WrongTurn", f"{side_name(side)} already selected a card this round.")
    if card_index < 0 or card_index >= len(ss.cards):
        return _fail(state, "InvalidIndex", f"Invalid card index: {card_index}")
    if card_index not in ss.available:
        return _fail(state, "CardAlreadyUsed", f"{ss.cards[card_index].name} was already used in this duel.")

    _commit_selection(state, side, card_index, reported_index=card_index)
    _after_selection(state, side)
    return StepResult(ok=True, events=state.event_log[mark:])


def reset(state: DuelState) -> StepResult:
    """Stop any duel in progress and return every card to its hand."""
    mark = len(state.event_log)
    for ss in state.sides:
        ss.restore_pool()
        ss.clear_selection()
        ss.score = 0
    state.round = 1
    state.started = False
    state.ended = False
    state.final_winner = None
    state.history.clear()
    _emit(state, DUEL_RESET)
    return StepResult(ok=True, events=state.event_log[mark:])


def is_waiting_for_human(state: DuelState) -> bool:
    if not state.started:
        return False
    owner = state.turn_owner
    return not state.is_automated(owner) and not state.sides[owner].has_selected


def winner(state: DuelState) -> int | None:
    """Winning side of a finished duel; None while running or on a draw."""
    return state.final_winner if state.ended else None


def _commit_selection(state: DuelState, side: int, card_index: int, reported_index: int) -> None:
    ss = state.sides[side]
    ss.available.remove(card_index)
    ss.used.append(card_index)
    ss.selected = card_index
    ss.has_selected = True
    ss.stance = pick_stance(state.rng)
    card = ss.cards[card_index]
    logger.debug(
        "Round %d: %s plays %s in %s (%d left)",
        state.round,
        side_name(side),
        card.name,
        ss.stance,
        len(ss.available),
    )
    _emit(state, CARD_SELECTED, side=side, card_name=card.name, index=reported_index)
    _emit(state, STANCE_SET, side=side, is_offense=ss.stance == "offense")


def _after_selection(state: DuelState, side: int) -> None:
    other = state.opponent(side)
    if state.sides[other].has_selected:
        _resolve_round(state)
        return
    state.turn_owner = other
    _begin_turn(state)


def _begin_turn(state: DuelState) -> None:
    owner = state.turn_owner
    _emit(state, TURN_STARTED, side=owner, is_human_turn=not state.is_automated(owner))
    if state.is_automated(owner):
        _automated_select(state)


def _automated_select(state: DuelState) -> None:
    side = state.turn_owner
    ss = state.sides[side]
    card_index = pick_card(state.rng, ss.available)
    _commit_selection(state, side, card_index, reported_index=HIDDEN_INDEX)
    _after_selection(state, side)


def _resolve_round(state: DuelState) -> None:
    s0, s1 = state.sides
    card0 = s0.selected_card()
    card1 = s1.selected_card()
    assert card0 is not None and card1 is not None
    assert s0.stance is not None and s1.stance is not None

    outcome = resolve_battle(card0, s0.stance, card1, s1.stance)
    if outcome.winner is not None:
        state.sides[outcome.winner].score += 1
    state.history.append(outcome)
    logger.debug("Round %d resolved: winner=%s scores=%s", state.round, outcome.winner, state.scores())

    _emit(
        state,
        ROUND_RESULT,
        round=state.round,
        cards=(card0, card1),
        powers=outcome.powers,
        stances=outcome.stances,
        winner=outcome.winner,
        rule=outcome.rule,
        log=outcome.battle_log(),
    )
    _emit(state, SCORE_CHANGED, scores=state.scores())

    if _duel_over(state):
        _end_duel(state)
    else:
        _next_round(state)


def _duel_over(state: DuelState) -> bool:
    cfg = state.config
    if any(ss.score >= cfg.winning_score for ss in state.sides):
        return True
    # A tie at the round cap ends in a draw; there is no tiebreaker round.
    return state.round >= cfg.max_rounds


def _end_duel(state: DuelState) -> None:
    s0, s1 = state.scores()
    if s0 > s1:
        result: int | None = 0
    elif s1 > s0:
        result = 1
    else:
        result = None
    state.started = False
    state.ended = True
    state.final_winner = result
    logger.debug("Duel ended after round %d: winner=%s scores=%s", state.round, result, state.scores())
    _emit(state, DUEL_ENDED, winner=result, scores=state.scores())


def _next_round(state: DuelState) -> None:
    state.round += 1
    for ss in state.sides:
        ss.clear_selection()
    state.turn_owner = pick_turn_owner(state.rng)
    _emit(state, ROUND_STARTED, round=state.round, scores=state.scores())
    _begin_turn(state)
