from __future__ import annotations

from typing import Callable, Literal

from .types import SIDE_NAMES

Event = dict[str, object]
Listener = Callable[[Event], None]

DuelErrorKind = Literal[
    "InvalidCardSet",
    "NotStarted",
    "WrongTurn",
    "InvalidIndex",
    "CardAlreadyUsed",
]

CARDS_READY = "CARDS_READY"
DUEL_STARTED = "DUEL_STARTED"
ROUND_STARTED = "ROUND_STARTED"
TURN_STARTED = "TURN_STARTED"
CARD_SELECTED = "CARD_SELECTED"
STANCE_SET = "STANCE_SET"
ROUND_RESULT = "ROUND_RESULT"
SCORE_CHANGED = "SCORE_CHANGED"
DUEL_ENDED = "DUEL_ENDED"
DUEL_RESET = "DUEL_RESET"
ERROR = "ERROR"

# CARD_SELECTED index reported for the automated side
HIDDEN_INDEX = -1


def _side(event: Event, key: str = "side") -> str:
    side = event.get(key)
    if isinstance(side, int):
        return SIDE_NAMES[side]
    return "Nobody"


def describe_event(event: Event) -> str | None:
    """One-line battle log entry for an event, or None if it is not user facing."""
    t = event.get("type")
    if t == CARDS_READY:
        return "All cards loaded. Press Start to duel!"
    if t == DUEL_STARTED:
        return f"Duel started! {_side(event, 'first_side')} goes first."
    if t == ROUND_STARTED:
        scores = event.get("scores", (0, 0))
        assert isinstance(scores, (list, tuple))
        return f"--- Round {event.get('round')} ({scores[0]} - {scores[1]}) ---"
    if t == TURN_STARTED:
        return f"{_side(event)}'s turn."
    if t == CARD_SELECTED:
        return f"{_side(event)} plays {event.get('card_name')}."
    if t == STANCE_SET:
        mode = "offense" if event.get("is_offense") else "defense"
        return f"{_side(event)} takes {mode} stance."
    if t == ROUND_RESULT:
        # The battle log already names the winner and the rule
        log = event.get("log")
        if isinstance(log, str) and log:
            return log
        if event.get("winner") is None:
            return f"Draw. {event.get('rule')}"
        return f"{_side(event, 'winner')} wins the round. {event.get('rule')}"
    if t == SCORE_CHANGED:
        scores = event.get("scores", (0, 0))
        assert isinstance(scores, (list, tuple))
        return f"Score: Player {scores[0]} - {scores[1]} Machine"
    if t == DUEL_ENDED:
        if event.get("winner") is None:
            return "=== DUEL OVER: DRAW ==="
        return f"=== DUEL OVER: {_side(event, 'winner').upper()} WINS ==="
    if t == DUEL_RESET:
        return "Duel reset."
    if t == ERROR:
        return f"ERROR: {event.get('message')}"
    return None
