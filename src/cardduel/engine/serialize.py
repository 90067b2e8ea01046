from __future__ import annotations


from .duel import DuelState, SideState
from .rules import BattleOutcome
from .types import Card


def card_to_dict(c: Card) -> dict[str, object]:
    return {
        "name": c.name,
        "offense": c.offense,
        "defense": c.defense,
        "artwork_ref": c.artwork_ref,
        "category": c.category,
    }


def _side_to_dict(s: SideState) -> dict[str, object]:
    return {
        "cards": [card_to_dict(c) for c in s.cards],
        "available": list(s.available),
        "used": list(s.used),
        "score": s.score,
        "selected": s.selected,
        "stance": s.stance,
        "has_selected": s.has_selected,
    }


def _outcome_to_dict(o: BattleOutcome) -> dict[str, object]:
    return {
        "cards": [c.name for c in o.cards],
        "stances": list(o.stances),
        "powers": list(o.powers),
        "winner": o.winner,
        "rule": o.rule,
    }


def _jsonable(value: object) -> object:
    if isinstance(value, Card):
        return card_to_dict(value)
    if isinstance(value, tuple):
        return [_jsonable(v) for v in value]
    return value


def event_to_dict(event: dict[str, object]) -> dict[str, object]:
    return {k: _jsonable(v) for k, v in event.items()}


def snapshot(state: DuelState) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the current duel state."""
    return {
        "seed": state.seed,
        "round": state.round,
        "turn_owner": state.turn_owner,
        "started": state.started,
        "ended": state.ended,
        "winner": state.final_winner,
        "sides": [_side_to_dict(s) for s in state.sides],
        "history": [_outcome_to_dict(o) for o in state.history],
        "event_log": [event_to_dict(e) for e in state.event_log],
    }
