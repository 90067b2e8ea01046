from __future__ import annotations

import random
from collections.abc import Sequence
from typing import TypeVar

from cardduel.engine.duel import (
    DuelConfig,
    DuelState,
    assign_cards,
    is_waiting_for_human,
    new_duel,
    reset,
    select_card,
    start,
    subscribe,
    winner,
)
from cardduel.engine.events import HIDDEN_INDEX, Event, describe_event
from cardduel.engine.types import HUMAN, MACHINE, Card

T = TypeVar("T")

HOT_SEAT = DuelConfig(automated_side=None)


class ScriptedRandom:
    """Answers each `choice` call with the next scripted value."""

    def __init__(self, *picks: object) -> None:
        self.picks = list(picks)

    def choice(self, seq: Sequence[T]) -> T:
        assert self.picks, f"Unscripted random choice from {list(seq)!r}"
        value = self.picks.pop(0)
        assert value in seq, f"{value!r} not in {list(seq)!r}"
        return value  # type: ignore[return-value]


def _monster(name: str, offense: int, defense: int) -> Card:
    return Card(name, offense, defense, f"https://images.example.com/{name}.jpg", "Normal Monster")


def _hand_a() -> list[Card]:
    return [_monster("Dragon", 3000, 2500), _monster("Knight", 2300, 2100), _monster("Guardian", 1400, 1200)]


def _hand_b() -> list[Card]:
    return [_monster("Elf", 800, 2000), _monster("Kuriboh", 300, 200), _monster("Wizard", 500, 400)]


def _ready(config: DuelConfig | None = None, *picks: object) -> DuelState:
    state = new_duel(config=config, rng=ScriptedRandom(*picks))
    assert assign_cards(state, HUMAN, _hand_a()).ok
    assert assign_cards(state, MACHINE, _hand_b()).ok
    return state


def _types(events: list[Event]) -> list[object]:
    return [e["type"] for e in events]


def test_cards_ready_fires_once_both_hands_assigned() -> None:
    state = new_duel(seed=1)
    res = assign_cards(state, HUMAN, _hand_a())
    assert res.ok
    assert res.events == []
    res = assign_cards(state, MACHINE, _hand_b())
    assert _types(res.events) == ["CARDS_READY"]


def test_assigning_two_cards_fails_and_keeps_previous_hand() -> None:
    state = new_duel(seed=1)
    assert assign_cards(state, HUMAN, _hand_a()).ok

    res = assign_cards(state, HUMAN, _hand_b()[:2])
    assert not res.ok
    assert res.error_kind == "InvalidCardSet"
    assert _types(res.events) == ["ERROR"]
    assert res.events[0]["kind"] == "InvalidCardSet"
    assert state.sides[HUMAN].cards == _hand_a()
    assert state.sides[HUMAN].available == [0, 1, 2]


def test_assigning_non_monster_fails() -> None:
    state = new_duel(seed=1)
    hand = _hand_a()
    hand[1] = Card("Pot of Greed", 0, 0, "", "Spell Card")
    res = assign_cards(state, HUMAN, hand)
    assert res.error_kind == "InvalidCardSet"
    assert "Pot of Greed" in (res.error or "")
    assert state.sides[HUMAN].cards == []


def test_start_requires_both_hands() -> None:
    state = new_duel(seed=1)
    assign_cards(state, HUMAN, _hand_a())
    res = start(state)
    assert res.error_kind == "InvalidCardSet"
    assert not state.started


def test_select_before_start_fails() -> None:
    state = _ready(HOT_SEAT)
    res = select_card(state, HUMAN, 0)
    assert res.error_kind == "NotStarted"
    assert state.sides[HUMAN].available == [0, 1, 2]


def test_start_emits_events_in_order_and_waits_for_human() -> None:
    state = _ready(None, HUMAN)
    res = start(state)
    assert res.ok
    assert _types(res.events) == ["DUEL_STARTED", "ROUND_STARTED", "TURN_STARTED"]
    assert res.events[0]["first_side"] == HUMAN
    assert res.events[0]["round"] == 1
    assert res.events[2] == {"type": "TURN_STARTED", "side": HUMAN, "is_human_turn": True}
    assert state.started
    assert state.turn_owner == HUMAN
    assert is_waiting_for_human(state)
    assert len(state.sides[HUMAN].available) == 3
    assert len(state.sides[MACHINE].available) == 3


def test_machine_first_selects_inside_start() -> None:
    # turn owner, machine card, machine stance
    state = _ready(None, MACHINE, 1, "defense")
    res = start(state)
    assert _types(res.events) == [
        "DUEL_STARTED",
        "ROUND_STARTED",
        "TURN_STARTED",
        "CARD_SELECTED",
        "STANCE_SET",
        "TURN_STARTED",
    ]
    selected = res.events[3]
    assert selected["side"] == MACHINE
    assert selected["card_name"] == "Kuriboh"
    assert selected["index"] == HIDDEN_INDEX
    assert res.events[4]["is_offense"] is False
    assert res.events[5]["side"] == HUMAN
    assert state.sides[MACHINE].used == [1]
    assert state.turn_owner == HUMAN
    assert is_waiting_for_human(state)


def test_human_selection_triggers_machine_and_resolution() -> None:
    # owner, human stance, machine card, machine stance, next owner, machine card, machine stance
    state = _ready(None, HUMAN, "offense", 0, "defense", MACHINE, 2, "offense")
    start(state)

    res = select_card(state, HUMAN, 0)
    assert res.ok
    types = _types(res.events)
    assert types[:7] == [
        "CARD_SELECTED",
        "STANCE_SET",
        "TURN_STARTED",
        "CARD_SELECTED",
        "STANCE_SET",
        "ROUND_RESULT",
        "SCORE_CHANGED",
    ]
    result = res.events[5]
    assert result["winner"] == HUMAN
    card_a, card_b = result["cards"]
    assert (card_a.name, card_b.name) == ("Dragon", "Elf")
    assert card_a == state.sides[HUMAN].cards[0]
    assert result["powers"] == (3000, 2000)
    assert result["stances"] == ("offense", "defense")
    assert res.events[6]["scores"] == (1, 0)

    # Round 2 opened with the machine moving first
    assert types[7:] == ["ROUND_STARTED", "TURN_STARTED", "CARD_SELECTED", "STANCE_SET", "TURN_STARTED"]
    assert state.round == 2
    assert state.sides[MACHINE].used == [0, 2]
    assert is_waiting_for_human(state)


def test_wrong_turn_and_double_selection_rejected() -> None:
    state = _ready(HOT_SEAT, HUMAN, "offense")
    start(state)
    assert select_card(state, MACHINE, 0).error_kind == "WrongTurn"

    assert select_card(state, HUMAN, 0).ok
    assert state.turn_owner == MACHINE
    res = select_card(state, HUMAN, 1)
    assert res.error_kind == "WrongTurn"
    assert state.sides[HUMAN].used == [0]


def test_invalid_index_rejected_without_mutation() -> None:
    state = _ready(HOT_SEAT, HUMAN)
    start(state)
    for bad in (-1, 3, 99):
        res = select_card(state, HUMAN, bad)
        assert res.error_kind == "InvalidIndex"
    assert state.sides[HUMAN].available == [0, 1, 2]
    assert state.turn_owner == HUMAN


def test_used_card_cannot_be_selected_again() -> None:
    state = _ready(HOT_SEAT, HUMAN, "defense", "defense", HUMAN)
    start(state)
    assert select_card(state, HUMAN, 0).ok
    assert select_card(state, MACHINE, 0).ok
    assert state.round == 2

    res = select_card(state, HUMAN, 0)
    assert res.error_kind == "CardAlreadyUsed"
    assert 0 not in state.sides[HUMAN].available
    assert state.sides[HUMAN].used == [0]
    assert len(state.sides[HUMAN].available) + len(state.sides[HUMAN].used) == 3


def test_dragon_beats_defending_elf() -> None:
    state = _ready(HOT_SEAT, HUMAN, "offense", "defense", HUMAN)
    start(state)
    select_card(state, HUMAN, 0)
    res = select_card(state, MACHINE, 0)
    result = next(e for e in res.events if e["type"] == "ROUND_RESULT")
    assert result["winner"] == HUMAN
    assert state.scores() == (1, 0)


def test_defense_vs_defense_changes_no_score() -> None:
    hand_a = [_monster("Knight", 2300, 2100), _monster("X", 1, 1), _monster("Y", 1, 1)]
    hand_b = [_monster("Ox", 1700, 1800), _monster("Z", 1, 1), _monster("W", 1, 1)]
    state = new_duel(config=HOT_SEAT, rng=ScriptedRandom(MACHINE, "defense", "defense", HUMAN))
    assign_cards(state, HUMAN, hand_a)
    assign_cards(state, MACHINE, hand_b)
    start(state)
    select_card(state, MACHINE, 0)
    res = select_card(state, HUMAN, 0)
    result = next(e for e in res.events if e["type"] == "ROUND_RESULT")
    assert result["winner"] is None
    assert result["powers"] == (2100, 1800)
    assert state.scores() == (0, 0)


def test_two_straight_wins_end_the_duel_before_round_three() -> None:
    state = _ready(HOT_SEAT, HUMAN, "offense", "offense", MACHINE, "offense", "offense")
    ended: list[Event] = []
    subscribe(state, lambda e: ended.append(e) if e["type"] == "DUEL_ENDED" else None)
    start(state)

    select_card(state, HUMAN, 0)
    select_card(state, MACHINE, 0)
    assert state.scores() == (1, 0)

    select_card(state, MACHINE, 1)
    res = select_card(state, HUMAN, 1)
    assert _types(res.events)[-3:] == ["ROUND_RESULT", "SCORE_CHANGED", "DUEL_ENDED"]
    assert res.events[-1]["winner"] == HUMAN
    assert state.scores() == (2, 0)
    assert state.round == 2
    assert not state.started
    assert winner(state) == HUMAN
    assert len(ended) == 1
    assert "ROUND_STARTED" not in _types(res.events)

    # Finished duel accepts no more moves
    assert select_card(state, HUMAN, 2).error_kind == "NotStarted"
    assert len(ended) == 1


def test_round_three_cap_ends_the_duel() -> None:
    picks = (
        HUMAN, "defense", "defense",  # r1 draw
        HUMAN, "offense", "defense",  # r2 Knight 2300 vs Kuriboh DEF 200: human wins
        HUMAN, "defense", "offense",  # r3 Guardian DEF 1200 vs Wizard ATK 500: draw
    )
    state = _ready(HOT_SEAT, *picks)
    start(state)
    for i in range(3):
        select_card(state, HUMAN, i)
        res = select_card(state, MACHINE, i)
    assert res.events[-1]["type"] == "DUEL_ENDED"
    assert res.events[-1]["winner"] == HUMAN
    assert state.round == 3

    # Now a 1-1 tie at the cap
    hand_b = [_monster("Elf", 800, 2000), _monster("Brute", 2900, 100), _monster("Wizard", 500, 400)]
    picks2 = (
        HUMAN, "offense", "defense",  # r1 Dragon 3000 vs Elf DEF 2000: human wins
        HUMAN, "offense", "offense",  # r2 Knight 2300 vs Brute 2900: machine wins
        HUMAN, "defense", "defense",  # r3 draw
    )
    state = new_duel(config=HOT_SEAT, rng=ScriptedRandom(*picks2))
    assign_cards(state, HUMAN, _hand_a())
    assign_cards(state, MACHINE, hand_b)
    start(state)
    for i in range(3):
        select_card(state, HUMAN, i)
        res = select_card(state, MACHINE, i)
    assert state.scores() == (1, 1)
    assert res.events[-1] == {"type": "DUEL_ENDED", "winner": None, "scores": (1, 1)}
    assert winner(state) is None
    assert not state.started
    assert state.round == 3


def test_full_session_against_machine_score_never_exceeds_two() -> None:
    for seed in range(50):
        state = new_duel(seed=seed)
        assign_cards(state, HUMAN, _hand_a())
        assign_cards(state, MACHINE, _hand_b())
        ended = 0

        def count(e: Event) -> None:
            nonlocal ended
            if e["type"] == "DUEL_ENDED":
                ended += 1
            if state.started:
                assert max(state.scores()) <= 2
                assert state.round <= 3

        subscribe(state, count)
        start(state)
        picker = random.Random(seed)
        while state.started:
            assert is_waiting_for_human(state)
            res = select_card(state, HUMAN, picker.choice(state.sides[HUMAN].available))
            assert res.ok
        assert ended == 1
        assert state.ended
        for side in state.sides:
            assert len(side.available) + len(side.used) == 3


def test_restart_restores_pools_and_scores() -> None:
    state = new_duel(seed=7)
    assign_cards(state, HUMAN, _hand_a())
    assign_cards(state, MACHINE, _hand_b())
    start(state)
    while state.started:
        select_card(state, HUMAN, state.sides[HUMAN].available[0])

    res = start(state)
    assert res.ok
    assert state.started
    assert state.round == 1
    assert state.sides[HUMAN].available == [0, 1, 2]


def test_cannot_reassign_during_duel() -> None:
    state = _ready(HOT_SEAT, HUMAN)
    start(state)
    res = assign_cards(state, HUMAN, _hand_b())
    assert res.error_kind == "InvalidCardSet"
    assert state.sides[HUMAN].cards == _hand_a()


def test_reset_stops_duel_and_returns_cards() -> None:
    state = _ready(HOT_SEAT, HUMAN, "offense")
    start(state)
    select_card(state, HUMAN, 2)
    res = reset(state)
    assert _types(res.events) == ["DUEL_RESET"]
    assert not state.started
    assert state.sides[HUMAN].available == [0, 1, 2]
    assert state.sides[HUMAN].used == []
    assert state.scores() == (0, 0)


def test_failing_listener_does_not_wedge_the_round() -> None:
    state = _ready(HOT_SEAT, HUMAN, "offense", "defense", HUMAN, "offense", "offense")

    def broken(event: Event) -> None:
        if event["type"] == "SCORE_CHANGED":
            raise OSError("disk full")

    subscribe(state, broken)
    start(state)
    select_card(state, HUMAN, 0)
    res = select_card(state, MACHINE, 0)
    assert res.ok
    assert "ROUND_STARTED" in _types(res.events)
    assert state.round == 2
    assert state.scores() == (1, 0)
    assert [ss.has_selected for ss in state.sides] == [False, False]

    assert select_card(state, HUMAN, 1).ok
    assert select_card(state, MACHINE, 1).ok
    assert state.ended
    assert winner(state) == HUMAN


def test_round_result_is_described_once_by_its_battle_log() -> None:
    state = _ready(HOT_SEAT, HUMAN, "offense", "defense", HUMAN)
    start(state)
    select_card(state, HUMAN, 0)
    res = select_card(state, MACHINE, 0)
    result = next(e for e in res.events if e["type"] == "ROUND_RESULT")
    line = describe_event(result)
    assert line == result["log"]
    assert line is not None
    assert line.startswith("PLAYER WINS!")
    assert line.count(str(result["rule"])) == 1
