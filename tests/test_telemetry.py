from __future__ import annotations

from pathlib import Path

from cardduel.engine.duel import assign_cards, new_duel, select_card, start, subscribe
from cardduel.engine.types import HUMAN, MACHINE, Card
from cardduel.services.telemetry import TelemetryService


def _hand(prefix: str) -> list[Card]:
    return [Card(f"{prefix}{i}", 1000 + i * 500, 800, "", "Normal Monster") for i in range(3)]


def test_listener_records_duel_milestones(tmp_path: Path) -> None:
    telemetry = TelemetryService(tmp_path / "nested" / "telemetry.jsonl")
    state = new_duel(seed=11)
    subscribe(state, telemetry.listener())
    assign_cards(state, HUMAN, _hand("P"))
    assign_cards(state, MACHINE, _hand("M"))
    start(state)
    select_card(state, MACHINE, 0)  # never the machine's turn at rest
    while state.started:
        select_card(state, HUMAN, state.sides[HUMAN].available[0])

    records = telemetry.read_all()
    types = [r["type"] for r in records]
    assert types[0] == "duel_started"
    assert types[1] == "error"
    assert records[1]["payload"]["kind"] == "WrongTurn"
    assert types.count("duel_ended") == 1
    assert types[-1] == "duel_ended"
    assert 2 <= types.count("round_result") <= 3
    result = next(r for r in records if r["type"] == "round_result")
    cards = result["payload"]["cards"]
    assert [c["name"][0] for c in cards] == ["P", "M"]
    assert all(isinstance(c["offense"], int) for c in cards)
    assert "ts" in result
    assert "card_selected" not in types


def test_read_all_on_missing_file(tmp_path: Path) -> None:
    assert TelemetryService(tmp_path / "none.jsonl").read_all() == []
