from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping

from cardduel.engine.events import DUEL_ENDED, DUEL_STARTED, ERROR, ROUND_RESULT, Event, Listener
from cardduel.engine.serialize import event_to_dict

RECORDED_EVENTS = frozenset({DUEL_STARTED, ROUND_RESULT, DUEL_ENDED, ERROR})


@dataclass
class TelemetryService:
    path: Path

    def log(self, event_type: str, payload: Mapping[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        rec = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "type": event_type,
            "payload": dict(payload),
        }
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")

    def listener(self) -> Listener:
        """Engine listener that records duel milestones."""

        def on_event(event: Event) -> None:
            event_type = str(event.get("type"))
            if event_type not in RECORDED_EVENTS:
                return
            payload = event_to_dict(event)
            payload.pop("type", None)
            self.log(event_type.lower(), payload)

        return on_event

    def read_all(self) -> list[dict[str, object]]:
        if not self.path.exists():
            return []
        lines = self.path.read_text(encoding="utf-8").splitlines()
        return [json.loads(line) for line in lines if line.strip()]
