from __future__ import annotations

import json
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from cardduel.engine.ai import RandomSource
from cardduel.engine.types import Card

FALLBACK_CATEGORY = "Normal Monster"


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: [str(p) for p in e.path])
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _require_str(obj: Mapping[str, object], key: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


def _require_int(obj: Mapping[str, object], key: str) -> int:
    v = obj.get(key)
    if not isinstance(v, int):
        raise ContentError(f"Expected int for {key}")
    return v


@dataclass(frozen=True)
class FallbackMonster:
    id: str
    name: str
    offense: int
    defense: int


@dataclass(frozen=True)
class FallbackTable:
    """Curated monsters used whenever the remote catalog cannot deliver."""

    version: int
    image_url_template: str
    monsters: tuple[FallbackMonster, ...]

    def image_url(self, monster: FallbackMonster) -> str:
        return self.image_url_template.format(id=monster.id)

    def to_card(self, monster: FallbackMonster) -> Card:
        return Card(
            name=monster.name,
            offense=monster.offense,
            defense=monster.defense,
            artwork_ref=self.image_url(monster),
            category=FALLBACK_CATEGORY,
        )

    def random_card(self, rng: RandomSource | None = None) -> Card:
        rng = rng or random.Random()
        return self.to_card(rng.choice(self.monsters))

    def cards(self) -> list[Card]:
        return [self.to_card(m) for m in self.monsters]


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def load_fallback_table(self) -> FallbackTable:
        path = self._data_dir / "fallback_monsters.json"
        raw = _load_json(path)
        schema = _load_json(self._schema_dir / "fallback_monsters.schema.json")
        validate_json(raw, schema, context=str(path))
        if not isinstance(raw, dict):
            raise ContentError("fallback_monsters.json must be an object")

        raw_monsters = raw.get("monsters")
        if not isinstance(raw_monsters, list):
            raise ContentError("fallback_monsters.json.monsters must be a list")

        monsters: list[FallbackMonster] = []
        for item in raw_monsters:
            if not isinstance(item, dict):
                continue
            monsters.append(
                FallbackMonster(
                    id=_require_str(item, "id"),
                    name=_require_str(item, "name"),
                    offense=_require_int(item, "offense"),
                    defense=_require_int(item, "defense"),
                )
            )

        table = FallbackTable(
            version=_require_int(raw, "version"),
            image_url_template=_require_str(raw, "image_url_template"),
            monsters=tuple(monsters),
        )
        # Every fallback must be usable as-is in a duel
        for card in table.cards():
            if not card.is_valid_monster() or not card.has_artwork():
                raise ContentError(f"Fallback monster is not playable: {card.name}")
        return table

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_fallback_table()
