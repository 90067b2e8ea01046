from __future__ import annotations

from cardduel.engine.types import UNKNOWN_CATEGORY, UNKNOWN_NAME, Card


def test_negative_stats_are_clamped() -> None:
    card = Card("Glitch", -500, -1, "https://example.com/a.jpg", "Normal Monster")
    assert card.offense == 0
    assert card.defense == 0


def test_missing_strings_get_sentinels() -> None:
    card = Card(None, 100, 100, None, None)  # type: ignore[arg-type]
    assert card.name == UNKNOWN_NAME
    assert card.artwork_ref == ""
    assert card.category == UNKNOWN_CATEGORY
    assert not card.is_valid_monster()


def test_power_follows_stance() -> None:
    card = Card("Dragon", 3000, 2500, "", "Normal Monster")
    assert card.power(True) == 3000
    assert card.power(False) == 2500


def test_valid_monster_categories() -> None:
    assert Card("A", 1, 1, "", "Normal Monster").is_valid_monster()
    assert Card("B", 1, 1, "", "Effect Monster").is_valid_monster()
    assert Card("C", 1, 1, "", "Fusion Monster").is_valid_monster()


def test_non_creature_categories_rejected() -> None:
    for category in ("Spell Card", "Trap Card", "Token", "Skill Card", "Spell Monster", "Trap Monster"):
        assert not Card("X", 1, 1, "", category).is_valid_monster(), category


def test_sentinel_names_rejected() -> None:
    for name in ("null", "undefined", UNKNOWN_NAME):
        assert not Card(name, 1, 1, "", "Normal Monster").is_valid_monster()


def test_has_artwork_requires_absolute_url() -> None:
    assert Card("A", 1, 1, "https://images.example.com/1.jpg").has_artwork()
    assert not Card("A", 1, 1, "").has_artwork()
    assert not Card("A", 1, 1, "null").has_artwork()
    assert not Card("A", 1, 1, "cards/1.jpg").has_artwork()


def test_equality_ignores_artwork() -> None:
    a = Card("Kuriboh", 300, 200, "https://a/1.jpg", "Effect Monster")
    b = Card("Kuriboh", 300, 200, "https://b/2.jpg", "Effect Monster")
    assert a == b
    assert hash(a) == hash(b)
    assert a != Card("Kuriboh", 300, 201, "https://a/1.jpg", "Effect Monster")


def test_derived_stats() -> None:
    card = Card("Summoned Skull", 2500, 1200)
    assert card.stats_short() == "2500/1200"
    assert card.total_power() == 3700
    assert card.power_level() == "very high"
    assert Card("Kuriboh", 300, 200).power_level() == "very low"


def test_unreadable_stats_become_zero() -> None:
    card = Card("X", "?", "1200", "", "Normal Monster")  # type: ignore[arg-type]
    assert card.offense == 0
    assert card.defense == 1200
    assert Card("Y", None, 3.7).power(offense=False) == 3  # type: ignore[arg-type]
