from __future__ import annotations

from dataclasses import dataclass

from .types import SIDE_NAMES, Card, Stance

RULE_OFFENSE_VS_OFFENSE = "Both in offense: higher offense wins"
RULE_OFFENSE_VS_DEFENSE = "Offense vs defense: attacker wins if offense > defense"
RULE_DEFENSE_VS_DEFENSE = "Both in defense: automatic draw"


@dataclass(frozen=True)
class BattleOutcome:
    cards: tuple[Card, Card]
    stances: tuple[Stance, Stance]
    powers: tuple[int, int]
    winner: int | None
    rule: str

    @property
    def is_draw(self) -> bool:
        return self.winner is None

    def battle_log(self) -> str:
        headline = "DRAW!" if self.winner is None else f"{SIDE_NAMES[self.winner].upper()} WINS!"
        parts = []
        for side in (0, 1):
            mode = "ATK" if self.stances[side] == "offense" else "DEF"
            parts.append(f"{self.cards[side].name} ({mode}: {self.powers[side]})")
        return f"{headline}\n{parts[0]} vs {parts[1]}\nRule: {self.rule}"


def _offense_vs_defense(attacker: int, attacker_power: int, defender_power: int) -> int | None:
    # Defending only prevents a loss; it never scores.
    if attacker_power > defender_power:
        return attacker
    return None


def resolve_battle(card0: Card, stance0: Stance, card1: Card, stance1: Stance) -> BattleOutcome:
    """Decide a single round between side 0 and side 1."""
    offense0 = stance0 == "offense"
    offense1 = stance1 == "offense"
    power0 = card0.power(offense0)
    power1 = card1.power(offense1)

    winner: int | None
    if offense0 and offense1:
        rule = RULE_OFFENSE_VS_OFFENSE
        if power0 > power1:
            winner = 0
        elif power1 > power0:
            winner = 1
        else:
            winner = None
    elif offense0:
        rule = RULE_OFFENSE_VS_DEFENSE
        winner = _offense_vs_defense(0, power0, power1)
    elif offense1:
        rule = RULE_OFFENSE_VS_DEFENSE
        winner = _offense_vs_defense(1, power1, power0)
    else:
        rule = RULE_DEFENSE_VS_DEFENSE
        winner = None

    return BattleOutcome(
        cards=(card0, card1),
        stances=(stance0, stance1),
        powers=(power0, power1),
        winner=winner,
        rule=rule,
    )
