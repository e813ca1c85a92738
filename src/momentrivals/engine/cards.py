from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from .rand import SeededRandom
from .types import Card, CardType, ValidationResult

OFFENSE_KEYWORDS = ("dunk", "shot", "score", "three", "3pt")
DEFENSE_KEYWORDS = ("block", "steal", "rebound", "def")
SUPPORT_KEYWORDS = ("assist", "layup", "pass")

DEFAULT_SERIAL = 999
DEFAULT_REQUIRED_DECK_SIZE = 7


@dataclass(frozen=True)
class StatLine:
    offense: int
    defense: int
    speed: int
    agility: int
    cost: int


TIER_BASE: dict[str, StatLine] = {
    "Legendary": StatLine(offense=8, defense=7, speed=7, agility=7, cost=3),
    "Rare": StatLine(offense=6, defense=5, speed=6, agility=6, cost=2),
    "Fandom": StatLine(offense=5, defense=4, speed=5, agility=5, cost=2),
    "Common": StatLine(offense=4, defense=3, speed=4, agility=4, cost=1),
}


def _clamp(value: int, lo: int, hi: int) -> int:
    return min(hi, max(lo, value))


def classify_category(play_category: str | None) -> CardType:
    category = (play_category or "").lower()
    if any(k in category for k in OFFENSE_KEYWORDS):
        return "OFFENSE"
    if any(k in category for k in DEFENSE_KEYWORDS):
        return "DEFENSE"
    if any(k in category for k in SUPPORT_KEYWORDS):
        return "SUPPORT"
    return "OFFENSE"


def derive_stats(tier: str | None, serial_number: int | None, play_category: str | None) -> StatLine:
    base = TIER_BASE.get(tier or "Common", TIER_BASE["Common"])
    offense, defense, speed, agility = base.offense, base.defense, base.speed, base.agility
    serial = serial_number if serial_number else DEFAULT_SERIAL
    category = (play_category or "").lower()

    # Lower serial numbers are rarer
    if serial <= 50:
        offense += 2
        defense += 2
    elif serial <= 100:
        offense += 1
        defense += 1
    elif serial <= 500:
        offense += 1

    if "dunk" in category:
        offense += 1
    elif "block" in category:
        defense += 1
    elif "assist" in category:
        agility += 1
    elif "three" in category or "3pt" in category:
        speed += 1

    return StatLine(
        offense=_clamp(offense, 1, 10),
        defense=_clamp(defense, 1, 10),
        speed=_clamp(speed, 1, 10),
        agility=_clamp(agility, 1, 10),
        cost=_clamp(base.cost, 1, 3),
    )


def _opt_int(record: Mapping[str, object], key: str) -> int | None:
    v = record.get(key)
    if isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, str) and v.strip().isdigit():
        return int(v)
    return None


def _opt_str(record: Mapping[str, object], key: str) -> str | None:
    v = record.get(key)
    return v if isinstance(v, str) else None


def moment_to_card(record: Mapping[str, object]) -> Card:
    """Translate a moment metadata record into a Card.

    Pure: the same record always yields an equal Card. Raises ValueError
    when the record carries no usable `momentId`.
    """
    moment_id = _opt_int(record, "momentId")
    raw_id = record.get("momentId")
    if moment_id is not None:
        key = str(moment_id)
    elif isinstance(raw_id, str) and raw_id.strip():
        key = raw_id.strip()
    else:
        raise ValueError(f"Moment record has no usable momentId: {raw_id!r}")
    play_category = _opt_str(record, "playCategory")
    tier = _opt_str(record, "tier")
    serial = _opt_int(record, "serialNumber")

    card_type = classify_category(play_category)
    stats = derive_stats(tier, serial, play_category)
    if card_type == "OFFENSE":
        power = stats.offense
    elif card_type == "DEFENSE":
        power = stats.defense
    else:
        power = stats.agility

    return Card(
        id=f"moment_{key}",
        name=_opt_str(record, "playerName") or "Unknown",
        card_type=card_type,
        cost=stats.cost,
        power=power,
        offense=stats.offense,
        defense=stats.defense,
        speed=stats.speed,
        agility=stats.agility,
        moment_id=moment_id,
        team=_opt_str(record, "team"),
        tier=tier,
        serial_number=serial,
        set_name=_opt_str(record, "setName"),
        play_category=play_category,
        play_type=_opt_str(record, "playType"),
    )


def build_deck(source_cards: Sequence[Card], rng: SeededRandom, max_size: int) -> list[Card]:
    """Cap the deck at `max_size` (keeping source order) and shuffle it."""
    return rng.shuffle(list(source_cards)[:max_size])


def validate_deck(
    deck: Sequence[Card],
    required_size: int = DEFAULT_REQUIRED_DECK_SIZE,
    *,
    min_offense: int = 2,
    min_defense: int = 2,
) -> ValidationResult:
    errors: list[str] = []
    if len(deck) != required_size:
        errors.append(f"Deck must contain exactly {required_size} cards (currently {len(deck)})")

    offense = sum(1 for c in deck if c.card_type == "OFFENSE")
    defense = sum(1 for c in deck if c.card_type == "DEFENSE")
    if offense < min_offense:
        errors.append(f"Deck must contain at least {min_offense} offense cards")
    if defense < min_defense:
        errors.append(f"Deck must contain at least {min_defense} defense cards")

    ids = [c.moment_id for c in deck if c.moment_id is not None]
    if len(ids) != len(set(ids)):
        errors.append("Deck contains duplicate cards")

    return ValidationResult.from_errors(errors)


def opponent_deck() -> list[Card]:
    """Built-in balanced 25 card deck for the AI opponent (unshuffled)."""
    deck: list[Card] = []
    for i in range(10):
        power = 1 + i // 2
        deck.append(
            Card(
                id=f"ai_off_{i}",
                name=f"AI Offense {i + 1}",
                card_type="OFFENSE",
                cost=1 + i // 3,
                power=power,
                offense=power,
                defense=1,
                speed=1,
                agility=1,
            )
        )
    for i in range(10):
        power = 1 + i // 2
        deck.append(
            Card(
                id=f"ai_def_{i}",
                name=f"AI Defense {i + 1}",
                card_type="DEFENSE",
                cost=1 + i // 3,
                power=power,
                offense=1,
                defense=power,
                speed=1,
                agility=1,
            )
        )
    for i in range(5):
        power = 2 + i // 2
        deck.append(
            Card(
                id=f"ai_sup_{i}",
                name=f"AI Support {i + 1}",
                card_type="SUPPORT",
                cost=1 + i // 2,
                power=power,
                offense=1,
                defense=1,
                speed=1,
                agility=power,
            )
        )
    return deck
