"""Chest content generation.

The draw itself is random (``secrets.SystemRandom`` unless a seeded
``random.Random`` is injected); chest_service makes the result one-time by
persisting it on first open.
"""

from __future__ import annotations

import random
import secrets
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field
from typing import Any

from bomber.rewards.catalog import (
    DUPLICATE_COIN_VALUE,
    EQUIPMENT_TYPES,
    RARITY_ORDER,
    ChestTypeDef,
    Rarity,
    equipment_of,
)

_system_rng = secrets.SystemRandom()


@dataclass
class EquipmentDrop:
    equipment_type: str
    equipment_id: str
    rarity: str
    coins: int = 0  # duplicate payout; 0 for new items


@dataclass
class RewardBundle:
    chest_type: str
    coins: int = 0
    gems: int = 0
    xp: int = 0
    equipment: list[EquipmentDrop] = field(default_factory=list)
    duplicates: list[EquipmentDrop] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RewardBundle:
        return cls(
            chest_type=data["chest_type"],
            coins=data.get("coins", 0),
            gems=data.get("gems", 0),
            xp=data.get("xp", 0),
            equipment=[EquipmentDrop(**e) for e in data.get("equipment", [])],
            duplicates=[EquipmentDrop(**e) for e in data.get("duplicates", [])],
        )


def draw_rarities(
    weights: Mapping[Rarity, float],
    k: int,
    rng: random.Random | None = None,
) -> list[Rarity]:
    """Draw ``k`` distinct rarity tiers by weight, without replacement.

    Tiers with zero weight are never drawn, so at most as many tiers as have a
    positive weight are returned.
    """
    rng = rng or _system_rng
    pool = {r: w for r, w in weights.items() if w > 0}
    drawn: list[Rarity] = []

    for _ in range(min(k, len(pool))):
        tiers = sorted(pool, key=lambda r: r.rank)
        pick = rng.random() * sum(pool.values())
        chosen = tiers[-1]
        acc = 0.0
        for tier in tiers:
            acc += pool[tier]
            if pick < acc:
                chosen = tier
                break
        drawn.append(chosen)
        del pool[chosen]

    return drawn


def roll_chest_contents(
    chest_type: ChestTypeDef,
    owned: Iterable[tuple[str, str]] = (),
    rng: random.Random | None = None,
    weights: Mapping[Rarity, float] | None = None,
) -> RewardBundle:
    """Roll one chest's contents.

    ``weights`` replaces the tier's catalog rarity weights when given.

    ``owned`` holds ``(equipment_type, equipment_id)`` pairs. Rolling an owned
    item, or the same item twice in one chest, pays its rarity's duplicate
    coin value instead of a second copy.
    """
    rng = rng or _system_rng
    owned_set = set(owned)

    bundle = RewardBundle(chest_type=chest_type.id)
    bundle.coins = chest_type.coin_floor + rng.randint(0, chest_type.coins[1] - chest_type.coins[0])
    bundle.xp = rng.randint(*chest_type.xp)
    if chest_type.gem_chance > 0 and rng.random() < chest_type.gem_chance:
        bundle.gems = rng.randint(*chest_type.gems)

    triggered = sum(1 for _ in range(chest_type.equipment_slots) if rng.random() < chest_type.equipment_chance)
    for rarity in draw_rarities(weights or chest_type.rarity_weights, triggered, rng):
        equipment_type = rng.choice(EQUIPMENT_TYPES)
        candidates = equipment_of(equipment_type, rarity)
        if not candidates:
            continue
        item = rng.choice(candidates)
        key = (item.type, item.id)
        if key in owned_set:
            payout = DUPLICATE_COIN_VALUE[rarity]
            bundle.coins += payout
            bundle.duplicates.append(EquipmentDrop(item.type, item.id, rarity.value, payout))
        else:
            owned_set.add(key)
            bundle.equipment.append(EquipmentDrop(item.type, item.id, rarity.value))

    return bundle


def expected_rarity_share(weights: Mapping[Rarity, float]) -> dict[Rarity, float]:
    """Normalized single-draw probability per tier."""
    total = sum(w for w in weights.values() if w > 0)
    return {r: weights.get(r, 0) / total for r in RARITY_ORDER if weights.get(r, 0) > 0}
