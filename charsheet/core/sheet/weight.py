"""Carried weight rules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .models import AnyItem, ArmorItem, GearItem, WeaponItem

AMMO_UNIT_WEIGHT = 0.25
HEAVY_AMMO_UNIT_WEIGHT = 0.5
HEAVY_AMMO_TOKEN = "RPG"


@dataclass(frozen=True)
class WeightTotals:
    per_item: tuple[float, ...] = ()  # aligned with input order
    total: float = 0.0


def ammo_unit_weight(weapon: WeaponItem) -> float:
    """0.5 per round for rocket launchers, 0.25 otherwise.

    Case-sensitive: class "RPG", or the name contains " RPG ", starts with
    "RPG" or ends with "RPG".
    """
    name = weapon.name
    if (
        weapon.weapon_class == HEAVY_AMMO_TOKEN
        or f" {HEAVY_AMMO_TOKEN} " in name
        or name.startswith(HEAVY_AMMO_TOKEN)
        or name.endswith(HEAVY_AMMO_TOKEN)
    ):
        return HEAVY_AMMO_UNIT_WEIGHT
    return AMMO_UNIT_WEIGHT


def item_weight(item: AnyItem) -> float:
    """Weight one item adds to the carried total. Locked items weigh 0."""
    if item.locked:
        return 0.0
    if isinstance(item, ArmorItem):
        return item.weight
    if isinstance(item, WeaponItem):
        return (item.weight + item.rounds * ammo_unit_weight(item)) * item.quantity
    if isinstance(item, GearItem):
        return item.weight * item.quantity
    # talents, agendas, specialties, injuries
    return 0.0


def aggregate(items: Iterable[AnyItem]) -> WeightTotals:
    """Per-item weights (positional, ids may repeat or be empty) and their sum."""
    per_item = tuple(item_weight(item) for item in items)
    return WeightTotals(per_item=per_item, total=sum(per_item, 0.0))
