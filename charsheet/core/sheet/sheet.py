"""Sheet assembly: pure composition of classification, weight, encumbrance, indicators."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .actor_rules import tracks_encumbrance
from .classifier import Buckets, classify
from .encumbrance import EncumbranceResult, evaluate
from .indicator import Mark, stat_indicators
from .models import AnyItem, CharacterSnapshot, GearItem, ItemKind, WeaponItem
from .weight import WeightTotals, aggregate


@dataclass(frozen=True)
class InventoryEntry:
    item: AnyItem
    total_weight: float
    is_stack: bool


@dataclass
class SheetView:
    character_id: str
    buckets: Buckets
    weights: WeightTotals
    inventory: dict[ItemKind, list[InventoryEntry]]
    encumbrance: Optional[EncumbranceResult] = None  # None = actor type does not track it
    indicators: dict[str, list[Mark]] = field(default_factory=dict)


def is_stack(item: AnyItem) -> bool:
    if isinstance(item, (WeaponItem, GearItem)):
        return item.quantity > 1
    return False


def build_sheet(snapshot: CharacterSnapshot) -> SheetView:
    # stable sort: equal sort keys keep stored order
    items = sorted(snapshot.items, key=lambda i: i.sort)
    buckets = classify(items)
    weights = aggregate(items)
    # by identity: ids are not guaranteed unique
    weight_of = {id(item): w for item, w in zip(items, weights.per_item)}

    inventory = {
        category: [
            InventoryEntry(
                item=item,
                total_weight=weight_of[id(item)],
                is_stack=is_stack(item),
            )
            for item in entries
        ]
        for category, entries in buckets.inventory.items()
    }

    encumbrance = None
    if tracks_encumbrance(snapshot.actor_type):
        encumbrance = evaluate(weights.total, snapshot.strength, buckets.talents)

    return SheetView(
        character_id=snapshot.character_id,
        buckets=buckets,
        weights=weights,
        inventory=inventory,
        encumbrance=encumbrance,
        indicators=stat_indicators(snapshot.general, snapshot.actor_type),
    )
