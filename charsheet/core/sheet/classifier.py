"""Item classification into sheet buckets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .models import AnyItem, ItemKind

INVENTORY_CATEGORIES = (ItemKind.WEAPON, ItemKind.ARMOR, ItemKind.ITEM)


def _empty_inventory() -> dict[ItemKind, list[AnyItem]]:
    return {category: [] for category in INVENTORY_CATEGORIES}


@dataclass
class Buckets:
    """Classification result. Recomputed on every evaluation."""

    talents: list[AnyItem] = field(default_factory=list)
    agendas: list[AnyItem] = field(default_factory=list)
    specialities: list[AnyItem] = field(default_factory=list)
    critical_injuries: list[AnyItem] = field(default_factory=list)
    inventory: dict[ItemKind, list[AnyItem]] = field(default_factory=_empty_inventory)


def classify(items: Iterable[AnyItem]) -> Buckets:
    """Single ordered pass over the items.

    Only the first specialty is kept; later ones stay owned but are not
    shown. Anything that is not a weapon or armor goes to the ``item``
    inventory bucket.
    """
    buckets = Buckets()
    for item in items:
        kind = item.kind
        if kind is ItemKind.TALENT:
            buckets.talents.append(item)
        elif kind is ItemKind.AGENDA:
            buckets.agendas.append(item)
        elif kind is ItemKind.SPECIALTY:
            if not buckets.specialities:
                buckets.specialities.append(item)
        elif kind is ItemKind.CRITICAL_INJURY:
            buckets.critical_injuries.append(item)
        elif kind in buckets.inventory:
            buckets.inventory[kind].append(item)
        else:
            buckets.inventory[ItemKind.ITEM].append(item)
    return buckets
