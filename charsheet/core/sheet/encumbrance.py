"""Encumbrance evaluation. No condition store access here."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from .models import AnyItem

logger = logging.getLogger(__name__)

CAPACITY_PER_STRENGTH = 4
MAX_PERCENTAGE = 99.0
DEFAULT_THRESHOLD = 50.0
PACK_MULE_THRESHOLD = 75.0
PACK_MULE_TALENT = "PACK MULE"


@dataclass(frozen=True)
class EncumbranceResult:
    capacity: float
    carried_weight: float
    percentage: float  # 0~99
    encumbered: bool


def calculate_capacity(strength: float) -> float:
    return strength * CAPACITY_PER_STRENGTH


def calculate_percentage(carried_weight: float, capacity: float) -> float:
    """carried / capacity as a percentage, clamped to [0, 99].

    Zero capacity: 99 when anything is carried, 0 otherwise.
    """
    if capacity <= 0:
        return MAX_PERCENTAGE if carried_weight > 0 else 0.0
    pct = (carried_weight * 100) / capacity
    return max(0.0, min(pct, MAX_PERCENTAGE))


def encumbrance_threshold(talents: Iterable[AnyItem]) -> float:
    """50%, or 75% with the Pack Mule talent (replaces, does not stack)."""
    for talent in talents:
        if talent.name.upper() == PACK_MULE_TALENT:
            return PACK_MULE_THRESHOLD
    return DEFAULT_THRESHOLD


def evaluate(
    total_weight: float, strength: float, talents: Iterable[AnyItem] = ()
) -> EncumbranceResult:
    capacity = calculate_capacity(strength)
    percentage = calculate_percentage(total_weight, capacity)
    threshold = encumbrance_threshold(talents)
    result = EncumbranceResult(
        capacity=capacity,
        carried_weight=total_weight,
        percentage=percentage,
        encumbered=percentage > threshold,
    )
    logger.debug(
        "Encumbrance: %.2f/%.2f (%.1f%%, threshold=%.0f) encumbered=%s",
        total_weight,
        capacity,
        percentage,
        threshold,
        result.encumbered,
    )
    return result
