"""Level indicators: filled/empty marks for bounded stats."""

from __future__ import annotations

from enum import Enum
from typing import Mapping

from .actor_rules import indicator_stats
from .models import ActorType, StatTrack


class Mark(str, Enum):
    FILLED = "filled"
    EMPTY = "empty"


def indicator(level: int, max_level: int) -> list[Mark]:
    """Exactly ``max_level`` marks; position p (1-based) is filled when p <= level.

    level > max_level fills every mark, max_level <= 0 gives no marks.
    """
    return [
        Mark.FILLED if position <= level else Mark.EMPTY
        for position in range(1, max_level + 1)
    ]


def stat_indicators(
    general: Mapping[str, StatTrack], actor_type: ActorType
) -> dict[str, list[Mark]]:
    """Indicators for the stats this actor type displays. Missing stats are skipped."""
    result: dict[str, list[Mark]] = {}
    for stat in indicator_stats(actor_type):
        track = general.get(stat)
        if track is None:
            continue
        result[stat] = indicator(track.value, track.max)
    return result
