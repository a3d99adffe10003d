"""Per actor type rules: owned item types, encumbrance, displayed stats."""

from __future__ import annotations

from .models import ActorType, ItemKind

PHYSICAL_ITEM_TYPES = frozenset(
    {ItemKind.ITEM.value, ItemKind.WEAPON.value, ItemKind.ARMOR.value}
)

_PERSONAL_ITEM_TYPES = frozenset(
    {
        ItemKind.ITEM.value,
        ItemKind.WEAPON.value,
        ItemKind.ARMOR.value,
        ItemKind.TALENT.value,
        ItemKind.AGENDA.value,
        ItemKind.SPECIALTY.value,
        ItemKind.CRITICAL_INJURY.value,
    }
)

ALLOWED_ITEM_TYPES: dict[ActorType, frozenset[str]] = {
    ActorType.CHARACTER: _PERSONAL_ITEM_TYPES,
    ActorType.SYNTHETIC: _PERSONAL_ITEM_TYPES,
    ActorType.VEHICLES: PHYSICAL_ITEM_TYPES,
    ActorType.TERRITORY: frozenset({"planet-system"}),
    ActorType.CREATURE: frozenset(),
}

ENCUMBRANCE_ACTORS = frozenset({ActorType.CHARACTER, ActorType.SYNTHETIC})

POINT_STATS = ("radiation", "xp", "sp")
CONDITION_STATS = ("starving", "dehydrated", "exhausted", "freezing", "panic")


def is_item_allowed(actor_type: ActorType, item_type: str) -> bool:
    """Physical items fit any actor except creatures."""
    if actor_type is ActorType.CREATURE:
        return False
    if item_type in PHYSICAL_ITEM_TYPES:
        return True
    return item_type in ALLOWED_ITEM_TYPES.get(actor_type, frozenset())


def tracks_encumbrance(actor_type: ActorType) -> bool:
    return actor_type in ENCUMBRANCE_ACTORS


def indicator_stats(actor_type: ActorType) -> tuple[str, ...]:
    if actor_type is ActorType.CHARACTER:
        return POINT_STATS + CONDITION_STATS
    if actor_type is ActorType.SYNTHETIC:
        return POINT_STATS
    return ()
