"""Sheet domain models (DB independent).

Items are a closed set of kinds. Each kind carries only the attributes it
uses; raw records are normalized by ``parse_item`` with explicit defaults.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Union


class ItemKind(str, Enum):
    WEAPON = "weapon"
    ARMOR = "armor"
    ITEM = "item"
    TALENT = "talent"
    AGENDA = "agenda"
    SPECIALTY = "specialty"
    CRITICAL_INJURY = "critical-injury"


class ItemState(str, Enum):
    """Raw ``header.active`` tri-state. LOCKED = stowed in the locker."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    LOCKED = "locked"


class ActorType(str, Enum):
    CHARACTER = "character"
    SYNTHETIC = "synthetic"
    VEHICLES = "vehicles"
    CREATURE = "creature"
    TERRITORY = "territory"


# Legacy sheets tag stowed items as "fLocker"
_LOCKED_TAGS = frozenset({"locked", "flocker"})


@dataclass(frozen=True)
class Item(ABC):
    """Common part of every owned item."""

    item_id: str
    name: str = ""
    state: ItemState = ItemState.INACTIVE
    sort: int = 0

    @property
    @abstractmethod
    def kind(self) -> ItemKind: ...

    @property
    def type_tag(self) -> str:
        return self.kind.value

    @property
    def locked(self) -> bool:
        return self.state is ItemState.LOCKED


@dataclass(frozen=True)
class WeaponItem(Item):
    weight: float = 0.0
    quantity: float = 0.0
    rounds: float = 0.0
    weapon_class: str = ""

    @property
    def kind(self) -> ItemKind:
        return ItemKind.WEAPON


@dataclass(frozen=True)
class ArmorItem(Item):
    weight: float = 0.0

    @property
    def kind(self) -> ItemKind:
        return ItemKind.ARMOR


@dataclass(frozen=True)
class GearItem(Item):
    """Generic item. Unrecognized raw types land here with their tag kept."""

    weight: float = 0.0
    quantity: float = 0.0
    raw_type: str = ItemKind.ITEM.value

    @property
    def kind(self) -> ItemKind:
        return ItemKind.ITEM

    @property
    def type_tag(self) -> str:
        return self.raw_type


@dataclass(frozen=True)
class TalentItem(Item):
    @property
    def kind(self) -> ItemKind:
        return ItemKind.TALENT


@dataclass(frozen=True)
class AgendaItem(Item):
    @property
    def kind(self) -> ItemKind:
        return ItemKind.AGENDA


@dataclass(frozen=True)
class SpecialtyItem(Item):
    @property
    def kind(self) -> ItemKind:
        return ItemKind.SPECIALTY


@dataclass(frozen=True)
class CriticalInjuryItem(Item):
    @property
    def kind(self) -> ItemKind:
        return ItemKind.CRITICAL_INJURY


AnyItem = Union[
    WeaponItem,
    ArmorItem,
    GearItem,
    TalentItem,
    AgendaItem,
    SpecialtyItem,
    CriticalInjuryItem,
]

_WEIGHTLESS = {
    ItemKind.TALENT.value: TalentItem,
    ItemKind.AGENDA.value: AgendaItem,
    ItemKind.SPECIALTY.value: SpecialtyItem,
    ItemKind.CRITICAL_INJURY.value: CriticalInjuryItem,
}


@dataclass(frozen=True)
class StatTrack:
    """Bounded numeric stat (radiation, xp, stress, condition trackers)."""

    value: int = 0
    max: int = 0


@dataclass(frozen=True)
class CharacterSnapshot:
    """Read-only view of a character for one recomputation."""

    character_id: str
    actor_type: ActorType = ActorType.CHARACTER
    strength: float = 0.0
    items: tuple[AnyItem, ...] = ()
    conditions: frozenset[str] = frozenset()
    general: dict[str, StatTrack] = field(default_factory=dict)


# === Raw record parsing ===


def _unwrap(value: Any) -> Any:
    # Sheet templates store attributes as {"value": x}
    if isinstance(value, Mapping):
        return value.get("value")
    return value


def to_number(value: Any) -> float:
    """Numeric attribute with 0 as the fallback for missing or malformed data."""
    value = _unwrap(value)
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if number != number:  # NaN
        return 0.0
    return number


def to_text(value: Any) -> str:
    value = _unwrap(value)
    return "" if value is None else str(value)


def parse_state(value: Any) -> ItemState:
    """true → ACTIVE, "locked"/"fLocker" → LOCKED, everything else INACTIVE."""
    value = _unwrap(value)
    if value is True:
        return ItemState.ACTIVE
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _LOCKED_TAGS:
            return ItemState.LOCKED
        if lowered in ("true", ItemState.ACTIVE.value):
            return ItemState.ACTIVE
    return ItemState.INACTIVE


def parse_item(raw: Mapping[str, Any]) -> AnyItem:
    """Raw item record → typed item. Never raises for malformed attributes.

    Expected shape::

        {"id": "...", "type": "weapon", "name": "...", "sort": 0,
         "header": {"active": true | false | "locked"},
         "attributes": {"weight": 1, "quantity": 1, "rounds": 12, "class": "Pistol"}}
    """
    item_type = to_text(raw.get("type")) or ItemKind.ITEM.value
    header = raw.get("header") or {}
    attrs = raw.get("attributes") or {}
    if not isinstance(header, Mapping):
        header = {}
    if not isinstance(attrs, Mapping):
        attrs = {}

    common = dict(
        item_id=to_text(raw.get("id", raw.get("item_id"))),
        name=to_text(raw.get("name")),
        state=parse_state(header.get("active")),
        sort=int(to_number(raw.get("sort"))),
    )

    if item_type == ItemKind.WEAPON.value:
        return WeaponItem(
            **common,
            weight=to_number(attrs.get("weight")),
            quantity=to_number(attrs.get("quantity")),
            rounds=to_number(attrs.get("rounds")),
            weapon_class=to_text(attrs.get("class")),
        )
    if item_type == ItemKind.ARMOR.value:
        return ArmorItem(**common, weight=to_number(attrs.get("weight")))
    if item_type in _WEIGHTLESS:
        return _WEIGHTLESS[item_type](**common)
    return GearItem(
        **common,
        weight=to_number(attrs.get("weight")),
        quantity=to_number(attrs.get("quantity")),
        raw_type=item_type,
    )


def item_to_raw(item: AnyItem) -> dict[str, Any]:
    """Typed item → raw record (inverse of ``parse_item``)."""
    if item.state is ItemState.LOCKED:
        active: Any = ItemState.LOCKED.value
    else:
        active = item.state is ItemState.ACTIVE

    attrs: dict[str, Any] = {}
    if isinstance(item, WeaponItem):
        attrs = {
            "weight": item.weight,
            "quantity": item.quantity,
            "rounds": item.rounds,
            "class": item.weapon_class,
        }
    elif isinstance(item, ArmorItem):
        attrs = {"weight": item.weight}
    elif isinstance(item, GearItem):
        attrs = {"weight": item.weight, "quantity": item.quantity}

    return {
        "id": item.item_id,
        "type": item.type_tag,
        "name": item.name,
        "sort": item.sort,
        "header": {"active": active},
        "attributes": attrs,
    }
