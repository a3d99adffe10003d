"""Character sheet rules core. Pure Python, DB independent."""

from .catalog import CatalogEntry, ItemCatalog
from .classifier import Buckets, classify
from .conditions import (
    ENCUMBERED_CONDITION,
    ConditionStore,
    ConditionStoreError,
    sync_encumbrance,
    toggle_condition,
)
from .encumbrance import EncumbranceResult, evaluate
from .indicator import Mark, indicator, stat_indicators
from .models import (
    ActorType,
    CharacterSnapshot,
    ItemKind,
    ItemState,
    StatTrack,
    parse_item,
)
from .sheet import InventoryEntry, SheetView, build_sheet
from .weight import WeightTotals, aggregate, item_weight

__all__ = [
    "ActorType",
    "Buckets",
    "CatalogEntry",
    "CharacterSnapshot",
    "ConditionStore",
    "ConditionStoreError",
    "ENCUMBERED_CONDITION",
    "EncumbranceResult",
    "InventoryEntry",
    "ItemCatalog",
    "ItemKind",
    "ItemState",
    "Mark",
    "SheetView",
    "StatTrack",
    "WeightTotals",
    "aggregate",
    "build_sheet",
    "classify",
    "evaluate",
    "indicator",
    "item_weight",
    "parse_item",
    "stat_indicators",
    "sync_encumbrance",
    "toggle_condition",
]
