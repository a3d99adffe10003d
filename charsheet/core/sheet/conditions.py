"""Condition synchronization, the only effectful step of a recomputation.

The store is external (DB, host application). Calls are awaited and any
store failure propagates to the caller unchanged; nothing is retried here.
"""

from __future__ import annotations

import logging
from typing import Protocol

from .encumbrance import EncumbranceResult

logger = logging.getLogger(__name__)

ENCUMBERED_CONDITION = "encumbered"


class ConditionStoreError(RuntimeError):
    """Condition store rejected a mutation (missing character, conflict, ...)."""


class ConditionStore(Protocol):
    async def has_condition(self, key: str) -> bool: ...

    async def add_condition(self, key: str) -> None: ...

    async def remove_condition(self, key: str) -> None: ...


async def set_condition(store: ConditionStore, key: str, present: bool) -> bool:
    """Make ``key`` present/absent. Returns True when the store was mutated."""
    has = await store.has_condition(key)
    if present and not has:
        await store.add_condition(key)
        return True
    if not present and has:
        await store.remove_condition(key)
        return True
    return False


async def sync_encumbrance(store: ConditionStore, result: EncumbranceResult) -> bool:
    """Mirror ``result.encumbered`` onto the store. Safe to call on every recompute."""
    changed = await set_condition(store, ENCUMBERED_CONDITION, result.encumbered)
    if changed:
        logger.info(
            "Condition %s %s (%.1f%%)",
            ENCUMBERED_CONDITION,
            "added" if result.encumbered else "removed",
            result.percentage,
        )
    return changed


async def toggle_condition(store: ConditionStore, key: str) -> bool:
    """Flip ``key``. Returns the new state (True = present)."""
    present = not await store.has_condition(key)
    await set_condition(store, key, present)
    return present
