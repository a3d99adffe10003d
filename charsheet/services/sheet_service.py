"""Sheet Service: Core↔DB connection, EventBus publishing

Service → Core, Service → DB allowed.
Condition mutations go through SqlConditionStore.
Item changes trigger a recomputation through the service's own subscription.
"""

import asyncio
import uuid
from typing import Any, Mapping

from sqlalchemy import func
from sqlalchemy.orm import Session

from charsheet.core.event_bus import EventBus, SheetEvent
from charsheet.core.event_types import EventTypes
from charsheet.core.logging import get_logger
from charsheet.core.sheet.actor_rules import is_item_allowed
from charsheet.core.sheet.catalog import ItemCatalog
from charsheet.core.sheet.conditions import sync_encumbrance, toggle_condition
from charsheet.core.sheet.models import (
    ActorType,
    AnyItem,
    CharacterSnapshot,
    ItemState,
    StatTrack,
    parse_item,
    to_number,
)
from charsheet.core.sheet.sheet import SheetView, build_sheet
from charsheet.db.models import CharacterModel, ConditionModel, ItemModel
from charsheet.services.condition_store import SqlConditionStore

logger = get_logger(__name__)


class ItemNotAllowedError(ValueError):
    """Item type cannot be owned by this actor type."""


class SheetService:
    """Character sheet recomputation + owned item state"""

    def __init__(self, db: Session, event_bus: EventBus, catalog: ItemCatalog):
        self._db = db
        self._bus = event_bus
        self._catalog = catalog
        self._pending: set[asyncio.Task] = set()
        self._register_event_handlers()

    def _register_event_handlers(self) -> None:
        """EventBus subscriptions"""
        for event_type in (
            EventTypes.ITEM_CREATED,
            EventTypes.ITEM_DELETED,
            EventTypes.ITEM_STATE_CHANGED,
        ):
            self._bus.subscribe(event_type, self._on_items_changed)

    @property
    def catalog(self) -> ItemCatalog:
        return self._catalog

    # === Characters ===

    def create_character(
        self,
        character_id: str,
        name: str = "",
        actor_type: ActorType = ActorType.CHARACTER,
        strength: float = 0.0,
        general: dict[str, dict[str, int]] | None = None,
    ) -> CharacterSnapshot:
        """Register a character row. Normally owned by the host application."""
        orm = CharacterModel(
            character_id=character_id,
            name=name,
            actor_type=ActorType(actor_type).value,
            strength=strength,
            general=general or {},
        )
        self._db.add(orm)
        self._db.commit()
        logger.debug("Created character %s (%s)", character_id, orm.actor_type)
        return self.get_snapshot(character_id)

    def has_character(self, character_id: str) -> bool:
        return (
            self._db.query(CharacterModel)
            .filter(CharacterModel.character_id == character_id)
            .first()
        ) is not None

    def get_snapshot(self, character_id: str) -> CharacterSnapshot:
        """Read-only view of the character. Unknown id → ValueError."""
        orm = self._get_character_orm(character_id)
        conditions = (
            self._db.query(ConditionModel.key)
            .filter(ConditionModel.character_id == character_id)
            .all()
        )
        return CharacterSnapshot(
            character_id=orm.character_id,
            actor_type=ActorType(orm.actor_type),
            strength=max(0.0, to_number(orm.strength)),
            items=tuple(self._item_to_core(i) for i in orm.items),
            conditions=frozenset(r.key for r in conditions),
            general=self._general_to_core(orm.general),
        )

    def condition_store(self, character_id: str) -> SqlConditionStore:
        return SqlConditionStore(self._db, character_id, self._bus)

    # === Recomputation ===

    async def refresh_sheet(self, character_id: str) -> SheetView:
        """Rebuild the sheet and mirror encumbrance onto the condition store.

        Store failures propagate; the returned view is not produced in that case.
        """
        self._bus.reset_chain()
        return await self._recompute(character_id)

    async def _recompute(self, character_id: str) -> SheetView:
        snapshot = self.get_snapshot(character_id)
        view = build_sheet(snapshot)

        if view.encumbrance is not None:
            await sync_encumbrance(self.condition_store(character_id), view.encumbrance)

        self._bus.emit(
            SheetEvent(
                event_type=EventTypes.SHEET_RECOMPUTED,
                data={"character_id": character_id},
                source="sheet_service",
            )
        )
        logger.debug(
            "Recomputed sheet %s: %d items, weight=%.2f",
            character_id,
            len(snapshot.items),
            view.weights.total,
        )
        return view

    async def toggle_condition(self, character_id: str, key: str) -> bool:
        """Flip a condition (e.g. overwatch). Returns the new state."""
        self._bus.reset_chain()
        self._get_character_orm(character_id)
        return await toggle_condition(self.condition_store(character_id), key)

    # === Items ===

    def create_item(
        self,
        character_id: str,
        raw: Mapping[str, Any],
        catalog_id: str | None = None,
    ) -> AnyItem:
        """Store a raw item record for the character. Actor type is validated.

        item_created event.
        """
        self._bus.reset_chain()
        character = self._get_character_orm(character_id)
        item = parse_item({**raw, "id": str(uuid.uuid4())})

        actor_type = ActorType(character.actor_type)
        if not is_item_allowed(actor_type, item.type_tag):
            raise ItemNotAllowedError(
                f"{item.type_tag} cannot be owned by {actor_type.value}"
            )

        max_sort = (
            self._db.query(func.max(ItemModel.sort))
            .filter(ItemModel.character_id == character_id)
            .scalar()
        )
        attrs = raw.get("attributes") or {}
        orm = ItemModel(
            item_id=item.item_id,
            character_id=character_id,
            item_type=item.type_tag,
            name=item.name,
            sort=item.sort if "sort" in raw else (max_sort or 0) + 1,
            state=item.state.value,
            attributes=dict(attrs) if isinstance(attrs, Mapping) else {},
            catalog_id=catalog_id,
        )
        self._db.add(orm)
        self._db.commit()

        self._bus.emit(
            SheetEvent(
                event_type=EventTypes.ITEM_CREATED,
                data={
                    "character_id": character_id,
                    "item_id": orm.item_id,
                    "item_type": orm.item_type,
                    "catalog_id": catalog_id,
                },
                source="sheet_service",
            )
        )
        logger.debug("Created item %s (%s) for %s", orm.item_id, orm.item_type, character_id)
        return self._item_to_core(orm)

    def add_item(self, character_id: str, catalog_id: str) -> AnyItem:
        """Create an owned item from a catalog entry."""
        entry = self._catalog.get(catalog_id)
        if entry is None:
            raise ValueError(f"Unknown catalog entry: {catalog_id}")
        return self.create_item(character_id, entry.to_raw(), catalog_id=catalog_id)

    def get_item(self, character_id: str, item_id: str) -> AnyItem | None:
        orm = self._find_item_orm(character_id, item_id)
        if orm is None:
            return None
        return self._item_to_core(orm)

    def remove_item(self, character_id: str, item_id: str) -> None:
        self._bus.reset_chain()
        orm = self._get_item_orm(character_id, item_id)
        self._db.delete(orm)
        self._db.commit()
        self._bus.emit(
            SheetEvent(
                event_type=EventTypes.ITEM_DELETED,
                data={"character_id": character_id, "item_id": item_id},
                source="sheet_service",
            )
        )

    def set_item_state(
        self, character_id: str, item_id: str, state: ItemState
    ) -> AnyItem:
        """Change header state. item_state_changed event when it actually changes."""
        self._bus.reset_chain()
        orm = self._get_item_orm(character_id, item_id)
        previous = orm.state
        if previous != state.value:
            orm.state = state.value
            self._db.commit()
            self._bus.emit(
                SheetEvent(
                    event_type=EventTypes.ITEM_STATE_CHANGED,
                    data={
                        "character_id": character_id,
                        "item_id": item_id,
                        "from": previous,
                        "to": state.value,
                    },
                    source="sheet_service",
                )
            )
            logger.debug("Item %s: %s → %s", item_id, previous, state.value)
        return self._item_to_core(orm)

    def stow_item(self, character_id: str, item_id: str) -> AnyItem:
        """Move to the locker. Stowed items carry no weight."""
        return self.set_item_state(character_id, item_id, ItemState.LOCKED)

    def unstow_item(self, character_id: str, item_id: str) -> AnyItem:
        return self.set_item_state(character_id, item_id, ItemState.INACTIVE)

    def activate_item(self, character_id: str, item_id: str) -> AnyItem:
        return self.set_item_state(character_id, item_id, ItemState.ACTIVE)

    def deactivate_item(self, character_id: str, item_id: str) -> AnyItem:
        return self.set_item_state(character_id, item_id, ItemState.INACTIVE)

    # === Lookup helpers ===

    def _get_character_orm(self, character_id: str) -> CharacterModel:
        orm = (
            self._db.query(CharacterModel)
            .filter(CharacterModel.character_id == character_id)
            .first()
        )
        if orm is None:
            raise ValueError(f"Character not found: {character_id}")
        return orm

    def _find_item_orm(self, character_id: str, item_id: str) -> ItemModel | None:
        return (
            self._db.query(ItemModel)
            .filter(
                ItemModel.character_id == character_id,
                ItemModel.item_id == item_id,
            )
            .first()
        )

    def _get_item_orm(self, character_id: str, item_id: str) -> ItemModel:
        orm = self._find_item_orm(character_id, item_id)
        if orm is None:
            raise ValueError(f"Item not found: {item_id} (character={character_id})")
        return orm

    # === ORM → Core ===

    def _item_to_core(self, orm: ItemModel) -> AnyItem:
        return parse_item(
            {
                "id": orm.item_id,
                "type": orm.item_type,
                "name": orm.name,
                "sort": orm.sort,
                "header": {"active": orm.state},
                "attributes": orm.attributes or {},
            }
        )

    def _general_to_core(self, general: dict | None) -> dict[str, StatTrack]:
        result: dict[str, StatTrack] = {}
        for stat, raw in (general or {}).items():
            if not isinstance(raw, dict):
                continue
            result[stat] = StatTrack(
                value=int(to_number(raw.get("value"))),
                max=int(to_number(raw.get("max"))),
            )
        return result

    # === Event handlers ===

    def _on_items_changed(self, event: SheetEvent) -> None:
        """Recompute after an item change so the encumbered condition follows.

        Runs inside the emitting chain. With an event loop already running
        (async caller) the recomputation is scheduled on it instead.
        """
        character_id = event.data.get("character_id")
        if not character_id:
            return
        coro = self._recompute(character_id)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(coro)
            return
        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._recompute_done)

    def _recompute_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Scheduled recompute failed: %s", task.exception())
