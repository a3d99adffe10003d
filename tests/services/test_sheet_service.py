"""SheetService integration tests (in-memory SQLite + EventBus)"""

import asyncio

import pytest

from charsheet.core.event_bus import SheetEvent
from charsheet.core.event_types import EventTypes
from charsheet.core.sheet.conditions import ENCUMBERED_CONDITION, ConditionStoreError
from charsheet.core.sheet.models import ActorType, ItemKind, ItemState
from charsheet.db.models import ConditionModel, ItemModel
from charsheet.services.condition_store import SqlConditionStore
from charsheet.services.sheet_service import ItemNotAllowedError

GENERAL = {
    "radiation": {"value": 2, "max": 10},
    "xp": {"value": 0, "max": 10},
    "sp": {"value": 3, "max": 10},
    "panic": {"value": 1, "max": 1},
}


@pytest.fixture()
def setup_with_character(sheet_setup):
    """sheet_setup + character (strength 10 → capacity 40)"""
    service, db, bus = sheet_setup
    service.create_character("c1", name="Ripley", strength=10, general=GENERAL)
    return service, db, bus


def _crate(weight: float, **extra) -> dict:
    return {"type": "item", "name": "Supply Crate", "attributes": {"weight": weight, "quantity": 1}, **extra}


def _condition_rows(db, character_id: str = "c1") -> list[str]:
    return [
        r.key
        for r in db.query(ConditionModel).filter(ConditionModel.character_id == character_id)
    ]


# ── characters ───────────────────────────────────────────────


class TestCharacters:
    def test_snapshot(self, setup_with_character) -> None:
        service, db, bus = setup_with_character
        snapshot = service.get_snapshot("c1")
        assert snapshot.strength == 10
        assert snapshot.actor_type is ActorType.CHARACTER
        assert snapshot.general["radiation"].value == 2
        assert snapshot.items == ()

    def test_unknown_character(self, sheet_setup) -> None:
        service, db, bus = sheet_setup
        with pytest.raises(ValueError):
            service.get_snapshot("ghost")
        assert service.has_character("ghost") is False


# ── items ────────────────────────────────────────────────────


class TestItems:
    def test_add_from_catalog(self, setup_with_character) -> None:
        service, db, bus = setup_with_character
        events: list[SheetEvent] = []
        bus.subscribe(EventTypes.ITEM_CREATED, lambda e: events.append(e))

        item = service.add_item("c1", "wpn_m4a3_service_pistol")
        assert item.kind is ItemKind.WEAPON
        assert item.name == "M4A3 Service Pistol"
        assert len(events) == 1
        assert events[0].data["catalog_id"] == "wpn_m4a3_service_pistol"

        row = db.query(ItemModel).filter(ItemModel.item_id == item.item_id).one()
        assert row.catalog_id == "wpn_m4a3_service_pistol"

    def test_add_unknown_catalog_entry(self, setup_with_character) -> None:
        service, db, bus = setup_with_character
        with pytest.raises(ValueError):
            service.add_item("c1", "nope")

    def test_sort_appends(self, setup_with_character) -> None:
        service, db, bus = setup_with_character
        first = service.add_item("c1", "itm_flare")
        second = service.add_item("c1", "itm_motion_tracker")
        assert second.sort == first.sort + 1

    def test_actor_type_validation(self, sheet_setup) -> None:
        service, db, bus = sheet_setup
        service.create_character("v1", actor_type=ActorType.VEHICLES)
        service.add_item("v1", "arm_m3_personnel_armor")
        with pytest.raises(ItemNotAllowedError):
            service.add_item("v1", "tal_pack_mule")

    def test_creature_cannot_own_items(self, sheet_setup) -> None:
        service, db, bus = sheet_setup
        service.create_character("x1", actor_type=ActorType.CREATURE)
        with pytest.raises(ItemNotAllowedError):
            service.add_item("x1", "itm_flare")

    def test_stow_and_unstow(self, setup_with_character) -> None:
        service, db, bus = setup_with_character
        events: list[SheetEvent] = []
        bus.subscribe(EventTypes.ITEM_STATE_CHANGED, lambda e: events.append(e))

        item = service.add_item("c1", "itm_maintenance_jack")
        stowed = service.stow_item("c1", item.item_id)
        assert stowed.state is ItemState.LOCKED
        assert events[-1].data["to"] == "locked"

        restored = service.unstow_item("c1", item.item_id)
        assert restored.state is ItemState.INACTIVE
        assert len(events) == 2

    def test_same_state_no_event(self, setup_with_character) -> None:
        service, db, bus = setup_with_character
        events: list[SheetEvent] = []
        bus.subscribe(EventTypes.ITEM_STATE_CHANGED, lambda e: events.append(e))
        item = service.add_item("c1", "itm_flare")
        service.deactivate_item("c1", item.item_id)
        assert events == []

    def test_activate(self, setup_with_character) -> None:
        service, db, bus = setup_with_character
        item = service.add_item("c1", "arm_m3_personnel_armor")
        assert service.activate_item("c1", item.item_id).state is ItemState.ACTIVE
        assert service.get_item("c1", item.item_id).state is ItemState.ACTIVE

    def test_state_change_unknown_item(self, setup_with_character) -> None:
        service, db, bus = setup_with_character
        with pytest.raises(ValueError):
            service.stow_item("c1", "missing")

    def test_remove_item(self, setup_with_character) -> None:
        service, db, bus = setup_with_character
        item = service.add_item("c1", "itm_flare")
        service.remove_item("c1", item.item_id)
        assert service.get_item("c1", item.item_id) is None


# ── refresh_sheet ────────────────────────────────────────────


class TestRefreshSheet:
    def test_encumbered_condition_applied(self, setup_with_character) -> None:
        service, db, bus = setup_with_character
        service.create_item("c1", _crate(21))

        view = asyncio.run(service.refresh_sheet("c1"))
        assert view.encumbrance.percentage == pytest.approx(52.5)
        assert view.encumbrance.encumbered is True
        assert _condition_rows(db) == [ENCUMBERED_CONDITION]

    def test_pack_mule_prevents_condition(self, setup_with_character) -> None:
        service, db, bus = setup_with_character
        service.create_item("c1", _crate(21))
        service.add_item("c1", "tal_pack_mule")

        view = asyncio.run(service.refresh_sheet("c1"))
        assert view.encumbrance.encumbered is False
        assert _condition_rows(db) == []

    def test_idempotent_refresh(self, setup_with_character) -> None:
        service, db, bus = setup_with_character
        events: list[SheetEvent] = []
        bus.subscribe(EventTypes.CONDITION_ADDED, lambda e: events.append(e))
        service.create_item("c1", _crate(30))

        asyncio.run(service.refresh_sheet("c1"))
        asyncio.run(service.refresh_sheet("c1"))
        assert len(events) == 1
        assert _condition_rows(db) == [ENCUMBERED_CONDITION]

    def test_stow_clears_condition(self, setup_with_character) -> None:
        service, db, bus = setup_with_character
        crate = service.create_item("c1", _crate(30))
        asyncio.run(service.refresh_sheet("c1"))
        assert ENCUMBERED_CONDITION in service.get_snapshot("c1").conditions

        service.stow_item("c1", crate.item_id)
        view = asyncio.run(service.refresh_sheet("c1"))
        assert view.weights.total == 0.0
        assert ENCUMBERED_CONDITION not in service.get_snapshot("c1").conditions

    def test_second_specialty_kept_in_db(self, setup_with_character) -> None:
        service, db, bus = setup_with_character
        service.add_item("c1", "spc_heavy_machinery")
        service.add_item("c1", "spc_close_combat")

        view = asyncio.run(service.refresh_sheet("c1"))
        assert [i.name for i in view.buckets.specialities] == ["Heavy Machinery"]
        assert len(service.get_snapshot("c1").items) == 2

    def test_indicators(self, setup_with_character) -> None:
        service, db, bus = setup_with_character
        view = asyncio.run(service.refresh_sheet("c1"))
        assert set(view.indicators) == {"radiation", "xp", "sp", "panic"}
        assert len(view.indicators["radiation"]) == 10

    def test_vehicle_condition_untouched(self, sheet_setup) -> None:
        service, db, bus = sheet_setup
        service.create_character("v1", actor_type=ActorType.VEHICLES)
        service.create_item("v1", _crate(50))
        view = asyncio.run(service.refresh_sheet("v1"))
        assert view.encumbrance is None
        assert _condition_rows(db, "v1") == []

    def test_inventory_weights(self, setup_with_character) -> None:
        service, db, bus = setup_with_character
        service.add_item("c1", "wpn_m4a3_service_pistol")
        service.add_item("c1", "itm_flare")

        view = asyncio.run(service.refresh_sheet("c1"))
        pistol = view.inventory[ItemKind.WEAPON][0]
        flares = view.inventory[ItemKind.ITEM][0]
        # (0.5 + 12 × 0.25) × 1
        assert pistol.total_weight == pytest.approx(3.5)
        assert flares.is_stack is True
        assert view.weights.total == pytest.approx(4.5)


# ── recompute on item change ─────────────────────────────────


class TestItemChangeRecompute:
    def test_created_item_applies_condition(self, setup_with_character) -> None:
        service, db, bus = setup_with_character
        recomputed: list[SheetEvent] = []
        bus.subscribe(EventTypes.SHEET_RECOMPUTED, lambda e: recomputed.append(e))

        service.create_item("c1", _crate(30))
        assert _condition_rows(db) == [ENCUMBERED_CONDITION]
        assert recomputed[0].data == {"character_id": "c1"}

    def test_stow_and_remove_clear_condition(self, setup_with_character) -> None:
        service, db, bus = setup_with_character
        crate = service.create_item("c1", _crate(30))
        service.stow_item("c1", crate.item_id)
        assert _condition_rows(db) == []

        service.unstow_item("c1", crate.item_id)
        assert _condition_rows(db) == [ENCUMBERED_CONDITION]
        service.remove_item("c1", crate.item_id)
        assert _condition_rows(db) == []

    def test_scheduled_when_loop_running(self, setup_with_character) -> None:
        service, db, bus = setup_with_character

        async def scenario() -> list[str]:
            service.create_item("c1", _crate(30))
            await asyncio.sleep(0)
            return _condition_rows(db)

        assert asyncio.run(scenario()) == [ENCUMBERED_CONDITION]

    def test_store_failure_does_not_undo_item(self, setup_with_character, monkeypatch) -> None:
        service, db, bus = setup_with_character

        async def broken(*args, **kwargs):
            raise ConditionStoreError("rejected")

        monkeypatch.setattr("charsheet.services.sheet_service.sync_encumbrance", broken)
        crate = service.create_item("c1", _crate(30))
        assert service.get_item("c1", crate.item_id) is not None
        assert _condition_rows(db) == []


# ── conditions ───────────────────────────────────────────────


class TestConditions:
    def test_toggle(self, setup_with_character) -> None:
        service, db, bus = setup_with_character
        assert asyncio.run(service.toggle_condition("c1", "overwatch")) is True
        assert _condition_rows(db) == ["overwatch"]
        assert asyncio.run(service.toggle_condition("c1", "overwatch")) is False
        assert _condition_rows(db) == []

    def test_toggle_unknown_character(self, sheet_setup) -> None:
        service, db, bus = sheet_setup
        with pytest.raises(ValueError):
            asyncio.run(service.toggle_condition("ghost", "overwatch"))

    def test_store_rejects_unpersisted_character(self, sheet_setup) -> None:
        service, db, bus = sheet_setup
        store = SqlConditionStore(db, "ghost", bus)
        with pytest.raises(ConditionStoreError):
            asyncio.run(store.add_condition(ENCUMBERED_CONDITION))
        assert asyncio.run(store.has_condition(ENCUMBERED_CONDITION)) is False

    def test_duplicate_row_rejected(self, setup_with_character) -> None:
        service, db, bus = setup_with_character
        store = service.condition_store("c1")
        asyncio.run(store.add_condition("panic"))
        with pytest.raises(ConditionStoreError):
            asyncio.run(store.add_condition("panic"))
        assert asyncio.run(store.get_conditions()) == {"panic"}

    def test_events(self, setup_with_character) -> None:
        service, db, bus = setup_with_character
        added: list[SheetEvent] = []
        removed: list[SheetEvent] = []
        bus.subscribe(EventTypes.CONDITION_ADDED, lambda e: added.append(e))
        bus.subscribe(EventTypes.CONDITION_REMOVED, lambda e: removed.append(e))

        asyncio.run(service.toggle_condition("c1", "panic"))
        asyncio.run(service.toggle_condition("c1", "panic"))
        assert added[0].data == {"character_id": "c1", "key": "panic"}
        assert len(removed) == 1
