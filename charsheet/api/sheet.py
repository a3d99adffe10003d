"""Character sheet API endpoints.

Endpoints are plain functions run in the threadpool. Async sheet
operations are driven with asyncio.run there.
"""

import asyncio

from fastapi import APIRouter, HTTPException, Request

from charsheet.api.schemas import (
    AddItemRequest,
    ConditionToggleResponse,
    CreateCharacterRequest,
    EncumbranceInfo,
    ErrorResponse,
    ItemInfo,
    ItemResponse,
    SheetResponse,
)
from charsheet.core.logging import get_logger
from charsheet.core.sheet.conditions import ConditionStoreError
from charsheet.core.sheet.models import AnyItem, CharacterSnapshot
from charsheet.core.sheet.sheet import SheetView, is_stack
from charsheet.core.sheet.weight import item_weight
from charsheet.services.sheet_service import ItemNotAllowedError, SheetService

logger = get_logger(__name__)

router = APIRouter(prefix="/characters", tags=["sheet"])

_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def get_sheet_service(request: Request) -> SheetService:
    """SheetService instance (dependency injection)"""
    service: SheetService = request.app.state.sheet_service
    return service


def _item_info(item: AnyItem, total_weight: float | None = None) -> ItemInfo:
    return ItemInfo(
        item_id=item.item_id,
        type=item.type_tag,
        name=item.name,
        state=item.state.value,
        sort=item.sort,
        total_weight=item_weight(item) if total_weight is None else total_weight,
        is_stack=is_stack(item),
    )


def _build_sheet_response(
    view: SheetView, snapshot: CharacterSnapshot
) -> SheetResponse:
    buckets = view.buckets
    encumbrance = None
    if view.encumbrance is not None:
        encumbrance = EncumbranceInfo(
            capacity=view.encumbrance.capacity,
            carried_weight=view.encumbrance.carried_weight,
            percentage=view.encumbrance.percentage,
            encumbered=view.encumbrance.encumbered,
        )
    return SheetResponse(
        character_id=view.character_id,
        actor_type=snapshot.actor_type,
        talents=[_item_info(i) for i in buckets.talents],
        agendas=[_item_info(i) for i in buckets.agendas],
        specialities=[_item_info(i) for i in buckets.specialities],
        critical_injuries=[_item_info(i) for i in buckets.critical_injuries],
        inventory={
            category.value: [_item_info(e.item, e.total_weight) for e in entries]
            for category, entries in view.inventory.items()
        },
        encumbrance=encumbrance,
        indicators={
            stat: [m.value for m in marks] for stat, marks in view.indicators.items()
        },
        conditions=sorted(snapshot.conditions),
    )


@router.post("", response_model=SheetResponse, responses=_ERRORS)
def create_character(
    request: CreateCharacterRequest, http_request: Request
) -> SheetResponse:
    service = get_sheet_service(http_request)
    if service.has_character(request.character_id):
        raise HTTPException(
            status_code=400,
            detail=f"Character already exists: {request.character_id}",
        )

    service.create_character(
        character_id=request.character_id,
        name=request.name,
        actor_type=request.actor_type,
        strength=request.strength,
        general={k: v.model_dump() for k, v in request.general.items()},
    )
    logger.info("Character registered: %s", request.character_id)
    return get_sheet(request.character_id, http_request)


@router.get("/{character_id}/sheet", response_model=SheetResponse, responses=_ERRORS)
def get_sheet(character_id: str, http_request: Request) -> SheetResponse:
    """Recompute the sheet and apply/remove the encumbered condition."""
    service = get_sheet_service(http_request)
    try:
        view = asyncio.run(service.refresh_sheet(character_id))
    except ConditionStoreError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _build_sheet_response(view, service.get_snapshot(character_id))


@router.post("/{character_id}/items", response_model=ItemResponse, responses=_ERRORS)
def add_item(
    character_id: str, request: AddItemRequest, http_request: Request
) -> ItemResponse:
    service = get_sheet_service(http_request)
    try:
        item = service.add_item(character_id, request.catalog_id)
    except ItemNotAllowedError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ItemResponse(item=_item_info(item))


_STATE_ACTIONS = {
    "stow": SheetService.stow_item,
    "unstow": SheetService.unstow_item,
    "activate": SheetService.activate_item,
    "deactivate": SheetService.deactivate_item,
}


@router.post(
    "/{character_id}/items/{item_id}/{action}",
    response_model=ItemResponse,
    responses=_ERRORS,
)
def change_item_state(
    character_id: str, item_id: str, action: str, http_request: Request
) -> ItemResponse:
    """stow | unstow | activate | deactivate"""
    handler = _STATE_ACTIONS.get(action)
    if handler is None:
        raise HTTPException(status_code=400, detail=f"Unknown item action: {action}")
    service = get_sheet_service(http_request)
    try:
        item = handler(service, character_id, item_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ItemResponse(item=_item_info(item))


@router.delete("/{character_id}/items/{item_id}", responses=_ERRORS)
def delete_item(character_id: str, item_id: str, http_request: Request) -> dict:
    service = get_sheet_service(http_request)
    try:
        service.remove_item(character_id, item_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "item_id": item_id}


@router.post(
    "/{character_id}/conditions/{key}/toggle",
    response_model=ConditionToggleResponse,
    responses=_ERRORS,
)
def toggle_condition(
    character_id: str, key: str, http_request: Request
) -> ConditionToggleResponse:
    service = get_sheet_service(http_request)
    try:
        active = asyncio.run(service.toggle_condition(character_id, key))
    except ConditionStoreError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ConditionToggleResponse(key=key, active=active)
