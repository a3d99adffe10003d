"""API request/response schemas."""

from typing import Optional

from pydantic import BaseModel, Field

from charsheet.core.sheet.models import ActorType


# === Request Schemas ===


class StatTrackPayload(BaseModel):
    value: int = Field(0, ge=0)
    max: int = Field(0, ge=0)


class CreateCharacterRequest(BaseModel):
    """Character registration"""

    character_id: str = Field(..., min_length=1, max_length=50)
    name: str = ""
    actor_type: ActorType = ActorType.CHARACTER
    strength: float = Field(0.0, ge=0)
    general: dict[str, StatTrackPayload] = Field(
        default_factory=dict, description="Bounded stats: radiation, xp, sp, panic, ..."
    )


class AddItemRequest(BaseModel):
    """Create an owned item from the catalog"""

    catalog_id: str = Field(..., min_length=1)


# === Response Schemas ===


class ItemInfo(BaseModel):
    item_id: str
    type: str
    name: str
    state: str
    sort: int = 0
    total_weight: float = 0.0
    is_stack: bool = False


class EncumbranceInfo(BaseModel):
    capacity: float
    carried_weight: float
    percentage: float
    encumbered: bool


class SheetResponse(BaseModel):
    """Recomputed character sheet"""

    success: bool = True
    character_id: str
    actor_type: ActorType
    talents: list[ItemInfo] = []
    agendas: list[ItemInfo] = []
    specialities: list[ItemInfo] = []
    critical_injuries: list[ItemInfo] = []
    inventory: dict[str, list[ItemInfo]] = {}
    encumbrance: Optional[EncumbranceInfo] = None
    indicators: dict[str, list[str]] = {}
    conditions: list[str] = []


class ItemResponse(BaseModel):
    success: bool = True
    item: ItemInfo


class ConditionToggleResponse(BaseModel):
    success: bool = True
    key: str
    active: bool


class ErrorResponse(BaseModel):
    """Error body as produced by HTTPException"""

    detail: str
