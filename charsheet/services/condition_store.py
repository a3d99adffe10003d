"""DB-backed condition store for one character."""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from charsheet.core.event_bus import EventBus, SheetEvent
from charsheet.core.event_types import EventTypes
from charsheet.core.logging import get_logger
from charsheet.core.sheet.conditions import ConditionStoreError
from charsheet.db.models import CharacterModel, ConditionModel

logger = get_logger(__name__)


class SqlConditionStore:
    """ConditionStore over the ``conditions`` table.

    Mutations commit immediately. Writes for a character that is not
    persisted, or rejected by the DB, raise ConditionStoreError.
    """

    def __init__(self, db: Session, character_id: str, event_bus: EventBus):
        self._db = db
        self._character_id = character_id
        self._bus = event_bus

    @property
    def character_id(self) -> str:
        return self._character_id

    async def has_condition(self, key: str) -> bool:
        row = (
            self._db.query(ConditionModel)
            .filter(
                ConditionModel.character_id == self._character_id,
                ConditionModel.key == key,
            )
            .first()
        )
        return row is not None

    async def get_conditions(self) -> set[str]:
        rows = (
            self._db.query(ConditionModel.key)
            .filter(ConditionModel.character_id == self._character_id)
            .all()
        )
        return {r.key for r in rows}

    async def add_condition(self, key: str) -> None:
        self._require_character()
        self._db.add(ConditionModel(character_id=self._character_id, key=key))
        self._commit(f"add {key}")
        self._emit(EventTypes.CONDITION_ADDED, key)

    async def remove_condition(self, key: str) -> None:
        self._require_character()
        self._db.query(ConditionModel).filter(
            ConditionModel.character_id == self._character_id,
            ConditionModel.key == key,
        ).delete()
        self._commit(f"remove {key}")
        self._emit(EventTypes.CONDITION_REMOVED, key)

    def _require_character(self) -> None:
        exists = (
            self._db.query(CharacterModel)
            .filter(CharacterModel.character_id == self._character_id)
            .first()
        )
        if exists is None:
            raise ConditionStoreError(
                f"Character not persisted: {self._character_id}"
            )

    def _commit(self, what: str) -> None:
        try:
            self._db.commit()
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.warning(
                "Condition store rejected %s for %s: %s", what, self._character_id, e
            )
            raise ConditionStoreError(
                f"Condition store rejected {what} for {self._character_id}"
            ) from e

    def _emit(self, event_type: str, key: str) -> None:
        self._bus.emit(
            SheetEvent(
                event_type=event_type,
                data={"character_id": self._character_id, "key": key},
                source="condition_store",
            )
        )
