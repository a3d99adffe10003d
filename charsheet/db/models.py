"""SQLAlchemy declarative base and ORM models for characters, items, conditions."""

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import JSON


class Base(DeclarativeBase):
    """Base class for all database models."""


class CharacterModel(Base):
    """ORM model for actors (characters, synthetics, vehicles, ...)."""

    __tablename__ = "characters"

    character_id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False, default="")
    actor_type: Mapped[str] = mapped_column(String, nullable=False, default="character")
    strength: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    # {"radiation": {"value": 1, "max": 10}, ...}
    general: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.now
    )

    items: Mapped[list["ItemModel"]] = relationship(
        "ItemModel",
        back_populates="character",
        cascade="all, delete-orphan",
        order_by="ItemModel.sort",
    )
    conditions: Mapped[list["ConditionModel"]] = relationship(
        "ConditionModel",
        back_populates="character",
        cascade="all, delete-orphan",
    )


class ItemModel(Base):
    """ORM model for owned items."""

    __tablename__ = "items"

    item_id: Mapped[str] = mapped_column(String, primary_key=True)
    character_id: Mapped[str] = mapped_column(
        String, ForeignKey("characters.character_id", ondelete="CASCADE"), nullable=False
    )
    item_type: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False, default="")
    sort: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # active | inactive | locked
    state: Mapped[str] = mapped_column(String, nullable=False, default="inactive")
    attributes: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    catalog_id: Mapped[str | None] = mapped_column(String, nullable=True)

    character: Mapped["CharacterModel"] = relationship(
        "CharacterModel", back_populates="items"
    )


class ConditionModel(Base):
    """ORM model for active status conditions. One row per (character, key)."""

    __tablename__ = "conditions"
    __table_args__ = (UniqueConstraint("character_id", "key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    character_id: Mapped[str] = mapped_column(
        String, ForeignKey("characters.character_id", ondelete="CASCADE"), nullable=False
    )
    key: Mapped[str] = mapped_column(String, nullable=False)

    character: Mapped["CharacterModel"] = relationship(
        "CharacterModel", back_populates="conditions"
    )
