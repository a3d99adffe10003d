"""Shared test fixtures."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event as sa_event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import charsheet
from charsheet.core.event_bus import EventBus
from charsheet.core.sheet.catalog import ItemCatalog
from charsheet.db.database import get_db
from charsheet.db.models import Base
from charsheet.main import app
from charsheet.services.sheet_service import SheetService

SEED_ITEMS_PATH = Path(charsheet.__file__).parent / "data" / "seed_items.json"

TEST_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
)
TestSession = sessionmaker(bind=TEST_ENGINE, autocommit=False, autoflush=False)


def _override_get_db():
    db = TestSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = _override_get_db


@pytest.fixture()
def client() -> TestClient:
    """FastAPI TestClient wired to an in-memory SQLite database."""
    return TestClient(app)


@pytest.fixture()
def db_session() -> Session:
    """Raw database session for direct DB assertions."""
    session = TestSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def catalog() -> ItemCatalog:
    """Catalog loaded from the bundled seed items."""
    cat = ItemCatalog()
    cat.load_from_json(SEED_ITEMS_PATH)
    return cat


@pytest.fixture()
def sheet_setup(catalog):
    """In-memory DB (FK on) + EventBus + SheetService"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @sa_event.listens_for(engine, "connect")
    def _set_fk(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    db = sessionmaker(bind=engine)()
    bus = EventBus()
    service = SheetService(db, bus, catalog)

    yield service, db, bus

    db.close()
