"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from charsheet.api.health import router as health_router
from charsheet.api.sheet import router as sheet_router
from charsheet.config import settings
from charsheet.core.event_bus import EventBus
from charsheet.core.logging import get_logger, setup_logging
from charsheet.core.sheet.catalog import ItemCatalog
from charsheet.db.database import SessionLocal, engine as db_engine
from charsheet.db.models import Base
from charsheet.services.sheet_service import SheetService

setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=db_engine)
    logger.info("Database tables created.")

    logger.info("Loading item catalog from %s...", settings.ITEM_CATALOG_PATH)
    catalog = ItemCatalog()
    catalog.load_from_json(settings.ITEM_CATALOG_PATH)

    event_bus = EventBus()
    db_session = SessionLocal()
    app.state.event_bus = event_bus
    app.state.sheet_service = SheetService(
        db=db_session,
        event_bus=event_bus,
        catalog=catalog,
    )
    logger.info("SheetService initialized (%d catalog entries).", len(catalog))

    yield

    logger.info("Shutting down...")
    db_session.close()


app = FastAPI(title="Character Sheet Rules", lifespan=lifespan)

app.include_router(health_router)
app.include_router(sheet_router)
