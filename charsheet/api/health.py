"""Health check endpoint."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from charsheet.db.database import get_db

router = APIRouter()


@router.get("/health")
def health_check(request: Request, db: Session = Depends(get_db)) -> dict[str, str]:
    """Return database status and whether the sheet service is wired."""
    service = getattr(request.app.state, "sheet_service", None)
    status = {"service": "ready" if service is not None else "starting"}
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        return {"status": "error", "database": "disconnected", **status}
    return {"status": "ok", "database": "connected", **status}
