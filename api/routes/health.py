"""Health check and utility routes"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from adapters import mongo_adapter
from api.dependencies import get_db
from app.config import settings

router = APIRouter(tags=["Health"])
logger = logging.getLogger("tablepos.api.health")


@router.get("/health-check")
def health_check():
    """Basic health check endpoint"""
    return {"status": "ok", "service": settings.app_name}


@router.get("/health-check/dependencies")
def dependencies_status(db: Session = Depends(get_db)):
    """Report whether the order database and the menu catalog are reachable."""
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.warning("Database health probe failed: %s", e)
        database = "unavailable"

    return {
        "database": database,
        "catalog": "ok" if mongo_adapter.is_connected() else "unavailable",
    }
