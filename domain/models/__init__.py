"""
Domain models package - SQLAlchemy ORM models.
"""

from domain.models.database import (
    Base,
    engine,
    SessionLocal,
    build_engine,
    init_database,
    get_db_session,
)
from domain.models.dining_table import DiningTable
from domain.models.order_record import OrderRecord, OrderLineRecord

__all__ = [
    # Database
    "Base",
    "engine",
    "SessionLocal",
    "build_engine",
    "init_database",
    "get_db_session",
    # Floor models
    "DiningTable",
    # Order history models
    "OrderRecord",
    "OrderLineRecord",
]
