"""
Repositories package - Data access layer.
"""

from repositories.base import BaseRepository
from repositories.table_repository import TableRepository, SqlTableRoster
from repositories.order_repository import OrderRepository, SqlOrderStore
from repositories.menu_repository import MenuRepository

__all__ = [
    "BaseRepository",
    "TableRepository",
    "SqlTableRoster",
    "OrderRepository",
    "SqlOrderStore",
    "MenuRepository",
]
