"""
Table Repository - Data access layer for the restaurant floor
"""

import logging
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import PersistenceError, TableNotFoundError
from domain.catalog import Table
from domain.enums import TableState
from domain.mappers import CatalogMapper
from domain.models import DiningTable, SessionLocal
from domain.ports import TableRoster
from repositories.base import BaseRepository

logger = logging.getLogger("tablepos.tables")


class TableRepository(BaseRepository[DiningTable]):
    """Repository for dining table rows"""

    def __init__(self, db: Session):
        super().__init__(db, DiningTable)

    def list_ordered(self) -> List[DiningTable]:
        """All tables ordered by id"""
        return self.db.query(DiningTable).order_by(DiningTable.table_id).all()

    def upsert(self, table_id: int, name: str, seat_count: int) -> DiningTable:
        """Create a table or update its name/seats, keeping occupancy"""
        row = self.get_by_id(table_id)
        if row is None:
            return self.create(
                DiningTable(
                    table_id=table_id,
                    name=name,
                    seat_count=seat_count,
                    occupancy_state=TableState.AVAILABLE.value,
                )
            )
        row.name = name
        row.seat_count = seat_count
        return self.update(row)

    def set_occupancy(self, table_id: int, state: TableState) -> Optional[DiningTable]:
        row = self.get_by_id(table_id)
        if row is None:
            return None
        row.occupancy_state = state.value
        return self.update(row)


class SqlTableRoster(TableRoster):
    """TableRoster backed by the dining_table table; one session per call"""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory

    def get_table(self, table_id: int) -> Optional[Table]:
        with self._session_factory() as db:
            row = TableRepository(db).get_by_id(table_id)
            return CatalogMapper.table_to_domain(row) if row else None

    def list_tables(self) -> List[Table]:
        with self._session_factory() as db:
            return [CatalogMapper.table_to_domain(r) for r in TableRepository(db).list_ordered()]

    def set_occupancy(self, table_id: int, state: TableState) -> Table:
        with self._session_factory() as db:
            try:
                row = TableRepository(db).set_occupancy(table_id, state)
            except SQLAlchemyError as e:
                db.rollback()
                logger.exception("Error updating occupancy of table %s", table_id)
                raise PersistenceError(
                    f"Could not update table {table_id}", details={"table_id": table_id}
                ) from e
            if row is None:
                raise TableNotFoundError(
                    f"Table not found: {table_id}", details={"table_id": table_id}
                )
            logger.debug("Table %s is now %s", table_id, state.value)
            return CatalogMapper.table_to_domain(row)
