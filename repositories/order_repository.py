"""
Order Repository - Data access layer for order history
"""

import logging
from typing import Callable, List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.exceptions import PersistenceError
from domain.enums import OrderStatus
from domain.mappers import OrderMapper
from domain.models import OrderRecord, SessionLocal
from domain.order import Order
from domain.ports import OrderStore
from repositories.base import BaseRepository

logger = logging.getLogger("tablepos.orders.store")


class OrderRepository(BaseRepository[OrderRecord]):
    """Repository for stored order snapshots"""

    def __init__(self, db: Session):
        super().__init__(db, OrderRecord)

    def get_with_lines(self, order_id: UUID) -> Optional[OrderRecord]:
        return (
            self.db.query(OrderRecord)
            .options(selectinload(OrderRecord.lines))
            .filter(OrderRecord.order_id == order_id)
            .first()
        )

    def save_snapshot(self, order: Order) -> OrderRecord:
        """Insert or replace the snapshot of an order (header and lines)"""
        record = self.get_with_lines(order.id)
        if record is None:
            record = OrderMapper.to_record(order)
            self.db.add(record)
        else:
            # Old lines must be gone before lines with the same ids come back.
            record.lines.clear()
            self.db.flush()
            OrderMapper.apply_to_record(order, record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def find(
        self,
        status: Optional[OrderStatus] = None,
        table_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[OrderRecord]:
        """Stored orders, newest first"""
        query = self.db.query(OrderRecord).options(selectinload(OrderRecord.lines))
        if status is not None:
            query = query.filter(OrderRecord.status == status.value)
        if table_id is not None:
            query = query.filter(OrderRecord.table_id == table_id)
        return (
            query.order_by(OrderRecord.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )


class SqlOrderStore(OrderStore):
    """OrderStore backed by pos_order / pos_order_line; one session per call"""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory

    def persist_order(self, order: Order) -> None:
        with self._session_factory() as db:
            try:
                OrderRepository(db).save_snapshot(order)
            except SQLAlchemyError as e:
                db.rollback()
                logger.exception("Error persisting order %s", order.id)
                raise PersistenceError(
                    f"Could not store order {order.id}",
                    details={"order_id": str(order.id), "status": order.status.value},
                ) from e
        logger.info("Stored order %s (%s, total=%s)", order.id, order.status.value, order.total)

    def get_order(self, order_id: UUID) -> Optional[Order]:
        with self._session_factory() as db:
            record = OrderRepository(db).get_with_lines(order_id)
            return OrderMapper.to_domain(record) if record else None

    def list_orders(
        self,
        status: Optional[OrderStatus] = None,
        table_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Order]:
        with self._session_factory() as db:
            records = OrderRepository(db).find(status, table_id, skip, limit)
            return [OrderMapper.to_domain(r) for r in records]
