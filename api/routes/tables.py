"""Floor plan routes: list tables, seat a table, resume its order"""

from fastapi import APIRouter, Depends, status
import logging
from typing import List

from api.dependencies import get_session_manager
from domain.order import Order
from domain.schemas import TableResponse
from services import OrderSessionManager

router = APIRouter(prefix="/tables", tags=["Tables"])
logger = logging.getLogger("tablepos.api.tables")


@router.get("", response_model=List[TableResponse])
def list_tables(manager: OrderSessionManager = Depends(get_session_manager)):
    """All tables with occupancy and the id of the open order, if any"""
    responses = []
    for table in manager.list_tables():
        active = manager.active_order_for_table(table.id)
        responses.append(
            TableResponse(
                id=table.id,
                name=table.name,
                seat_count=table.seat_count,
                occupancy_state=table.occupancy_state,
                active_order_id=active.id if active else None,
            )
        )
    return responses


@router.post("/{table_id}/open", response_model=Order, status_code=status.HTTP_201_CREATED)
def open_table(table_id: int, manager: OrderSessionManager = Depends(get_session_manager)):
    """
    Seat a table and start a new, empty order.

    Returns 409 if the table already has an open order; use
    `GET /tables/{table_id}/order` to resume it.
    """
    return manager.open_table(table_id)


@router.get("/{table_id}/order", response_model=Order)
def resume_table(table_id: int, manager: OrderSessionManager = Depends(get_session_manager)):
    return manager.resume_table(table_id)
