"""Order session routes: line items, order details, save and void"""

from fastapi import APIRouter, Depends, Query, status
import logging
from uuid import UUID
from typing import List, Optional

from api.dependencies import get_session_manager
from domain.enums import OrderStatus
from domain.order import Order
from domain.schemas import (
    AddItemRequest,
    OrderHistoryResponse,
    OrderSummary,
    OrderUpdateRequest,
    QuantityUpdateRequest,
)
from services import OrderSessionManager

router = APIRouter(prefix="/orders", tags=["Orders"])
logger = logging.getLogger("tablepos.api.orders")


@router.get("", response_model=OrderHistoryResponse)
def order_history(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    table_id: Optional[int] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    manager: OrderSessionManager = Depends(get_session_manager),
):
    """Closed orders (saved, paid, void), newest first"""
    orders = manager.order_history(
        status=status_filter, table_id=table_id, skip=skip, limit=limit
    )
    items = [OrderSummary.model_validate(o) for o in orders]
    return OrderHistoryResponse(items=items, count=len(items))


@router.get("/active", response_model=List[Order])
def list_active_orders(manager: OrderSessionManager = Depends(get_session_manager)):
    return manager.list_active_orders()


@router.get("/{order_id}", response_model=Order)
def get_order(order_id: UUID, manager: OrderSessionManager = Depends(get_session_manager)):
    """Active order, or the stored copy of a closed one"""
    return manager.get_order(order_id)


@router.patch("/{order_id}", response_model=Order)
def update_order(
    order_id: UUID,
    payload: OrderUpdateRequest,
    manager: OrderSessionManager = Depends(get_session_manager),
):
    """Update guest count and/or special instructions"""
    order = None
    fields = payload.model_fields_set
    if "guest_count" in fields and payload.guest_count is not None:
        order = manager.set_guest_count(order_id, payload.guest_count)
    if "special_instructions" in fields:
        order = manager.set_special_instructions(order_id, payload.special_instructions)
    return order or manager.get_order(order_id)


@router.post("/{order_id}/items", response_model=Order, status_code=status.HTTP_201_CREATED)
def add_item(
    order_id: UUID,
    payload: AddItemRequest,
    manager: OrderSessionManager = Depends(get_session_manager),
):
    """Add one unit of a menu item; repeated items stack on the same line"""
    return manager.add_item(order_id, payload.menu_item_id, payload.notes)


@router.patch("/{order_id}/items/{line_id}", response_model=Order)
def update_quantity(
    order_id: UUID,
    line_id: UUID,
    payload: QuantityUpdateRequest,
    manager: OrderSessionManager = Depends(get_session_manager),
):
    """Set a line's quantity. A quantity below 1 removes the line."""
    return manager.update_quantity(order_id, line_id, payload.quantity)


@router.delete("/{order_id}/items/{line_id}", response_model=Order)
def remove_item(
    order_id: UUID,
    line_id: UUID,
    manager: OrderSessionManager = Depends(get_session_manager),
):
    return manager.remove_item(order_id, line_id)


@router.post("/{order_id}/save", response_model=Order)
def save_order(order_id: UUID, manager: OrderSessionManager = Depends(get_session_manager)):
    """Close the order as saved and free the table"""
    return manager.save_order(order_id)


@router.post("/{order_id}/void", response_model=Order)
def void_order(order_id: UUID, manager: OrderSessionManager = Depends(get_session_manager)):
    return manager.void_order(order_id)
