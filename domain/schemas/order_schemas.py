from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime
from uuid import UUID
from decimal import Decimal

from domain.enums import OrderStatus, PaymentMethod, TableState


class AddItemRequest(BaseModel):
    """Schema for adding one unit of a menu item to an order"""

    menu_item_id: int = Field(..., description="Catalog id of the menu item")
    notes: Optional[str] = Field(
        None, max_length=500, description="Special instructions for this item"
    )


class QuantityUpdateRequest(BaseModel):
    """Schema for setting a line quantity; values below 1 remove the line"""

    quantity: int = Field(..., description="New quantity for the line")


class OrderUpdateRequest(BaseModel):
    """Schema for order-level details"""

    guest_count: Optional[int] = Field(None, ge=1, description="Number of guests at the table")
    special_instructions: Optional[str] = Field(
        None, max_length=1000, description="Instructions for the whole order"
    )


class PaymentInitRequest(BaseModel):
    """Schema for starting a payment"""

    method: PaymentMethod = Field(..., description="Tender type")
    card_token: Optional[str] = Field(
        None, description="Tokenized card for card payments", repr=False
    )


class PaymentConfirmRequest(BaseModel):
    """Gateway callback / manual reconciliation payload"""

    request_id: UUID
    success: bool
    transaction_id: Optional[str] = None
    failure_reason: Optional[str] = None


class TableResponse(BaseModel):
    """Table with its current order, if any"""

    id: int
    name: str
    seat_count: int
    occupancy_state: TableState
    active_order_id: Optional[UUID] = None


class OrderSummary(BaseModel):
    """Compact row for order history listings"""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    table_id: int
    status: OrderStatus
    guest_count: int
    item_count: int
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    payment_method: Optional[PaymentMethod] = None
    created_at: datetime
    closed_at: Optional[datetime] = None


class OrderHistoryResponse(BaseModel):
    items: List[OrderSummary]
    count: int
