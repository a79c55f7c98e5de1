"""
Domain schemas package - Pydantic models for validation.
"""

from domain.schemas.order_schemas import (
    AddItemRequest,
    QuantityUpdateRequest,
    OrderUpdateRequest,
    PaymentInitRequest,
    PaymentConfirmRequest,
    TableResponse,
    OrderSummary,
    OrderHistoryResponse,
)

__all__ = [
    # Order requests
    "AddItemRequest",
    "QuantityUpdateRequest",
    "OrderUpdateRequest",
    # Payment requests
    "PaymentInitRequest",
    "PaymentConfirmRequest",
    # Responses
    "TableResponse",
    "OrderSummary",
    "OrderHistoryResponse",
]
