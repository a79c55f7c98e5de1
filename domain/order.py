"""
Order aggregate for one table session.

An Order is an immutable value. Every transition validates the current
state and returns a new Order; subtotal, tax and total are computed from
the lines on access, so they are never stored apart from the lines they
derive from.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Tuple
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field

from app.exceptions import (
    EmptyOrderError,
    InvalidOrderStateError,
    LineNotFoundError,
    PaymentMethodNotSupportedError,
    ServiceValidationError,
)
from domain.catalog import MenuItem
from domain.enums import OrderStatus, PaymentMethod, SUPPORTED_PAYMENT_METHODS
from domain.money import Totals, compute_totals
from domain.payment import PaymentRequest, PaymentResult


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderLineItem(BaseModel):
    """One catalog item's quantity/price entry. Price and name are snapshots."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    menu_item_id: int
    name: str
    unit_price: Decimal = Field(..., ge=0)
    quantity: int = Field(default=1, ge=1)
    notes: Optional[str] = None

    @computed_field
    @property
    def line_subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


class Order(BaseModel):
    """Aggregate root of a table session"""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    table_id: int
    status: OrderStatus = OrderStatus.OPEN
    lines: Tuple[OrderLineItem, ...] = ()
    tax_rate: Decimal = Field(..., ge=0)
    guest_count: int = Field(default=1, ge=1)
    special_instructions: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    closed_at: Optional[datetime] = None
    pending_payment: Optional[PaymentRequest] = None
    payment: Optional[PaymentResult] = None
    payment_method: Optional[PaymentMethod] = None
    last_payment_failure: Optional[str] = None

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    def totals(self) -> Totals:
        return compute_totals((line.line_subtotal for line in self.lines), self.tax_rate)

    @computed_field
    @property
    def subtotal(self) -> Decimal:
        return self.totals().subtotal

    @computed_field
    @property
    def tax(self) -> Decimal:
        return self.totals().tax

    @computed_field
    @property
    def total(self) -> Decimal:
        return self.totals().total

    @computed_field
    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def is_active(self) -> bool:
        """Still attached to its table (not yet handed off)"""
        return not self.status.is_terminal

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def get_line(self, line_id: UUID) -> OrderLineItem:
        for line in self.lines:
            if line.id == line_id:
                return line
        raise LineNotFoundError(
            f"Line {line_id} not found on order {self.id}",
            details={"order_id": str(self.id), "line_id": str(line_id)},
        )

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _require_open(self, action: str) -> None:
        if self.status != OrderStatus.OPEN:
            raise InvalidOrderStateError(
                f"Cannot {action}: order {self.id} is {self.status.value}",
                details={"order_id": str(self.id), "status": self.status.value},
            )
        if self.pending_payment is not None:
            raise InvalidOrderStateError(
                f"Cannot {action}: order {self.id} has a payment in progress",
                details={
                    "order_id": str(self.id),
                    "request_id": str(self.pending_payment.request_id),
                },
            )

    def _require_lines(self, action: str) -> None:
        if self.is_empty:
            raise EmptyOrderError(
                f"Cannot {action}: order {self.id} has no items",
                details={"order_id": str(self.id)},
            )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    @classmethod
    def open(
        cls,
        table_id: int,
        tax_rate: Decimal,
        guest_count: int = 1,
        now: Optional[datetime] = None,
    ) -> "Order":
        return cls(
            table_id=table_id,
            tax_rate=tax_rate,
            guest_count=guest_count,
            created_at=now or _utcnow(),
        )

    def add_item(self, menu_item: MenuItem, notes: Optional[str] = None) -> "Order":
        """Add one unit of menu_item; repeats of the same item (and notes) stack."""
        self._require_open("add item")
        notes = notes or None

        lines = list(self.lines)
        for index, line in enumerate(lines):
            if line.menu_item_id == menu_item.id and line.notes == notes:
                lines[index] = line.model_copy(update={"quantity": line.quantity + 1})
                return self.model_copy(update={"lines": tuple(lines)})

        lines.append(
            OrderLineItem(
                menu_item_id=menu_item.id,
                name=menu_item.name,
                unit_price=menu_item.unit_price,
                quantity=1,
                notes=notes,
            )
        )
        return self.model_copy(update={"lines": tuple(lines)})

    def update_quantity(self, line_id: UUID, quantity: int) -> "Order":
        """Set a line's quantity; anything below 1 removes the line."""
        if quantity < 1:
            return self.remove_item(line_id)

        self._require_open("update quantity")
        line = self.get_line(line_id)
        lines = tuple(
            existing.model_copy(update={"quantity": quantity}) if existing.id == line.id else existing
            for existing in self.lines
        )
        return self.model_copy(update={"lines": lines})

    def remove_item(self, line_id: UUID) -> "Order":
        self._require_open("remove item")
        line = self.get_line(line_id)
        return self.model_copy(
            update={"lines": tuple(existing for existing in self.lines if existing.id != line.id)}
        )

    def with_guest_count(self, guest_count: int) -> "Order":
        self._require_open("change guest count")
        if guest_count < 1:
            raise ServiceValidationError(
                "Guest count must be at least 1", details={"guest_count": guest_count}
            )
        return self.model_copy(update={"guest_count": guest_count})

    def with_special_instructions(self, instructions: Optional[str]) -> "Order":
        self._require_open("change special instructions")
        return self.model_copy(update={"special_instructions": instructions or None})

    def mark_saved(self, now: Optional[datetime] = None) -> "Order":
        self._require_open("save")
        self._require_lines("save")
        return self.model_copy(
            update={"status": OrderStatus.SAVED, "closed_at": now or _utcnow()}
        )

    def mark_void(self, now: Optional[datetime] = None) -> "Order":
        self._require_open("void")
        return self.model_copy(
            update={"status": OrderStatus.VOID, "closed_at": now or _utcnow()}
        )

    def begin_payment(
        self,
        method: PaymentMethod,
        currency: str = "USD",
        card_token: Optional[str] = None,
    ) -> Tuple["Order", PaymentRequest]:
        """Freeze the order and build the charge for its current total."""
        self._require_open("take payment")
        self._require_lines("take payment")
        method = PaymentMethod(method)
        if method not in SUPPORTED_PAYMENT_METHODS:
            raise PaymentMethodNotSupportedError(
                f"Payment method '{method.value}' is not supported yet",
                details={"method": method.value},
            )
        request = PaymentRequest(
            order_id=self.id,
            amount=self.total,
            currency=currency,
            method=method,
            card_token=card_token,
        )
        frozen = self.model_copy(
            update={"pending_payment": request, "last_payment_failure": None}
        )
        return frozen, request

    def mark_payment_timed_out(self) -> "Order":
        if self.status != OrderStatus.OPEN or self.pending_payment is None:
            raise InvalidOrderStateError(
                f"Order {self.id} has no payment awaiting confirmation",
                details={"order_id": str(self.id), "status": self.status.value},
            )
        return self.model_copy(update={"status": OrderStatus.PAYMENT_TIMED_OUT})

    def apply_payment_result(
        self, result: PaymentResult, now: Optional[datetime] = None
    ) -> "Order":
        """Settle (PAID) or reopen (OPEN) an order that has a payment outstanding."""
        awaiting = self.pending_payment is not None and self.status in (
            OrderStatus.OPEN,
            OrderStatus.PAYMENT_TIMED_OUT,
        )
        if not awaiting:
            raise InvalidOrderStateError(
                f"Order {self.id} has no payment awaiting confirmation",
                details={"order_id": str(self.id), "status": self.status.value},
            )
        if result.request_id != self.pending_payment.request_id:
            raise ServiceValidationError(
                "Payment result does not match the pending payment request",
                details={
                    "order_id": str(self.id),
                    "expected_request_id": str(self.pending_payment.request_id),
                    "request_id": str(result.request_id),
                },
            )

        if result.success:
            return self.model_copy(
                update={
                    "status": OrderStatus.PAID,
                    "payment": result,
                    "payment_method": self.pending_payment.method,
                    "pending_payment": None,
                    "closed_at": now or _utcnow(),
                }
            )

        return self.model_copy(
            update={
                "status": OrderStatus.OPEN,
                "pending_payment": None,
                "last_payment_failure": result.failure_reason or "Payment declined",
            }
        )

    def abandon_payment(self) -> "Order":
        """Drop a pending payment that never reached the gateway."""
        if self.status != OrderStatus.OPEN or self.pending_payment is None:
            return self
        return self.model_copy(update={"pending_payment": None})
