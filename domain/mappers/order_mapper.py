"""
Order mappers.
Handles transformation between the Order aggregate and its ORM snapshot.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from domain.enums import OrderStatus, PaymentMethod
from domain.models import OrderRecord, OrderLineRecord
from domain.order import Order, OrderLineItem
from domain.payment import PaymentResult


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands timestamps back without tzinfo; everything is stored as UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class OrderMapper:
    """Mapper for order snapshots."""

    @staticmethod
    def apply_to_record(order: Order, record: OrderRecord) -> OrderRecord:
        """
        Copy an Order onto an OrderRecord, replacing its lines.

        Args:
            order: Order aggregate (any status)
            record: new or previously stored OrderRecord with the same id

        Returns:
            The same OrderRecord, updated in place
        """
        totals = order.totals()
        record.order_id = order.id
        record.table_id = order.table_id
        record.status = order.status.value
        record.guest_count = order.guest_count
        record.special_instructions = order.special_instructions
        record.tax_rate = order.tax_rate
        record.subtotal = totals.subtotal
        record.tax = totals.tax
        record.total = totals.total
        record.created_at = order.created_at
        record.closed_at = order.closed_at
        record.payment_method = order.payment_method.value if order.payment_method else None
        if order.payment is not None:
            record.payment_request_id = order.payment.request_id
            record.transaction_id = order.payment.transaction_id
            record.paid_at = order.payment.processed_at

        record.lines = [
            OrderLineRecord(
                line_id=line.id,
                position=position,
                menu_item_id=line.menu_item_id,
                name=line.name,
                unit_price=line.unit_price,
                quantity=line.quantity,
                notes=line.notes,
            )
            for position, line in enumerate(order.lines)
        ]
        return record

    @staticmethod
    def to_record(order: Order) -> OrderRecord:
        return OrderMapper.apply_to_record(order, OrderRecord())

    @staticmethod
    def to_domain(record: OrderRecord) -> Order:
        """Rebuild the aggregate from a stored snapshot."""
        payment = None
        if record.payment_request_id is not None:
            payment = PaymentResult(
                request_id=record.payment_request_id,
                success=True,
                transaction_id=record.transaction_id,
                processed_at=_aware(record.paid_at),
            )

        return Order(
            id=record.order_id,
            table_id=record.table_id,
            status=OrderStatus(record.status),
            lines=tuple(
                OrderLineItem(
                    id=line.line_id,
                    menu_item_id=line.menu_item_id,
                    name=line.name,
                    unit_price=Decimal(str(line.unit_price)),
                    quantity=line.quantity,
                    notes=line.notes,
                )
                for line in record.lines
            ),
            tax_rate=Decimal(str(record.tax_rate)),
            guest_count=record.guest_count,
            special_instructions=record.special_instructions,
            created_at=_aware(record.created_at),
            closed_at=_aware(record.closed_at),
            payment=payment,
            payment_method=PaymentMethod(record.payment_method) if record.payment_method else None,
        )
