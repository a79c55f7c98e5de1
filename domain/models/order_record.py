"""
Order history models: snapshots of orders handed off by a table session.
"""

from sqlalchemy import (
    Column,
    Integer,
    Text,
    TIMESTAMP,
    ForeignKey,
    Numeric,
    CheckConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from domain.models.database import Base


class OrderRecord(Base):
    """Order header with the totals as computed when it left the session"""

    __tablename__ = "pos_order"

    order_id = Column(Uuid, primary_key=True)
    table_id = Column(Integer, ForeignKey("dining_table.table_id"), nullable=False)
    status = Column(Text, nullable=False)
    guest_count = Column(Integer, nullable=False, default=1)
    special_instructions = Column(Text)
    tax_rate = Column(Numeric(6, 4), nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)
    tax = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(Text)
    payment_request_id = Column(Uuid)
    transaction_id = Column(Text)
    paid_at = Column(TIMESTAMP(timezone=True))
    created_at = Column(TIMESTAMP(timezone=True), nullable=False)
    closed_at = Column(TIMESTAMP(timezone=True))

    lines = relationship(
        "OrderLineRecord",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLineRecord.position",
    )

    __table_args__ = (
        CheckConstraint("guest_count >= 1", name="ck_pos_order_guests_positive"),
        CheckConstraint("subtotal >= 0", name="ck_pos_order_subtotal_nonneg"),
    )


class OrderLineRecord(Base):
    """One line of a stored order"""

    __tablename__ = "pos_order_line"

    line_id = Column(Uuid, primary_key=True)
    order_id = Column(
        Uuid, ForeignKey("pos_order.order_id", ondelete="CASCADE"), nullable=False
    )
    position = Column(Integer, nullable=False)
    menu_item_id = Column(Integer, nullable=False)
    name = Column(Text, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    notes = Column(Text)

    order = relationship("OrderRecord", back_populates="lines")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_pos_order_line_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="ck_pos_order_line_price_nonneg"),
    )
