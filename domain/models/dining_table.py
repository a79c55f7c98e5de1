"""
Restaurant floor models.
"""

from sqlalchemy import Column, Integer, Text, TIMESTAMP, CheckConstraint
from sqlalchemy.sql import func

from domain.enums import TableState
from domain.models.database import Base


class DiningTable(Base):
    """A table guests can be seated at"""

    __tablename__ = "dining_table"

    table_id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(Text, nullable=False)
    seat_count = Column(Integer, nullable=False, default=2)
    occupancy_state = Column(Text, nullable=False, default=TableState.AVAILABLE.value)
    updated_at = Column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("seat_count >= 1", name="ck_dining_table_seats_positive"),
        CheckConstraint(
            "occupancy_state IN ('available', 'seated')",
            name="ck_dining_table_occupancy",
        ),
    )
