"""
Catalog and floor entities: menu categories, menu items and dining tables.

These are read-only values for the order core. Menu items never change at
runtime; a table's occupancy only changes through order session transitions.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from domain.enums import TableState
from domain.money import round_money


class MenuCategory(BaseModel):
    """A menu section (Appetizers, Main Courses, ...)"""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str = Field(..., min_length=1)
    description: Optional[str] = None


class MenuItem(BaseModel):
    """Immutable catalog entry"""

    model_config = ConfigDict(frozen=True)

    id: int
    category_id: int
    name: str = Field(..., min_length=1)
    unit_price: Decimal = Field(..., ge=0)
    popular: bool = False
    description: Optional[str] = None

    @field_validator("unit_price")
    @classmethod
    def quantize_price(cls, v: Decimal) -> Decimal:
        return round_money(v)


class Table(BaseModel):
    """Seating unit on the restaurant floor"""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    seat_count: int = Field(..., ge=1)
    occupancy_state: TableState = TableState.AVAILABLE

    @property
    def is_available(self) -> bool:
        return self.occupancy_state == TableState.AVAILABLE

    def with_occupancy(self, state: TableState) -> "Table":
        return self.model_copy(update={"occupancy_state": state})
