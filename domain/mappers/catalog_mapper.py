"""
Catalog and floor mappers.
Converts MongoDB menu documents and DiningTable rows into domain values.
"""

from decimal import Decimal
from typing import Any, Dict

from bson.decimal128 import Decimal128

from domain.catalog import MenuCategory, MenuItem, Table
from domain.enums import TableState
from domain.models import DiningTable


def _price(value: Any) -> Decimal:
    if isinstance(value, Decimal128):
        return value.to_decimal()
    return Decimal(str(value))


class CatalogMapper:
    """Mapper for menu documents and table rows."""

    @staticmethod
    def menu_item_from_document(doc: Dict[str, Any]) -> MenuItem:
        """
        Convert a `menu_item` document into a MenuItem.

        Documents use the menu item id as `_id` and store the price as
        Decimal128 (strings and numbers are accepted for hand-loaded data).
        """
        return MenuItem(
            id=int(doc["_id"]),
            category_id=int(doc["category_id"]),
            name=doc["name"],
            unit_price=_price(doc["price"]),
            popular=bool(doc.get("popular", False)),
            description=doc.get("description"),
        )

    @staticmethod
    def menu_item_to_document(item: MenuItem) -> Dict[str, Any]:
        return {
            "_id": item.id,
            "category_id": item.category_id,
            "name": item.name,
            "price": Decimal128(item.unit_price),
            "popular": item.popular,
            "description": item.description,
        }

    @staticmethod
    def category_from_document(doc: Dict[str, Any]) -> MenuCategory:
        return MenuCategory(
            id=int(doc["_id"]), name=doc["name"], description=doc.get("description")
        )

    @staticmethod
    def category_to_document(category: MenuCategory) -> Dict[str, Any]:
        return {
            "_id": category.id,
            "name": category.name,
            "description": category.description,
        }

    @staticmethod
    def table_to_domain(row: DiningTable) -> Table:
        return Table(
            id=row.table_id,
            name=row.name,
            seat_count=row.seat_count,
            occupancy_state=TableState(row.occupancy_state),
        )
