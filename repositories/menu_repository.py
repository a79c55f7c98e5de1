"""
Menu Repository - Catalog access backed by MongoDB
"""

from typing import List, Optional

from adapters import mongo_adapter
from domain.catalog import MenuCategory, MenuItem
from domain.mappers import CatalogMapper
from domain.ports import CatalogProvider


class MenuRepository(CatalogProvider):
    """CatalogProvider over the menu_item / menu_category collections"""

    def get_menu_item(self, menu_item_id: int) -> Optional[MenuItem]:
        doc = mongo_adapter.get_menu_item(menu_item_id)
        return CatalogMapper.menu_item_from_document(doc) if doc else None

    def list_menu_items(self, category_id: Optional[int] = None) -> List[MenuItem]:
        return [
            CatalogMapper.menu_item_from_document(doc)
            for doc in mongo_adapter.find_menu_items(category_id)
        ]

    def list_categories(self) -> List[MenuCategory]:
        return [
            CatalogMapper.category_from_document(doc)
            for doc in mongo_adapter.find_categories()
        ]
