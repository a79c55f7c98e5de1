"""
Domain mappers package.
Handles transformation between ORM rows / documents and domain values.
"""

from domain.mappers.order_mapper import OrderMapper
from domain.mappers.catalog_mapper import CatalogMapper

__all__ = ["OrderMapper", "CatalogMapper"]
