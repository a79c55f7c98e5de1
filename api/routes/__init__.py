"""API routes package"""

from . import health, menu, tables, orders, payments

__all__ = ["health", "menu", "tables", "orders", "payments"]
