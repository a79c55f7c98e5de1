"""
Domain layer - Order aggregate, catalog values, ORM models, schemas, and enums.
"""

from domain import enums, models, schemas

__all__ = ["enums", "models", "schemas"]
