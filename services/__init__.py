"""Services package - Business logic layer"""

from services.order_session_service import OrderSessionManager

__all__ = [
    "OrderSessionManager",
]
