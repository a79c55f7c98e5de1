"""
Adapters package - External service connections.
MongoDB menu catalog and payment gateways.
"""

from adapters import mongo_adapter, payment_gateways

__all__ = [
    "mongo_adapter",
    "payment_gateways",
]
