"""
Collaborator interfaces the order core depends on.

The session manager only talks to these; concrete implementations live in
repositories/ (SQL, MongoDB) and adapters/ (payment gateways).
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
from uuid import UUID

from domain.catalog import MenuCategory, MenuItem, Table
from domain.enums import OrderStatus, TableState
from domain.order import Order
from domain.payment import PaymentRequest, PaymentResult


class CatalogProvider(ABC):
    """Read access to the menu"""

    @abstractmethod
    def get_menu_item(self, menu_item_id: int) -> Optional[MenuItem]:
        """Return the item or None when the id is unknown.

        Raises:
            CatalogUnavailableError: the catalog could not be reached
        """

    @abstractmethod
    def list_menu_items(self, category_id: Optional[int] = None) -> Sequence[MenuItem]:
        ...

    @abstractmethod
    def list_categories(self) -> Sequence[MenuCategory]:
        ...


class TableRoster(ABC):
    """The restaurant floor"""

    @abstractmethod
    def get_table(self, table_id: int) -> Optional[Table]:
        ...

    @abstractmethod
    def list_tables(self) -> Sequence[Table]:
        ...

    @abstractmethod
    def set_occupancy(self, table_id: int, state: TableState) -> Table:
        ...


class OrderStore(ABC):
    """Destination of orders once they leave the session"""

    @abstractmethod
    def persist_order(self, order: Order) -> None:
        """Store an order snapshot, replacing any earlier snapshot of the same order.

        Raises:
            PersistenceError: the store rejected or could not take the write
        """

    @abstractmethod
    def get_order(self, order_id: UUID) -> Optional[Order]:
        ...

    @abstractmethod
    def list_orders(
        self,
        status: Optional[OrderStatus] = None,
        table_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Order]:
        ...


class PaymentGateway(ABC):
    """Settles a charge. May be slow; callers bound the wait."""

    @abstractmethod
    async def charge(self, request: PaymentRequest) -> PaymentResult:
        """Attempt the charge exactly once.

        A decline is a PaymentResult with success=False. Transport failures
        propagate as exceptions.
        """
