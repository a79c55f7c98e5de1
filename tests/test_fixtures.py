"""
Shared test fixtures and utilities for the TablePOS test suite.

Contains in-memory implementations of the collaborator ports, factories for
catalog and floor data, the test client, and database fixtures that are
reused across test files.
"""

from decimal import Decimal
from types import SimpleNamespace
from typing import Dict, Generator, List, Optional
from uuid import UUID

import anyio
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from api.dependencies import get_session_manager
from app.exceptions import CatalogUnavailableError, PersistenceError, TableNotFoundError
from domain.catalog import MenuCategory, MenuItem, Table
from domain.enums import TableState
from domain.models import Base, SessionLocal, engine
from domain.order import Order
from domain.payment import PaymentRequest, PaymentResult
from domain.ports import CatalogProvider, OrderStore, PaymentGateway, TableRoster
from main import app
from services import OrderSessionManager

client = TestClient(app)

TAX_RATE = Decimal("0.0825")


# =============================================================================
# FACTORIES
# =============================================================================


BISTRO_CATEGORIES = [
    (1, "Appetizers"),
    (2, "Main Courses"),
    (3, "Desserts"),
    (4, "Drinks"),
    (5, "Specials"),
]

# (id, category_id, name, price)
BISTRO_MENU = [
    (1, 1, "Garlic Bread", "4.99"),
    (2, 1, "Calamari", "9.99"),
    (5, 2, "Grilled Salmon", "18.99"),
    (6, 2, "Ribeye Steak", "24.99"),
    (9, 3, "Tiramisu", "7.99"),
    (14, 4, "Coffee", "3.49"),
    (17, 5, "Chef's Special", "21.99"),
    (19, 5, "Lobster Roll", "14.99"),
]

CALAMARI = 2
LOBSTER_ROLL = 19
COFFEE = 14

# (id, seats)
FLOOR = [(1, 2), (2, 2), (3, 4), (4, 4), (5, 4), (6, 6), (7, 6), (8, 8)]


def make_menu_item(menu_item_id=1, name="Garlic Bread", price="4.99", category_id=1, popular=False):
    return MenuItem(
        id=menu_item_id,
        category_id=category_id,
        name=name,
        unit_price=Decimal(price),
        popular=popular,
    )


def make_table(table_id=3, seat_count=4, state=TableState.AVAILABLE):
    return Table(
        id=table_id, name=f"Table {table_id}", seat_count=seat_count, occupancy_state=state
    )


def make_open_order(table_id=3, items=(), tax_rate=TAX_RATE) -> Order:
    """Open order with one add_item call per MenuItem in items"""
    order = Order.open(table_id=table_id, tax_rate=tax_rate)
    for item in items:
        order = order.add_item(item)
    return order


# =============================================================================
# IN-MEMORY COLLABORATORS
# =============================================================================


class FakeCatalog(CatalogProvider):
    def __init__(self, items=None, categories=None):
        self.items: Dict[int, MenuItem] = {}
        for item in items or [
            make_menu_item(i, name, price, cat) for i, cat, name, price in BISTRO_MENU
        ]:
            self.items[item.id] = item
        self.categories = categories or [MenuCategory(id=i, name=n) for i, n in BISTRO_CATEGORIES]
        self.unavailable = False

    def _check(self):
        if self.unavailable:
            raise CatalogUnavailableError("Menu catalog is not connected")

    def reprice(self, menu_item_id: int, price: str) -> None:
        self.items[menu_item_id] = self.items[menu_item_id].model_copy(
            update={"unit_price": Decimal(price)}
        )

    def get_menu_item(self, menu_item_id):
        self._check()
        return self.items.get(menu_item_id)

    def list_menu_items(self, category_id=None):
        self._check()
        return [i for i in self.items.values() if category_id is None or i.category_id == category_id]

    def list_categories(self):
        self._check()
        return list(self.categories)


class FakeRoster(TableRoster):
    def __init__(self, tables=None):
        self.tables: Dict[int, Table] = {
            t.id: t for t in (tables or [make_table(i, seats) for i, seats in FLOOR])
        }
        self.fail_updates = False

    def get_table(self, table_id):
        return self.tables.get(table_id)

    def list_tables(self):
        return [self.tables[k] for k in sorted(self.tables)]

    def set_occupancy(self, table_id, state):
        if self.fail_updates:
            raise PersistenceError(f"Could not update table {table_id}")
        if table_id not in self.tables:
            raise TableNotFoundError(f"Table not found: {table_id}")
        self.tables[table_id] = self.tables[table_id].with_occupancy(state)
        return self.tables[table_id]

    def state_of(self, table_id) -> TableState:
        return self.tables[table_id].occupancy_state


class FakeOrderStore(OrderStore):
    def __init__(self):
        self.orders: Dict[UUID, Order] = {}
        self.fail = False

    def persist_order(self, order):
        if self.fail:
            raise PersistenceError(f"Could not store order {order.id}")
        self.orders[order.id] = order

    def get_order(self, order_id):
        return self.orders.get(order_id)

    def list_orders(self, status=None, table_id=None, skip=0, limit=100):
        found = [
            o
            for o in self.orders.values()
            if (status is None or o.status == status) and (table_id is None or o.table_id == table_id)
        ]
        found.sort(key=lambda o: o.created_at, reverse=True)
        return found[skip : skip + limit]


class ScriptedGateway(PaymentGateway):
    """Approves by default; set decline_reason, error or delay to change the outcome"""

    def __init__(self, decline_reason: Optional[str] = None, error: Optional[Exception] = None, delay: float = 0):
        self.decline_reason = decline_reason
        self.error = error
        self.delay = delay
        self.requests: List[PaymentRequest] = []

    async def charge(self, request):
        self.requests.append(request)
        if self.delay:
            await anyio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.decline_reason:
            return PaymentResult.declined(request, self.decline_reason)
        return PaymentResult.approved(request, transaction_id=f"txn-{len(self.requests)}")


def make_pos(payment_timeout_sec: float = 2.0, **overrides) -> SimpleNamespace:
    """Session manager wired to in-memory collaborators, plus handles on them"""
    catalog = overrides.pop("catalog", None) or FakeCatalog()
    roster = overrides.pop("roster", None) or FakeRoster()
    store = overrides.pop("store", None) or FakeOrderStore()
    gateway = overrides.pop("gateway", None) or ScriptedGateway()
    manager = OrderSessionManager(
        catalog=catalog,
        tables=roster,
        store=store,
        gateway=gateway,
        tax_rate=TAX_RATE,
        currency="USD",
        default_guest_count=1,
        payment_timeout_sec=payment_timeout_sec,
        **overrides,
    )
    return SimpleNamespace(
        manager=manager, catalog=catalog, roster=roster, store=store, gateway=gateway
    )


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def pos() -> SimpleNamespace:
    return make_pos()


@pytest.fixture
def api(pos) -> Generator[SimpleNamespace, None, None]:
    """Test client routed to the in-memory session manager of `pos`"""
    app.dependency_overrides[get_session_manager] = lambda: pos.manager
    try:
        yield pos
    finally:
        app.dependency_overrides.pop(get_session_manager, None)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """
    Database session on the in-memory SQLite engine.

    The schema is created for each test and dropped afterwards so tests
    never see each other's rows.
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)