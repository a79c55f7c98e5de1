"""
Order session management.

The OrderSessionManager owns every order that is still attached to a table.
Orders are immutable values: each operation computes a new Order under that
order's lock and swaps it into the registry, so readers only ever see a fully
recomputed order. Terminal transitions (saved, paid, void) hand the order to
the OrderStore and give the table back to the floor.
"""

import logging
import threading
from collections import OrderedDict
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Dict, Iterator, List, Optional
from uuid import UUID

import anyio

from app.config import Settings, settings as default_settings
from app.exceptions import (
    InvalidOrderStateError,
    MenuItemNotFoundError,
    OrderNotFoundError,
    PaymentDeclinedError,
    PaymentTimeoutError,
    TableNotFoundError,
    TableUnavailableError,
)
from domain.catalog import MenuCategory, MenuItem, Table
from domain.enums import OrderStatus, PaymentMethod, TableState
from domain.order import Order
from domain.payment import PaymentRequest, PaymentResult
from domain.ports import CatalogProvider, OrderStore, PaymentGateway, TableRoster

logger = logging.getLogger("tablepos.orders")

# Closed orders kept in memory so late calls get a state error instead of a 404.
CLOSED_ORDER_CACHE_SIZE = 512


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderSessionManager:
    """Mediates all mutations of active orders and the table <-> order relation."""

    def __init__(
        self,
        catalog: CatalogProvider,
        tables: TableRoster,
        store: OrderStore,
        gateway: PaymentGateway,
        tax_rate=None,
        currency: Optional[str] = None,
        default_guest_count: Optional[int] = None,
        payment_timeout_sec: Optional[float] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._catalog = catalog
        self._tables = tables
        self._store = store
        self._gateway = gateway
        self._tax_rate = default_settings.tax_rate if tax_rate is None else tax_rate
        self._currency = currency or default_settings.currency
        self._default_guest_count = default_guest_count or default_settings.default_guest_count
        self._payment_timeout_sec = (
            payment_timeout_sec or default_settings.payment_confirmation_timeout_sec
        )
        self._clock = clock

        self._orders: Dict[UUID, Order] = {}
        self._table_orders: Dict[int, UUID] = {}
        self._closed: "OrderedDict[UUID, Order]" = OrderedDict()

        self._registry_lock = threading.Lock()
        self._order_locks: Dict[UUID, threading.RLock] = {}
        self._table_locks: Dict[int, threading.Lock] = {}

    @classmethod
    def from_settings(cls, settings: Settings = default_settings) -> "OrderSessionManager":
        """Wire the production collaborators (MongoDB menu, SQL floor and history, gateways)."""
        from adapters.payment_gateways import GatewayRouter
        from repositories import MenuRepository, SqlOrderStore, SqlTableRoster

        return cls(
            catalog=MenuRepository(),
            tables=SqlTableRoster(),
            store=SqlOrderStore(),
            gateway=GatewayRouter.from_settings(settings),
            tax_rate=settings.tax_rate,
            currency=settings.currency,
            default_guest_count=settings.default_guest_count,
            payment_timeout_sec=settings.payment_confirmation_timeout_sec,
        )

    # ------------------------------------------------------------------
    # Locking and registry helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _order_lock(self, order_id: UUID) -> Iterator[None]:
        with self._registry_lock:
            lock = self._order_locks.setdefault(order_id, threading.RLock())
        with lock:
            yield

    @contextmanager
    def _table_lock(self, table_id: int) -> Iterator[None]:
        with self._registry_lock:
            lock = self._table_locks.setdefault(table_id, threading.Lock())
        with lock:
            yield

    def _load(self, order_id: UUID) -> Order:
        """Active order, or a closed one so transitions can reject it by state."""
        with self._registry_lock:
            order = self._orders.get(order_id) or self._closed.get(order_id)
        if order is not None:
            return order
        stored = self._store.get_order(order_id)
        if stored is None:
            raise OrderNotFoundError(
                f"Order not found: {order_id}", details={"order_id": str(order_id)}
            )
        return stored

    def _replace(self, order: Order) -> None:
        with self._registry_lock:
            if order.id in self._orders:
                self._orders[order.id] = order

    def _mutate(self, order_id: UUID, transition: Callable[[Order], Order]) -> Order:
        with self._order_lock(order_id):
            updated = transition(self._load(order_id))
            self._replace(updated)
            return updated

    def _detach(self, order: Order) -> None:
        """Drop a closed order from the session and free its table."""
        with self._table_lock(order.table_id):
            with self._registry_lock:
                self._orders.pop(order.id, None)
                if self._table_orders.get(order.table_id) == order.id:
                    del self._table_orders[order.table_id]
                self._order_locks.pop(order.id, None)
                self._closed[order.id] = order
                while len(self._closed) > CLOSED_ORDER_CACHE_SIZE:
                    self._closed.popitem(last=False)
            try:
                self._tables.set_occupancy(order.table_id, TableState.AVAILABLE)
            except Exception:
                # The order is already handed off; a stale "seated" flag is
                # corrected the next time the table is opened.
                logger.exception(
                    "Could not release table %s after order %s", order.table_id, order.id
                )

    def _close(self, order_id: UUID, transition: Callable[[Order], Order]) -> Order:
        """Apply a terminal transition, persist it, then release the table.

        Nothing changes in the session if the transition or the store fails.
        """
        with self._order_lock(order_id):
            closed = transition(self._load(order_id))
            self._store.persist_order(closed)
            self._detach(closed)
        logger.info(
            "Order %s for table %s closed as %s (total=%s)",
            closed.id,
            closed.table_id,
            closed.status.value,
            closed.total,
        )
        return closed

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def _require_table(self, table_id: int) -> Table:
        table = self._tables.get_table(table_id)
        if table is None:
            raise TableNotFoundError(
                f"Table not found: {table_id}", details={"table_id": table_id}
            )
        return table

    def open_table(self, table_id: int) -> Order:
        """Seat a table and start an empty order for it.

        Raises:
            TableNotFoundError: unknown table
            TableUnavailableError: the table already has an active order
        """
        with self._table_lock(table_id):
            table = self._require_table(table_id)
            with self._registry_lock:
                existing = self._table_orders.get(table_id)
            if existing is not None:
                logger.warning("Table %s already has active order %s", table_id, existing)
                raise TableUnavailableError(
                    f"Table {table.name} already has an open order",
                    details={"table_id": table_id, "order_id": str(existing)},
                )
            if not table.is_available:
                logger.warning(
                    "Table %s marked seated without an active order; starting a new order",
                    table_id,
                )

            order = Order.open(
                table_id=table_id,
                tax_rate=self._tax_rate,
                guest_count=self._default_guest_count,
                now=self._clock(),
            )
            self._tables.set_occupancy(table_id, TableState.SEATED)
            with self._registry_lock:
                self._orders[order.id] = order
                self._table_orders[table_id] = order.id

        logger.info("Opened order %s for table %s", order.id, table_id)
        return order

    def resume_table(self, table_id: int) -> Order:
        """Return the active order of a seated table."""
        self._require_table(table_id)
        order = self.active_order_for_table(table_id)
        if order is None:
            raise OrderNotFoundError(
                f"Table {table_id} has no open order", details={"table_id": table_id}
            )
        return order

    def active_order_for_table(self, table_id: int) -> Optional[Order]:
        with self._registry_lock:
            order_id = self._table_orders.get(table_id)
            return self._orders.get(order_id) if order_id is not None else None

    def list_tables(self) -> List[Table]:
        """Floor plan with occupancy taken from the active orders."""
        with self._registry_lock:
            seated = set(self._table_orders)
        return [
            table.with_occupancy(TableState.SEATED if table.id in seated else TableState.AVAILABLE)
            for table in self._tables.list_tables()
        ]

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def list_categories(self) -> List[MenuCategory]:
        return list(self._catalog.list_categories())

    def list_menu(self, category_id: Optional[int] = None) -> List[MenuItem]:
        return list(self._catalog.list_menu_items(category_id))

    def _require_menu_item(self, menu_item_id: int) -> MenuItem:
        item = self._catalog.get_menu_item(menu_item_id)
        if item is None:
            raise MenuItemNotFoundError(
                f"Menu item not found: {menu_item_id}",
                details={"menu_item_id": menu_item_id},
            )
        return item

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def get_order(self, order_id: UUID) -> Order:
        """Active order, or a previously closed one"""
        return self._load(order_id)

    def list_active_orders(self) -> List[Order]:
        with self._registry_lock:
            return sorted(self._orders.values(), key=lambda o: o.created_at)

    def order_history(
        self,
        status: Optional[OrderStatus] = None,
        table_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Order]:
        return self._store.list_orders(status=status, table_id=table_id, skip=skip, limit=limit)

    def add_item(self, order_id: UUID, menu_item_id: int, notes: Optional[str] = None) -> Order:
        item = self._require_menu_item(menu_item_id)
        order = self._mutate(order_id, lambda o: o.add_item(item, notes))
        logger.debug("Order %s: added %s (subtotal=%s)", order_id, item.name, order.subtotal)
        return order

    def update_quantity(self, order_id: UUID, line_id: UUID, quantity: int) -> Order:
        order = self._mutate(order_id, lambda o: o.update_quantity(line_id, quantity))
        logger.debug("Order %s: line %s quantity -> %s", order_id, line_id, quantity)
        return order

    def remove_item(self, order_id: UUID, line_id: UUID) -> Order:
        order = self._mutate(order_id, lambda o: o.remove_item(line_id))
        logger.debug("Order %s: removed line %s", order_id, line_id)
        return order

    def set_guest_count(self, order_id: UUID, guest_count: int) -> Order:
        return self._mutate(order_id, lambda o: o.with_guest_count(guest_count))

    def set_special_instructions(self, order_id: UUID, instructions: Optional[str]) -> Order:
        return self._mutate(order_id, lambda o: o.with_special_instructions(instructions))

    def save_order(self, order_id: UUID) -> Order:
        """Close the order as saved and hand it to the store.

        Raises:
            EmptyOrderError: the order has no lines
            InvalidOrderStateError: the order is not open
        """
        now = self._clock()
        return self._close(order_id, lambda o: o.mark_saved(now))

    def void_order(self, order_id: UUID) -> Order:
        now = self._clock()
        return self._close(order_id, lambda o: o.mark_void(now))

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def initiate_payment(
        self,
        order_id: UUID,
        method: PaymentMethod,
        card_token: Optional[str] = None,
    ) -> PaymentRequest:
        """Freeze the order's totals and build the charge for the gateway.

        The order stays open; only confirm_payment can make it paid.
        """
        with self._order_lock(order_id):
            frozen, request = self._load(order_id).begin_payment(
                method, currency=self._currency, card_token=card_token
            )
            self._replace(frozen)
        logger.info(
            "Payment %s started for order %s: %s %s by %s",
            request.request_id,
            order_id,
            request.amount,
            request.currency,
            request.method.value,
        )
        return request

    def confirm_payment(self, order_id: UUID, result: PaymentResult) -> Order:
        """Apply the gateway's answer for the pending payment.

        Orders whose confirmation timed out only accept reconcile_payment.

        Raises:
            PaymentDeclinedError: the charge failed; the order is open again
        """
        return self._apply_payment_result(order_id, result, OrderStatus.OPEN)

    def reconcile_payment(self, order_id: UUID, result: PaymentResult) -> Order:
        """Manually settle an order whose payment confirmation timed out."""
        logger.info("Reconciling payment %s for order %s", result.request_id, order_id)
        return self._apply_payment_result(order_id, result, OrderStatus.PAYMENT_TIMED_OUT)

    def _apply_payment_result(
        self, order_id: UUID, result: PaymentResult, expected: OrderStatus
    ) -> Order:
        with self._order_lock(order_id):
            order = self._load(order_id)
            if order.status != expected:
                raise InvalidOrderStateError(
                    f"Order {order_id} is {order.status.value}, expected {expected.value}",
                    details={"order_id": str(order_id), "status": order.status.value},
                )
            updated = order.apply_payment_result(result, now=self._clock())
            if updated.status == OrderStatus.PAID:
                return self._close(order_id, lambda _: updated)

            self._replace(updated)

        logger.warning(
            "Payment %s declined for order %s: %s",
            result.request_id,
            order_id,
            updated.last_payment_failure,
        )
        raise PaymentDeclinedError(
            updated.last_payment_failure,
            details={"order_id": str(order_id), "request_id": str(result.request_id)},
        )

    def _mark_timed_out(self, order_id: UUID, request: PaymentRequest) -> None:
        def transition(order: Order) -> Order:
            if order.pending_payment is None or order.pending_payment.request_id != request.request_id:
                return order
            return order.mark_payment_timed_out()

        self._mutate(order_id, transition)

    def _abandon_payment(self, order_id: UUID, request: PaymentRequest) -> None:
        def transition(order: Order) -> Order:
            if order.pending_payment is None or order.pending_payment.request_id != request.request_id:
                return order
            return order.abandon_payment()

        self._mutate(order_id, transition)

    async def process_payment(
        self,
        order_id: UUID,
        method: PaymentMethod,
        card_token: Optional[str] = None,
    ) -> Order:
        """Initiate, charge once through the gateway, and confirm.

        Order updates and persistence run in worker threads so the event loop
        never waits on the order locks or the database. If the caller is
        cancelled while the gateway is charging, the order is parked in
        PAYMENT_TIMED_OUT, since the charge may still settle.

        Raises:
            PaymentDeclinedError: the gateway refused the charge
            PaymentTimeoutError: no answer in time; the order awaits reconciliation
        """
        request = await anyio.to_thread.run_sync(
            self.initiate_payment, order_id, method, card_token
        )
        try:
            with anyio.fail_after(self._payment_timeout_sec):
                result = await self._gateway.charge(request)
        except anyio.get_cancelled_exc_class():
            with anyio.CancelScope(shield=True):
                await anyio.to_thread.run_sync(self._mark_timed_out, order_id, request)
            logger.warning(
                "Payment %s for order %s cancelled while charging; awaiting reconciliation",
                request.request_id,
                order_id,
            )
            raise
        except TimeoutError:
            await anyio.to_thread.run_sync(self._mark_timed_out, order_id, request)
            logger.error(
                "Payment %s for order %s not confirmed within %ss",
                request.request_id,
                order_id,
                self._payment_timeout_sec,
            )
            raise PaymentTimeoutError(
                f"Payment for order {order_id} was not confirmed in time",
                details={"order_id": str(order_id), "request_id": str(request.request_id)},
            )
        except Exception:
            await anyio.to_thread.run_sync(self._abandon_payment, order_id, request)
            logger.exception("Gateway error for payment %s", request.request_id)
            raise

        return await anyio.to_thread.run_sync(self.confirm_payment, order_id, result)
