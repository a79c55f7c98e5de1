"""
Tests for the Order aggregate: line stacking, quantity edits, derived totals,
state guards and payment transitions. No collaborators involved.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from app.exceptions import (
    EmptyOrderError,
    InvalidOrderStateError,
    LineNotFoundError,
    PaymentMethodNotSupportedError,
    ServiceValidationError,
)
from domain.enums import OrderStatus, PaymentMethod
from domain.money import round_money
from domain.order import Order
from domain.payment import PaymentResult
from test_fixtures import TAX_RATE, make_menu_item, make_open_order

CALAMARI = make_menu_item(2, "Calamari", "9.99")
LOBSTER = make_menu_item(19, "Lobster Roll", "14.99", category_id=5)
COFFEE = make_menu_item(14, "Coffee", "3.49", category_id=4)


def independent_total(order: Order) -> Decimal:
    subtotal = round_money(sum((l.unit_price * l.quantity for l in order.lines), Decimal("0")))
    return round_money(subtotal * (1 + order.tax_rate))


# =============================================================================
# OPENING AND LINES
# =============================================================================


def test_open_order_defaults():
    order = Order.open(table_id=3, tax_rate=TAX_RATE)

    assert order.status == OrderStatus.OPEN
    assert order.lines == ()
    assert order.guest_count == 1
    assert order.total == Decimal("0.00")
    assert order.created_at.tzinfo is not None


def test_add_same_item_twice_stacks_on_one_line():
    order = make_open_order(items=[CALAMARI, CALAMARI])

    assert len(order.lines) == 1
    assert order.lines[0].quantity == 2
    assert order.lines[0].line_subtotal == Decimal("19.98")


def test_add_item_with_different_notes_gets_its_own_line():
    order = make_open_order(items=[CALAMARI]).add_item(CALAMARI, notes="no lemon")

    assert len(order.lines) == 2
    assert order.lines[1].notes == "no lemon"
    assert order.item_count == 2


def test_lines_keep_insertion_order():
    order = make_open_order(items=[LOBSTER, CALAMARI, COFFEE, CALAMARI])

    assert [l.menu_item_id for l in order.lines] == [19, 2, 14]


def test_transitions_leave_the_original_untouched():
    order = make_open_order(items=[CALAMARI])
    bigger = order.add_item(LOBSTER)

    assert len(order.lines) == 1
    assert len(bigger.lines) == 2
    assert order.total != bigger.total


def test_unit_price_is_a_snapshot():
    order = make_open_order(items=[CALAMARI])
    repriced = CALAMARI.model_copy(update={"unit_price": Decimal("12.50")})

    # Stacking keeps the price captured by the first add.
    order = order.add_item(repriced)

    assert order.lines[0].unit_price == Decimal("9.99")
    assert order.lines[0].quantity == 2


def test_update_quantity_sets_quantity_and_totals():
    order = make_open_order(items=[CALAMARI])
    line_id = order.lines[0].id

    order = order.update_quantity(line_id, 4)

    assert order.lines[0].quantity == 4
    assert order.subtotal == Decimal("39.96")
    assert order.total == independent_total(order)


def test_update_quantity_zero_equals_remove_item():
    order = make_open_order(items=[CALAMARI, LOBSTER])
    line_id = order.lines[0].id

    via_update = order.update_quantity(line_id, 0)
    via_remove = order.remove_item(line_id)

    assert via_update == via_remove
    assert [l.menu_item_id for l in via_update.lines] == [19]


def test_update_quantity_negative_removes_line():
    order = make_open_order(items=[CALAMARI])

    assert order.update_quantity(order.lines[0].id, -3).lines == ()


def test_unknown_line_raises():
    order = make_open_order(items=[CALAMARI])

    with pytest.raises(LineNotFoundError):
        order.remove_item(uuid4())
    with pytest.raises(LineNotFoundError):
        order.update_quantity(uuid4(), 2)
    with pytest.raises(LineNotFoundError):
        order.update_quantity(uuid4(), 0)


def test_remove_twice_reports_missing_line():
    order = make_open_order(items=[CALAMARI])
    line_id = order.lines[0].id
    order = order.remove_item(line_id)

    with pytest.raises(LineNotFoundError):
        order.remove_item(line_id)


# =============================================================================
# DERIVED TOTALS
# =============================================================================


def test_totals_for_two_calamari_and_a_lobster_roll():
    order = make_open_order(items=[CALAMARI, CALAMARI, LOBSTER])

    assert [(l.quantity, l.line_subtotal) for l in order.lines] == [
        (2, Decimal("19.98")),
        (1, Decimal("14.99")),
    ]
    assert order.subtotal == Decimal("34.97")
    assert order.tax == Decimal("2.89")
    assert order.total == Decimal("37.86")


def test_total_matches_independent_recompute_after_any_edit_sequence():
    order = make_open_order()
    steps = [
        lambda o: o.add_item(CALAMARI),
        lambda o: o.add_item(COFFEE),
        lambda o: o.add_item(CALAMARI),
        lambda o: o.update_quantity(o.lines[1].id, 7),
        lambda o: o.add_item(LOBSTER),
        lambda o: o.remove_item(o.lines[0].id),
        lambda o: o.update_quantity(o.lines[0].id, 0),
        lambda o: o.add_item(COFFEE, notes="decaf"),
    ]
    for step in steps:
        order = step(order)
        assert order.total == independent_total(order)
        assert order.total == order.subtotal + order.tax


def test_serialized_order_includes_derived_totals():
    data = make_open_order(items=[COFFEE]).model_dump()

    assert data["subtotal"] == Decimal("3.49")
    assert data["tax"] == Decimal("0.29")
    assert data["total"] == Decimal("3.78")
    assert data["item_count"] == 1


# =============================================================================
# ORDER DETAILS
# =============================================================================


def test_guest_count_and_instructions():
    order = make_open_order().with_guest_count(4).with_special_instructions("Birthday")

    assert order.guest_count == 4
    assert order.special_instructions == "Birthday"
    assert order.with_special_instructions("").special_instructions is None


def test_guest_count_must_be_positive():
    with pytest.raises(ServiceValidationError):
        make_open_order().with_guest_count(0)


# =============================================================================
# TERMINAL STATES
# =============================================================================


def test_save_empty_order_fails():
    with pytest.raises(EmptyOrderError):
        make_open_order().mark_saved()


def test_saved_order_rejects_mutation():
    saved = make_open_order(items=[CALAMARI]).mark_saved()

    assert saved.status == OrderStatus.SAVED
    assert saved.closed_at is not None
    with pytest.raises(InvalidOrderStateError):
        saved.add_item(COFFEE)
    with pytest.raises(InvalidOrderStateError):
        saved.update_quantity(saved.lines[0].id, 3)
    with pytest.raises(InvalidOrderStateError):
        saved.remove_item(saved.lines[0].id)
    with pytest.raises(InvalidOrderStateError):
        saved.mark_void()


def test_void_allows_empty_orders():
    voided = make_open_order().mark_void()

    assert voided.status == OrderStatus.VOID
    assert not voided.is_active


# =============================================================================
# PAYMENT TRANSITIONS
# =============================================================================


def test_begin_payment_freezes_the_order():
    order = make_open_order(items=[CALAMARI, CALAMARI, LOBSTER])

    frozen, request = order.begin_payment(PaymentMethod.CASH)

    assert request.amount == Decimal("37.86")
    assert request.method == PaymentMethod.CASH
    assert request.order_id == order.id
    assert frozen.status == OrderStatus.OPEN
    assert frozen.pending_payment == request
    with pytest.raises(InvalidOrderStateError):
        frozen.add_item(COFFEE)
    with pytest.raises(InvalidOrderStateError):
        frozen.begin_payment(PaymentMethod.CASH)


def test_begin_payment_on_empty_order_fails():
    with pytest.raises(EmptyOrderError):
        make_open_order().begin_payment(PaymentMethod.CREDIT_CARD)


@pytest.mark.parametrize(
    "method", [PaymentMethod.DEBIT_CARD, PaymentMethod.BANK_ACCOUNT, PaymentMethod.CHECK]
)
def test_unwired_payment_methods_are_rejected(method):
    with pytest.raises(PaymentMethodNotSupportedError):
        make_open_order(items=[COFFEE]).begin_payment(method)


def test_card_token_is_never_serialized():
    _, request = make_open_order(items=[COFFEE]).begin_payment(
        PaymentMethod.CREDIT_CARD, card_token="tok_secret"
    )

    assert request.card_token == "tok_secret"
    assert "card_token" not in request.model_dump()
    assert "tok_secret" not in repr(request)


def test_successful_result_marks_paid():
    frozen, request = make_open_order(items=[COFFEE]).begin_payment(PaymentMethod.CASH)

    paid = frozen.apply_payment_result(PaymentResult.approved(request, "cash-1"))

    assert paid.status == OrderStatus.PAID
    assert paid.payment.transaction_id == "cash-1"
    assert paid.payment_method == PaymentMethod.CASH
    assert paid.pending_payment is None


def test_failed_result_reopens_with_reason():
    frozen, request = make_open_order(items=[COFFEE]).begin_payment(PaymentMethod.CREDIT_CARD)

    reopened = frozen.apply_payment_result(PaymentResult.declined(request, "Insufficient funds"))

    assert reopened.status == OrderStatus.OPEN
    assert reopened.pending_payment is None
    assert reopened.last_payment_failure == "Insufficient funds"
    # editable again
    assert reopened.add_item(COFFEE).item_count == 2


def test_result_for_another_request_is_rejected():
    frozen, _ = make_open_order(items=[COFFEE]).begin_payment(PaymentMethod.CASH)
    _, other = make_open_order(items=[COFFEE]).begin_payment(PaymentMethod.CASH)

    with pytest.raises(ServiceValidationError):
        frozen.apply_payment_result(PaymentResult.approved(other))


def test_result_without_pending_payment_is_rejected():
    order = make_open_order(items=[COFFEE])
    _, request = order.begin_payment(PaymentMethod.CASH)

    with pytest.raises(InvalidOrderStateError):
        order.apply_payment_result(PaymentResult.approved(request))


def test_timed_out_order_is_frozen_until_settled():
    frozen, request = make_open_order(items=[COFFEE]).begin_payment(PaymentMethod.CREDIT_CARD)

    timed_out = frozen.mark_payment_timed_out()

    assert timed_out.status == OrderStatus.PAYMENT_TIMED_OUT
    assert timed_out.is_active
    with pytest.raises(InvalidOrderStateError):
        timed_out.add_item(COFFEE)
    with pytest.raises(InvalidOrderStateError):
        timed_out.mark_saved()

    settled = timed_out.apply_payment_result(PaymentResult.approved(request, "late-1"))
    assert settled.status == OrderStatus.PAID


def test_abandon_payment_unfreezes():
    frozen, _ = make_open_order(items=[COFFEE]).begin_payment(PaymentMethod.CASH)

    order = frozen.abandon_payment()

    assert order.pending_payment is None
    assert order.add_item(COFFEE).item_count == 2
