"""Payment routes

Two ways to take a payment:
- `POST /orders/{id}/pay` charges through the configured gateway and waits
  for the answer (bounded by the confirmation timeout).
- `POST /orders/{id}/payments` only freezes the order and returns the
  request; the gateway (or a terminal) answers later through
  `POST /orders/{id}/payments/confirm`.

Orders whose confirmation timed out are settled with
`POST /orders/{id}/payments/reconcile`.
"""

from fastapi import APIRouter, Depends, status
import logging
from uuid import UUID

from api.dependencies import get_session_manager
from domain.order import Order
from domain.payment import PaymentRequest, PaymentResult
from domain.schemas import PaymentConfirmRequest, PaymentInitRequest
from services import OrderSessionManager

router = APIRouter(prefix="/orders", tags=["Payments"])
logger = logging.getLogger("tablepos.api.payments")


def _to_result(payload: PaymentConfirmRequest) -> PaymentResult:
    return PaymentResult(
        request_id=payload.request_id,
        success=payload.success,
        transaction_id=payload.transaction_id,
        failure_reason=payload.failure_reason,
    )


@router.post(
    "/{order_id}/payments",
    response_model=PaymentRequest,
    status_code=status.HTTP_202_ACCEPTED,
)
def initiate_payment(
    order_id: UUID,
    payload: PaymentInitRequest,
    manager: OrderSessionManager = Depends(get_session_manager),
):
    return manager.initiate_payment(order_id, payload.method, payload.card_token)


@router.post("/{order_id}/payments/confirm", response_model=Order)
def confirm_payment(
    order_id: UUID,
    payload: PaymentConfirmRequest,
    manager: OrderSessionManager = Depends(get_session_manager),
):
    """Apply the gateway's answer. A decline returns 402 and leaves the order open."""
    return manager.confirm_payment(order_id, _to_result(payload))


@router.post("/{order_id}/payments/reconcile", response_model=Order)
def reconcile_payment(
    order_id: UUID,
    payload: PaymentConfirmRequest,
    manager: OrderSessionManager = Depends(get_session_manager),
):
    logger.info("Manual reconciliation requested for order %s", order_id)
    return manager.reconcile_payment(order_id, _to_result(payload))


@router.post("/{order_id}/pay", response_model=Order)
async def pay(
    order_id: UUID,
    payload: PaymentInitRequest,
    manager: OrderSessionManager = Depends(get_session_manager),
):
    return await manager.process_payment(order_id, payload.method, payload.card_token)
