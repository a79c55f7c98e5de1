"""
Payment gateway adapters.

Each gateway attempts a charge exactly once. Declines come back as a
PaymentResult; transport problems propagate so the caller decides whether
a new attempt is safe.
"""

import logging
from typing import Any, Dict, Mapping, Optional

import anyio
import requests

from app.config import Settings, settings as default_settings
from app.exceptions import PaymentMethodNotSupportedError
from domain.enums import PaymentMethod
from domain.money import round_money
from domain.payment import PaymentRequest, PaymentResult
from domain.ports import PaymentGateway

logger = logging.getLogger("tablepos.payments.gateway")


class CashDrawerGateway(PaymentGateway):
    """Cash is settled at the register; the drawer receipt is the transaction"""

    async def charge(self, request: PaymentRequest) -> PaymentResult:
        transaction_id = f"cash-{request.request_id.hex[:12]}"
        logger.info(
            "Cash payment recorded for order %s: %s %s (%s)",
            request.order_id,
            request.amount,
            request.currency,
            transaction_id,
        )
        return PaymentResult.approved(request, transaction_id=transaction_id)


class HelcimGateway(PaymentGateway):
    """
    Card purchases through the Helcim Payment API.

    The blocking HTTP call runs in a worker thread so the caller's timeout
    can stop waiting on it.
    """

    PURCHASE_PATH = "/payment/purchase"

    def __init__(
        self,
        api_token: str,
        base_url: str = "https://api.helcim.com/v2",
        terminal_id: Optional[str] = None,
        test_mode: bool = True,
        timeout: float = 20.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self.terminal_id = terminal_id
        self.test_mode = test_mode
        self.timeout = timeout
        self.session = session or requests.Session()
        self._setup_session()

    @classmethod
    def from_settings(cls, settings: Settings = default_settings) -> "HelcimGateway":
        return cls(
            api_token=settings.helcim_api_token or "",
            base_url=settings.helcim_api_url,
            terminal_id=settings.helcim_terminal_id,
            test_mode=settings.helcim_test_mode,
            timeout=settings.helcim_request_timeout_sec,
        )

    def _setup_session(self):
        self.session.headers.update(
            {
                "api-token": self.api_token,
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )

    def build_payload(self, request: PaymentRequest) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            # Helcim takes amount as a JSON number; cent-quantized floats print with at most two decimals.
            "amount": float(round_money(request.amount)),
            "currency": request.currency,
            "ipAddress": "0.0.0.0",
            "ecommerce": False,
            "invoiceNumber": request.order_id.hex[:20],
            "test": self.test_mode,
        }
        if request.card_token:
            payload["cardData"] = {"cardToken": request.card_token}
        if self.terminal_id:
            payload["terminalId"] = self.terminal_id
        return payload

    @staticmethod
    def _failure_reason(body: Mapping[str, Any], fallback: str) -> str:
        errors = body.get("errors")
        if isinstance(errors, dict) and errors:
            return "; ".join(f"{k}: {v}" for k, v in errors.items())
        if isinstance(errors, list) and errors:
            return "; ".join(str(e) for e in errors)
        if isinstance(errors, str) and errors:
            return errors
        return str(body.get("status") or fallback)

    def charge_sync(self, request: PaymentRequest) -> PaymentResult:
        """Single purchase call; raises requests exceptions on transport or 5xx errors"""
        if not self.api_token:
            return PaymentResult.declined(request, "Card gateway is not configured")
        if not request.card_token and not self.terminal_id:
            return PaymentResult.declined(request, "No card token or terminal for card payment")

        url = f"{self.base_url}{self.PURCHASE_PATH}"
        response = self.session.post(url, json=self.build_payload(request), timeout=self.timeout)
        if response.status_code >= 500:
            response.raise_for_status()

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.ok and str(body.get("status", "")).upper() == "APPROVED":
            transaction_id = body.get("transactionId")
            logger.info(
                "Helcim approved order %s: transaction %s", request.order_id, transaction_id
            )
            return PaymentResult.approved(
                request, transaction_id=str(transaction_id) if transaction_id is not None else None
            )

        reason = self._failure_reason(body, fallback=f"HTTP {response.status_code}")
        logger.warning("Helcim declined order %s: %s", request.order_id, reason)
        return PaymentResult.declined(request, reason)

    async def charge(self, request: PaymentRequest) -> PaymentResult:
        return await anyio.to_thread.run_sync(
            self.charge_sync, request, abandon_on_cancel=True
        )


class GatewayRouter(PaymentGateway):
    """Dispatches a charge to the gateway registered for its payment method"""

    def __init__(self, gateways: Mapping[PaymentMethod, PaymentGateway]):
        self._gateways = dict(gateways)

    @classmethod
    def from_settings(cls, settings: Settings = default_settings) -> "GatewayRouter":
        return cls(
            {
                PaymentMethod.CASH: CashDrawerGateway(),
                PaymentMethod.CREDIT_CARD: HelcimGateway.from_settings(settings),
            }
        )

    def supports(self, method: PaymentMethod) -> bool:
        return method in self._gateways

    async def charge(self, request: PaymentRequest) -> PaymentResult:
        gateway = self._gateways.get(request.method)
        if gateway is None:
            raise PaymentMethodNotSupportedError(
                f"No gateway for payment method '{request.method.value}'",
                details={"method": request.method.value},
            )
        return await gateway.charge(request)
