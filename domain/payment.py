"""
Payment hand-off values exchanged with payment gateways.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from domain.enums import PaymentMethod


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PaymentRequest(BaseModel):
    """A charge for the frozen total of one order"""

    model_config = ConfigDict(frozen=True)

    request_id: UUID = Field(default_factory=uuid4)
    order_id: UUID
    amount: Decimal = Field(..., ge=0)
    currency: str = "USD"
    method: PaymentMethod
    # Tokenized card from the terminal / hosted fields; never raw card data.
    card_token: Optional[str] = Field(default=None, repr=False, exclude=True)
    created_at: datetime = Field(default_factory=_utcnow)


class PaymentResult(BaseModel):
    """Gateway outcome for a PaymentRequest"""

    model_config = ConfigDict(frozen=True)

    request_id: UUID
    success: bool
    transaction_id: Optional[str] = None
    failure_reason: Optional[str] = None
    processed_at: datetime = Field(default_factory=_utcnow)

    @classmethod
    def approved(cls, request: PaymentRequest, transaction_id: Optional[str] = None) -> "PaymentResult":
        return cls(request_id=request.request_id, success=True, transaction_id=transaction_id)

    @classmethod
    def declined(cls, request: PaymentRequest, reason: str) -> "PaymentResult":
        return cls(request_id=request.request_id, success=False, failure_reason=reason)
