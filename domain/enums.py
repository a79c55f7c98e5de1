"""
Domain enums for TablePOS.
Contains all enumeration types used across the domain models.
"""

import enum


class OrderStatus(str, enum.Enum):
    """Lifecycle state of an order"""

    OPEN = "open"
    SAVED = "saved"
    PAID = "paid"
    VOID = "void"
    PAYMENT_TIMED_OUT = "payment_timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.SAVED, OrderStatus.PAID, OrderStatus.VOID)


class TableState(str, enum.Enum):
    """Occupancy of a dining table"""

    AVAILABLE = "available"
    SEATED = "seated"


class PaymentMethod(str, enum.Enum):
    """Tender types offered at the register"""

    CREDIT_CARD = "credit_card"
    CASH = "cash"
    DEBIT_CARD = "debit_card"
    BANK_ACCOUNT = "bank_account"
    CHECK = "check"


# Methods with a settlement path behind them; the rest are listed on the
# register but have no gateway yet.
SUPPORTED_PAYMENT_METHODS = frozenset({PaymentMethod.CREDIT_CARD, PaymentMethod.CASH})
