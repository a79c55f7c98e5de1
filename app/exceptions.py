from typing import Any, Mapping, Optional


class AppError(Exception):
    """Base class for errors that handlers turn into an HTTP error envelope.

    Attributes:
        message: human-readable message
        details: optional mapping with extra context (ids, states, reasons)
        code: machine-readable error code
        http_status: suggested HTTP status code for handlers
    """

    http_status = 500
    default_message = "Internal error"
    default_code: Optional[str] = None

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
        code: Optional[str] = None,
    ):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.details = details
        self.code = code or self.default_code

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"message": self.message}
        if self.code:
            payload["code"] = self.code
        if self.details:
            payload["details"] = dict(self.details)
        return payload

    def __str__(self) -> str:
        return self.message


class ServiceValidationError(AppError):
    """Raised when input data is invalid or a precondition for a service call is not met."""

    http_status = 400
    default_message = "Invalid input"
    default_code = "SERVICE_VALIDATION_ERROR"


class NotFoundError(AppError):
    """Raised when a requested resource was not found."""

    http_status = 404
    default_message = "Not found"
    default_code = "NOT_FOUND"


class ConflictError(AppError):
    """Raised when the resource is not in a state that allows the operation."""

    http_status = 409
    default_message = "Conflict"
    default_code = "CONFLICT"


class CollaboratorError(AppError):
    """Raised when an external collaborator (catalog, database, gateway) fails."""

    http_status = 503
    default_message = "Upstream service unavailable"
    default_code = "COLLABORATOR_UNAVAILABLE"


# ---------------------------------------------------------------------------
# Point-of-sale errors
# ---------------------------------------------------------------------------


class TableNotFoundError(NotFoundError):
    default_message = "Table not found"
    default_code = "TABLE_NOT_FOUND"


class MenuItemNotFoundError(NotFoundError):
    default_message = "Menu item not found"
    default_code = "MENU_ITEM_NOT_FOUND"


class LineNotFoundError(NotFoundError):
    default_message = "Order line not found"
    default_code = "LINE_NOT_FOUND"


class OrderNotFoundError(NotFoundError):
    default_message = "Order not found"
    default_code = "ORDER_NOT_FOUND"


class TableUnavailableError(ConflictError):
    default_message = "Table already has an open order"
    default_code = "TABLE_UNAVAILABLE"


class InvalidOrderStateError(ConflictError):
    """Attempted mutation of an order that is not open (or is frozen for payment)."""

    default_message = "Order is not open"
    default_code = "INVALID_ORDER_STATE"


class EmptyOrderError(ServiceValidationError):
    default_message = "Order has no items"
    default_code = "EMPTY_ORDER"


class PaymentMethodNotSupportedError(ServiceValidationError):
    default_message = "Payment method is not supported yet"
    default_code = "PAYMENT_METHOD_NOT_SUPPORTED"


class PaymentDeclinedError(ServiceValidationError):
    """The gateway answered and refused the charge. The order stays open for retry."""

    http_status = 402
    default_message = "Payment declined"
    default_code = "PAYMENT_DECLINED"


class PaymentTimeoutError(CollaboratorError):
    """No settlement arrived in time; the order needs manual reconciliation."""

    http_status = 504
    default_message = "Payment confirmation timed out"
    default_code = "PAYMENT_TIMED_OUT"


class CatalogUnavailableError(CollaboratorError):
    default_message = "Menu catalog unavailable"
    default_code = "CATALOG_UNAVAILABLE"


class PersistenceError(CollaboratorError):
    default_message = "Order store unavailable"
    default_code = "PERSISTENCE_UNAVAILABLE"
