from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ApiError(Exception):
    code: str
    message: str
    details: object | None
    trace_id: str | None
    status_code: int
    raw_payload: object | None = None

    def __str__(self) -> str:
        trace = f" trace_id={self.trace_id}" if self.trace_id else ""
        return f"[{self.status_code}] {self.code}: {self.message}{trace}"


class UnauthorizedError(ApiError):
    pass


class ForbiddenError(ApiError):
    pass


class NotFoundError(ApiError):
    pass


class ValidationError(ApiError):
    pass


class ConflictError(ApiError):
    """409 or conflict-style errors, e.g. a replayed order id."""


class RateLimitError(ApiError):
    """429 throttling error."""


class ServerError(ApiError):
    """5xx server-side failures."""


class TransportError(ApiError):
    """Network/transport failure before an HTTP response was returned."""


class PosError(Exception):
    """Base class for checkout-side failures shown to, or logged for, the operator."""

    code = "POS_ERROR"


class OutOfStockError(PosError):
    code = "OUT_OF_STOCK"

    def __init__(self, product_id: str, product_name: str) -> None:
        self.product_id = product_id
        self.product_name = product_name
        super().__init__(f"{product_name} is out of stock")


class StockLimitExceededError(PosError):
    code = "STOCK_LIMIT_EXCEEDED"

    def __init__(self, product_id: str, product_name: str, requested: int, max_available: int) -> None:
        self.product_id = product_id
        self.product_name = product_name
        self.requested = requested
        self.max_available = max_available
        super().__init__(
            f"Cannot set quantity to {requested}. Only {max_available} {product_name} available in stock."
        )


@dataclass(frozen=True)
class PaymentFieldIssue:
    field: str
    reason: str


class PaymentFieldInvalidError(PosError):
    code = "PAYMENT_FIELD_INVALID"

    def __init__(self, method: str, issues: list[PaymentFieldIssue]) -> None:
        self.method = method
        self.issues = issues
        reason = "; ".join(f"{issue.field}: {issue.reason}" for issue in issues) or "invalid payment details"
        super().__init__(f"Invalid {method} payment: {reason}")


class RemoteCommitFailedError(PosError):
    """The authoritative store rejected or never received the order. Never raised past the coordinator."""

    code = "REMOTE_COMMIT_FAILED"

    def __init__(self, order_id: str, cause: Exception) -> None:
        self.order_id = order_id
        self.cause = cause
        super().__init__(f"Remote commit failed for order {order_id}: {cause}")


class LedgerUpdateFailedError(PosError):
    code = "LEDGER_UPDATE_FAILED"

    def __init__(self, order_id: str, cause: Exception) -> None:
        self.order_id = order_id
        self.cause = cause
        super().__init__(f"Customer ledger update failed for order {order_id}: {cause}")


class ActivityFeedError(PosError):
    code = "ACTIVITY_FEED_FAILED"


class EmptyCartError(PosError):
    code = "EMPTY_CART"

    def __init__(self) -> None:
        super().__init__("Please add items before taking payment")


class CartLineNotFoundError(PosError):
    code = "CART_LINE_NOT_FOUND"

    def __init__(self, line_id: str) -> None:
        self.line_id = line_id
        super().__init__(f"Cart line {line_id} not found")


class ProductNotFoundError(PosError):
    code = "PRODUCT_NOT_FOUND"

    def __init__(self, barcode: str) -> None:
        self.barcode = barcode
        super().__init__(f"Product with barcode {barcode} not found in inventory")


class CheckoutStateError(PosError):
    code = "CHECKOUT_STATE"

    def __init__(self, action: str, state: str) -> None:
        self.action = action
        self.state = state
        super().__init__(f"{action} is not allowed while checkout is {state}")


class OrderPersistenceError(PosError):
    """Neither the remote store nor the local cache holds the order; the sale can be retried."""

    code = "ORDER_PERSISTENCE_FAILED"

    def __init__(self, order_id: str, causes: list[Exception]) -> None:
        self.order_id = order_id
        self.causes = causes
        super().__init__(f"Order {self.order_id} could not be saved remotely or locally; please retry")
