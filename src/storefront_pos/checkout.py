from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Mapping

from .activity_feed import ActivityFeed
from .cart import CartManager
from .checkout_state import (
    CheckoutActionAvailability,
    CheckoutState,
    can_transition,
    checkout_action_availability,
)
from .customer_ledger import CustomerLedgerUpdater
from .exceptions import (
    ActivityFeedError,
    CheckoutStateError,
    EmptyCartError,
    LedgerUpdateFailedError,
    OrderPersistenceError,
    OutOfStockError,
    PaymentFieldInvalidError,
    ProductNotFoundError,
    StockLimitExceededError,
)
from .idempotency import new_order_id
from .log import get_logger, log_event
from .models_cart import AddResult, CartLine
from .models_catalog import ProductRef
from .models_orders import CustomerRef, Order, OrderLine, PaymentSelection, parse_payment_selection
from .notifications import NotificationCenter
from .payment_validation import payment_details, validate_payment_selection
from .persistence import CommitResult, OrderPersistenceCoordinator
from .pricing import PriceBreakdown, format_currency, price
from .receipt import BillData, ReceiptPrinter, build_bill_data

logger = get_logger("storefront_pos.checkout")

DEFAULT_TAX_RATE = Decimal("18")
REMOTE_WARNING_NOTICE = "Order completed but may not appear in Bills immediately. Data saved locally."

StateListener = Callable[[CheckoutState, CheckoutState], None]

_LOCKED_STATES = {CheckoutState.VALIDATING, CheckoutState.COMMITTING, CheckoutState.COMMITTED}


@dataclass(frozen=True)
class CheckoutOutcome:
    order: Order
    commit: CommitResult
    bill: BillData | None = None
    warnings: list[str] = field(default_factory=list)
    ledger_error: LedgerUpdateFailedError | None = None
    activity_error: ActivityFeedError | None = None
    receipt_error: Exception | None = None

    @property
    def remote_ok(self) -> bool:
        return self.commit.remote_ok


class CheckoutOrchestrator:
    """Drives one sale at a time from the first scan to a durably recorded order.

    Cart edits, payment selection and submission all go through this object so
    the checkout state stays consistent. After a successful commit the
    bookkeeping collaborators run and the terminal resets for the next sale.
    """

    def __init__(
        self,
        cart: CartManager,
        coordinator: OrderPersistenceCoordinator,
        *,
        tax_rate: Decimal = DEFAULT_TAX_RATE,
        ledger_updater: CustomerLedgerUpdater | None = None,
        activity_feed: ActivityFeed | None = None,
        receipt_printer: ReceiptPrinter | None = None,
        notifications: NotificationCenter | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        if tax_rate < 0:
            raise ValueError(f"tax rate must be >= 0, got {tax_rate}")
        self.cart = cart
        self.coordinator = coordinator
        self.tax_rate = tax_rate
        self.ledger_updater = ledger_updater
        self.activity_feed = activity_feed
        self.receipt_printer = receipt_printer
        self.notifications = notifications or NotificationCenter()
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._state = CheckoutState.EMPTY
        self._listeners: list[StateListener] = []
        self._discount_percent = Decimal("0")
        self._customer: CustomerRef | None = None
        self._selection: PaymentSelection | None = None
        self._pending_order: Order | None = None
        self._min_stock: dict[str, int] = {}
        self._observed_stock: dict[str, int] = {}

    @property
    def state(self) -> CheckoutState:
        return self._state

    @property
    def discount_percent(self) -> Decimal:
        return self._discount_percent

    @property
    def customer(self) -> CustomerRef | None:
        return self._customer

    @property
    def selection(self) -> PaymentSelection | None:
        return self._selection

    @property
    def pending_order(self) -> Order | None:
        return self._pending_order

    def availability(self) -> CheckoutActionAvailability:
        return checkout_action_availability(self._state, has_lines=not self.cart.is_empty())

    def add_state_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def _transition(self, target: CheckoutState) -> None:
        previous = self._state
        if not can_transition(previous, target):
            raise CheckoutStateError(f"moving to {target.value}", previous.value)
        self._state = target
        if previous is target:
            return
        log_event(logger, module="checkout", action="transition", outcome=target.value, previous=previous.value)
        for listener in list(self._listeners):
            listener(previous, target)

    def _ensure_editable(self, action: str) -> None:
        if self._state in _LOCKED_STATES:
            raise CheckoutStateError(action, self._state.value)

    def _after_edit(self) -> None:
        # Any change to the sale invalidates the chosen method's fields and the pending order.
        self._selection = None
        self._pending_order = None
        self._transition(CheckoutState.EMPTY if self.cart.is_empty() else CheckoutState.EDITING)

    def scan(self, barcode: str) -> AddResult:
        self._ensure_editable("scan")
        code = barcode.strip()
        product = self.cart.ledger.lookup_by_barcode(code)
        if product is None:
            self.notifications.push(
                level="error",
                title="Product Not Found",
                message=f"No product found with barcode: {code}",
            )
            raise ProductNotFoundError(code)
        return self.add_item(product)

    def add_item(self, product: ProductRef, quantity: int = 1) -> AddResult:
        self._ensure_editable("add item")
        try:
            result = self.cart.add_or_increment(product, quantity)
        except OutOfStockError as exc:
            self.notifications.push(
                level="error",
                title="Out of Stock",
                message=f"{exc.product_name} is out of stock!",
                details={"product_id": exc.product_id},
            )
            raise
        except StockLimitExceededError as exc:
            self.notifications.push(
                level="error",
                title="Stock Limit Reached",
                message=f"Cannot add more {exc.product_name}. Only {exc.max_available} items available in stock.",
                details={"product_id": exc.product_id, "max_available": exc.max_available},
            )
            raise
        self._min_stock[product.product_id] = product.min_stock
        if result.clamped:
            self.notifications.push(
                level="warning",
                title="Limited Stock",
                message=(
                    f"Only {result.available} {product.name} available in stock. "
                    f"Adding {result.applied} instead of {result.requested}."
                ),
                details={"product_id": product.product_id, "not_applied": result.not_applied},
            )
        self._after_edit()
        return result

    def set_quantity(self, line_id: str, quantity: int) -> CartLine | None:
        self._ensure_editable("set quantity")
        try:
            line = self.cart.set_quantity(line_id, quantity)
        except StockLimitExceededError as exc:
            self.notifications.push(
                level="error",
                title="Stock Limit Exceeded",
                message=str(exc),
                details={"product_id": exc.product_id, "max_available": exc.max_available},
            )
            raise
        self._after_edit()
        return line

    def remove(self, line_id: str) -> CartLine:
        self._ensure_editable("remove item")
        line = self.cart.remove(line_id)
        self._after_edit()
        return line

    def set_discount(self, percent: Decimal | int | str) -> None:
        self._ensure_editable("set discount")
        try:
            value = Decimal(str(percent))
        except InvalidOperation as exc:
            raise ValueError(f"discount percent must be a number, got {percent!r}") from exc
        if not value.is_finite():
            raise ValueError(f"discount percent must be a number, got {percent!r}")
        if not Decimal("0") <= value <= Decimal("100"):
            raise ValueError(f"discount percent must be between 0 and 100, got {value}")
        self._discount_percent = value
        self._after_edit()

    def set_customer(self, customer: CustomerRef | None) -> None:
        self._ensure_editable("set customer")
        self._customer = customer
        self._after_edit()

    def clear(self) -> None:
        """Abandon the sale in progress."""
        self._ensure_editable("clear")
        self.cart.clear()
        self._reset_sale()
        self._transition(CheckoutState.EMPTY)

    def _reset_sale(self) -> None:
        self._discount_percent = Decimal("0")
        self._customer = None
        self._selection = None
        self._pending_order = None
        self._min_stock.clear()
        self._observed_stock = {}

    def select_method(self, selection: PaymentSelection | Mapping[str, Any]) -> PaymentSelection:
        self._ensure_editable("select payment method")
        parsed = parse_payment_selection(selection)
        if parsed != self._selection:
            self._pending_order = None
        self._selection = parsed
        self._transition(CheckoutState.METHOD_SELECTED)
        return parsed

    def pricing(self) -> PriceBreakdown:
        return price(self.cart.subtotal(), self._discount_percent, self.tax_rate)

    def render(self) -> dict[str, Any]:
        breakdown = self.pricing()
        return {
            "state": self._state.value,
            "cart": self.cart.render(),
            "totals": breakdown.presented(),
            "payment_method": self._selection.method if self._selection else None,
            "actions": self.availability(),
        }

    def submit(self) -> CheckoutOutcome:
        order = self._begin_commit()
        try:
            result = self.coordinator.commit(order)
        except Exception as exc:
            self._abort_commit(order, exc)
            raise
        return self._finish(order, result)

    async def submit_async(self) -> CheckoutOutcome:
        """Like :meth:`submit`, but the persistence writes run in a worker thread.

        ``COMMITTING`` is entered before the first await, so edits or a second
        submit made while the writes are in flight are rejected.
        """
        order = self._begin_commit()
        try:
            result = await asyncio.to_thread(self.coordinator.commit, order)
        except Exception as exc:
            self._abort_commit(order, exc)
            raise
        return self._finish(order, result)

    def _begin_commit(self) -> Order:
        if self._state is not CheckoutState.METHOD_SELECTED or self._selection is None:
            raise CheckoutStateError("submit", self._state.value)
        selection = self._selection
        self._transition(CheckoutState.VALIDATING)
        try:
            order, observed = self._validate_sale(selection)
        except Exception:
            self._transition(CheckoutState.METHOD_SELECTED)
            raise
        self._observed_stock = observed
        self._transition(CheckoutState.COMMITTING)
        log_event(
            logger,
            module="checkout",
            action="submit",
            outcome="committing",
            order_id=order.order_id,
            method=selection.method,
        )
        return order

    def _validate_sale(self, selection: PaymentSelection) -> tuple[Order, dict[str, int]]:
        """Checks run while VALIDATING; any exception sends the caller back to METHOD_SELECTED."""
        if self.cart.is_empty():
            self.notifications.push(level="error", title="Empty Cart", message=str(EmptyCartError()))
            raise EmptyCartError()

        validation = validate_payment_selection(selection)
        if not validation.ok:
            error = PaymentFieldInvalidError(validation.method, validation.issues)
            title = "Invalid UPI ID" if validation.method == "upi" else "Invalid Card Details"
            self.notifications.push(
                level="error",
                title=title,
                message=str(error),
                details={"fields": [issue.field for issue in validation.issues]},
            )
            log_event(
                logger,
                module="checkout",
                action="validate_payment",
                outcome="invalid",
                method=validation.method,
                fields=[issue.field for issue in validation.issues],
            )
            raise error

        observed = self.cart.observed_stock()
        violations = self.cart.stock_violations(observed)
        if violations:
            first = violations[0]
            error = StockLimitExceededError(first.product_id, first.name, first.quantity, first.available)
            self.notifications.push(
                level="error",
                title="Stock Limit Exceeded",
                message=str(error),
                details={"product_ids": [v.product_id for v in violations]},
            )
            log_event(
                logger,
                module="checkout",
                action="stock_recheck",
                outcome="violation",
                product_ids=[v.product_id for v in violations],
            )
            raise error

        if self._pending_order is None:
            self._pending_order = self._build_order(selection)
        return self._pending_order, observed

    def _build_order(self, selection: PaymentSelection) -> Order:
        breakdown = self.pricing()
        lines = tuple(
            OrderLine(
                product_id=line.product_id,
                product_name=line.name,
                quantity=line.quantity,
                unit_price=line.unit_price,
                line_total=line.line_total,
            )
            for line in self.cart.lines
        )
        return Order(
            order_id=new_order_id(),
            created_at=self._now(),
            customer=self._customer,
            lines=lines,
            subtotal=breakdown.subtotal,
            discount_percent=breakdown.discount_percent,
            discount_amount=breakdown.discount_amount,
            tax_rate=breakdown.tax_rate,
            tax_amount=breakdown.tax_amount,
            total=breakdown.total,
            payment_method=selection.method,
            payment_details=payment_details(selection),
        )

    def _abort_commit(self, order: Order, exc: Exception) -> None:
        self._transition(CheckoutState.METHOD_SELECTED)
        log_event(
            logger,
            module="checkout",
            action="submit",
            outcome="persistence_failed",
            level=logging.ERROR,
            order_id=order.order_id,
            error_type=type(exc).__name__,
        )
        if isinstance(exc, OrderPersistenceError):
            self.notifications.push(
                level="error",
                title="Payment Not Recorded",
                message=str(exc),
                details={"order_id": order.order_id},
            )

    def _finish(self, order: Order, result: CommitResult) -> CheckoutOutcome:
        self._transition(CheckoutState.COMMITTED)
        try:
            return self._settle(order, result)
        finally:
            self.cart.clear()
            self._reset_sale()
            self._transition(CheckoutState.EMPTY)

    def _settle(self, order: Order, result: CommitResult) -> CheckoutOutcome:
        warnings = list(result.warnings)
        if not result.remote_ok:
            self.notifications.push(
                level="warning",
                title="Database Save Warning",
                message=REMOTE_WARNING_NOTICE,
                details={"order_id": order.order_id},
            )

        ledger_error = self._update_customer_ledger(order)
        activity_error = self._record_activity(order)
        bill, receipt_error = self._print_receipt(order)

        self.notifications.push(
            level="info",
            title="Payment Successful",
            message=f"Order {order.order_id} completed. Total: {format_currency(order.total)}",
            details={"order_id": order.order_id},
        )
        log_event(
            logger,
            module="checkout",
            action="submit",
            outcome="committed",
            order_id=order.order_id,
            remote_ok=result.remote_ok,
            local_ok=result.local_ok,
        )
        return CheckoutOutcome(
            order=order,
            commit=result,
            bill=bill,
            warnings=warnings,
            ledger_error=ledger_error,
            activity_error=activity_error,
            receipt_error=receipt_error,
        )

    def _update_customer_ledger(self, order: Order) -> LedgerUpdateFailedError | None:
        if self.ledger_updater is None:
            return None
        try:
            self.ledger_updater.apply(order)
        except LedgerUpdateFailedError as exc:
            self.notifications.push(
                level="warning",
                title="Customer Not Updated",
                message="Sale saved, but the customer's purchase history could not be updated.",
                details={"order_id": order.order_id},
            )
            return exc
        return None

    def _record_activity(self, order: Order) -> ActivityFeedError | None:
        if self.activity_feed is None:
            return None
        try:
            self.activity_feed.record_sale(order)
            for line in order.lines:
                observed = self._observed_stock.get(line.product_id)
                if observed is None:
                    continue
                remaining = observed - line.quantity
                if remaining <= self._min_stock.get(line.product_id, 0):
                    self.activity_feed.record_low_stock(line.product_name, max(remaining, 0))
        except ActivityFeedError as exc:
            log_event(
                logger,
                module="checkout",
                action="record_activity",
                outcome="error",
                level=logging.WARNING,
                order_id=order.order_id,
            )
            return exc
        return None

    def _print_receipt(self, order: Order) -> tuple[BillData | None, Exception | None]:
        try:
            bill = build_bill_data(order)
            if self.receipt_printer is not None:
                self.receipt_printer.print_receipt(bill)
        except Exception as exc:  # the sale is final; printer trouble is reported, not raised
            log_event(
                logger,
                module="checkout",
                action="print_receipt",
                outcome="error",
                level=logging.WARNING,
                order_id=order.order_id,
                error_type=type(exc).__name__,
            )
            self.notifications.push(
                level="error",
                title="Print Error",
                message="Failed to print bill. You can reprint the last bill.",
                details={"order_id": order.order_id},
            )
            return None, exc
        return bill, None
