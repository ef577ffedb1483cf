from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from .exceptions import CartLineNotFoundError, OutOfStockError, StockLimitExceededError
from .idempotency import new_line_id
from .log import get_logger, log_event
from .models_cart import AddResult, CartLine
from .models_catalog import ProductRef
from .stock_ledger import StockLedgerView

logger = get_logger("storefront_pos.cart")


@dataclass(frozen=True)
class StockViolation:
    line_id: str
    product_id: str
    name: str
    quantity: int
    available: int


class CartManager:
    """Line items of the sale in progress, one line per product.

    Stock-tracked quantities are checked against the injected ledger on every
    mutation; nothing about stock is remembered between calls.
    """

    def __init__(self, ledger: StockLedgerView) -> None:
        self.ledger = ledger
        self._lines: dict[str, CartLine] = {}

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    def __len__(self) -> int:
        return len(self._lines)

    def is_empty(self) -> bool:
        return not self._lines

    def get(self, line_id: str) -> CartLine:
        line = self._lines.get(line_id)
        if line is None:
            raise CartLineNotFoundError(line_id)
        return line

    def line_for_product(self, product_id: str) -> CartLine | None:
        for line in self._lines.values():
            if line.product_id == product_id:
                return line
        return None

    def add_or_increment(self, product: ProductRef, requested_qty: int = 1) -> AddResult:
        if requested_qty < 1:
            raise ValueError("requested quantity must be at least 1")
        existing = self.line_for_product(product.product_id)
        current_qty = existing.quantity if existing else 0
        applied = requested_qty
        available: int | None = None

        if product.stock_tracked:
            available = self.ledger.current_stock(product.product_id)
            if available <= 0:
                log_event(logger, module="cart", action="add", outcome="out_of_stock", product_id=product.product_id)
                raise OutOfStockError(product.product_id, product.name)
            if current_qty + requested_qty > available:
                applied = available - current_qty
                if applied <= 0:
                    log_event(
                        logger,
                        module="cart",
                        action="add",
                        outcome="stock_limit",
                        product_id=product.product_id,
                        available=available,
                    )
                    raise StockLimitExceededError(
                        product.product_id, product.name, current_qty + requested_qty, available
                    )

        if existing is not None:
            existing.quantity = current_qty + applied
            line = existing
        else:
            line = CartLine(
                line_id=new_line_id(),
                product_id=product.product_id,
                name=product.name,
                unit_price=product.unit_price,
                quantity=applied,
                barcode=product.barcode,
                stock_tracked=product.stock_tracked,
            )
            self._lines[line.line_id] = line

        if applied < requested_qty:
            log_event(
                logger,
                module="cart",
                action="add",
                outcome="clamped",
                product_id=product.product_id,
                requested=requested_qty,
                applied=applied,
            )
        return AddResult(line=line, requested=requested_qty, applied=applied, available=available)

    def set_quantity(self, line_id: str, new_qty: int) -> CartLine | None:
        """Set an exact quantity. Returns ``None`` when the line was removed."""
        line = self.get(line_id)
        if new_qty <= 0:
            self.remove(line_id)
            return None
        if line.stock_tracked:
            available = self.ledger.current_stock(line.product_id)
            if new_qty > available:
                log_event(
                    logger,
                    module="cart",
                    action="set_quantity",
                    outcome="stock_limit",
                    product_id=line.product_id,
                    requested=new_qty,
                    available=available,
                )
                raise StockLimitExceededError(line.product_id, line.name, new_qty, available)
        line.quantity = new_qty
        return line

    def remove(self, line_id: str) -> CartLine:
        line = self._lines.pop(line_id, None)
        if line is None:
            raise CartLineNotFoundError(line_id)
        return line

    def clear(self) -> None:
        self._lines.clear()

    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self._lines.values()), Decimal("0"))

    def observed_stock(self) -> dict[str, int]:
        """Fresh ledger reading for every stock-tracked line, keyed by product id."""
        return {
            line.product_id: self.ledger.current_stock(line.product_id)
            for line in self._lines.values()
            if line.stock_tracked
        }

    def stock_violations(self, observed: dict[str, int] | None = None) -> list[StockViolation]:
        if observed is None:
            observed = self.observed_stock()
        violations: list[StockViolation] = []
        for line in self._lines.values():
            if not line.stock_tracked:
                continue
            available = observed.get(line.product_id, 0)
            if line.quantity > available:
                violations.append(
                    StockViolation(
                        line_id=line.line_id,
                        product_id=line.product_id,
                        name=line.name,
                        quantity=line.quantity,
                        available=available,
                    )
                )
        return violations

    def render(self) -> dict[str, Any]:
        return {
            "count": len(self._lines),
            "subtotal": self.subtotal(),
            "rows": [line.model_dump(mode="json") for line in self._lines.values()],
        }
