from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from .models_orders import Order
from .pricing import present

GUEST_CUSTOMER_NAME = "Guest Customer"
_PAYMENT_LABELS = {"cash": "Cash", "card": "Card", "upi": "UPI"}


class BillCustomer(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    phone: str
    email: str | None = None


class BillItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    quantity: int
    price: Decimal
    total: Decimal


class BillData(BaseModel):
    """Printable view of a committed order. Every amount is already rounded for display."""

    model_config = ConfigDict(frozen=True)

    bill_number: str
    order_id: str
    date: str
    customer: BillCustomer
    items: list[BillItem]
    subtotal: Decimal
    discount_percent: Decimal
    discount: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal
    payment_method: str
    amount_received: Decimal | None = None
    change_amount: Decimal | None = None


class ReceiptPrinter(Protocol):
    def print_receipt(self, bill: BillData) -> None: ...


def bill_number_for(order_id: str) -> str:
    return f"INV-{order_id}"


def build_bill_data(order: Order, amount_received: Decimal | None = None) -> BillData:
    if not order.lines:
        raise ValueError(f"order {order.order_id} has no lines to print")
    customer = order.customer
    change = present(amount_received - order.total) if amount_received is not None else None
    return BillData(
        bill_number=bill_number_for(order.order_id),
        order_id=order.order_id,
        date=order.created_at.strftime("%d %B %Y"),
        customer=BillCustomer(
            name=(customer.name.strip() if customer else "") or GUEST_CUSTOMER_NAME,
            phone=(customer.phone.strip() if customer else "") or "-",
            email=customer.email if customer else None,
        ),
        items=[
            BillItem(
                name=line.product_name,
                quantity=line.quantity,
                price=present(line.unit_price),
                total=present(line.line_total),
            )
            for line in order.lines
        ],
        subtotal=present(order.subtotal),
        discount_percent=order.discount_percent,
        discount=present(order.discount_amount),
        tax_rate=order.tax_rate,
        tax_amount=present(order.tax_amount),
        total=present(order.total),
        payment_method=_PAYMENT_LABELS[order.payment_method],
        amount_received=present(amount_received) if amount_received is not None else None,
        change_amount=change,
    )


class LastOrderSource(Protocol):
    def last_order(self) -> Order | None: ...


def reprint_last_bill(source: LastOrderSource, printer: ReceiptPrinter) -> BillData:
    """Rebuild the most recent cached order's bill and send it to the printer again.

    Raises ``LookupError`` when no order has been cached yet; printer errors propagate.
    """
    order = source.last_order()
    if order is None:
        raise LookupError("No bill found. Complete a sale first.")
    bill = build_bill_data(order)
    printer.print_receipt(bill)
    return bill
