from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class CustomerRef(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    customer_id: str | None = None
    name: str
    phone: str = ""
    email: str | None = None


class CashPayment(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    method: Literal["cash"] = "cash"


class CardPayment(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    method: Literal["card"] = "card"
    holder_name: str = ""
    card_number: str = Field(default="", repr=False)
    expiry: str = ""
    cvv: str = Field(default="", repr=False)


class UpiPayment(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    method: Literal["upi"] = "upi"
    vpa: str = ""


PaymentSelection = Annotated[Union[CashPayment, CardPayment, UpiPayment], Field(discriminator="method")]

_payment_adapter: TypeAdapter[PaymentSelection] = TypeAdapter(PaymentSelection)


def parse_payment_selection(value: PaymentSelection | Mapping[str, Any]) -> PaymentSelection:
    if isinstance(value, (CashPayment, CardPayment, UpiPayment)):
        return value
    payload = dict(value)
    payload["method"] = str(payload.get("method") or "").lower()
    return _payment_adapter.validate_python(payload)


class OrderLine(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    product_id: str
    product_name: str
    quantity: int = Field(ge=1)
    unit_price: Decimal
    line_total: Decimal


class Order(BaseModel):
    """Immutable record of a paid sale; built once by the checkout and never edited."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    order_id: str
    created_at: datetime
    customer: CustomerRef | None = None
    lines: tuple[OrderLine, ...]
    subtotal: Decimal
    discount_percent: Decimal
    discount_amount: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal
    payment_method: Literal["cash", "card", "upi"]
    payment_details: dict[str, str] | None = None

    @property
    def item_count(self) -> int:
        return len(self.lines)

    def to_remote_payload(self) -> dict[str, Any]:
        return {
            "id": self.order_id,
            "customer_id": self.customer.customer_id if self.customer else None,
            "items": [
                {
                    "product_id": line.product_id,
                    "product_name": line.product_name,
                    "quantity": line.quantity,
                    "price": str(line.unit_price),
                    "total": str(line.line_total),
                }
                for line in self.lines
            ],
            "subtotal": str(self.subtotal),
            "discount_percent": str(self.discount_percent),
            "discount_amount": str(self.discount_amount),
            "tax_rate": str(self.tax_rate),
            "tax_amount": str(self.tax_amount),
            "total": str(self.total),
            "payment_method": self.payment_method,
            "payment_details": self.payment_details,
            "created_at": self.created_at.isoformat(),
        }


class OrderHandle(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    order_id: str
    remote_id: str | None = None
    source: Literal["remote", "local"]


class CachedOrder(BaseModel):
    model_config = ConfigDict(extra="ignore")

    order: Order
    remote_synced: bool
    remote_id: str | None = None
    cached_at: datetime
