from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class CartLine(BaseModel):
    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    line_id: str
    product_id: str
    name: str
    unit_price: Decimal = Field(ge=0)
    quantity: int = Field(ge=1)
    barcode: str | None = None
    stock_tracked: bool = False

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class AddResult:
    line: CartLine
    requested: int
    applied: int
    available: int | None

    @property
    def not_applied(self) -> int:
        return self.requested - self.applied

    @property
    def clamped(self) -> bool:
        return self.applied < self.requested
