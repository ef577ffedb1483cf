from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class CustomerLedgerEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    customer_id: str
    name: str
    phone: str = ""
    email: str | None = None
    total_purchases: int = Field(default=0, ge=0)
    total_spent: Decimal = Decimal("0")
    last_purchase_at: datetime | None = None
    joined_at: date
    loyalty_points: int = Field(default=0, ge=0)
