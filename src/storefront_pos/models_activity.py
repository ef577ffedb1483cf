from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict

ActivityKind = Literal["sale", "low_stock"]


class ActivityEvent(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    kind: ActivityKind
    message: str
    amount: Decimal | None = None
    occurred_at: datetime
