from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable

from pydantic import ValidationError as PydanticValidationError

from .exceptions import ActivityFeedError
from .local_store import JsonListFile
from .models_activity import ActivityEvent, ActivityKind
from .models_orders import Order

DEFAULT_ACTIVITY_LIMIT = 50


class ActivityFeed:
    """Bounded recent-activity log for the dashboard, newest first."""

    def __init__(
        self,
        storage: JsonListFile,
        limit: int = DEFAULT_ACTIVITY_LIMIT,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        if limit < 1:
            raise ValueError("activity limit must be >= 1")
        self.storage = storage
        self.limit = limit
        self._now = now or (lambda: datetime.now(timezone.utc))

    def append(self, kind: ActivityKind, message: str, amount: Decimal | None = None) -> ActivityEvent:
        event = ActivityEvent(
            id=uuid.uuid4().hex,
            kind=kind,
            message=message,
            amount=amount,
            occurred_at=self._now(),
        )
        try:
            rows = self.storage.read()
            rows.insert(0, event.model_dump(mode="json"))
            self.storage.write(rows[: self.limit])
        except Exception as exc:  # storage of any kind; callers only see ActivityFeedError
            raise ActivityFeedError(f"Could not record {kind} activity: {exc}") from exc
        return event

    def record_sale(self, order: Order) -> ActivityEvent:
        return self.append("sale", f"Sale completed - {order.item_count} item(s)", amount=order.total)

    def record_low_stock(self, product_name: str, remaining: int) -> ActivityEvent:
        return self.append("low_stock", f"Low stock - {product_name} ({remaining} left)")

    def recent(self, k: int | None = None) -> list[ActivityEvent]:
        rows = self.storage.read()
        if k is not None:
            rows = rows[: max(k, 0)]
        events: list[ActivityEvent] = []
        for row in rows:
            try:
                events.append(ActivityEvent.model_validate(row))
            except PydanticValidationError:
                continue
        return events
