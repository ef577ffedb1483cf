from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Protocol

from pydantic import ValidationError as PydanticValidationError

from .exceptions import LedgerUpdateFailedError
from .local_store import JsonListFile
from .log import get_logger, log_event
from .models_customers import CustomerLedgerEntry
from .models_orders import CustomerRef, Order

logger = get_logger("storefront_pos.customer_ledger")

LOYALTY_POINT_VALUE = Decimal("100")


class CustomerStore(Protocol):
    def find(
        self, customer_id: str | None, phone: str | None, name: str | None
    ) -> CustomerLedgerEntry | None: ...

    def upsert(self, entry: CustomerLedgerEntry) -> None: ...


def _normalize_name(value: str | None) -> str:
    return " ".join((value or "").split()).casefold()


class LocalCustomerStore:
    def __init__(self, storage: JsonListFile) -> None:
        self.storage = storage

    def all(self) -> list[CustomerLedgerEntry]:
        entries: list[CustomerLedgerEntry] = []
        for row in self.storage.read():
            try:
                entries.append(CustomerLedgerEntry.model_validate(row))
            except PydanticValidationError:
                continue
        return entries

    def find(self, customer_id: str | None, phone: str | None, name: str | None) -> CustomerLedgerEntry | None:
        entries = self.all()
        if customer_id:
            for entry in entries:
                if entry.customer_id == customer_id:
                    return entry
        phone_key = (phone or "").strip()
        if phone_key:
            for entry in entries:
                if entry.phone.strip() == phone_key:
                    return entry
        name_key = _normalize_name(name)
        if name_key:
            for entry in entries:
                if _normalize_name(entry.name) == name_key:
                    return entry
        return None

    def upsert(self, entry: CustomerLedgerEntry) -> None:
        rows = self.storage.read()
        payload = entry.model_dump(mode="json")
        for index, row in enumerate(rows):
            if row.get("customer_id") == entry.customer_id:
                rows[index] = payload
                break
        else:
            rows.insert(0, payload)
        self.storage.write(rows)


def loyalty_points_for(total: Decimal) -> int:
    if total <= 0:
        return 0
    return math.floor(total / LOYALTY_POINT_VALUE)


class CustomerLedgerUpdater:
    """Folds a committed order into the customer's aggregate purchase statistics."""

    def __init__(self, store: CustomerStore, now: Callable[[], datetime] | None = None) -> None:
        self.store = store
        self._now = now or (lambda: datetime.now(timezone.utc))

    def apply(self, order: Order) -> CustomerLedgerEntry | None:
        customer = order.customer
        if customer is None:
            return None
        try:
            entry = self._merged_entry(customer, order)
            self.store.upsert(entry)
        except Exception as exc:  # store of any kind; callers only see LedgerUpdateFailedError
            log_event(
                logger,
                module="customer_ledger",
                action="apply",
                outcome="error",
                level=logging.WARNING,
                order_id=order.order_id,
                error_type=type(exc).__name__,
            )
            raise LedgerUpdateFailedError(order.order_id, exc) from exc
        log_event(
            logger,
            module="customer_ledger",
            action="apply",
            outcome="success",
            order_id=order.order_id,
            customer_id=entry.customer_id,
            total_purchases=entry.total_purchases,
        )
        return entry

    def _merged_entry(self, customer: CustomerRef, order: Order) -> CustomerLedgerEntry:
        now = self._now()
        earned = loyalty_points_for(order.total)
        existing = self.store.find(customer.customer_id, customer.phone, customer.name)
        if existing is None:
            return CustomerLedgerEntry(
                customer_id=customer.customer_id or str(uuid.uuid4()),
                name=customer.name,
                phone=customer.phone,
                email=customer.email,
                total_purchases=1,
                total_spent=order.total,
                last_purchase_at=now,
                joined_at=now.date(),
                loyalty_points=earned,
            )
        return existing.model_copy(
            update={
                "name": customer.name or existing.name,
                "phone": customer.phone or existing.phone,
                "email": customer.email or existing.email,
                "total_purchases": existing.total_purchases + 1,
                "total_spent": existing.total_spent + order.total,
                "last_purchase_at": now,
                "loyalty_points": existing.loyalty_points + earned,
            }
        )
