from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Protocol

from pydantic import ValidationError as PydanticValidationError

from .exceptions import ApiError, OrderPersistenceError, RemoteCommitFailedError
from .local_store import JsonListFile
from .log import get_logger, log_event
from .models_orders import CachedOrder, Order, OrderHandle

logger = get_logger("storefront_pos.persistence")

REMOTE_COMMIT_WARNING = "Order completed locally; it may not appear in remote reports yet."
DEFAULT_ORDER_CACHE_LIMIT = 200


class RemoteOrderStore(Protocol):
    def insert(self, order: Order) -> OrderHandle: ...


class LocalOrderCache:
    """Capped rolling log of recent orders, newest first.

    Kept independently of the remote store so the terminal can show recent
    sales and reprint the last bill while offline.
    """

    def __init__(
        self,
        storage: JsonListFile,
        limit: int = DEFAULT_ORDER_CACHE_LIMIT,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        if limit < 1:
            raise ValueError("order cache limit must be >= 1")
        self.storage = storage
        self.limit = limit
        self._now = now or (lambda: datetime.now(timezone.utc))

    def append(self, order: Order, *, remote_synced: bool, remote_id: str | None = None) -> CachedOrder:
        cached = CachedOrder(order=order, remote_synced=remote_synced, remote_id=remote_id, cached_at=self._now())
        rows = [row for row in self.storage.read() if _row_order_id(row) != order.order_id]
        rows.insert(0, cached.model_dump(mode="json"))
        self.storage.write(rows[: self.limit])
        return cached

    def read_recent(self, k: int | None = None) -> list[CachedOrder]:
        rows = self.storage.read()
        if k is not None:
            rows = rows[: max(k, 0)]
        cached: list[CachedOrder] = []
        for row in rows:
            try:
                cached.append(CachedOrder.model_validate(row))
            except PydanticValidationError:
                log_event(
                    logger,
                    module="persistence",
                    action="read_recent",
                    outcome="skipped_invalid_row",
                    level=logging.WARNING,
                    order_id=_row_order_id(row),
                )
        return cached

    def get(self, order_id: str) -> CachedOrder | None:
        for cached in self.read_recent():
            if cached.order.order_id == order_id:
                return cached
        return None


def _row_order_id(row: dict) -> str | None:
    order = row.get("order")
    return order.get("order_id") if isinstance(order, dict) else None


@dataclass(frozen=True)
class CommitResult:
    order: Order
    handle: OrderHandle
    remote_ok: bool
    local_ok: bool
    warnings: list[str] = field(default_factory=list)
    remote_error: RemoteCommitFailedError | None = None


class OrderPersistenceCoordinator:
    """Writes a finalized order to the remote store and, independently, to the local cache.

    Neither write is retried here. A remote failure still yields a usable
    local handle plus a warning; only losing both writes raises.
    """

    def __init__(self, remote: RemoteOrderStore, cache: LocalOrderCache) -> None:
        self.remote = remote
        self.cache = cache

    def commit(self, order: Order) -> CommitResult:
        handle: OrderHandle | None = None
        remote_error: RemoteCommitFailedError | None = None
        causes: list[Exception] = []
        try:
            handle = self.remote.insert(order)
            log_event(
                logger,
                module="persistence",
                action="remote_insert",
                outcome="success",
                order_id=order.order_id,
                remote_id=handle.remote_id,
            )
        except Exception as exc:  # remote failures never undo a paid sale
            remote_error = RemoteCommitFailedError(order.order_id, exc)
            causes.append(exc)
            log_event(
                logger,
                module="persistence",
                action="remote_insert",
                outcome="error",
                trace_id=exc.trace_id if isinstance(exc, ApiError) else None,
                level=logging.WARNING,
                order_id=order.order_id,
                error_type=type(exc).__name__,
                error=str(exc),
            )

        local_ok = False
        try:
            self.cache.append(
                order,
                remote_synced=handle is not None,
                remote_id=handle.remote_id if handle else None,
            )
            local_ok = True
        except Exception as exc:  # a remote success still counts when the cache fails
            causes.append(exc)
            log_event(
                logger,
                module="persistence",
                action="local_append",
                outcome="error",
                level=logging.ERROR,
                order_id=order.order_id,
                error_type=type(exc).__name__,
                error=str(exc),
            )

        if handle is None and not local_ok:
            raise OrderPersistenceError(order.order_id, causes)

        warnings: list[str] = []
        if handle is None:
            handle = OrderHandle(order_id=order.order_id, source="local")
            warnings.append(REMOTE_COMMIT_WARNING)
        return CommitResult(
            order=order,
            handle=handle,
            remote_ok=remote_error is None,
            local_ok=local_ok,
            warnings=warnings,
            remote_error=remote_error,
        )

    def recent_orders(self, k: int = 10) -> list[CachedOrder]:
        return self.cache.read_recent(k)

    def last_order(self) -> Order | None:
        recent = self.cache.read_recent(1)
        return recent[0].order if recent else None

    def unsynced_orders(self) -> list[CachedOrder]:
        # Input for an out-of-band reconciliation job; nothing here replays them.
        return [cached for cached in self.cache.read_recent() if not cached.remote_synced]
