from __future__ import annotations

from dataclasses import dataclass

from ..idempotency import idempotency_headers
from ..models_orders import Order, OrderHandle
from .base import BaseClient


@dataclass
class OrdersClient(BaseClient):
    """Authoritative order store. Inserts are sent once; the order id is the idempotency key."""

    def insert(self, order: Order) -> OrderHandle:
        data = self._request(
            "POST",
            "/orders",
            json_body=order.to_remote_payload(),
            headers=idempotency_headers(order.order_id),
            module="orders",
            operation="insert",
        )
        if isinstance(data, list):
            data = data[0] if data else None
        if not isinstance(data, dict):
            raise ValueError("Expected order insert response to be a JSON object")
        remote_id = data.get("id")
        return OrderHandle(
            order_id=order.order_id,
            remote_id=str(remote_id) if remote_id is not None else order.order_id,
            source="remote",
        )
