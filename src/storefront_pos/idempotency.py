from __future__ import annotations

import uuid

IDEMPOTENCY_HEADER = "Idempotency-Key"


def new_order_id() -> str:
    # Generated locally so a caller-side retry of the remote insert replays
    # the same key instead of creating a second order.
    return str(uuid.uuid4())


def new_line_id() -> str:
    return uuid.uuid4().hex


def idempotency_headers(order_id: str) -> dict[str, str]:
    return {IDEMPOTENCY_HEADER: order_id}
