from __future__ import annotations

import uuid

from storefront_pos.idempotency import IDEMPOTENCY_HEADER, idempotency_headers, new_line_id, new_order_id


def test_order_ids_are_unique_uuids() -> None:
    first, second = new_order_id(), new_order_id()
    uuid.UUID(first)
    assert first != second
    assert new_line_id() != new_line_id()


def test_order_id_is_the_idempotency_key() -> None:
    assert idempotency_headers("ord-1") == {IDEMPOTENCY_HEADER: "ord-1"}
