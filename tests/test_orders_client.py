from __future__ import annotations

import json

import pytest
import responses

from http_helpers import BASE_URL, make_http
from pos_helpers import make_order
from storefront_pos.clients.orders_client import OrdersClient
from storefront_pos.exceptions import ConflictError, UnauthorizedError
from storefront_pos.idempotency import IDEMPOTENCY_HEADER
from storefront_pos.models_orders import CustomerRef


@responses.activate
def test_insert_posts_order_with_idempotency_key() -> None:
    responses.add(responses.POST, f"{BASE_URL}/orders", json=[{"id": "remote-77"}], status=201)
    client = OrdersClient(http=make_http(), access_token="token", terminal_id="lane-1")

    handle = client.insert(make_order("ord-1", customer=CustomerRef(customer_id="c-1", name="Asha")))

    assert handle.source == "remote"
    assert handle.remote_id == "remote-77"
    request = responses.calls[0].request
    assert request.headers[IDEMPOTENCY_HEADER] == "ord-1"
    assert request.headers["Authorization"] == "Bearer token"
    assert request.headers["X-Terminal-ID"] == "lane-1"
    body = json.loads(request.body)
    assert body["id"] == "ord-1"
    assert body["customer_id"] == "c-1"
    assert body["total"] == "1062"
    assert body["items"][0] == {
        "product_id": "p-1",
        "product_name": "Widget",
        "quantity": 2,
        "price": "500",
        "total": "1000",
    }


@responses.activate
def test_insert_without_returned_id_uses_order_id() -> None:
    responses.add(responses.POST, f"{BASE_URL}/orders", json={}, status=201)
    handle = OrdersClient(http=make_http()).insert(make_order("ord-2"))
    assert handle.remote_id == "ord-2"


@responses.activate
def test_insert_errors_are_mapped_and_not_retried() -> None:
    responses.add(responses.POST, f"{BASE_URL}/orders", json={"code": "DUPLICATE", "message": "exists"}, status=409)
    responses.add(responses.POST, f"{BASE_URL}/orders", json={"message": "expired"}, status=401)
    client = OrdersClient(http=make_http())

    with pytest.raises(ConflictError):
        client.insert(make_order("ord-3"))
    with pytest.raises(UnauthorizedError):
        client.insert(make_order("ord-3"))
    assert len(responses.calls) == 2


@responses.activate
def test_insert_rejects_unexpected_body() -> None:
    responses.add(responses.POST, f"{BASE_URL}/orders", json="ok", status=201)
    with pytest.raises(ValueError):
        OrdersClient(http=make_http()).insert(make_order())
