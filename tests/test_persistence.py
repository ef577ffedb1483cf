from __future__ import annotations

import json
from pathlib import Path

import pytest

from pos_helpers import BrokenStorage, FakeRemoteStore, FaultyStorage, make_order
from storefront_pos.exceptions import OrderPersistenceError, RemoteCommitFailedError
from storefront_pos.local_store import JsonListFile
from storefront_pos.persistence import REMOTE_COMMIT_WARNING, LocalOrderCache, OrderPersistenceCoordinator


def test_commit_writes_remote_and_local(tmp_path: Path, fixed_now) -> None:
    remote = FakeRemoteStore()
    cache = LocalOrderCache(JsonListFile(tmp_path / "pos_orders.json"), now=fixed_now)
    coordinator = OrderPersistenceCoordinator(remote, cache)

    result = coordinator.commit(make_order("ord-1"))

    assert result.remote_ok is True
    assert result.local_ok is True
    assert result.warnings == []
    assert result.handle.source == "remote"
    assert result.handle.remote_id == "remote-ord-1"
    cached = cache.get("ord-1")
    assert cached is not None
    assert cached.remote_synced is True
    assert cached.remote_id == "remote-ord-1"


def test_remote_failure_returns_local_handle_with_warning(tmp_path: Path) -> None:
    cache = LocalOrderCache(JsonListFile(tmp_path / "pos_orders.json"))
    coordinator = OrderPersistenceCoordinator(FakeRemoteStore(fail=True), cache)

    result = coordinator.commit(make_order("ord-2"))

    assert result.remote_ok is False
    assert result.local_ok is True
    assert result.handle.source == "local"
    assert result.handle.order_id == "ord-2"
    assert result.warnings == [REMOTE_COMMIT_WARNING]
    assert isinstance(result.remote_error, RemoteCommitFailedError)
    assert [c.order.order_id for c in coordinator.unsynced_orders()] == ["ord-2"]


def test_local_failure_does_not_block_remote_success() -> None:
    remote = FakeRemoteStore()
    coordinator = OrderPersistenceCoordinator(remote, LocalOrderCache(BrokenStorage()))  # type: ignore[arg-type]

    result = coordinator.commit(make_order("ord-3"))

    assert result.remote_ok is True
    assert result.local_ok is False
    assert [order.order_id for order in remote.inserted] == ["ord-3"]


def test_unexpected_cache_error_does_not_block_remote_success() -> None:
    remote = FakeRemoteStore()
    coordinator = OrderPersistenceCoordinator(remote, LocalOrderCache(FaultyStorage()))  # type: ignore[arg-type]

    result = coordinator.commit(make_order("ord-5"))

    assert result.remote_ok is True
    assert result.local_ok is False
    assert [order.order_id for order in remote.inserted] == ["ord-5"]


def test_both_writes_failing_raises_retryable_error() -> None:
    coordinator = OrderPersistenceCoordinator(
        FakeRemoteStore(fail=True), LocalOrderCache(BrokenStorage())  # type: ignore[arg-type]
    )
    with pytest.raises(OrderPersistenceError) as excinfo:
        coordinator.commit(make_order("ord-4"))
    assert excinfo.value.order_id == "ord-4"
    assert len(excinfo.value.causes) == 2


def test_cache_is_capped_and_newest_first() -> None:
    cache = LocalOrderCache(JsonListFile(), limit=3)
    for index in range(5):
        cache.append(make_order(f"ord-{index}"), remote_synced=True)

    assert [c.order.order_id for c in cache.read_recent()] == ["ord-4", "ord-3", "ord-2"]
    assert [c.order.order_id for c in cache.read_recent(1)] == ["ord-4"]


def test_reappending_an_order_replaces_its_row() -> None:
    cache = LocalOrderCache(JsonListFile())
    cache.append(make_order("ord-1"), remote_synced=False)
    cache.append(make_order("ord-2"), remote_synced=True)
    cache.append(make_order("ord-1"), remote_synced=True, remote_id="r-1")

    recent = cache.read_recent()
    assert [c.order.order_id for c in recent] == ["ord-1", "ord-2"]
    assert recent[0].remote_synced is True


def test_invalid_cached_rows_are_skipped(tmp_path: Path) -> None:
    path = tmp_path / "pos_orders.json"
    cache = LocalOrderCache(JsonListFile(path))
    cache.append(make_order("ord-1"), remote_synced=True)
    rows = json.loads(path.read_text(encoding="utf-8"))
    rows.insert(0, {"order": {"order_id": "broken"}})
    path.write_text(json.dumps(rows), encoding="utf-8")

    assert [c.order.order_id for c in cache.read_recent()] == ["ord-1"]


def test_cached_order_round_trips_exact_amounts(tmp_path: Path) -> None:
    path = tmp_path / "pos_orders.json"
    order = make_order("ord-1")
    LocalOrderCache(JsonListFile(path)).append(order, remote_synced=True)

    reloaded = LocalOrderCache(JsonListFile(path)).get("ord-1")

    assert reloaded is not None
    assert reloaded.order == order


def test_recent_and_last_order() -> None:
    coordinator = OrderPersistenceCoordinator(FakeRemoteStore(), LocalOrderCache(JsonListFile()))
    assert coordinator.last_order() is None
    coordinator.commit(make_order("ord-1"))
    coordinator.commit(make_order("ord-2"))

    assert coordinator.last_order().order_id == "ord-2"
    assert [c.order.order_id for c in coordinator.recent_orders(5)] == ["ord-2", "ord-1"]


def test_corrupt_cache_file_reads_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "pos_orders.json"
    path.write_text("{not json", encoding="utf-8")
    assert LocalOrderCache(JsonListFile(path)).read_recent() == []
