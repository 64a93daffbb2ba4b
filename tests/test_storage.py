from __future__ import annotations

import pytest

from storefront.client.state import AppState
from storefront.shared.core.configuration import StoreConfig
from storefront.shared.infrastructure.persistence import (
    DuckDBStorage,
    MemoryStorage,
    StorageQuotaExceededError,
    StorageUnavailableError,
    build_storage,
)


def test_memory_storage_round_trip() -> None:
    storage = MemoryStorage()

    storage.set_item("k", "v")

    assert storage.get_item("k") == "v"
    assert storage.get_item("missing") is None
    storage.remove_item("k")
    storage.remove_item("k")
    assert len(storage) == 0


def test_memory_storage_quota() -> None:
    storage = MemoryStorage(quota_bytes=10)
    storage.set_item("k", "12345")

    with pytest.raises(StorageQuotaExceededError):
        storage.set_item("other", "123456789")

    # Overwriting an existing key only counts the new value
    storage.set_item("k", "123456789")
    assert storage.get_item("k") == "123456789"


def test_duckdb_storage_round_trip() -> None:
    storage = DuckDBStorage()

    storage.set_item("snapshot", '{"a": 1}')
    storage.set_item("snapshot", '{"a": 2}')

    assert storage.get_item("snapshot") == '{"a": 2}'
    assert storage.keys() == ["snapshot"]
    storage.remove_item("snapshot")
    assert storage.get_item("snapshot") is None
    storage.close()


def test_duckdb_storage_survives_reopen(tmp_path) -> None:
    db_path = str(tmp_path / "state" / "snapshots.duckdb")
    first = AppState(DuckDBStorage(db_path), StoreConfig())
    first.initialize()
    first.set_state("user.uid", "alice")
    first.storage.close()

    second = AppState(DuckDBStorage(db_path), StoreConfig())
    second.initialize()

    assert second.get_state("user.uid") == "alice"
    second.storage.close()


def test_closed_duckdb_storage_raises() -> None:
    storage = DuckDBStorage()
    storage.close()

    with pytest.raises(StorageUnavailableError):
        storage.get_item("snapshot")


def test_store_keeps_working_when_duckdb_is_closed() -> None:
    storage = DuckDBStorage()
    state = AppState(storage, StoreConfig())
    state.initialize()
    storage.close()

    state.set_state("view.current", "cartView")

    assert state.get_state("view.current") == "cartView"


def test_build_storage(tmp_path) -> None:
    assert build_storage(StoreConfig(storage_backend="none")) is None
    assert isinstance(build_storage(StoreConfig(storage_backend="memory")), MemoryStorage)

    duck = build_storage(StoreConfig(storage_backend="duckdb", storage_path=str(tmp_path / "s.duckdb")))
    assert isinstance(duck, DuckDBStorage)
    duck.close()


def test_duckdb_storage_unwritable_directory_is_unavailable(tmp_path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file in the way", encoding="utf-8")

    with pytest.raises(StorageUnavailableError):
        DuckDBStorage(str(blocker / "state" / "snapshots.duckdb"))

    config = StoreConfig(storage_backend="duckdb", storage_path=str(blocker / "state" / "s.duckdb"))
    assert build_storage(config) is None
