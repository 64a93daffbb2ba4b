from __future__ import annotations

import pytest

from storefront.client.state import AppState, Store
from storefront.shared.core.action_dispatcher import ActionDispatcher
from storefront.shared.core.configuration import StoreConfig
from storefront.shared.infrastructure.dom import Document
from storefront.shared.infrastructure.persistence import MemoryStorage


class FailingStorage:
    """Storage whose every call raises, like a browser with storage disabled."""

    def __init__(self) -> None:
        self.calls = 0

    def get_item(self, key: str):
        self.calls += 1
        raise OSError("storage unavailable")

    def set_item(self, key: str, value: str) -> None:
        self.calls += 1
        raise OSError("storage unavailable")

    def remove_item(self, key: str) -> None:
        self.calls += 1
        raise OSError("storage unavailable")


@pytest.fixture(autouse=True)
def _reset_store():
    Store.reset()
    yield
    Store.reset()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def store_config() -> StoreConfig:
    return StoreConfig(storage_backend="memory")


@pytest.fixture
def app_state(storage: MemoryStorage, store_config: StoreConfig) -> AppState:
    state = AppState(storage, store_config)
    state.initialize()
    return state


@pytest.fixture
def document() -> Document:
    return Document()


@pytest.fixture
def dispatcher(document: Document) -> ActionDispatcher:
    action_dispatcher = ActionDispatcher()
    action_dispatcher.install(document)
    return action_dispatcher


@pytest.fixture
def failing_storage() -> FailingStorage:
    return FailingStorage()
