from __future__ import annotations

import pytest

from storefront.client.state import AppState, Store
from storefront.shared.core import service_registry
from storefront.shared.core.configuration import DispatcherConfig, StoreConfig, SystemConfig
from storefront.shared.infrastructure.dom import Document, Element
from storefront.shared.infrastructure.persistence import MemoryStorage


def _config() -> SystemConfig:
    return SystemConfig(store=StoreConfig(storage_backend="memory"))


def test_get_before_initialize_raises() -> None:
    with pytest.raises(RuntimeError):
        Store.get()


def test_initialize_twice_keeps_state_and_subscriptions() -> None:
    storage = MemoryStorage()
    store = Store.initialize(storage, _config())
    calls = []
    store.app.subscribe("x.y", lambda new, old: calls.append(new))
    store.app.set_state("x.y", 1)

    again = Store.initialize(MemoryStorage(), _config())
    again.app.set_state("x.y", 2)

    assert again is store
    assert again.app.get_state("x.y") == 2
    assert calls == [1, 2]


def test_second_initialize_does_not_reset_state() -> None:
    store = Store.initialize(MemoryStorage(), _config())
    store.app.set_state("x.y", 1)

    Store.initialize()

    assert Store.get().app.get_state("x.y") == 1


def test_state_survives_reload_from_same_storage() -> None:
    storage = MemoryStorage()
    Store.initialize(storage, _config()).app.set_state("user.uid", "alice")

    Store.reset()
    reloaded = Store.initialize(storage, _config())

    assert reloaded.app.get_state("user.uid") == "alice"
    assert reloaded.app.get_state("view.current") == "homeView"


def test_legacy_alias_is_the_same_instance() -> None:
    store = Store.initialize(MemoryStorage(), _config())

    assert store.state_manager is store.app
    assert service_registry.get_state_manager() is service_registry.get_app_state()
    assert service_registry.get_app_state() is store.app

    store.state_manager.set_state("view.current", "cartView")
    assert service_registry.get_app_state().get_state("view.current") == "cartView"


def test_registry_exposes_dispatcher() -> None:
    store = Store.initialize(MemoryStorage(), _config())

    assert service_registry.get_dispatcher() is store.dispatcher


def test_reset_clears_registry() -> None:
    Store.initialize(MemoryStorage(), _config())

    Store.reset()

    assert not Store.is_initialized()
    assert service_registry.get_app_state() is None
    assert service_registry.get_dispatcher() is None


def test_custom_markers_reach_dispatcher() -> None:
    config = SystemConfig(
        store=StoreConfig(storage_backend="memory"),
        dispatcher=DispatcherConfig(click_marker="data-cmd"),
    )
    store = Store.initialize(None, config)
    fired = []
    store.dispatcher.register("go", lambda element, event: fired.append(element))

    document = Document()
    store.dispatcher.install(document)
    button = document.body.append_child(Element("button", {"data-cmd": "go"}))
    document.click(button)

    assert fired == [button]


def test_store_owns_an_app_state() -> None:
    store = Store.initialize(None, _config())

    assert isinstance(store.app, AppState)
    assert store.app.is_initialized


def test_cleanup_handlers_run_once() -> None:
    ran = []
    service_registry.register_cleanup_handler(lambda: ran.append("a"))
    service_registry.register_cleanup_handler(lambda: 1 / 0)

    service_registry.run_cleanup()
    service_registry.run_cleanup()

    assert ran == ["a"]
