from __future__ import annotations

import logging

import pytest

from storefront.client.main import ADMIN_MODULE, ModuleLoader, bootstrap, run_safe
from storefront.client.state import Store
from storefront.shared.core import service_registry
from storefront.shared.core.configuration import SystemConfig
from storefront.shared.infrastructure.dom import Document, Element
from storefront.shared.infrastructure.persistence import MemoryStorage


@pytest.fixture
def booted(tmp_path, document: Document, storage: MemoryStorage) -> Store:
    return bootstrap(
        document=document,
        storage=storage,
        config=SystemConfig(),
        env_path=tmp_path / "missing.env",
        setup_logging=False,
    )


def test_bootstrap_installs_delegated_listeners(booted: Store, document: Document) -> None:
    assert booted.dispatcher.is_active
    assert document.listener_count("click", capture=True) == 1
    assert service_registry.get_app_state() is booted.app

    calls = []
    booted.dispatcher.register("showHomeView", lambda element, event: calls.append(element))
    button = document.body.append_child(Element("button", {"data-action": "showHomeView"}))
    document.click(button)

    assert calls == [button]


def test_bootstrap_twice_returns_same_store(booted: Store, document: Document, tmp_path) -> None:
    again = bootstrap(document=document, env_path=tmp_path / "missing.env", setup_logging=False)

    assert again is booted
    assert document.listener_count("click", capture=True) == 1


def test_run_safe_contains_failures(caplog: pytest.LogCaptureFixture) -> None:
    def broken() -> None:
        raise RuntimeError("cannot init")

    with caplog.at_level(logging.ERROR):
        assert run_safe("cart", broken) is False

    assert "cart" in caplog.text
    assert run_safe("noop", lambda: None) is True


def test_eager_modules_run_in_registration_order(booted: Store) -> None:
    order = []
    loader = ModuleLoader(booted)
    loader.register("auth", lambda store: order.append("auth"))
    loader.register("broken", lambda store: 1 / 0)
    loader.register("cart", lambda store: order.append("cart"))

    loader.start()

    assert order == ["auth", "cart"]
    assert loader.is_loaded("auth")
    assert not loader.is_loaded("broken")


def test_admin_module_loads_when_user_becomes_admin(booted: Store) -> None:
    loaded = []
    loader = ModuleLoader(booted)
    loader.register(ADMIN_MODULE, lambda store: loaded.append(store), lazy=True)

    loader.start()
    assert loaded == []

    booted.app.set_state("user.isAdmin", True)
    booted.app.set_state("user.isAdmin", False)
    booted.app.set_state("user.isAdmin", True)

    assert loaded == [booted]
    assert loader.is_loaded(ADMIN_MODULE)


def test_admin_module_loads_on_admin_view(booted: Store) -> None:
    loaded = []
    loader = ModuleLoader(booted)
    loader.register(ADMIN_MODULE, lambda store: loaded.append("admin"), lazy=True)
    loader.start()

    booted.app.set_state("view.current", "cartView")
    assert loaded == []

    booted.app.set_state("view.current", "adminView")

    assert loaded == ["admin"]
    assert booted.app.subscriber_count("view.current") == 0


def test_admin_module_loads_immediately_from_restored_state(booted: Store) -> None:
    booted.app.set_state("user.isAdmin", True)
    loaded = []
    loader = ModuleLoader(booted)
    loader.register(ADMIN_MODULE, lambda store: loaded.append("admin"), lazy=True)

    loader.start()

    assert loaded == ["admin"]


def test_unknown_module(booted: Store) -> None:
    assert ModuleLoader(booted).ensure_loaded("reports") is False


def test_bootstrap_installs_listeners_on_store_built_by_a_module(
    tmp_path,
    document: Document,
    caplog: pytest.LogCaptureFixture,
) -> None:
    early = Store.initialize()
    calls = []
    early.dispatcher.register("foo", lambda element, event: calls.append(element))

    with caplog.at_level(logging.WARNING):
        store = bootstrap(
            document=document,
            storage=MemoryStorage(),
            env_path=tmp_path / "missing.env",
            setup_logging=False,
        )
    button = document.body.append_child(Element("button", {"data-action": "foo"}))
    document.click(button)

    assert store is early
    assert store.dispatcher.is_active
    assert calls == [button]
    assert "ignoring bootstrap storage/config" in caplog.text


def test_starting_loader_twice_leaves_no_stale_watchers(booted: Store) -> None:
    loaded = []
    loader = ModuleLoader(booted)
    loader.register(ADMIN_MODULE, lambda store: loaded.append("admin"), lazy=True)

    loader.start()
    loader.start()
    assert booted.app.subscriber_count("view.current") == 1

    booted.app.set_state("view.current", "adminView")

    assert loaded == ["admin"]
    assert booted.app.subscriber_count("view.current") == 0
    assert booted.app.subscriber_count("user.isAdmin") == 0
