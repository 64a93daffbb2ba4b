"""Global State Store - Service Locator Pattern.

Provides centralized access to the reactive state and the action
dispatcher from any client module.
"""

from __future__ import annotations

import logging
from typing import Optional

from .app_state import AppState
from storefront.shared.core import service_registry
from storefront.shared.core.action_dispatcher import ActionDispatcher, LegacyEventDelegation
from storefront.shared.core.configuration import SystemConfig
from storefront.shared.core.ports import StoragePort

logger = logging.getLogger(__name__)


class Store:
    """Global store for the client application.

    Owns the single ``AppState`` and ``ActionDispatcher``. Modules may load
    in any order and each may call ``Store.initialize()``; only the first
    call builds anything.

    Usage:
        # During bootstrap (or from any module, any number of times)
        Store.initialize(storage)

        # In any module
        store = Store.get()
        store.app.set_state("view.current", "adminView")
        store.dispatcher.register("showLoginView", show_login)
    """

    _instance: Optional['Store'] = None

    def __init__(self, storage: Optional[StoragePort] = None, config: Optional[SystemConfig] = None) -> None:
        """Build the core primitives.

        Note: Do not call directly. Use Store.initialize() instead.

        Args:
            storage: Snapshot storage for the state tree
            config: System configuration, defaults when omitted
        """
        self.config = config or SystemConfig()
        self.app = AppState(storage, self.config.store)
        self.dispatcher = ActionDispatcher(self.config.dispatcher.markers())
        self.legacy_delegation = LegacyEventDelegation(self.dispatcher)

    @property
    def state_manager(self) -> AppState:
        """Legacy alias of ``app``."""
        return self.app

    @classmethod
    def initialize(
        cls,
        storage: Optional[StoragePort] = None,
        config: Optional[SystemConfig] = None,
    ) -> 'Store':
        """Initialize the global store instance.

        Idempotent: when a store already exists it is returned unchanged and
        the arguments are ignored.

        Args:
            storage: Snapshot storage for the state tree
            config: System configuration

        Returns:
            The global store instance
        """
        if cls._instance is not None:
            logger.debug("Store already initialized, keeping existing state")
            return cls._instance

        instance = cls(storage, config)
        instance.app.initialize()
        cls._instance = instance
        service_registry.set_app_state(instance.app)
        service_registry.set_dispatcher(instance.dispatcher)
        logger.info("Store initialized")
        return instance

    @classmethod
    def get(cls) -> 'Store':
        """Get the global store instance.

        Raises:
            RuntimeError: If store has not been initialized
        """
        if cls._instance is None:
            raise RuntimeError("Store not initialized! Call Store.initialize() first.")
        return cls._instance

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._instance is not None

    @classmethod
    def reset(cls) -> None:
        """Reset the store instance.

        Primarily used for testing. In production, store persists for
        application lifetime.
        """
        cls._instance = None
        service_registry.clear_registry()
