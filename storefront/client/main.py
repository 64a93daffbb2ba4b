"""Storefront client - bootstrap entry point.

Builds the shared core (state store + action dispatcher), installs the
delegated listeners on the document, then runs client module initializers.
Modules only talk to each other through the store and the dispatcher.
"""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from dotenv import load_dotenv

from storefront.client.state import Store
from storefront.shared.core import events
from storefront.shared.core.configuration import LoggingConfig, SystemConfig, ValidationLevel, get_config
from storefront.shared.core.ports import DocumentPort, StoragePort
from storefront.shared.core.service_registry import register_cleanup_handler
from storefront.shared.infrastructure.dom import Document
from storefront.shared.infrastructure.persistence import build_storage

logger = logging.getLogger(__name__)

ModuleInit = Callable[[Store], None]

ADMIN_MODULE = "admin"

_LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def configure_logging(config: LoggingConfig) -> Optional[Path]:
    """Configure root logging.

    File handler logs everything at ``config.level`` (when ``log_file`` is set),
    console handler only ``config.console_level`` and above.

    Returns:
        The log file path, or None when file logging is disabled
    """
    file_log_level = _LOG_LEVELS.get(config.level.upper(), logging.DEBUG)
    console_log_level = _LOG_LEVELS.get(config.console_level.upper(), logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(min(file_log_level, console_log_level))

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    log_file_path: Optional[Path] = None
    if config.log_file:
        log_file_path = Path(config.log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file_path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(file_log_level)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_log_level)
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S"
    ))
    root_logger.addHandler(console_handler)

    # DuckDB is chatty at debug level
    logging.getLogger("duckdb").setLevel(logging.WARNING)

    logger.info(f"Logging configured: file={log_file_path}, console={config.console_level.upper()}+")
    return log_file_path


def run_safe(name: str, fn: Callable[..., Any], *args: Any) -> bool:
    """Run a module initializer; a failure is logged and does not stop bootstrap."""
    try:
        logger.debug(f"Initializing {name}...")
        fn(*args)
    except Exception as e:
        logger.exception(f"Critical error in {name}: {e}")
        return False
    return True


class ModuleLoader:
    """Runs client module initializers, eagerly or on first need.

    The admin module is lazy: it loads once the user becomes an admin or the
    admin view is shown.
    """

    def __init__(self, store: Store) -> None:
        self.store = store
        self._eager: Dict[str, ModuleInit] = {}
        self._lazy: Dict[str, ModuleInit] = {}
        self._loaded: set[str] = set()
        self._watchers: List[Callable[[], None]] = []

    def register(self, name: str, init: ModuleInit, lazy: bool = False) -> None:
        (self._lazy if lazy else self._eager)[name] = init

    def is_loaded(self, name: str) -> bool:
        return name in self._loaded

    def start(self) -> None:
        """Run eager initializers in registration order and arm lazy triggers."""
        for name in self._eager:
            self.ensure_loaded(name)
        if ADMIN_MODULE in self._lazy and not self.is_loaded(ADMIN_MODULE):
            self._watch_admin_intent()

    def ensure_loaded(self, name: str) -> bool:
        """Load ``name`` once. Returns True when the module is loaded."""
        if name in self._loaded:
            return True
        init = self._eager.get(name) or self._lazy.get(name)
        if init is None:
            logger.warning(f"Unknown client module: {name}")
            return False
        if not run_safe(name, init, self.store):
            return False
        self._loaded.add(name)
        if name == ADMIN_MODULE:
            self._stop_watching()
        return True

    def _watch_admin_intent(self) -> None:
        if self._watchers:
            return
        app = self.store.app

        def on_admin_flag(is_admin: Any, _old: Any) -> None:
            if is_admin:
                self.ensure_loaded(ADMIN_MODULE)

        def on_view(current: Any, _old: Any) -> None:
            if current == events.VIEW_ADMIN:
                self.ensure_loaded(ADMIN_MODULE)

        self._watchers = [
            app.subscribe(events.PATH_USER_IS_ADMIN, on_admin_flag),
            app.subscribe(events.PATH_VIEW_CURRENT, on_view),
        ]

        # State may already say admin (restored snapshot)
        if app.get_state(events.PATH_USER_IS_ADMIN) or app.get_state(events.PATH_VIEW_CURRENT) == events.VIEW_ADMIN:
            self.ensure_loaded(ADMIN_MODULE)

    def _stop_watching(self) -> None:
        watchers, self._watchers = self._watchers, []
        for unsubscribe in watchers:
            unsubscribe()


def bootstrap(
    document: Optional[DocumentPort] = None,
    storage: Optional[StoragePort] = None,
    config: Optional[SystemConfig] = None,
    env_path: Optional[Path] = None,
    setup_logging: bool = True,
) -> Store:
    """Initialize the client core.

    Safe to call more than once: the store and its listeners are created on
    the first call only. When a module already called ``Store.initialize()``
    that store is kept (its storage and config win) and the dispatcher is
    still installed on ``document``.

    Args:
        document: Document root for delegated listeners, a fresh in-memory one when omitted
        storage: Snapshot storage, built from configuration when omitted
        config: System configuration, loaded via ConfigManager when omitted
        env_path: Optional .env file to load before reading configuration
        setup_logging: Install the file/console log handlers

    Returns:
        The global store
    """
    if Store.is_initialized():
        store = Store.get()
        if storage is not None or config is not None:
            logger.warning("Store already initialized by another module, ignoring bootstrap storage/config")
        store.dispatcher.install(document if document is not None else Document())
        return store

    load_dotenv(dotenv_path=env_path)
    config = config or get_config(ValidationLevel.LENIENT)
    if setup_logging:
        configure_logging(config.logging)

    if storage is None:
        storage = build_storage(config.store)
        close = getattr(storage, "close", None)
        if close is not None:
            register_cleanup_handler(close)

    store = Store.initialize(storage, config)
    store.dispatcher.install(document if document is not None else Document())
    logger.info(
        f"Client core ready: view={store.app.get_state(events.PATH_VIEW_CURRENT)}, "
        f"storage={type(storage).__name__ if storage is not None else 'none'}"
    )
    return store


def main() -> None:
    store = bootstrap()
    metrics = store.app.get_metrics()
    logger.info(
        f"Storefront core running with {store.dispatcher.get_handler_count()} action handler(s) "
        f"and {metrics['subscribers']} subscriber(s)"
    )


if __name__ == "__main__":
    main()
