"""Service registry for cross-module access to the shared client core."""

from __future__ import annotations

import atexit
import logging
from typing import Optional, TYPE_CHECKING, List, Callable

if TYPE_CHECKING:
    from storefront.client.state.app_state import AppState
    from storefront.shared.core.action_dispatcher import ActionDispatcher

logger = logging.getLogger(__name__)

# Global references to the core primitives
_app_state: Optional["AppState"] = None
_dispatcher: Optional["ActionDispatcher"] = None

# Global cleanup management
_cleanup_registered = False
_cleanup_handlers: List[Callable[[], None]] = []


def set_app_state(app_state: Optional["AppState"]) -> None:
    """Set the global state store instance."""
    global _app_state
    _app_state = app_state


def get_app_state() -> Optional["AppState"]:
    """Get the global state store instance."""
    return _app_state


def get_state_manager() -> Optional["AppState"]:
    """Legacy name for the state store; same object as ``get_app_state()``."""
    return _app_state


def set_dispatcher(dispatcher: Optional["ActionDispatcher"]) -> None:
    """Set the global action dispatcher instance."""
    global _dispatcher
    _dispatcher = dispatcher


def get_dispatcher() -> Optional["ActionDispatcher"]:
    """Get the global action dispatcher instance."""
    return _dispatcher


def register_cleanup_handler(handler: Callable[[], None]) -> None:
    """Register a cleanup handler to be called on application exit."""
    global _cleanup_registered
    _cleanup_handlers.append(handler)
    if not _cleanup_registered:
        atexit.register(run_cleanup)
        _cleanup_registered = True
        logger.debug("Registered atexit cleanup handler")


def run_cleanup() -> None:
    """Run and drop all registered cleanup handlers."""
    if not _cleanup_handlers:
        return
    logger.info("Running application cleanup...")
    while _cleanup_handlers:
        handler = _cleanup_handlers.pop()
        try:
            handler()
        except Exception as e:
            logger.warning(f"Error in cleanup handler: {e}")
    logger.info("Application cleanup completed")


def clear_registry() -> None:
    """Forget the registered core instances."""
    set_app_state(None)
    set_dispatcher(None)
