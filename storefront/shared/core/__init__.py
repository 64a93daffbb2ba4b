"""
Shared Core Module
==================

Action dispatcher, interaction events, configuration and service registry.
"""

# Action System
from .action_dispatcher import (
    ActionDispatcher,
    ActionHandler,
    DispatcherState,
    DispatchOutcome,
    DispatchResult,
    LegacyEventDelegation,
)
from . import events

# Service Registry
from .service_registry import (
    get_app_state,
    get_state_manager,
    get_dispatcher,
    register_cleanup_handler,
)

# Configuration
from .configuration import (
    ConfigManager,
    SystemConfig,
    StoreConfig,
    DispatcherConfig,
    LoggingConfig,
    get_config_manager,
    get_config,
    ValidationLevel,
)

__all__ = [
    # Action System
    "ActionDispatcher",
    "ActionHandler",
    "DispatcherState",
    "DispatchOutcome",
    "DispatchResult",
    "LegacyEventDelegation",
    "events",
    # Service Registry
    "get_app_state",
    "get_state_manager",
    "get_dispatcher",
    "register_cleanup_handler",
    # Configuration
    "ConfigManager",
    "SystemConfig",
    "StoreConfig",
    "DispatcherConfig",
    "LoggingConfig",
    "get_config_manager",
    "get_config",
    "ValidationLevel",
]
