"""Storefront client core: reactive state store and action dispatcher."""

from .client.state import AppState, Store
from .shared.core.action_dispatcher import ActionDispatcher

__all__ = ["Store", "AppState", "ActionDispatcher"]
