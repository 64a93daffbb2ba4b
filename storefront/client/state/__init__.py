"""Reactive State Management for the client.

Architecture:
- AppState: path-addressable state tree with subscriptions and persistence
- Store: service locator owning the single AppState and ActionDispatcher
"""

from .app_state import AppState
from .store import Store

__all__ = ["AppState", "Store"]
