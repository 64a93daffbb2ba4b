"""Canonical interaction event definitions for the storefront client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

# DOM event types the dispatcher listens to
EVENT_CLICK = "click"
EVENT_CHANGE = "change"
EVENT_INPUT = "input"

# Marker attributes carried by markup (value is the action name)
MARKER_CLICK = "data-action"
MARKER_CHANGE = "data-action-change"
MARKER_INPUT = "data-action-input"

DEFAULT_MARKERS: Dict[str, str] = {
    EVENT_CLICK: MARKER_CLICK,
    EVENT_CHANGE: MARKER_CHANGE,
    EVENT_INPUT: MARKER_INPUT,
}

# Event type used for programmatic triggers
EVENT_SYNTHETIC = "synthetic"

# State paths watched by the admin module loader
PATH_USER_IS_ADMIN = "user.isAdmin"
PATH_VIEW_CURRENT = "view.current"

VIEW_ADMIN = "adminView"


@dataclass
class SyntheticEvent:
    """Minimal event-like object passed to handlers by ``trigger``."""

    data: Any = None
    type: str = EVENT_SYNTHETIC
    target: Optional[Any] = None

    def prevent_default(self) -> None:
        pass

    def stop_propagation(self) -> None:
        pass


def create_synthetic_event(data: Any = None) -> SyntheticEvent:
    """Create the event passed to a handler invoked programmatically."""
    return SyntheticEvent(data=data)
