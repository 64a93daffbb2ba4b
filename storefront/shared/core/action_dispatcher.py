from __future__ import annotations

import functools
import logging
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional, TypeAlias

from pydantic import BaseModel, ConfigDict

from . import events
from .ports import DocumentPort, ElementPort

ActionHandler: TypeAlias = Callable[[Any, Any], None]


class DispatcherState(str, Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"


class DispatchOutcome(str, Enum):
    HANDLED = "handled"
    NO_TARGET = "no_target"
    MISSING_HANDLER = "missing_handler"
    HANDLER_ERROR = "handler_error"
    INVALID_INPUT = "invalid_input"


class DispatchResult(BaseModel):
    """What happened to one dispatch or trigger."""

    model_config = ConfigDict(frozen=True)

    outcome: DispatchOutcome
    action: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome == DispatchOutcome.HANDLED


class ResolvedAction(NamedTuple):
    action: str
    element: ElementPort


# Shared instance for the common "nothing to do" case
_NO_TARGET = DispatchResult(outcome=DispatchOutcome.NO_TARGET)


def _is_valid_action_name(action: Any) -> bool:
    return isinstance(action, str) and bool(action)


class ActionDispatcher:
    """Command bus that routes delegated DOM events to named handlers.

    One capture-phase listener per supported event type is installed on the
    document root. Each event is resolved to the nearest marked ancestor of
    its target, whose marker value names the handler to run.
    """

    def __init__(self, markers: Optional[Mapping[str, str]] = None) -> None:
        self._handlers: Dict[str, ActionHandler] = {}
        self._markers: Dict[str, str] = dict(markers or events.DEFAULT_MARKERS)
        self._state = DispatcherState.UNINITIALIZED
        self._document: Optional[DocumentPort] = None
        self._logger = logging.getLogger(__name__)

    @property
    def state(self) -> DispatcherState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state == DispatcherState.ACTIVE

    @property
    def handlers(self) -> Mapping[str, ActionHandler]:
        """Read-only view of the registry."""
        return MappingProxyType(self._handlers)

    def install(self, document: DocumentPort) -> bool:
        """Attach the delegated listeners to ``document``.

        Runs once per dispatcher; later calls are no-ops.

        Returns:
            True if listeners were installed by this call
        """
        if self._state == DispatcherState.ACTIVE:
            self._logger.debug("Dispatcher already active, skipping listener installation")
            return False

        for event_type in self._markers:
            document.add_event_listener(event_type, self._on_document_event, capture=True)

        self._document = document
        self._state = DispatcherState.ACTIVE
        self._logger.debug(f"Delegated listeners installed for {', '.join(self._markers)}")
        return True

    def _on_document_event(self, event: Any) -> None:
        self.dispatch(event)

    # --- Dispatch loop ---

    def resolve(self, event: Any) -> Optional[ResolvedAction]:
        """Find the marked ancestor of the event target and its action name."""
        marker = self._markers.get(getattr(event, "type", None))
        if marker is None:
            return None
        closest = getattr(getattr(event, "target", None), "closest", None)
        if closest is None:
            return None
        element = closest(marker)
        if element is None:
            return None

        action = element.get_attribute(marker)
        if not action:
            self._logger.debug(f"Ignoring {marker} with empty value on {element!r}")
            return None
        return ResolvedAction(action, element)

    def invoke(self, action: str, element: Optional[ElementPort], event: Any) -> DispatchResult:
        """Run the handler for ``action`` and contain any failure."""
        if not _is_valid_action_name(action):
            self._logger.warning(f"Refusing to invoke invalid action name {action!r}")
            return DispatchResult(outcome=DispatchOutcome.INVALID_INPUT, error="invalid action name")
        handler = self._handlers.get(action)
        if handler is None:
            self._logger.warning(f"No handler registered for action: {action}")
            return DispatchResult(outcome=DispatchOutcome.MISSING_HANDLER, action=action)

        self._logger.debug(f"Executing handler for action: {action}")
        try:
            handler(element, event)
        except Exception as exc:
            self._logger.exception(f"Handler failed for action '{action}'", exc_info=exc)
            return DispatchResult(
                outcome=DispatchOutcome.HANDLER_ERROR,
                action=action,
                error=f"{type(exc).__name__}: {exc}",
            )
        return DispatchResult(outcome=DispatchOutcome.HANDLED, action=action)

    def dispatch(self, event: Any) -> DispatchResult:
        """Resolve and invoke for a single DOM event."""
        resolved = self.resolve(event)
        if resolved is None:
            return _NO_TARGET
        return self.invoke(resolved.action, resolved.element, event)

    def trigger(self, action: str, data: Any = None) -> DispatchResult:
        """Invoke a handler programmatically with a synthetic event.

        The handler receives ``(None, event)`` where ``event.data`` is ``data``.
        """
        if _is_valid_action_name(action) and action not in self._handlers:
            self._logger.warning(f"Cannot trigger unregistered action: {action}")
            return DispatchResult(outcome=DispatchOutcome.MISSING_HANDLER, action=action)

        self._logger.debug(f"Triggering action programmatically: {action}")
        return self.invoke(action, None, events.create_synthetic_event(data))

    # --- Registry ---

    def register(self, action: str, handler: ActionHandler, context: Any = None) -> bool:
        """Register ``handler`` under ``action``, replacing any previous one.

        With ``context`` the handler is called as ``handler(context, element, event)``.

        Returns:
            False if the name or handler was rejected
        """
        if not _is_valid_action_name(action):
            self._logger.error(f"Action name must be a non-empty string, got {action!r}")
            return False
        if not callable(handler):
            self._logger.error(f"Handler for '{action}' must be callable")
            return False

        self._handlers[action] = functools.partial(handler, context) if context is not None else handler
        self._logger.debug(f"Registered handler for action: {action}")
        return True

    def register_multiple(self, handlers: Mapping[str, ActionHandler], context: Any = None) -> None:
        """Register several handlers at once."""
        for action, handler in handlers.items():
            self.register(action, handler, context)

    def unregister(self, action: str) -> bool:
        """Remove the handler for ``action``. Returns False if none was registered."""
        if _is_valid_action_name(action) and action in self._handlers:
            del self._handlers[action]
            self._logger.debug(f"Unregistered handler for action: {action}")
            return True
        self._logger.warning(f"No handler found for action: {action}")
        return False

    def has_handler(self, action: str) -> bool:
        return _is_valid_action_name(action) and action in self._handlers

    def get_registered_actions(self) -> List[str]:
        return list(self._handlers.keys())

    def get_handler_count(self) -> int:
        return len(self._handlers)

    def clear_all(self) -> None:
        """Remove all registered handlers; listeners stay installed."""
        count = len(self._handlers)
        self._handlers.clear()
        self._logger.debug(f"Cleared {count} handlers")


class LegacyEventDelegation:
    """Adapter exposing the older ``EventDelegation`` interface."""

    def __init__(self, dispatcher: ActionDispatcher) -> None:
        self._dispatcher = dispatcher

    @property
    def handlers(self) -> Mapping[str, ActionHandler]:
        return self._dispatcher.handlers

    def register_handler(self, action: str, handler: ActionHandler) -> None:
        self._dispatcher.register(action, handler)

    def execute_action(self, action: str, element: Optional[ElementPort] = None) -> DispatchResult:
        """Run a handler for ``element`` without a DOM event."""
        return self._dispatcher.invoke(action, element, events.create_synthetic_event())
