"""Ports for the collaborators the core consumes (document and storage)."""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol


class StoragePort(Protocol):
    """Synchronous key-value storage. Any method may raise."""

    def get_item(self, key: str) -> Optional[str]: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> None: ...


class ElementPort(Protocol):
    """Element with attribute lookup and an ancestor walk."""

    def get_attribute(self, name: str) -> Optional[str]: ...
    def closest(self, attribute: str) -> Optional["ElementPort"]: ...


class DocumentPort(Protocol):
    """Document root that accepts capture-phase listeners."""

    def add_event_listener(
        self,
        event_type: str,
        listener: Callable[[Any], None],
        capture: bool = False,
    ) -> None: ...
