"""In-memory DOM used to host the dispatcher outside a browser.

Only what event delegation needs is modelled: attributes, a parent chain,
and a document root that runs capture-phase listeners before bubble-phase
ones.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional


EventListener = Callable[["DomEvent"], None]


class Element:
    """A node with attributes and a single parent."""

    def __init__(
        self,
        tag: str = "div",
        attributes: Optional[Dict[str, str]] = None,
        element_id: Optional[str] = None,
    ) -> None:
        self.tag = tag
        self.attributes: Dict[str, str] = dict(attributes or {})
        if element_id is not None:
            self.attributes["id"] = element_id
        self.parent: Optional[Element] = None
        self.children: List[Element] = []

    def __repr__(self) -> str:
        attrs = " ".join(f'{k}="{v}"' for k, v in self.attributes.items())
        return f"<{self.tag} {attrs}>" if attrs else f"<{self.tag}>"

    @property
    def id(self) -> Optional[str]:
        return self.attributes.get("id")

    def append_child(self, child: "Element") -> "Element":
        """Attach ``child`` under this element and return it."""
        if child.parent is not None:
            child.parent.remove_child(child)
        child.parent = self
        self.children.append(child)
        return child

    def remove_child(self, child: "Element") -> None:
        if child in self.children:
            self.children.remove(child)
            child.parent = None

    def get_attribute(self, name: str) -> Optional[str]:
        return self.attributes.get(name)

    def set_attribute(self, name: str, value: str) -> None:
        self.attributes[name] = str(value)

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    def remove_attribute(self, name: str) -> None:
        self.attributes.pop(name, None)

    def closest(self, attribute: str) -> Optional["Element"]:
        """Nearest element (self included) that carries ``attribute``."""
        node: Optional[Element] = self
        while node is not None:
            if attribute in node.attributes:
                return node
            node = node.parent
        return None


class DomEvent:
    """Interaction event delivered to document listeners."""

    def __init__(self, event_type: str, target: Optional[Element], data: Any = None) -> None:
        self.type = event_type
        self.target = target
        self.data = data
        self.default_prevented = False
        self.propagation_stopped = False

    def __repr__(self) -> str:
        return f"DomEvent(type={self.type!r}, target={self.target!r})"

    def prevent_default(self) -> None:
        self.default_prevented = True

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


class Document(Element):
    """Document root holding event listeners."""

    def __init__(self) -> None:
        super().__init__(tag="#document")
        self._capture_listeners: Dict[str, List[EventListener]] = {}
        self._bubble_listeners: Dict[str, List[EventListener]] = {}
        self.body = self.append_child(Element("body"))

    def _listeners(self, capture: bool) -> Dict[str, List[EventListener]]:
        return self._capture_listeners if capture else self._bubble_listeners

    def add_event_listener(
        self,
        event_type: str,
        listener: EventListener,
        capture: bool = False,
    ) -> None:
        """Register a listener; adding the same listener twice is ignored."""
        listeners = self._listeners(capture).setdefault(event_type, [])
        if listener not in listeners:
            listeners.append(listener)

    def remove_event_listener(
        self,
        event_type: str,
        listener: EventListener,
        capture: bool = False,
    ) -> None:
        listeners = self._listeners(capture).get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event_type: str, capture: Optional[bool] = None) -> int:
        """Count listeners for an event type, optionally per phase."""
        if capture is None:
            return len(self._capture_listeners.get(event_type, [])) + len(
                self._bubble_listeners.get(event_type, [])
            )
        return len(self._listeners(capture).get(event_type, []))

    def dispatch_event(self, event: DomEvent) -> bool:
        """Deliver ``event``: capture listeners first, then bubble listeners.

        Returns False when a listener called ``prevent_default``.
        """
        for capture in (True, False):
            for listener in list(self._listeners(capture).get(event.type, [])):
                listener(event)
                if event.propagation_stopped:
                    return not event.default_prevented
        return not event.default_prevented

    def click(self, target: Element) -> bool:
        return self.dispatch_event(DomEvent("click", target))

    def change(self, target: Element, value: Any = None) -> bool:
        return self.dispatch_event(DomEvent("change", target, data=value))

    def input(self, target: Element, value: Any = None) -> bool:
        return self.dispatch_event(DomEvent("input", target, data=value))
