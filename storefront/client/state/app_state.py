"""Application State Management.

Single source of truth for authentication, view/navigation and admin data.
State lives in one nested dict addressed by dot-delimited paths
(``"user.isAuthenticated"``, ``"view.current"``). Every write is persisted
as a JSON snapshot and then announced synchronously to the subscribers of
that path.
"""

from __future__ import annotations

import copy
import itertools
import json
import logging
import re
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional, Tuple

from storefront.shared.core.configuration import StoreConfig
from storefront.shared.core.ports import StoragePort

logger = logging.getLogger(__name__)

Subscriber = Callable[..., None]
Unsubscribe = Callable[[], None]

ROOT_PATTERN = "*"

DEFAULT_STATE: Dict[str, Any] = {
    "user": {
        "isAuthenticated": False,
        "isAdmin": False,
        "email": "",
        "uid": "",
    },
    "view": {
        "current": "homeView",
        "previous": None,
        "history": [],
    },
    "modal": {
        "active": None,
        "data": None,
        "history": [],
    },
    "i18n": {
        "currentLanguage": "es",
        "availableLanguages": ["es", "en"],
    },
    "notifications": {
        "queue": [],
        "unreadCount": 0,
    },
    "admin": {
        "stats": None,
    },
    "settings": {},
}


@dataclass(eq=False)
class Subscription:
    id: int
    path: str
    handler: Subscriber
    active: bool = True


@dataclass(frozen=True)
class StateChange:
    path: str
    old_value: Any
    new_value: Any
    kind: str = "set"
    at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def _noop_unsubscribe() -> None:
    pass


def parse_path(path: Any) -> Optional[List[str]]:
    """Split a dotted path into segments; None if the path is malformed."""
    if not isinstance(path, str):
        return None
    parts = path.split(".")
    if any(not part.strip() for part in parts):
        return None
    return parts


@lru_cache(maxsize=256)
def _wildcard_regex(pattern: str) -> re.Pattern[str]:
    # "*" matches one or more whole segments
    segments = [".+" if segment == "*" else re.escape(segment) for segment in pattern.split(".")]
    return re.compile("^" + r"\.".join(segments) + "$")


def matches_wildcard(path: str, pattern: str) -> bool:
    return _wildcard_regex(pattern).match(path) is not None


def _lookup(tree: Mapping[str, Any], parts: List[str]) -> Tuple[bool, Any]:
    current: Any = tree
    for part in parts:
        if not isinstance(current, dict) or part not in current:
            return False, None
        current = current[part]
    return True, current


def _snapshot(value: Any) -> Any:
    try:
        return copy.deepcopy(value)
    except Exception as exc:
        logger.debug(f"Keeping uncopyable value by reference in history: {exc}")
        return value


def _merge_persisted(base: Dict[str, Any], persisted: Mapping[str, Any]) -> None:
    """Overlay a persisted snapshot on the defaults.

    Persisted leaves win; default branches are kept when the snapshot holds
    a non-mapping in their place.
    """
    for key, value in persisted.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            _merge_persisted(current, value)
        elif isinstance(current, dict):
            logger.warning(f"Ignoring persisted value for '{key}': expected a mapping")
        else:
            base[key] = value


class AppState:
    """Path-addressable reactive state store.

    All operations are synchronous. A subscriber may write other paths from
    inside its callback; a subscriber that writes its own path recurses and
    must guard against that itself.

    Old values delivered to subscribers use ``None`` for "no previous value".
    """

    def __init__(
        self,
        storage: Optional[StoragePort] = None,
        config: Optional[StoreConfig] = None,
        defaults: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Initialize the store with its default shape.

        Args:
            storage: Snapshot storage, None runs memory-only
            config: Store settings (storage key, history size, snapshot ceiling)
            defaults: Compiled-in default tree, ``DEFAULT_STATE`` when omitted
        """
        self.config = config or StoreConfig()
        self.storage_key = self.config.storage_key
        self._storage = storage
        self._defaults: Dict[str, Any] = copy.deepcopy(dict(defaults if defaults is not None else DEFAULT_STATE))
        self._state: Dict[str, Any] = copy.deepcopy(self._defaults)

        self._exact: Dict[str, Dict[int, Subscription]] = {}
        self._wildcard: Dict[str, Dict[int, Subscription]] = {}
        self._root: Dict[int, Subscription] = {}
        self._ids = itertools.count(1)

        self._history: Deque[StateChange] = deque(maxlen=self.config.history_limit)
        self._metrics: Dict[str, int] = {
            "set_calls": 0,
            "get_calls": 0,
            "subscriber_calls": 0,
            "persist_failures": 0,
        }
        self._debug = self.config.debug
        self._storage_degraded = False
        self._started = False

    @property
    def storage(self) -> Optional[StoragePort]:
        return self._storage

    @property
    def is_initialized(self) -> bool:
        return self._started

    def initialize(self) -> bool:
        """Hydrate state from the persisted snapshot.

        Safe to call repeatedly: only the first call reads storage, later
        calls leave state and subscriptions untouched.

        Returns:
            True if this call performed the initialization
        """
        if self._started:
            return False

        self._load_persisted()
        self._started = True
        if self._debug:
            logger.debug(f"AppState initialized with keys: {', '.join(self._state)}")
        return True

    # --- Reads ---

    def get_state(self, path: Optional[str] = None, default: Any = None) -> Any:
        """Read the value at ``path``.

        Args:
            path: Dotted path; None returns a deep copy of the whole tree
            default: Returned when any segment is missing or the path is malformed

        Returns:
            The live value at ``path``. Treat it as read-only.
        """
        self._metrics["get_calls"] += 1
        if path is None:
            return copy.deepcopy(self._state)

        parts = parse_path(path)
        if parts is None:
            logger.debug(f"get_state() - invalid path: {path!r}")
            return default

        found, value = _lookup(self._state, parts)
        return value if found else default

    def has_path(self, path: str) -> bool:
        parts = parse_path(path)
        return parts is not None and _lookup(self._state, parts)[0]

    # --- Writes ---

    def set_state(self, path: str, value: Any, silent: bool = False) -> None:
        """Write ``value`` at ``path``, persist, then notify subscribers.

        Missing intermediate mappings are created. Malformed paths are
        logged and ignored. Storage failures never abort the write.

        Args:
            path: Dotted path
            value: New value (stored by reference)
            silent: Skip subscriber notification
        """
        parts = parse_path(path)
        if parts is None:
            logger.warning(f"set_state() - invalid path: {path!r}")
            return

        self._metrics["set_calls"] += 1
        old_value = self._write(parts, value)
        self._record(path, old_value, value, "set")
        if self._debug:
            logger.debug(f"set_state('{path}') {old_value!r} -> {value!r}")

        self._persist()
        if not silent:
            self._notify(path, value, old_value)

    def batch_update(self, updates: Mapping[str, Any]) -> None:
        """Apply several writes with a single persist, then notify each path once."""
        changed: List[Tuple[str, Any, Any]] = []
        for path, value in updates.items():
            parts = parse_path(path)
            if parts is None:
                logger.warning(f"batch_update() - skipping invalid path: {path!r}")
                continue
            self._metrics["set_calls"] += 1
            old_value = self._write(parts, value)
            self._record(path, old_value, value, "batch")
            changed.append((path, value, old_value))

        if not changed:
            return
        self._persist()
        for path, value, old_value in changed:
            self._notify(path, value, old_value)

    def reset_state(self, path: Optional[str] = None) -> None:
        """Restore defaults for ``path``, or for the whole tree when omitted."""
        if path is None:
            previous = self._state
            self._state = copy.deepcopy(self._defaults)
            self._record(ROOT_PATTERN, None, None, "reset")
            self._persist()
            for key in list(dict.fromkeys([*self._state, *previous])):
                self._notify(key, self._state.get(key), previous.get(key))
            return

        parts = parse_path(path)
        if parts is None:
            logger.warning(f"reset_state() - invalid path: {path!r}")
            return

        found, initial = _lookup(self._defaults, parts)
        if found:
            initial = copy.deepcopy(initial)
            old_value = self._write(parts, initial)
        else:
            old_value = self._delete(parts)
        self._record(path, old_value, initial, "reset")
        self._persist()
        self._notify(path, initial, old_value)

    def _write(self, parts: List[str], value: Any) -> Any:
        node = self._state
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                if child is not None:
                    logger.warning(f"Replacing non-mapping value at '{part}' to write {'.'.join(parts)}")
                child = {}
                node[part] = child
            node = child
        leaf = parts[-1]
        old_value = node.get(leaf)
        node[leaf] = value
        return old_value

    def _delete(self, parts: List[str]) -> Any:
        found, parent = _lookup(self._state, parts[:-1])
        if not found or not isinstance(parent, dict):
            return None
        return parent.pop(parts[-1], None)

    def _record(self, path: str, old_value: Any, new_value: Any, kind: str) -> None:
        # History holds copies so later in-place mutation of stored values cannot rewrite it
        self._history.append(StateChange(path, _snapshot(old_value), _snapshot(new_value), kind))

    # --- Subscriptions ---

    def subscribe(self, path: str, handler: Subscriber) -> Unsubscribe:
        """Call ``handler`` whenever ``path`` is written.

        Exact paths deliver ``(new_value, old_value)``. Patterns containing
        ``*`` segments, and ``"*"`` alone for every write, deliver
        ``(new_value, old_value, path)``.

        Returns:
            A function removing only this registration
        """
        if not isinstance(path, str) or not path.strip():
            logger.warning(f"subscribe() - invalid path: {path!r}")
            return _noop_unsubscribe
        if not callable(handler):
            logger.warning(f"subscribe() - handler for '{path}' must be callable")
            return _noop_unsubscribe

        if path == ROOT_PATTERN:
            bucket = self._root
        elif "*" in path:
            bucket = self._wildcard.setdefault(path, {})
        elif parse_path(path) is None:
            logger.warning(f"subscribe() - invalid path: {path!r}")
            return _noop_unsubscribe
        else:
            bucket = self._exact.setdefault(path, {})

        subscription = Subscription(next(self._ids), path, handler)
        bucket[subscription.id] = subscription
        if self._debug:
            logger.debug(f"Subscribed #{subscription.id} to '{path}'")

        def unsubscribe() -> None:
            self._remove_subscription(subscription)

        return unsubscribe

    def _remove_subscription(self, subscription: Subscription) -> None:
        if not subscription.active:
            return
        subscription.active = False

        path = subscription.path
        if path == ROOT_PATTERN:
            self._root.pop(subscription.id, None)
            return
        registry = self._wildcard if "*" in path else self._exact
        bucket = registry.get(path)
        if bucket is None:
            return
        bucket.pop(subscription.id, None)
        if not bucket:
            del registry[path]

    def subscriber_count(self, path: Optional[str] = None) -> int:
        if path is None:
            return (
                len(self._root)
                + sum(len(b) for b in self._exact.values())
                + sum(len(b) for b in self._wildcard.values())
            )
        if path == ROOT_PATTERN:
            return len(self._root)
        registry = self._wildcard if "*" in path else self._exact
        return len(registry.get(path, {}))

    def _notify(self, path: str, new_value: Any, old_value: Any) -> None:
        exact = list(self._exact.get(path, {}).values())
        pattern_matched = [
            subscription
            for pattern, bucket in self._wildcard.items()
            if matches_wildcard(path, pattern)
            for subscription in bucket.values()
        ]
        pattern_matched.extend(self._root.values())

        for subscription in exact:
            self._call(subscription, path, (new_value, old_value))
        for subscription in pattern_matched:
            self._call(subscription, path, (new_value, old_value, path))

        if self._debug:
            logger.debug(f"Notified {len(exact) + len(pattern_matched)} subscriber(s) for '{path}'")

    def _call(self, subscription: Subscription, path: str, args: Tuple[Any, ...]) -> None:
        # Skip handlers removed by an earlier handler in this same notification
        if not subscription.active:
            return
        self._metrics["subscriber_calls"] += 1
        try:
            subscription.handler(*args)
        except Exception as exc:
            logger.exception(f"Subscriber #{subscription.id} failed for path '{path}'", exc_info=exc)

    # --- Persistence ---

    def _load_persisted(self) -> None:
        if self._storage is None:
            logger.debug("No snapshot storage configured, using defaults")
            return

        try:
            raw = self._storage.get_item(self.storage_key)
        except Exception as exc:
            self._mark_storage_failure(f"Cannot read persisted state '{self.storage_key}': {exc}")
            return
        if not raw:
            return

        try:
            persisted = json.loads(raw)
        except (TypeError, ValueError) as exc:
            logger.warning(f"Discarding corrupted snapshot '{self.storage_key}': {exc}")
            self._discard_snapshot()
            return
        if not isinstance(persisted, dict):
            logger.warning(f"Discarding snapshot '{self.storage_key}': expected an object")
            self._discard_snapshot()
            return

        merged = copy.deepcopy(self._defaults)
        _merge_persisted(merged, persisted)
        self._state = merged
        logger.debug(f"Loaded persisted state from '{self.storage_key}'")

    def _discard_snapshot(self) -> None:
        try:
            self._storage.remove_item(self.storage_key)
        except Exception as exc:
            logger.debug(f"Could not remove corrupted snapshot: {exc}")

    def _persist(self) -> bool:
        if self._storage is None:
            return False

        try:
            serialized = json.dumps(self._state)
        except (TypeError, ValueError) as exc:
            self._metrics["persist_failures"] += 1
            logger.error(f"State is not JSON-serializable, keeping it in memory only: {exc}")
            return False

        size = len(serialized.encode("utf-8"))
        if size > self.config.max_snapshot_bytes:
            self._metrics["persist_failures"] += 1
            logger.warning(
                f"Snapshot too large ({size} bytes > {self.config.max_snapshot_bytes}), skipping persistence"
            )
            return False

        try:
            self._storage.set_item(self.storage_key, serialized)
        except Exception as exc:
            self._mark_storage_failure(f"Cannot persist state '{self.storage_key}', continuing memory-only: {exc}")
            return False

        if self._storage_degraded:
            logger.info("Snapshot storage recovered")
            self._storage_degraded = False
        return True

    def _mark_storage_failure(self, message: str) -> None:
        self._metrics["persist_failures"] += 1
        if self._storage_degraded:
            logger.debug(message)
            return
        self._storage_degraded = True
        logger.error(message)

    def clear_persisted_state(self) -> None:
        """Remove the snapshot from storage; in-memory state is kept."""
        if self._storage is None:
            return
        try:
            self._storage.remove_item(self.storage_key)
        except Exception as exc:
            self._mark_storage_failure(f"Cannot clear persisted state '{self.storage_key}': {exc}")

    # --- Introspection ---

    def get_state_history(self, limit: Optional[int] = None) -> List[StateChange]:
        """Most recent changes, oldest first."""
        history = list(self._history)
        if limit is not None:
            history = history[-limit:] if limit > 0 else []
        return history

    def set_debug_mode(self, enabled: bool) -> None:
        self._debug = bool(enabled)
        logger.info(f"AppState debug mode {'enabled' if self._debug else 'disabled'}")

    def get_metrics(self) -> Dict[str, int]:
        return {
            **self._metrics,
            "subscribers": self.subscriber_count(),
            "history_size": len(self._history),
        }
