"""Key-value storage backends for persisted state snapshots."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from storefront.shared.core.configuration import StoreConfig
    from storefront.shared.core.ports import StoragePort

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base error raised by storage backends."""


class StorageUnavailableError(StorageError):
    """Storage cannot be reached or is disabled."""


class StorageQuotaExceededError(StorageError):
    """A write would exceed the backend's quota."""


class MemoryStorage:
    """Dict-backed storage with an optional byte quota.

    Behaves like browser local storage: values are strings, missing keys
    read as None.
    """

    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        self._items: Dict[str, str] = {}
        self.quota_bytes = quota_bytes

    def __len__(self) -> int:
        return len(self._items)

    def _used_bytes(self, excluding: Optional[str] = None) -> int:
        return sum(
            len(key.encode("utf-8")) + len(value.encode("utf-8"))
            for key, value in self._items.items()
            if key != excluding
        )

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        value = str(value)
        if self.quota_bytes is not None:
            needed = self._used_bytes(excluding=key) + len(key.encode("utf-8")) + len(value.encode("utf-8"))
            if needed > self.quota_bytes:
                raise StorageQuotaExceededError(
                    f"Writing {key!r} needs {needed} bytes, quota is {self.quota_bytes}"
                )
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._items.keys())

    def clear(self) -> None:
        self._items.clear()


def build_storage(config: "StoreConfig") -> Optional["StoragePort"]:
    """Create the storage backend named by ``config.storage_backend``.

    Returns None for the ``none`` backend; the store then runs memory-only.
    """
    backend = config.storage_backend
    if backend == "none":
        logger.info("Persistence disabled, state will not survive restarts")
        return None
    if backend == "memory":
        return MemoryStorage()
    if backend == "duckdb":
        from storefront.shared.infrastructure.persistence.duckdb_storage import DuckDBStorage

        try:
            return DuckDBStorage(config.storage_path)
        except StorageError as e:
            logger.error(f"DuckDB storage unavailable, running memory-only: {e}")
            return None
    raise ValueError(f"Unknown storage backend: {backend}")
