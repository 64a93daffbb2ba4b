"""Snapshot storage adapters (memory, DuckDB)."""

from storefront.shared.infrastructure.persistence.storage import (
    MemoryStorage,
    StorageError,
    StorageQuotaExceededError,
    StorageUnavailableError,
    build_storage,
)
from storefront.shared.infrastructure.persistence.duckdb_storage import DuckDBStorage

__all__ = [
    "DuckDBStorage",
    "MemoryStorage",
    "StorageError",
    "StorageQuotaExceededError",
    "StorageUnavailableError",
    "build_storage",
]
