"""
Shared Infrastructure Module
=============================

Technical adapters for the collaborators the core consumes (document, storage).
"""

# DOM
from storefront.shared.infrastructure.dom import Document, DomEvent, Element

# Persistence
from storefront.shared.infrastructure.persistence import (
    DuckDBStorage,
    MemoryStorage,
    StorageError,
    StorageQuotaExceededError,
    StorageUnavailableError,
    build_storage,
)

__all__ = [
    # DOM
    "Document",
    "DomEvent",
    "Element",
    # Persistence
    "DuckDBStorage",
    "MemoryStorage",
    "StorageError",
    "StorageQuotaExceededError",
    "StorageUnavailableError",
    "build_storage",
]
