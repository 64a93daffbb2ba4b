"""DuckDB key-value storage for state snapshots.

Persists snapshots in a single ``kv_store`` table so state survives
process restarts the way browser local storage survives page loads.
"""

import logging
from pathlib import Path
from typing import List, Optional

import duckdb

from storefront.shared.infrastructure.persistence.storage import (
    StorageError,
    StorageUnavailableError,
)

logger = logging.getLogger(__name__)


class DuckDBStorage:
    """Synchronous key-value storage backed by a DuckDB database."""

    def __init__(self, db_path: Optional[str] = None):
        # No path means an in-memory database, useful for tests and demos
        self.db_path = db_path or ":memory:"
        self.conn: Optional[duckdb.DuckDBPyConnection] = None
        self._connect()

    def _connect(self) -> None:
        try:
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self.conn = duckdb.connect(self.db_path)
            self._create_schema()
        except (OSError, duckdb.Error) as e:
            self.conn = None
            raise StorageUnavailableError(f"Cannot open {self.db_path}: {e}") from e
        logger.info(f"Snapshot storage initialized: {self.db_path}")

    def _create_schema(self) -> None:
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key VARCHAR PRIMARY KEY,
                value VARCHAR NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    def _require_conn(self) -> duckdb.DuckDBPyConnection:
        if self.conn is None:
            raise StorageUnavailableError("DuckDB storage is closed")
        return self.conn

    def get_item(self, key: str) -> Optional[str]:
        conn = self._require_conn()
        try:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        except duckdb.Error as e:
            raise StorageError(f"Failed to read {key!r}: {e}") from e
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        conn = self._require_conn()
        try:
            conn.execute("""
                INSERT INTO kv_store (key, value) VALUES (?, ?)
                ON CONFLICT (key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP
            """, (key, str(value)))
        except duckdb.Error as e:
            raise StorageError(f"Failed to write {key!r}: {e}") from e

    def remove_item(self, key: str) -> None:
        conn = self._require_conn()
        try:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        except duckdb.Error as e:
            raise StorageError(f"Failed to remove {key!r}: {e}") from e

    def keys(self) -> List[str]:
        conn = self._require_conn()
        return [row[0] for row in conn.execute("SELECT key FROM kv_store ORDER BY key").fetchall()]

    def close(self) -> None:
        """Close the connection; later calls raise StorageUnavailableError."""
        if self.conn is not None:
            self.conn.close()
            self.conn = None
            logger.debug(f"Snapshot storage closed: {self.db_path}")
