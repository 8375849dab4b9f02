"""SQLite-backed key/value blob store for the local-only deployment mode.

Updates:
  v0.1.2 - 2026-10-17 - Close connections after every call instead of only committing.
  v0.1.1 - 2026-09-06 - Wrap SQLite and JSON failures in PersistenceError.
  v0.1.0 - 2026-08-25 - Introduce single-table blob store for serialized record lists.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .exceptions import PersistenceError

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger("prompt_playground.local_storage")

PROMPTS_KEY = "saved_prompts"
PROJECTS_KEY = "saved_projects"
OUTPUTS_KEY = "saved_outputs"


@contextmanager
def _connect(db_path: Path) -> Iterator[sqlite3.Connection]:
    """Yield a configured SQLite connection; commit on success and always close it."""
    conn = sqlite3.connect(str(db_path))
    try:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL;")
        conn.execute("PRAGMA synchronous = NORMAL;")
        with conn:
            yield conn
    finally:
        conn.close()


class KeyValueBlobStore:
    """Persist whole JSON documents under string keys.

    Each write replaces the blob for its key atomically; there is no partial
    update path.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with _connect(self._db_path) as conn:
                conn.execute(
                    "CREATE TABLE IF NOT EXISTS kv_store ("
                    "key TEXT PRIMARY KEY, value TEXT NOT NULL, updated_at TEXT NOT NULL);"
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to initialise blob store at {self._db_path}") from exc

    @property
    def path(self) -> Path:
        return self._db_path

    def read_json(self, key: str) -> Any | None:
        """Return the decoded document stored under *key*, or None when absent."""
        try:
            with _connect(self._db_path) as conn:
                row = conn.execute("SELECT value FROM kv_store WHERE key = ?;", (key,)).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to read blob '{key}'") from exc
        if row is None:
            return None
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"Blob '{key}' is not valid JSON") from exc

    def write_json(self, key: str, value: Any) -> None:
        """Serialise *value* and replace the blob stored under *key*."""
        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise PersistenceError(f"Blob '{key}' is not JSON serialisable") from exc
        try:
            with _connect(self._db_path) as conn:
                conn.execute(
                    "INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET "
                    "value = excluded.value, updated_at = excluded.updated_at;",
                    (key, payload, datetime.now(UTC).isoformat()),
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to write blob '{key}'") from exc
        logger.debug("Blob written", extra={"key": key, "bytes": len(payload)})

    def delete(self, key: str) -> None:
        """Remove the blob stored under *key* if present."""
        try:
            with _connect(self._db_path) as conn:
                conn.execute("DELETE FROM kv_store WHERE key = ?;", (key,))
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to delete blob '{key}'") from exc


__all__ = ["KeyValueBlobStore", "OUTPUTS_KEY", "PROJECTS_KEY", "PROMPTS_KEY"]
