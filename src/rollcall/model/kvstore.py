"""Key-value storage for roster and attendance data.

Each store persists its whole structure as a single JSON text blob under an
application-chosen key. The blobs live in a Sqlite file with a single table:

## kv_store
key: TEXT primary key, e.g. `students` or `attendance`.
value: TEXT, a JSON document.
"""

from collections.abc import Iterator
import contextlib
import copy
import json
import logging
import pathlib
import sqlite3
from typing import Any, Optional


logger = logging.getLogger(__name__)

STUDENTS_KEY = "students"
ATTENDANCE_KEY = "attendance"

KV_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


class PersistenceError(Exception):
    """Error occurred when writing to the key-value store."""


class KeyValueStore:
    """Read and write text blobs in a Sqlite file."""

    db_path: pathlib.Path
    """Path to Sqlite database."""

    _pending: Optional[dict[str, str]]
    """Writes buffered by an open transaction, or None."""

    def __init__(self, db_path: pathlib.Path) -> None:
        """Set database path. The file is created on first write."""
        self.db_path = db_path
        self._pending = None

    @property
    def in_transaction(self) -> bool:
        """True while writes are buffered by transaction()."""
        return self._pending is not None

    def get_db_connection(self) -> sqlite3.Connection:
        """Get connection to the Sqlite database, creating the table if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            conn.execute(KV_TABLE_SCHEMA)
        except sqlite3.Error:
            conn.close()
            raise
        return conn

    def get(self, key: str) -> Optional[str]:
        """Get the text stored under key, or None if there is none.

        Raises sqlite3.Error if the file cannot be read.
        """
        if not self.db_path.exists():
            return None
        conn = self.get_db_connection()
        try:
            row = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?;", (key,)
            ).fetchone()
        finally:
            conn.close()
        return None if row is None else row["value"]

    def keys(self) -> list[str]:
        """All keys in the store."""
        if not self.db_path.exists():
            return []
        conn = self.get_db_connection()
        try:
            keys = [row["key"] for row in conn.execute("SELECT key FROM kv_store;")]
        finally:
            conn.close()
        return sorted(keys)

    def put(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value.

        Inside a transaction() block the write is buffered until the block
        exits.
        """
        if self._pending is not None:
            self._pending[key] = value
            return
        self._write({key: value})

    @contextlib.contextmanager
    def transaction(self) -> Iterator[None]:
        """Commit all put() calls made inside the block in one transaction.

        Nested blocks join the outermost one. If the block raises, buffered
        writes are discarded.
        """
        if self._pending is not None:
            yield
            return
        self._pending = {}
        try:
            yield
            pending = self._pending
        finally:
            self._pending = None
        if pending:
            self._write(pending)

    def _write(self, items: dict[str, str]) -> None:
        """Upsert all items in a single Sqlite transaction."""
        query = """
                INSERT INTO kv_store (key, value)
                     VALUES (?, ?)
                ON CONFLICT (key) DO UPDATE SET value = excluded.value;
        """
        try:
            with contextlib.closing(self.get_db_connection()) as conn:
                with conn:
                    conn.executemany(query, list(items.items()))
        except (sqlite3.Error, OSError) as err:
            raise PersistenceError(
                f"Unable to write {', '.join(items)} to {self.db_path}: {err}"
            ) from err
        logger.debug("Saved %s to %s", ", ".join(items), self.db_path)

    def load_json(self, key: str, default: Any) -> Any:
        """Decode the JSON document stored under key.

        Returns a copy of default if the key is missing, the database can't be
        read, the text is not valid JSON, or the decoded value is not the same
        type as default.
        """
        try:
            raw = self.get(key)
        except sqlite3.Error as err:
            logger.warning("Unable to read %s from %s: %s", key, self.db_path, err)
            return copy.deepcopy(default)
        if raw is None:
            return copy.deepcopy(default)
        try:
            value = json.loads(raw)
        except ValueError as err:
            logger.warning("Discarding corrupt %s data: %s", key, err)
            return copy.deepcopy(default)
        if not isinstance(value, type(default)):
            logger.warning(
                "Discarding %s data, expected %s but found %s",
                key,
                type(default).__name__,
                type(value).__name__,
            )
            return copy.deepcopy(default)
        return value

    def save_json(self, key: str, value: Any) -> None:
        """Encode value as JSON and store it under key."""
        self.put(key, json.dumps(value, ensure_ascii=False))
