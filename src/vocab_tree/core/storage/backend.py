"""Key-value store backends: in-memory and SQLite."""

import sqlite3
from pathlib import Path

from loguru import logger

from vocab_tree.config import DB_FILENAME, DEFAULT_QUOTA_CHARS

SCHEMA_VERSION = 1

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS storage (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


class StorageError(RuntimeError):
    """The store rejected a read or write."""


class QuotaExceededError(StorageError):
    """A write would push the store past its quota."""


def _check_quota(used: int, key: str, old: str | None, value: str, quota: int | None) -> None:
    if quota is None:
        return
    old_size = len(key) + len(old) if old is not None else 0
    new_used = used - old_size + len(key) + len(value)
    if new_used > quota:
        msg = f"Quota exceeded writing {key!r}: {new_used} > {quota} characters"
        raise QuotaExceededError(msg)


class MemoryStorage:
    """Dict-backed store, sized like browser local storage."""

    def __init__(self, *, quota_chars: int | None = DEFAULT_QUOTA_CHARS) -> None:
        self.quota_chars = quota_chars
        self._data: dict[str, str] = {}

    def _used(self) -> int:
        return sum(len(k) + len(v) for k, v in self._data.items())

    def get_item(self, key: str) -> str | None:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        _check_quota(self._used(), key, self._data.get(key), value, self.quota_chars)
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


def create_schema(conn: sqlite3.Connection) -> None:
    """Create the storage and metadata tables."""
    conn.executescript(_SCHEMA_SQL)
    conn.execute(
        "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
        ("schema_version", str(SCHEMA_VERSION)),
    )
    conn.commit()


def get_schema_version(conn: sqlite3.Connection) -> int | None:
    """Return the current schema version, or None if metadata table doesn't exist."""
    try:
        row = conn.execute("SELECT value FROM metadata WHERE key = 'schema_version'").fetchone()
    except sqlite3.OperationalError:
        return None
    return int(row[0]) if row else None


def migrate_schema(conn: sqlite3.Connection) -> None:
    """Create or migrate the database schema to the latest version."""
    version = get_schema_version(conn)
    if version is None:
        create_schema(conn)


class SqliteStorage:
    """Durable key-value store in a single SQLite table.

    Every write commits on its own; a failed write is rolled back, so the
    previous value of the key stays in place.
    """

    def __init__(
        self, conn: sqlite3.Connection, *, quota_chars: int | None = DEFAULT_QUOTA_CHARS
    ) -> None:
        self.conn = conn
        self.quota_chars = quota_chars
        migrate_schema(conn)

    def _used(self) -> int:
        row = self.conn.execute(
            "SELECT COALESCE(SUM(LENGTH(key) + LENGTH(value)), 0) FROM storage"
        ).fetchone()
        return int(row[0])

    def get_item(self, key: str) -> str | None:
        row = self.conn.execute("SELECT value FROM storage WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        _check_quota(self._used(), key, self.get_item(key), value, self.quota_chars)
        try:
            self.conn.execute(
                "INSERT OR REPLACE INTO storage (key, value) VALUES (?, ?)",
                (key, value),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            msg = f"Failed to write {key!r}: {e}"
            raise StorageError(msg) from e

    def remove_item(self, key: str) -> None:
        try:
            self.conn.execute("DELETE FROM storage WHERE key = ?", (key,))
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            msg = f"Failed to remove {key!r}: {e}"
            raise StorageError(msg) from e

    def keys(self) -> list[str]:
        return [r[0] for r in self.conn.execute("SELECT key FROM storage ORDER BY key")]

    def close(self) -> None:
        self.conn.close()


def open_storage(data_dir: Path, *, quota_chars: int | None = DEFAULT_QUOTA_CHARS) -> SqliteStorage:
    """Open (creating if needed) the store in data_dir."""
    data_dir.mkdir(parents=True, exist_ok=True)
    db_path = data_dir / DB_FILENAME
    logger.debug("Opening storage at {}", db_path)
    return SqliteStorage(sqlite3.connect(str(db_path)), quota_chars=quota_chars)
