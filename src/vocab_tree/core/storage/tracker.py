"""Track writes to the store by stamping a last-change timestamp.

A backup collaborator compares this timestamp with the one it recorded at
export time to detect changes since. Every write to a tracked record must go
through tracked_set_item / tracked_remove_item.
"""

import time

from loguru import logger

from vocab_tree.config import (
    LAST_CHANGE_TIMESTAMP_KEY,
    STORAGE_KEY_COUNTS,
    STORAGE_KEY_FILE_PREFIX,
    STORAGE_KEY_TREE,
)
from vocab_tree.core.storage.backend import StorageError
from vocab_tree.protocols import StorageProtocol

TRACKED_KEY_PREFIXES: tuple[str, ...] = (STORAGE_KEY_FILE_PREFIX,)
TRACKED_KEY_EXACT: frozenset[str] = frozenset({STORAGE_KEY_TREE, STORAGE_KEY_COUNTS})


def should_track_key(key: str) -> bool:
    if key == LAST_CHANGE_TIMESTAMP_KEY:
        return False
    if key in TRACKED_KEY_EXACT:
        return True
    return key.startswith(TRACKED_KEY_PREFIXES)


def update_last_change_timestamp(storage: StorageProtocol, timestamp: int | None = None) -> None:
    """Set the last change timestamp (ms since epoch), defaulting to now."""
    value = timestamp if timestamp is not None else int(time.time() * 1000)
    storage.set_item(LAST_CHANGE_TIMESTAMP_KEY, str(value))


def get_last_change_timestamp(storage: StorageProtocol) -> int | None:
    raw = storage.get_item(LAST_CHANGE_TIMESTAMP_KEY)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _mark_changed(storage: StorageProtocol, key: str) -> None:
    if not should_track_key(key):
        return
    try:
        update_last_change_timestamp(storage)
    except StorageError:
        # The record itself is written; only change detection is degraded.
        logger.warning("Could not stamp last change after writing {!r}", key)


def tracked_set_item(storage: StorageProtocol, key: str, value: str) -> None:
    """Write a record and mark the store as changed. Errors propagate."""
    storage.set_item(key, value)
    _mark_changed(storage, key)


def tracked_remove_item(storage: StorageProtocol, key: str) -> None:
    """Remove a record and mark the store as changed. Errors propagate."""
    storage.remove_item(key)
    _mark_changed(storage, key)
