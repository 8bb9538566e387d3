"""Whole-store backup and restore of the tracked records."""

from datetime import UTC, datetime
from typing import Any

from loguru import logger

from vocab_tree.config import TRANSFER_VERSION
from vocab_tree.core.storage.tracker import (
    get_last_change_timestamp,
    should_track_key,
    tracked_remove_item,
    tracked_set_item,
    update_last_change_timestamp,
)
from vocab_tree.protocols import StorageProtocol


def create_backup(storage: StorageProtocol) -> dict[str, Any]:
    """Collect every tracked record, verbatim, with the last change stamp."""
    records: dict[str, str] = {}
    for key in sorted(storage.keys()):
        if not should_track_key(key):
            continue
        value = storage.get_item(key)
        if value is not None:
            records[key] = value
    return {
        "version": TRANSFER_VERSION,
        "exportDate": datetime.now(UTC).isoformat(timespec="seconds"),
        "lastChange": get_last_change_timestamp(storage),
        "records": records,
    }


def has_changes_since(storage: StorageProtocol, timestamp: int | None) -> bool:
    """True if the store changed after timestamp (or no backup was ever made)."""
    last_change = get_last_change_timestamp(storage)
    if last_change is None:
        return False
    if timestamp is None:
        return True
    return last_change > timestamp


def restore_backup(storage: StorageProtocol, payload: Any) -> int:
    """Replace the tracked records with those in payload.

    The last change stamp is set to the backup's, so a restored store does
    not look changed relative to that backup. Callers holding a workspace
    should reload it and sync counts afterwards. Returns the number of
    records written.

    Raises:
        ValueError: If payload is not a backup.
        StorageError: If the store rejects a write; the store may then hold
            a mix of old and restored records.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("records"), dict):
        msg = "Backup payload has no 'records' object"
        raise ValueError(msg)
    records: dict[str, Any] = payload["records"]
    bad_keys = [k for k, v in records.items() if not should_track_key(k) or not isinstance(v, str)]
    if bad_keys:
        msg = f"Backup contains unexpected records: {sorted(bad_keys)[:5]!r}"
        raise ValueError(msg)

    for key in storage.keys():
        if should_track_key(key) and key not in records:
            tracked_remove_item(storage, key)
    for key, value in records.items():
        tracked_set_item(storage, key, value)

    last_change = payload.get("lastChange")
    if isinstance(last_change, int):
        update_last_change_timestamp(storage, last_change)

    logger.info("Restored {} records from backup", len(records))
    return len(records)
