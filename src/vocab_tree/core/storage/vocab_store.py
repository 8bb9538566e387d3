"""Persisted records: tree snapshot, per-file vocabulary, and count table.

The three record families are independent keys in the store and are kept in
agreement by the workspace. Readers here are tolerant: a missing or corrupt
record reads as empty. Writers report failure as False and leave the
previous value of the key in place.
"""

import json
from collections.abc import Callable
from typing import Any

from loguru import logger

from vocab_tree.config import STORAGE_KEY_COUNTS, STORAGE_KEY_FILE_PREFIX, STORAGE_KEY_TREE
from vocab_tree.core.codec import node_to_data, parse_vocab_entries, tree_from_data, vocab_items_to_data
from vocab_tree.core.storage.backend import StorageError
from vocab_tree.core.storage.tracker import tracked_remove_item, tracked_set_item
from vocab_tree.core.tree.utils import get_all_file_names
from vocab_tree.models.node import FolderNode, VocabItem
from vocab_tree.protocols import StorageProtocol

__all__ = ["VocabStore", "file_key", "get_all_file_names"]


def file_key(name: str) -> str:
    """Storage key of the vocabulary record for a file's addressing key."""
    return STORAGE_KEY_FILE_PREFIX + name


class VocabStore:
    """Read/write access to the persisted records."""

    def __init__(self, storage: StorageProtocol) -> None:
        self.storage = storage

    # --- raw helpers ---

    def _read_json(self, key: str) -> Any | None:
        raw = self.storage.get_item(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring unparsable record {!r}", key)
            return None

    def _write_json(self, key: str, data: Any) -> bool:
        # Serialize fully before touching the store.
        try:
            serialized = json.dumps(data, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.error("Failed to serialize {!r}: {}", key, e)
            return False
        try:
            tracked_set_item(self.storage, key, serialized)
        except StorageError as e:
            logger.error("Failed to save {!r}: {}", key, e)
            return False
        return True

    def _remove(self, key: str) -> bool:
        try:
            tracked_remove_item(self.storage, key)
        except StorageError as e:
            logger.error("Failed to remove {!r}: {}", key, e)
            return False
        return True

    # --- tree ---

    def load_tree(self) -> FolderNode | None:
        data = self._read_json(STORAGE_KEY_TREE)
        if data is None:
            return None
        try:
            return tree_from_data(data)
        except ValueError as e:
            logger.warning("Stored tree is malformed, ignoring it: {}", e)
            return None

    def save_tree(self, root: FolderNode) -> bool:
        return self._write_json(STORAGE_KEY_TREE, node_to_data(root))

    # --- vocabulary files ---

    def _parse_vocab_file(self, key: str) -> tuple[list[VocabItem], bool]:
        """Entries that could be read, and whether the record read cleanly."""
        if self.storage.get_item(file_key(key)) is None:
            return [], True
        data = self._read_json(file_key(key))
        if data is None:
            return [], False
        try:
            items, problems = parse_vocab_entries(data)
        except ValueError as e:
            logger.warning("Vocabulary record {!r} is malformed, reading as empty: {}", key, e)
            return [], False
        for problem in problems:
            logger.warning("Vocabulary record {!r}: {}", key, problem)
        return items, not problems

    def load_vocab_file(self, key: str) -> list[VocabItem]:
        """Readable entries of a file. Bad entries are skipped or repaired."""
        return self._parse_vocab_file(key)[0]

    def load_vocab_file_for_edit(self, key: str) -> list[VocabItem] | None:
        """Entries of a file, or None if the stored record did not read cleanly.

        Writing back a partially read record would lose the entries that
        could not be read, so editors must not do that.
        """
        items, clean = self._parse_vocab_file(key)
        return items if clean else None

    def save_vocab_file(self, key: str, entries: list[VocabItem]) -> bool:
        """Save a file's entries and refresh its count entry.

        A failed count update is logged and left for sync_all_vocab_counts.
        """
        if not self._write_json(file_key(key), vocab_items_to_data(entries)):
            return False
        if not self.set_vocab_count(key, len(entries)):
            logger.warning("Count for {!r} may be stale", key)
        return True

    def copy_vocab_file(self, source: str, dest: str) -> bool:
        """Copy a stored record verbatim to another key and count it there."""
        raw = self.storage.get_item(file_key(source))
        if raw is None:
            return self.save_vocab_file(dest, [])
        try:
            tracked_set_item(self.storage, file_key(dest), raw)
        except StorageError as e:
            logger.error("Failed to save {!r}: {}", file_key(dest), e)
            return False
        if not self.set_vocab_count(dest, len(self.load_vocab_file(dest))):
            logger.warning("Count for {!r} may be stale", dest)
        return True

    def delete_vocab_file(self, key: str) -> bool:
        """Drop a file's entries and its count entry."""
        if not self._remove(file_key(key)):
            return False
        if not self.remove_vocab_count(key):
            logger.warning("Count for deleted file {!r} is left behind", key)
        return True

    def stored_file_keys(self) -> list[str]:
        """Addressing keys of every stored vocabulary record."""
        prefix = STORAGE_KEY_FILE_PREFIX
        return sorted(k[len(prefix) :] for k in self.storage.keys() if k.startswith(prefix))

    # --- counts ---

    def load_vocab_counts(self) -> dict[str, int]:
        data = self._read_json(STORAGE_KEY_COUNTS)
        if not isinstance(data, dict):
            return {}
        return {k: v for k, v in data.items() if isinstance(v, int) and not isinstance(v, bool)}

    def save_vocab_counts(self, counts: dict[str, int]) -> bool:
        """Persist the count table. An unchanged table is not rewritten."""
        if self._read_json(STORAGE_KEY_COUNTS) == counts:
            return True
        return self._write_json(STORAGE_KEY_COUNTS, counts)

    def set_vocab_count(self, key: str, count: int) -> bool:
        counts = self.load_vocab_counts()
        if counts.get(key) == count:
            return True
        counts[key] = count
        return self.save_vocab_counts(counts)

    def remove_vocab_count(self, key: str) -> bool:
        counts = self.load_vocab_counts()
        if key not in counts:
            return True
        del counts[key]
        return self.save_vocab_counts(counts)

    def recompute_counts(
        self,
        root: FolderNode,
        content_lookup: Callable[[str], list[VocabItem]] | None = None,
    ) -> dict[str, int]:
        """Derive the count table from actual content lengths."""
        lookup = content_lookup or self.load_vocab_file
        return {name: len(lookup(name)) for name in get_all_file_names(root)}

    def sync_all_vocab_counts(self, root: FolderNode | None = None) -> dict[str, int] | None:
        """Rebuild the persisted counts from content.

        Uses the persisted tree when root is not given. Returns the new
        table, or None if it could not be saved.
        """
        tree = root if root is not None else self.load_tree()
        if tree is None:
            logger.debug("No tree stored, nothing to count")
            return None
        counts = self.recompute_counts(tree)
        if not self.save_vocab_counts(counts):
            return None
        logger.debug("Synced counts for {} files", len(counts))
        return counts

    def counts_are_stale(self, root: FolderNode) -> bool:
        """True if the persisted counts disagree with the content."""
        return self.load_vocab_counts() != self.recompute_counts(root)

    # --- drift ---

    def find_orphaned_files(self, root: FolderNode) -> list[str]:
        """Stored vocabulary records no file in the tree addresses."""
        reachable = set(get_all_file_names(root))
        return [k for k in self.stored_file_keys() if k not in reachable]

    def purge_orphaned_files(self, root: FolderNode) -> int:
        """Delete unreachable vocabulary records. Returns how many went."""
        removed = 0
        for key in self.find_orphaned_files(root):
            if self.delete_vocab_file(key):
                removed += 1
        if removed:
            logger.info("Purged {} orphaned vocabulary records", removed)
        return removed
