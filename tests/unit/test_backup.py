"""Tests for whole-store backup and restore."""

import pytest

from vocab_tree.core.backup import create_backup, has_changes_since, restore_backup
from vocab_tree.core.storage.backend import MemoryStorage
from vocab_tree.core.storage.tracker import get_last_change_timestamp, update_last_change_timestamp
from vocab_tree.core.storage.vocab_store import VocabStore
from vocab_tree.core.write.workspace import VocabularyWorkspace
from vocab_tree.models.node import VocabItem


def test_backup_holds_tracked_records_only(workspace: VocabularyWorkspace, storage: MemoryStorage) -> None:
    storage.set_item("theme", "dark")
    payload = create_backup(storage)
    assert "theme" not in payload["records"]
    assert "wordly_last_change_timestamp" not in payload["records"]
    assert "wordly_tree" in payload["records"]
    assert "wordly_vocab_file:vocab1.txt" in payload["records"]
    assert payload["lastChange"] == get_last_change_timestamp(storage)


def test_has_changes_since() -> None:
    s = MemoryStorage()
    assert not has_changes_since(s, None)
    update_last_change_timestamp(s, 1000)
    assert has_changes_since(s, None)
    assert has_changes_since(s, 999)
    assert not has_changes_since(s, 1000)


def test_restore_replaces_tracked_records(workspace: VocabularyWorkspace, storage: MemoryStorage) -> None:
    payload = create_backup(storage)
    workspace.create_file([workspace.tree.id], "later.txt")
    workspace.add_entry(workspace.resolve("later.txt") or [], VocabItem("later"))

    count = restore_backup(storage, payload)
    assert count == len(payload["records"])
    assert get_last_change_timestamp(storage) == payload["lastChange"]
    assert not has_changes_since(storage, payload["lastChange"])

    restored = VocabularyWorkspace(VocabStore(storage))
    assert "later.txt" not in restored.file_names()
    assert restored.store.stored_file_keys() == ["vocab1.txt", "vocab2.txt", "vocab3.txt", "vocab4.txt"]


@pytest.mark.parametrize(
    "payload",
    [None, {"version": "1.0"}, {"records": {"theme": "dark"}}, {"records": {"wordly_tree": 5}}],
)
def test_restore_rejects_bad_payload(payload: object) -> None:
    s = MemoryStorage()
    s.set_item("wordly_tree", "{}")
    with pytest.raises(ValueError):
        restore_backup(s, payload)
    assert s.get_item("wordly_tree") == "{}"


def test_opening_a_workspace_does_not_count_as_a_change(
    workspace: VocabularyWorkspace, storage: MemoryStorage
) -> None:
    timestamp = get_last_change_timestamp(storage)
    VocabularyWorkspace(VocabStore(storage)).sync_counts()
    assert not has_changes_since(storage, timestamp)


def test_restore_then_reopen_matches_the_backup(workspace: VocabularyWorkspace, storage: MemoryStorage) -> None:
    payload = create_backup(storage)
    workspace.delete([workspace.tree.id, workspace.tree.children[0].id])

    restore_backup(storage, payload)
    VocabularyWorkspace(VocabStore(storage)).sync_counts()
    assert not has_changes_since(storage, payload["lastChange"])
