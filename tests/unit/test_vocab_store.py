"""Tests for the persisted records: tree, vocabulary, counts."""

from tests.unit.fakes import PETS, FakeStorage
from vocab_tree.config import STORAGE_KEY_COUNTS, STORAGE_KEY_TREE
from vocab_tree.core.codec import node_to_data
from vocab_tree.core.storage.backend import MemoryStorage
from vocab_tree.core.storage.vocab_store import VocabStore, file_key
from vocab_tree.models.node import FileLeaf, FolderNode, VocabItem


def _tree() -> FolderNode:
    return FolderNode(
        id="root",
        label="Root",
        children=[
            FolderNode(id="a", label="Animals", children=[FileLeaf(id="p", name="pets.txt")]),
            FileLeaf(id="n", name="notes.txt"),
        ],
    )


def test_file_key() -> None:
    assert file_key("pets.txt") == "wordly_vocab_file:pets.txt"


def test_tree_round_trip(store: VocabStore) -> None:
    assert store.load_tree() is None
    assert store.save_tree(_tree())
    loaded = store.load_tree()
    assert loaded is not None
    assert node_to_data(loaded) == node_to_data(_tree())


def test_corrupt_tree_reads_as_missing(storage: MemoryStorage, store: VocabStore) -> None:
    storage.set_item(STORAGE_KEY_TREE, "{not json")
    assert store.load_tree() is None
    storage.set_item(STORAGE_KEY_TREE, '{"kind": "file", "id": "x", "name": "y"}')
    assert store.load_tree() is None


def test_save_vocab_file_updates_count(store: VocabStore) -> None:
    assert store.save_vocab_file("pets.txt", PETS)
    assert store.load_vocab_file("pets.txt") == PETS
    assert store.load_vocab_counts() == {"pets.txt": 3}


def test_missing_or_corrupt_vocab_reads_empty(storage: MemoryStorage, store: VocabStore) -> None:
    assert store.load_vocab_file("nothing.txt") == []
    storage.set_item(file_key("bad.txt"), "[oops")
    assert store.load_vocab_file("bad.txt") == []
    storage.set_item(file_key("shape.txt"), '{"word": "cat"}')
    assert store.load_vocab_file("shape.txt") == []


def test_delete_vocab_file_drops_content_and_count(store: VocabStore) -> None:
    store.save_vocab_file("pets.txt", PETS)
    store.save_vocab_file("notes.txt", [VocabItem("note")])
    assert store.delete_vocab_file("pets.txt")
    assert store.load_vocab_file("pets.txt") == []
    assert store.load_vocab_counts() == {"notes.txt": 1}
    assert store.stored_file_keys() == ["notes.txt"]


def test_failed_content_write_keeps_previous_value(fake_storage: FakeStorage) -> None:
    store = VocabStore(fake_storage)
    store.save_vocab_file("pets.txt", PETS)
    fake_storage.fail_set.add("wordly_vocab_file:")
    assert not store.save_vocab_file("pets.txt", [])
    assert store.load_vocab_file("pets.txt") == PETS
    assert store.load_vocab_counts() == {"pets.txt": 3}


def test_failed_count_write_still_saves_content(fake_storage: FakeStorage) -> None:
    store = VocabStore(fake_storage)
    fake_storage.fail_set.add(STORAGE_KEY_COUNTS)
    assert store.save_vocab_file("pets.txt", PETS)
    assert store.load_vocab_file("pets.txt") == PETS
    assert store.load_vocab_counts() == {}


def test_failed_remove_reports_false(fake_storage: FakeStorage) -> None:
    store = VocabStore(fake_storage)
    store.save_vocab_file("pets.txt", PETS)
    fake_storage.fail_remove.add("wordly_vocab_file:")
    assert not store.delete_vocab_file("pets.txt")
    assert store.load_vocab_file("pets.txt") == PETS


def test_counts_keep_only_integers(storage: MemoryStorage, store: VocabStore) -> None:
    storage.set_item(STORAGE_KEY_COUNTS, '{"a": 2, "b": "x", "c": true}')
    assert store.load_vocab_counts() == {"a": 2}
    storage.set_item(STORAGE_KEY_COUNTS, "[1, 2]")
    assert store.load_vocab_counts() == {}


def test_recompute_counts_with_lookup(store: VocabStore) -> None:
    counts = store.recompute_counts(_tree(), lambda name: [VocabItem("w")] * len(name))
    assert counts == {"pets.txt": 8, "notes.txt": 9}


def test_sync_rebuilds_counts_from_content(store: VocabStore) -> None:
    tree = _tree()
    store.save_tree(tree)
    store.save_vocab_file("pets.txt", PETS)
    store.save_vocab_counts({"pets.txt": 99, "gone.txt": 4})
    assert store.counts_are_stale(tree)

    counts = store.sync_all_vocab_counts()
    assert counts == {"pets.txt": 3, "notes.txt": 0}
    assert store.load_vocab_counts() == counts
    assert not store.counts_are_stale(tree)


def test_sync_without_tree_returns_none(store: VocabStore) -> None:
    assert store.sync_all_vocab_counts() is None


def test_sync_reports_failed_save(fake_storage: FakeStorage) -> None:
    store = VocabStore(fake_storage)
    fake_storage.fail_set.add(STORAGE_KEY_COUNTS)
    assert store.sync_all_vocab_counts(_tree()) is None


def test_orphans_are_found_and_purged(store: VocabStore) -> None:
    store.save_vocab_file("pets.txt", PETS)
    store.save_vocab_file("old.txt", [VocabItem("old")])
    assert store.find_orphaned_files(_tree()) == ["old.txt"]
    assert store.purge_orphaned_files(_tree()) == 1
    assert store.stored_file_keys() == ["pets.txt"]
    assert "old.txt" not in store.load_vocab_counts()


def test_bad_entries_do_not_hide_the_rest(storage: MemoryStorage, store: VocabStore) -> None:
    storage.set_item(
        file_key("pets.txt"),
        '[{"word": "cat", "wordClass": "noun"}, {"word": ""}, {"word": "tame", "type": "adj"}]',
    )
    assert store.load_vocab_file("pets.txt") == [VocabItem("cat", word_class="noun"), VocabItem("tame")]
    assert store.load_vocab_file_for_edit("pets.txt") is None


def test_load_for_edit(storage: MemoryStorage, store: VocabStore) -> None:
    assert store.load_vocab_file_for_edit("nothing.txt") == []
    store.save_vocab_file("pets.txt", PETS)
    assert store.load_vocab_file_for_edit("pets.txt") == PETS
    storage.set_item(file_key("bad.txt"), "[oops")
    assert store.load_vocab_file_for_edit("bad.txt") is None


def test_copy_vocab_file_is_verbatim(storage: MemoryStorage, store: VocabStore) -> None:
    raw = '[{"word": "cat"}, {"word": "tame", "type": "adj"}]'
    storage.set_item(file_key("pets.txt"), raw)
    assert store.copy_vocab_file("pets.txt", "pets-en.txt")
    assert storage.get_item(file_key("pets-en.txt")) == raw
    assert store.load_vocab_counts() == {"pets-en.txt": 2}


def test_unchanged_counts_are_not_rewritten(fake_storage: FakeStorage) -> None:
    store = VocabStore(fake_storage)
    store.save_tree(_tree())
    store.save_vocab_file("pets.txt", PETS)
    assert store.sync_all_vocab_counts() == {"pets.txt": 3, "notes.txt": 0}
    fake_storage.ops.clear()

    assert store.sync_all_vocab_counts() == {"pets.txt": 3, "notes.txt": 0}
    assert store.save_vocab_counts({"notes.txt": 0, "pets.txt": 3})
    assert fake_storage.ops == []
