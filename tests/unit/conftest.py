"""Shared test fixtures."""

import pytest

from tests.unit.fakes import PETS, FakeStorage
from vocab_tree.core.storage.backend import MemoryStorage
from vocab_tree.core.storage.vocab_store import VocabStore
from vocab_tree.core.write.workspace import VocabularyWorkspace


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage(quota_chars=None)


@pytest.fixture
def store(storage: MemoryStorage) -> VocabStore:
    return VocabStore(storage)


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def workspace(store: VocabStore) -> VocabularyWorkspace:
    """Workspace initialized with the demo tree and vocabulary."""
    return VocabularyWorkspace(store)


@pytest.fixture
def empty_workspace(store: VocabStore) -> VocabularyWorkspace:
    return VocabularyWorkspace(store, seed=False)


@pytest.fixture
def animals_workspace(empty_workspace: VocabularyWorkspace) -> VocabularyWorkspace:
    """Root > Animals > pets.txt (3 entries)."""
    ws = empty_workspace
    folder = ws.create_folder([ws.tree.id], "Animals")
    leaf = ws.create_file(folder["path"], "pets.txt")
    ws.save_entries(leaf["path"], PETS)
    return ws
