"""Hierarchical vocabulary notebook: folders, files, and word lists."""

from vocab_tree.core.storage.backend import MemoryStorage, SqliteStorage, open_storage
from vocab_tree.core.storage.vocab_store import VocabStore
from vocab_tree.core.tree.index import TreeIndex
from vocab_tree.core.write.workspace import VocabularyWorkspace
from vocab_tree.protocols import StorageProtocol

__all__ = [
    "MemoryStorage",
    "SqliteStorage",
    "StorageProtocol",
    "TreeIndex",
    "VocabStore",
    "VocabularyWorkspace",
    "open_storage",
]
