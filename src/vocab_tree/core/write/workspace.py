"""Mutations on the vocabulary tree that keep tree, content, and counts in sync.

Every operation takes the current snapshot, builds a new one with the pure
functions in core.tree.utils, persists it, and only then swaps it in and
rebuilds the index. A failed operation leaves the in-memory snapshot and
index untouched and returns {"success": False, "error": ...}.

Files are addressed in the store by their display name. To keep those keys
unambiguous, file names are unique across the whole tree.
"""

from collections.abc import Iterable
from typing import Any

from loguru import logger

from vocab_tree.config import (
    DEFAULT_FILE_NAME,
    DEFAULT_FOLDER_NAME,
    RENAME_FALLBACK_FILE,
    RENAME_FALLBACK_FOLDER,
)
from vocab_tree.core.seed import SEED_VOCAB, default_tree, empty_tree
from vocab_tree.core.storage.vocab_store import VocabStore
from vocab_tree.core.transfer import (
    TransferError,
    build_file_export,
    build_folder_export,
    parse_file_import,
    parse_folder_import,
    prepare_folder_import,
)
from vocab_tree.core.tree.index import TreeIndex
from vocab_tree.core.tree.utils import (
    TreeStructureError,
    clone_tree,
    clone_with_new_ids,
    ensure_unique_name,
    gen_id,
    get_all_file_names,
    get_all_files,
    insert_at_path,
    is_descendant,
    remove_at_path,
    rename_at_path,
    resolve_name_path,
)
from vocab_tree.models.node import FILE, FOLDER, FileLeaf, FolderNode, Located, TreeNode, VocabItem


def _fail(error: str) -> dict[str, Any]:
    logger.warning(error)
    return {"success": False, "error": error}


class VocabularyWorkspace:
    """The current tree snapshot, its index, and the operations that edit it."""

    def __init__(self, store: VocabStore, *, seed: bool = True) -> None:
        self.store = store
        tree = store.load_tree()
        if tree is None:
            tree = self._initialize(seed=seed)
        else:
            tree = self._dedupe_file_names(tree)
        self._tree = tree
        self._index = TreeIndex(tree)
        store.sync_all_vocab_counts(tree)

    def _initialize(self, *, seed: bool) -> FolderNode:
        tree = default_tree() if seed else empty_tree()
        if not self.store.save_tree(tree):
            logger.error("Could not persist the initial tree, continuing in memory")
        if seed:
            for name, items in SEED_VOCAB.items():
                self.store.save_vocab_file(name, items)
        logger.info("Initialized a new vocabulary tree")
        return tree

    def _dedupe_file_names(self, tree: FolderNode) -> FolderNode:
        """Give every file in a loaded tree a name no other file has.

        Trees written before names were unique across folders may repeat a
        file name. Each later duplicate is renamed and gets a copy of the
        shared vocabulary.
        """
        new_root = clone_tree(tree)
        seen: list[TreeNode] = []
        renames: list[tuple[str, str]] = []
        for leaf in get_all_files(new_root):
            unique = ensure_unique_name(seen, leaf.name, FILE)
            if unique != leaf.name:
                renames.append((leaf.name, unique))
                leaf.name = unique
            seen.append(leaf)
        if not renames:
            return tree

        for old_name, new_name in renames:
            if not self.store.copy_vocab_file(old_name, new_name):
                logger.error("Could not copy {!r} to {!r}, keeping duplicate names", old_name, new_name)
                return tree
        if not self.store.save_tree(new_root):
            logger.error("Could not save the tree with unique file names")
            return tree
        logger.warning("Renamed duplicate files: {}", ", ".join(f"{o!r} -> {n!r}" for o, n in renames))
        return new_root

    # --- reads ---

    @property
    def tree(self) -> FolderNode:
        """A private copy of the current snapshot."""
        return clone_tree(self._tree)

    @property
    def index(self) -> TreeIndex:
        return self._index

    @property
    def counts(self) -> dict[str, int]:
        return self.store.load_vocab_counts()

    def find(self, path: list[str]) -> Located | None:
        return self._index.find_by_path(path)

    def get_path(self, node_id: str) -> list[str] | None:
        return self._index.get_path(node_id)

    def resolve(self, name_path: str) -> list[str] | None:
        """Id path for a "Folder/file.txt" display path."""
        return resolve_name_path(self._tree, name_path)

    def file_names(self) -> list[str]:
        return get_all_file_names(self._tree)

    def load_entries(self, path: list[str]) -> list[VocabItem]:
        leaf = self._file_at(path)
        if leaf is None:
            return []
        return self.store.load_vocab_file(leaf.name)

    # --- helpers ---

    def _folder_at(self, path: list[str]) -> FolderNode | None:
        located = self.find(path)
        if located is None or not isinstance(located.node, FolderNode):
            return None
        return located.node

    def _file_at(self, path: list[str]) -> FileLeaf | None:
        located = self.find(path)
        if located is None or not isinstance(located.node, FileLeaf):
            return None
        return located.node

    def _commit(self, new_root: FolderNode) -> None:
        self._tree = new_root
        self._index.update_root(new_root)

    def _persist_and_commit(self, new_root: FolderNode) -> bool:
        if not self.store.save_tree(new_root):
            return False
        self._commit(new_root)
        return True

    def _unique_file_name(self, desired: str, *, exclude_id: str | None = None) -> str:
        others = [f for f in get_all_files(self._tree) if f.id != exclude_id]
        return ensure_unique_name(others, desired, FILE)

    def _commit_with_migration(self, new_root: FolderNode, old_name: str, new_name: str) -> str | None:
        """Persist new_root in which a file changed its name from old_name.

        Content is copied to the new key first and the old key is dropped
        last, so any failure leaves the old content intact. Returns an error
        message, or None on success.
        """
        if not self.store.copy_vocab_file(old_name, new_name):
            return "Could not copy the vocabulary to the new name."
        if not self.store.save_tree(new_root):
            self.store.delete_vocab_file(new_name)
            return "Could not save the tree."
        self._commit(new_root)
        if not self.store.delete_vocab_file(old_name):
            logger.warning("Old vocabulary record {!r} left behind after rename", old_name)
        return None

    def _drop_records(self, names: Iterable[str]) -> None:
        for name in names:
            if not self.store.delete_vocab_file(name):
                logger.warning("Vocabulary record {!r} left behind", name)

    # --- structure ---

    def create_folder(self, parent_path: list[str], name: str | None = None) -> dict[str, Any]:
        parent = self._folder_at(parent_path)
        if parent is None:
            return _fail("Target folder not found.")

        label = ensure_unique_name(parent.children, (name or "").strip() or DEFAULT_FOLDER_NAME, FOLDER)
        node = FolderNode(id=gen_id(), label=label)
        new_root = insert_at_path(self._tree, parent_path, node)
        if new_root is None or not self._persist_and_commit(new_root):
            return _fail("Could not save the tree.")

        logger.info("Created folder {!r}", label)
        return {"success": True, "node_id": node.id, "name": label, "path": [*parent_path, node.id]}

    def create_file(self, parent_path: list[str], name: str | None = None) -> dict[str, Any]:
        parent = self._folder_at(parent_path)
        if parent is None:
            return _fail("Target folder not found.")

        file_name = self._unique_file_name((name or "").strip() or DEFAULT_FILE_NAME)
        leaf = FileLeaf(id=gen_id(), name=file_name)
        new_root = insert_at_path(self._tree, parent_path, leaf)
        if new_root is None or not self._persist_and_commit(new_root):
            return _fail("Could not save the tree.")

        result: dict[str, Any] = {
            "success": True,
            "node_id": leaf.id,
            "name": file_name,
            "path": [*parent_path, leaf.id],
        }
        # Overwrites any orphaned record left under this key.
        if not self.store.save_vocab_file(file_name, []):
            logger.warning("File {!r} created without a vocabulary record", file_name)
            result["warning"] = "File created, but its vocabulary could not be initialized."

        logger.info("Created file {!r}", file_name)
        return result

    def rename(self, path: list[str], new_name: str) -> dict[str, Any]:
        located = self.find(path)
        if located is None:
            return _fail("Node not found.")
        if located.parent is None:
            return _fail("The root folder cannot be renamed.")

        node = located.node
        if isinstance(node, FolderNode):
            siblings = [c for c in located.parent.children if c.id != node.id]
            final_name = ensure_unique_name(siblings, new_name.strip() or RENAME_FALLBACK_FOLDER, FOLDER)
        else:
            final_name = self._unique_file_name(new_name.strip() or RENAME_FALLBACK_FILE, exclude_id=node.id)

        old_name = node.display_name
        if final_name == old_name:
            return {"success": True, "node_id": node.id, "name": final_name}

        new_root = rename_at_path(self._tree, path, final_name)
        if new_root is None:
            return _fail("Node not found.")

        if isinstance(node, FileLeaf):
            error = self._commit_with_migration(new_root, old_name, final_name)
            if error:
                return _fail(error)
        elif not self._persist_and_commit(new_root):
            return _fail("Could not save the tree.")

        logger.info("Renamed {!r} to {!r}", old_name, final_name)
        return {"success": True, "node_id": node.id, "name": final_name}

    def move(self, path: list[str], dest_path: list[str]) -> dict[str, Any]:
        """Cut the node at path and paste it into the folder at dest_path."""
        located = self.find(path)
        if located is None:
            return _fail("Node not found.")
        if located.parent is None:
            return _fail("The root folder cannot be moved.")
        if dest_path == path or is_descendant(path, dest_path):
            return _fail("Cannot move a folder into itself or one of its subfolders.")
        dest = self._folder_at(dest_path)
        if dest is None:
            return _fail("Destination folder not found.")

        node = located.node
        removal = remove_at_path(self._tree, path)
        if removal is None:
            return _fail("Node not found.")

        moved = removal.removed
        # File names are unique tree-wide, so only a folder label can clash.
        if isinstance(moved, FolderNode):
            siblings = [c for c in dest.children if c.id != node.id]
            moved.label = ensure_unique_name(siblings, moved.label, FOLDER)

        new_root = insert_at_path(removal.new_root, dest_path, moved)
        if new_root is None:
            return _fail("Destination folder not found.")
        if not self._persist_and_commit(new_root):
            return _fail("Could not save the tree.")

        logger.info("Moved {!r}", moved.display_name)
        return {
            "success": True,
            "node_id": node.id,
            "name": moved.display_name,
            "path": [*dest_path, node.id],
        }

    def copy(self, path: list[str], dest_path: list[str]) -> dict[str, Any]:
        """Paste a copy of the node at path into the folder at dest_path.

        The copy gets fresh ids; each copied file gets a fresh name and a
        copy of its vocabulary.
        """
        located = self.find(path)
        if located is None:
            return _fail("Node not found.")
        dest = self._folder_at(dest_path)
        if dest is None:
            return _fail("Destination folder not found.")

        clone = clone_with_new_ids(located.node)
        if isinstance(clone, FolderNode):
            clone.label = ensure_unique_name(dest.children, clone.label, FOLDER)

        taken: list[TreeNode] = list(get_all_files(self._tree))
        renames: list[tuple[str, str]] = []
        for leaf in get_all_files(clone):
            old_name = leaf.name
            leaf.name = ensure_unique_name(taken, old_name, FILE)
            taken.append(leaf)
            renames.append((old_name, leaf.name))

        # Content first: a failed tree write then only leaves unreachable copies.
        written: list[str] = []
        for old_name, new_name in renames:
            if not self.store.copy_vocab_file(old_name, new_name):
                self._drop_records(written)
                return _fail("Could not copy the vocabulary.")
            written.append(new_name)

        new_root = insert_at_path(self._tree, dest_path, clone)
        if new_root is None or not self._persist_and_commit(new_root):
            self._drop_records(written)
            return _fail("Could not save the tree.")

        logger.info("Copied {!r} ({} files)", clone.display_name, len(renames))
        return {
            "success": True,
            "node_id": clone.id,
            "name": clone.display_name,
            "path": [*dest_path, clone.id],
        }

    def delete(self, path: list[str]) -> dict[str, Any]:
        """Remove a node and the vocabulary of every file beneath it.

        Vocabulary goes first. If the tree write then fails, the tree keeps
        pointing at files whose vocabulary is gone; they read as empty.
        """
        if self.find(path) is None:
            return _fail("Node not found.")
        try:
            removal = remove_at_path(self._tree, path)
        except TreeStructureError as e:
            return _fail(str(e))
        if removal is None:
            return _fail("Node not found.")

        file_names = get_all_file_names(removal.removed)
        self._drop_records(file_names)
        if not self._persist_and_commit(removal.new_root):
            return _fail("Could not save the tree.")

        logger.info("Deleted {!r} ({} files)", removal.removed.display_name, len(file_names))
        return {"success": True, "node_id": removal.removed.id, "removed_files": file_names}

    # --- content ---

    def save_entries(self, path: list[str], entries: list[VocabItem]) -> dict[str, Any]:
        leaf = self._file_at(path)
        if leaf is None:
            return _fail("File not found.")
        if not self.store.save_vocab_file(leaf.name, list(entries)):
            return _fail("Could not save the vocabulary.")
        return {"success": True, "name": leaf.name, "count": len(entries)}

    def _entries_for_edit(self, path: list[str]) -> list[VocabItem] | dict[str, Any]:
        """Current entries of the file at path, or a failure result.

        A record with unreadable entries is never rewritten from a partial read.
        """
        leaf = self._file_at(path)
        if leaf is None:
            return _fail("File not found.")
        entries = self.store.load_vocab_file_for_edit(leaf.name)
        if entries is None:
            return _fail(f"Vocabulary of {leaf.name!r} has unreadable entries; not overwriting it.")
        return entries

    def add_entry(self, path: list[str], item: VocabItem) -> dict[str, Any]:
        return self.add_entries(path, [item])

    def add_entries(self, path: list[str], items: Iterable[VocabItem]) -> dict[str, Any]:
        entries = self._entries_for_edit(path)
        if isinstance(entries, dict):
            return entries
        return self.save_entries(path, [*entries, *items])

    def update_entry(self, path: list[str], index: int, item: VocabItem) -> dict[str, Any]:
        entries = self._entries_for_edit(path)
        if isinstance(entries, dict):
            return entries
        if not 0 <= index < len(entries):
            return _fail(f"No entry at position {index}.")
        entries[index] = item
        return self.save_entries(path, entries)

    def delete_entries(self, path: list[str], words: Iterable[str]) -> dict[str, Any]:
        """Remove every entry whose word is in words."""
        to_delete = set(words)
        entries = self._entries_for_edit(path)
        if isinstance(entries, dict):
            return entries
        kept = [e for e in entries if e.word not in to_delete]
        result = self.save_entries(path, kept)
        if result["success"]:
            result["deleted"] = len(entries) - len(kept)
        return result

    def sync_counts(self) -> dict[str, Any]:
        counts = self.store.sync_all_vocab_counts(self._tree)
        if counts is None:
            return _fail("Could not save the count table.")
        return {"success": True, "counts": counts}

    # --- import / export ---

    def export_file(self, path: list[str]) -> dict[str, Any] | None:
        leaf = self._file_at(path)
        if leaf is None:
            return None
        return build_file_export(leaf.name, self.store.load_vocab_file(leaf.name))

    def export_folder(self, path: list[str]) -> dict[str, Any] | None:
        folder = self._folder_at(path)
        if folder is None:
            return None
        return build_folder_export(folder, self.store.load_vocab_file)

    def import_file(
        self, parent_path: list[str], payload: Any, *, fallback_name: str | None = None
    ) -> dict[str, Any]:
        try:
            name, items = parse_file_import(payload, fallback_name=fallback_name)
        except TransferError as e:
            return _fail(str(e))
        if self._folder_at(parent_path) is None:
            return _fail("Target folder not found.")

        file_name = self._unique_file_name(name)
        leaf = FileLeaf(id=gen_id(), name=file_name)
        if not self.store.save_vocab_file(file_name, items):
            return _fail("Could not save the vocabulary.")
        new_root = insert_at_path(self._tree, parent_path, leaf)
        if new_root is None or not self._persist_and_commit(new_root):
            self._drop_records([file_name])
            return _fail("Could not save the tree.")

        logger.info("Imported file {!r} ({} entries)", file_name, len(items))
        return {"success": True, "node_id": leaf.id, "name": file_name, "count": len(items)}

    def import_folder(self, parent_path: list[str], payload: Any) -> dict[str, Any]:
        try:
            folder, vocabulary = parse_folder_import(payload)
        except TransferError as e:
            return _fail(str(e))
        parent = self._folder_at(parent_path)
        if parent is None:
            return _fail("Target folder not found.")

        prepared, remapped = prepare_folder_import(
            folder,
            vocabulary,
            dest_siblings=parent.children,
            taken_file_names=self.file_names(),
        )

        written: list[str] = []
        for name, items in remapped.items():
            if not self.store.save_vocab_file(name, items):
                self._drop_records(written)
                return _fail("Could not save the vocabulary.")
            written.append(name)

        new_root = insert_at_path(self._tree, parent_path, prepared)
        if new_root is None or not self._persist_and_commit(new_root):
            self._drop_records(written)
            return _fail("Could not save the tree.")

        logger.info("Imported folder {!r} ({} files)", prepared.label, len(remapped))
        return {
            "success": True,
            "node_id": prepared.id,
            "name": prepared.label,
            "files": list(remapped),
        }
