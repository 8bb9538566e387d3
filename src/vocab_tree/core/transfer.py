"""Build and parse JSON import/export payloads for files and folders."""

from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any, cast

from vocab_tree.config import TRANSFER_VERSION
from vocab_tree.core.codec import node_to_data, tree_from_data, vocab_items_from_data, vocab_items_to_data
from vocab_tree.core.tree.utils import clone_with_new_ids, ensure_unique_name, get_all_file_names, get_all_files
from vocab_tree.models.node import FILE, FOLDER, FileLeaf, FolderNode, TreeNode, VocabItem


class TransferError(ValueError):
    """An import payload does not have the expected shape."""


def _now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="seconds")


def build_file_export(name: str, items: list[VocabItem]) -> dict[str, Any] | None:
    """Export payload for one file, or None if the file has no entries."""
    if not items:
        return None
    return {
        "fileName": name,
        "vocabulary": vocab_items_to_data(items),
        "exportDate": _now_iso(),
        "version": TRANSFER_VERSION,
    }


def build_folder_export(
    folder: FolderNode, load_items: Callable[[str], list[VocabItem]]
) -> dict[str, Any]:
    """Export payload for a folder and the vocabulary of every file in it."""
    vocabulary_data: dict[str, Any] = {}
    for name in get_all_file_names(folder):
        items = load_items(name)
        if items:
            vocabulary_data[name] = vocab_items_to_data(items)
    return {
        "folderStructure": node_to_data(folder),
        "vocabularyData": vocabulary_data,
        "exportDate": _now_iso(),
        "version": TRANSFER_VERSION,
    }


def parse_file_import(payload: Any, *, fallback_name: str | None = None) -> tuple[str, list[VocabItem]]:
    """Return (file name, entries) from a file export payload.

    Raises:
        TransferError: If the payload has no vocabulary list or no usable name.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("vocabulary"), list):
        msg = "Import payload has no 'vocabulary' list"
        raise TransferError(msg)
    name = payload.get("fileName") or fallback_name
    if not isinstance(name, str) or not name.strip():
        msg = "Import payload has no file name"
        raise TransferError(msg)
    try:
        items = vocab_items_from_data(payload["vocabulary"])
    except ValueError as e:
        msg = f"Invalid vocabulary entry: {e}"
        raise TransferError(msg) from e
    return name.strip(), items


def parse_folder_import(payload: Any) -> tuple[FolderNode, dict[str, list[VocabItem]]]:
    """Return (folder, vocabulary by file name) from a folder export payload."""
    if not isinstance(payload, dict) or "folderStructure" not in payload or "vocabularyData" not in payload:
        msg = "Import payload needs 'folderStructure' and 'vocabularyData'"
        raise TransferError(msg)
    raw_data = payload["vocabularyData"]
    if not isinstance(raw_data, dict):
        msg = "'vocabularyData' must be an object"
        raise TransferError(msg)
    try:
        folder = tree_from_data(payload["folderStructure"])
        vocabulary = {name: vocab_items_from_data(items) for name, items in raw_data.items()}
    except ValueError as e:
        msg = f"Invalid folder payload: {e}"
        raise TransferError(msg) from e
    return folder, vocabulary


def prepare_folder_import(
    folder: FolderNode,
    vocabulary: dict[str, list[VocabItem]],
    *,
    dest_siblings: Iterable[TreeNode],
    taken_file_names: Iterable[str],
) -> tuple[FolderNode, dict[str, list[VocabItem]]]:
    """Give an imported folder fresh ids and collision-free names.

    The folder label is made unique among dest_siblings; every file name is
    made unique against taken_file_names and the files imported before it.
    Returns the prepared folder and its vocabulary keyed by final names.
    """
    prepared = cast("FolderNode", clone_with_new_ids(folder))
    prepared.label = ensure_unique_name(dest_siblings, prepared.label, FOLDER)

    taken: list[TreeNode] = [FileLeaf(id="", name=n) for n in taken_file_names]
    remapped: dict[str, list[VocabItem]] = {}
    for leaf in get_all_files(prepared):
        old_name = leaf.name
        leaf.name = ensure_unique_name(taken, old_name, FILE)
        taken.append(FileLeaf(id="", name=leaf.name))
        remapped[leaf.name] = list(vocabulary.get(old_name, []))
    return prepared, remapped
