"""Stateless structural operations on tree snapshots.

Functions that return a tree never modify their input; they work on a deep
copy so readers holding the previous snapshot keep a consistent view.
"""

import copy
import time
import uuid
from collections.abc import Iterable, Iterator

from vocab_tree.models.node import FILE, FileLeaf, FolderNode, Located, RemoveResult, TreeNode


class TreeStructureError(ValueError):
    """An edit would break a structural invariant of the tree."""


def gen_id() -> str:
    """Generate a fresh node identifier."""
    return f"n_{int(time.time() * 1000)}_{uuid.uuid4().hex[:7]}"


def clone_tree(root: FolderNode) -> FolderNode:
    """Deep-copy a snapshot, keeping identifiers."""
    return copy.deepcopy(root)


def clone_with_new_ids(node: TreeNode) -> TreeNode:
    """Deep-copy a subtree, giving every node a fresh identifier."""
    if isinstance(node, FileLeaf):
        return FileLeaf(id=gen_id(), name=node.name)
    return FolderNode(
        id=gen_id(),
        label=node.label,
        children=[clone_with_new_ids(c) for c in node.children],
    )


def find_by_path(root: FolderNode, path: list[str]) -> Located | None:
    """Follow a root-to-node id path.

    Returns None when any segment does not match; that is the normal
    outcome for a stale path.
    """
    if not path or path[0] != root.id:
        return None

    current: TreeNode = root
    parent: FolderNode | None = None
    idx = -1
    for node_id in path[1:]:
        if not isinstance(current, FolderNode):
            return None
        next_index = next((i for i, c in enumerate(current.children) if c.id == node_id), -1)
        if next_index == -1:
            return None
        parent = current
        idx = next_index
        current = current.children[next_index]
    return Located(node=current, parent=parent, index=idx)


def is_descendant(ancestor_path: list[str], candidate_path: list[str]) -> bool:
    """True iff candidate_path strictly extends ancestor_path."""
    if len(candidate_path) <= len(ancestor_path):
        return False
    return candidate_path[: len(ancestor_path)] == ancestor_path


def _with_counter(name: str, counter: int, kind: str) -> str:
    if kind == FILE:
        # Keep the extension last: "pets.txt" -> "pets (2).txt"
        dot = name.rfind(".")
        if dot > 0:
            return f"{name[:dot]} ({counter}){name[dot:]}"
    return f"{name} ({counter})"


def ensure_unique_name(siblings: Iterable[TreeNode], desired_name: str, kind: str) -> str:
    """Disambiguate desired_name against same-kind siblings.

    Comparison is exact and case-sensitive. Colliding names get a numeric
    suffix starting at 2.
    """
    taken = {s.display_name for s in siblings if s.kind == kind}
    candidate = desired_name
    counter = 2
    while candidate in taken:
        candidate = _with_counter(desired_name, counter, kind)
        counter += 1
    return candidate


def iter_nodes(root: FolderNode) -> Iterator[tuple[TreeNode, list[str]]]:
    """Yield (node, path) pairs in pre-order, root first."""
    todo: list[tuple[TreeNode, list[str]]] = [(root, [root.id])]
    while todo:
        node, path = todo.pop()
        yield node, path
        if isinstance(node, FolderNode):
            todo.extend((c, [*path, c.id]) for c in reversed(node.children))


def get_all_files(node: TreeNode) -> list[FileLeaf]:
    """All leaves under node (node itself if it is a leaf), in display order."""
    if isinstance(node, FileLeaf):
        return [node]
    return [n for n, _ in iter_nodes(node) if isinstance(n, FileLeaf)]


def get_all_file_names(node: TreeNode) -> list[str]:
    """Addressing keys of every leaf under node, in display order."""
    return [f.name for f in get_all_files(node)]


def remove_at_path(root: FolderNode, path: list[str]) -> RemoveResult | None:
    """Return a new tree without the node at path, plus the detached subtree.

    Raises:
        TreeStructureError: If path points at the root.
    """
    if len(path) == 1 and path[0] == root.id:
        msg = "The root folder cannot be removed"
        raise TreeStructureError(msg)

    new_root = clone_tree(root)
    located = find_by_path(new_root, path)
    if located is None or located.parent is None:
        return None
    removed = located.parent.children.pop(located.index)
    return RemoveResult(new_root=new_root, removed=removed)


def insert_at_path(root: FolderNode, parent_path: list[str], node: TreeNode) -> FolderNode | None:
    """Return a new tree with node appended to the folder at parent_path.

    Name uniqueness is the caller's job.

    Raises:
        TreeStructureError: If parent_path points at a file.
    """
    new_root = clone_tree(root)
    located = find_by_path(new_root, parent_path)
    if located is None:
        return None
    if not isinstance(located.node, FolderNode):
        msg = f"Cannot insert into file {located.node.name!r}"
        raise TreeStructureError(msg)
    located.node.children.append(node)
    return new_root


def rename_at_path(root: FolderNode, path: list[str], new_name: str) -> FolderNode | None:
    """Return a new tree with the node at path renamed."""
    new_root = clone_tree(root)
    located = find_by_path(new_root, path)
    if located is None:
        return None
    if isinstance(located.node, FolderNode):
        located.node.label = new_name
    else:
        located.node.name = new_name
    return new_root


def resolve_name_path(root: FolderNode, name_path: str) -> list[str] | None:
    """Translate a "Folder/Sub/file.txt" display path into an id path.

    Intermediate segments must be folders. For the last segment a folder
    wins over a file of the same name. "" and "/" mean the root.
    """
    parts = [p for p in name_path.strip("/").split("/") if p]
    path = [root.id]
    current: FolderNode = root
    for i, part in enumerate(parts):
        folders = [c for c in current.children if isinstance(c, FolderNode) and c.label == part]
        if folders:
            current = folders[0]
            path.append(current.id)
            continue
        is_last = i == len(parts) - 1
        files = [c for c in current.children if isinstance(c, FileLeaf) and c.name == part]
        if is_last and files:
            path.append(files[0].id)
            return path
        return None
    return path
