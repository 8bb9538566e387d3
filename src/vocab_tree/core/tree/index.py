"""Path index cache: node id -> path and node, built from one snapshot."""

from vocab_tree.models.node import FolderNode, Located, TreeNode


class TreeIndex:
    """O(1) lookups of nodes and their paths.

    Valid only for the snapshot it was built from. After any structural
    change call rebuild() (or update_root()) before the next lookup.
    The index never modifies the tree.
    """

    def __init__(self, root: FolderNode) -> None:
        self.root = root
        self._id_to_path: dict[str, list[str]] = {}
        self._id_to_node: dict[str, TreeNode] = {}
        self.rebuild()

    def rebuild(self) -> None:
        """Rebuild both maps with one traversal of the current root."""
        self._id_to_path.clear()
        self._id_to_node.clear()

        todo: list[tuple[TreeNode, list[str]]] = [(self.root, [self.root.id])]
        while todo:
            node, path = todo.pop()
            self._id_to_path[node.id] = path
            self._id_to_node[node.id] = node
            if isinstance(node, FolderNode):
                todo.extend((c, [*path, c.id]) for c in node.children)

    def update_root(self, new_root: FolderNode) -> None:
        """Point the index at a new snapshot and rebuild."""
        self.root = new_root
        self.rebuild()

    def __len__(self) -> int:
        return len(self._id_to_node)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._id_to_node

    def get_path(self, node_id: str) -> list[str] | None:
        path = self._id_to_path.get(node_id)
        return list(path) if path is not None else None

    def get_node(self, node_id: str) -> TreeNode | None:
        return self._id_to_node.get(node_id)

    def find_by_path(self, path: list[str]) -> Located | None:
        """Index-backed equivalent of utils.find_by_path."""
        if not path:
            return None

        target_id = path[-1]
        # A stale path must not resolve just because its last id still exists.
        if self._id_to_path.get(target_id) != path:
            return None
        node = self._id_to_node[target_id]

        if len(path) == 1:
            return Located(node=node, parent=None, index=-1)

        parent = self._id_to_node[path[-2]]
        if not isinstance(parent, FolderNode):
            return None
        index = next(i for i, c in enumerate(parent.children) if c.id == target_id)
        return Located(node=node, parent=parent, index=index)
