"""Convert tree snapshots and vocabulary lists to and from JSON data."""

from typing import Any

from vocab_tree.models.node import FILE, FOLDER, FileLeaf, FolderNode, TreeNode, VocabItem


def node_to_data(node: TreeNode) -> dict[str, Any]:
    """Serialize a node (and its subtree) into plain JSON-compatible data."""
    if isinstance(node, FileLeaf):
        return {"kind": FILE, "id": node.id, "name": node.name}
    return {
        "kind": FOLDER,
        "id": node.id,
        "label": node.label,
        "children": [node_to_data(c) for c in node.children],
    }


def node_from_data(data: Any) -> TreeNode:
    """Parse a serialized node.

    Raises:
        ValueError: On an unknown kind or a missing field.
    """
    if not isinstance(data, dict):
        msg = f"Node must be an object, got {type(data).__name__}"
        raise ValueError(msg)

    kind = data.get("kind")
    node_id = data.get("id")
    if not isinstance(node_id, str) or not node_id:
        msg = f"Node without id: {data!r}"[:200]
        raise ValueError(msg)

    if kind == FILE:
        name = data.get("name")
        if not isinstance(name, str):
            msg = f"File node {node_id!r} has no name"
            raise ValueError(msg)
        return FileLeaf(id=node_id, name=name)

    if kind == FOLDER:
        label = data.get("label")
        children = data.get("children", [])
        if not isinstance(label, str):
            msg = f"Folder node {node_id!r} has no label"
            raise ValueError(msg)
        if not isinstance(children, list):
            msg = f"Folder node {node_id!r} has non-list children"
            raise ValueError(msg)
        return FolderNode(id=node_id, label=label, children=[node_from_data(c) for c in children])

    msg = f"unexpected node kind: {kind!r}"
    raise ValueError(msg)


def tree_from_data(data: Any) -> FolderNode:
    """Parse a full tree snapshot. The root must be a folder."""
    root = node_from_data(data)
    if not isinstance(root, FolderNode):
        msg = "root node is not a folder"
        raise ValueError(msg)
    return root


def vocab_item_to_data(item: VocabItem) -> dict[str, str]:
    return {
        "word": item.word,
        "meaning": item.meaning,
        "wordClass": item.word_class,
        "pronunciation": item.pronunciation,
    }


def vocab_item_from_data(data: Any) -> VocabItem:
    """Parse one entry. Accepts the legacy ``type``/``vnMeaning`` field names."""
    if not isinstance(data, dict):
        msg = f"Vocabulary entry must be an object, got {type(data).__name__}"
        raise ValueError(msg)
    return VocabItem(
        word=str(data.get("word", "")),
        meaning=str(data.get("meaning", data.get("vnMeaning", ""))),
        word_class=str(data.get("wordClass", data.get("type", ""))),
        pronunciation=str(data.get("pronunciation", "")),
    )


def vocab_items_to_data(items: list[VocabItem]) -> list[dict[str, str]]:
    return [vocab_item_to_data(i) for i in items]


def vocab_items_from_data(data: Any) -> list[VocabItem]:
    if not isinstance(data, list):
        msg = f"Vocabulary list must be an array, got {type(data).__name__}"
        raise ValueError(msg)
    return [vocab_item_from_data(d) for d in data]


def parse_vocab_entries(data: Any) -> tuple[list[VocabItem], list[str]]:
    """Parse a stored vocabulary list entry by entry.

    An entry with an unknown word class is kept with its class cleared; an
    entry that is not an object or has no word is skipped. Each repair is
    described in the returned problem list, which is empty for a clean list.

    Raises:
        ValueError: If data is not a list.
    """
    if not isinstance(data, list):
        msg = f"Vocabulary list must be an array, got {type(data).__name__}"
        raise ValueError(msg)

    items: list[VocabItem] = []
    problems: list[str] = []
    for i, entry in enumerate(data):
        try:
            items.append(vocab_item_from_data(entry))
            continue
        except ValueError as e:
            error = e
        if isinstance(entry, dict) and str(entry.get("word", "")).strip():
            items.append(vocab_item_from_data({**entry, "wordClass": ""}))
            problems.append(f"entry {i}: {error}, word class cleared")
        else:
            problems.append(f"entry {i}: {error}, skipped")
    return items, problems
