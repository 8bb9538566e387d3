"""Render a tree snapshot as markdown."""

import io

from vocab_tree.models.node import FolderNode, TreeNode


def render_tree_as_markdown(
    node: TreeNode,
    *,
    counts: dict[str, int] | None = None,
    max_depth: int | None = None,
) -> str:
    """Render a node and its descendants as an indented bullet list.

    Args:
        node: The node to start rendering from.
        counts: Entry counts by file name; shown next to files when given.
        max_depth: Max levels below the start node to include (None = unlimited).

    Returns:
        Markdown string. Folders end in "/".
    """
    out = io.StringIO()
    todo: list[tuple[TreeNode, int]] = [(node, 0)]
    while todo:
        current, depth = todo.pop()
        indent = "    " * depth

        if isinstance(current, FolderNode):
            out.write(f"{indent}- {current.label}/\n")
            if max_depth is not None and depth >= max_depth:
                if current.children:
                    # Truncation indicator when children are cut off by max_depth
                    noun = "child" if len(current.children) == 1 else "children"
                    out.write(f"{indent}    - ... ({len(current.children)} more {noun})\n")
                continue
            todo.extend((c, depth + 1) for c in reversed(current.children))
        else:
            suffix = ""
            if counts is not None:
                suffix = f" ({counts.get(current.name, 0)})"
            out.write(f"{indent}- {current.name}{suffix}\n")

    return out.getvalue()
