"""MCP server exposing the vocabulary tree to tool-using clients."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

from loguru import logger
from mcp.server.fastmcp import Context, FastMCP

from vocab_tree.config import resolve_data_directory
from vocab_tree.core.codec import vocab_item_from_data, vocab_item_to_data
from vocab_tree.core.storage.backend import SqliteStorage, open_storage
from vocab_tree.core.storage.vocab_store import VocabStore
from vocab_tree.core.tree.markdown import render_tree_as_markdown
from vocab_tree.core.write.workspace import VocabularyWorkspace
from vocab_tree.models.node import FILE, FOLDER, FileLeaf, VocabItem


def _not_found(path: str) -> dict[str, Any]:
    return {"success": False, "error": f"Path '{path}' not found."}


# --- Core functions (testable without MCP context) ---


def vocab_list_tree(
    ws: VocabularyWorkspace,
    *,
    path: str = "",
    max_depth: int | None = None,
) -> dict[str, Any]:
    """Render the tree (or a subtree) as markdown with word counts.

    Args:
        path: Folder path like "Animals/Pets"; "" for the whole tree.
        max_depth: Max depth levels to include (None = unlimited).
    """
    id_path = ws.resolve(path)
    if id_path is None:
        return _not_found(path)
    located = ws.find(id_path)
    if located is None:
        return _not_found(path)
    return {
        "content": render_tree_as_markdown(located.node, counts=ws.counts, max_depth=max_depth),
        "file_count": len(ws.file_names()),
    }


def vocab_read_file(ws: VocabularyWorkspace, *, path: str) -> dict[str, Any]:
    """Return the entries of the file at path."""
    id_path = ws.resolve(path)
    located = ws.find(id_path) if id_path is not None else None
    if id_path is None or located is None or not isinstance(located.node, FileLeaf):
        return {"success": False, "error": f"File '{path}' not found."}
    entries = ws.load_entries(id_path)
    return {
        "name": located.node.name,
        "entries": [vocab_item_to_data(e) for e in entries],
        "count": len(entries),
    }


def vocab_create(
    ws: VocabularyWorkspace,
    *,
    parent: str,
    name: str,
    kind: str = FILE,
) -> dict[str, Any]:
    """Create a folder or an empty file under parent.

    Args:
        parent: Folder path ("" for root).
        name: Desired name; made unique if taken.
        kind: "file" or "folder".
    """
    if kind not in (FILE, FOLDER):
        return {"success": False, "error": f"Unknown kind '{kind}'. Expected 'file' or 'folder'."}
    parent_path = ws.resolve(parent)
    if parent_path is None:
        return _not_found(parent)
    if kind == FOLDER:
        return ws.create_folder(parent_path, name)
    return ws.create_file(parent_path, name)


def vocab_rename(ws: VocabularyWorkspace, *, path: str, new_name: str) -> dict[str, Any]:
    """Rename the folder or file at path."""
    id_path = ws.resolve(path)
    if id_path is None:
        return _not_found(path)
    return ws.rename(id_path, new_name)


def vocab_move(ws: VocabularyWorkspace, *, path: str, dest: str) -> dict[str, Any]:
    """Move the folder or file at path into the folder at dest."""
    id_path = ws.resolve(path)
    if id_path is None:
        return _not_found(path)
    dest_path = ws.resolve(dest)
    if dest_path is None:
        return _not_found(dest)
    return ws.move(id_path, dest_path)


def vocab_delete(ws: VocabularyWorkspace, *, path: str) -> dict[str, Any]:
    """Delete the folder or file at path with all vocabulary beneath it."""
    id_path = ws.resolve(path)
    if id_path is None:
        return _not_found(path)
    return ws.delete(id_path)


def vocab_add_words(
    ws: VocabularyWorkspace,
    *,
    path: str,
    words: list[dict[str, Any]],
) -> dict[str, Any]:
    """Append entries to the file at path.

    Args:
        path: File path like "Animals/pets.txt".
        words: Entries as {"word", "meaning", "wordClass", "pronunciation"}.
    """
    id_path = ws.resolve(path)
    if id_path is None:
        return _not_found(path)
    items: list[VocabItem] = []
    for i, raw in enumerate(words):
        try:
            items.append(vocab_item_from_data(raw))
        except ValueError as e:
            return {"success": False, "error": f"Entry {i}: {e}"}
    return ws.add_entries(id_path, items)


def vocab_sync_counts(ws: VocabularyWorkspace) -> dict[str, Any]:
    """Rebuild the count table from the stored vocabulary."""
    return ws.sync_counts()


# --- MCP Server Setup ---


@dataclass
class ServerContext:
    """Shared resources for the MCP server lifetime."""

    storage: SqliteStorage
    workspace: VocabularyWorkspace
    write_lock: asyncio.Lock = field(default_factory=asyncio.Lock)


@asynccontextmanager
async def server_lifespan(_server: FastMCP) -> AsyncIterator[ServerContext]:
    """Open the store on startup, close on shutdown."""
    data_dir = resolve_data_directory()
    storage = open_storage(data_dir)
    try:
        workspace = VocabularyWorkspace(VocabStore(storage))
        logger.info("Serving vocabulary from {}", data_dir)
        yield ServerContext(storage=storage, workspace=workspace)
    finally:
        storage.close()


mcp_server = FastMCP(
    "vocab-tree",
    instructions="""\
A vocabulary notebook organized as a tree of folders and files. Each file
holds a list of words with meaning, word class, and pronunciation.

Nodes are addressed by display path, e.g. "Animals/pets.txt"; "" is the root.

1. Call vocab_list_tree_tool to see folders, files, and word counts.
2. Call vocab_read_file_tool to read the words of a file.
3. Use the write tools to reorganize or add words. File names are unique
   across the whole tree and may get a " (2)" suffix on collision; the
   returned "name" is the final one.
""",
    lifespan=server_lifespan,
)


def _ctx(mcp_ctx: Context) -> ServerContext:
    return mcp_ctx.request_context.lifespan_context  # type: ignore[return-value]


# --- MCP Tool Wrappers ---


@mcp_server.tool()
async def vocab_list_tree_tool(
    ctx: Context,
    path: str = "",
    max_depth: int | None = None,
) -> dict[str, Any]:
    """Show the vocabulary tree as markdown, with word counts per file.

    Args:
        path: Folder path ("" for the whole tree).
        max_depth: Max depth levels (None = unlimited).
    """
    return vocab_list_tree(_ctx(ctx).workspace, path=path, max_depth=max_depth)


@mcp_server.tool()
async def vocab_read_file_tool(ctx: Context, path: str) -> dict[str, Any]:
    """Read the words of a vocabulary file.

    Args:
        path: File path like "Animals/pets.txt".
    """
    return vocab_read_file(_ctx(ctx).workspace, path=path)


@mcp_server.tool()
async def vocab_create_tool(
    ctx: Context,
    parent: str,
    name: str,
    kind: str = FILE,
) -> dict[str, Any]:
    """Create a folder or an empty vocabulary file.

    Args:
        parent: Parent folder path ("" for root).
        name: Desired name.
        kind: "file" or "folder".
    """
    sc = _ctx(ctx)
    async with sc.write_lock:
        return vocab_create(sc.workspace, parent=parent, name=name, kind=kind)


@mcp_server.tool()
async def vocab_rename_tool(ctx: Context, path: str, new_name: str) -> dict[str, Any]:
    """Rename a folder or file. A renamed file keeps its words.

    Args:
        path: Path of the folder or file.
        new_name: New name.
    """
    sc = _ctx(ctx)
    async with sc.write_lock:
        return vocab_rename(sc.workspace, path=path, new_name=new_name)


@mcp_server.tool()
async def vocab_move_tool(ctx: Context, path: str, dest: str) -> dict[str, Any]:
    """Move a folder or file into another folder.

    Args:
        path: Path of the folder or file.
        dest: Destination folder path ("" for root).
    """
    sc = _ctx(ctx)
    async with sc.write_lock:
        return vocab_move(sc.workspace, path=path, dest=dest)


@mcp_server.tool()
async def vocab_delete_tool(ctx: Context, path: str) -> dict[str, Any]:
    """Delete a folder or file and every word beneath it.

    Args:
        path: Path of the folder or file.
    """
    sc = _ctx(ctx)
    async with sc.write_lock:
        return vocab_delete(sc.workspace, path=path)


@mcp_server.tool()
async def vocab_add_words_tool(
    ctx: Context,
    path: str,
    words: list[dict[str, Any]],
) -> dict[str, Any]:
    """Append words to a vocabulary file.

    Args:
        path: File path.
        words: Entries like {"word": "cat", "meaning": "con mèo",
            "wordClass": "noun", "pronunciation": "kæt"}. Only "word" is required.
    """
    sc = _ctx(ctx)
    async with sc.write_lock:
        return vocab_add_words(sc.workspace, path=path, words=words)


@mcp_server.tool()
async def vocab_sync_counts_tool(ctx: Context) -> dict[str, Any]:
    """Rebuild the per-file word counts from the stored vocabulary."""
    sc = _ctx(ctx)
    async with sc.write_lock:
        return vocab_sync_counts(sc.workspace)


def run_mcp_server() -> None:
    """Run the MCP server with stdio transport."""
    from vocab_tree.logging_config import configure_logging

    configure_logging(verbose=False)
    mcp_server.run(transport="stdio")
