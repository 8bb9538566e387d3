"""CLI for vocab-tree: browse and edit the vocabulary tree."""

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Any

import typer
from loguru import logger

from vocab_tree.config import resolve_data_directory
from vocab_tree.core.backup import create_backup, restore_backup
from vocab_tree.core.storage.backend import StorageError, open_storage
from vocab_tree.core.storage.vocab_store import VocabStore
from vocab_tree.core.tree.markdown import render_tree_as_markdown
from vocab_tree.core.write.workspace import VocabularyWorkspace
from vocab_tree.logging_config import configure_logging
from vocab_tree.lookup import DictionaryLookupError, TracauApi
from vocab_tree.models.node import WORD_CLASSES, VocabItem

app = typer.Typer(help="Vocabulary tree: organize word lists into folders and files.")

DataDirOption = Annotated[
    Path | None,
    typer.Option("--data-dir", "-d", help="Directory holding vocab.db"),
]


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose=verbose)


@contextmanager
def _workspace(data_dir: Path | None, *, seed: bool = True) -> Iterator[VocabularyWorkspace]:
    storage = open_storage(data_dir or resolve_data_directory())
    try:
        yield VocabularyWorkspace(VocabStore(storage), seed=seed)
    finally:
        storage.close()


def _resolve(ws: VocabularyWorkspace, name_path: str) -> list[str]:
    path = ws.resolve(name_path)
    if path is None:
        typer.echo(f"Not found: {name_path!r}")
        raise typer.Exit(1)
    return path


def _report(result: dict[str, Any], ok_message: str) -> None:
    if not result["success"]:
        typer.echo(f"Error: {result['error']}")
        raise typer.Exit(1)
    typer.echo(ok_message.format(**result))
    if result.get("warning"):
        typer.echo(f"Warning: {result['warning']}")


@app.command()
def init(
    data_dir: DataDirOption = None,
    empty: bool = typer.Option(False, "--empty", help="Start with an empty root instead of demo data"),
) -> None:
    """Create the store (if missing) and repair counts."""
    with _workspace(data_dir, seed=not empty) as ws:
        typer.echo(f"{len(ws.file_names())} files, {sum(ws.counts.values())} words")


@app.command()
def tree(
    path: str = typer.Argument("", help="Folder path, e.g. 'Animals'"),
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", "-m", help="Max depth levels to render"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Show the tree with word counts."""
    with _workspace(data_dir) as ws:
        located = ws.find(_resolve(ws, path))
        if located is None:
            raise typer.Exit(1)
        typer.echo(render_tree_as_markdown(located.node, counts=ws.counts, max_depth=max_depth), nl=False)


@app.command()
def mkdir(
    parent: str = typer.Argument(..., help="Parent folder path ('' for root)"),
    name: str = typer.Argument(..., help="New folder name"),
    data_dir: DataDirOption = None,
) -> None:
    """Create a folder."""
    with _workspace(data_dir) as ws:
        _report(ws.create_folder(_resolve(ws, parent), name), "Created folder {name!r}")


@app.command()
def new(
    parent: str = typer.Argument(..., help="Parent folder path ('' for root)"),
    name: str = typer.Argument(..., help="New file name"),
    data_dir: DataDirOption = None,
) -> None:
    """Create an empty vocabulary file."""
    with _workspace(data_dir) as ws:
        _report(ws.create_file(_resolve(ws, parent), name), "Created file {name!r}")


@app.command()
def rename(
    path: str = typer.Argument(..., help="Path of the folder or file"),
    new_name: str = typer.Argument(..., help="New name"),
    data_dir: DataDirOption = None,
) -> None:
    """Rename a folder or file."""
    with _workspace(data_dir) as ws:
        _report(ws.rename(_resolve(ws, path), new_name), "Renamed to {name!r}")


@app.command()
def mv(
    path: str = typer.Argument(..., help="Path of the folder or file"),
    dest: str = typer.Argument(..., help="Destination folder path"),
    data_dir: DataDirOption = None,
) -> None:
    """Move a folder or file into another folder."""
    with _workspace(data_dir) as ws:
        _report(ws.move(_resolve(ws, path), _resolve(ws, dest)), "Moved {name!r}")


@app.command()
def cp(
    path: str = typer.Argument(..., help="Path of the folder or file"),
    dest: str = typer.Argument(..., help="Destination folder path"),
    data_dir: DataDirOption = None,
) -> None:
    """Copy a folder or file, with its vocabulary, into another folder."""
    with _workspace(data_dir) as ws:
        _report(ws.copy(_resolve(ws, path), _resolve(ws, dest)), "Copied as {name!r}")


@app.command()
def rm(
    path: str = typer.Argument(..., help="Path of the folder or file"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    data_dir: DataDirOption = None,
) -> None:
    """Delete a folder or file and all vocabulary beneath it."""
    with _workspace(data_dir) as ws:
        id_path = _resolve(ws, path)
        located = ws.find(id_path)
        if located is None:
            raise typer.Exit(1)
        if not yes:
            typer.confirm(f"Delete {located.node.display_name!r}?", abort=True)
        result = ws.delete(id_path)
        _report(result, "Deleted")
        typer.echo(f"{len(result['removed_files'])} vocabulary files removed")


@app.command()
def show(
    path: str = typer.Argument(..., help="File path"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
    data_dir: DataDirOption = None,
) -> None:
    """List the words in a file."""
    with _workspace(data_dir) as ws:
        id_path = _resolve(ws, path)
        payload = ws.export_file(id_path)
        if output_json:
            typer.echo(json.dumps(payload["vocabulary"] if payload else [], indent=2, ensure_ascii=False))
            return
        entries = ws.load_entries(id_path)
        typer.echo(f"{len(entries)} words:\n")
        for i, e in enumerate(entries):
            cls = f" ({e.word_class})" if e.word_class else ""
            pron = f" /{e.pronunciation}/" if e.pronunciation else ""
            typer.echo(f"  {i:>3}. {e.word}{cls}{pron}  {e.meaning}")


@app.command()
def add(
    path: str = typer.Argument(..., help="File path"),
    word: str = typer.Argument(..., help="The word"),
    meaning: str = typer.Option("", "--meaning", "-m", help="Meaning"),
    word_class: str = typer.Option("", "--class", "-c", help=f"One of: {', '.join(WORD_CLASSES)}"),
    pronunciation: str = typer.Option("", "--pronunciation", "-p", help="Pronunciation"),
    data_dir: DataDirOption = None,
) -> None:
    """Add a word to a file."""
    try:
        item = VocabItem(word=word, meaning=meaning, word_class=word_class, pronunciation=pronunciation)
    except ValueError as e:
        typer.echo(f"Error: {e}")
        raise typer.Exit(1) from e
    with _workspace(data_dir) as ws:
        _report(ws.add_entry(_resolve(ws, path), item), "{name} now has {count} words")


@app.command()
def remove(
    path: str = typer.Argument(..., help="File path"),
    words: list[str] = typer.Argument(..., help="Words to remove"),
    data_dir: DataDirOption = None,
) -> None:
    """Remove words from a file."""
    with _workspace(data_dir) as ws:
        _report(ws.delete_entries(_resolve(ws, path), words), "Removed {deleted} words from {name}")


@app.command(name="sync-counts")
def sync_counts(
    purge: bool = typer.Option(False, "--purge", help="Also delete vocabulary no file points at"),
    data_dir: DataDirOption = None,
) -> None:
    """Rebuild the word count table from the stored vocabulary."""
    with _workspace(data_dir) as ws:
        result = ws.sync_counts()
        if not result["success"]:
            typer.echo(f"Error: {result['error']}")
            raise typer.Exit(1)
        typer.echo(f"Counts synced for {len(result['counts'])} files")
        if purge:
            removed = ws.store.purge_orphaned_files(ws.tree)
            typer.echo(f"Purged {removed} orphaned records")


@app.command(name="export")
def export_cmd(
    path: str = typer.Argument(..., help="Folder or file path"),
    output: Path = typer.Option(..., "--output", "-o", help="JSON file to write"),
    data_dir: DataDirOption = None,
) -> None:
    """Export a file or folder (with its vocabulary) as JSON."""
    with _workspace(data_dir) as ws:
        id_path = _resolve(ws, path)
        payload = ws.export_file(id_path) or ws.export_folder(id_path)
        if payload is None:
            typer.echo("Nothing to export: the file has no words.")
            raise typer.Exit(1)
        output.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        typer.echo(f"Exported to {output}")


@app.command(name="import")
def import_cmd(
    dest: str = typer.Argument(..., help="Destination folder path"),
    source: Path = typer.Argument(..., help="JSON file from 'export'"),
    data_dir: DataDirOption = None,
) -> None:
    """Import a file or folder exported as JSON."""
    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        typer.echo(f"Error: cannot read {source}: {e}")
        raise typer.Exit(1) from e

    with _workspace(data_dir) as ws:
        dest_path = _resolve(ws, dest)
        if isinstance(payload, dict) and "folderStructure" in payload:
            _report(ws.import_folder(dest_path, payload), "Imported folder {name!r}")
        else:
            fallback = source.stem + ".txt"
            _report(ws.import_file(dest_path, payload, fallback_name=fallback), "Imported file {name!r}")


@app.command()
def backup(
    output: Path = typer.Argument(..., help="JSON file to write"),
    data_dir: DataDirOption = None,
) -> None:
    """Write every stored record to a backup file."""
    with _workspace(data_dir) as ws:
        payload = create_backup(ws.store.storage)
    output.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    typer.echo(f"Backed up {len(payload['records'])} records to {output}")


@app.command()
def restore(
    source: Path = typer.Argument(..., help="Backup file"),
    data_dir: DataDirOption = None,
) -> None:
    """Replace the store contents with a backup."""
    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        typer.echo(f"Error: cannot read {source}: {e}")
        raise typer.Exit(1) from e

    storage = open_storage(data_dir or resolve_data_directory())
    try:
        count = restore_backup(storage, payload)
        VocabularyWorkspace(VocabStore(storage)).sync_counts()
    except (ValueError, StorageError) as e:
        logger.error("Restore failed: {}", e)
        typer.echo(f"Error: {e}")
        raise typer.Exit(1) from e
    finally:
        storage.close()
    typer.echo(f"Restored {count} records")


@app.command()
def lookup(
    word: str = typer.Argument(..., help="Word to look up"),
    limit: int = typer.Option(5, "--limit", "-n", help="Max example sentences"),
) -> None:
    """Look up a word in the Tracau dictionary."""
    api = TracauApi()
    try:
        definition = api.definition_text(word)
        sentences = api.example_sentences(word, limit=limit)
    except (DictionaryLookupError, ValueError) as e:
        typer.echo(f"Error: {e}")
        raise typer.Exit(1) from e

    if definition:
        typer.echo(definition[:500])
        typer.echo()
    for s in sentences:
        typer.echo(f"  {s.en}")
        typer.echo(f"    {s.vi}")


@app.command()
def serve() -> None:
    """Start the MCP server (stdio transport)."""
    from vocab_tree.mcp.server import run_mcp_server

    run_mcp_server()
