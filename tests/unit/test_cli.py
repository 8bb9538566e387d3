"""Tests for the vocab-tree CLI."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import Result
from typer.testing import CliRunner

from vocab_tree.cli import app
from vocab_tree.lookup import DictionaryLookupError, ExampleSentence

runner = CliRunner()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


def _run(data_dir: Path, *args: str, stdin: str | None = None) -> Result:
    return runner.invoke(app, [*args, "--data-dir", str(data_dir)], input=stdin)


@pytest.fixture
def animals(data_dir: Path) -> Path:
    """Empty store with Animals/pets.txt holding one word."""
    assert _run(data_dir, "init", "--empty").exit_code == 0
    assert _run(data_dir, "mkdir", "", "Animals").exit_code == 0
    assert _run(data_dir, "new", "Animals", "pets.txt").exit_code == 0
    result = _run(data_dir, "add", "Animals/pets.txt", "cat", "-m", "con mèo", "-c", "noun")
    assert result.exit_code == 0, result.output
    return data_dir


def test_init_seeds_demo_data(data_dir: Path) -> None:
    result = _run(data_dir, "init")
    assert result.exit_code == 0, result.output
    assert "4 files, 10 words" in result.output
    assert (data_dir / "vocab.db").exists()


def test_init_empty(data_dir: Path) -> None:
    result = _run(data_dir, "init", "--empty")
    assert result.exit_code == 0
    assert "0 files, 0 words" in result.output


def test_tree_shows_counts(animals: Path) -> None:
    result = _run(animals, "tree")
    assert result.exit_code == 0
    assert "- Root/" in result.output
    assert "    - Animals/" in result.output
    assert "- pets.txt (1)" in result.output


def test_tree_of_missing_path(animals: Path) -> None:
    result = _run(animals, "tree", "Plants")
    assert result.exit_code == 1
    assert "Not found" in result.output


def test_add_reports_count(animals: Path) -> None:
    result = _run(animals, "add", "Animals/pets.txt", "dog")
    assert result.exit_code == 0
    assert "pets.txt now has 2 words" in result.output


def test_add_rejects_unknown_class(animals: Path) -> None:
    result = _run(animals, "add", "Animals/pets.txt", "dog", "-c", "animal")
    assert result.exit_code == 1
    assert "Unknown word class" in result.output


def test_show_lists_words(animals: Path) -> None:
    result = _run(animals, "show", "Animals/pets.txt")
    assert result.exit_code == 0
    assert "1 words" in result.output
    assert "cat (noun)  con mèo" in result.output


def test_show_json(animals: Path) -> None:
    result = _run(animals, "show", "Animals/pets.txt", "--json")
    assert result.exit_code == 0
    start = result.output.index("[")
    data = json.loads(result.output[start:])
    assert data[0]["word"] == "cat"


def test_rename_keeps_words(animals: Path) -> None:
    result = _run(animals, "rename", "Animals/pets.txt", "pets-en.txt")
    assert result.exit_code == 0
    assert "Renamed to 'pets-en.txt'" in result.output
    assert "cat" in _run(animals, "show", "Animals/pets-en.txt").output
    assert _run(animals, "show", "Animals/pets.txt").exit_code == 1


def test_new_with_taken_name_is_suffixed(animals: Path) -> None:
    result = _run(animals, "new", "", "pets.txt")
    assert result.exit_code == 0
    assert "Created file 'pets (2).txt'" in result.output


def test_mv_and_cp(animals: Path) -> None:
    assert _run(animals, "mkdir", "", "Zoo").exit_code == 0
    result = _run(animals, "mv", "Animals", "Zoo")
    assert result.exit_code == 0
    assert "Moved 'Animals'" in result.output

    result = _run(animals, "cp", "Zoo/Animals", "")
    assert result.exit_code == 0
    assert "Copied as 'Animals'" in result.output
    assert "pets (2).txt (1)" in _run(animals, "tree").output


def test_mv_into_own_subfolder_fails(animals: Path) -> None:
    _run(animals, "mkdir", "Animals", "Sub")
    result = _run(animals, "mv", "Animals", "Animals/Sub")
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_rm_requires_confirmation(animals: Path) -> None:
    result = _run(animals, "rm", "Animals", stdin="n\n")
    assert result.exit_code == 1
    assert "pets.txt" in _run(animals, "tree").output

    result = _run(animals, "rm", "Animals", "--yes")
    assert result.exit_code == 0
    assert "1 vocabulary files removed" in result.output
    assert "Animals" not in _run(animals, "tree").output


def test_remove_words(animals: Path) -> None:
    result = _run(animals, "remove", "Animals/pets.txt", "cat", "zebra")
    assert result.exit_code == 0
    assert "Removed 1 words from pets.txt" in result.output


def test_sync_counts(animals: Path) -> None:
    result = _run(animals, "sync-counts", "--purge")
    assert result.exit_code == 0
    assert "Counts synced for 1 files" in result.output
    assert "Purged 0 orphaned records" in result.output


def test_export_and_import_folder(animals: Path, tmp_path: Path) -> None:
    out = tmp_path / "animals.json"
    result = _run(animals, "export", "Animals", "-o", str(out))
    assert result.exit_code == 0
    assert json.loads(out.read_text(encoding="utf-8"))["vocabularyData"]["pets.txt"][0]["word"] == "cat"

    result = _run(animals, "import", "", str(out))
    assert result.exit_code == 0
    assert "Imported folder 'Animals (2)'" in result.output


def test_export_and_import_file(animals: Path, tmp_path: Path) -> None:
    out = tmp_path / "pets.json"
    assert _run(animals, "export", "Animals/pets.txt", "-o", str(out)).exit_code == 0
    result = _run(animals, "import", "Animals", str(out))
    assert result.exit_code == 0
    assert "Imported file 'pets (2).txt'" in result.output


def test_export_empty_file_fails(animals: Path, tmp_path: Path) -> None:
    _run(animals, "new", "", "empty.txt")
    result = _run(animals, "export", "empty.txt", "-o", str(tmp_path / "x.json"))
    assert result.exit_code == 1
    assert not (tmp_path / "x.json").exists()


def test_import_unreadable_file(animals: Path, tmp_path: Path) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text("{nope", encoding="utf-8")
    result = _run(animals, "import", "", str(bad))
    assert result.exit_code == 1
    assert "cannot read" in result.output


def test_backup_and_restore(animals: Path, tmp_path: Path) -> None:
    backup_file = tmp_path / "backup.json"
    result = _run(animals, "backup", str(backup_file))
    assert result.exit_code == 0
    assert "wordly_tree" in json.loads(backup_file.read_text(encoding="utf-8"))["records"]

    _run(animals, "rm", "Animals", "--yes")
    result = _run(animals, "restore", str(backup_file))
    assert result.exit_code == 0, result.output
    assert "- pets.txt (1)" in _run(animals, "tree").output


def test_restore_rejects_non_backup(animals: Path, tmp_path: Path) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text('{"version": "1.0"}', encoding="utf-8")
    result = _run(animals, "restore", str(bad))
    assert result.exit_code == 1
    assert "records" in result.output


def test_lookup_prints_definition_and_sentences() -> None:
    with patch("vocab_tree.cli.TracauApi") as api_cls:
        api = api_cls.return_value
        api.definition_text.return_value = "run: chạy"
        api.example_sentences.return_value = (ExampleSentence(en="I run.", vi="Tôi chạy."),)
        result = runner.invoke(app, ["lookup", "run", "-n", "1"])
    assert result.exit_code == 0
    assert "run: chạy" in result.output
    assert "I run." in result.output
    api.example_sentences.assert_called_once_with("run", limit=1)


def test_lookup_failure_exits_nonzero() -> None:
    with patch("vocab_tree.cli.TracauApi") as api_cls:
        api_cls.return_value.definition_text.side_effect = DictionaryLookupError("offline")
        result = runner.invoke(app, ["lookup", "run"])
    assert result.exit_code == 1
    assert "offline" in result.output


def test_lookup_blank_word_exits_nonzero() -> None:
    with patch("vocab_tree.cli.TracauApi") as api_cls:
        api_cls.return_value.definition_text.side_effect = ValueError("Cannot look up an empty word")
        result = runner.invoke(app, ["lookup", " "])
    assert result.exit_code == 1
    assert "empty word" in result.output
