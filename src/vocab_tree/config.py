"""Configuration constants for vocab-tree."""

import os
from pathlib import Path

# Storage record keys.
STORAGE_KEY_TREE: str = "wordly_tree"
STORAGE_KEY_COUNTS: str = "wordly_vocab_counts"
STORAGE_KEY_FILE_PREFIX: str = "wordly_vocab_file:"
LAST_CHANGE_TIMESTAMP_KEY: str = "wordly_last_change_timestamp"

# Local storage budget, counted in characters of key + value.
DEFAULT_QUOTA_CHARS: int = 5 * 1024 * 1024

# Names used when the user leaves a name empty.
DEFAULT_ROOT_LABEL: str = "Root"
DEFAULT_FOLDER_NAME: str = "New folder"
DEFAULT_FILE_NAME: str = "new_vocabulary.txt"
RENAME_FALLBACK_FOLDER: str = "Folder"
RENAME_FALLBACK_FILE: str = "file.txt"

# Import/export payload format version.
TRANSFER_VERSION: str = "1.0"

# Database file inside the data directory.
DB_FILENAME: str = "vocab.db"

# Directory with data. First directory which is found is used.
DATA_DIRECTORIES: list[Path] = [
    Path("~/.local/share/vocab-tree").expanduser(),
    Path("~/.vocab-tree").expanduser(),
]

# Dictionary lookup.
TRACAU_BASE_URL: str = "https://api.tracau.vn/WBBcwnwQpV89"
LOOKUP_TIMEOUT: float = 10.0


def resolve_data_directory() -> Path:
    """Return the data directory.

    VOCAB_TREE_DATA_DIR wins; otherwise the first existing entry of
    DATA_DIRECTORIES, falling back to the first one.
    """
    env_dir = os.environ.get("VOCAB_TREE_DATA_DIR")
    if env_dir:
        return Path(env_dir).expanduser()
    for candidate in DATA_DIRECTORIES:
        if candidate.is_dir():
            return candidate
    return DATA_DIRECTORIES[0]
