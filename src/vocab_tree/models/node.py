"""Domain models for the vocabulary tree."""

from dataclasses import dataclass, field

FOLDER = "folder"
FILE = "file"

WORD_CLASSES: tuple[str, ...] = (
    "noun",
    "verb",
    "adjective",
    "adverb",
    "pronoun",
    "preposition",
    "conjunction",
    "interjection",
    "article",
    "determiner",
    "auxiliary",
)


@dataclass
class FileLeaf:
    """A file in the tree: one vocabulary list, addressed by its name."""

    id: str
    name: str

    @property
    def kind(self) -> str:
        return FILE

    @property
    def display_name(self) -> str:
        return self.name


@dataclass
class FolderNode:
    """A folder in the tree. Children order is display order."""

    id: str
    label: str
    children: list["FolderNode | FileLeaf"] = field(default_factory=list)

    @property
    def kind(self) -> str:
        return FOLDER

    @property
    def display_name(self) -> str:
        return self.label


TreeNode = FolderNode | FileLeaf


@dataclass(frozen=True)
class VocabItem:
    """A single vocabulary entry."""

    word: str
    meaning: str = ""
    word_class: str = ""
    pronunciation: str = ""

    def __post_init__(self) -> None:
        if not self.word.strip():
            msg = "Vocabulary entry needs a non-empty word"
            raise ValueError(msg)
        if self.word_class and self.word_class not in WORD_CLASSES:
            msg = f"Unknown word class: {self.word_class!r}"
            raise ValueError(msg)


@dataclass(frozen=True)
class Located:
    """A node found by path, with its parent and position."""

    node: TreeNode
    parent: FolderNode | None
    index: int


@dataclass(frozen=True)
class RemoveResult:
    """Outcome of excising a node from a tree snapshot."""

    new_root: FolderNode
    removed: TreeNode
