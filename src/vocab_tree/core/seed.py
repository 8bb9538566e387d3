"""Demo tree and vocabulary used when the store is empty."""

from vocab_tree.config import DEFAULT_ROOT_LABEL
from vocab_tree.core.tree.utils import gen_id
from vocab_tree.models.node import FileLeaf, FolderNode, VocabItem

SEED_VOCAB: dict[str, list[VocabItem]] = {
    "vocab1.txt": [
        VocabItem("apple", "quả táo", "noun", "ˈæp.əl"),
        VocabItem("eat", "ăn", "verb", "iːt"),
        VocabItem("delicious", "ngon", "adjective", "dɪˈlɪʃ.əs"),
    ],
    "vocab2.txt": [
        VocabItem("run", "chạy", "verb", "rʌn"),
        VocabItem("quickly", "một cách nhanh chóng", "adverb", "ˈkwɪk.li"),
        VocabItem("tired", "mệt", "adjective", "taɪəd"),
    ],
    "vocab3.txt": [
        VocabItem("drink", "uống", "verb", "drɪŋk"),
        VocabItem("water", "nước", "noun", "ˈwɔː.tər"),
    ],
    "vocab4.txt": [
        VocabItem("study", "học", "verb", "ˈstʌd.i"),
        VocabItem("book", "sách", "noun", "bʊk"),
    ],
}


def empty_tree() -> FolderNode:
    return FolderNode(id=gen_id(), label=DEFAULT_ROOT_LABEL)


def default_tree() -> FolderNode:
    """Build the demo tree. Identifiers are fresh on every call."""

    def folder(label: str, *children: FolderNode | FileLeaf) -> FolderNode:
        return FolderNode(id=gen_id(), label=label, children=list(children))

    def file(name: str) -> FileLeaf:
        return FileLeaf(id=gen_id(), name=name)

    return folder(
        DEFAULT_ROOT_LABEL,
        folder("Thực phẩm & Ăn uống", file("vocab1.txt")),
        folder(
            "Hoạt động hàng ngày",
            file("vocab2.txt"),
            folder("Thể thao", file("vocab3.txt")),
        ),
        folder("Công việc & Giáo dục", file("vocab4.txt")),
    )
