"""Protocols for dependency injection in vocab-tree."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class StorageProtocol(Protocol):
    """Synchronous key-value store holding every persisted record."""

    def get_item(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""
        ...

    def set_item(self, key: str, value: str) -> None:
        """Store value under key. Raises StorageError on failure."""
        ...

    def remove_item(self, key: str) -> None:
        """Remove key. Removing a missing key is not an error."""
        ...

    def keys(self) -> list[str]:
        """Return all stored keys."""
        ...
