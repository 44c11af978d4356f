"""Local storage port — abstract key/value store for device-local state."""

from abc import ABC, abstractmethod


class PersistenceWriteFailure(Exception):
    """Writing to local storage failed (quota exceeded, read-only disk, ...)."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Could not write '{key}' to local storage: {reason}")


class LocalStoragePort(ABC):
    """Abstract interface for durable, device-local string storage.

    Values are JSON documents serialized by the caller. Adapters raise
    PersistenceWriteFailure when a write or removal cannot be completed.
    """

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None: ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove the key. Removing an absent key is not an error."""
        ...
