"""In-memory local storage adapter — keeps values in a dict for testing."""

from storefront.storage.storage_port import LocalStoragePort, PersistenceWriteFailure


class InMemoryStorage(LocalStoragePort):
    """Storage adapter that records every write for test assertions."""

    def __init__(self):
        self.items: dict[str, str] = {}
        self.writes: list[tuple[str, str | None]] = []
        self.should_succeed = True
        self.failure_reason = "Storage quota exceeded"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Storage quota exceeded"):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if not self.should_succeed:
            raise PersistenceWriteFailure(key, self.failure_reason)
        self.items[key] = value
        self.writes.append((key, value))

    def remove_item(self, key: str) -> None:
        if not self.should_succeed:
            raise PersistenceWriteFailure(key, self.failure_reason)
        self.items.pop(key, None)
        self.writes.append((key, None))

    def reset(self):
        """Clear stored values (useful between tests)."""
        self.items.clear()
        self.writes.clear()
        self.should_succeed = True
        self.failure_reason = "Storage quota exceeded"
