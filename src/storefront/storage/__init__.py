"""Local storage registry — pluggable device-local persistence.

Uses JSON files by default. Configure via the STOREFRONT_STORAGE
environment variable ("file" or "memory") and STOREFRONT_STORAGE_DIR.
"""

import os
from pathlib import Path

_storage_instance = None

DEFAULT_STORAGE_DIR = Path.home() / ".dishdash"


def get_storage():
    """Return the configured storage adapter (singleton)."""
    global _storage_instance
    if _storage_instance is None:
        adapter = os.environ.get("STOREFRONT_STORAGE", "file")
        if adapter == "file":
            from storefront.storage.file_storage import JsonFileStorage

            _storage_instance = JsonFileStorage(os.environ.get("STOREFRONT_STORAGE_DIR", DEFAULT_STORAGE_DIR))
        elif adapter == "memory":
            from storefront.storage.fake_storage import InMemoryStorage

            _storage_instance = InMemoryStorage()
        else:
            raise ValueError(f"Unknown storage adapter: {adapter}")
    return _storage_instance


def reset_storage():
    """Reset the storage singleton (useful for testing)."""
    global _storage_instance
    _storage_instance = None
