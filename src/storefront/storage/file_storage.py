"""JSON file storage adapter — one file per key inside a directory.

Writes go to a temporary file that is renamed over the target, so a
reader never sees a half-written snapshot.
"""

import os
from pathlib import Path

from storefront.storage.storage_port import LocalStoragePort, PersistenceWriteFailure


class JsonFileStorage(LocalStoragePort):
    def __init__(self, directory):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        try:
            return self._path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set_item(self, key: str, value: str) -> None:
        target = self._path(key)
        tmp = target.with_suffix(".json.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp.write_text(value, encoding="utf-8")
            os.replace(tmp, target)
        except OSError as exc:
            raise PersistenceWriteFailure(key, str(exc)) from exc

    def remove_item(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceWriteFailure(key, str(exc)) from exc
