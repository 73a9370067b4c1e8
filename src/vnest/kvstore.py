"""Flat key-value string stores (in-memory and JSON file backed)."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from collections.abc import Mapping
from pathlib import Path

from vnest.exceptions import StorageError

logger = logging.getLogger(__name__)


class KeyValueStore:
    """An in-memory string key-value store.

    Values are opaque strings; callers serialize their own data.
    """

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def set_many(self, items: Mapping[str, str]) -> None:
        """Write several keys at once; readers never see a partial update."""
        for key, value in items.items():
            if not isinstance(value, str):
                raise StorageError(
                    f"Value for {key!r} must be a string, got {type(value).__name__}"
                )
        with self._lock:
            updated = {**self._data, **items}
            self._commit(updated)
            self._data = updated

    def delete(self, *keys: str) -> None:
        with self._lock:
            updated = {k: v for k, v in self._data.items() if k not in keys}
            self._commit(updated)
            self._data = updated

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)

    def close(self) -> None:
        """Release resources. Nothing to do for the in-memory store."""

    def _commit(self, data: dict[str, str]) -> None:
        """Persist ``data``. Raises StorageError on failure."""


class FileKeyValueStore(KeyValueStore):
    """A key-value store persisted as one JSON object on disk."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        super().__init__(self._load())

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Cannot read key-value file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Key-value file {self.path} must hold a JSON object")
        return {str(k): str(v) for k, v in data.items()}

    def _commit(self, data: dict[str, str]) -> None:
        # Write to a sibling temp file, then swap it in
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(
                dir=self.path.parent, prefix=self.path.name, suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp, self.path)
        except OSError as e:
            raise StorageError(f"Cannot write key-value file {self.path}: {e}") from e
        logger.debug("Wrote %d keys to %s", len(data), self.path)
