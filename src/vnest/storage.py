"""Word storage capability with sqlite and key-value implementations."""

from __future__ import annotations

import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

from vnest import db as _db
from vnest.exceptions import ConfigError, StorageError
from vnest.kvstore import FileKeyValueStore, KeyValueStore
from vnest.models import ALL_COLLECTIONS

if TYPE_CHECKING:
    from vnest.config import Config

logger = logging.getLogger(__name__)

Row = dict[str, Any]

KEY_PREFIX = "@words:"


class WordStore(ABC):
    """Storage for the four word collections.

    Rows are plain dicts keyed by column name. Every method raises
    :class:`StorageError` when the underlying store fails.
    """

    name: str = "abstract"

    @abstractmethod
    def get(self, collection: str, row_id: int) -> Row | None:
        """Return one row by id, or None."""

    @abstractmethod
    def all(self, collection: str) -> list[Row]:
        """Return every row of a collection ordered by id."""

    @abstractmethod
    def insert_many(self, rows: Mapping[str, Sequence[Row]]) -> None:
        """Insert rows for several collections in one atomic batch."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every row from every collection."""

    def count(self, collection: str) -> int:
        return len(self.all(collection))

    def is_populated(self) -> bool:
        return any(self.count(c) > 0 for c in ALL_COLLECTIONS)

    def close(self) -> None:
        """Release the store."""

    def __enter__(self) -> WordStore:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class SqliteWordStore(WordStore):
    """Embedded sqlite database, one table per collection."""

    name = "sqlite"

    def __init__(self, db_path: str | Path = ":memory:") -> None:
        self._db_path = str(db_path)
        self._conn = _db.connect(db_path)
        try:
            _db.check_schema_version(self._conn)
            _db.init_db(self._conn)
        except sqlite3.Error as e:
            self._conn.close()
            raise StorageError(f"Cannot initialize {self._db_path!r}: {e}") from e
        except StorageError:
            self._conn.close()
            raise

    def get(self, collection: str, row_id: int) -> Row | None:
        try:
            row = _db.get_row(self._conn, collection, row_id)
        except sqlite3.Error as e:
            raise StorageError(f"Lookup in {collection} failed: {e}") from e
        return _sqlite_row(row) if row is not None else None

    def all(self, collection: str) -> list[Row]:
        try:
            return [_sqlite_row(r) for r in _db.all_rows(self._conn, collection)]
        except sqlite3.Error as e:
            raise StorageError(f"Reading {collection} failed: {e}") from e

    def count(self, collection: str) -> int:
        try:
            return _db.count_rows(self._conn, collection)
        except sqlite3.Error as e:
            raise StorageError(f"Counting {collection} failed: {e}") from e

    def insert_many(self, rows: Mapping[str, Sequence[Row]]) -> None:
        try:
            with self._conn:
                for collection, items in rows.items():
                    _db.insert_rows(self._conn, collection, items)
                _db.set_meta(self._conn, "seeded_rows", str(sum(map(len, rows.values()))))
        except (sqlite3.Error, KeyError) as e:
            raise StorageError(f"Batch insert failed, nothing written: {e}") from e

    def clear(self) -> None:
        try:
            with self._conn:
                for collection in ALL_COLLECTIONS:
                    _db.delete_all(self._conn, collection)
        except sqlite3.Error as e:
            raise StorageError(f"Clearing word data failed: {e}") from e

    def close(self) -> None:
        self._conn.close()


def _sqlite_row(row: sqlite3.Row) -> Row:
    data = dict(row)
    if "is_fitting" in data:
        data["is_fitting"] = bool(data["is_fitting"])
    return data


class KeyValueWordStore(WordStore):
    """Collections kept as JSON array strings in a key-value store."""

    name = "keyvalue"

    def __init__(self, kv: KeyValueStore | None = None) -> None:
        self.kv = kv if kv is not None else KeyValueStore()

    @staticmethod
    def key_for(collection: str) -> str:
        if collection not in ALL_COLLECTIONS:
            raise StorageError(f"Unknown collection: {collection!r}")
        return f"{KEY_PREFIX}{collection}"

    def _load(self, collection: str) -> list[Row]:
        raw = self.kv.get(self.key_for(collection))
        if raw is None:
            return []
        try:
            rows = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt data under {collection!r}: {e}") from e
        if not isinstance(rows, list):
            raise StorageError(f"Data under {collection!r} is not a list")
        columns = _db.COLUMNS[collection]
        for row in rows:
            if not isinstance(row, dict) or any(c not in row for c in columns):
                raise StorageError(
                    f"Malformed row under {collection!r}: {row!r} "
                    f"(expected columns {', '.join(columns)})"
                )
        return rows

    def get(self, collection: str, row_id: int) -> Row | None:
        for row in self._load(collection):
            if row.get("id") == row_id:
                return row
        return None

    def all(self, collection: str) -> list[Row]:
        return sorted(self._load(collection), key=lambda r: r["id"])

    def insert_many(self, rows: Mapping[str, Sequence[Row]]) -> None:
        updates: dict[str, str] = {}
        for collection, items in rows.items():
            existing = self._load(collection)
            seen = {r["id"] for r in existing}
            merged = list(existing)
            for item in items:
                if item["id"] in seen:
                    raise StorageError(
                        f"Duplicate id {item['id']} in {collection}, nothing written"
                    )
                seen.add(item["id"])
                merged.append(dict(item))
            updates[self.key_for(collection)] = json.dumps(merged, ensure_ascii=False)
        self.kv.set_many(updates)

    def clear(self) -> None:
        self.kv.delete(*(self.key_for(c) for c in ALL_COLLECTIONS))

    def close(self) -> None:
        self.kv.close()


def open_store(config: Config) -> WordStore:
    """Build the word store selected by ``config.backend``."""
    if config.backend == "sqlite":
        logger.debug("Opening sqlite word store at %s", config.db_path)
        return SqliteWordStore(config.db_path)
    if config.backend == "keyvalue":
        if config.kv_path is None:
            logger.debug("Opening in-memory key-value word store")
            return KeyValueWordStore(KeyValueStore())
        logger.debug("Opening key-value word store at %s", config.kv_path)
        return KeyValueWordStore(FileKeyValueStore(config.kv_path))
    raise ConfigError(f"Unknown storage backend: {config.backend!r}")
