"""WordRepository: seeded read access to words and trios."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from vnest.exceptions import (
    EmptyCollectionError,
    NotFoundError,
    SeedError,
    StorageError,
)
from vnest.models import TRIO_COLLECTION, Trio, Word, WordType
from vnest.seed import load_seed_data
from vnest.storage import Row, WordStore

logger = logging.getLogger(__name__)


class WordRepository:
    """Read access to the word collections, seeded once from bundled data.

    Lookups never raise: unknown ids give ``None``, unavailable storage
    gives empty lists, and both are logged as warnings.
    """

    def __init__(self, store: WordStore, data_dir: str | Path | None = None) -> None:
        self.store = store
        self.data_dir = data_dir
        self._seeded = False
        self._seed_attempted = False
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def seed_if_needed(self) -> bool:
        """Seed the store from bundled data unless it already holds data.

        Returns True when word data is available afterwards. Repeated calls
        after a successful seed are no-ops.
        """
        with self._lock:
            if self._seeded:
                return True
            self._seed_attempted = True
            try:
                if self.store.is_populated():
                    logger.debug("Word store already populated, skipping seed")
                    self._seeded = True
                    return True
                rows = load_seed_data(self.data_dir)
                self.store.insert_many(rows)
            except (SeedError, StorageError) as e:
                logger.warning("Seeding word data failed: %s", e)
                return False
            self._seeded = True
            logger.info(
                "Seeded word store (%s): %s",
                self.store.name, {c: len(r) for c, r in rows.items()},
            )
            return True

    def reload(self) -> bool:
        """Drop all stored word data and seed again."""
        with self._lock:
            self.clear()
            return self.seed_if_needed()

    def clear(self) -> None:
        """Remove all word data. The next access seeds again."""
        with self._lock:
            try:
                self.store.clear()
            except StorageError as e:
                logger.warning("Clearing word data failed: %s", e)
            self._seeded = False
            self._seed_attempted = False

    def _ensure_seeded(self) -> None:
        if not self._seeded and not self._seed_attempted:
            self.seed_if_needed()

    # ------------------------------------------------------------------
    # Words
    # ------------------------------------------------------------------

    def require(self, word_type: WordType, word_id: int) -> Word:
        """Return a word or raise NotFoundError."""
        self._ensure_seeded()
        row = self.store.get(word_type.collection, word_id)
        if row is None:
            raise NotFoundError(f"{word_type.value} not found: {word_id!r}")
        return _row_to_word(row, word_type)

    def get_by_id(self, word_type: WordType, word_id: int) -> Word | None:
        try:
            return self.require(word_type, word_id)
        except (NotFoundError, StorageError) as e:
            logger.warning("%s", e)
            return None

    def require_all(self, word_type: WordType) -> list[Word]:
        """Return every word of a type or raise EmptyCollectionError."""
        self._ensure_seeded()
        rows = self.store.all(word_type.collection)
        if not rows:
            raise EmptyCollectionError(f"No {word_type.collection} available")
        return [_row_to_word(r, word_type) for r in rows]

    def get_all(self, word_type: WordType) -> list[Word]:
        try:
            return self.require_all(word_type)
        except (EmptyCollectionError, StorageError) as e:
            logger.warning("%s", e)
            return []

    def find_by_value(self, word_type: WordType, value: str) -> Word | None:
        """Case-insensitive lookup of a word by its written value."""
        wanted = value.strip().casefold()
        for word in self.get_all(word_type):
            if word.value.casefold() == wanted:
                return word
        return None

    # ------------------------------------------------------------------
    # Trios
    # ------------------------------------------------------------------

    def trios(self) -> list[Trio]:
        self._ensure_seeded()
        try:
            return [_row_to_trio(r) for r in self.store.all(TRIO_COLLECTION)]
        except StorageError as e:
            logger.warning("Reading trios failed: %s", e)
            return []

    def trios_for_verb(self, verb_id: int) -> list[Trio]:
        return [t for t in self.trios() if t.verb_id == verb_id]

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def is_empty(self) -> bool:
        """True when no playable word data is available."""
        self._ensure_seeded()
        try:
            return self.store.count(TRIO_COLLECTION) == 0
        except StorageError as e:
            logger.warning("%s", e)
            return True

    def counts(self) -> dict[str, int]:
        self._ensure_seeded()
        result: dict[str, int] = {}
        for collection in (*(t.collection for t in WordType), TRIO_COLLECTION):
            try:
                result[collection] = self.store.count(collection)
            except StorageError as e:
                logger.warning("%s", e)
                result[collection] = 0
        return result


def _row_to_word(row: Row, word_type: WordType) -> Word:
    try:
        return Word(id=row["id"], value=row["value"], type=word_type)
    except (KeyError, TypeError) as e:
        raise StorageError(f"Malformed {word_type.value} row: {row!r}") from e


def _row_to_trio(row: Row) -> Trio:
    try:
        return Trio(
            id=row["id"],
            agent_id=row["agent_id"],
            verb_id=row["verb_id"],
            patient_id=row["patient_id"],
            is_fitting=bool(row["is_fitting"]),
        )
    except (KeyError, TypeError) as e:
        raise StorageError(f"Malformed trio row: {row!r}") from e
