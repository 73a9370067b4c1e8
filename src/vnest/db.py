"""Database connection, DDL, and low-level CRUD for the sqlite word store."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from vnest.exceptions import StorageError
from vnest.models import ALL_COLLECTIONS, TRIO_COLLECTION

SCHEMA_VERSION = "1.0"

# Column order used for inserts, per collection
COLUMNS: dict[str, tuple[str, ...]] = {
    "agents": ("id", "value", "type"),
    "verbs": ("id", "value", "type"),
    "patients": ("id", "value", "type"),
    TRIO_COLLECTION: ("id", "agent_id", "verb_id", "patient_id", "is_fitting"),
}

# ---------------------------------------------------------------------------
# DDL statements
# ---------------------------------------------------------------------------

_DDL = """
-- Meta table
CREATE TABLE IF NOT EXISTS meta (
    key TEXT NOT NULL,
    value TEXT,
    UNIQUE (key)
);

-- Word tables
CREATE TABLE IF NOT EXISTS agents (
    id INTEGER PRIMARY KEY,
    value TEXT NOT NULL,
    type TEXT NOT NULL DEFAULT 'Agent' CHECK( type = 'Agent' )
);

CREATE TABLE IF NOT EXISTS verbs (
    id INTEGER PRIMARY KEY,
    value TEXT NOT NULL,
    type TEXT NOT NULL DEFAULT 'Verb' CHECK( type = 'Verb' )
);
CREATE INDEX IF NOT EXISTS verb_value_index ON verbs (value);

CREATE TABLE IF NOT EXISTS patients (
    id INTEGER PRIMARY KEY,
    value TEXT NOT NULL,
    type TEXT NOT NULL DEFAULT 'Patient' CHECK( type = 'Patient' )
);

-- Agent-verb-patient combinations
CREATE TABLE IF NOT EXISTS avp_trios (
    id INTEGER PRIMARY KEY,
    agent_id INTEGER NOT NULL,
    verb_id INTEGER NOT NULL,
    patient_id INTEGER NOT NULL,
    is_fitting BOOLEAN CHECK( is_fitting IN (0, 1) ) NOT NULL,
    UNIQUE (agent_id, verb_id, patient_id)
);
CREATE INDEX IF NOT EXISTS avp_trio_verb_index ON avp_trios (verb_id, is_fitting);
"""


def connect(db_path: str | Path = ":memory:") -> sqlite3.Connection:
    """Open a database connection with store PRAGMA settings."""
    db_path_str = str(db_path)
    try:
        conn = sqlite3.connect(db_path_str, check_same_thread=False)
        if db_path_str != ":memory:":
            conn.execute("PRAGMA journal_mode = WAL")
    except sqlite3.Error as e:
        raise StorageError(f"Cannot open word database {db_path_str!r}: {e}") from e
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Initialize all tables if they don't exist. Set schema version."""
    conn.executescript(_DDL)
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) VALUES ('schema_version', ?)",
        (SCHEMA_VERSION,),
    )
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) "
        "VALUES ('created_at', strftime('%Y-%m-%dT%H:%M:%f', 'now'))",
    )
    conn.commit()


def check_schema_version(conn: sqlite3.Connection) -> None:
    """Verify the database schema version is compatible."""
    try:
        row = conn.execute(
            "SELECT value FROM meta WHERE key = 'schema_version'"
        ).fetchone()
    except sqlite3.OperationalError:
        # meta table doesn't exist - uninitialized DB
        return
    if row is None:
        return
    version = row[0]
    if version != SCHEMA_VERSION:
        raise StorageError(
            f"Incompatible schema version: {version} "
            f"(expected {SCHEMA_VERSION})"
        )


def _table(collection: str) -> str:
    if collection not in ALL_COLLECTIONS:
        raise StorageError(f"Unknown collection: {collection!r}")
    return collection


# ---------------------------------------------------------------------------
# Row helpers
# ---------------------------------------------------------------------------

def get_row(
    conn: sqlite3.Connection, collection: str, row_id: int,
) -> sqlite3.Row | None:
    """Get one row of a collection by primary key, or None."""
    return conn.execute(
        f"SELECT * FROM {_table(collection)} WHERE id = ?",
        (row_id,),
    ).fetchone()


def all_rows(conn: sqlite3.Connection, collection: str) -> list[sqlite3.Row]:
    """Get every row of a collection ordered by id."""
    return conn.execute(
        f"SELECT * FROM {_table(collection)} ORDER BY id"
    ).fetchall()


def count_rows(conn: sqlite3.Connection, collection: str) -> int:
    row = conn.execute(f"SELECT COUNT(*) FROM {_table(collection)}").fetchone()
    return row[0]


def insert_rows(
    conn: sqlite3.Connection,
    collection: str,
    rows: Iterable[Mapping[str, Any]],
) -> None:
    """Insert rows into a collection. Caller owns the transaction."""
    columns = COLUMNS[_table(collection)]
    placeholders = ", ".join("?" for _ in columns)
    conn.executemany(
        f"INSERT INTO {collection} ({', '.join(columns)}) VALUES ({placeholders})",
        ([row[c] for c in columns] for row in rows),
    )


def delete_all(conn: sqlite3.Connection, collection: str) -> None:
    conn.execute(f"DELETE FROM {_table(collection)}")


def set_meta(conn: sqlite3.Connection, key: str, value: str) -> None:
    conn.execute(
        "INSERT INTO meta (key, value) VALUES (?, ?) "
        "ON CONFLICT (key) DO UPDATE SET value = excluded.value",
        (key, value),
    )


def get_meta(conn: sqlite3.Connection, key: str) -> str | None:
    row = conn.execute("SELECT value FROM meta WHERE key = ?", (key,)).fetchone()
    return row[0] if row else None
