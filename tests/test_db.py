"""Tests for the sqlite schema and row helpers."""

import sqlite3

import pytest

from vnest import db
from vnest.exceptions import StorageError


@pytest.fixture
def db_conn():
    """Create an in-memory database connection for testing."""
    conn = db.connect(":memory:")
    db.init_db(conn)
    yield conn
    conn.close()


def test_schema_version_recorded(db_conn):
    assert db.get_meta(db_conn, "schema_version") == db.SCHEMA_VERSION
    assert db.get_meta(db_conn, "created_at") is not None


def test_init_db_is_repeatable(db_conn):
    db.init_db(db_conn)
    count = db_conn.execute(
        "SELECT COUNT(*) FROM meta WHERE key = 'schema_version'"
    ).fetchone()[0]
    assert count == 1


def test_insert_and_get_row(db_conn):
    with db_conn:
        db.insert_rows(db_conn, "verbs", [{"id": 7, "value": "Syö", "type": "Verb"}])
    row = db.get_row(db_conn, "verbs", 7)
    assert row["value"] == "Syö"
    assert db.get_row(db_conn, "verbs", 8) is None
    assert db.count_rows(db_conn, "verbs") == 1


def test_all_rows_ordered_by_id(db_conn):
    with db_conn:
        db.insert_rows(db_conn, "patients", [
            {"id": 3, "value": "pastaa", "type": "Patient"},
            {"id": 1, "value": "omenaa", "type": "Patient"},
        ])
    assert [r["id"] for r in db.all_rows(db_conn, "patients")] == [1, 3]


def test_type_column_is_checked(db_conn):
    with pytest.raises(sqlite3.IntegrityError):
        with db_conn:
            db.insert_rows(db_conn, "agents", [{"id": 1, "value": "Äiti", "type": "Verb"}])


def test_trio_key_is_unique(db_conn):
    trio = {"agent_id": 1, "verb_id": 1, "patient_id": 1, "is_fitting": True}
    with pytest.raises(sqlite3.IntegrityError):
        with db_conn:
            db.insert_rows(db_conn, "avp_trios", [{"id": 1, **trio}, {"id": 2, **trio}])
    assert db.count_rows(db_conn, "avp_trios") == 0


def test_unknown_collection_rejected(db_conn):
    with pytest.raises(StorageError):
        db.all_rows(db_conn, "sqlite_master")


def test_set_meta_overwrites(db_conn):
    db.set_meta(db_conn, "seeded_rows", "3")
    db.set_meta(db_conn, "seeded_rows", "5")
    assert db.get_meta(db_conn, "seeded_rows") == "5"
    assert db.get_meta(db_conn, "missing") is None


def test_schema_version_mismatch(tmp_path):
    path = tmp_path / "words.db"
    conn = db.connect(path)
    db.init_db(conn)
    conn.execute("UPDATE meta SET value = '0.1' WHERE key = 'schema_version'")
    conn.commit()
    with pytest.raises(StorageError, match="Incompatible schema version"):
        db.check_schema_version(conn)
    conn.close()


def test_uninitialized_db_passes_version_check():
    conn = db.connect(":memory:")
    db.check_schema_version(conn)
    conn.close()
