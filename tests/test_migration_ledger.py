import sqlite3

import pytest

from db.migration_catalog import MigrationUnit
from db.migration_ledger import MigrationLedger, MigrationLedgerEntry


def test_ensure_table_is_idempotent(conn):
    ledger = MigrationLedger(conn)
    ledger.ensure_table()
    ledger.ensure_table()
    cols = [r[1] for r in conn.execute("PRAGMA table_info(_migrations)").fetchall()]
    assert cols == ["id", "name", "applied_at"]
    assert ledger.applied_ids() == set()


def test_record_and_read_back(conn):
    ledger = MigrationLedger(conn)
    ledger.ensure_table()
    ledger.record(MigrationUnit(2, "second", "SELECT 1;"), 2000)
    ledger.record(MigrationUnit(1, "first", "SELECT 1;"), 1000)
    assert ledger.applied_ids() == {1, 2}
    assert ledger.entries() == [
        MigrationLedgerEntry(1, "first", 1000),
        MigrationLedgerEntry(2, "second", 2000),
    ]


def test_duplicate_record_fails_loudly(conn):
    ledger = MigrationLedger(conn)
    ledger.ensure_table()
    unit = MigrationUnit(1, "first", "SELECT 1;")
    ledger.record(unit, 1000)
    with pytest.raises(sqlite3.IntegrityError):
        ledger.record(unit, 2000)
