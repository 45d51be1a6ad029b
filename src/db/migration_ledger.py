"""Migration ledger: record of applied migration units.

The ledger lives in the same database the migrations modify, in table
``_migrations (id INTEGER PRIMARY KEY, name TEXT, applied_at INTEGER)``.
Rows are append-only. ``applied_at`` is milliseconds since the epoch.

``record`` does not commit; the runner owns transaction boundaries. Insert
failures (e.g. a duplicate id) propagate unchanged.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import List, Set

from config import settings
from .migration_catalog import MigrationUnit

__all__ = ["MigrationLedger", "MigrationLedgerEntry"]


@dataclass(frozen=True)
class MigrationLedgerEntry:
    id: int
    name: str
    applied_at: int


class MigrationLedger:
    def __init__(self, conn: sqlite3.Connection, table: str = settings.LEDGER_TABLE):
        self._c = conn
        self.table = table

    def ensure_table(self) -> None:
        self._c.execute(
            f"CREATE TABLE IF NOT EXISTS {self.table} ("
            " id INTEGER PRIMARY KEY,"
            " name TEXT NOT NULL,"
            " applied_at INTEGER NOT NULL"
            ")"
        )

    def applied_ids(self) -> Set[int]:
        cur = self._c.execute(f"SELECT id FROM {self.table} ORDER BY id")
        return {int(r[0]) for r in cur.fetchall()}

    def entries(self) -> List[MigrationLedgerEntry]:
        cur = self._c.execute(f"SELECT id, name, applied_at FROM {self.table} ORDER BY id")
        return [MigrationLedgerEntry(int(r[0]), r[1], int(r[2])) for r in cur.fetchall()]

    def record(self, unit: MigrationUnit, applied_at: int) -> None:
        self._c.execute(
            f"INSERT INTO {self.table}(id, name, applied_at) VALUES(?,?,?)",
            (unit.id, unit.name, applied_at),
        )
