"""SQLite schema helpers.

The schema itself is defined by the bundled SQL migrations
(``db/migrations/NNN_*.sql``); this module applies them and inspects the
result.

Tables:
 - groups, messages, milestones, config, audit (001_init)
 - history / auto-response columns on groups (002_group_history)
 - group_context (003_group_context)
 - _migrations ledger (created by the migration runner)

Foreign keys are enforced only when the caller enables PRAGMA foreign_keys=ON.
"""

from __future__ import annotations
import sqlite3

from .migration_manager import MigrationRunner

CORE_TABLES = frozenset(
    {
        "groups",
        "messages",
        "milestones",
        "config",
        "audit",
        "group_context",
        "_migrations",
    }
)


def apply_schema(conn: sqlite3.Connection) -> list[int]:
    """Bring ``conn`` up to the latest bundled schema; returns applied unit ids."""
    return [u.id for u in MigrationRunner(conn).run()]


def get_existing_tables(conn: sqlite3.Connection) -> list[str]:
    cur = conn.cursor()
    cur.execute("SELECT name FROM sqlite_master WHERE type='table'")
    return sorted(r[0] for r in cur.fetchall())


def get_table_columns(conn: sqlite3.Connection, table: str) -> list[str]:
    cur = conn.execute(f"PRAGMA table_info({table})")
    return [r[1] for r in cur.fetchall()]
