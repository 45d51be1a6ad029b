"""Opening the local store.

``open_database`` is the single startup path: it creates the parent
directory, connects, enables foreign keys, applies pending migrations and
writes a ``DATABASE_INIT`` audit entry. Run it once per process; the
migration runner does not guard against concurrent invocations.

When the migrations leave no ``audit`` table behind (e.g. the migrations
directory is missing) the audit entry is skipped with a warning and the
connection is still returned.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from config import settings
from core import filesystem
from .migration_catalog import SourceLocation
from .migration_manager import MigrationRunner
from .repositories import AuditRepository
from .schema import get_existing_tables

__all__ = ["connect", "open_database"]

_log = logging.getLogger(__name__)


def connect(path: Optional[str] = None) -> sqlite3.Connection:
    db_path = path or settings.db_path()
    if db_path != ":memory:":
        filesystem.ensure_parent_dir(db_path)
    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def open_database(
    path: Optional[str] = None, migrations_dir: Optional[SourceLocation] = None
) -> sqlite3.Connection:
    conn = connect(path)
    try:
        applied = MigrationRunner(conn).run(migrations_dir)
        if "audit" in get_existing_tables(conn):
            with conn:
                AuditRepository(conn).log(
                    "DATABASE_INIT", f"Database initialized ({len(applied)} migrations applied)"
                )
        else:
            _log.warning("No audit table after migrations; skipping DATABASE_INIT entry")
    except Exception:
        conn.close()
        raise
    _log.debug("Opened database %s", path or settings.db_path())
    return conn
