"""Global configuration and constants for the local Statuz store."""

from __future__ import annotations

import os
from typing import Final

DATA_DIR: Final = os.environ.get("STATUZ_DATA_DIR", "data")
DB_FILENAME: Final = os.environ.get("STATUZ_DB_FILENAME", "statuz.sqlite")

# Empty means "use the migrations bundled with the db package"
MIGRATIONS_DIR: Final = os.environ.get("STATUZ_MIGRATIONS_DIR", "")
MIGRATION_EXTENSION: Final = ".sql"
LEDGER_TABLE: Final = "_migrations"

DEFAULT_AUTO_RESPONSE_TRIGGER: Final = "NXSYS_AI"
DEFAULT_AUDIT_LIMIT: Final = 100


def db_path() -> str:
    return os.path.join(DATA_DIR, DB_FILENAME)
