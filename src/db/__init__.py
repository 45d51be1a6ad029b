"""Database package for the local Statuz store.

Provides the SQL migration system (catalog, ledger, runner), schema
helpers, repositories and chat history ingestion over sqlite3.

Public API:
"""

from .schema import apply_schema, get_existing_tables  # noqa: F401
from .errors import (  # noqa: F401
    StoreError,
    MigrationError,
    DuplicateMigrationError,
    InvalidMilestoneStatusError,
)
from .migration_catalog import MigrationUnit, list_units  # noqa: F401
from .migration_ledger import MigrationLedger, MigrationLedgerEntry  # noqa: F401
from .migration_manager import (  # noqa: F401
    MigrationRunner,
    RunnerState,
    apply_pending_migrations,
)
from .connection import connect, open_database  # noqa: F401
from .ingest import import_chat_history, import_chat_file, ChatImportReport  # noqa: F401
from .repositories import (  # noqa: F401
    GroupRepository,
    MessageRepository,
    MilestoneRepository,
    ConfigRepository,
    AuditRepository,
    GroupContextRepository,
)

__all__ = [
    "apply_schema",
    "get_existing_tables",
    "StoreError",
    "MigrationError",
    "DuplicateMigrationError",
    "InvalidMilestoneStatusError",
    "MigrationUnit",
    "list_units",
    "MigrationLedger",
    "MigrationLedgerEntry",
    "MigrationRunner",
    "RunnerState",
    "apply_pending_migrations",
    "connect",
    "open_database",
    "import_chat_history",
    "import_chat_file",
    "ChatImportReport",
    # Repositories
    "GroupRepository",
    "MessageRepository",
    "MilestoneRepository",
    "ConfigRepository",
    "AuditRepository",
    "GroupContextRepository",
]
