"""Migration Manager

Applies pending SQL migration units in ascending id order and records each
one in the ledger (``_migrations``) before moving to the next.

Public API:
- MigrationRunner(conn).run(source=None) -> list[MigrationUnit] applied by this call.
- MigrationRunner(conn).pending(source=None) -> list[MigrationUnit] not yet applied.
- apply_pending_migrations(conn, source=None, dry_run=False) -> list[tuple[int,str]].

Both ``run`` and ``pending`` commit the connection after ensuring the ledger
table, and ``executescript`` commits before running a unit. A transaction the
caller left open on ``conn`` is therefore committed, not rolled back.

Runner states:
    IDLE -> ENSURING_LEDGER -> ENUMERATING -> (EXECUTING -> RECORDING)* -> COMPLETE
and FAILED from any EXECUTING / RECORDING step.

Failure handling:
- The first failing unit aborts the run; later units are not attempted.
- ``MigrationError`` carries the failing unit's id, name and phase and chains
  the underlying sqlite3 error.

Atomicity:
- ``atomic=True`` (default) executes a unit's body and inserts its ledger row
  inside one SQLite transaction. SQLite DDL is transactional, so a failure or
  crash between the two steps leaves neither behind.
- ``atomic=False`` executes then records as two separate steps. A crash in
  between leaves an executed but unrecorded unit which will be executed again
  on the next run; that state needs manual inspection.
- Units that manage their own transaction (a leading ``BEGIN`` or a
  ``COMMIT`` / ``END TRANSACTION`` statement) always take the two-step path
  and are logged as not atomic. ``END;`` closing a trigger body does not count.

Concurrency: no internal locking. Callers must not run two runners against
the same database at once.
"""

from __future__ import annotations

import logging
import re
import sqlite3
import time
from enum import Enum, auto
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from config import settings
from .errors import MigrationError
from .migration_catalog import MigrationUnit, SourceLocation, list_units
from .migration_ledger import MigrationLedger

__all__ = [
    "RunnerState",
    "MigrationRunner",
    "apply_pending_migrations",
    "default_migrations_dir",
    "manages_own_transaction",
]

_log = logging.getLogger(__name__)


class RunnerState(Enum):
    IDLE = auto()
    ENSURING_LEDGER = auto()
    ENUMERATING = auto()
    EXECUTING = auto()
    RECORDING = auto()
    COMPLETE = auto()
    FAILED = auto()


_LEADING_TRIVIA_RE = re.compile(r"\A(?:\s+|--[^\n]*(?:\n|\Z)|/\*.*?\*/)*", re.DOTALL)
_LEADING_BEGIN_RE = re.compile(
    r"BEGIN(?:\s+(?:DEFERRED|IMMEDIATE|EXCLUSIVE))?(?:\s+TRANSACTION)?\s*(?:;|\Z)", re.IGNORECASE
)
_COMMIT_RE = re.compile(r"^\s*(?:COMMIT|END\s+TRANSACTION)\b", re.IGNORECASE | re.MULTILINE)


def manages_own_transaction(body: str) -> bool:
    """True when ``body`` opens or commits its own transaction."""
    rest = body[_LEADING_TRIVIA_RE.match(body).end() :]
    return bool(_LEADING_BEGIN_RE.match(rest) or _COMMIT_RE.search(body))


def default_migrations_dir() -> Path:
    if settings.MIGRATIONS_DIR:
        return Path(settings.MIGRATIONS_DIR)
    from .migrations import MIGRATIONS_DIR

    return MIGRATIONS_DIR


class MigrationRunner:
    def __init__(
        self,
        conn: sqlite3.Connection,
        *,
        ledger: Optional[MigrationLedger] = None,
        atomic: bool = True,
        clock: Callable[[], float] = time.time,
        extension: str = settings.MIGRATION_EXTENSION,
    ) -> None:
        self._c = conn
        self._ledger = ledger or MigrationLedger(conn)
        self._atomic = atomic
        self._clock = clock
        self._extension = extension
        self.state = RunnerState.IDLE

    @property
    def ledger(self) -> MigrationLedger:
        return self._ledger

    def _source(self, source: Optional[SourceLocation]) -> Path:
        return Path(source) if source is not None else default_migrations_dir()

    def _ensure_ledger(self) -> None:
        self.state = RunnerState.ENSURING_LEDGER
        self._ledger.ensure_table()
        self._c.commit()

    def _pending(self, source: Optional[SourceLocation]) -> List[MigrationUnit]:
        self.state = RunnerState.ENUMERATING
        units = list_units(self._source(source), self._extension)
        applied = self._ledger.applied_ids()
        return [u for u in units if u.id not in applied]

    def pending(self, source: Optional[SourceLocation] = None) -> List[MigrationUnit]:
        self._ensure_ledger()
        result = self._pending(source)
        self.state = RunnerState.IDLE
        return result

    def run(self, source: Optional[SourceLocation] = None) -> List[MigrationUnit]:
        self._ensure_ledger()
        pending = self._pending(source)
        if not pending:
            _log.info("No pending migrations")
            self.state = RunnerState.COMPLETE
            return []

        _log.info("Found %d pending migrations", len(pending))
        applied: List[MigrationUnit] = []
        for unit in pending:
            self._apply(unit)
            applied.append(unit)
        self.state = RunnerState.COMPLETE
        _log.info("All migrations completed successfully")
        return applied

    # Internal ---------------------------------------------------------
    def _apply(self, unit: MigrationUnit) -> None:
        _log.info("Applying migration %d: %s", unit.id, unit.name)
        atomic = self._atomic
        if atomic and manages_own_transaction(unit.body):
            _log.warning(
                "Migration %d manages its own transaction; applying it without ledger atomicity",
                unit.id,
            )
            atomic = False
        self.state = RunnerState.EXECUTING
        try:
            if atomic:
                self._c.executescript("BEGIN;\n" + unit.body)
            else:
                self._c.executescript(unit.body)
        except Exception as exc:
            self._fail(unit, "execute", exc, atomic)

        self.state = RunnerState.RECORDING
        try:
            self._ledger.record(unit, int(self._clock() * 1000))
            self._c.commit()
        except Exception as exc:
            self._fail(unit, "record", exc, atomic)
        _log.info("Migration %d completed: %s", unit.id, unit.name)

    def _fail(self, unit: MigrationUnit, phase: str, exc: Exception, atomic: bool) -> None:
        self.state = RunnerState.FAILED
        if self._c.in_transaction:
            self._c.rollback()
        _log.error("Migration %d (%s) failed during %s: %s", unit.id, unit.name, phase, exc)
        if not atomic and phase == "record":
            _log.error(
                "Migration %d executed but was not recorded; inspect the database before retrying",
                unit.id,
            )
        raise MigrationError(unit.id, unit.name, phase, exc) from exc


def apply_pending_migrations(
    conn: sqlite3.Connection,
    source: Optional[SourceLocation] = None,
    dry_run: bool = False,
) -> List[Tuple[int, str]]:
    """Apply (or with ``dry_run`` only list) pending migrations as (id, name) pairs."""
    runner = MigrationRunner(conn)
    units = runner.pending(source) if dry_run else runner.run(source)
    return [(u.id, u.name) for u in units]
