"""Structured errors raised by the store and its migration system."""

from __future__ import annotations
from typing import Any


class StoreError(Exception):
    """Base class for local store issues."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}


class MigrationError(StoreError):
    """Raised when a migration unit fails to execute or to be recorded.

    The run is aborted at the failing unit; units after it are not attempted.
    """

    def __init__(self, migration_id: int, migration_name: str, phase: str, cause: BaseException):
        super().__init__(
            f"Migration {migration_id} ({migration_name}) failed during {phase}: {cause}",
            context={"migration_id": migration_id, "migration_name": migration_name, "phase": phase},
        )
        self.migration_id = migration_id
        self.migration_name = migration_name
        self.phase = phase


class DuplicateMigrationError(StoreError):
    """Raised when two catalog files share the same numeric id."""


class InvalidMilestoneStatusError(StoreError):
    """Raised when a milestone status is outside the allowed set."""


__all__ = [
    "StoreError",
    "MigrationError",
    "DuplicateMigrationError",
    "InvalidMilestoneStatusError",
]
