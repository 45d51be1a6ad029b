"""Migration catalog: discovery of SQL migration units on disk.

Naming convention: ``<digits>_<description>.sql`` (e.g. ``001_init.sql``).
The numeric prefix is the unit id (positive) and the only ordering key; zero
padding is allowed but not required because units are sorted by parsed id.

Behavior:
 - Missing source directory -> empty catalog plus a warning (an install may
   intentionally ship no migrations).
 - Files not matching the naming convention are skipped without error.
 - Two files with the same id make the catalog unusable
   (``DuplicateMigrationError``).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Union

from config import settings
from core import filesystem
from .errors import DuplicateMigrationError

__all__ = ["MigrationUnit", "list_units", "parse_unit_filename"]

_log = logging.getLogger(__name__)

SourceLocation = Union[str, Path]


@dataclass(frozen=True)
class MigrationUnit:
    id: int
    name: str
    body: str
    path: Path | None = None


def _filename_pattern(extension: str) -> re.Pattern[str]:
    return re.compile(r"^(\d+)_(.+)" + re.escape(extension) + r"$")


def parse_unit_filename(
    filename: str, extension: str = settings.MIGRATION_EXTENSION
) -> tuple[int, str] | None:
    """Return (id, name) for a conforming filename, else ``None``."""
    m = _filename_pattern(extension).match(filename)
    if not m:
        return None
    unit_id = int(m.group(1))
    if unit_id <= 0:
        return None
    return unit_id, m.group(2)


def list_units(
    source: SourceLocation, extension: str = settings.MIGRATION_EXTENSION
) -> List[MigrationUnit]:
    root = Path(source)
    if not root.is_dir():
        _log.warning("Migrations directory not found: %s", root)
        return []

    by_id: Dict[int, MigrationUnit] = {}
    for entry in sorted(root.iterdir()):
        if not entry.is_file():
            continue
        parsed = parse_unit_filename(entry.name, extension)
        if parsed is None:
            _log.debug("Skipping non-migration file %s", entry.name)
            continue
        unit_id, name = parsed
        if unit_id in by_id:
            raise DuplicateMigrationError(
                f"Migration id {unit_id} used by both {by_id[unit_id].path.name} and {entry.name}",
                context={"migration_id": unit_id},
            )
        by_id[unit_id] = MigrationUnit(
            id=unit_id, name=name, body=filesystem.read_text(str(entry)), path=entry
        )
    return [by_id[k] for k in sorted(by_id)]
