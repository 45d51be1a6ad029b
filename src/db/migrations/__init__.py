"""Bundled SQL migrations for the local store.

Each unit is a ``<id>_<description>.sql`` file in this directory holding a
batch of SQLite statements. Ids are zero-padded so that directory listings
read in application order; the runner sorts by parsed id regardless.

Units are forward-only: once released, a file is never edited. Schema
changes ship as a new, higher-numbered file.
"""

from __future__ import annotations
from pathlib import Path

MIGRATIONS_DIR = Path(__file__).resolve().parent

__all__ = ["MIGRATIONS_DIR"]
