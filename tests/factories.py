from __future__ import annotations

import sqlite3
from pathlib import Path

from db.schema import apply_schema
from db.repositories import GroupRepository


def make_conn() -> sqlite3.Connection:
    conn = sqlite3.connect(":memory:")
    conn.execute("PRAGMA foreign_keys=ON")
    apply_schema(conn)
    return conn


def create_group(conn: sqlite3.Connection, group_id: str = "g1", name: str = "Project Alpha") -> str:
    with conn:
        GroupRepository(conn).upsert(group_id, name)
    return group_id


def write_migration(directory: Path, filename: str, body: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    p = directory / filename
    p.write_text(body, encoding="utf-8")
    return p


__all__ = [
    "make_conn",
    "create_group",
    "write_migration",
]
