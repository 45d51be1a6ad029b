"""Repository layer

Typed repositories over a provided sqlite3.Connection for the tables created
by the bundled migrations. Repositories do not commit; callers own
transaction boundaries (``with conn:``).

Timestamps (``ts``, ``timestamp``, ``*_at``) are integer milliseconds since
the epoch.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence
import sqlite3
import time

from config import settings
from domain.models import Milestone, MilestoneStatus
from ..errors import InvalidMilestoneStatusError

__all__ = [
    "GroupRow",
    "MessageRow",
    "AuditRow",
    "GroupContextRow",
    "GroupRepository",
    "MessageRepository",
    "MilestoneRepository",
    "ConfigRepository",
    "AuditRepository",
    "GroupContextRepository",
]


def _now_ms() -> int:
    return int(time.time() * 1000)


# ---- Read models ----


@dataclass(frozen=True)
class GroupRow:
    id: str
    name: str
    is_watched: bool
    has_history_uploaded: bool
    history_uploaded_at: Optional[int]
    auto_response_enabled: bool
    auto_response_trigger: Optional[str]


@dataclass(frozen=True)
class MessageRow:
    id: str
    group_id: str
    author: str
    author_name: str
    timestamp: int
    text: str
    raw: str


@dataclass(frozen=True)
class AuditRow:
    id: int
    kind: str
    detail: str
    ts: int


@dataclass(frozen=True)
class GroupContextRow:
    group_id: str
    context: str
    updated_at: Optional[int]


class _BaseRepo:
    def __init__(self, conn: sqlite3.Connection):
        self._c = conn


# ---- Concrete Implementations ----

_GROUP_COLUMNS = (
    "id, name, is_watched, has_history_uploaded, history_uploaded_at,"
    " auto_response_enabled, auto_response_trigger"
)


def _group_row(r) -> GroupRow:
    return GroupRow(
        id=r[0],
        name=r[1],
        is_watched=bool(r[2]),
        has_history_uploaded=bool(r[3]),
        history_uploaded_at=r[4],
        auto_response_enabled=bool(r[5]),
        auto_response_trigger=r[6],
    )


class GroupRepository(_BaseRepo):
    def upsert(self, group_id: str, name: str, is_watched: bool = False) -> None:
        """Insert a group or rename it; watch and history flags of existing rows are kept."""
        cur = self._c.cursor()
        cur.execute(
            "INSERT INTO groups(id, name, is_watched) VALUES(?,?,?) ON CONFLICT(id) DO NOTHING",
            (group_id, name, 1 if is_watched else 0),
        )
        cur.execute("UPDATE groups SET name=? WHERE id=?", (name, group_id))

    def get(self, group_id: str) -> Optional[GroupRow]:
        cur = self._c.cursor()
        cur.execute(f"SELECT {_GROUP_COLUMNS} FROM groups WHERE id=?", (group_id,))
        row = cur.fetchone()
        return _group_row(row) if row else None

    def list_all(self) -> Sequence[GroupRow]:
        cur = self._c.cursor()
        cur.execute(f"SELECT {_GROUP_COLUMNS} FROM groups ORDER BY name")
        return [_group_row(r) for r in cur.fetchall()]

    def list_watched(self) -> Sequence[GroupRow]:
        cur = self._c.cursor()
        cur.execute(f"SELECT {_GROUP_COLUMNS} FROM groups WHERE is_watched=1 ORDER BY name")
        return [_group_row(r) for r in cur.fetchall()]

    def set_watched(self, group_id: str, is_watched: bool) -> bool:
        cur = self._c.execute(
            "UPDATE groups SET is_watched=? WHERE id=?", (1 if is_watched else 0, group_id)
        )
        return cur.rowcount > 0

    def set_history_uploaded(
        self, group_id: str, uploaded: bool, at: Optional[int] = None
    ) -> bool:
        stamp = (at if at is not None else _now_ms()) if uploaded else None
        cur = self._c.execute(
            "UPDATE groups SET has_history_uploaded=?, history_uploaded_at=? WHERE id=?",
            (1 if uploaded else 0, stamp, group_id),
        )
        return cur.rowcount > 0

    def set_auto_response(
        self, group_id: str, enabled: bool, trigger: Optional[str] = None
    ) -> bool:
        cur = self._c.execute(
            "UPDATE groups SET auto_response_enabled=?, auto_response_trigger=? WHERE id=?",
            (
                1 if enabled else 0,
                trigger or settings.DEFAULT_AUTO_RESPONSE_TRIGGER,
                group_id,
            ),
        )
        return cur.rowcount > 0


class MessageRepository(_BaseRepo):
    def insert(self, row: MessageRow) -> bool:
        """Insert a message; returns False when the id already exists."""
        cur = self._c.execute(
            """
            INSERT OR IGNORE INTO messages(id, group_id, author, author_name, timestamp, text, raw)
            VALUES(?,?,?,?,?,?,?)
            """,
            (
                row.id,
                row.group_id,
                row.author,
                row.author_name,
                row.timestamp,
                row.text,
                row.raw,
            ),
        )
        return cur.rowcount > 0

    def list(
        self,
        group_id: Optional[str] = None,
        since: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Sequence[MessageRow]:
        """Messages newest first, optionally filtered by group and minimum timestamp."""
        query = "SELECT id, group_id, author, author_name, timestamp, text, raw FROM messages"
        conditions: list[str] = []
        params: list[object] = []
        if group_id is not None:
            conditions.append("group_id = ?")
            params.append(group_id)
        if since is not None:
            conditions.append("timestamp >= ?")
            params.append(since)
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        query += " ORDER BY timestamp DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        cur = self._c.execute(query, params)
        return [MessageRow(*r) for r in cur.fetchall()]

    def count(self, group_id: str) -> int:
        cur = self._c.execute("SELECT COUNT(*) FROM messages WHERE group_id=?", (group_id,))
        return int(cur.fetchone()[0])

    def delete_for_group(self, group_id: str) -> int:
        """Delete a group's messages and reset its history flag; returns rows deleted."""
        cur = self._c.execute("DELETE FROM messages WHERE group_id=?", (group_id,))
        deleted = cur.rowcount
        GroupRepository(self._c).set_history_uploaded(group_id, False)
        return deleted

    def authors(self, group_ids: Iterable[str]) -> Sequence[str]:
        ids = list(group_ids)
        if not ids:
            return []
        marks = ",".join("?" for _ in ids)
        cur = self._c.execute(
            f"SELECT DISTINCT author_name FROM messages WHERE group_id IN ({marks}) ORDER BY author_name",
            ids,
        )
        return [r[0] for r in cur.fetchall()]


class MilestoneRepository(_BaseRepo):
    def upsert(self, milestone: Milestone) -> None:
        self._c.execute(
            """
            INSERT OR REPLACE INTO milestones
            (id, title, description, owner, due_date, acceptance_criteria, status, last_update_ts)
            VALUES(?,?,?,?,?,?,?,?)
            """,
            (
                milestone.id,
                milestone.title,
                milestone.description,
                milestone.owner,
                milestone.due_date,
                milestone.acceptance_criteria,
                MilestoneStatus(milestone.status).value,
                milestone.last_update_ts,
            ),
        )

    def list_all(self) -> Sequence[Milestone]:
        cur = self._c.execute(
            """
            SELECT id, title, description, owner, due_date, acceptance_criteria, status, last_update_ts
            FROM milestones ORDER BY due_date
            """
        )
        return [
            Milestone(r[0], r[1], r[2], r[3], r[4], r[5], MilestoneStatus(r[6]), r[7])
            for r in cur.fetchall()
        ]

    def update_status(self, milestone_id: str, status: str, update_ts: int) -> bool:
        parsed = MilestoneStatus.parse(status)
        if parsed is None:
            raise InvalidMilestoneStatusError(
                f"Unknown milestone status: {status!r}", context={"milestone_id": milestone_id}
            )
        cur = self._c.execute(
            "UPDATE milestones SET status=?, last_update_ts=? WHERE id=?",
            (parsed.value, update_ts, milestone_id),
        )
        return cur.rowcount > 0


class ConfigRepository(_BaseRepo):
    def get(self, key: str) -> Optional[str]:
        cur = self._c.execute("SELECT value FROM config WHERE key=?", (key,))
        row = cur.fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        self._c.execute("INSERT OR REPLACE INTO config(key, value) VALUES(?,?)", (key, value))

    def get_int(self, key: str, default: int = 0) -> int:
        raw = self.get(key)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError:
            return default


class AuditRepository(_BaseRepo):
    def log(self, kind: str, detail: str, ts: Optional[int] = None) -> None:
        self._c.execute(
            "INSERT INTO audit(kind, detail, ts) VALUES(?,?,?)",
            (kind, detail, ts if ts is not None else _now_ms()),
        )

    def recent(self, limit: int = settings.DEFAULT_AUDIT_LIMIT) -> Sequence[AuditRow]:
        cur = self._c.execute(
            "SELECT id, kind, detail, ts FROM audit ORDER BY ts DESC, id DESC LIMIT ?", (limit,)
        )
        return [AuditRow(*r) for r in cur.fetchall()]


class GroupContextRepository(_BaseRepo):
    def get(self, group_id: str) -> GroupContextRow:
        cur = self._c.execute(
            "SELECT group_id, context, updated_at FROM group_context WHERE group_id=?",
            (group_id,),
        )
        row = cur.fetchone()
        if not row:
            return GroupContextRow(group_id=group_id, context="", updated_at=None)
        return GroupContextRow(*row)

    def update(self, group_id: str, context: str) -> None:
        self._c.execute(
            "INSERT OR REPLACE INTO group_context(group_id, context, updated_at) VALUES(?,?,?)",
            (group_id, context, _now_ms()),
        )
        AuditRepository(self._c).log("GROUP_CONTEXT_UPDATE", f"Updated context for group {group_id}")

    def delete(self, group_id: str) -> None:
        self._c.execute("DELETE FROM group_context WHERE group_id=?", (group_id,))
        AuditRepository(self._c).log("GROUP_CONTEXT_DELETE", f"Deleted context for group {group_id}")
