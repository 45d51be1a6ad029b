"""Chat history ingestion

Persists a WhatsApp chat export into the ``messages`` table of one group.

Steps (single transaction):
 - Parse the export with ``ChatTranscriptParser``.
 - Create the group row when it does not exist yet.
 - Insert each message with a deterministic id and a JSON ``raw`` payload.
   The id hashes group, timestamp, author and text, so re-importing the same
   export (or an overlapping, longer one) inserts only new messages.
 - Flag the group's history as uploaded and write an audit entry.

Messages whose header date could not be resolved carry the import time as
timestamp; their number is reported as ``timestamp_fallbacks``. Such messages
get a new id on every import, since their timestamp differs each time.

Public API:
 - import_chat_history(conn, group_id, content, group_name=None) -> ChatImportReport
 - import_chat_file(conn, group_id, path, group_name=None) -> ChatImportReport
 - hash_message(group_id, message) -> str
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
import hashlib
import json
import logging
import sqlite3
from typing import Optional

from core import filesystem
from domain.models import ParsedMessage
from parsing.whatsapp_parser import ChatTranscriptParser
from .repositories import AuditRepository, GroupRepository, MessageRepository, MessageRow

__all__ = [
    "ChatImportReport",
    "hash_message",
    "import_chat_history",
    "import_chat_file",
]

_log = logging.getLogger(__name__)


@dataclass
class ChatImportReport:
    group_id: str
    parsed: int = 0
    inserted: int = 0
    duplicates: int = 0
    timestamp_fallbacks: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def hash_message(group_id: str, message: ParsedMessage) -> str:
    """Return SHA256 hex digest identifying a message within a group."""
    base = f"{group_id}|{message.timestamp}|{message.author}|{message.text}"
    return hashlib.sha256(base.encode("utf-8")).hexdigest()


def _raw_payload(message: ParsedMessage) -> str:
    return json.dumps(
        {
            "timestamp": message.timestamp,
            "author": message.author,
            "authorName": message.author_name,
            "text": message.text,
        },
        ensure_ascii=False,
    )


def import_chat_history(
    conn: sqlite3.Connection,
    group_id: str,
    content: str,
    group_name: Optional[str] = None,
) -> ChatImportReport:
    parser = ChatTranscriptParser()
    messages = parser.parse(content)
    report = ChatImportReport(
        group_id=group_id, parsed=len(messages), timestamp_fallbacks=parser.fallback_count
    )

    groups = GroupRepository(conn)
    repo = MessageRepository(conn)
    with conn:
        if groups.get(group_id) is None:
            groups.upsert(group_id, group_name or group_id)
        elif group_name:
            groups.upsert(group_id, group_name)
        for msg in messages:
            row = MessageRow(
                id=hash_message(group_id, msg),
                group_id=group_id,
                author=msg.author,
                author_name=msg.author_name,
                timestamp=msg.timestamp,
                text=msg.text,
                raw=_raw_payload(msg),
            )
            if repo.insert(row):
                report.inserted += 1
            else:
                report.duplicates += 1
        groups.set_history_uploaded(group_id, True)
        AuditRepository(conn).log(
            "CHAT_HISTORY_IMPORT",
            f"Imported {report.inserted} of {report.parsed} messages into group {group_id}",
        )

    if report.timestamp_fallbacks:
        _log.warning(
            "%d messages in group %s had unreadable timestamps and were stamped with the import time",
            report.timestamp_fallbacks,
            group_id,
        )
    _log.info(
        "Chat history import for %s: parsed=%d inserted=%d duplicates=%d",
        group_id,
        report.parsed,
        report.inserted,
        report.duplicates,
    )
    return report


def import_chat_file(
    conn: sqlite3.Connection,
    group_id: str,
    path: str,
    group_name: Optional[str] = None,
) -> ChatImportReport:
    return import_chat_history(conn, group_id, filesystem.read_text(path), group_name)
