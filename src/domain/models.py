"""Domain models for the chat monitoring core."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(slots=True)
class ParsedMessage:
    """One message recovered from a chat export.

    ``timestamp`` is milliseconds since the epoch, interpreted on the local
    clock. ``author`` and ``author_name`` carry the same trimmed display name;
    exports do not expose a stable author id.
    """

    timestamp: int
    author: str
    author_name: str
    text: str


class MilestoneStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    AT_RISK = "AT_RISK"
    BLOCKED = "BLOCKED"
    DONE = "DONE"

    @classmethod
    def parse(cls, value: str) -> Optional["MilestoneStatus"]:
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


@dataclass(slots=True)
class Milestone:
    id: str
    title: str
    description: str
    owner: str
    due_date: str
    acceptance_criteria: str
    status: MilestoneStatus
    last_update_ts: int
