"""Parsing of WhatsApp chat exports into message records.

Supported header shapes (locale dependent):

    [DD/MM/YYYY, HH:MM:SS] Author: Message
    DD/MM/YYYY, HH:MM - Author: Message
    M/D/YY, H:MM AM - Author: Message

Lines that do not start a message are continuation lines and are appended to
the message currently being accumulated; blank continuation lines are
dropped. Text before the first header line is ignored.

The parser performs no file I/O; callers pass the full export text.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Callable, List, Optional

from domain.models import ParsedMessage
from parsing.chat_datetime import try_resolve_timestamp

__all__ = [
    "HEADER_RE",
    "ChatTranscriptParser",
    "parse_chat",
]

_log = logging.getLogger(__name__)

HEADER_RE = re.compile(
    r"^\[?"
    r"(?P<date>\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4})"
    r",?\s+"
    r"(?P<time>\d{1,2}:\d{2}(?::\d{2})?(?:\s*[AP]M)?)"
    # "] " with an optional dash, or a bare dash separator
    r"(?:\]\s*(?:[-\u2013\u2014]\s*)?|\s*[-\u2013\u2014]\s*)"
    r"(?P<author>[^:]+?):\s*"
    r"(?P<body>.*)$",
    re.IGNORECASE,
)

# iOS exports prefix lines with directional marks
_INVISIBLE_PREFIX = "\ufeff\u200e\u200f"

TimestampResolver = Callable[[str, str], Optional[int]]


class ChatTranscriptParser:
    """Single-pass transcript parser.

    ``fallback_count`` reports how many header lines in the last ``parse``
    call had an unusable date/time and were stamped with the current instant.
    """

    def __init__(
        self,
        resolver: TimestampResolver = try_resolve_timestamp,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._resolver = resolver
        self._clock = clock
        self.fallback_count = 0

    def _timestamp(self, date_token: str, time_token: str) -> int:
        millis = self._resolver(date_token, time_token)
        if millis is None:
            self.fallback_count += 1
            return int(self._clock() * 1000)
        return millis

    def parse(self, text: str) -> List[ParsedMessage]:
        self.fallback_count = 0
        messages: List[ParsedMessage] = []
        current: Optional[ParsedMessage] = None
        body: List[str] = []

        def flush() -> None:
            if current is not None:
                current.text = "\n".join(body)
                messages.append(current)

        for raw in text.split("\n"):
            line = raw.rstrip("\r")
            match = HEADER_RE.match(line.lstrip(_INVISIBLE_PREFIX))
            if match:
                flush()
                author = match.group("author").strip()
                current = ParsedMessage(
                    timestamp=self._timestamp(match.group("date"), match.group("time")),
                    author=author,
                    author_name=author,
                    text="",
                )
                body = [match.group("body").strip()]
            elif current is not None and line.strip():
                body.append(line)
        flush()

        if self.fallback_count:
            _log.debug(
                "Parsed %d messages, %d with fallback timestamps",
                len(messages),
                self.fallback_count,
            )
        return messages


def parse_chat(text: str) -> List[ParsedMessage]:
    """Parse a chat export into messages in transcript order."""
    return ChatTranscriptParser().parse(text)
