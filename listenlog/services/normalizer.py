"""
Event Log Normalizer

Turns the raw JSON event log into an ordered tuple of ``Entry`` objects with
a resolved play time and a stable positional index.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Iterable, Mapping

from dateutil import parser as dateutil_parser

from listenlog.services.sessions import SESSION_GAP, assign_sessions

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Record fields tried in order when resolving the play time
TIMESTAMP_FIELDS = ("loggedAt", "timestamp")
MOOD_FIELDS = ("moodType", "mood")


@dataclass(frozen=True)
class Entry:
    """One normalized play event."""

    index: int
    played_at: datetime
    song: str = ""
    artist: str = ""
    album: str = ""
    mood: str | None = None
    session_id: int = 0
    session_start: datetime | None = None
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def has_known_time(self) -> bool:
        return self.played_at != EPOCH

    def with_session(self, session_id: int, session_start: datetime) -> "Entry":
        return replace(self, session_id=session_id, session_start=session_start)

    def to_dict(self) -> dict[str, Any]:
        """Render the original record plus the derived fields."""
        data = dict(self.raw)
        data["index"] = self.index
        data["playedAt"] = self.played_at.isoformat()
        data["knownTime"] = self.has_known_time
        data["sessionId"] = self.session_id
        data["sessionStart"] = self.session_start.isoformat() if self.session_start else None
        return data


def parse_records(data: bytes | str | None) -> list[Any]:
    """
    Parse the log document.

    A corrupt or non-array document yields an empty list instead of an error,
    so one bad write to the log never takes the dashboard down.
    """
    if not data:
        return []
    try:
        parsed = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning(f"Activity log is not valid JSON, treating as empty: {e}")
        return []
    if not isinstance(parsed, list):
        logger.warning(
            f"Activity log must be a JSON array, got {type(parsed).__name__}; treating as empty"
        )
        return []
    return parsed


def parse_timestamp(value: Any, naive_tz: tzinfo = timezone.utc) -> datetime | None:
    """
    Parse a logged timestamp into an aware UTC datetime.

    Accepts ISO-8601 strings (with or without a trailing ``Z``), locale
    formatted strings such as ``10/5/2025, 3:04:05 PM`` and epoch
    milliseconds. Naive values are interpreted in ``naive_tz``.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = dateutil_parser.parse(text.replace(",", " "))
        except (ValueError, OverflowError):
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=naive_tz)
    return parsed.astimezone(timezone.utc)


def resolve_played_at(record: Mapping[str, Any], naive_tz: tzinfo = timezone.utc) -> datetime:
    """Best available play time for a record, or the epoch if none parses."""
    for field_name in TIMESTAMP_FIELDS:
        parsed = parse_timestamp(record.get(field_name), naive_tz)
        if parsed is not None:
            return parsed
    return EPOCH


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _mood(record: Mapping[str, Any]) -> str | None:
    for field_name in MOOD_FIELDS:
        value = record.get(field_name)
        if isinstance(value, str) and value:
            return value
    return None


def build_entries(records: Iterable[Any], naive_tz: tzinfo = timezone.utc) -> list[Entry]:
    """Build unsegmented entries sorted by play time, ties by index."""
    entries: list[Entry] = []
    skipped = 0
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            skipped += 1
            continue
        entries.append(
            Entry(
                index=index,
                played_at=resolve_played_at(record, naive_tz),
                song=_text(record.get("song")),
                artist=_text(record.get("artist")),
                album=_text(record.get("album")),
                mood=_mood(record),
                raw=record,
            )
        )

    if skipped:
        logger.warning(f"Skipped {skipped} log records that are not JSON objects")

    entries.sort(key=lambda entry: (entry.played_at, entry.index))
    return entries


def normalize(
    data: bytes | str | None,
    naive_tz: tzinfo = timezone.utc,
    gap: timedelta = SESSION_GAP,
) -> tuple[Entry, ...]:
    """Parse, order and segment the raw log bytes."""
    return assign_sessions(build_entries(parse_records(data), naive_tz), gap)
