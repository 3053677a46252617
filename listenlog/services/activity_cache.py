"""
Activity Cache Service

Owns the normalized, session-segmented entry list for one activity log and
serves every derived view from it. The list is rebuilt only when the log's
modification marker changes; derived results are cached per query key and
dropped on every rebuild.
"""

from __future__ import annotations

import logging
import re
import threading
import time
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Hashable, Iterable, TypeVar

from listenlog.errors import InvalidQueryError
from listenlog.services import calendar, queries
from listenlog.services.normalizer import Entry, normalize
from listenlog.services.result_cache import (
    CALENDAR_PREFIX,
    SESSIONS_PREFIX,
    SUMMARY_PREFIX,
    ResultCache,
)
from listenlog.services.sessions import SESSION_GAP, Session, build_sessions
from listenlog.services.summary import build_summary
from listenlog.services.timezones import UTC_ZONE, ResolvedZone, resolve_timezone
from listenlog.storage.log_source import LogSource

logger = logging.getLogger(__name__)

T = TypeVar("T")

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_NOT_LOADED = object()


def parse_day(value: str | None) -> date:
    """Parse a ``YYYY-MM-DD`` date, rejecting anything else."""
    if not value or not DATE_PATTERN.match(value.strip()):
        raise InvalidQueryError(f"Invalid date {value!r}, expected YYYY-MM-DD")
    try:
        return date.fromisoformat(value.strip())
    except ValueError as e:
        raise InvalidQueryError(f"Invalid date {value!r}: {e}") from e


def _check_page(offset: int, limit: int) -> None:
    if offset < 0:
        raise InvalidQueryError("offset must be zero or positive")
    if limit < 1:
        raise InvalidQueryError("limit must be at least 1")


class ActivityCache:
    """
    Derived-view cache bound to a single activity log.

    Reads never see a partially rebuilt list: a reload builds a new tuple and
    swaps it in under the reload lock.
    """

    def __init__(
        self,
        source: LogSource,
        default_zone: ResolvedZone = UTC_ZONE,
        gap: timedelta = SESSION_GAP,
        result_cache: ResultCache | None = None,
    ) -> None:
        self.source = source
        self.default_zone = default_zone
        self.gap = gap
        self.results = result_cache if result_cache is not None else ResultCache()
        self._entries: tuple[Entry, ...] = ()
        self._version: Hashable = _NOT_LOADED
        self._lock = threading.RLock()
        self._reload_count = 0
        self._loaded_at: datetime | None = None

    @property
    def reload_count(self) -> int:
        """Number of times the log has been parsed."""
        return self._reload_count

    @property
    def source_version(self) -> Hashable | None:
        return None if self._version is _NOT_LOADED else self._version

    def invalidate(self) -> None:
        """Force the next read to re-check and reload the log."""
        with self._lock:
            self._version = _NOT_LOADED
            self.results.invalidate_all()

    def get_entries(self) -> tuple[Entry, ...]:
        """
        Return entries consistent with the log at the time of the call.

        Raises:
            LogSourceError: The log exists but could not be read. The last
                good entries stay cached.
        """
        with self._lock:
            marker = self.source.marker()
            if marker == self._version:
                return self._entries

            started = time.perf_counter()
            data = self.source.read_bytes()
            entries = normalize(data, self.default_zone.tzinfo, self.gap)

            self._entries = entries
            self._version = marker
            self._reload_count += 1
            self._loaded_at = datetime.now(timezone.utc)
            self.results.invalidate_all()

            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                f"Loaded {len(entries)} entries from {self.source} in {elapsed_ms:.1f}ms"
            )
            return entries

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def _cached(self, key: str, compute: Callable[[tuple[Entry, ...]], T]) -> T:
        # Held across the lookup so a concurrent reload cannot clear the
        # result cache between computing and storing a stale value.
        with self._lock:
            entries = self.get_entries()
            return self.results.get_or_compute(key, lambda: compute(entries))

    def get_summary(self) -> dict[str, Any]:
        return self._cached(
            SUMMARY_PREFIX, lambda entries: build_summary(entries, self.default_zone.tzinfo)
        )

    def get_sessions(self) -> list[Session]:
        """All sessions, earliest first."""
        return self._cached(SESSIONS_PREFIX, build_sessions)

    def get_recent(self, offset: int = 0, limit: int = 50) -> dict[str, Any]:
        """Page through plays, most recent first."""
        _check_page(offset, limit)
        entries = self.get_entries()
        total = len(entries)
        # Entries are ascending; walk the page backwards from the end.
        stop = max(total - offset, 0)
        start = max(stop - limit, 0)
        page = list(reversed(entries[start:stop]))
        return {
            "items": [entry.to_dict() for entry in page],
            "total": total,
            "offset": offset,
            "limit": limit,
        }

    def list_sessions(self, offset: int = 0, limit: int = 50) -> dict[str, Any]:
        """Page through sessions, most recent session first."""
        _check_page(offset, limit)
        sessions = self.get_sessions()
        newest_first = sessions[::-1]
        return {
            "items": [session.to_dict() for session in newest_first[offset : offset + limit]],
            "total": len(sessions),
        }

    def get_calendar(
        self,
        months_back: int | None = None,
        song_filter: Iterable[str] = (),
        tz_name: str | None = None,
    ) -> tuple[ResolvedZone, list[calendar.CalendarDay]]:
        if months_back is not None and months_back < 0:
            raise InvalidQueryError("months must be zero or positive")
        zone = resolve_timezone(tz_name, self.default_zone)
        songs = list(song_filter)

        key = CALENDAR_PREFIX + calendar.calendar_cache_key(zone.name, months_back, songs)
        days = self._cached(
            key,
            lambda entries: calendar.aggregate_calendar(
                entries, zone.tzinfo, months_back or None, songs
            ),
        )
        return zone, days

    def get_day(
        self,
        day: str | date,
        song_filter: Iterable[str] = (),
        tz_name: str | None = None,
    ) -> queries.DayResult:
        target = day if isinstance(day, date) else parse_day(day)
        zone = resolve_timezone(tz_name, self.default_zone)
        return queries.day_entries(
            self.get_entries(), target, zone.tzinfo, song_filter, tz_name=zone.name
        )

    def search(self, terms: Iterable[str] = (), song_titles: Iterable[str] = ()) -> list[Entry]:
        terms = list(terms)
        song_titles = list(song_titles)
        if not queries.normalize_terms(terms) and not queries.normalize_terms(song_titles):
            raise InvalidQueryError("Search requires a query or at least one song")
        return queries.search(self.get_entries(), terms, song_titles)

    def suggest(self, query: str, limit: int = queries.DEFAULT_SUGGESTION_LIMIT) -> list[dict[str, Any]]:
        if limit < 1:
            raise InvalidQueryError("limit must be at least 1")
        return queries.suggest_songs(self.get_entries(), query, limit)

    def get_stats(self) -> dict[str, Any]:
        with self._lock:
            entry_count = len(self._entries)
            version = self.source_version
            loaded_at = self._loaded_at
        return {
            "entries": entry_count,
            "loaded": version is not None,
            "reloads": self._reload_count,
            "results": self.results.get_stats(),
            "source": str(self.source),
            "loadedAt": loaded_at.isoformat() if loaded_at else None,
        }
