"""
Calendar Aggregator

Buckets plays into local calendar dates for the heatmap view.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Any, Iterable, Sequence

from dateutil.relativedelta import relativedelta

from listenlog.services.normalizer import Entry
from listenlog.services.queries import matches_songs, normalize_terms


@dataclass(frozen=True)
class CalendarDay:
    date: str
    count: int
    songs: tuple[tuple[str, int], ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"date": self.date, "count": self.count}
        if self.songs is not None:
            data["songs"] = [{"song": song, "count": count} for song, count in self.songs]
        return data


def calendar_cache_key(tz_name: str, months_back: int | None, song_filter: Iterable[str]) -> str:
    """Key a calendar result by zone, window and normalized song filter."""
    window = str(months_back) if months_back else "all"
    songs = ",".join(sorted(normalize_terms(song_filter)))
    return f"{tz_name}|{window}|{songs}"


def compute_cutoff(tz: tzinfo, months_back: int, now: datetime | None = None) -> datetime:
    """Local midnight ``months_back`` calendar months before ``now``."""
    local_now = (now or datetime.now(tz)).astimezone(tz)
    start = local_now - relativedelta(months=months_back)
    return datetime(start.year, start.month, start.day, tzinfo=tz)


def aggregate_calendar(
    entries: Sequence[Entry],
    tz: tzinfo,
    months_back: int | None = None,
    song_filter: Iterable[str] = (),
    now: datetime | None = None,
) -> list[CalendarDay]:
    """
    Count plays per local date.

    Args:
        entries: Segmented entries, ascending by play time
        tz: Zone used to compute each play's calendar date
        months_back: Only include plays on or after local midnight this many
            months ago; ``None`` includes everything
        song_filter: Song title substrings; when given, only matching plays
            count and per-song counts are reported for each day
        now: Reference time for the cutoff

    Returns:
        Days with at least one play, ascending by date
    """
    terms = normalize_terms(song_filter)
    cutoff = compute_cutoff(tz, months_back, now) if months_back else None

    day_counts: Counter[str] = Counter()
    song_counts: dict[str, Counter[str]] = {}

    for entry in entries:
        if cutoff is not None and entry.played_at < cutoff:
            continue
        if terms and not matches_songs(entry, terms):
            continue

        date_key = entry.played_at.astimezone(tz).date().isoformat()
        day_counts[date_key] += 1
        if terms:
            song_counts.setdefault(date_key, Counter())[entry.song] += 1

    days = []
    for date_key in sorted(day_counts):
        songs = None
        if terms:
            ranked = sorted(song_counts[date_key].items(), key=lambda item: (-item[1], item[0]))
            songs = tuple(ranked)
        days.append(CalendarDay(date=date_key, count=day_counts[date_key], songs=songs))
    return days
