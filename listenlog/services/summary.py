"""Summary statistics for the dashboard header."""

from __future__ import annotations

from collections import Counter
from datetime import timezone, tzinfo
from typing import Any, Sequence

from listenlog.services.normalizer import Entry

TOP_ARTISTS_LIMIT = 10
UNKNOWN_MOOD = "unknown"


def build_summary(entries: Sequence[Entry], tz: tzinfo = timezone.utc) -> dict[str, Any]:
    """
    Compute the summary for an ordered entry list.

    Artists are counted case-insensitively; the first spelling seen is the
    one reported in ``topArtists``. Listening patterns use local hours and
    days in ``tz`` and skip entries without a known play time.
    """
    artist_counts: Counter[str] = Counter()
    display_names: dict[str, str] = {}
    mood_counts: Counter[str] = Counter()

    for entry in entries:
        mood_counts[entry.mood or UNKNOWN_MOOD] += 1
        name = entry.artist.strip()
        if not name:
            continue
        key = name.lower()
        artist_counts[key] += 1
        display_names.setdefault(key, name)

    top_artists = [
        {"artist": display_names[key], "count": count}
        for key, count in sorted(artist_counts.items(), key=lambda item: (-item[1], item[0]))[
            :TOP_ARTISTS_LIMIT
        ]
    ]

    return {
        "totalSongs": len(entries),
        "uniqueArtists": len(artist_counts),
        "firstEntry": entries[0].played_at.isoformat() if entries else None,
        "latestEntry": entries[-1].played_at.isoformat() if entries else None,
        "topArtists": top_artists,
        "moodDistribution": dict(mood_counts),
        "listeningPatterns": listening_patterns(entries, tz),
    }


def listening_patterns(entries: Sequence[Entry], tz: tzinfo) -> dict[str, Any]:
    hourly: Counter[int] = Counter()
    days = set()
    for entry in entries:
        if not entry.has_known_time:
            continue
        local = entry.played_at.astimezone(tz)
        hourly[local.hour] += 1
        days.add(local.date())
    return {"hourly": dict(sorted(hourly.items())), "days": len(days)}
