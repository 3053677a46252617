"""
Day and Search Queries

Point lookups over the normalized entry list: all plays on a local date,
free-text/song search and song suggestions for the search box.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from typing import TYPE_CHECKING, Any, Iterable, Sequence

if TYPE_CHECKING:
    from listenlog.services.normalizer import Entry

MIN_SUGGESTION_QUERY = 2
DEFAULT_SUGGESTION_LIMIT = 8


def split_terms(query: str | None) -> list[str]:
    """Split a free-text query on whitespace."""
    if not query:
        return []
    return [term for term in query.split() if term]


def split_songs(songs: str | None) -> list[str]:
    """Split a comma separated list of song titles."""
    if not songs:
        return []
    return [song.strip() for song in songs.split(",") if song.strip()]


def normalize_terms(terms: Iterable[str]) -> list[str]:
    return [term.strip().lower() for term in terms if term and term.strip()]


def matches_songs(entry: "Entry", song_terms: Sequence[str]) -> bool:
    """True if the song title contains any of the (lowercased) terms."""
    title = entry.song.lower()
    return any(term in title for term in song_terms)


def matches_text(entry: "Entry", text_terms: Sequence[str]) -> bool:
    """True if every (lowercased) term appears in song, artist or album."""
    haystack = f"{entry.song} {entry.artist} {entry.album}".lower()
    return all(term in haystack for term in text_terms)


def most_recent_first(entries: Iterable["Entry"]) -> list["Entry"]:
    return sorted(entries, key=lambda entry: (entry.played_at, entry.index), reverse=True)


@dataclass(frozen=True)
class DayResult:
    date: date
    time_zone: str
    all: tuple["Entry", ...]
    filtered: tuple["Entry", ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "timeZone": self.time_zone,
            "all": {
                "items": [entry.to_dict() for entry in self.all],
                "total": len(self.all),
            },
            "filtered": {
                "items": [entry.to_dict() for entry in self.filtered],
                "total": len(self.filtered),
            },
        }


def day_entries(
    entries: Sequence["Entry"],
    day: date,
    tz: tzinfo,
    song_filter: Iterable[str] = (),
    tz_name: str = "UTC",
) -> DayResult:
    """
    Collect the plays on one local date.

    Both the full day and the song-filtered subset are returned so callers
    can report "N of M plays matched". Without a song filter the two sets
    are the same.
    """
    terms = normalize_terms(song_filter)
    on_day = most_recent_first(
        entry for entry in entries if entry.played_at.astimezone(tz).date() == day
    )
    if terms:
        filtered = [entry for entry in on_day if matches_songs(entry, terms)]
    else:
        filtered = on_day
    return DayResult(date=day, time_zone=tz_name, all=tuple(on_day), filtered=tuple(filtered))


def search(
    entries: Sequence["Entry"],
    terms: Iterable[str] = (),
    song_titles: Iterable[str] = (),
) -> list["Entry"]:
    """
    Find plays matching a query, most recent first.

    Song titles match disjunctively against the song field; free-text terms
    must all appear somewhere in song, artist or album. An empty query
    matches nothing.
    """
    text_terms = normalize_terms(terms)
    song_terms = normalize_terms(song_titles)
    if not text_terms and not song_terms:
        return []

    matched = []
    for entry in entries:
        if song_terms and not matches_songs(entry, song_terms):
            continue
        if text_terms and not matches_text(entry, text_terms):
            continue
        matched.append(entry)
    return most_recent_first(matched)


def suggest_songs(
    entries: Sequence["Entry"],
    query: str | None,
    limit: int = DEFAULT_SUGGESTION_LIMIT,
) -> list[dict[str, Any]]:
    """Distinct songs whose title or artist contains ``query``, most played first."""
    needle = (query or "").strip().lower()
    if len(needle) < MIN_SUGGESTION_QUERY:
        return []

    counts: Counter[tuple[str, str]] = Counter()
    last_played: dict[tuple[str, str], datetime] = {}
    for entry in entries:
        if needle not in entry.song.lower() and needle not in entry.artist.lower():
            continue
        key = (entry.song, entry.artist)
        counts[key] += 1
        if key not in last_played or entry.played_at > last_played[key]:
            last_played[key] = entry.played_at

    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0][0].lower()))
    return [
        {
            "song": song,
            "artist": artist,
            "count": count,
            "lastPlayed": last_played[(song, artist)].isoformat(),
        }
        for (song, artist), count in ranked[:limit]
    ]
