"""
Listening Session Segmenter

Splits the chronologically ordered entries into listening sessions: a new
session starts whenever the gap to the previous play exceeds SESSION_GAP.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Sequence

from listenlog.config import SESSION_GAP_MINUTES

if TYPE_CHECKING:
    from listenlog.services.normalizer import Entry

# Fixed inactivity threshold. It is part of the public contract and is not
# exposed as a user setting; embedding code may pass another gap explicitly.
SESSION_GAP = timedelta(minutes=SESSION_GAP_MINUTES)

NEUTRAL_MOOD = "neutral"

# Share of tracks a single label needs to name the whole session
DOMINANT_MOOD_SHARE = 0.4

MOOD_WEIGHTS = {
    "sad": 2.0,
    "breakup": 2.0,
    "angry": 2.0,
    "love": 1.5,
    "nostalgic": 1.5,
    "energetic": 1.0,
    "confident": 1.0,
    "chill": 0.5,
    "melodic": 0.5,
    "experimental": 0.5,
}


@dataclass(frozen=True)
class Session:
    """A maximal run of plays with no gap above the threshold."""

    session_id: int
    start: datetime
    end: datetime
    tracks: tuple["Entry", ...]

    @property
    def track_count(self) -> int:
        return len(self.tracks)

    @property
    def duration_minutes(self) -> float:
        return round((self.end - self.start).total_seconds() / 60, 1)

    @property
    def mood(self) -> str:
        return session_mood(self.tracks)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.session_id,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "durationMinutes": self.duration_minutes,
            "trackCount": self.track_count,
            "sessionMood": self.mood,
            "tracks": [entry.to_dict() for entry in self.tracks],
        }


def assign_sessions(entries: Sequence["Entry"], gap: timedelta = SESSION_GAP) -> tuple["Entry", ...]:
    """
    Assign session ids in one left-to-right pass.

    Args:
        entries: Entries sorted ascending by play time
        gap: Largest gap between consecutive plays that keeps a session open

    Returns:
        New entries carrying session_id (starting at 1) and session_start
    """
    segmented: list[Entry] = []
    previous_played_at: datetime | None = None
    session_id = 0
    session_start: datetime | None = None

    for entry in entries:
        if previous_played_at is None or entry.played_at - previous_played_at > gap:
            session_id += 1
            session_start = entry.played_at
        segmented.append(entry.with_session(session_id, session_start))
        previous_played_at = entry.played_at

    return tuple(segmented)


def build_sessions(entries: Sequence["Entry"]) -> list[Session]:
    """Group segmented entries into sessions, earliest first."""
    sessions: list[Session] = []
    current: list[Entry] = []

    for entry in entries:
        if current and entry.session_id != current[-1].session_id:
            sessions.append(_make_session(current))
            current = []
        current.append(entry)

    if current:
        sessions.append(_make_session(current))
    return sessions


def _make_session(tracks: list["Entry"]) -> Session:
    return Session(
        session_id=tracks[0].session_id,
        start=tracks[0].played_at,
        end=tracks[-1].played_at,
        tracks=tuple(tracks),
    )


def session_mood(tracks: Sequence["Entry"]) -> str:
    """
    Label a session by the mood labels of its tracks.

    A label held by at least DOMINANT_MOOD_SHARE of the tracks wins outright.
    Otherwise the average MOOD_WEIGHTS score picks intense, mixed or chill.
    """
    if not tracks:
        return NEUTRAL_MOOD

    counts = Counter(entry.mood or NEUTRAL_MOOD for entry in tracks)
    label, count = counts.most_common(1)[0]
    if count / len(tracks) >= DOMINANT_MOOD_SHARE:
        return label

    score = sum(MOOD_WEIGHTS.get(mood, 0.0) * n for mood, n in counts.items()) / len(tracks)
    if score >= 1.5:
        return "intense"
    if score >= 1:
        return "mixed"
    return "chill"
