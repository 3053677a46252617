"""Shared builders for log records and an in-memory log source."""

from __future__ import annotations

import json
from datetime import datetime, timezone

from listenlog.storage.log_source import ABSENT

T0 = datetime(2025, 3, 14, 12, 0, tzinfo=timezone.utc)


def iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def record(song: str, artist: str = "Artist", at: datetime | None = None, **extra) -> dict:
    data = {"song": song, "artist": artist, "album": extra.pop("album", "Album")}
    if at is not None:
        data["loggedAt"] = iso(at)
    data.update(extra)
    return data


def dump(records: list) -> bytes:
    return json.dumps(records).encode("utf-8")


class StubSource:
    """In-memory log source whose marker only changes when told to."""

    def __init__(self, data: bytes | None = None, marker=1) -> None:
        self.data = data
        self._marker = marker if data is not None else ABSENT
        self.reads = 0
        self.writes: list[bytes] = []

    def marker(self):
        return self._marker

    def read_bytes(self):
        self.reads += 1
        return self.data

    def write_bytes(self, data: bytes) -> None:
        self.writes.append(data)
        self.set(data)

    def set(self, data: bytes | None, marker=None) -> None:
        """Replace the content and bump the marker."""
        self.data = data
        if data is None:
            self._marker = ABSENT
        else:
            self._marker = marker if marker is not None else (
                self._marker + 1 if isinstance(self._marker, int) else 1
            )

    def __str__(self) -> str:
        return "StubSource"


