"""Tests for summary statistics."""

from datetime import timedelta
from zoneinfo import ZoneInfo

from listenlog.services.normalizer import normalize
from listenlog.services.summary import build_summary
from listenlog.tests.helpers import T0, dump, record


def test_example_log_summary(sample_records):
    summary = build_summary(normalize(dump(sample_records)))

    assert summary["totalSongs"] == 3
    assert summary["uniqueArtists"] == 3
    assert summary["firstEntry"] == T0.isoformat()
    assert summary["latestEntry"] == (T0 + timedelta(minutes=20)).isoformat()


def test_empty_summary():
    summary = build_summary(())
    assert summary["totalSongs"] == 0
    assert summary["uniqueArtists"] == 0
    assert summary["firstEntry"] is None
    assert summary["latestEntry"] is None
    assert summary["topArtists"] == []


def test_artists_counted_case_insensitively():
    entries = normalize(dump([
        record("A", "Radiohead", T0),
        record("B", "radiohead", T0 + timedelta(minutes=1)),
        record("C", "RADIOHEAD ", T0 + timedelta(minutes=2)),
        record("D", "Björk", T0 + timedelta(minutes=3)),
        record("E", "", T0 + timedelta(minutes=4)),
    ]))
    summary = build_summary(entries)

    assert summary["uniqueArtists"] == 2
    assert summary["topArtists"][0] == {"artist": "Radiohead", "count": 3}


def test_mood_distribution_uses_opaque_labels():
    entries = normalize(dump([
        record("A", at=T0, moodType="chill"),
        record("B", at=T0, mood="chill"),
        record("C", at=T0),
    ]))
    assert build_summary(entries)["moodDistribution"] == {"chill": 2, "unknown": 1}


def test_listening_patterns_in_utc():
    entries = normalize(dump([
        record("A", at=T0),
        record("B", at=T0 + timedelta(minutes=30)),
        record("C", at=T0 + timedelta(hours=13)),
        record("D", loggedAt="garbage"),
    ]))
    patterns = build_summary(entries)["listeningPatterns"]

    assert patterns == {"hourly": {1: 1, 12: 2}, "days": 2}


def test_listening_patterns_follow_the_given_zone():
    entries = normalize(dump([
        record("A", at=T0),
        record("B", at=T0 + timedelta(hours=13)),
    ]))
    patterns = build_summary(entries, ZoneInfo("Asia/Tokyo"))["listeningPatterns"]

    # 21:00 on the 14th and 10:00 on the 15th in Tokyo
    assert patterns == {"hourly": {10: 1, 21: 1}, "days": 2}


def test_listening_patterns_empty():
    assert build_summary(())["listeningPatterns"] == {"hourly": {}, "days": 0}
