"""HTTP-level tests for the activity and JSON editor routes."""

import json
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from listenlog.api.app import create_app
from listenlog.config import Settings
from listenlog.tests.helpers import T0, record


@pytest.fixture
def settings(tmp_path):
    return Settings(
        activity_log=tmp_path / "activity.json",
        diary_log=tmp_path / "diary.json",
        timezone="UTC",
    )


@pytest.fixture
def client(settings):
    return TestClient(create_app(settings))


@pytest.fixture
def write_activity(settings):
    def _write(records):
        settings.activity_log.write_text(json.dumps(records), encoding="utf-8")

    return _write


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["cache"]["reloads"] == 0


def test_empty_log_renders_no_data(client):
    assert client.get("/api/activity/summary").json()["totalSongs"] == 0
    recent = client.get("/api/activity/recent").json()
    assert recent["items"] == []
    assert recent["total"] == 0
    assert client.get("/api/activity/calendar").json()["items"] == []


def test_corrupt_log_does_not_crash(client, settings):
    settings.activity_log.write_text("[{oops", encoding="utf-8")
    response = client.get("/api/activity/summary")
    assert response.status_code == 200
    assert response.json()["totalSongs"] == 0


def test_summary_and_sessions(client, write_activity, sample_records):
    write_activity(sample_records)

    summary = client.get("/api/activity/summary").json()
    assert summary["totalSongs"] == 3
    assert summary["uniqueArtists"] == 3
    assert summary["listeningPatterns"] == {"hourly": {"12": 3}, "days": 1}

    sessions = client.get("/api/activity/sessions", params={"limit": 10}).json()
    assert sessions["total"] == 2
    assert [s["trackCount"] for s in sessions["items"]] == [1, 2]
    assert sessions["items"][0]["sessionMood"] == "neutral"
    assert [t["song"] for t in sessions["items"][1]["tracks"]] == ["A", "B"]


def test_recent_paging(client, write_activity, sample_records):
    write_activity(sample_records)

    data = client.get("/api/activity/recent", params={"offset": 1, "limit": 1}).json()
    assert data["total"] == 3
    assert [item["song"] for item in data["items"]] == ["B"]
    assert data["items"][0]["index"] == 1
    assert data["items"][0]["sessionId"] == 1


def test_recent_rejects_out_of_range_limit(client):
    assert client.get("/api/activity/recent", params={"limit": 0}).status_code == 422


def test_calendar_with_song_filter_and_timezone(client, write_activity):
    write_activity([
        record("Blue", at=T0),
        record("Blue", at=T0 + timedelta(hours=13)),
        record("Red", at=T0 + timedelta(hours=13, minutes=5)),
    ])

    data = client.get(
        "/api/activity/calendar",
        params={"songs": "blue", "tz": "Asia/Tokyo"},
    ).json()

    assert data["timeZone"] == "Asia/Tokyo"
    assert data["items"] == [
        {"date": "2025-03-14", "count": 1, "songs": [{"song": "Blue", "count": 1}]},
        {"date": "2025-03-15", "count": 1, "songs": [{"song": "Blue", "count": 1}]},
    ]


def test_calendar_bad_timezone_uses_default(client, write_activity, sample_records):
    write_activity(sample_records)
    data = client.get("/api/activity/calendar", params={"tz": "Bogus/Zone"}).json()
    assert data["timeZone"] == "UTC"
    assert data["items"] == [{"date": "2025-03-14", "count": 3}]


def test_day_returns_filtered_and_full_sets(client, write_activity, sample_records):
    write_activity(sample_records)

    data = client.get("/api/activity/day", params={"date": "2025-03-14", "songs": "a"}).json()
    assert data["all"]["total"] == 3
    assert data["filtered"]["total"] == 1
    assert [item["song"] for item in data["all"]["items"]] == ["C", "B", "A"]


def test_day_rejects_malformed_date(client):
    response = client.get("/api/activity/day", params={"date": "14-03-2025"})
    assert response.status_code == 400
    assert "YYYY-MM-DD" in response.json()["detail"]


def test_search(client, write_activity):
    write_activity([
        record("Song One", "Alice", T0, album="Bob"),
        record("Song Two", "Alice", T0 + timedelta(minutes=1), album="Carol"),
    ])

    data = client.get("/api/activity/search", params={"q": "alice bob"}).json()
    assert data["total"] == 1
    assert data["items"][0]["song"] == "Song One"

    data = client.get("/api/activity/search", params={"songs": "two,one"}).json()
    assert [item["song"] for item in data["items"]] == ["Song Two", "Song One"]


def test_empty_search_is_rejected(client):
    response = client.get("/api/activity/search")
    assert response.status_code == 400


def test_suggestions(client, write_activity, sample_records):
    write_activity(sample_records + [record("Another", "X", T0 + timedelta(hours=1))])
    data = client.get("/api/activity/suggestions", params={"q": "an"}).json()
    assert [item["song"] for item in data["items"]] == ["Another"]


def test_json_editor_round_trip_refreshes_views(client, sample_records):
    assert client.get("/api/json", params={"file": "activity"}).json()["content"] == "[]"
    assert client.get("/api/activity/summary").json()["totalSongs"] == 0

    content = json.dumps(sample_records, indent=2)
    response = client.put("/api/json", json={"file": "activity", "content": content})
    assert response.status_code == 200
    assert response.json()["success"] is True

    assert client.get("/api/json", params={"file": "activity"}).json()["content"] == content
    assert client.get("/api/activity/summary").json()["totalSongs"] == 3


def test_json_editor_rejects_invalid_content(client, settings):
    response = client.put("/api/json", json={"file": "activity", "content": "[{"})
    assert response.status_code == 400
    assert not settings.activity_log.exists()


def test_json_editor_rejects_lone_surrogate(client, settings):
    body = b'{"file": "activity", "content": "[\\"\\ud800\\"]"}'
    response = client.put("/api/json", content=body, headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert not settings.activity_log.exists()


def test_json_editor_unknown_file(client):
    assert client.get("/api/json", params={"file": "nope"}).status_code == 404


def test_token_required_when_configured(tmp_path):
    settings = Settings(
        activity_log=tmp_path / "activity.json",
        diary_log=tmp_path / "diary.json",
        timezone="UTC",
        api_token="s3cret",
    )
    client = TestClient(create_app(settings))

    assert client.get("/api/activity/summary").status_code == 401
    assert client.get(
        "/api/activity/summary", headers={"Authorization": "Bearer wrong"}
    ).status_code == 401
    assert client.get(
        "/api/activity/summary", headers={"Authorization": "Bearer s3cret"}
    ).status_code == 200
    assert client.get("/health").status_code == 200
