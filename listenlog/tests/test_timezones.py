"""Tests for timezone resolution."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from listenlog.services.timezones import (
    LOCAL_NAME,
    UTC_ZONE,
    ResolvedZone,
    resolve_default_timezone,
    resolve_timezone,
)


def test_configured_zone_wins(monkeypatch):
    monkeypatch.setenv("TZ", "Asia/Tokyo")
    zone = resolve_default_timezone("Europe/Berlin")
    assert zone.name == "Europe/Berlin"
    assert zone.tzinfo == ZoneInfo("Europe/Berlin")


def test_invalid_configured_zone_uses_host_zone(monkeypatch):
    monkeypatch.setenv("TZ", "Asia/Tokyo")
    assert resolve_default_timezone("Nowhere/Special").name == "Asia/Tokyo"


def test_host_local_zone_without_tz_env(monkeypatch):
    monkeypatch.delenv("TZ", raising=False)
    zone = resolve_default_timezone(None)
    assert zone.name == LOCAL_NAME
    assert zone.tzinfo is not None


def test_resolve_timezone_valid_name():
    zone = resolve_timezone("America/New_York", UTC_ZONE)
    assert zone == ResolvedZone("America/New_York", ZoneInfo("America/New_York"))


def test_resolve_timezone_falls_back_on_bad_input():
    default = ResolvedZone("Europe/Paris", ZoneInfo("Europe/Paris"))
    for bad in [None, "", "   ", "Not/AZone", "../../etc/passwd"]:
        assert resolve_timezone(bad, default) is default


def test_utc_zone_constant():
    assert UTC_ZONE.name == "UTC"
    assert UTC_ZONE.tzinfo is timezone.utc


def test_unusable_tz_env_falls_through_to_host_zone(monkeypatch):
    monkeypatch.setenv("TZ", "Not/AZone")
    zone = resolve_default_timezone("Also/Bogus")
    assert zone.name == LOCAL_NAME
    assert zone.tzinfo.utcoffset(datetime.now()) is not None
