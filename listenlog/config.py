from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

REPO_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_DATA_DIR = Path(os.environ.get("LISTENLOG_DATA_DIR", REPO_ROOT / "data"))
SETTINGS_PATH = DEFAULT_DATA_DIR / "settings.json"

ACTIVITY_LOG_PATH = os.environ.get("LISTENLOG_ACTIVITY_LOG")
DIARY_LOG_PATH = os.environ.get("LISTENLOG_DIARY_LOG")
TIMEZONE = os.environ.get("LISTENLOG_TIMEZONE")
API_TOKEN = os.environ.get("LISTENLOG_API_TOKEN")
WATCH_ENABLED = os.environ.get("LISTENLOG_WATCH") == "1"
RESULT_CACHE_SIZE = int(os.environ.get("LISTENLOG_RESULT_CACHE_SIZE", "256"))

# Inactivity gap between listening sessions, in minutes
SESSION_GAP_MINUTES = 10

# Paging bounds for recent/sessions listings
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500


@dataclass(frozen=True)
class Settings:
    activity_log: Path
    diary_log: Path
    timezone: str | None = None
    api_token: str | None = None
    watch: bool = False
    result_cache_size: int = RESULT_CACHE_SIZE


def _default_settings() -> dict[str, Any]:
    return {
        "paths": {
            "activity_log": ACTIVITY_LOG_PATH or str(DEFAULT_DATA_DIR / "activity-log.json"),
            "diary_log": DIARY_LOG_PATH or str(DEFAULT_DATA_DIR / "diary-log.json"),
        },
        "timezone": TIMEZONE,
        "api_token": API_TOKEN,
        "watch": WATCH_ENABLED,
        "result_cache_size": RESULT_CACHE_SIZE,
    }


def _deep_merge(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merged[key] = _deep_merge(base[key], value)
        else:
            merged[key] = value
    return merged


def load_settings_dict(path: Path = SETTINGS_PATH) -> dict[str, Any]:
    defaults = _default_settings()
    if not path.exists():
        return defaults
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        return defaults
    if not isinstance(data, dict):
        return defaults
    return _deep_merge(defaults, data)


def load_settings(path: Path = SETTINGS_PATH) -> Settings:
    data = load_settings_dict(path)
    paths = data.get("paths") if isinstance(data.get("paths"), dict) else {}
    defaults = _default_settings()["paths"]

    return Settings(
        activity_log=Path(paths.get("activity_log") or defaults["activity_log"]).expanduser(),
        diary_log=Path(paths.get("diary_log") or defaults["diary_log"]).expanduser(),
        timezone=data.get("timezone") or None,
        api_token=data.get("api_token") or None,
        watch=bool(data.get("watch")),
        result_cache_size=int(data.get("result_cache_size") or RESULT_CACHE_SIZE),
    )
