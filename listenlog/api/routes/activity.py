"""
Activity API Routes

Endpoints for recent plays, sessions, the calendar heatmap, day drill-down
and search over the activity log.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from fastapi import APIRouter, Depends, HTTPException, Query

from listenlog.api.dependencies import get_activity_cache
from listenlog.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from listenlog.errors import InvalidQueryError, LogSourceError
from listenlog.services.activity_cache import ActivityCache
from listenlog.services.queries import DEFAULT_SUGGESTION_LIMIT, split_songs, split_terms

router = APIRouter()
logger = logging.getLogger(__name__)


@contextmanager
def _handle_errors(action: str) -> Iterator[None]:
    try:
        yield
    except InvalidQueryError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LogSourceError as e:
        logger.error(f"Failed to {action}: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to {action}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/recent")
def get_recent(
    offset: int = Query(0, ge=0, description="Pagination offset"),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Items per page"),
    cache: ActivityCache = Depends(get_activity_cache),
) -> dict[str, Any]:
    """
    Get recent plays, most recent first.

    Each item carries its log index and session assignment.
    """
    with _handle_errors("get recent plays"):
        return cache.get_recent(offset, limit)


@router.get("/summary")
def get_summary(cache: ActivityCache = Depends(get_activity_cache)) -> dict[str, Any]:
    """Get totals, unique artists and first/latest play times."""
    with _handle_errors("get summary"):
        return cache.get_summary()


@router.get("/sessions")
def get_sessions(
    offset: int = Query(0, ge=0, description="Pagination offset"),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Sessions per page"),
    cache: ActivityCache = Depends(get_activity_cache),
) -> dict[str, Any]:
    """Get listening sessions, most recent first."""
    with _handle_errors("get sessions"):
        return cache.list_sessions(offset, limit)


@router.get("/calendar")
def get_calendar(
    months: int | None = Query(None, ge=0, description="Months back to include; omit for all"),
    songs: str | None = Query(None, description="Comma separated song titles"),
    tz: str | None = Query(None, description="IANA timezone for date bucketing"),
    cache: ActivityCache = Depends(get_activity_cache),
) -> dict[str, Any]:
    """
    Get per-day play counts for the heatmap.

    Only days with plays are returned. With a song filter each day also
    lists per-song counts.
    """
    with _handle_errors("build calendar"):
        zone, days = cache.get_calendar(months, split_songs(songs), tz)
        return {
            "items": [day.to_dict() for day in days],
            "timeZone": zone.name,
            "months": months or None,
        }


@router.get("/day")
def get_day(
    date: str = Query(..., description="Local date, YYYY-MM-DD"),
    songs: str | None = Query(None, description="Comma separated song titles"),
    tz: str | None = Query(None, description="IANA timezone for date bucketing"),
    cache: ActivityCache = Depends(get_activity_cache),
) -> dict[str, Any]:
    """Get every play on one day, plus the song-filtered subset."""
    with _handle_errors("get day"):
        return cache.get_day(date, split_songs(songs), tz).to_dict()


@router.get("/search")
def search(
    q: str | None = Query(None, description="Free-text terms, all must match"),
    songs: str | None = Query(None, description="Comma separated song titles, any may match"),
    cache: ActivityCache = Depends(get_activity_cache),
) -> dict[str, Any]:
    """Search plays by free text and/or song titles."""
    with _handle_errors("search"):
        results = cache.search(split_terms(q), split_songs(songs))
        return {"items": [entry.to_dict() for entry in results], "total": len(results)}


@router.get("/suggestions")
def get_suggestions(
    q: str = Query("", description="Partial song or artist name"),
    limit: int = Query(DEFAULT_SUGGESTION_LIMIT, ge=1, le=50),
    cache: ActivityCache = Depends(get_activity_cache),
) -> dict[str, Any]:
    """Suggest songs for the search box."""
    with _handle_errors("get suggestions"):
        return {"items": cache.suggest(q, limit)}
