from __future__ import annotations

import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from listenlog import __version__
from listenlog.api.dependencies import Authorizer, require_authorized
from listenlog.api.routes import activity, json_files
from listenlog.config import Settings, load_settings
from listenlog.services.activity_cache import ActivityCache
from listenlog.services.log_files import ACTIVITY_FILE, DIARY_FILE, LogFiles
from listenlog.services.result_cache import ResultCache
from listenlog.services.timezones import resolve_default_timezone
from listenlog.storage.log_source import FileLogSource
from listenlog.storage.watcher import LogWatcher

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    activity_cache: ActivityCache | None = None,
) -> FastAPI:
    """
    Build the API with its own cache instance.

    Args:
        settings: Runtime settings; loaded from the environment when omitted
        activity_cache: Pre-built cache, mainly for tests
    """
    settings = settings or load_settings()
    default_zone = resolve_default_timezone(settings.timezone)
    logger.info(f"Default timezone: {default_zone.name}")

    if activity_cache is None:
        activity_cache = ActivityCache(
            FileLogSource(settings.activity_log),
            default_zone=default_zone,
            result_cache=ResultCache(max_size=settings.result_cache_size),
        )
    log_files = LogFiles(
        {
            ACTIVITY_FILE: activity_cache.source,
            DIARY_FILE: FileLogSource(settings.diary_log),
        },
        activity_cache=activity_cache,
    )

    app = FastAPI(
        title="ListenLog API",
        description="Derived views over a personal listening log",
        version=__version__,
    )
    app.state.settings = settings
    app.state.activity_cache = activity_cache
    app.state.log_files = log_files
    app.state.authorizer = Authorizer(settings.api_token)
    app.state.watcher = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    protected = [Depends(require_authorized)]
    app.include_router(activity.router, prefix="/api/activity", tags=["activity"], dependencies=protected)
    app.include_router(json_files.router, prefix="/api/json", tags=["json"], dependencies=protected)

    @app.on_event("startup")
    async def start_watcher() -> None:
        if not settings.watch:
            return
        watcher = LogWatcher(settings.activity_log, activity_cache.invalidate)
        if watcher.start():
            app.state.watcher = watcher

    @app.on_event("shutdown")
    async def stop_watcher() -> None:
        watcher = app.state.watcher
        if watcher is not None:
            watcher.stop()
            app.state.watcher = None

    @app.get("/")
    async def root():
        return {"message": "ListenLog API", "version": __version__}

    @app.get("/health")
    async def health():
        """Health check with cache stats."""
        try:
            return {
                "status": "healthy",
                "cache": activity_cache.get_stats(),
                "watching": app.state.watcher is not None,
            }
        except Exception as e:
            return {
                "status": "degraded",
                "error": str(e),
            }

    return app
