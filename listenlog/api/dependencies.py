"""FastAPI dependencies resolving the per-app service instances."""

from __future__ import annotations

import hmac

from fastapi import HTTPException, Request

from listenlog.services.activity_cache import ActivityCache
from listenlog.services.log_files import LogFiles


class Authorizer:
    """
    Decides whether a request may read or edit the log.

    Session handling lives outside this service; all it needs is a yes/no
    per request. With no token configured every request is allowed.
    """

    def __init__(self, token: str | None = None) -> None:
        self._token = token or None

    @property
    def enabled(self) -> bool:
        return self._token is not None

    def is_authorized(self, authorization: str | None) -> bool:
        if self._token is None:
            return True
        if not authorization:
            return False
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() != "bearer":
            return False
        return hmac.compare_digest(credentials.strip(), self._token)


def get_activity_cache(request: Request) -> ActivityCache:
    return request.app.state.activity_cache


def get_log_files(request: Request) -> LogFiles:
    return request.app.state.log_files


def require_authorized(request: Request) -> None:
    authorizer: Authorizer = request.app.state.authorizer
    if not authorizer.is_authorized(request.headers.get("authorization")):
        raise HTTPException(
            status_code=401,
            detail="Not authorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
