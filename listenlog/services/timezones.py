"""Timezone resolution with a startup-resolved default."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import tz as dateutil_tz

logger = logging.getLogger(__name__)

UTC_NAME = "UTC"
LOCAL_NAME = "local"


@dataclass(frozen=True)
class ResolvedZone:
    """A timezone together with the name reported back to clients."""

    name: str
    tzinfo: tzinfo


UTC_ZONE = ResolvedZone(UTC_NAME, timezone.utc)


def _lookup(name: str | None) -> ZoneInfo | None:
    if not name:
        return None
    try:
        return ZoneInfo(name.strip())
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return None


def resolve_default_timezone(configured: str | None = None) -> ResolvedZone:
    """
    Pick the default zone once at startup.

    Preference order: the explicitly configured zone, the ``TZ`` environment
    variable, then the host's local zone.
    """
    zone = _lookup(configured)
    if zone is not None:
        return ResolvedZone(configured.strip(), zone)
    if configured:
        logger.warning(f"Configured timezone {configured!r} is not recognised")

    env_zone = _lookup(os.environ.get("TZ"))
    if env_zone is not None:
        return ResolvedZone(os.environ["TZ"].strip(), env_zone)

    return ResolvedZone(LOCAL_NAME, dateutil_tz.tzlocal())


def resolve_timezone(name: str | None, default: ResolvedZone) -> ResolvedZone:
    """Resolve a client-supplied zone name, falling back to ``default``."""
    zone = _lookup(name)
    if zone is None:
        if name:
            logger.debug(f"Unknown timezone {name!r}, using {default.name}")
        return default
    return ResolvedZone(name.strip(), zone)
