"""Raw read/write access to the JSON log files for out-of-band editing."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from listenlog.errors import UnknownFileError, WriteValidationError
from listenlog.services.activity_cache import ActivityCache
from listenlog.storage.log_source import LogSource

logger = logging.getLogger(__name__)

ACTIVITY_FILE = "activity"
DIARY_FILE = "diary"
EMPTY_DOCUMENT = "[]"


class LogFiles:
    """Maps file keys to their sources and keeps the activity cache honest."""

    def __init__(self, sources: Mapping[str, LogSource], activity_cache: ActivityCache | None = None) -> None:
        self._sources = dict(sources)
        self._activity_cache = activity_cache

    @property
    def keys(self) -> list[str]:
        return sorted(self._sources)

    def _source(self, file_key: str) -> LogSource:
        try:
            return self._sources[file_key]
        except KeyError:
            raise UnknownFileError(
                f"Unknown file {file_key!r}; expected one of {', '.join(self.keys)}"
            ) from None

    def read(self, file_key: str) -> dict[str, Any]:
        source = self._source(file_key)
        data = source.read_bytes()
        content = data.decode("utf-8", errors="replace") if data is not None else EMPTY_DOCUMENT
        return {"file": file_key, "content": content, "size": len(content.encode("utf-8"))}

    def write(self, file_key: str, content: str) -> dict[str, Any]:
        """
        Replace a log file with ``content``.

        Raises:
            UnknownFileError: ``file_key`` is not a known file
            WriteValidationError: ``content`` is not valid JSON or cannot be
                encoded as UTF-8; nothing is written
        """
        source = self._source(file_key)
        try:
            json.loads(content)
            data = content.encode("utf-8")
        except (TypeError, json.JSONDecodeError) as e:
            raise WriteValidationError(f"Content is not valid JSON: {e}") from e
        except UnicodeEncodeError as e:
            raise WriteValidationError(f"Content is not valid UTF-8: {e}") from e

        source.write_bytes(data)
        logger.info(f"Wrote {len(data)} bytes to {file_key} log")

        if file_key == ACTIVITY_FILE and self._activity_cache is not None:
            self._activity_cache.invalidate()
        return {"file": file_key, "size": len(data)}
