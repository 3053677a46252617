"""
Event Log Source

File-backed access to the JSON event log: current bytes, a modification
marker and whole-file overwrite.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Hashable, Protocol

from listenlog.errors import LogSourceError

logger = logging.getLogger(__name__)


class _Absent:
    """Marker for a log file that does not exist."""

    _instance: "_Absent | None" = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()


class LogSource(Protocol):
    """Anything that can hand out log bytes together with a change marker."""

    def marker(self) -> Hashable:
        ...

    def read_bytes(self) -> bytes | None:
        ...

    def write_bytes(self, data: bytes) -> None:
        ...


class FileLogSource:
    """A log stored as a single JSON file on disk."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path).expanduser()

    def __repr__(self) -> str:
        return f"FileLogSource({str(self.path)!r})"

    def marker(self) -> Hashable:
        """
        Return the current modification marker.

        The marker combines mtime and size so that rewrites landing within
        the filesystem's timestamp resolution are still noticed. A missing
        file (or a directory where the file should be) yields ``ABSENT``.
        """
        try:
            stat = self.path.stat()
        except FileNotFoundError:
            return ABSENT
        except OSError as e:
            raise LogSourceError(f"Cannot stat {self.path}: {e}") from e

        if not self.path.is_file():
            logger.warning(f"Log path {self.path} is not a regular file")
            return ABSENT
        return (stat.st_mtime_ns, stat.st_size)

    def read_bytes(self) -> bytes | None:
        """Read the whole file, or ``None`` if it does not exist."""
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None
        except IsADirectoryError:
            return None
        except OSError as e:
            raise LogSourceError(f"Cannot read {self.path}: {e}") from e

    def write_bytes(self, data: bytes) -> None:
        """Overwrite the file with ``data``."""
        tmp_path = self.path.with_name(f".{self.path.name}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(data)
            os.replace(tmp_path, self.path)
        except OSError as e:
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError as cleanup_error:
                logger.warning(f"Could not remove {tmp_path}: {cleanup_error}")
            raise LogSourceError(f"Cannot write {self.path}: {e}") from e
