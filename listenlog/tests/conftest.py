from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from listenlog.tests.helpers import T0, dump, record


@pytest.fixture
def sample_records() -> list[dict]:
    """Three plays: two within ten minutes, one twenty minutes after the first."""
    return [
        record("A", "X", T0),
        record("B", "Y", T0 + timedelta(minutes=5)),
        record("C", "Z", T0 + timedelta(minutes=20)),
    ]


@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    return tmp_path / "logs" / "activity-log.json"


@pytest.fixture
def write_log(log_path: Path):
    def _write(records) -> Path:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(records, (bytes, str)):
            content = records if isinstance(records, bytes) else records.encode("utf-8")
        else:
            content = dump(records)
        log_path.write_bytes(content)
        return log_path

    return _write
