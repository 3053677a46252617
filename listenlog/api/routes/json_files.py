"""Raw JSON editor endpoints for the activity and diary logs."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from listenlog.api.dependencies import get_log_files
from listenlog.errors import LogSourceError, UnknownFileError, WriteValidationError
from listenlog.services.log_files import ACTIVITY_FILE, LogFiles

router = APIRouter()
logger = logging.getLogger(__name__)


class JsonWriteRequest(BaseModel):
    file: str = ACTIVITY_FILE
    content: str


@router.get("")
def read_json(
    file: str = Query(ACTIVITY_FILE, description="File key: activity or diary"),
    log_files: LogFiles = Depends(get_log_files),
) -> dict[str, Any]:
    try:
        return log_files.read(file)
    except UnknownFileError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except LogSourceError as e:
        logger.error(f"Failed to read {file} log: {e}")
        raise HTTPException(status_code=503, detail=str(e))


@router.put("")
def write_json(
    payload: JsonWriteRequest,
    log_files: LogFiles = Depends(get_log_files),
) -> dict[str, Any]:
    """
    Replace a log file.

    The content must parse as JSON; invalid content is rejected before
    anything is written.
    """
    try:
        result = log_files.write(payload.file, payload.content)
    except UnknownFileError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except WriteValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LogSourceError as e:
        logger.error(f"Failed to write {payload.file} log: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    return {"success": True, **result}
