# backend/catalogue/api/errors.py
from fastapi import HTTPException

from ..pipeline import (
    DecodeFailure,
    ExtractionFailure,
    FetchFailure,
    LoaderError,
    PipelineError,
    SelectionError,
    TimeoutFailure,
)

RETRY_HINT = "Please try again."


def pipeline_http_error(error: PipelineError) -> HTTPException:
    """Map a pipeline failure onto the HTTP status a client should see"""
    if isinstance(error, TimeoutFailure):
        return HTTPException(status_code=504, detail=f"{error.message} {RETRY_HINT}")
    if isinstance(error, FetchFailure):
        return HTTPException(status_code=502, detail=f"Failed to load catalogue. {RETRY_HINT}")
    if isinstance(error, (DecodeFailure, ExtractionFailure)):
        return HTTPException(status_code=422, detail=error.message)
    if isinstance(error, (SelectionError, LoaderError)):
        return HTTPException(status_code=400, detail=error.message)
    return HTTPException(status_code=500, detail=error.message)
