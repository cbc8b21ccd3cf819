# backend/catalogue/pipeline/__init__.py
from .cover import select_cover_page
from .decoder import DocumentHandle, PageDecoder, PageHandle
from .errors import (
    PipelineError,
    FetchFailure,
    TimeoutFailure,
    DecodeFailure,
    ExtractionFailure,
    NotificationFailure,
    SelectionError,
    LoaderError,
    LoadCancelled,
)
from .extractor import PageSubsetExtractor, validate_page_list
from .fetcher import BinaryFetcher
from .loader import LazyPageLoader
from .selection import SelectionSet
from .types import CancellationToken, LoaderState, RenderedPage

__all__ = [
    "select_cover_page",
    "DocumentHandle",
    "PageDecoder",
    "PageHandle",
    "PipelineError",
    "FetchFailure",
    "TimeoutFailure",
    "DecodeFailure",
    "ExtractionFailure",
    "NotificationFailure",
    "SelectionError",
    "LoaderError",
    "LoadCancelled",
    "PageSubsetExtractor",
    "validate_page_list",
    "BinaryFetcher",
    "LazyPageLoader",
    "SelectionSet",
    "CancellationToken",
    "LoaderState",
    "RenderedPage",
]
