# backend/catalogue/pipeline/errors.py
"""
Exceptions raised by the catalogue rendering and fulfilment pipeline.
"""


class PipelineError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def default_message(self) -> str:
        return "An unknown catalogue pipeline error occurred."


class FetchFailure(PipelineError):
    """Raised when a document cannot be retrieved from the content store."""

    def __init__(self, message: str = "", status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def default_message(self) -> str:
        return "Failed to fetch catalogue document."


class TimeoutFailure(PipelineError):
    """Raised when fetching or decoding exceeds its time budget."""

    def __init__(self, message: str = "", stage: str = "fetch") -> None:
        super().__init__(message)
        self.stage = stage

    @property
    def default_message(self) -> str:
        return "Catalogue operation timed out."


class DecodeFailure(PipelineError):
    """Raised when a document is malformed or a page index is out of range."""

    @property
    def default_message(self) -> str:
        return "Failed to decode catalogue page."


class ExtractionFailure(PipelineError):
    """Raised when a page subset cannot be extracted from a document."""

    @property
    def default_message(self) -> str:
        return "Failed to extract selected pages."


class NotificationFailure(PipelineError):
    """Raised when an order notification cannot be delivered."""

    @property
    def default_message(self) -> str:
        return "Failed to send order notification."


class SelectionError(PipelineError):
    """Raised when a page number cannot be selected."""

    @property
    def default_message(self) -> str:
        return "Invalid page selection."


class LoaderError(PipelineError):
    """Raised when the page loader is driven out of order."""

    @property
    def default_message(self) -> str:
        return "Page loader is not ready."


class LoadCancelled(PipelineError):
    """Raised to a waiter whose browsing session was abandoned."""

    @property
    def default_message(self) -> str:
        return "Page loading was cancelled."
