"""
Error Taxonomy
==============

Exceptions raised by the extraction, routing and batch layers.

Per-page OCR errors and table errors are absorbed by the extraction engine;
per-document errors are absorbed by the batch orchestrator. Only
``BatchError`` is meant to abort a whole batch run.
"""

from enum import Enum


class DocumentReaderError(Exception):
    """Base class for all document reader errors."""


class ExtractionError(DocumentReaderError):
    """Raised when a file cannot be opened or parsed as a PDF."""


class OcrError(DocumentReaderError):
    """Raised when a single page cannot be rendered or recognized."""

    def __init__(self, message: str, page_number: int | None = None):
        super().__init__(message)
        self.page_number = page_number


class TableExtractionError(DocumentReaderError):
    """Raised internally when table detection fails. Never leaves the extractor."""


class BackendError(DocumentReaderError):
    """Raised by the inference client for any non-timeout failure."""


class BackendTimeout(BackendError):
    """Raised by the inference client when a request exceeds its timeout."""


class RouteErrorKind(str, Enum):
    """Distinguishes timeouts from other backend failures."""

    TIMEOUT = "timeout"
    BACKEND = "backend"


class RouteError(DocumentReaderError):
    """
    Raised by the model router when the selected backend fails.

    Attributes:
        kind: TIMEOUT or BACKEND
        backend: Backend identifier that was called
        user_message: Short diagnostic suitable for showing on a document
    """

    def __init__(self, kind: RouteErrorKind, backend: str, message: str):
        super().__init__(message)
        self.kind = kind
        self.backend = backend

    @property
    def user_message(self) -> str:
        if self.kind == RouteErrorKind.TIMEOUT:
            return (
                f"Analysis timed out on the {self.backend} model. "
                "Try a smaller document or a simpler query, and check that "
                "Ollama is running and the model is pulled (ollama list)."
            )
        return f"Analysis failed: {self}"


class BatchError(DocumentReaderError):
    """Raised for orchestrator-level faults such as a missing batch job."""
