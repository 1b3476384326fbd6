"""
Data Models for Document Reader
===============================

Shared data models for extraction, routing and batch processing.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class DocumentStatus(str, Enum):
    """Lifecycle of a single document."""

    UPLOADED = "uploaded"
    EXTRACTING = "extracting"
    READY = "ready"  # Text extracted, ready for analysis
    ANALYZING = "analyzing"
    ANALYZED = "analyzed"
    FAILED = "failed"


class BatchStatus(str, Enum):
    """Lifecycle of a batch job."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_BATCH_STATUSES = frozenset(
    {BatchStatus.COMPLETED, BatchStatus.FAILED, BatchStatus.CANCELLED}
)


@dataclass
class Document:
    """A PDF document and the output of its pipeline stages."""

    filename: str
    file_path: str
    file_size: int = 0
    id: str = field(default_factory=_new_id)
    status: DocumentStatus = DocumentStatus.UPLOADED
    extracted_text: str | None = None
    total_pages: int | None = None
    analysis: str | None = None
    batch_job_id: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def transition(self, status: DocumentStatus) -> None:
        """Move to a new lifecycle status and stamp the update time."""
        self.status = status
        self.updated_at = _utcnow()


@dataclass
class BatchJob:
    """A group of documents processed under one progress tracker."""

    name: str
    total_documents: int = 0
    description: str | None = None
    analysis_template: str | None = None
    id: str = field(default_factory=_new_id)
    status: BatchStatus = BatchStatus.PENDING
    processed_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    document_ids: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_BATCH_STATUSES

    @property
    def progress_percentage(self) -> float:
        if not self.total_documents:
            return 0.0
        return self.processed_count * 100.0 / self.total_documents

    @property
    def progress_text(self) -> str:
        return (
            f"{self.processed_count}/{self.total_documents} "
            f"({self.progress_percentage:.1f}%)"
        )

    def estimated_time_remaining(self, now: datetime | None = None) -> int | None:
        """Seconds left, extrapolated from the mean time per processed document."""
        if self.started_at is None or self.processed_count == 0:
            return None
        now = now or _utcnow()
        elapsed = (now - self.started_at).total_seconds()
        per_document = elapsed / self.processed_count
        remaining = self.total_documents - self.processed_count
        return int(per_document * remaining)


@dataclass(frozen=True)
class PageInfo:
    """Character statistics for one page (1-indexed)."""

    number: int
    char_count: int
    low_text: bool


class QualityLevel(str, Enum):
    """How trustworthy the native text layer is."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class QualityVerdict:
    """Quality level plus a human-readable reason."""

    level: QualityLevel
    reason: str
    low_text_ratio: float = 0.0
    avg_chars_per_page: int = 0

    @property
    def needs_ocr(self) -> bool:
        return self.level == QualityLevel.LOW


@dataclass(frozen=True)
class Table:
    """A detected table, flattened to rows of cell strings."""

    page_number: int
    rows: tuple[tuple[str, ...], ...]

    def to_text(self) -> str:
        """Pipe-delimited rows, one per line."""
        return "\n".join(
            "".join(f"{cell} | " for cell in row).rstrip() for row in self.rows
        )


@dataclass(frozen=True)
class ExtractionResult:
    """Result of ExtractionEngine.extract(). Immutable once produced."""

    text: str
    pages: tuple[PageInfo, ...]
    processing_time_ms: int
    used_ocr: bool
    verdict: QualityVerdict | None = None
    tables: tuple[Table, ...] = ()
    warnings: tuple[str, ...] = ()
    info: tuple[str, ...] = ()

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def summary(self) -> str:
        """Multi-line report of method, size, warnings and info."""
        lines = [
            f"Extraction completed in {self.processing_time_ms}ms",
            f"Method: {'OCR' if self.used_ocr else 'Native text'}",
            f"Pages: {self.page_count}",
            f"Total characters: {len(self.text)}",
        ]
        if self.verdict is not None:
            lines.append(f"Quality: {self.verdict.level.value} - {self.verdict.reason}")
        if self.warnings:
            lines.append("")
            lines.append("Warnings:")
            lines.extend(f"- {warning}" for warning in self.warnings)
        if self.info:
            lines.append("")
            lines.append("Info:")
            lines.extend(f"- {item}" for item in self.info)
        return "\n".join(lines) + "\n"


class BackendKind(str, Enum):
    """Inference backends, ordered by capability."""

    FAST = "fast"
    POWER = "power"
    VISION = "vision"


@dataclass(frozen=True)
class RouteDecision:
    """Backend selection for one request. Derived, never persisted."""

    backend: BackendKind
    model: str
    context_size: int
    timeout: float
    temperature: float
    requested: BackendKind | None = None  # Set when the request was degraded
    reasoning: str = ""

    @property
    def degraded(self) -> bool:
        return self.requested is not None and self.requested != self.backend


@dataclass
class AnalysisResult:
    """Response from ModelRouter.route()."""

    text: str
    decision: RouteDecision
    processing_time_ms: int = 0
    input_chars: int = 0


@dataclass(frozen=True)
class BackendAvailability:
    """Which models are installed on the inference backend."""

    fast: bool = False
    power: bool = False
    vision: bool = False
    backend_reachable: bool = False

    def as_dict(self) -> dict[str, bool]:
        return {
            "fast_model": self.fast,
            "power_model": self.power,
            "vision_model": self.vision,
            "ollama_running": self.backend_reachable,
        }
