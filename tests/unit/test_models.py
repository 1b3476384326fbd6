"""
Unit Tests for Data Models and Errors
=====================================
"""

from datetime import datetime, timedelta, timezone

import pytest

from document_reader.errors import RouteError, RouteErrorKind
from document_reader.models import (
    BackendKind,
    BatchJob,
    BatchStatus,
    Document,
    DocumentStatus,
    ExtractionResult,
    PageInfo,
    QualityLevel,
    QualityVerdict,
    RouteDecision,
)


# =============================================================================
# BatchJob Tests
# =============================================================================


@pytest.mark.unit
class TestBatchJob:
    """Tests for BatchJob progress helpers."""

    def test_defaults(self):
        job = BatchJob(name="job", total_documents=4)
        assert job.status == BatchStatus.PENDING
        assert job.processed_count == job.success_count == job.failure_count == 0
        assert not job.is_terminal
        assert job.id

    @pytest.mark.parametrize(
        "status,terminal",
        [
            (BatchStatus.PENDING, False),
            (BatchStatus.RUNNING, False),
            (BatchStatus.COMPLETED, True),
            (BatchStatus.FAILED, True),
            (BatchStatus.CANCELLED, True),
        ],
    )
    def test_terminal_statuses(self, status, terminal):
        assert BatchJob(name="job", status=status).is_terminal is terminal

    def test_progress(self):
        job = BatchJob(name="job", total_documents=8, processed_count=2)
        assert job.progress_percentage == 25.0
        assert job.progress_text == "2/8 (25.0%)"

    def test_progress_empty_job(self):
        assert BatchJob(name="job").progress_percentage == 0.0

    def test_estimated_time_remaining(self):
        started = datetime(2024, 1, 1, tzinfo=timezone.utc)
        job = BatchJob(name="job", total_documents=10, processed_count=4, started_at=started)
        assert job.estimated_time_remaining(now=started + timedelta(seconds=40)) == 60

    def test_estimated_time_unknown_before_progress(self):
        job = BatchJob(name="job", total_documents=10, started_at=datetime.now(timezone.utc))
        assert job.estimated_time_remaining() is None
        assert BatchJob(name="job", total_documents=10).estimated_time_remaining() is None


@pytest.mark.unit
class TestDocument:

    def test_transition_stamps_update(self):
        document = Document(filename="a.pdf", file_path="/tmp/a.pdf")
        before = document.updated_at
        document.transition(DocumentStatus.EXTRACTING)
        assert document.status == DocumentStatus.EXTRACTING
        assert document.updated_at >= before

    def test_ids_unique(self):
        assert Document("a.pdf", "/a").id != Document("a.pdf", "/a").id


# =============================================================================
# Extraction and Routing Results
# =============================================================================


@pytest.mark.unit
class TestExtractionResult:

    def test_summary_with_warnings_and_info(self):
        result = ExtractionResult(
            text="abc",
            pages=(PageInfo(1, 0, True), PageInfo(2, 3, True)),
            processing_time_ms=1200,
            used_ocr=True,
            verdict=QualityVerdict(QualityLevel.LOW, "Image-based PDF detected"),
            warnings=("OCR failed for page 1: blank",),
            info=("OCR processing took 1 seconds",),
        )
        assert result.page_count == 2
        assert result.summary() == (
            "Extraction completed in 1200ms\n"
            "Method: OCR\n"
            "Pages: 2\n"
            "Total characters: 3\n"
            "Quality: low - Image-based PDF detected\n"
            "\n"
            "Warnings:\n"
            "- OCR failed for page 1: blank\n"
            "\n"
            "Info:\n"
            "- OCR processing took 1 seconds\n"
        )

    def test_result_is_frozen(self):
        result = ExtractionResult(text="", pages=(), processing_time_ms=0, used_ocr=False)
        with pytest.raises(AttributeError):
            result.text = "changed"


@pytest.mark.unit
class TestRouteDecision:

    def test_degraded(self):
        decision = RouteDecision(
            backend=BackendKind.POWER, model="m", context_size=1, timeout=1, temperature=0,
            requested=BackendKind.VISION,
        )
        assert decision.degraded

    def test_not_degraded(self):
        decision = RouteDecision(
            backend=BackendKind.FAST, model="m", context_size=1, timeout=1, temperature=0,
            requested=BackendKind.FAST,
        )
        assert not decision.degraded


@pytest.mark.unit
class TestRouteError:

    def test_timeout_message(self):
        error = RouteError(RouteErrorKind.TIMEOUT, "fast", "no reply")
        assert error.user_message.startswith("Analysis timed out on the fast model.")
        assert "ollama list" in error.user_message

    def test_backend_message(self):
        error = RouteError(RouteErrorKind.BACKEND, "power", "HTTP 500")
        assert error.user_message == "Analysis failed: HTTP 500"
        assert str(error) == "HTTP 500"
