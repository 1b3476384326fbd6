"""
Test Configuration and Fixtures for document-reader

This module provides shared fixtures, markers, and configuration for all tests.
"""

import io
import tempfile
import threading
from pathlib import Path
from typing import Generator

import fitz
import pytest
from PIL import Image

from document_reader.backends.base import BaseOCRBackend
from document_reader.backends.ollama import GenerateRequest, OllamaClient
from document_reader.config import Settings
from document_reader.errors import BackendError, ExtractionError, OcrError
from document_reader.models import ExtractionResult, PageInfo, QualityLevel, QualityVerdict


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, no external deps)")
    config.addinivalue_line("markers", "integration: Integration tests (real PDFs, mocked models)")
    config.addinivalue_line("markers", "performance: Performance benchmark tests")
    config.addinivalue_line("markers", "slow: Slow tests (skip with -m 'not slow')")


# =============================================================================
# Path Fixtures
# =============================================================================

@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory(prefix="document_reader_test_") as tmpdir:
        yield Path(tmpdir)


# =============================================================================
# Sample PDF Creation Fixtures
# =============================================================================

AGREEMENT_LINES = [
    "This Contribution Agreement is executed on 15 March 2024 between the parties.",
    "Name: Rahul Kumar Sharma, resident of Mumbai, hereinafter the Contributor.",
    "PAN: ABCDE1234F issued by the Income Tax Department of India.",
    "Capital Commitment: Rs. 1,00,00,000 payable on drawdown notices.",
    "Lock-in period: 3 years from the date of final closing of the Fund.",
    "Management fee: 2% per annum of the capital commitment amount.",
    "Carried interest: 20% over a hurdle rate of 10% per annum.",
    "Contact email: investor.relations@example-fund.in for all notices.",
    "WHEREAS the Fund is registered as a Category II Alternative Investment Fund.",
    "The Contributor agrees to the terms set out in the Private Placement Memorandum.",
]


@pytest.fixture
def create_text_pdf(temp_dir: Path):
    """Factory fixture to create a PDF with a dense native text layer on every page."""
    def _create(filename: str = "text.pdf", pages: int = 3, lines: list = None) -> Path:
        pdf_path = temp_dir / filename
        doc = fitz.open()
        for page_index in range(pages):
            page = doc.new_page()
            y_pos = 72
            for line in lines or AGREEMENT_LINES:
                page.insert_text((72, y_pos), line, fontsize=9)
                y_pos += 16
            page.insert_text((72, y_pos), f"Page {page_index + 1} of {pages}", fontsize=9)
        doc.save(str(pdf_path))
        doc.close()
        return pdf_path
    return _create


@pytest.fixture
def create_image_pdf(temp_dir: Path):
    """Factory fixture to create a PDF with only images (simulates scanned pages)."""
    def _create(filename: str = "scanned.pdf", pages: int = 3) -> Path:
        pdf_path = temp_dir / filename

        img = Image.new("RGB", (400, 300), color="lightgray")
        img_bytes = io.BytesIO()
        img.save(img_bytes, format="PNG")
        png = img_bytes.getvalue()

        doc = fitz.open()
        for _ in range(pages):
            page = doc.new_page()
            page.insert_image(fitz.Rect(72, 72, 500, 400), stream=png)
        doc.save(str(pdf_path))
        doc.close()
        return pdf_path
    return _create


@pytest.fixture
def create_table_pdf(temp_dir: Path):
    """Factory fixture to create a one-page PDF with text and a ruled 3x3 table."""
    def _create(filename: str = "table.pdf") -> Path:
        pdf_path = temp_dir / filename
        doc = fitz.open()
        page = doc.new_page()
        y_pos = 72
        for line in AGREEMENT_LINES:
            page.insert_text((72, y_pos), line, fontsize=9)
            y_pos += 16

        cells = [
            ["Investor", "Class", "Commitment"],
            ["Rahul Sharma", "A", "1,00,00,000"],
            ["Priya Mehta", "B", "50,00,000"],
        ]
        top, left, row_height, col_width = 300, 72, 24, 150
        for r, row in enumerate(cells):
            for c, value in enumerate(row):
                rect = fitz.Rect(
                    left + c * col_width,
                    top + r * row_height,
                    left + (c + 1) * col_width,
                    top + (r + 1) * row_height,
                )
                page.draw_rect(rect, color=(0, 0, 0), width=1)
                page.insert_text((rect.x0 + 4, rect.y1 - 8), value, fontsize=10)
        doc.save(str(pdf_path))
        doc.close()
        return pdf_path
    return _create


# =============================================================================
# Mock Backends
# =============================================================================

class MockOCRBackend(BaseOCRBackend):
    """OCR backend returning canned text, optionally failing on chosen pages."""

    def __init__(self, available: bool = True, fail_pages: set = None,
                 text_template: str = "Recognized agreement text for page {page}, PAN ABCDE1234F."):
        super().__init__(name="MockOCR", dpi=36)
        self._available = available
        self.fail_pages = fail_pages or set()
        self.text_template = text_template
        self.calls = []

    def is_available(self) -> bool:
        return self._available

    def recognize(self, image, page_number=None) -> str:
        self.calls.append(page_number)
        if page_number in self.fail_pages:
            raise OcrError("Mock OCR failure", page_number)
        return self.text_template.format(page=page_number)


class FakeOllamaClient(OllamaClient):
    """Records generate requests; replies with canned text or raises ``error``."""

    def __init__(self, reply: str = "Mock model answer", error: Exception = None,
                 models: list = None, reachable: bool = True):
        super().__init__("http://ollama.test")
        self.reply = reply
        self.error = error
        self.models = models or []
        self.reachable = reachable
        self.requests = []

    def generate(self, request: GenerateRequest, timeout: float) -> str:
        self.requests.append((request, timeout))
        if self.error is not None:
            raise self.error
        return self.reply

    def list_models(self, timeout: float = 5.0) -> list:
        if not self.reachable:
            raise BackendError("Failed to list Ollama models: connection refused")
        return list(self.models)


@pytest.fixture
def mock_ocr():
    """Available OCR backend that never fails."""
    return MockOCRBackend()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def fake_client():
    return FakeOllamaClient()


class FakeEngine:
    """
    Stand-in for ExtractionEngine used by orchestrator tests.

    Documents whose bytes contain ``bad`` fail with ExtractionError; bytes
    containing ``scan`` come back as OCR results.
    """

    def __init__(self, pages: int = 2):
        self.pages = pages
        self.calls = []
        self._lock = threading.Lock()

    def extract(self, document_bytes: bytes) -> ExtractionResult:
        with self._lock:
            self.calls.append(document_bytes)
        if b"bad" in document_bytes:
            raise ExtractionError("Failed to open PDF: corrupt")
        used_ocr = b"scan" in document_bytes
        text = f"Extracted text of {document_bytes.decode()}"
        return ExtractionResult(
            text=text,
            pages=tuple(PageInfo(n, len(text), False) for n in range(1, self.pages + 1)),
            processing_time_ms=1,
            used_ocr=used_ocr,
            verdict=QualityVerdict(QualityLevel.LOW if used_ocr else QualityLevel.HIGH, "fake"),
        )


class FakeAnalyzer:
    """Records analysis calls and returns a canned report, or raises ``error``."""

    def __init__(self, error: Exception = None):
        self.error = error
        self.calls = []
        self._lock = threading.Lock()

    def analyze(self, document_text: str, prompt: str, image_based: bool = False) -> str:
        with self._lock:
            self.calls.append((document_text, prompt, image_based))
        if self.error is not None:
            raise self.error
        return f"Analysis of: {document_text}"


def filename_bytes(document) -> bytes:
    """Document loader that skips the filesystem."""
    return document.filename.encode()


@pytest.fixture
def fake_engine():
    return FakeEngine()


# =============================================================================
# Performance Testing Utilities
# =============================================================================

@pytest.fixture
def performance_timer():
    """Simple performance timer context manager."""
    import time

    class Timer:
        def __init__(self):
            self.start_time = None
            self.end_time = None
            self.elapsed_ms = None

        def __enter__(self):
            self.start_time = time.perf_counter()
            return self

        def __exit__(self, *args):
            self.end_time = time.perf_counter()
            self.elapsed_ms = (self.end_time - self.start_time) * 1000

    return Timer
