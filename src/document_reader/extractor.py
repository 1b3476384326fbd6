"""
Extraction Engine
=================

Adaptive PDF text extraction: native text first, OCR only when the native
text layer is too thin to trust, plus table extraction on every document.

Flow:
    1. Extract native text page by page and record per-page statistics
    2. Ask QualityAnalyzer for a verdict
    3. HIGH / MEDIUM -> return the native text
       LOW           -> OCR every page (one failed page never aborts the rest);
                        if OCR is unavailable, keep native text with a warning
    4. Append any detected tables under a section marker

Usage:
    engine = ExtractionEngine(ocr_backend=TesseractBackend())
    result = engine.extract(pdf_bytes)
    print(result.summary())
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

import fitz  # PyMuPDF

from document_reader.backends.base import BaseOCRBackend
from document_reader.errors import ExtractionError, OcrError
from document_reader.models import ExtractionResult, PageInfo, QualityVerdict, Table
from document_reader.quality import QualityAnalyzer
from document_reader.tables import TableExtractor, format_tables

logger = logging.getLogger(__name__)

NATIVE_CONTEXT_MIN_CHARS = 100
TABLES_MARKER = "=== EXTRACTED TABLES ==="
OCR_UNAVAILABLE_WARNING = (
    "Document may be image-based but OCR is unavailable. "
    "Install Tesseract language data (e.g. brew install tesseract) "
    "or set TESSDATA_PREFIX."
)


def page_marker(page_number: int) -> str:
    return f"\n\n=== END OF PAGE {page_number} ===\n\n"


@dataclass
class _PassResult:
    """Text and page statistics from one extraction pass."""

    text: str
    pages: list[PageInfo]
    warnings: list[str] = field(default_factory=list)
    info: list[str] = field(default_factory=list)


class ExtractionEngine:
    """Native-first PDF text extraction with OCR fallback."""

    def __init__(
        self,
        ocr_backend: BaseOCRBackend | None = None,
        table_extractor: TableExtractor | None = None,
        analyzer: QualityAnalyzer | None = None,
    ):
        """
        Initialize the ExtractionEngine.

        Args:
            ocr_backend: OCR backend used for LOW quality documents
            table_extractor: Table detector (default: TableExtractor())
            analyzer: Quality analyzer (default: QualityAnalyzer())
        """
        self.ocr_backend = ocr_backend
        self.table_extractor = table_extractor or TableExtractor()
        self.analyzer = analyzer or QualityAnalyzer()
        # Probed once; OCR is skipped up front when unavailable
        self.ocr_available = bool(ocr_backend and ocr_backend.is_available())

    def extract(self, document_bytes: bytes) -> ExtractionResult:
        """
        Extract text from an in-memory PDF.

        Args:
            document_bytes: Raw PDF file content

        Returns:
            ExtractionResult with text, page statistics and verdict

        Raises:
            ExtractionError: If the bytes cannot be parsed as a PDF
        """
        start_time = time.perf_counter()
        doc = self._open(document_bytes)
        try:
            logger.info("Extracting PDF: %d pages", len(doc))

            native = self._extract_native(doc)
            verdict = self.analyzer.analyze(native.pages)
            logger.info("Quality: %s - %s", verdict.level.value, verdict.reason)

            used_ocr = False
            if not verdict.needs_ocr:
                logger.info("Using native text extraction")
                chosen = native
            elif self.ocr_available:
                logger.info("Switching to OCR extraction (image-based PDF detected)")
                chosen = self._extract_with_ocr(doc, native.text)
                used_ocr = True
            else:
                logger.warning("Poor text quality but OCR not available")
                chosen = native
                chosen.warnings.append(OCR_UNAVAILABLE_WARNING)

            tables = self._extract_tables(doc)
        finally:
            doc.close()

        text = chosen.text
        if tables:
            text = f"{text}\n\n{TABLES_MARKER}\n\n{format_tables(tables)}"

        elapsed_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(
            "Extraction completed in %dms (method=%s, chars=%d)",
            elapsed_ms,
            "ocr" if used_ocr else "native",
            len(text),
        )
        return ExtractionResult(
            text=text,
            pages=tuple(chosen.pages),
            processing_time_ms=elapsed_ms,
            used_ocr=used_ocr,
            verdict=verdict,
            tables=tuple(tables),
            warnings=tuple(chosen.warnings),
            info=tuple(chosen.info),
        )

    def extract_file(self, pdf_path: Path | str) -> ExtractionResult:
        """Read a PDF from disk and extract it."""
        pdf_path = Path(pdf_path)
        try:
            data = pdf_path.read_bytes()
        except OSError as e:
            raise ExtractionError(f"Cannot read {pdf_path.name}: {e}") from e
        return self.extract(data)

    def analyze_quality(self, document_bytes: bytes) -> QualityVerdict:
        """Quality verdict for a PDF without running OCR or table extraction."""
        doc = self._open(document_bytes)
        try:
            return self.analyzer.analyze(self._extract_native(doc).pages)
        finally:
            doc.close()

    def _open(self, document_bytes: bytes) -> fitz.Document:
        if not document_bytes:
            raise ExtractionError("Empty document")
        try:
            doc = fitz.open(stream=document_bytes, filetype="pdf")
        except Exception as e:
            raise ExtractionError(f"Failed to open PDF: {e}") from e
        if doc.needs_pass:
            doc.close()
            raise ExtractionError("PDF is password protected")
        if len(doc) == 0:
            doc.close()
            raise ExtractionError("PDF has no pages")
        return doc

    def _extract_native(self, doc: fitz.Document) -> _PassResult:
        parts: list[str] = []
        pages: list[PageInfo] = []
        for index in range(len(doc)):
            page_number = index + 1
            page_text = doc[index].get_text("text", sort=True)
            parts.append(page_text)
            parts.append(page_marker(page_number))
            pages.append(self.analyzer.page_info(page_number, page_text))
        return _PassResult(text="".join(parts), pages=pages)

    def _extract_with_ocr(self, doc: fitz.Document, native_text: str) -> _PassResult:
        """OCR every page, substituting a placeholder for pages that fail."""
        start_time = time.perf_counter()
        result = _PassResult(text="", pages=[])
        parts: list[str] = []

        # Selectable headers/footers often survive in the native layer
        if len(native_text.strip()) > NATIVE_CONTEXT_MIN_CHARS:
            parts.append("=== NATIVE TEXT (HEADERS/FOOTERS) ===\n\n")
            parts.append(native_text)
            parts.append("\n\n=== OCR TEXT (MAIN CONTENT) ===\n\n")

        total = len(doc)
        for index in range(total):
            page_number = index + 1
            logger.debug("OCR processing page %d/%d", page_number, total)
            try:
                page_text = self.ocr_backend.recognize_page(doc[index])
            except OcrError as e:
                logger.warning("OCR failed for page %d: %s", page_number, e)
                parts.append(f"[OCR failed for page {page_number}]\n\n")
                result.pages.append(PageInfo(page_number, 0, True))
                result.warnings.append(f"OCR failed for page {page_number}: {e}")
                continue
            parts.append(page_text)
            parts.append(page_marker(page_number))
            result.pages.append(self.analyzer.page_info(page_number, page_text))

        elapsed = time.perf_counter() - start_time
        logger.info("OCR extraction completed in %.1fs", elapsed)
        result.text = "".join(parts)
        result.info.append(f"OCR processing took {int(elapsed)} seconds")
        return result

    def _extract_tables(self, doc: fitz.Document) -> list[Table]:
        # TableExtractor already degrades per page; this guards the page loop itself
        try:
            return self.table_extractor.extract_document(doc)
        except Exception as e:
            logger.debug("Table extraction failed: %s", e)
            return []
