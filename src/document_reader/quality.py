"""
Extraction Quality Analyzer
===========================

Scores how trustworthy a PDF's native text layer is from per-page character
counts, and decides whether OCR is needed.

Classification Logic:
- Page-level: a page is "low text" when it has fewer than
  ``min_text_per_page`` characters of stripped native text
- Document-level:
    LOW    if low-text pages make up >= ``image_pdf_threshold`` of all pages
    MEDIUM if the average characters per page is below ``min_text_per_page``
    HIGH   otherwise

The verdict is a pure function of the per-page counts.

Usage:
    analyzer = QualityAnalyzer()
    pages = [build_page_info(1, text_1), build_page_info(2, text_2)]
    verdict = analyzer.analyze(pages)
    if verdict.needs_ocr:
        ...
"""

import logging
from collections.abc import Sequence

from document_reader.config import IMAGE_PDF_THRESHOLD, MIN_TEXT_PER_PAGE
from document_reader.models import PageInfo, QualityLevel, QualityVerdict

logger = logging.getLogger(__name__)


def build_page_info(
    page_number: int,
    text: str,
    min_text_per_page: int = MIN_TEXT_PER_PAGE,
) -> PageInfo:
    """
    Build page statistics from raw page text.

    Args:
        page_number: Page number (1-indexed)
        text: Native text of the page
        min_text_per_page: Threshold below which the page counts as low text

    Returns:
        PageInfo with stripped character count and low-text flag
    """
    char_count = len(text.strip())
    return PageInfo(
        number=page_number,
        char_count=char_count,
        low_text=char_count < min_text_per_page,
    )


class QualityAnalyzer:
    """
    Derives a QualityVerdict from per-page character statistics.

    Thresholds:
    - min_text_per_page: Minimum characters for a page to count as text
    - image_pdf_threshold: Share of low-text pages that marks a scanned PDF
    """

    def __init__(
        self,
        min_text_per_page: int = MIN_TEXT_PER_PAGE,
        image_pdf_threshold: float = IMAGE_PDF_THRESHOLD,
    ):
        self.min_text_per_page = min_text_per_page
        self.image_pdf_threshold = image_pdf_threshold

    def page_info(self, page_number: int, text: str) -> PageInfo:
        """Build PageInfo using this analyzer's threshold."""
        return build_page_info(page_number, text, self.min_text_per_page)

    def analyze(self, pages: Sequence[PageInfo]) -> QualityVerdict:
        """
        Classify extraction quality.

        Args:
            pages: Per-page statistics in page order

        Returns:
            QualityVerdict with level, reason and the metrics used
        """
        total_pages = len(pages)
        if total_pages == 0:
            return QualityVerdict(QualityLevel.LOW, "Document has no pages", 1.0, 0)

        low_text_pages = sum(
            1 for page in pages if page.char_count < self.min_text_per_page
        )
        low_text_ratio = low_text_pages / total_pages
        avg_chars = sum(page.char_count for page in pages) // total_pages

        logger.debug(
            "Quality metrics - low text pages: %d/%d (%d%%), avg chars/page: %d",
            low_text_pages,
            total_pages,
            int(low_text_ratio * 100),
            avg_chars,
        )

        if low_text_ratio >= self.image_pdf_threshold:
            return QualityVerdict(
                QualityLevel.LOW,
                f"Image-based PDF detected ({int(low_text_ratio * 100)}% pages "
                "with minimal text)",
                low_text_ratio,
                avg_chars,
            )
        if avg_chars < self.min_text_per_page:
            return QualityVerdict(
                QualityLevel.MEDIUM,
                f"Low text density (avg {avg_chars} chars/page)",
                low_text_ratio,
                avg_chars,
            )
        return QualityVerdict(
            QualityLevel.HIGH,
            f"Good text extraction (avg {avg_chars} chars/page)",
            low_text_ratio,
            avg_chars,
        )
