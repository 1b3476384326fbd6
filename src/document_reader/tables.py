"""
Table Extractor
===============

Detects ruled tables on PDF pages with PyMuPDF's ``find_tables()`` and
flattens them to pipe-delimited rows tagged with their page number.

Extraction never raises to the caller: any detection error degrades to
"no tables found".
"""

import logging
from collections.abc import Iterable

import fitz  # PyMuPDF

from document_reader.errors import TableExtractionError
from document_reader.models import Table

logger = logging.getLogger(__name__)

MIN_TABLE_ROWS = 2


class TableExtractor:
    """Finds tables with at least ``min_rows`` rows on each page."""

    def __init__(self, min_rows: int = MIN_TABLE_ROWS):
        self.min_rows = min_rows

    def extract(self, page: fitz.Page, page_number: int | None = None) -> list[Table]:
        """
        Extract tables from a single page.

        Args:
            page: PyMuPDF page object
            page_number: Page number (1-indexed); defaults to page.number + 1

        Returns:
            Accepted tables, or an empty list if detection fails
        """
        if page_number is None:
            page_number = page.number + 1
        try:
            return self._find_tables(page, page_number)
        except TableExtractionError as e:
            logger.debug("Table extraction failed on page %d: %s", page_number, e)
            return []

    def extract_document(self, doc: fitz.Document) -> list[Table]:
        """Extract tables from every page, in page order."""
        tables: list[Table] = []
        for index in range(len(doc)):
            tables.extend(self.extract(doc[index], index + 1))
        if tables:
            logger.info("Extracted %d tables", len(tables))
        return tables

    def _find_tables(self, page: fitz.Page, page_number: int) -> list[Table]:
        try:
            found = page.find_tables()
            raw_tables = [table.extract() for table in found.tables]
        except Exception as e:
            raise TableExtractionError(str(e)) from e

        tables = []
        for raw in raw_tables:
            rows = tuple(_clean_row(row) for row in raw if row and any(row))
            if len(rows) >= self.min_rows:
                tables.append(Table(page_number=page_number, rows=rows))
        return tables


def _clean_row(row: Iterable[str | None]) -> tuple[str, ...]:
    return tuple(" ".join((cell or "").split()) for cell in row)


def format_tables(tables: Iterable[Table]) -> str:
    """
    Render tables as numbered text blocks.

    Format:
        TABLE 1 (Page 2):
        Name | Amount |
        Alice | 100 |
    """
    blocks = []
    for index, table in enumerate(tables, start=1):
        blocks.append(f"TABLE {index} (Page {table.page_number}):\n{table.to_text()}\n")
    return "\n".join(blocks)
