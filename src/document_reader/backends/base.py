"""
Base OCR Backend
================

Abstract base class for OCR backend implementations.
"""

from abc import ABC, abstractmethod

import fitz  # PyMuPDF
from PIL import Image

from document_reader.errors import OcrError


class BaseOCRBackend(ABC):
    """
    Abstract base class for OCR backends.

    All OCR backends must implement:
    - recognize(): Recognize text in a rendered page image
    - is_available(): Report whether the backend can be used

    Optional overrides:
    - render_page(): Rasterize a PDF page for recognition
    """

    def __init__(self, name: str = "BaseOCR", dpi: int = 300):
        """
        Initialize backend.

        Args:
            name: Human-readable name for the backend
            dpi: Resolution used when rendering pages
        """
        self.name = name
        self.dpi = dpi

    @abstractmethod
    def recognize(self, image: Image.Image, page_number: int | None = None) -> str:
        """
        Recognize text in a page image.

        Args:
            image: Rendered page
            page_number: Page number (1-indexed), for error reporting

        Returns:
            Recognized text

        Raises:
            OcrError: If recognition fails for this page
        """

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check if this backend is available and configured.

        Returns:
            True if backend can be used, False otherwise
        """

    def render_page(self, page: fitz.Page) -> Image.Image:
        """
        Render a PDF page to a PIL image at ``self.dpi``.

        Raises:
            OcrError: If the page cannot be rasterized
        """
        try:
            # PDF default resolution is 72 DPI
            zoom = self.dpi / 72
            pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom))
            return Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
        except Exception as e:
            raise OcrError(f"Rendering failed: {e}", page.number + 1) from e

    def recognize_page(self, page: fitz.Page) -> str:
        """Render then recognize a single PDF page."""
        return self.recognize(self.render_page(page), page_number=page.number + 1)

    def __repr__(self) -> str:
        available = "available" if self.is_available() else "unavailable"
        return f"{self.__class__.__name__}(name='{self.name}', {available})"
