"""
Tesseract OCR Backend
=====================

Local OCR using Tesseract. Free, offline, good for scanned agreements.

Availability is probed once, at construction: the backend is usable only if a
tessdata directory (recognition language data) is found. When it is not,
callers skip OCR up front instead of attempting and failing every page.
"""

import logging
import os
from collections.abc import Iterable
from pathlib import Path

import pytesseract
from PIL import Image

from document_reader.config import OcrConfig
from document_reader.errors import OcrError

from .base import BaseOCRBackend

logger = logging.getLogger(__name__)


def resolve_tessdata_dir(
    candidates: Iterable[str],
    override: str | None = None,
) -> Path | None:
    """
    Find the first existing tessdata directory.

    Args:
        candidates: Directories to try, in order
        override: Directory checked before the candidates (e.g. TESSDATA_PREFIX)

    Returns:
        Path to the directory, or None if none exists
    """
    paths = [override] if override else []
    paths.extend(candidates)
    for path in paths:
        if path and Path(path).is_dir():
            return Path(path)
    return None


class TesseractBackend(BaseOCRBackend):
    """
    OCR backend using local Tesseract installation.

    Good for:
    - Offline processing
    - Scanned documents without a text layer
    - Cost-free OCR
    """

    def __init__(self, config: OcrConfig | None = None):
        """
        Initialize Tesseract backend and probe for language data.

        Args:
            config: OCR settings (defaults to OcrConfig.from_env())
        """
        self.config = config or OcrConfig.from_env()
        super().__init__(name="Tesseract", dpi=self.config.dpi)

        if self.config.tesseract_path:
            pytesseract.pytesseract.tesseract_cmd = self.config.tesseract_path

        self.tessdata_dir = resolve_tessdata_dir(
            self.config.tessdata_candidates, self.config.tessdata_override
        )
        if self.tessdata_dir is not None:
            logger.info("OCR initialized with tessdata: %s", self.tessdata_dir)
        else:
            logger.warning("Tesseract data not found - OCR disabled")

    def is_available(self) -> bool:
        """True if a tessdata directory was found at startup."""
        return self.tessdata_dir is not None

    @property
    def tesseract_config(self) -> str:
        return (
            f'--tessdata-dir "{self.tessdata_dir}" '
            f"--psm {self.config.page_seg_mode} --oem {self.config.engine_mode}"
        )

    def recognize(self, image: Image.Image, page_number: int | None = None) -> str:
        """
        Recognize text in a page image with Tesseract.

        Raises:
            OcrError: If Tesseract is unavailable or fails on this page
        """
        if not self.is_available():
            raise OcrError("Tesseract is not available", page_number)
        try:
            text = pytesseract.image_to_string(
                image,
                lang=self.config.lang,
                config=self.tesseract_config,
            )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as e:
            raise OcrError(str(e), page_number) from e
        return text.strip()

    def get_available_languages(self) -> list[str]:
        """Get list of installed Tesseract languages."""
        if not self.is_available():
            return []
        try:
            return pytesseract.get_languages(config=f'--tessdata-dir "{self.tessdata_dir}"')
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError):
            return sorted(path.stem for path in self.tessdata_dir.glob("*.traineddata"))
