"""
Backends
========

OCR and inference backends.

Available Backends:
- TesseractBackend: Local Tesseract OCR (offline, free)
- OllamaClient: Local LLM inference over the Ollama HTTP API

Usage:
    from document_reader.backends import TesseractBackend

    tesseract = TesseractBackend()
    if tesseract.is_available():
        text = tesseract.recognize_page(page)
"""

from .base import BaseOCRBackend
from .ollama import GenerateOptions, GenerateRequest, GenerateResponse, OllamaClient
from .tesseract import TesseractBackend, resolve_tessdata_dir

__all__ = [
    "BaseOCRBackend",
    "GenerateOptions",
    "GenerateRequest",
    "GenerateResponse",
    "OllamaClient",
    "TesseractBackend",
    "resolve_tessdata_dir",
]
