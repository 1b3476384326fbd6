"""
Configuration
=============

Typed settings for extraction, OCR, inference backends and batching.

Values come from the environment (a ``.env`` file is loaded first) and are
constructed once via ``Settings.from_env()``, then passed explicitly.

Environment variables:
    OLLAMA_BASE_URL: Inference backend URL (default: http://localhost:11434)
    DOCREADER_FAST_MODEL / DOCREADER_POWER_MODEL / DOCREADER_VISION_MODEL
    DOCREADER_MAX_WORKERS: Batch worker pool size (default: 4)
    DOCREADER_MIN_TEXT_PER_PAGE: Chars below which a page counts as low-text (default: 50)
    DOCREADER_IMAGE_PDF_THRESHOLD: Low-text page share that marks a scan (default: 0.7)
    DOCREADER_LOG_LEVEL: Logging level (default: INFO)
    TESSDATA_PREFIX: Tesseract language data directory override
    TESSERACT_PATH: Path to tesseract binary
    TESSERACT_LANG: OCR languages (default: eng)
"""

import logging
import os
from dataclasses import dataclass, field, replace

from dotenv import find_dotenv, load_dotenv

from document_reader.models import BackendKind

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

MIN_TEXT_PER_PAGE = 50  # chars per page
IMAGE_PDF_THRESHOLD = 0.7  # share of low-text pages that marks a scanned PDF
DEFAULT_MAX_WORKERS = 4

DEFAULT_TESSDATA_CANDIDATES = (
    "/opt/homebrew/share/tessdata",  # Homebrew (Apple Silicon)
    "/usr/local/share/tessdata",  # Homebrew (Intel) / source builds
    "/usr/share/tesseract-ocr/5/tessdata",  # Debian/Ubuntu, tesseract 5
    "/usr/share/tesseract-ocr/4.00/tessdata",  # Debian/Ubuntu, tesseract 4
    "/usr/share/tesseract-ocr/tessdata",
    "/usr/share/tessdata",  # Fedora / Arch
)


@dataclass(frozen=True)
class BackendConfig:
    """Generation settings for one inference backend."""

    kind: BackendKind
    model: str
    context_size: int
    max_chars: int
    timeout: float  # seconds
    temperature: float


DEFAULT_FAST = BackendConfig(
    kind=BackendKind.FAST,
    model="llama3.2:1b",
    context_size=4096,
    max_chars=8_000,
    timeout=10.0,
    temperature=0.0,
)
DEFAULT_POWER = BackendConfig(
    kind=BackendKind.POWER,
    model="qwen2.5:7b",
    context_size=32768,
    max_chars=120_000,
    timeout=30.0,
    temperature=0.1,
)
DEFAULT_VISION = BackendConfig(
    kind=BackendKind.VISION,
    model="llama3.2-vision:11b",
    context_size=8192,
    max_chars=30_000,
    timeout=60.0,
    temperature=0.1,
)


@dataclass(frozen=True)
class OcrConfig:
    """Tesseract settings."""

    tessdata_override: str | None = None
    tessdata_candidates: tuple[str, ...] = DEFAULT_TESSDATA_CANDIDATES
    tesseract_path: str | None = None
    lang: str = "eng"
    dpi: int = 300
    page_seg_mode: int = 1  # Automatic page segmentation with OSD
    engine_mode: int = 1  # LSTM only

    @classmethod
    def from_env(cls) -> "OcrConfig":
        return cls(
            tessdata_override=os.getenv("TESSDATA_PREFIX") or None,
            tesseract_path=os.getenv("TESSERACT_PATH") or None,
            lang=os.getenv("TESSERACT_LANG", "eng"),
        )


@dataclass(frozen=True)
class Settings:
    """Top-level settings for the whole pipeline."""

    ollama_base_url: str = "http://localhost:11434"
    fast: BackendConfig = DEFAULT_FAST
    power: BackendConfig = DEFAULT_POWER
    vision: BackendConfig = DEFAULT_VISION
    num_thread: int = 8
    num_gpu: int = 1
    health_timeout: float = 5.0
    max_workers: int = DEFAULT_MAX_WORKERS
    min_text_per_page: int = MIN_TEXT_PER_PAGE
    image_pdf_threshold: float = IMAGE_PDF_THRESHOLD
    ocr: OcrConfig = field(default_factory=OcrConfig)
    log_level: str = "INFO"

    def backend(self, kind: BackendKind) -> BackendConfig:
        return {
            BackendKind.FAST: self.fast,
            BackendKind.POWER: self.power,
            BackendKind.VISION: self.vision,
        }[kind]

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        """Build settings from environment variables (and ``.env`` if present)."""
        if dotenv:
            load_dotenv(find_dotenv(usecwd=True))

        def _model(config: BackendConfig, var: str) -> BackendConfig:
            model = os.getenv(var)
            if not model:
                return config
            return replace(config, model=model)

        return cls(
            ollama_base_url=os.getenv("OLLAMA_BASE_URL", cls.ollama_base_url).rstrip("/"),
            fast=_model(DEFAULT_FAST, "DOCREADER_FAST_MODEL"),
            power=_model(DEFAULT_POWER, "DOCREADER_POWER_MODEL"),
            vision=_model(DEFAULT_VISION, "DOCREADER_VISION_MODEL"),
            max_workers=_env_number("DOCREADER_MAX_WORKERS", DEFAULT_MAX_WORKERS, int, minimum=1),
            min_text_per_page=_env_number("DOCREADER_MIN_TEXT_PER_PAGE", MIN_TEXT_PER_PAGE, int),
            image_pdf_threshold=_env_number("DOCREADER_IMAGE_PDF_THRESHOLD", IMAGE_PDF_THRESHOLD, float),
            ocr=OcrConfig.from_env(),
            log_level=os.getenv("DOCREADER_LOG_LEVEL", "INFO").upper(),
        )


def _env_number(var: str, default, cast, minimum=0):
    """Read a numeric variable; malformed or out-of-range values fall back to ``default``."""
    raw = os.getenv(var)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw.strip())
    except ValueError:
        logger.warning("Ignoring %s=%r: not a valid %s, using %s", var, raw, cast.__name__, default)
        return default
    if value < minimum:
        logger.warning("Ignoring %s=%r: must be at least %s, using %s", var, raw, minimum, default)
        return default
    return value


def configure_logging(level: str | int = "INFO") -> None:
    """Configure root logging with the service-wide format."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
