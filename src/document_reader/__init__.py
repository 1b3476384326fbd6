"""
Document Reader
===============

PDF ingestion core: adaptive text extraction, model routing and batch
orchestration for fund-agreement analysis on local models.

Features:
- Native-first extraction with quality scoring and Tesseract OCR fallback
- Table detection appended to extracted text
- Routing between fast / power / vision Ollama models by query complexity
- Head / key-lines / tail reduction of oversized documents
- Batch processing of up to 1000 PDFs on a bounded worker pool

Basic Usage:
    from document_reader import ExtractionEngine, ModelRouter, Settings
    from document_reader.backends import TesseractBackend

    settings = Settings.from_env()
    engine = ExtractionEngine(ocr_backend=TesseractBackend(settings.ocr))
    result = engine.extract(open("agreement.pdf", "rb").read())

    router = ModelRouter(settings)
    answer = router.route(result.text, "What is the PAN number?")
    print(answer.text)

Batch Usage:
    from document_reader import BatchOrchestrator, DocumentAnalyzer, InMemoryStorage

    orchestrator = BatchOrchestrator(
        storage=InMemoryStorage(),
        engine=engine,
        analyzer=DocumentAnalyzer(router),
    )
    job = orchestrator.create_batch_job("Q3 agreements", documents, analysis_template="...")
    job = orchestrator.run_batch(job.id)
    print(job.success_count, job.failure_count)
"""

__version__ = "0.1.0"

from .analysis import DocumentAnalyzer
from .config import BackendConfig, OcrConfig, Settings, configure_logging
from .errors import (
    BackendError,
    BackendTimeout,
    BatchError,
    DocumentReaderError,
    ExtractionError,
    OcrError,
    RouteError,
    RouteErrorKind,
    TableExtractionError,
)
from .extractor import ExtractionEngine
from .models import (
    AnalysisResult,
    BackendAvailability,
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
    Table,
)
from .orchestrator import MAX_BATCH_SIZE, BatchOrchestrator, ProgressTracker
from .quality import QualityAnalyzer
from .router import ModelRouter
from .storage import InMemoryStorage, Storage
from .summarizer import ContentSummarizer
from .tables import TableExtractor

__all__ = [
    "__version__",
    # Configuration
    "BackendConfig",
    "OcrConfig",
    "Settings",
    "configure_logging",
    # Errors
    "DocumentReaderError",
    "ExtractionError",
    "OcrError",
    "TableExtractionError",
    "BackendError",
    "BackendTimeout",
    "RouteError",
    "RouteErrorKind",
    "BatchError",
    # Models
    "Document",
    "DocumentStatus",
    "BatchJob",
    "BatchStatus",
    "PageInfo",
    "ExtractionResult",
    "QualityLevel",
    "QualityVerdict",
    "Table",
    "BackendKind",
    "RouteDecision",
    "AnalysisResult",
    "BackendAvailability",
    # Extraction
    "QualityAnalyzer",
    "TableExtractor",
    "ExtractionEngine",
    # Routing
    "ContentSummarizer",
    "ModelRouter",
    "DocumentAnalyzer",
    # Batch
    "Storage",
    "InMemoryStorage",
    "BatchOrchestrator",
    "ProgressTracker",
    "MAX_BATCH_SIZE",
]
