"""
Command-line entry point.

Usage:
    python -m document_reader extract agreement.pdf
    python -m document_reader analyze agreement.pdf "What is the PAN number?"
    python -m document_reader batch ./agreements --template "Extract all fields"
    python -m document_reader health
"""

import argparse
import json
import sys
from pathlib import Path

from document_reader.analysis import DocumentAnalyzer
from document_reader.backends import TesseractBackend
from document_reader.config import Settings, configure_logging
from document_reader.errors import DocumentReaderError, RouteError
from document_reader.extractor import ExtractionEngine
from document_reader.models import Document
from document_reader.orchestrator import BatchOrchestrator
from document_reader.quality import QualityAnalyzer
from document_reader.router import ModelRouter
from document_reader.storage import InMemoryStorage


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="document_reader", description=__doc__.splitlines()[1])
    commands = parser.add_subparsers(dest="command", required=True)

    extract = commands.add_parser("extract", help="Extract text from one PDF")
    extract.add_argument("pdf", type=Path)
    extract.add_argument("--text", action="store_true", help="Print the extracted text")

    analyze = commands.add_parser("analyze", help="Extract and answer a prompt")
    analyze.add_argument("pdf", type=Path)
    analyze.add_argument("prompt")

    batch = commands.add_parser("batch", help="Process every PDF in a directory")
    batch.add_argument("directory", type=Path)
    batch.add_argument("--template", default=None, help="Analysis template for each document")
    batch.add_argument("--workers", type=int, default=None)

    commands.add_parser("health", help="Report installed models and OCR availability")
    return parser


def _documents_in(directory: Path) -> list[Document]:
    return [
        Document(filename=path.name, file_path=str(path), file_size=path.stat().st_size)
        for path in sorted(directory.glob("*.pdf"))
    ]


def build_engine(settings: Settings) -> ExtractionEngine:
    return ExtractionEngine(
        ocr_backend=TesseractBackend(settings.ocr),
        analyzer=QualityAnalyzer(settings.min_text_per_page, settings.image_pdf_threshold),
    )


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    engine = build_engine(settings)
    router = ModelRouter(settings)

    try:
        if args.command == "extract":
            result = engine.extract_file(args.pdf)
            print(result.summary())
            if args.text:
                print(result.text)
        elif args.command == "analyze":
            result = engine.extract_file(args.pdf)
            answer = router.route(result.text, args.prompt, image_based=result.used_ocr)
            print(f"[{answer.decision.backend.value}: {answer.decision.model}]")
            print(answer.text)
        elif args.command == "batch":
            orchestrator = BatchOrchestrator(
                storage=InMemoryStorage(),
                engine=engine,
                analyzer=DocumentAnalyzer(router),
                max_workers=args.workers or settings.max_workers,
            )
            job = orchestrator.create_batch_job(
                args.directory.name, _documents_in(args.directory), args.template
            )
            orchestrator.run_batch(job.id)
            print(json.dumps(orchestrator.summary(job.id), indent=2))
        elif args.command == "health":
            status = router.check_availability().as_dict()
            status["ocr"] = engine.ocr_available
            print(json.dumps(status, indent=2))
    except RouteError as e:
        print(e.user_message, file=sys.stderr)
        return 1
    except DocumentReaderError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
