"""
Unit Tests for the command-line entry point
===========================================
"""

import json
from unittest.mock import patch

import pytest

from document_reader.__main__ import build_engine, main
from document_reader.config import Settings
from document_reader.errors import BackendError


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """No .env pickup and default model names."""
    monkeypatch.chdir(tmp_path)
    for name in ("DOCREADER_FAST_MODEL", "DOCREADER_POWER_MODEL", "DOCREADER_VISION_MODEL",
                 "DOCREADER_MIN_TEXT_PER_PAGE", "DOCREADER_IMAGE_PDF_THRESHOLD"):
        monkeypatch.delenv(name, raising=False)


@pytest.mark.unit
class TestCli:
    """Tests for the argparse subcommands."""

    def test_extract(self, create_text_pdf, capsys):
        assert main(["extract", str(create_text_pdf(pages=2)), "--text"]) == 0
        out = capsys.readouterr().out
        assert "Method: Native text" in out
        assert "ABCDE1234F" in out

    def test_quality_thresholds_reach_engine(self):
        engine = build_engine(Settings(min_text_per_page=120, image_pdf_threshold=0.4))
        assert engine.analyzer.min_text_per_page == 120
        assert engine.analyzer.image_pdf_threshold == 0.4

    @patch("document_reader.backends.tesseract.TesseractBackend.is_available", return_value=False)
    def test_extract_uses_configured_threshold(self, mock_available, monkeypatch, create_text_pdf, capsys):
        monkeypatch.setenv("DOCREADER_MIN_TEXT_PER_PAGE", "100000")
        assert main(["extract", str(create_text_pdf(pages=2))]) == 0
        out = capsys.readouterr().out
        assert "Quality: low" in out
        assert "Method: Native text" in out

    def test_extract_invalid_pdf(self, tmp_path, capsys):
        bogus = tmp_path / "bogus.pdf"
        bogus.write_bytes(b"not a pdf")
        assert main(["extract", str(bogus)]) == 1
        assert capsys.readouterr().err.startswith("Error:")

    @patch("document_reader.backends.ollama.OllamaClient.generate", return_value="ABCDE1234F")
    def test_analyze(self, mock_generate, create_text_pdf, capsys):
        assert main(["analyze", str(create_text_pdf(pages=1)), "What is the PAN number?"]) == 0
        out = capsys.readouterr().out
        assert "[fast: llama3.2:1b]" in out
        assert "ABCDE1234F" in out

    @patch("document_reader.backends.ollama.OllamaClient.generate",
           side_effect=BackendError("HTTP 500"))
    def test_analyze_backend_failure(self, mock_generate, create_text_pdf, capsys):
        assert main(["analyze", str(create_text_pdf(pages=1)), "Summarize"]) == 1
        assert "Analysis failed: HTTP 500" in capsys.readouterr().err

    def test_batch(self, create_text_pdf, capsys):
        pdf = create_text_pdf("one.pdf", pages=1)
        create_text_pdf("two.pdf", pages=1)
        assert main(["batch", str(pdf.parent), "--workers", "2"]) == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary["status"] == "completed"
        assert summary["success_count"] == 2

    @patch("document_reader.backends.ollama.OllamaClient.list_models",
           side_effect=BackendError("connection refused"))
    def test_health_unreachable(self, mock_list, capsys):
        assert main(["health"]) == 0
        status = json.loads(capsys.readouterr().out)
        assert status["ollama_running"] is False
        assert "ocr" in status
