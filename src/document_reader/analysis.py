"""
Document Analysis
=================

Multi-pass analysis of extracted fund-agreement text:

    Pass 1: structured fields pulled with regex patterns (no model call)
    Pass 2: the user's request answered through the ModelRouter

With ``enhance_with_ai`` enabled, fields the patterns missed are requested from
the model as JSON and merged into pass 1.
"""

import logging

from document_reader.errors import RouteError
from document_reader.fields import (
    FundAgreementData,
    build_enhancement_prompt,
    extract_structured_fields,
    parse_json_object,
)
from document_reader.router import ModelRouter

logger = logging.getLogger(__name__)

STRUCTURED_HEADER = "═══ STRUCTURED DATA EXTRACTION ═══"
QUERY_HEADER = "═══ SPECIFIC QUERY RESPONSE ═══"


class DocumentAnalyzer:
    """Combines pattern-based field extraction with a routed model answer."""

    def __init__(self, router: ModelRouter, enhance_with_ai: bool = False):
        self.router = router
        self.enhance_with_ai = enhance_with_ai

    def extract_fields(self, document_text: str) -> FundAgreementData:
        """Pattern extraction, optionally completed by the model."""
        data = extract_structured_fields(document_text)
        missing = data.missing_fields
        if self.enhance_with_ai and missing:
            try:
                reply = self.router.route(document_text, build_enhancement_prompt(missing))
            except RouteError as e:
                logger.warning("AI field enhancement failed: %s", e)
            else:
                extracted = parse_json_object(reply.text)
                if extracted:
                    data.merge(extracted)
                    data.score()
        logger.info("Structured extraction complete - confidence: %d%%", data.overall_confidence)
        return data

    def analyze(self, document_text: str, prompt: str, image_based: bool = False) -> str:
        """
        Run both passes and return the combined report.

        Raises:
            RouteError: If the query pass fails
        """
        data = self.extract_fields(document_text)
        answer = self.router.route(document_text, prompt, image_based=image_based)
        return (
            f"{STRUCTURED_HEADER}\n\n{data.to_formatted_string()}\n\n"
            f"{QUERY_HEADER}\n\n{answer.text}"
        )
