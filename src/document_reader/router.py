"""
Model Router
============

Routes analysis requests to one of the local inference backends based on the
request's complexity and whether the document is image-based.

Routing Matrix:
    | Request                                   | Backend           |
    |-------------------------------------------|-------------------|
    | image-based document                      | vision (-> power) |
    | short-query phrase and <= 2 named fields  | fast              |
    | anything else                             | power             |

The vision backend currently degrades to the power backend until image input
is supported. Each backend call has its own context size, temperature and
timeout (fast 10s, power 30s, vision 60s).

Usage:
    router = ModelRouter(settings=Settings.from_env())
    result = router.route(document_text, "What is the PAN number?")
    print(result.decision.backend, result.text)
"""

import logging
import time

from document_reader.backends.ollama import GenerateOptions, GenerateRequest, OllamaClient
from document_reader.config import BackendConfig, Settings
from document_reader.errors import BackendError, BackendTimeout, RouteError, RouteErrorKind
from document_reader.models import AnalysisResult, BackendAvailability, BackendKind, RouteDecision
from document_reader.summarizer import ContentSummarizer, truncate

logger = logging.getLogger(__name__)

SIMPLE_QUERY_PHRASES = (
    "find the",
    "what is the",
    "is there a",
    "extract the",
    "get the",
    "show me the",
    "does it contain",
    "is it present",
)
FIELD_VOCABULARY = ("name", "pan", "amount", "date", "period", "fee", "address", "email")
MAX_SIMPLE_FIELDS = 2

FAST_PREAMBLE = (
    "You are a fast document analyzer. Provide quick, accurate answers.\n"
    "Be concise and direct. Extract specific information only.\n"
)
POWER_PREAMBLE = """You are an expert financial document analyzer specializing in fund agreements.

Extract information with extreme accuracy. For each field:
1. Quote the exact text from the document
2. Provide the page reference if available
3. If not found, explicitly state "Not found in document"

Focus on:
- Contributor/Investor names
- Capital commitment amounts (look for Rs., INR, ₹)
- PAN numbers (format: XXXXX1234X)
- Lock-in periods (years/months)
- Management fees (%)
- Carried interest (%)
- Dates (multiple formats)
- Key terms and conditions

Format output clearly with headers and bullet points.
"""

PROMPT_TEMPLATE = """{preamble}
<document>
{document}
</document>

USER REQUEST:
{prompt}

Provide a detailed, structured response.
"""


def count_fields(prompt: str) -> int:
    """Number of distinct field-vocabulary words mentioned in the prompt."""
    lowered = prompt.lower()
    return sum(1 for name in FIELD_VOCABULARY if name in lowered)


def is_simple_query(prompt: str) -> bool:
    """A short-query phrase that asks for at most two fields."""
    lowered = prompt.lower()
    has_phrase = any(phrase in lowered for phrase in SIMPLE_QUERY_PHRASES)
    return has_phrase and count_fields(prompt) <= MAX_SIMPLE_FIELDS


class ModelRouter:
    """
    Selects an inference backend per request and calls it.

    Attributes:
        settings: Backend configs and generation hints
        client: Ollama HTTP client
        summarizer: Reducer applied to oversized text for the power backend
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: OllamaClient | None = None,
        summarizer: ContentSummarizer | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.client = client or OllamaClient(self.settings.ollama_base_url)
        self.summarizer = summarizer or ContentSummarizer()

    def classify(self, prompt: str, image_based: bool = False) -> RouteDecision:
        """
        Decide which backend serves a request, without calling it.

        Args:
            prompt: User request
            image_based: Whether the document came from scanned pages

        Returns:
            RouteDecision with the effective backend and its settings
        """
        if image_based:
            requested = BackendKind.VISION
            # No image input yet: serve vision requests with the power model
            config = self.settings.power
            reasoning = "Image-based document | vision unavailable, using power model"
        elif is_simple_query(prompt):
            requested = BackendKind.FAST
            config = self.settings.fast
            reasoning = f"Simple query ({count_fields(prompt)} fields)"
        else:
            requested = BackendKind.POWER
            config = self.settings.power
            reasoning = f"Complex query ({count_fields(prompt)} fields)"

        return RouteDecision(
            backend=config.kind,
            model=config.model,
            context_size=config.context_size,
            timeout=config.timeout,
            temperature=config.temperature,
            requested=requested,
            reasoning=reasoning,
        )

    def route(self, document_text: str, prompt: str, image_based: bool = False) -> AnalysisResult:
        """
        Classify a request and run it on the selected backend.

        Args:
            document_text: Extracted document text
            prompt: User request
            image_based: Whether the document came from scanned pages

        Returns:
            AnalysisResult with the model reply and routing decision

        Raises:
            RouteError: TIMEOUT if the backend timed out, BACKEND otherwise
        """
        decision = self.classify(prompt, image_based)
        config = self.settings.backend(decision.backend)
        logger.info(
            "Routing to %s model (%s): %s | document %d chars",
            decision.backend.value,
            decision.model,
            decision.reasoning,
            len(document_text),
        )

        if decision.backend == BackendKind.FAST:
            text = truncate(document_text, config.max_chars)
            preamble = FAST_PREAMBLE
        else:
            text = self.summarizer.reduce(document_text, config.max_chars)
            preamble = POWER_PREAMBLE

        start_time = time.perf_counter()
        reply = self._call(config, preamble, text, prompt)
        elapsed_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info("%s analysis completed in %dms", decision.backend.value.title(), elapsed_ms)

        return AnalysisResult(
            text=reply,
            decision=decision,
            processing_time_ms=elapsed_ms,
            input_chars=len(text),
        )

    def build_request(
        self, config: BackendConfig, preamble: str, document_text: str, prompt: str
    ) -> GenerateRequest:
        """Assemble the generate request for one backend."""
        return GenerateRequest(
            model=config.model,
            prompt=PROMPT_TEMPLATE.format(
                preamble=preamble, document=document_text, prompt=prompt
            ),
            stream=False,
            options=GenerateOptions(
                num_ctx=config.context_size,
                temperature=config.temperature,
                num_thread=self.settings.num_thread,
                num_gpu=self.settings.num_gpu,
            ),
        )

    def _call(self, config: BackendConfig, preamble: str, document_text: str, prompt: str) -> str:
        request = self.build_request(config, preamble, document_text, prompt)
        try:
            return self.client.generate(request, timeout=config.timeout)
        except BackendTimeout as e:
            logger.error("%s model timed out after %.0fs", config.kind.value, config.timeout)
            raise RouteError(RouteErrorKind.TIMEOUT, config.kind.value, str(e)) from e
        except BackendError as e:
            logger.error("%s model call failed: %s", config.kind.value, e)
            raise RouteError(RouteErrorKind.BACKEND, config.kind.value, str(e)) from e

    def check_availability(self) -> BackendAvailability:
        """
        Check which backend models are installed.

        Never raises: an unreachable server reports everything unavailable.
        """
        try:
            names = self.client.list_models(timeout=self.settings.health_timeout)
        except BackendError as e:
            logger.error("Failed to check Ollama status: %s", e)
            return BackendAvailability()

        def installed(config: BackendConfig) -> bool:
            return any(config.model in name for name in names)

        return BackendAvailability(
            fast=installed(self.settings.fast),
            power=installed(self.settings.power),
            vision=installed(self.settings.vision),
            backend_reachable=True,
        )
