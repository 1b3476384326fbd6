"""
Ollama Inference Client
=======================

Thin HTTP client for a local Ollama server.

Wire contract:
    POST /api/generate  {model, prompt, stream: false,
                         options: {num_ctx, temperature, num_thread, num_gpu}}
                        -> {"response": "...", ...}
    GET  /api/tags      -> {"models": [{"name": "qwen2.5:7b", ...}, ...]}

Every generate call carries its own timeout. Timeouts raise BackendTimeout and
are never retried; HTTP 429/503 (server busy, model loading) are retried with
exponential backoff.
"""

import logging

import requests
from pydantic import BaseModel, ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from document_reader.errors import BackendError, BackendTimeout

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = frozenset({429, 503})
MAX_ATTEMPTS = 3


class BackendRetryableError(BackendError):
    """Raised for responses worth retrying (429, 503)."""


class GenerateOptions(BaseModel):
    """Generation options sent with each request."""

    num_ctx: int
    temperature: float
    num_thread: int = 8
    num_gpu: int = 1


class GenerateRequest(BaseModel):
    """Body of POST /api/generate."""

    model: str
    prompt: str
    stream: bool = False
    options: GenerateOptions


class GenerateResponse(BaseModel):
    """Fields read from the /api/generate reply."""

    response: str
    model: str | None = None
    done: bool | None = None
    total_duration: int | None = None


class ModelTag(BaseModel):
    name: str


class TagsResponse(BaseModel):
    """Body of GET /api/tags."""

    models: list[ModelTag] = []


class OllamaClient:
    """
    Client for the Ollama generate and list-models endpoints.

    Attributes:
        base_url: Server URL, e.g. http://localhost:11434
    """

    def __init__(self, base_url: str = "http://localhost:11434", session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def generate(self, request: GenerateRequest, timeout: float) -> str:
        """
        Perform a single non-streaming generation.

        Args:
            request: Model, prompt and options
            timeout: Seconds before the call is abandoned

        Returns:
            The ``response`` text field

        Raises:
            BackendTimeout: If the request times out
            BackendError: For connection, HTTP or payload errors
        """
        payload = self._post_generate(request, timeout)
        try:
            return GenerateResponse.model_validate(payload).response
        except ValidationError as e:
            raise BackendError(f"Malformed response from Ollama: {e}") from e

    @retry(
        retry=retry_if_exception_type(BackendRetryableError),
        stop=stop_after_attempt(MAX_ATTEMPTS),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        before_sleep=lambda retry_state: logger.warning(
            "Ollama busy, retrying in %.0fs (attempt %d/%d)",
            retry_state.next_action.sleep,  # type: ignore[union-attr]
            retry_state.attempt_number,
            MAX_ATTEMPTS,
        ),
        reraise=True,
    )
    def _post_generate(self, request: GenerateRequest, timeout: float) -> dict:
        url = f"{self.base_url}/api/generate"
        logger.debug("Sending request to Ollama: model=%s", request.model)
        try:
            response = self.session.post(url, json=request.model_dump(), timeout=timeout)
        except requests.Timeout as e:
            raise BackendTimeout(f"Ollama did not respond within {timeout:.0f}s") from e
        except requests.RequestException as e:
            raise BackendError(f"Ollama request failed: {e}") from e

        if response.status_code in RETRYABLE_STATUS:
            raise BackendRetryableError(f"Ollama returned HTTP {response.status_code}")
        if response.status_code >= 400:
            raise BackendError(
                f"Ollama returned HTTP {response.status_code}: {response.text[:200]}"
            )
        try:
            return response.json()
        except ValueError as e:
            raise BackendError(f"Ollama returned invalid JSON: {e}") from e

    def list_models(self, timeout: float = 5.0) -> list[str]:
        """
        Names of installed models.

        Raises:
            BackendError: If the server cannot be reached or replies badly
        """
        try:
            response = self.session.get(f"{self.base_url}/api/tags", timeout=timeout)
            response.raise_for_status()
            return [tag.name for tag in TagsResponse.model_validate(response.json()).models]
        except (requests.RequestException, ValueError, ValidationError) as e:
            raise BackendError(f"Failed to list Ollama models: {e}") from e
