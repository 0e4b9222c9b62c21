"""
Abstract provider adapter.

Defines the interface that all provider adapters (OpenAI-compatible, Ollama,
etc.) must adhere to. An adapter knows how to shape a normalized RequestSpec
for one backend and how to read the completion text back out of that
backend's response. Everything else (HTTP transport, failure classification,
normalization) is shared here so every adapter fails the same way.
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx
import structlog

from structured_inference.config import ProviderConfig
from structured_inference.llm.exceptions import (
    PermanentProviderError,
    ProviderError,
    TransientProviderError,
)
from structured_inference.llm.text_utils import normalize_completion
from structured_inference.models.enums import FailureKind
from structured_inference.models.llm_models import (
    DeliveryOutcome,
    Failure,
    RequestSpec,
    Success,
)
from structured_inference.monitoring.metrics import provider_latency_seconds


logger = structlog.get_logger(__name__)

# Non-5xx statuses worth retrying on the same provider
TRANSIENT_STATUS_CODES = frozenset({408, 409, 425, 429})


def classify_status(status_code: int, body_text: str = "") -> ProviderError:
    """
    Map a non-2xx HTTP status to a provider error.

    Rate limits, request timeouts and 5xx are transient; every other 4xx
    (auth, validation, unknown model) is permanent.
    """
    details = {"status": status_code, "error": body_text[:500]}
    if status_code in TRANSIENT_STATUS_CODES or status_code >= 500:
        return TransientProviderError(f"Provider returned HTTP {status_code}", details=details)
    return PermanentProviderError(f"Provider rejected request with HTTP {status_code}", details=details)


class ProviderAdapter(ABC):
    """
    Abstract base class for provider adapters.

    Responsibilities:
    - Map RequestSpec to the backend's request body
    - Send the HTTP request (Bearer auth when a key is configured)
    - Classify any failure as transient or permanent
    - Extract and normalize the single completion text

    Does NOT handle:
    - Retries or fallback (that's DeliveryLayer's job)
    - Prompt construction (that's PromptBuilder's job)
    - Parsing the completion (that's the task parser's job)

    invoke() never raises provider errors: it reports a DeliveryOutcome.
    """

    #: Request path relative to ProviderConfig.base_url
    endpoint_path: str = ""
    #: Lightweight GET used by health_check()
    health_path: str = ""

    def __init__(
        self,
        config: ProviderConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        connection_limits: Optional[httpx.Limits] = None,
    ):
        """
        Initialize adapter.

        Args:
            config: Static provider configuration (endpoint, model, credential)
            transport: Optional httpx transport (tests use httpx.MockTransport)
            connection_limits: httpx connection pool limits
        """
        self.config = config
        self.provider_id = config.provider_id
        self._transport = transport
        self._connection_limits = connection_limits or httpx.Limits(
            max_keepalive_connections=5,
            max_connections=10,
            keepalive_expiry=30.0,
        )
        self._client: Optional[httpx.AsyncClient] = None

        logger.info(
            "Initialized provider adapter",
            adapter_class=self.__class__.__name__,
            provider=self.provider_id,
            base_url=config.base_url,
            model=config.model,
            has_credential=config.api_key is not None,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=httpx.Timeout(self.config.timeout),
                limits=self._connection_limits,
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    def build_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", **self.config.extra_headers}
        if self.config.api_key is not None:
            headers["Authorization"] = f"Bearer {self.config.api_key.get_secret_value()}"
        return headers

    def wants_structured_output(self, request: RequestSpec) -> bool:
        """Structured output is only sent when requested AND supported."""
        return request.structured_output_requested and self.config.supports_structured_output

    @abstractmethod
    def build_payload(self, request: RequestSpec) -> dict[str, Any]:
        """Map the normalized request onto this backend's JSON body."""

    @abstractmethod
    def extract_text(self, body: Any) -> str:
        """
        Read the completion text out of a decoded response body.

        Raises:
            TransientProviderError: If the envelope does not have the expected shape
        """

    async def invoke(self, request: RequestSpec) -> DeliveryOutcome:
        """
        Run one attempt against this provider.

        Returns:
            Success with normalized text, or Failure(kind, error)
        """
        try:
            text = await self.generate(request)
        except TransientProviderError as e:
            return Failure(kind=FailureKind.TRANSIENT, provider_id=self.provider_id, error=e)
        except PermanentProviderError as e:
            return Failure(kind=FailureKind.PERMANENT, provider_id=self.provider_id, error=e)
        return Success(text=text, provider_id=self.provider_id)

    async def generate(self, request: RequestSpec) -> str:
        """
        Send the request and return the normalized completion.

        Raises:
            TransientProviderError: Timeout, network error, 429/5xx, malformed or
                undecodable envelope
            PermanentProviderError: Other non-2xx statuses, redirect loop
        """
        payload = self.build_payload(request)
        start_time = time.perf_counter()

        logger.debug(
            "Sending request to provider",
            provider=self.provider_id,
            model=payload.get("model"),
            turns=len(request.conversation),
            structured_output=self.wants_structured_output(request),
        )

        try:
            client = await self._get_client()
            response = await client.post(
                self.endpoint_path,
                json=payload,
                headers=self.build_headers(),
            )
        except httpx.TimeoutException as e:
            raise TransientProviderError(
                f"Request timeout after {self.config.timeout}s",
                details={"provider": self.provider_id, "error_type": type(e).__name__},
            ) from e
        except httpx.TransportError as e:
            raise TransientProviderError(
                f"Network error: {e}",
                details={"provider": self.provider_id, "error_type": type(e).__name__},
            ) from e
        except httpx.DecodingError as e:
            raise TransientProviderError(
                "Undecodable response envelope",
                details={"provider": self.provider_id, "error_type": type(e).__name__},
            ) from e
        except httpx.TooManyRedirects as e:
            # Redirect loop means a misconfigured base_url
            raise PermanentProviderError(
                f"Redirect loop: {e}",
                details={"provider": self.provider_id, "error_type": type(e).__name__},
            ) from e
        except httpx.RequestError as e:
            raise TransientProviderError(
                f"Request error: {e}",
                details={"provider": self.provider_id, "error_type": type(e).__name__},
            ) from e
        finally:
            provider_latency_seconds.labels(provider=self.provider_id).observe(
                time.perf_counter() - start_time
            )

        if not response.is_success:
            raise classify_status(response.status_code, response.text)

        try:
            body = response.json()
        except ValueError as e:
            raise TransientProviderError(
                "Invalid JSON response envelope",
                details={"provider": self.provider_id, "parse_error": str(e)},
            ) from e

        text = normalize_completion(self.extract_text(body))
        if not text:
            raise TransientProviderError(
                "Empty completion",
                details={"provider": self.provider_id},
            )
        return text

    async def health_check(self) -> bool:
        """
        Check if the provider is reachable.

        Returns True if the health endpoint answers 2xx, False otherwise.
        Never raises.
        """
        try:
            client = await self._get_client()
            response = await client.get(self.health_path, headers=self.build_headers(), timeout=5.0)
            return response.is_success
        except httpx.HTTPError as e:
            logger.warning("Provider health check failed", provider=self.provider_id, error=str(e))
            return False

    async def aclose(self):
        """Close the HTTP client connection."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed provider connection", provider=self.provider_id)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"provider_id={self.provider_id}, "
            f"base_url={self.config.base_url})"
        )
