"""HTTP client for the external translation service.

The service is a black box: it receives strings and target languages and
returns one list of translations per language. It knows nothing about
dictionary terms; markers are just text to it.
"""

import logging
from typing import Any, List, Optional

import httpx
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from termshield.core.config import Settings
from termshield.core.exceptions import (
    ConfigurationError,
    TranslationServiceError,
    TranslationServiceTimeoutError,
)
from termshield.models.translation import (
    TranslationServicePayload,
    TranslationServiceResponse,
)

logger = logging.getLogger(__name__)

MAX_ERROR_BODY_CHARS = 500


class TranslationServiceClient:
    """Async client for the translation service with retry on transport errors.

    Timeouts are not retried: the service timeout is long and a timed out
    request is reported immediately.
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_wait: Optional[wait_base] = None,
    ):
        """Initialize the client.

        Args:
            settings: Application settings with the service URL and timeout
            transport: Optional httpx transport (tests use httpx.MockTransport)
            retry_wait: Optional tenacity wait strategy between attempts

        Raises:
            ConfigurationError: If TRANSLATION_SERVICE_URL is not set
        """
        if not settings.TRANSLATION_SERVICE_URL:
            raise ConfigurationError("TRANSLATION_SERVICE_URL")

        self.url = settings.TRANSLATION_SERVICE_URL
        self.timeout = settings.TRANSLATION_SERVICE_TIMEOUT
        self.max_attempts = settings.TRANSLATION_SERVICE_MAX_ATTEMPTS
        self._transport = transport
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=10)
        self._client: Optional[httpx.AsyncClient] = None

        logger.info(
            f"TranslationServiceClient initialized (url={self.url}, "
            f"timeout={self.timeout}s, max_attempts={self.max_attempts})"
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client with connection pooling."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        client = await self._get_client()
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._retry_wait,
            retry=(
                retry_if_exception_type(httpx.TransportError)
                & retry_if_not_exception_type(httpx.TimeoutException)
            ),
            reraise=True,
        ):
            with attempt:
                attempt_number = attempt.retry_state.attempt_number
                if attempt_number > 1:
                    logger.warning(
                        f"Retrying translation service request "
                        f"(attempt {attempt_number}/{self.max_attempts})"
                    )
                return await client.post(self.url, json=payload)
        raise AssertionError("unreachable")  # pragma: no cover

    async def translate(
        self, texts: List[str], target_language_codes: List[str]
    ) -> TranslationServiceResponse:
        """Send strings to the translation service.

        Args:
            texts: Strings to translate (may contain dictionary markers)
            target_language_codes: Languages to translate into

        Returns:
            Parsed service response; ``success`` may still be False

        Raises:
            TranslationServiceTimeoutError: If the request timed out
            TranslationServiceError: On transport failure, non-2xx status or
                an unparseable response body
        """
        payload = TranslationServicePayload(
            texts=texts, target_language_codes=target_language_codes
        )

        try:
            response = await self._post(payload.model_dump())
        except httpx.TimeoutException as e:
            logger.error(f"Translation service timed out after {self.timeout}s")
            raise TranslationServiceTimeoutError(self.timeout) from e
        except httpx.TransportError as e:
            logger.error(f"Translation service request failed: {e}")
            raise TranslationServiceError(str(e) or type(e).__name__) from e

        if response.is_error:
            body = response.text[:MAX_ERROR_BODY_CHARS]
            logger.error(
                f"Translation service returned {response.status_code}: {body}"
            )
            raise TranslationServiceError(
                f"{response.status_code} - {body}",
                upstream_status=response.status_code,
            )

        try:
            return TranslationServiceResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(f"Translation service returned an invalid body: {e}")
            raise TranslationServiceError(
                "invalid response body", upstream_status=response.status_code
            ) from e

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
