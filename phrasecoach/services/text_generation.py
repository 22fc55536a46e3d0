"""
Text Generation Client - the external LLM behind practice rounds.

Callers depend on the TextGenerationClient interface; OpenAIChatClient talks
to an OpenAI-compatible chat-completions endpoint over httpx.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Generic, Optional, TypeVar

import httpx

from phrasecoach.config.settings import LLMSettings
from phrasecoach.core.exceptions import ExternalServiceError
from phrasecoach.core.metrics import record_latency

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TextGenerationClient(ABC):
    """Single-method interface to a text-generation service."""

    @abstractmethod
    async def complete(self, system_prompt: str, user_prompt: str, temperature: float) -> str:
        """
        Return the raw completion text.

        Raises:
            ExternalServiceError: on any transport, status or parsing failure
        """

    async def aclose(self) -> None:
        """Release network resources."""


@dataclass(frozen=True)
class Result(Generic[T]):
    """Value or ExternalServiceError from one external call."""

    value: Optional[T] = None
    error: Optional[ExternalServiceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok else default


async def capture(awaitable: Awaitable[T]) -> Result[T]:
    """Await ``awaitable`` and fold ExternalServiceError into a Result."""
    try:
        return Result(value=await awaitable)
    except ExternalServiceError as e:
        return Result(error=e)


class OpenAIChatClient(TextGenerationClient):
    """Chat-completions client with one timeout and at most one retry."""

    def __init__(
        self,
        settings: LLMSettings,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings
        self.api_url = settings.api_url.rstrip("/")
        self.model = settings.model
        self.max_retries = settings.max_retries
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=settings.timeout_seconds)

        if settings.api_key:
            logger.info(f"Text generation configured with model '{self.model}'")
        else:
            logger.warning(
                "LLM API key not configured. "
                "Set LLM_API_KEY; practice rounds will use fallbacks."
            )

    def _get_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.settings.api_key}",
            "Content-Type": "application/json",
        }

    async def complete(self, system_prompt: str, user_prompt: str, temperature: float) -> str:
        if not self.settings.api_key:
            raise ExternalServiceError("LLM API key not configured")

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
        }
        url = f"{self.api_url}/chat/completions"

        last_error: Optional[ExternalServiceError] = None
        for attempt in range(1 + self.max_retries):
            try:
                with record_latency("llm.complete"):
                    response = await self._client.post(url, json=payload, headers=self._get_headers())
            except httpx.TimeoutException:
                logger.warning(f"Text generation timed out (attempt {attempt + 1})")
                last_error = ExternalServiceError(
                    "Text generation timed out",
                    details={"timeout_seconds": self.settings.timeout_seconds},
                )
                continue
            except httpx.HTTPError as e:
                logger.warning(f"Text generation transport error (attempt {attempt + 1}): {e}")
                last_error = ExternalServiceError("Text generation request failed", details={"error": str(e)})
                continue

            if response.status_code >= 500:
                logger.warning(f"Text generation returned {response.status_code} (attempt {attempt + 1})")
                last_error = ExternalServiceError(
                    "Text generation service error",
                    details={"status_code": response.status_code},
                )
                continue

            if response.status_code != 200:
                logger.error(f"Text generation rejected request with {response.status_code}")
                raise ExternalServiceError(
                    "Text generation request rejected",
                    details={"status_code": response.status_code},
                )

            return self._extract_content(response)

        raise last_error

    @staticmethod
    def _extract_content(response: httpx.Response) -> str:
        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ExternalServiceError("Malformed text generation response", details={"error": str(e)}) from e
        if not isinstance(content, str):
            raise ExternalServiceError("Text generation response has no text content")
        return content

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
