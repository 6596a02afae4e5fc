"""Generative AI clients used by the extraction adapter.

Two providers share one interface: Google Gemini over its REST
``generateContent`` endpoint (default) and Anthropic through its SDK. Both
take an ordered list of content parts (instruction text and optional inline
binaries) and return the first text part of the first candidate.

Requests carry an explicit timeout and are retried with exponential backoff
on transport errors, HTTP 429 and 5xx responses.
"""

import asyncio
import base64
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx
from anthropic import APIConnectionError, APIStatusError, AsyncAnthropic

from app.core.config import Settings
from app.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ContentPart:
    """One element of a model request: text or inline bytes."""

    text: str | None = None
    data: bytes | None = None
    mime_type: str | None = None

    @classmethod
    def from_text(cls, text: str) -> "ContentPart":
        return cls(text=text)

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str) -> "ContentPart":
        return cls(data=data, mime_type=mime_type)

    @property
    def b64(self) -> str:
        return base64.standard_b64encode(self.data or b"").decode("utf-8")


class AIClientError(Exception):
    """A failed model call."""

    def __init__(self, message: str, status_code: int | None = None, retryable: bool = False):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.retryable = retryable


class AIConfigurationError(AIClientError):
    """No credential configured; raised before any network call."""


def _is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


class GenerativeClient(ABC):
    """Base class handling credential checks and the retry policy."""

    provider: str = "generic"
    display_name: str = "AI"

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: float = 120.0,
        max_retries: int = 3,
        backoff_seconds: float = 1.0,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.max_retries = max(0, max_retries)
        self.backoff_seconds = backoff_seconds

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def not_configured_message(self) -> str:
        return f"{self.display_name} API key not configured"

    async def generate(
        self,
        parts: list[ContentPart],
        temperature: float = 0.3,
        max_output_tokens: int = 8192,
    ) -> str:
        """
        Send one prompt and return the model's text ('' when it returned none).

        Raises:
            AIConfigurationError: If no API key is configured
            AIClientError: If the call still fails after retries
        """
        if not self.is_configured:
            raise AIConfigurationError(self.not_configured_message)

        attempt = 0
        while True:
            try:
                return await self._generate_once(parts, temperature, max_output_tokens)
            except AIClientError as e:
                if not e.retryable or attempt >= self.max_retries:
                    raise
                delay = self.backoff_seconds * (2**attempt)
                attempt += 1
                logger.warning(
                    f"{self.display_name} call failed ({e.message}); "
                    f"retry {attempt}/{self.max_retries} in {delay:.1f}s",
                    extra={"provider": self.provider},
                )
                await asyncio.sleep(delay)

    @abstractmethod
    async def _generate_once(
        self, parts: list[ContentPart], temperature: float, max_output_tokens: int
    ) -> str:
        """Perform a single request."""

    async def aclose(self) -> None:
        """Release network resources."""


class GeminiClient(GenerativeClient):
    """Google Gemini ``generateContent`` over HTTPS."""

    provider = "gemini"
    display_name = "Gemini"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        http_client: httpx.AsyncClient | None = None,
        **kwargs: Any,
    ):
        super().__init__(api_key, model, **kwargs)
        self.base_url = base_url.rstrip("/")
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=self.timeout)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    @staticmethod
    def build_body(
        parts: list[ContentPart], temperature: float, max_output_tokens: int
    ) -> dict[str, Any]:
        wire_parts: list[dict[str, Any]] = []
        for part in parts:
            if part.data is not None:
                wire_parts.append(
                    {"inline_data": {"mime_type": part.mime_type, "data": part.b64}}
                )
            else:
                wire_parts.append({"text": part.text or ""})
        return {
            "contents": [{"parts": wire_parts}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_output_tokens,
            },
        }

    @staticmethod
    def first_candidate_text(data: dict[str, Any]) -> str:
        """Text of the first candidate's first text part, or ''."""
        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        content = candidates[0].get("content") or {}
        for part in content.get("parts") or []:
            if isinstance(part, dict) and part.get("text"):
                return part["text"]
        return ""

    async def _generate_once(
        self, parts: list[ContentPart], temperature: float, max_output_tokens: int
    ) -> str:
        body = self.build_body(parts, temperature, max_output_tokens)

        try:
            response = await self._http.post(
                self.endpoint,
                params={"key": self.api_key},
                json=body,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise AIClientError("Gemini request timed out", retryable=True) from e
        except httpx.TransportError as e:
            raise AIClientError(f"Gemini request failed: {e}", retryable=True) from e

        try:
            data = response.json()
        except ValueError:
            data = None

        error = data.get("error") if isinstance(data, dict) else None
        if response.status_code >= 400 or error:
            message = (error or {}).get("message") if isinstance(error, dict) else None
            raise AIClientError(
                message or f"Gemini API error: HTTP {response.status_code}",
                status_code=response.status_code,
                retryable=_is_retryable_status(response.status_code),
            )

        if not isinstance(data, dict):
            raise AIClientError("Malformed Gemini response", status_code=response.status_code)

        return self.first_candidate_text(data)

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()


class AnthropicClient(GenerativeClient):
    """Anthropic Messages API with image and PDF document blocks."""

    provider = "anthropic"
    display_name = "Anthropic"

    def __init__(self, api_key: str, model: str = "claude-haiku-4-5-20251001", **kwargs: Any):
        super().__init__(api_key, model, **kwargs)
        self._client: AsyncAnthropic | None = None

    def _sdk(self) -> AsyncAnthropic:
        if self._client is None:
            # Retries are handled by GenerativeClient.generate
            self._client = AsyncAnthropic(
                api_key=self.api_key, timeout=self.timeout, max_retries=0
            )
        return self._client

    @staticmethod
    def build_content(parts: list[ContentPart]) -> list[dict[str, Any]]:
        blocks: list[dict[str, Any]] = []
        for part in parts:
            if part.data is None:
                blocks.append({"type": "text", "text": part.text or ""})
                continue
            block_type = "document" if part.mime_type == "application/pdf" else "image"
            blocks.append(
                {
                    "type": block_type,
                    "source": {
                        "type": "base64",
                        "media_type": part.mime_type,
                        "data": part.b64,
                    },
                }
            )
        return blocks

    async def _generate_once(
        self, parts: list[ContentPart], temperature: float, max_output_tokens: int
    ) -> str:
        try:
            response = await self._sdk().messages.create(
                model=self.model,
                max_tokens=max_output_tokens,
                temperature=temperature,
                messages=[{"role": "user", "content": self.build_content(parts)}],
            )
        except APIStatusError as e:
            raise AIClientError(
                f"Anthropic API error: {e.message}",
                status_code=e.status_code,
                retryable=_is_retryable_status(e.status_code),
            ) from e
        except APIConnectionError as e:
            raise AIClientError(f"Anthropic request failed: {e}", retryable=True) from e

        for block in response.content or []:
            if getattr(block, "type", None) == "text":
                return block.text
        return ""

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()


def build_ai_client(
    settings: Settings, http_client: httpx.AsyncClient | None = None
) -> GenerativeClient:
    """Construct the configured provider's client."""
    policy = {
        "timeout": settings.AI_TIMEOUT_SECONDS,
        "max_retries": settings.AI_MAX_RETRIES,
        "backoff_seconds": settings.AI_RETRY_BACKOFF_SECONDS,
    }
    provider = settings.AI_PROVIDER.lower()

    if provider == "anthropic":
        return AnthropicClient(settings.ANTHROPIC_API_KEY, settings.ANTHROPIC_MODEL, **policy)
    if provider != "gemini":
        raise ValueError(f"Unknown AI_PROVIDER: {settings.AI_PROVIDER}")

    return GeminiClient(
        settings.GEMINI_API_KEY,
        settings.GEMINI_MODEL,
        base_url=settings.GEMINI_BASE_URL,
        http_client=http_client,
        **policy,
    )
