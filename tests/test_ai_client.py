"""Tests for the generative AI clients (Gemini over a mock HTTP transport)."""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from app.core.ai_client import (
    AIClientError,
    AIConfigurationError,
    AnthropicClient,
    ContentPart,
    GeminiClient,
    build_ai_client,
)


def _gemini_reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def _client(handler, api_key="test-key", max_retries=3) -> tuple[GeminiClient, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def recording(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request, len(requests))

    http = httpx.AsyncClient(transport=httpx.MockTransport(recording))
    client = GeminiClient(
        api_key,
        "gemini-2.0-flash",
        base_url="https://gemini.test/v1beta",
        http_client=http,
        max_retries=max_retries,
        backoff_seconds=0,
    )
    return client, requests


@pytest.mark.asyncio
async def test_request_shape_and_first_candidate_text():
    client, requests = _client(lambda req, n: httpx.Response(200, json=_gemini_reply("Extracted text")))

    text = await client.generate(
        [ContentPart.from_text("Extract"), ContentPart.from_bytes(b"%PDF", "application/pdf")],
        temperature=0.3,
        max_output_tokens=1024,
    )

    assert text == "Extracted text"
    request = requests[0]
    assert request.url.path == "/v1beta/models/gemini-2.0-flash:generateContent"
    assert request.url.params["key"] == "test-key"
    body = json.loads(request.content)
    parts = body["contents"][0]["parts"]
    assert parts[0] == {"text": "Extract"}
    assert parts[1] == {"inline_data": {"mime_type": "application/pdf", "data": "JVBERg=="}}
    assert body["generationConfig"] == {"temperature": 0.3, "maxOutputTokens": 1024}


@pytest.mark.asyncio
async def test_empty_candidates_yield_empty_text():
    client, _ = _client(lambda req, n: httpx.Response(200, json={"candidates": []}))

    assert await client.generate([ContentPart.from_text("x")]) == ""


@pytest.mark.asyncio
async def test_missing_key_raises_without_request():
    client, requests = _client(lambda req, n: httpx.Response(200, json=_gemini_reply("x")), api_key="")

    with pytest.raises(AIConfigurationError, match="Gemini API key not configured"):
        await client.generate([ContentPart.from_text("x")])

    assert requests == []


@pytest.mark.asyncio
async def test_retries_server_errors_then_succeeds():
    def handler(request, attempt):
        if attempt < 3:
            return httpx.Response(503, json={"error": {"message": "overloaded"}})
        return httpx.Response(200, json=_gemini_reply("ok"))

    client, requests = _client(handler)

    assert await client.generate([ContentPart.from_text("x")]) == "ok"
    assert len(requests) == 3


@pytest.mark.asyncio
async def test_rate_limit_retries_are_bounded():
    client, requests = _client(
        lambda req, n: httpx.Response(429, json={"error": {"message": "quota exceeded"}}),
        max_retries=2,
    )

    with pytest.raises(AIClientError) as exc_info:
        await client.generate([ContentPart.from_text("x")])

    assert exc_info.value.message == "quota exceeded"
    assert exc_info.value.status_code == 429
    assert len(requests) == 3


@pytest.mark.asyncio
async def test_client_errors_are_not_retried():
    client, requests = _client(
        lambda req, n: httpx.Response(400, json={"error": {"message": "API key not valid"}})
    )

    with pytest.raises(AIClientError) as exc_info:
        await client.generate([ContentPart.from_text("x")])

    assert exc_info.value.message == "API key not valid"
    assert exc_info.value.retryable is False
    assert len(requests) == 1


@pytest.mark.asyncio
async def test_error_without_json_body_reports_status():
    client, _ = _client(lambda req, n: httpx.Response(404, text="not here"))

    with pytest.raises(AIClientError, match="HTTP 404"):
        await client.generate([ContentPart.from_text("x")])


@pytest.mark.asyncio
async def test_transport_errors_are_retried():
    def handler(request, attempt):
        if attempt == 1:
            raise httpx.ConnectError("connection reset")
        return httpx.Response(200, json=_gemini_reply("recovered"))

    client, requests = _client(handler)

    assert await client.generate([ContentPart.from_text("x")]) == "recovered"
    assert len(requests) == 2


def test_anthropic_content_blocks():
    blocks = AnthropicClient.build_content(
        [
            ContentPart.from_text("Extract"),
            ContentPart.from_bytes(b"%PDF", "application/pdf"),
            ContentPart.from_bytes(b"\x89PNG", "image/png"),
        ]
    )

    assert blocks[0] == {"type": "text", "text": "Extract"}
    assert blocks[1]["type"] == "document"
    assert blocks[1]["source"]["media_type"] == "application/pdf"
    assert blocks[2]["type"] == "image"
    assert blocks[2]["source"]["type"] == "base64"


@pytest.mark.asyncio
async def test_anthropic_returns_first_text_block():
    client = AnthropicClient("test-key", backoff_seconds=0)
    sdk = MagicMock()
    sdk.messages.create = AsyncMock(
        return_value=MagicMock(content=[MagicMock(type="text", text="Structured text")])
    )
    client._client = sdk

    text = await client.generate([ContentPart.from_text("Extract")], temperature=0.2, max_output_tokens=100)

    assert text == "Structured text"
    kwargs = sdk.messages.create.call_args.kwargs
    assert kwargs["max_tokens"] == 100
    assert kwargs["messages"][0]["content"] == [{"type": "text", "text": "Extract"}]


def test_build_ai_client_selects_provider(settings):
    assert isinstance(build_ai_client(settings), GeminiClient)

    anthropic_settings = settings.model_copy(update={"AI_PROVIDER": "anthropic", "ANTHROPIC_API_KEY": "k"})
    client = build_ai_client(anthropic_settings)
    assert isinstance(client, AnthropicClient)
    assert client.is_configured is True

    with pytest.raises(ValueError, match="Unknown AI_PROVIDER"):
        build_ai_client(settings.model_copy(update={"AI_PROVIDER": "other"}))
