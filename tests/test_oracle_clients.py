"""Tests for the OpenAI and AI Management oracle clients."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import httpx
import pytest

from offer_negotiation.errors import OracleError
from offer_negotiation.oracle_clients import (
    AIManagementOracleClient,
    OpenAIOracleClient,
)


def _ai_management_client(handler):
    return AIManagementOracleClient(
        base_url="http://ai-management.test/",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_ai_management_complete_returns_text():
    seen = {}
    
    def handler(request):
        seen["url"] = str(request.url)
        seen["payload"] = json.loads(request.content)
        return httpx.Response(200, json={"text": "Y", "model": "gpt", "provider": "openai"})
    
    async with _ai_management_client(handler) as client:
        text = await client.complete("100N,150Y,200", max_tokens=60)
    
    assert text == "Y"
    assert seen["url"] == "http://ai-management.test/generate"
    assert seen["payload"]["prompt"] == "100N,150Y,200"
    assert seen["payload"]["max_tokens"] == 60
    assert seen["payload"]["use_cache"] is False


@pytest.mark.asyncio
async def test_ai_management_non_success_raises_oracle_error():
    def handler(request):
        return httpx.Response(503, json={"detail": "unavailable"})
    
    client = _ai_management_client(handler)
    try:
        with pytest.raises(OracleError) as exc_info:
            await client.complete("200")
    finally:
        await client.aclose()
    
    assert exc_info.value.status == 503


@pytest.mark.asyncio
async def test_ai_management_transport_error_raises_oracle_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)
    
    async with _ai_management_client(handler) as client:
        with pytest.raises(OracleError, match="transport error"):
            await client.complete("200")


@pytest.mark.asyncio
async def test_ai_management_malformed_response_raises_oracle_error():
    def handler(request):
        return httpx.Response(200, json={"unexpected": True})
    
    async with _ai_management_client(handler) as client:
        with pytest.raises(OracleError, match="Malformed"):
            await client.complete("200")


@pytest.mark.asyncio
async def test_ai_management_aclose_releases_http_client():
    client = _ai_management_client(lambda request: httpx.Response(200, json={"text": "N"}))
    
    assert await client.complete("200") == "N"
    http_client = client.client
    await client.aclose()
    
    assert client.client is None
    assert http_client.is_closed
    await client.aclose()


@pytest.mark.asyncio
async def test_openai_aclose_is_noop():
    client = OpenAIOracleClient(api_key="sk-test")
    
    await client.aclose()


def test_openai_client_requires_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    
    with pytest.raises(ValueError, match="OPENAI_API_KEY"):
        OpenAIOracleClient()


def _patched_session(status, body=None, post_side_effect=None):
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=body)
    response.text = AsyncMock(return_value=json.dumps(body))
    
    post_cm = MagicMock()
    post_cm.__aenter__.return_value = response
    
    session = MagicMock()
    session.__aenter__.return_value = session
    if post_side_effect is not None:
        session.post.side_effect = post_side_effect
    else:
        session.post.return_value = post_cm
    return session


@pytest.mark.asyncio
async def test_openai_complete_returns_message_content():
    session = _patched_session(200, {
        "choices": [{"message": {"content": "N"}, "finish_reason": "stop"}],
        "usage": {"total_tokens": 12, "prompt_tokens": 11, "completion_tokens": 1},
    })
    client = OpenAIOracleClient(api_key="sk-test", model="gpt-4o-mini")
    
    with patch("offer_negotiation.oracle_clients.aiohttp.ClientSession", return_value=session):
        text = await client.complete("100N,150Y,200", max_tokens=60)
    
    assert text == "N"
    args, kwargs = session.post.call_args
    assert args[0] == "https://api.openai.com/v1/chat/completions"
    assert kwargs["json"]["model"] == "gpt-4o-mini"
    assert kwargs["json"]["max_tokens"] == 60
    assert kwargs["json"]["messages"][-1] == {"role": "user", "content": "100N,150Y,200"}
    assert kwargs["headers"]["Authorization"] == "Bearer sk-test"


@pytest.mark.asyncio
async def test_openai_auth_failure_raises_oracle_error():
    session = _patched_session(401, {"error": {"message": "Incorrect API key"}})
    client = OpenAIOracleClient(api_key="sk-bad")
    
    with patch("offer_negotiation.oracle_clients.aiohttp.ClientSession", return_value=session):
        with pytest.raises(OracleError) as exc_info:
            await client.complete("200")
    
    assert exc_info.value.status == 401


@pytest.mark.asyncio
async def test_openai_transport_error_raises_oracle_error():
    session = _patched_session(200, post_side_effect=aiohttp.ClientConnectionError("reset"))
    client = OpenAIOracleClient(api_key="sk-test")
    
    with patch("offer_negotiation.oracle_clients.aiohttp.ClientSession", return_value=session):
        with pytest.raises(OracleError, match="transport error"):
            await client.complete("200")
