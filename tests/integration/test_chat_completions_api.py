"""
Chat Completions API Integration Tests
"""

import pytest
from httpx import ASGITransport, AsyncClient
from unittest.mock import MagicMock

from conftest import decode_sse
from converse_gateway.api.deps import get_chat_service
from converse_gateway.config import Settings
from converse_gateway.main import app
from converse_gateway.providers.bedrock_client import BedrockClient
from converse_gateway.services.chat_service import ChatService


class FakeEventStream:
    def __init__(self, events):
        self.events = events

    def __iter__(self):
        return iter(self.events)

    def close(self):
        pass


@pytest.fixture
def boto_client():
    client = MagicMock()
    client.converse_stream.return_value = {
        "stream": FakeEventStream(
            [
                {"messageStart": {"role": "assistant"}},
                {"contentBlockDelta": {"delta": {"text": "Bonjour"}, "contentBlockIndex": 0}},
                {"contentBlockStop": {"contentBlockIndex": 0}},
                {"messageStop": {"stopReason": "end_turn"}},
                {"metadata": {"usage": {"inputTokens": 4, "outputTokens": 1, "totalTokens": 5}}},
            ]
        )
    }
    return client


@pytest.fixture
def override_service(settings, boto_client):
    bedrock = BedrockClient(client=boto_client)
    app.dependency_overrides[get_chat_service] = lambda: ChatService(
        settings,
        provider_resolver=lambda model, s: bedrock,
    )
    yield
    app.dependency_overrides = {}


async def _post(path: str, body: dict):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        return await ac.post(path, json=body)


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/v1/chat/completions", "/chat/completions"])
async def test_streaming_chat_completion(override_service, path):
    response = await _post(
        path,
        {
            "model": "anthropic.claude-3-haiku",
            "stream": True,
            "messages": [{"role": "user", "content": "Say hello in French"}],
        },
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    payloads = decode_sse([response.content])
    assert payloads[1]["choices"][0]["delta"]["content"] == "Bonjour"
    assert payloads[3]["choices"][0]["finish_reason"] == "stop"
    assert payloads[4]["usage"]["total_tokens"] == 5
    assert payloads[-1] == "[DONE]"


@pytest.mark.asyncio
async def test_translation_error_returns_json_error(override_service, boto_client):
    response = await _post(
        "/v1/chat/completions",
        {
            "model": "anthropic.claude-3-haiku",
            "stream": True,
            "messages": [{"role": "tool", "content": "result without id"}],
        },
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "translation_error"
    boto_client.converse_stream.assert_not_called()


@pytest.mark.asyncio
async def test_non_streaming_request_returns_400(override_service):
    response = await _post(
        "/v1/chat/completions",
        {"model": "anthropic.claude-3-haiku", "stream": False, "messages": [{"role": "user", "content": "Hi"}]},
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "streaming_required"


@pytest.mark.asyncio
async def test_malformed_body_returns_openai_error(override_service):
    response = await _post("/v1/chat/completions", {"messages": []})

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["type"] == "invalid_request_error"
    assert error["param"] == "model"


@pytest.mark.asyncio
async def test_openai_model_without_key_returns_503():
    settings = Settings(_env_file=None, OPENAI_API_KEY=None)
    app.dependency_overrides[get_chat_service] = lambda: ChatService(settings)
    try:
        response = await _post(
            "/v1/chat/completions",
            {"model": "gpt-4o", "stream": True, "messages": [{"role": "user", "content": "Hi"}]},
        )
    finally:
        app.dependency_overrides = {}

    assert response.status_code == 503
    assert response.json()["error"]["code"] == "openai_not_configured"


@pytest.mark.asyncio
async def test_health_check():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
