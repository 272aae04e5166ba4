"""
Chat Completion Service Unit Tests
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from converse_gateway.common.errors import ServiceError, ValidationError
from converse_gateway.domain.request import ChatCompletionsRequest
from converse_gateway.domain.response import Usage
from converse_gateway.services.chat_service import ChatService


def _request(**kwargs) -> ChatCompletionsRequest:
    body = {"model": "anthropic.claude-3-haiku", "messages": [{"role": "user", "content": "Hi"}]}
    body.update(kwargs)
    return ChatCompletionsRequest.model_validate(body)


def _provider(stream=None):
    provider = MagicMock()
    provider.name = "stub"
    provider.stream_chat = AsyncMock(return_value=stream)
    return provider


@pytest.mark.asyncio
async def test_non_streaming_request_is_rejected(settings):
    resolver = MagicMock()
    service = ChatService(settings, provider_resolver=resolver)

    with pytest.raises(ValidationError) as exc_info:
        await service.stream_chat(_request(stream=False))

    assert exc_info.value.code == "streaming_required"
    assert exc_info.value.param == "stream"
    resolver.assert_not_called()


@pytest.mark.asyncio
async def test_stream_absent_or_true_is_accepted(settings):
    sentinel = object()
    provider = _provider(stream=sentinel)
    service = ChatService(settings, provider_resolver=lambda model, s: provider)

    assert await service.stream_chat(_request()) is sentinel
    assert await service.stream_chat(_request(stream=True)) is sentinel


@pytest.mark.asyncio
async def test_provider_is_resolved_by_model(settings):
    provider = _provider()
    resolver = MagicMock(return_value=provider)
    service = ChatService(settings, provider_resolver=resolver)
    callback = MagicMock()

    request = _request(model="meta.llama3-70b", stream=True)
    await service.stream_chat(request, usage_callback=callback)

    resolver.assert_called_once_with("meta.llama3-70b", settings)
    provider.stream_chat.assert_awaited_once_with(request, usage_callback=callback)


@pytest.mark.asyncio
async def test_default_usage_callback_logs(settings):
    provider = _provider()
    service = ChatService(settings, provider_resolver=lambda model, s: provider)

    await service.stream_chat(_request(stream=True))
    callback = provider.stream_chat.call_args.kwargs["usage_callback"]

    with patch("converse_gateway.services.chat_service.logger") as mock_logger:
        callback(Usage(prompt_tokens=5, completion_tokens=2, total_tokens=7))

    mock_logger.info.assert_called_once()
    assert mock_logger.info.call_args.args[1:] == ("anthropic.claude-3-haiku", 5, 2, 7)


@pytest.mark.asyncio
async def test_provider_errors_propagate(settings):
    def resolver(model, s):
        raise ServiceError("not configured", code="openai_not_configured")

    service = ChatService(settings, provider_resolver=resolver)
    with pytest.raises(ServiceError):
        await service.stream_chat(_request(model="gpt-4o", stream=True))
