"""
Chat Completion Service Module

Validates an inbound chat request, picks the backend and opens the stream.
"""

import logging
from typing import AsyncGenerator, Callable, Optional

from converse_gateway.common.errors import ValidationError
from converse_gateway.config import Settings
from converse_gateway.domain.request import ChatCompletionsRequest
from converse_gateway.domain.response import Usage, UsageCallback
from converse_gateway.providers.base import ChatCompletionsProvider
from converse_gateway.providers.factory import get_provider_client

logger = logging.getLogger(__name__)

ProviderResolver = Callable[[str, Settings], ChatCompletionsProvider]


def log_usage(model: str) -> UsageCallback:
    """Default usage callback: one info log line per usage report"""

    def _callback(usage: Usage) -> None:
        logger.info(
            "Token usage: model=%s prompt=%d completion=%d total=%d",
            model,
            usage.prompt_tokens,
            usage.completion_tokens,
            usage.total_tokens,
        )

    return _callback


class ChatService:
    """
    Chat Completion Service

    Only streaming completions are served; `stream: false` is rejected.
    """

    def __init__(
        self,
        settings: Settings,
        provider_resolver: ProviderResolver = get_provider_client,
    ):
        self.settings = settings
        self.provider_resolver = provider_resolver

    async def stream_chat(
        self,
        request: ChatCompletionsRequest,
        usage_callback: Optional[UsageCallback] = None,
    ) -> AsyncGenerator[bytes, None]:
        """
        Open a streaming chat completion.

        Args:
            request: OpenAI-shaped chat request
            usage_callback: Usage hook; defaults to logging the usage

        Returns:
            AsyncGenerator[bytes, None]: SSE events for the response body

        Raises:
            ValidationError: Non-streaming request
            ServiceError: Backend for the model is not configured
            TranslationError: Request cannot be translated
            BackendConnectionError: Backend rejected the request
        """
        if request.stream is False:
            raise ValidationError(
                "Only streaming chat completions are supported; set stream to true",
                code="streaming_required",
                param="stream",
            )

        provider = self.provider_resolver(request.model, self.settings)
        logger.info(
            "Chat completion request: model=%s provider=%s messages=%d tools=%d",
            request.model,
            provider.name,
            len(request.messages),
            len(request.tools or []),
        )
        return await provider.stream_chat(
            request,
            usage_callback=usage_callback or log_usage(request.model),
        )
