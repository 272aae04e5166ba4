"""
Backend Provider Base Class

Defines the abstract interface for chat completion backends.
"""

from abc import ABC, abstractmethod
from typing import AsyncGenerator, Optional

from converse_gateway.domain.request import ChatCompletionsRequest
from converse_gateway.domain.response import UsageCallback


class ChatCompletionsProvider(ABC):
    """
    Chat Completions Provider Abstract Base Class

    A provider turns an OpenAI-shaped chat request into a stream of SSE-framed
    `chat.completion.chunk` events.
    """

    # Short name used in log lines
    name: str = "provider"

    @abstractmethod
    async def stream_chat(
        self,
        request: ChatCompletionsRequest,
        usage_callback: Optional[UsageCallback] = None,
    ) -> AsyncGenerator[bytes, None]:
        """
        Open a streaming chat completion.

        Translation and connection failures are raised from this coroutine,
        before any byte is produced. Failures after the stream has started are
        reported inside the stream as a single SSE error event.

        Args:
            request: OpenAI-shaped chat request
            usage_callback: Called with the token usage when the backend reports it

        Returns:
            AsyncGenerator[bytes, None]: SSE events, terminated by `[DONE]`

        Raises:
            TranslationError: Request cannot be expressed for this backend
            BackendConnectionError: Backend unreachable or rejected the request
        """
        pass
