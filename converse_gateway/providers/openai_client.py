"""
OpenAI Passthrough Client

Forwards chat requests for OpenAI-hosted models to the OpenAI API and
re-chunks the SSE response into the gateway's chunk schema.
"""

import json
import logging
from typing import Any, AsyncGenerator, Optional

import httpx

from converse_gateway.common.errors import BackendConnectionError, StreamReceiveError
from converse_gateway.domain.request import ChatCompletionsRequest
from converse_gateway.domain.response import UsageCallback
from converse_gateway.providers.base import ChatCompletionsProvider
from converse_gateway.translation.rechunker import PassthroughRechunker

logger = logging.getLogger(__name__)

CHAT_COMPLETIONS_PATH = "/chat/completions"


class OpenAIClient(ChatCompletionsProvider):
    """
    OpenAI Passthrough Client

    The request body is forwarded as received, except that streaming and the
    trailing usage chunk are always switched on.
    """

    name = "openai"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 600,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize client

        Args:
            api_key: OpenAI API Key (sent as a Bearer token)
            base_url: API base URL, including the version segment
            timeout: Request timeout (seconds)
            transport: Custom httpx transport (used by tests)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _prepare_body(self, request: ChatCompletionsRequest) -> dict[str, Any]:
        body = request.to_openai_body()
        body["stream"] = True
        stream_options = dict(body.get("stream_options") or {})
        stream_options["include_usage"] = True
        body["stream_options"] = stream_options
        return body

    def _prepare_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
        }

    async def open_stream(self, request: ChatCompletionsRequest) -> AsyncGenerator[bytes, None]:
        """
        Send the request and return the raw response byte stream.

        Raises:
            BackendConnectionError: Timeout, transport failure or non-2xx response
        """
        url = f"{self.base_url}{CHAT_COMPLETIONS_PATH}"
        body = self._prepare_body(request)

        logger.debug(
            "OpenAI Stream Request: url=%s body=%s",
            url,
            json.dumps(body, ensure_ascii=False),
        )

        client = httpx.AsyncClient(timeout=self.timeout, transport=self.transport)
        try:
            response = await client.send(
                client.build_request("POST", url, headers=self._prepare_headers(), json=body),
                stream=True,
            )
        except httpx.TimeoutException as e:
            await client.aclose()
            logger.error("OpenAI request timeout: %s", e)
            raise BackendConnectionError(f"Request timeout: {e}", status_code=504) from e
        except httpx.RequestError as e:
            await client.aclose()
            logger.error("OpenAI request error: %s", e)
            raise BackendConnectionError(f"Request error: {e}", status_code=502) from e

        if not response.is_success:
            try:
                error_body = (await response.aread()).decode("utf-8", errors="replace")
            finally:
                await response.aclose()
                await client.aclose()
            logger.error(
                "OpenAI API returned HTTP %d: %s",
                response.status_code,
                error_body,
            )
            raise BackendConnectionError(
                f"OpenAI API error: HTTP {response.status_code}: {error_body}",
                status_code=response.status_code,
            )

        return self._iterate_bytes(client, response)

    async def _iterate_bytes(
        self,
        client: httpx.AsyncClient,
        response: httpx.Response,
    ) -> AsyncGenerator[bytes, None]:
        try:
            async for chunk in response.aiter_bytes():
                yield chunk
        except httpx.HTTPError as e:
            raise StreamReceiveError(str(e)) from e
        finally:
            await response.aclose()
            await client.aclose()

    async def stream_chat(
        self,
        request: ChatCompletionsRequest,
        usage_callback: Optional[UsageCallback] = None,
    ) -> AsyncGenerator[bytes, None]:
        upstream = await self.open_stream(request)
        rechunker = PassthroughRechunker(request.model, usage_callback)
        logger.info("OpenAI stream opened: model=%s", request.model)
        return rechunker.rechunk(upstream)
