"""
AWS Bedrock Converse Client

Streams chat completions from Bedrock through the `converse_stream` API.
boto3 is synchronous, so every blocking call runs in a worker thread drawn
from a limiter owned by the client rather than anyio's process-wide default.
"""

import functools
import logging
from typing import Any, AsyncGenerator, AsyncIterator, Dict, Iterator, Optional

import anyio
import anyio.to_thread
import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from converse_gateway.common.errors import BackendConnectionError, StreamReceiveError
from converse_gateway.domain.bedrock import BackendRequest
from converse_gateway.domain.request import ChatCompletionsRequest
from converse_gateway.domain.response import UsageCallback
from converse_gateway.providers.base import ChatCompletionsProvider
from converse_gateway.translation.request_translator import translate_request
from converse_gateway.translation.stream_translator import ConverseStreamTranslator

logger = logging.getLogger(__name__)

_END_OF_STREAM = object()


class BedrockClient(ChatCompletionsProvider):
    """
    Bedrock Converse Client

    The boto3 client can be injected (tests, custom sessions); otherwise it is
    created on first use from the explicit region/profile/endpoint settings.

    `max_workers` caps the threads used for Bedrock calls. Each open stream
    occupies one thread while it waits for its next event.
    """

    name = "bedrock"

    def __init__(
        self,
        client: Any = None,
        region: Optional[str] = None,
        profile: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        timeout: Optional[int] = None,
        max_workers: int = 100,
    ):
        self._client = client
        self.region = region
        self.profile = profile
        self.endpoint_url = endpoint_url
        self.timeout = timeout
        self.max_workers = max_workers
        self._limiter: Optional[anyio.CapacityLimiter] = None

    @property
    def client(self) -> Any:
        """Lazily created `bedrock-runtime` client"""
        if self._client is None:
            session = boto3.Session(profile_name=self.profile, region_name=self.region)
            config = Config(read_timeout=self.timeout) if self.timeout else None
            self._client = session.client(
                "bedrock-runtime",
                endpoint_url=self.endpoint_url,
                config=config,
            )
            logger.info(
                "Created Bedrock runtime client: region=%s profile=%s endpoint=%s",
                self.region,
                self.profile,
                self.endpoint_url or "<default>",
            )
        return self._client

    @property
    def limiter(self) -> anyio.CapacityLimiter:
        """Thread limiter for blocking boto3 calls (created inside the event loop)"""
        if self._limiter is None:
            self._limiter = anyio.CapacityLimiter(self.max_workers)
        return self._limiter

    async def open_stream(
        self,
        backend_request: BackendRequest,
    ) -> AsyncIterator[Dict[str, Any]]:
        """
        Start a `converse_stream` call and return its event iterator.

        Raises:
            BackendConnectionError: The call was rejected or could not be sent
        """
        kwargs = backend_request.to_converse_kwargs()
        logger.debug(
            "Bedrock ConverseStream request: model=%s messages=%d system=%d tools=%s",
            backend_request.model_id,
            len(backend_request.messages),
            len(backend_request.system_blocks),
            "yes" if backend_request.tool_config is not None else "no",
        )

        try:
            response = await anyio.to_thread.run_sync(
                functools.partial(self.client.converse_stream, **kwargs),
                limiter=self.limiter,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("Bedrock ConverseStream call failed: %s", e)
            raise BackendConnectionError(str(e)) from e

        event_stream = response.get("stream") if isinstance(response, dict) else None
        if event_stream is None:
            raise BackendConnectionError("Bedrock response did not contain an event stream")

        return self._iterate_events(event_stream)

    async def _iterate_events(self, event_stream: Any) -> AsyncGenerator[Dict[str, Any], None]:
        iterator: Iterator[Dict[str, Any]] = iter(event_stream)
        try:
            while True:
                try:
                    event = await anyio.to_thread.run_sync(
                        next, iterator, _END_OF_STREAM, limiter=self.limiter
                    )
                except (BotoCoreError, ClientError) as e:
                    raise StreamReceiveError(str(e)) from e
                if event is _END_OF_STREAM:
                    break
                yield event
        finally:
            close = getattr(event_stream, "close", None)
            if close is not None:
                close()

    async def stream_chat(
        self,
        request: ChatCompletionsRequest,
        usage_callback: Optional[UsageCallback] = None,
    ) -> AsyncGenerator[bytes, None]:
        backend_request = translate_request(request)
        events = await self.open_stream(backend_request)
        translator = ConverseStreamTranslator(request.model, usage_callback)
        logger.info("Bedrock stream opened: model=%s id=%s", request.model, translator.state.id)
        return translator.translate_stream(events)
