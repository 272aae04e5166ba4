"""
Translation Module

Request translation (OpenAI -> Bedrock), streaming response translation
(Bedrock -> OpenAI) and SSE re-chunking for the OpenAI passthrough.

Example usage:
    from converse_gateway.translation import translate_request, translate_stream

    backend_request = translate_request(chat_request)
    events = await bedrock_client.open_stream(backend_request)
    async for sse_event in translate_stream(events, model=chat_request.model):
        yield sse_event
"""

from converse_gateway.domain.response import UsageCallback
from converse_gateway.translation.request_translator import translate_request
from converse_gateway.translation.stream_translator import (
    ConverseStreamTranslator,
    StreamState,
    map_stop_reason,
    translate_stream,
)
from converse_gateway.translation.rechunker import (
    ChunkParseError,
    PassthroughRechunker,
    rechunk_passthrough,
)

__all__ = [
    "translate_request",
    "ConverseStreamTranslator",
    "StreamState",
    "UsageCallback",
    "map_stop_reason",
    "translate_stream",
    "ChunkParseError",
    "PassthroughRechunker",
    "rechunk_passthrough",
]
