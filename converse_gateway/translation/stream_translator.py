"""
Bedrock Stream Translation

Consumes Bedrock `converse_stream` events one at a time and produces OpenAI
`chat.completion.chunk` objects, exactly one chunk per event, framed as SSE.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, AsyncGenerator, AsyncIterator, Dict, Optional

from converse_gateway.common.errors import StreamReceiveError
from converse_gateway.common.sse import encode_chunk_event, encode_done, encode_error_event
from converse_gateway.domain.response import (
    CHUNK_OBJECT,
    ChatCompletionChunk,
    Choice,
    Delta,
    Usage,
    UsageCallback,
)
from converse_gateway.translation.tool_calls import (
    tool_use_input_to_delta,
    tool_use_start_to_delta,
)

logger = logging.getLogger(__name__)

_FINISH_REASONS = {
    "end_turn": "stop",
    "tool_use": "tool_calls",
    "max_tokens": "length",
    "stop_sequence": "stop",
}


def map_stop_reason(stop_reason: Optional[str]) -> str:
    """Map a Bedrock stopReason to an OpenAI finish_reason (unknown -> "stop")."""
    return _FINISH_REASONS.get(stop_reason or "", "stop")


@dataclass
class StreamState:
    """
    Per-stream accumulator.

    id and created are captured once at stream start and reused for every chunk.
    Tool calls are numbered in the order their blocks start; the backend's
    contentBlockIndex is mapped onto that number.
    """
    model: str
    id: str = field(default_factory=lambda: f"chatcmpl-{uuid.uuid4().hex}")
    created: int = field(default_factory=lambda: int(time.time()))
    tool_call_count: int = 0
    tool_call_indexes: Dict[int, int] = field(default_factory=dict)
    last_tool_call_index: int = 0

    def start_tool_call(self, block_index: Optional[int]) -> int:
        index = self.tool_call_count
        self.tool_call_count += 1
        if block_index is not None:
            self.tool_call_indexes[block_index] = index
        self.last_tool_call_index = index
        return index

    def tool_call_index(self, block_index: Optional[int]) -> int:
        if block_index is not None and block_index in self.tool_call_indexes:
            return self.tool_call_indexes[block_index]
        return self.last_tool_call_index


class ConverseStreamTranslator:
    """
    Bedrock -> OpenAI streaming state machine.

    Single-pass and single-threaded: each event is fully translated before the
    next one is awaited, and chunks come out in event order.
    """

    def __init__(
        self,
        model: str,
        usage_callback: Optional[UsageCallback] = None,
        state: Optional[StreamState] = None,
    ):
        self.state = state or StreamState(model=model)
        self.usage_callback = usage_callback

    def translate_event(self, event: Dict[str, Any]) -> ChatCompletionChunk:
        """
        Translate one backend event into exactly one chunk.

        Events that carry nothing for the client (block stop, unknown events)
        still produce a chunk with an empty delta.
        """
        if "messageStart" in event:
            return self._chunk(self._message_start(event["messageStart"]))
        if "contentBlockStart" in event:
            return self._chunk(self._content_block_start(event["contentBlockStart"]))
        if "contentBlockDelta" in event:
            return self._chunk(self._content_block_delta(event["contentBlockDelta"]))
        if "messageStop" in event:
            stop_reason = (event["messageStop"] or {}).get("stopReason")
            logger.debug("Bedrock message stop with reason: %s", stop_reason)
            return self._chunk(Delta(), finish_reason=map_stop_reason(stop_reason))
        if "metadata" in event:
            return self._chunk(Delta(), usage=self._metadata_usage(event["metadata"]))

        logger.debug("Unhandled Bedrock stream event: %s", ", ".join(event.keys()) or "<empty>")
        return self._chunk(Delta())

    async def translate_stream(
        self,
        events: AsyncIterator[Dict[str, Any]],
    ) -> AsyncGenerator[bytes, None]:
        """
        Translate a backend event stream into SSE-framed chunks.

        A receive failure produces one error event and ends the stream. The
        stream always ends with the `[DONE]` sentinel unless the consumer
        went away.
        """
        try:
            async for event in events:
                yield encode_chunk_event(self.translate_event(event))
        except (GeneratorExit, asyncio.CancelledError):
            logger.info("Client went away, closing Bedrock stream: id=%s", self.state.id)
            raise
        except StreamReceiveError as e:
            logger.error("Error receiving from Bedrock stream: %s", e.detail)
            yield encode_error_event(e)
        except Exception as e:
            logger.error("Error receiving from Bedrock stream: %s", e, exc_info=True)
            yield encode_error_event(StreamReceiveError(str(e)))
        finally:
            aclose = getattr(events, "aclose", None)
            if aclose is not None:
                await aclose()

        logger.info("Stream finished, sending DONE message: id=%s", self.state.id)
        yield encode_done()

    # ============ Event handlers ============

    def _message_start(self, payload: Dict[str, Any]) -> Delta:
        if (payload or {}).get("role") == "assistant":
            return Delta(role="assistant", content="")
        return Delta()

    def _content_block_start(self, payload: Dict[str, Any]) -> Delta:
        start = (payload or {}).get("start") or {}
        tool_use = start.get("toolUse")
        if tool_use is None:
            return Delta()

        index = self.state.start_tool_call(payload.get("contentBlockIndex"))
        logger.debug(
            "Bedrock tool use start: name=%s id=%s index=%d",
            tool_use.get("name"),
            tool_use.get("toolUseId"),
            index,
        )
        return Delta(tool_calls=[tool_use_start_to_delta(tool_use, index)])

    def _content_block_delta(self, payload: Dict[str, Any]) -> Delta:
        delta = (payload or {}).get("delta") or {}
        if "text" in delta:
            return Delta(content=delta["text"])
        if "toolUse" in delta:
            index = self.state.tool_call_index(payload.get("contentBlockIndex"))
            fragment = (delta["toolUse"] or {}).get("input", "")
            return Delta(tool_calls=[tool_use_input_to_delta(fragment, index)])
        return Delta()

    def _metadata_usage(self, payload: Dict[str, Any]) -> Optional[Usage]:
        raw_usage = (payload or {}).get("usage")
        if raw_usage is None:
            return None

        usage = Usage.from_converse(raw_usage)
        if self.usage_callback is not None:
            try:
                self.usage_callback(usage)
            except Exception:
                logger.exception("Usage callback failed")
        return usage

    def _chunk(
        self,
        delta: Delta,
        finish_reason: Optional[str] = None,
        usage: Optional[Usage] = None,
    ) -> ChatCompletionChunk:
        return ChatCompletionChunk(
            id=self.state.id,
            object=CHUNK_OBJECT,
            created=self.state.created,
            model=self.state.model,
            choices=[Choice(index=0, delta=delta, finish_reason=finish_reason)],
            usage=usage,
        )


def translate_stream(
    events: AsyncIterator[Dict[str, Any]],
    model: str,
    usage_callback: Optional[UsageCallback] = None,
) -> AsyncGenerator[bytes, None]:
    """Convenience wrapper: translate a Bedrock event stream into SSE bytes."""
    return ConverseStreamTranslator(model, usage_callback).translate_stream(events)
