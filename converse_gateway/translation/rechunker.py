"""
SSE Re-chunking for the OpenAI Passthrough

Reads the raw SSE byte stream returned by the OpenAI API, reassembles lines
split across network chunks, and re-emits every `data:` payload in the
gateway's own chunk schema.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
import uuid
from typing import Any, AsyncGenerator, AsyncIterator, List, Optional

from pydantic import ValidationError as PydanticValidationError

from converse_gateway.common.errors import AppError, StreamReceiveError
from converse_gateway.common.sse import (
    DATA_PREFIX,
    DONE_MESSAGE,
    SSELineBuffer,
    encode_chunk_event,
    encode_done,
    encode_error_event,
    encode_sse_json,
)
from converse_gateway.domain.response import CHUNK_OBJECT, ChatCompletionChunk, UsageCallback

logger = logging.getLogger(__name__)


class ChunkParseError(AppError):
    """Raised for a `data:` line that is not a valid chat completion chunk."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_type="server_error",
            code="invalid_chunk",
            status_code=502,
        )


class PassthroughRechunker:
    """
    Line-buffered SSE re-chunker.

    Fields missing from an upstream chunk are filled from the values captured
    at construction (response id, creation time, requested model).
    """

    def __init__(
        self,
        model: str,
        usage_callback: Optional[UsageCallback] = None,
        response_id: Optional[str] = None,
        created: Optional[int] = None,
    ):
        self.model = model
        self.usage_callback = usage_callback
        self.response_id = response_id or f"chatcmpl-{uuid.uuid4().hex}"
        self.created = created if created is not None else int(time.time())
        self.done_seen = False
        self._lines = SSELineBuffer()

    def feed(self, data: bytes) -> List[bytes]:
        """
        Feed raw bytes and return the SSE events ready to send.

        A bad `data:` line produces an error event for that line only; the
        remaining buffered lines are still processed.
        """
        events = []
        for line in self._lines.feed(data):
            event = self._handle_line(line)
            if event is not None:
                events.append(event)
        return events

    def flush(self) -> List[bytes]:
        """Process a trailing line that was never terminated by a newline."""
        return self.feed(b"\n") if self._lines.pending.strip() else []

    async def rechunk(
        self,
        upstream: AsyncIterator[bytes],
    ) -> AsyncGenerator[bytes, None]:
        """
        Re-chunk an upstream byte stream.

        Termination follows the upstream stream. A transport failure produces
        one stream_receive_error event followed by `[DONE]`.
        """
        try:
            async for data in upstream:
                for event in self.feed(data):
                    yield event
            for event in self.flush():
                yield event
        except (GeneratorExit, asyncio.CancelledError):
            logger.info("Client went away, closing OpenAI stream: id=%s", self.response_id)
            raise
        except StreamReceiveError as e:
            logger.error("Error receiving from OpenAI stream: %s", e.detail)
            yield encode_error_event(e)
            yield encode_done()
            return
        except Exception as e:
            logger.error("Error receiving from OpenAI stream: %s", e, exc_info=True)
            yield encode_error_event(StreamReceiveError(str(e)))
            yield encode_done()
            return
        finally:
            aclose = getattr(upstream, "aclose", None)
            if aclose is not None:
                await aclose()

        if not self.done_seen:
            logger.warning("OpenAI stream ended without [DONE], appending it")
            yield encode_done()
        logger.info("OpenAI stream completed: id=%s", self.response_id)

    def _handle_line(self, line: str) -> Optional[bytes]:
        if line == f"{DATA_PREFIX}{DONE_MESSAGE}":
            logger.debug("Received DONE from OpenAI")
            self.done_seen = True
            return encode_done()

        if not line.startswith(DATA_PREFIX):
            # event:, id:, retry: and comment lines carry nothing for us
            return None

        data = line[len(DATA_PREFIX):]
        try:
            payload = json.loads(data)
        except json.JSONDecodeError as e:
            logger.error("Failed to parse OpenAI chunk: %s; raw chunk: %s", e, data)
            return encode_error_event(ChunkParseError(f"Failed to parse OpenAI chunk: {e}"))

        if isinstance(payload, dict) and "error" in payload and "choices" not in payload:
            logger.error("OpenAI reported a mid-stream error: %s", payload["error"])
            return encode_sse_json(payload)

        try:
            chunk = ChatCompletionChunk.model_validate(payload)
        except PydanticValidationError as e:
            logger.error("Invalid OpenAI chunk: %s; raw chunk: %s", e, data)
            return encode_error_event(ChunkParseError(f"Failed to parse OpenAI chunk: {e}"))

        return encode_chunk_event(self._fill_defaults(chunk))

    def _fill_defaults(self, chunk: ChatCompletionChunk) -> ChatCompletionChunk:
        updates: dict[str, Any] = {}
        if not chunk.id:
            updates["id"] = self.response_id
        if chunk.created is None:
            updates["created"] = self.created
        if not chunk.model:
            updates["model"] = self.model
        if not chunk.object:
            updates["object"] = CHUNK_OBJECT
        if updates:
            chunk = chunk.model_copy(update=updates)

        if chunk.usage is not None and self.usage_callback is not None:
            try:
                self.usage_callback(chunk.usage)
            except Exception:
                logger.exception("Usage callback failed")
        return chunk


def rechunk_passthrough(
    upstream: AsyncIterator[bytes],
    model: str,
    usage_callback: Optional[UsageCallback] = None,
) -> AsyncGenerator[bytes, None]:
    """Convenience wrapper: re-chunk an OpenAI SSE byte stream."""
    return PassthroughRechunker(model, usage_callback).rechunk(upstream)
