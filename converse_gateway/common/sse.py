"""
Server-Sent Events Helpers

Framing of outgoing SSE events and line buffering of incoming SSE byte streams.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List

from converse_gateway.common.errors import AppError, SerializationError
from converse_gateway.domain.response import ChatCompletionChunk

logger = logging.getLogger(__name__)

DONE_MESSAGE = "[DONE]"
DATA_PREFIX = "data: "


def encode_sse_data(payload: str) -> bytes:
    """Encode string as SSE data line."""
    return f"{DATA_PREFIX}{payload}\n\n".encode("utf-8")


def encode_sse_json(obj: Dict[str, Any]) -> bytes:
    """Encode dict as SSE JSON data line."""
    return encode_sse_data(json.dumps(obj, ensure_ascii=False, allow_nan=False))


def encode_done() -> bytes:
    """Terminal `[DONE]` sentinel event."""
    return encode_sse_data(DONE_MESSAGE)


def encode_error_event(error: AppError) -> bytes:
    """
    Encode an error as an SSE event.

    Falls back to a minimal server_error payload built from the message and
    code alone when the structured error (details included) cannot be
    serialized.
    """
    try:
        return encode_sse_json(error.to_dict())
    except (TypeError, ValueError) as e:
        logger.error("Failed to serialize error event: %s", e)
        return encode_sse_json(
            {
                "error": {
                    "message": str(error.message),
                    "type": "server_error",
                    "param": None,
                    "code": str(error.code),
                }
            }
        )


def encode_chunk_event(chunk: ChatCompletionChunk) -> bytes:
    """
    Encode a response chunk as an SSE event.

    A chunk that cannot be serialized is replaced by a serialization_error event.
    """
    try:
        return encode_sse_json(chunk.to_payload())
    except (TypeError, ValueError) as e:
        logger.error("Failed to serialize response chunk: %s", e)
        return encode_error_event(SerializationError(str(e)))


class SSELineBuffer:
    """
    Line buffer for SSE byte streams.

    Appends each received chunk to a text buffer and hands back every complete,
    stripped, non-blank line; the incomplete tail is kept for the next feed.
    A chunk that is not valid UTF-8 on its own is dropped.
    """

    def __init__(self) -> None:
        self._buffer = ""

    def feed(self, chunk: bytes) -> List[str]:
        """Feed bytes and return the complete lines now available."""
        try:
            text = chunk.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning("Dropping SSE chunk that is not valid UTF-8 (%d bytes)", len(chunk))
            return []

        self._buffer += text
        lines = []

        while "\n" in self._buffer:
            line, self._buffer = self._buffer.split("\n", 1)
            line = line.strip()
            if line:
                lines.append(line)

        return lines

    @property
    def pending(self) -> str:
        """Buffered text that has not been terminated by a newline yet."""
        return self._buffer
