"""
OpenAI Passthrough Re-chunking Unit Tests
"""

import json

import pytest

from conftest import aiter_items, collect, decode_sse
from converse_gateway.common.errors import StreamReceiveError
from converse_gateway.domain.response import Usage
from converse_gateway.translation.rechunker import PassthroughRechunker, rechunk_passthrough

MODEL = "gpt-4o"


def _chunk_line(payload: dict) -> bytes:
    return f"data: {json.dumps(payload)}\n\n".encode("utf-8")


def test_fragment_split_across_reads_is_parsed_once():
    rechunker = PassthroughRechunker(MODEL)

    assert rechunker.feed(b'data: {"i') == []
    events = rechunker.feed(b'd":"x"}\n')

    payloads = decode_sse(events)
    assert len(payloads) == 1
    assert payloads[0]["id"] == "x"


def test_missing_fields_are_filled_from_request():
    rechunker = PassthroughRechunker(MODEL, response_id="chatcmpl-local", created=99)
    payloads = decode_sse(rechunker.feed(_chunk_line({"choices": [{"index": 0, "delta": {"content": "Hi"}}]})))

    assert payloads[0]["id"] == "chatcmpl-local"
    assert payloads[0]["created"] == 99
    assert payloads[0]["model"] == MODEL
    assert payloads[0]["object"] == "chat.completion.chunk"
    assert payloads[0]["choices"][0] == {"index": 0, "delta": {"content": "Hi"}, "finish_reason": None}


def test_upstream_fields_are_kept():
    rechunker = PassthroughRechunker(MODEL)
    upstream = {
        "id": "chatcmpl-up",
        "object": "chat.completion.chunk",
        "created": 1700000000,
        "model": "gpt-4o-2024-08-06",
        "choices": [{"index": 0, "delta": {}, "finish_reason": "stop"}],
    }
    payload = decode_sse(rechunker.feed(_chunk_line(upstream)))[0]

    assert payload["id"] == "chatcmpl-up"
    assert payload["model"] == "gpt-4o-2024-08-06"
    assert payload["choices"][0]["finish_reason"] == "stop"


def test_empty_choices_get_a_placeholder_choice():
    rechunker = PassthroughRechunker(MODEL)
    usage_chunk = {"id": "c", "choices": [], "usage": {"prompt_tokens": 3, "completion_tokens": 4, "total_tokens": 7}}
    payload = decode_sse(rechunker.feed(_chunk_line(usage_chunk)))[0]

    assert payload["choices"] == [{"index": 0, "delta": {}, "finish_reason": None}]
    assert payload["usage"]["total_tokens"] == 7


def test_usage_callback_fires_for_usage_chunks():
    usages: list[Usage] = []
    rechunker = PassthroughRechunker(MODEL, usage_callback=usages.append)

    rechunker.feed(_chunk_line({"choices": [{"index": 0, "delta": {"content": "a"}}]}))
    rechunker.feed(_chunk_line({"choices": [], "usage": {"prompt_tokens": 3, "completion_tokens": 4, "total_tokens": 7}}))

    assert usages == [Usage(prompt_tokens=3, completion_tokens=4, total_tokens=7)]


def test_parse_error_reports_and_continues():
    rechunker = PassthroughRechunker(MODEL)
    events = rechunker.feed(b"data: {not json}\n\n" + _chunk_line({"id": "ok", "choices": []}))

    payloads = decode_sse(events)
    assert payloads[0]["error"]["code"] == "invalid_chunk"
    assert payloads[1]["id"] == "ok"


def test_upstream_error_payload_is_forwarded():
    rechunker = PassthroughRechunker(MODEL)
    error = {"error": {"message": "Server overloaded", "type": "server_error", "param": None, "code": None}}
    assert decode_sse(rechunker.feed(_chunk_line(error))) == [error]


def test_non_data_lines_are_ignored():
    rechunker = PassthroughRechunker(MODEL)
    assert rechunker.feed(b": keep-alive\nevent: ping\nretry: 100\n\n") == []


def test_done_is_forwarded():
    rechunker = PassthroughRechunker(MODEL)
    assert rechunker.feed(b"data: [DONE]\n\n") == [b"data: [DONE]\n\n"]
    assert rechunker.done_seen


@pytest.mark.asyncio
async def test_rechunk_stream_ends_with_single_done():
    upstream = [
        _chunk_line({"id": "a", "choices": [{"index": 0, "delta": {"role": "assistant", "content": ""}}]}),
        b'data: {"id": "a", "choices": [{"index": 0, "delta": {"content": "Hel',
        b'lo"}}]}\n\n',
        b"data: [DONE]\n\n",
    ]
    payloads = decode_sse(await collect(rechunk_passthrough(aiter_items(upstream), MODEL)))

    assert [p for p in payloads if p == "[DONE]"] == ["[DONE]"]
    assert payloads[1]["choices"][0]["delta"]["content"] == "Hello"


@pytest.mark.asyncio
async def test_rechunk_appends_done_when_upstream_omits_it():
    upstream = [b'data: {"id": "a", "choices": []}']
    payloads = decode_sse(await collect(rechunk_passthrough(aiter_items(upstream), MODEL)))

    # The unterminated trailing line is still processed
    assert payloads[0]["id"] == "a"
    assert payloads[-1] == "[DONE]"


@pytest.mark.asyncio
async def test_rechunk_transport_error_yields_error_then_done():
    async def upstream():
        yield _chunk_line({"id": "a", "choices": []})
        raise StreamReceiveError("peer closed connection without sending complete message body")

    payloads = decode_sse(await collect(rechunk_passthrough(upstream(), MODEL)))

    assert payloads[0]["id"] == "a"
    assert payloads[1]["error"]["code"] == "stream_receive_error"
    assert payloads[2] == "[DONE]"
    assert len(payloads) == 3
