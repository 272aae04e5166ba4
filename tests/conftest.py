"""
Test Configuration Module
"""

import json
from typing import Any, AsyncIterator, Iterable

import pytest

from converse_gateway.config import Settings
from converse_gateway.providers.factory import reset_provider_clients


def decode_sse(events: Iterable[bytes]) -> list[Any]:
    """Split SSE bytes into payloads: parsed JSON objects, or the string "[DONE]"."""
    payloads: list[Any] = []
    text = b"".join(events).decode("utf-8")
    for block in text.split("\n\n"):
        block = block.strip()
        if not block:
            continue
        assert block.startswith("data: "), block
        data = block[len("data: "):]
        payloads.append(data if data == "[DONE]" else json.loads(data))
    return payloads


async def collect(stream: AsyncIterator[bytes]) -> list[bytes]:
    return [item async for item in stream]


async def aiter_items(items: Iterable[Any]) -> AsyncIterator[Any]:
    for item in items:
        yield item


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment and any .env file"""
    return Settings(
        _env_file=None,
        OPENAI_API_KEY="sk-test",
        OPENAI_BASE_URL="https://api.openai.test/v1",
        AWS_REGION="us-west-2",
    )


@pytest.fixture(autouse=True)
def _clear_provider_cache():
    reset_provider_clients()
    yield
    reset_provider_clients()
