"""
OpenAI Proxy API

Provides the OpenAI-compatible Chat Completions endpoint.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse, StreamingResponse

from converse_gateway.api.deps import ChatServiceDep
from converse_gateway.common.errors import AppError
from converse_gateway.domain.request import ChatCompletionsRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Proxy - OpenAI"])

# Streaming responses must not be buffered by intermediaries
_STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}


@router.post("/v1/chat/completions")
@router.post("/chat/completions", include_in_schema=False)
async def chat_completions(
    body: ChatCompletionsRequest,
    service: ChatServiceDep,
):
    """
    OpenAI Chat Completions API

    Errors found before the stream opens are returned as a JSON error
    response; later errors arrive as an SSE error event.
    """
    try:
        stream_gen = await service.stream_chat(body)
    except AppError as e:
        logger.warning("Chat completion rejected: code=%s message=%s", e.code, e.message)
        return JSONResponse(content=e.to_dict(), status_code=e.status_code)

    return StreamingResponse(
        stream_gen,
        media_type="text/event-stream",
        headers=_STREAM_HEADERS,
    )
