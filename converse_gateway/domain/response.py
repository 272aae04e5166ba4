"""
Chat Completions Response Domain Model

Streaming chunk models in the OpenAI `chat.completion.chunk` shape.
"""

from typing import Any, Callable, Optional

from pydantic import BaseModel, Field, model_validator

CHUNK_OBJECT = "chat.completion.chunk"


class FunctionDelta(BaseModel):
    name: Optional[str] = None
    arguments: Optional[str] = None


class ToolCallDelta(BaseModel):
    """Incremental tool call; fragments with the same index belong to one call"""

    index: int = 0
    id: Optional[str] = None
    type: Optional[str] = "function"
    function: Optional[FunctionDelta] = None


class Delta(BaseModel):
    role: Optional[str] = None
    content: Optional[str] = None
    tool_calls: Optional[list[ToolCallDelta]] = None


class Choice(BaseModel):
    # Always 0: parallel completions are not supported
    index: int = 0
    delta: Optional[Delta] = None
    finish_reason: Optional[str] = None


class Usage(BaseModel):
    """Token usage of one completion"""

    prompt_tokens: int = Field(0, ge=0)
    completion_tokens: int = Field(0, ge=0)
    total_tokens: int = Field(0, ge=0)

    @classmethod
    def from_converse(cls, usage: dict[str, Any]) -> "Usage":
        """Build from a Bedrock `metadata.usage` mapping."""
        input_tokens = int(usage.get("inputTokens") or 0)
        output_tokens = int(usage.get("outputTokens") or 0)
        total_tokens = usage.get("totalTokens")
        return cls(
            prompt_tokens=input_tokens,
            completion_tokens=output_tokens,
            total_tokens=int(total_tokens) if total_tokens is not None else input_tokens + output_tokens,
        )


class ChatCompletionChunk(BaseModel):
    """
    One streamed response chunk.

    `choices` is never empty: a chunk built without choices gets a single
    empty-delta choice so every SSE event is a well-formed choice-bearing chunk.
    """

    id: Optional[str] = None
    object: Optional[str] = CHUNK_OBJECT
    created: Optional[int] = None
    model: Optional[str] = None
    choices: list[Choice] = Field(default_factory=list)
    usage: Optional[Usage] = None

    @model_validator(mode="after")
    def _ensure_choice(self) -> "ChatCompletionChunk":
        if not self.choices:
            self.choices = [Choice(index=0, delta=Delta())]
        return self

    def to_payload(self) -> dict[str, Any]:
        """
        Convert to the JSON payload sent to clients.

        Unset optional fields are omitted, except `finish_reason`, which OpenAI
        clients expect on every choice (null while streaming).
        """
        payload = self.model_dump(exclude_none=True)
        for choice in payload["choices"]:
            choice.setdefault("finish_reason", None)
        return payload


# Invoked once per observed usage report (billing/telemetry hook)
UsageCallback = Callable[[Usage], None]
