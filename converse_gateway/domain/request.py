"""
Chat Completions Request Domain Model

Wire models for inbound OpenAI Chat Completions requests, plus the explicit
sum types (Contents, ToolChoice) the translators work with.
"""

import copy
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator
from pydantic_core import to_jsonable_python


class Role(str, Enum):
    """Message author roles accepted on the OpenAI wire."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ContentPart(BaseModel):
    """
    Content part of a block-list message

    Only `{"type": "text", "text": ...}` parts carry text; other part types
    (images, audio) are kept so the OpenAI passthrough can forward them.
    """

    model_config = ConfigDict(extra="allow")

    type: str = "text"
    text: Optional[str] = None

    @property
    def is_text(self) -> bool:
        return self.type == "text"


# ============ Content sum type ============

@dataclass(frozen=True)
class TextContents:
    """Message content given as a plain string."""
    text: str
    kind: Literal["text"] = "text"

    def is_empty(self) -> bool:
        return not self.text

    def texts(self) -> list[str]:
        return [self.text]


@dataclass(frozen=True)
class BlockContents:
    """Message content given as an ordered list of text blocks."""
    blocks: tuple[str, ...]
    kind: Literal["blocks"] = "blocks"

    def is_empty(self) -> bool:
        return not self.blocks

    def texts(self) -> list[str]:
        return list(self.blocks)


Contents = Union[TextContents, BlockContents]


# ============ Tool choice sum type ============

@dataclass(frozen=True)
class ToolChoiceMode:
    """Bare tool_choice string: "none", "auto", "required" (anything else means auto)."""
    mode: str
    kind: Literal["mode"] = "mode"


@dataclass(frozen=True)
class ToolChoiceFunction:
    """tool_choice pinning one function by name."""
    name: str
    kind: Literal["function"] = "function"


ToolChoice = Union[ToolChoiceMode, ToolChoiceFunction]


# ============ Wire models ============

class FunctionCall(BaseModel):
    """Function invocation carried by an assistant tool call"""

    model_config = ConfigDict(extra="allow")

    name: str
    # Raw JSON text, parsed only when translating
    arguments: str = ""


class ToolCall(BaseModel):
    """Assistant tool call"""

    model_config = ConfigDict(extra="allow")

    id: str
    type: str = "function"
    function: FunctionCall

    @property
    def name(self) -> str:
        return self.function.name

    @property
    def arguments(self) -> str:
        return self.function.arguments


class FunctionDefinition(BaseModel):
    """Function declared as a tool"""

    model_config = ConfigDict(extra="allow")

    name: str
    description: Optional[str] = None
    # JSON schema of the arguments
    parameters: dict[str, Any] = Field(default_factory=dict)


class ToolDefinition(BaseModel):
    """Tool declaration (`{"type": "function", "function": {...}}`)"""

    model_config = ConfigDict(extra="allow")

    type: str = "function"
    function: FunctionDefinition


class ToolChoiceFunctionName(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str


class ToolChoiceObject(BaseModel):
    """`{"type": "function", "function": {"name": ...}}`"""

    model_config = ConfigDict(extra="allow")

    type: str = "function"
    function: ToolChoiceFunctionName


class Message(BaseModel):
    """Chat message"""

    model_config = ConfigDict(extra="allow")

    role: Role
    content: Union[str, list[ContentPart], None] = None
    # Only meaningful for assistant messages
    tool_calls: Optional[list[ToolCall]] = None
    # Only meaningful for tool messages
    tool_call_id: Optional[str] = None

    @property
    def contents(self) -> Optional[Contents]:
        """Content as a tagged union of its text, or None when absent."""
        if self.content is None:
            return None
        if isinstance(self.content, str):
            return TextContents(self.content)
        return BlockContents(tuple(part.text or "" for part in self.content if part.is_text))

    @property
    def non_text_part_types(self) -> list[str]:
        """Types of the content parts that carry no text (image_url, input_audio, ...)."""
        if not isinstance(self.content, list):
            return []
        return [part.type for part in self.content if not part.is_text]


class StreamOptions(BaseModel):
    model_config = ConfigDict(extra="allow")

    include_usage: bool = False


class ChatCompletionsRequest(BaseModel):
    """
    OpenAI Chat Completions Request

    Unknown fields are kept so the OpenAI passthrough can forward them as-is;
    the Bedrock translation only looks at the fields declared here.
    """

    model_config = ConfigDict(extra="allow")

    model: str = Field(..., min_length=1)
    messages: list[Message] = Field(default_factory=list)

    # Sampling parameters
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    max_tokens: Optional[int] = None
    max_completion_tokens: Optional[int] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    stop: Union[str, list[str], None] = None
    n: Optional[int] = None
    logit_bias: Optional[dict[str, Any]] = None
    user: Optional[str] = None

    # Tooling
    tools: Optional[list[ToolDefinition]] = None
    tool_choice: Union[str, ToolChoiceObject, None] = None

    # Streaming
    stream: Optional[bool] = None
    stream_options: Optional[StreamOptions] = None

    # Request JSON exactly as received
    _raw_body: Optional[dict[str, Any]] = PrivateAttr(default=None)

    @model_validator(mode="wrap")
    @classmethod
    def _keep_raw_body(cls, data: Any, handler):
        request = handler(data)
        if isinstance(data, dict):
            request._raw_body = copy.deepcopy(data)
        return request

    @property
    def choice(self) -> Optional[ToolChoice]:
        """tool_choice as a tagged union, or None when absent."""
        if self.tool_choice is None:
            return None
        if isinstance(self.tool_choice, str):
            return ToolChoiceMode(self.tool_choice)
        return ToolChoiceFunction(self.tool_choice.function.name)

    @property
    def stop_sequences(self) -> Optional[list[str]]:
        if self.stop is None:
            return None
        if isinstance(self.stop, str):
            return [self.stop]
        return list(self.stop)

    def to_openai_body(self) -> dict[str, Any]:
        """
        Request body for the OpenAI passthrough.

        Returns a fresh copy of the input as received, so fields this model
        does not declare (at any nesting depth) reach OpenAI unchanged.
        Requests not validated from a dict fall back to a dump of the declared
        fields.
        """
        if self._raw_body is not None:
            return to_jsonable_python(self._raw_body)
        return self.model_dump(mode="json", exclude_none=True)
