"""
Bedrock Converse Domain Model

Request-side shapes of the Bedrock Converse API. Built fresh for every request
by the request translator and rendered into `converse_stream` keyword arguments.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from converse_gateway.common.document import Document


class ConversationRole(str, Enum):
    """Bedrock only knows user and assistant turns."""
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class SystemBlock:
    """System prompt text block"""
    text: str

    def to_converse(self) -> dict[str, Any]:
        return {"text": self.text}


@dataclass
class TextBlock:
    """Message text block"""
    text: str

    def to_converse(self) -> dict[str, Any]:
        return {"text": self.text}


@dataclass
class ToolUseBlock:
    """Tool invocation requested by the assistant"""
    tool_use_id: str
    name: str
    input: Document

    def to_converse(self) -> dict[str, Any]:
        return {
            "toolUse": {
                "toolUseId": self.tool_use_id,
                "name": self.name,
                "input": self.input.to_python(),
            }
        }


@dataclass
class ToolResultBlock:
    """Caller-supplied result of an earlier tool use"""
    tool_use_id: str
    text: str

    def to_converse(self) -> dict[str, Any]:
        return {
            "toolResult": {
                "toolUseId": self.tool_use_id,
                "content": [{"text": self.text}],
            }
        }


ContentBlock = Union[TextBlock, ToolUseBlock, ToolResultBlock]


@dataclass
class BackendMessage:
    role: ConversationRole
    content: list[ContentBlock] = field(default_factory=list)

    def to_converse(self) -> dict[str, Any]:
        return {
            "role": self.role.value,
            "content": [block.to_converse() for block in self.content],
        }


@dataclass
class ToolSpecification:
    name: str
    input_schema: Document
    description: Optional[str] = None

    def to_converse(self) -> dict[str, Any]:
        spec: dict[str, Any] = {
            "name": self.name,
            "inputSchema": {"json": self.input_schema.to_python()},
        }
        if self.description is not None:
            spec["description"] = self.description
        return {"toolSpec": spec}


class ToolChoiceKind(str, Enum):
    AUTO = "auto"
    ANY = "any"
    TOOL = "tool"


@dataclass
class BackendToolChoice:
    kind: ToolChoiceKind
    # Only set for ToolChoiceKind.TOOL
    name: Optional[str] = None

    def to_converse(self) -> dict[str, Any]:
        if self.kind is ToolChoiceKind.TOOL:
            return {"tool": {"name": self.name}}
        return {self.kind.value: {}}


@dataclass
class ToolConfiguration:
    tools: list[ToolSpecification] = field(default_factory=list)
    # None leaves the choice to the model without forcing it
    tool_choice: Optional[BackendToolChoice] = None

    def to_converse(self) -> dict[str, Any]:
        config: dict[str, Any] = {"tools": [tool.to_converse() for tool in self.tools]}
        if self.tool_choice is not None:
            config["toolChoice"] = self.tool_choice.to_converse()
        return config


@dataclass
class InferenceConfiguration:
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    stop_sequences: Optional[list[str]] = None

    def is_empty(self) -> bool:
        return not self.to_converse()

    def to_converse(self) -> dict[str, Any]:
        config: dict[str, Any] = {}
        if self.max_tokens is not None:
            config["maxTokens"] = self.max_tokens
        if self.temperature is not None:
            config["temperature"] = self.temperature
        if self.top_p is not None:
            config["topP"] = self.top_p
        if self.stop_sequences:
            config["stopSequences"] = list(self.stop_sequences)
        return config


@dataclass
class BackendRequest:
    """
    Translated Bedrock Request

    Everything needed for one `converse_stream` call.
    """

    model_id: str
    system_blocks: list[SystemBlock] = field(default_factory=list)
    messages: list[BackendMessage] = field(default_factory=list)
    tool_config: Optional[ToolConfiguration] = None
    inference_config: InferenceConfiguration = field(default_factory=InferenceConfiguration)

    def to_converse_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for `bedrock-runtime.converse_stream`."""
        kwargs: dict[str, Any] = {
            "modelId": self.model_id,
            "messages": [message.to_converse() for message in self.messages],
        }
        if self.system_blocks:
            kwargs["system"] = [block.to_converse() for block in self.system_blocks]
        if self.tool_config is not None:
            kwargs["toolConfig"] = self.tool_config.to_converse()
        if not self.inference_config.is_empty():
            kwargs["inferenceConfig"] = self.inference_config.to_converse()
        return kwargs
