"""
Tool-Call Correlation

Stateless mapping between OpenAI `tool_calls` / `tool_call_id` and Bedrock
toolUse / toolResult content blocks, in both directions.
"""

import logging
from typing import Any, Optional

from converse_gateway.common.document import parse_arguments, value_to_document
from converse_gateway.common.errors import TranslationError
from converse_gateway.domain.bedrock import (
    BackendToolChoice,
    ToolChoiceKind,
    ToolConfiguration,
    ToolResultBlock,
    ToolSpecification,
    ToolUseBlock,
)
from converse_gateway.domain.request import (
    Message,
    ToolCall,
    ToolChoice,
    ToolChoiceFunction,
    ToolDefinition,
)
from converse_gateway.domain.response import FunctionDelta, ToolCallDelta

logger = logging.getLogger(__name__)


# ============ OpenAI -> Bedrock ============

def tool_call_to_tool_use(tool_call: ToolCall) -> ToolUseBlock:
    """
    Convert an assistant tool call into a toolUse block.

    Unparseable `arguments` become an empty input object.
    """
    return ToolUseBlock(
        tool_use_id=tool_call.id,
        name=tool_call.name,
        input=parse_arguments(tool_call.arguments),
    )


def tool_message_to_tool_result(message: Message, position: Optional[int] = None) -> ToolResultBlock:
    """
    Convert a tool-role message into a toolResult block.

    String content passes through; block content is joined with a single space.
    `position` is the message's index in the request, used in error params.

    Raises:
        TranslationError: If tool_call_id or content is missing
    """
    prefix = "messages" if position is None else f"messages[{position}]"
    if not message.tool_call_id:
        raise TranslationError(
            "Tool message must have tool_call_id",
            param=f"{prefix}.tool_call_id",
        )
    contents = message.contents
    if contents is None:
        raise TranslationError(
            "Tool message must have content",
            param=f"{prefix}.content",
        )

    return ToolResultBlock(
        tool_use_id=message.tool_call_id,
        text=" ".join(contents.texts()),
    )


def tool_definition_to_specification(tool: ToolDefinition) -> ToolSpecification:
    return ToolSpecification(
        name=tool.function.name,
        description=tool.function.description,
        input_schema=value_to_document(tool.function.parameters),
    )


def tool_choice_to_backend(choice: Optional[ToolChoice]) -> Optional[BackendToolChoice]:
    """
    Map OpenAI tool_choice onto Bedrock toolChoice.

    - absent -> auto
    - "none" -> None (tools stay declared, nothing is forced)
    - "required" -> any
    - {"type": "function", ...} -> specific tool
    - any other string -> auto
    """
    if choice is None:
        return BackendToolChoice(ToolChoiceKind.AUTO)
    if isinstance(choice, ToolChoiceFunction):
        return BackendToolChoice(ToolChoiceKind.TOOL, name=choice.name)
    if choice.mode == "none":
        return None
    if choice.mode == "required":
        return BackendToolChoice(ToolChoiceKind.ANY)
    return BackendToolChoice(ToolChoiceKind.AUTO)


def build_tool_config(
    tools: Optional[list[ToolDefinition]],
    choice: Optional[ToolChoice],
) -> Optional[ToolConfiguration]:
    """Build the Bedrock toolConfig, or None when the request declares no tools."""
    if tools is None:
        return None
    return ToolConfiguration(
        tools=[tool_definition_to_specification(tool) for tool in tools],
        tool_choice=tool_choice_to_backend(choice),
    )


# ============ Bedrock -> OpenAI (streaming) ============

def tool_use_start_to_delta(tool_use: dict[str, Any], index: int) -> ToolCallDelta:
    """First fragment of a streamed tool call: id and name, empty arguments."""
    return ToolCallDelta(
        index=index,
        id=tool_use.get("toolUseId"),
        type="function",
        function=FunctionDelta(name=tool_use.get("name"), arguments=""),
    )


def tool_use_input_to_delta(fragment: str, index: int) -> ToolCallDelta:
    """Subsequent fragment of a streamed tool call: a piece of the arguments JSON."""
    return ToolCallDelta(
        index=index,
        type="function",
        function=FunctionDelta(arguments=fragment),
    )
