"""
Request Translation

Maps an OpenAI Chat Completions request onto a Bedrock Converse request:
system messages become system blocks, user/tool messages become user turns,
assistant messages (with their tool calls) become assistant turns.
"""

import logging

from converse_gateway.common.errors import TranslationError
from converse_gateway.domain.bedrock import (
    BackendMessage,
    BackendRequest,
    ContentBlock,
    ConversationRole,
    InferenceConfiguration,
    SystemBlock,
    TextBlock,
)
from converse_gateway.domain.request import ChatCompletionsRequest, Message, Role
from converse_gateway.translation.tool_calls import (
    build_tool_config,
    tool_call_to_tool_use,
    tool_message_to_tool_result,
)

logger = logging.getLogger(__name__)

# Accepted but not emulated on Bedrock
_UNSUPPORTED_FIELDS = ("n", "logit_bias", "frequency_penalty", "presence_penalty", "user")


def translate_request(request: ChatCompletionsRequest) -> BackendRequest:
    """
    Translate an inbound request into a Bedrock request.

    Pure construction, no I/O.

    Args:
        request: OpenAI-shaped chat request

    Returns:
        BackendRequest: Model id, system blocks, messages, tool and inference config

    Raises:
        TranslationError: If a message cannot be expressed on Bedrock
    """
    backend_request = BackendRequest(model_id=request.model)

    for position, message in enumerate(request.messages):
        _check_text_only(message, position)
        if message.role is Role.SYSTEM:
            backend_request.system_blocks.extend(_system_blocks(message))
            continue

        backend_message = _translate_message(message, position)
        if backend_message is not None:
            backend_request.messages.append(backend_message)

    backend_request.tool_config = build_tool_config(request.tools, request.choice)
    backend_request.inference_config = InferenceConfiguration(
        max_tokens=request.max_tokens if request.max_tokens is not None else request.max_completion_tokens,
        temperature=request.temperature,
        top_p=request.top_p,
        stop_sequences=request.stop_sequences,
    )

    ignored = [name for name in _UNSUPPORTED_FIELDS if getattr(request, name) is not None]
    if ignored:
        logger.debug("Ignoring fields not supported by Bedrock: %s", ", ".join(ignored))

    return backend_request


def _system_blocks(message: Message) -> list[SystemBlock]:
    contents = message.contents
    if contents is None:
        return []
    return [SystemBlock(text) for text in contents.texts()]


def _text_blocks(message: Message) -> list[ContentBlock]:
    contents = message.contents
    if contents is None:
        return []
    return [TextBlock(text) for text in contents.texts() if text]


def _check_text_only(message: Message, position: int) -> None:
    non_text = message.non_text_part_types
    if non_text:
        raise TranslationError(
            "Content part types not supported by Bedrock at position %d: %s"
            % (position, ", ".join(non_text)),
            param=f"messages[{position}].content",
        )


def _translate_message(message: Message, position: int) -> BackendMessage | None:
    if message.role is Role.USER:
        content = _text_blocks(message)
        if not content:
            raise TranslationError(
                f"User message at position {position} must have content",
                param=f"messages[{position}].content",
            )
        return BackendMessage(ConversationRole.USER, content)

    if message.role is Role.TOOL:
        tool_result = tool_message_to_tool_result(message, position)
        logger.info(
            "Tool result: tool_call_id=%s length=%d",
            tool_result.tool_use_id,
            len(tool_result.text),
        )
        # Bedrock has no tool role; results travel in a user turn
        return BackendMessage(ConversationRole.USER, [tool_result])

    # Assistant: optional leading text, then one toolUse block per call
    content = _text_blocks(message)
    for tool_call in message.tool_calls or []:
        content.append(tool_call_to_tool_use(tool_call))

    if not content:
        logger.debug("Skipping empty assistant message at position %d", position)
        return None
    return BackendMessage(ConversationRole.ASSISTANT, content)
