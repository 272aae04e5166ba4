"""
Domain model module initialization
"""

from converse_gateway.domain.request import (
    BlockContents,
    ChatCompletionsRequest,
    ContentPart,
    Contents,
    Message,
    Role,
    TextContents,
    ToolCall,
    ToolChoice,
    ToolChoiceFunction,
    ToolChoiceMode,
    ToolDefinition,
)
from converse_gateway.domain.response import (
    ChatCompletionChunk,
    Choice,
    Delta,
    ToolCallDelta,
    Usage,
    UsageCallback,
)
from converse_gateway.domain.bedrock import (
    BackendMessage,
    BackendRequest,
    ConversationRole,
    SystemBlock,
    ToolConfiguration,
)

__all__ = [
    "BlockContents",
    "ChatCompletionsRequest",
    "ContentPart",
    "Contents",
    "Message",
    "Role",
    "TextContents",
    "ToolCall",
    "ToolChoice",
    "ToolChoiceFunction",
    "ToolChoiceMode",
    "ToolDefinition",
    "ChatCompletionChunk",
    "Choice",
    "Delta",
    "ToolCallDelta",
    "Usage",
    "UsageCallback",
    "BackendMessage",
    "BackendRequest",
    "ConversationRole",
    "SystemBlock",
    "ToolConfiguration",
]
