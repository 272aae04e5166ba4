"""
Backend provider module initialization
"""

from converse_gateway.providers.base import ChatCompletionsProvider
from converse_gateway.providers.bedrock_client import BedrockClient
from converse_gateway.providers.openai_client import OpenAIClient
from converse_gateway.providers.factory import (
    get_provider_client,
    is_openai_model,
    reset_provider_clients,
)

__all__ = [
    "ChatCompletionsProvider",
    "BedrockClient",
    "OpenAIClient",
    "get_provider_client",
    "is_openai_model",
    "reset_provider_clients",
]
