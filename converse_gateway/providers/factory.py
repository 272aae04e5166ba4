"""
Provider Client Factory Module

Selects the backend for a requested model: OpenAI-hosted models go to the
OpenAI passthrough, everything else goes to Bedrock.
"""

from typing import Optional

from converse_gateway.common.errors import ServiceError
from converse_gateway.config import Settings, get_settings
from converse_gateway.providers.base import ChatCompletionsProvider
from converse_gateway.providers.bedrock_client import BedrockClient
from converse_gateway.providers.openai_client import OpenAIClient


# Client cache, keyed by backend name
_clients: dict[str, ChatCompletionsProvider] = {}


def is_openai_model(model: str, settings: Optional[Settings] = None) -> bool:
    """Whether the model name matches one of the configured OpenAI prefixes"""
    settings = settings or get_settings()
    lowered = model.lower()
    return any(lowered.startswith(prefix) for prefix in settings.openai_model_prefixes)


def get_provider_client(
    model: str,
    settings: Optional[Settings] = None,
) -> ChatCompletionsProvider:
    """
    Get provider client for the requested model

    Uses caching to avoid repeated client instantiation.

    Args:
        model: Requested model name
        settings: Application configuration (defaults to the global settings)

    Returns:
        ChatCompletionsProvider: Corresponding client instance

    Raises:
        ServiceError: The model needs the OpenAI passthrough but no API key is set
    """
    settings = settings or get_settings()

    if is_openai_model(model, settings):
        if not settings.OPENAI_API_KEY:
            raise ServiceError(
                f"Model '{model}' is served by OpenAI but OPENAI_API_KEY is not configured",
                code="openai_not_configured",
            )
        if "openai" not in _clients:
            _clients["openai"] = OpenAIClient(
                api_key=settings.OPENAI_API_KEY,
                base_url=settings.OPENAI_BASE_URL,
                timeout=settings.HTTP_TIMEOUT,
            )
        return _clients["openai"]

    if "bedrock" not in _clients:
        _clients["bedrock"] = BedrockClient(
            region=settings.AWS_REGION,
            profile=settings.AWS_PROFILE,
            endpoint_url=settings.BEDROCK_ENDPOINT_URL,
            timeout=settings.HTTP_TIMEOUT,
            max_workers=settings.BEDROCK_MAX_WORKERS,
        )
    return _clients["bedrock"]


def reset_provider_clients() -> None:
    """Drop cached clients (used when settings change, e.g. in tests)"""
    _clients.clear()
