import pytest

from converse_gateway.common.errors import ServiceError
from converse_gateway.config import Settings
from converse_gateway.providers.bedrock_client import BedrockClient
from converse_gateway.providers.factory import get_provider_client, is_openai_model
from converse_gateway.providers.openai_client import OpenAIClient


@pytest.mark.parametrize(
    "model,expected",
    [
        ("gpt-4o", True),
        ("GPT-4o-mini", True),
        ("chatgpt-4o-latest", True),
        ("o1-preview", True),
        ("o3-mini", True),
        ("o4-mini", True),
        ("anthropic.claude-3-haiku-20240307-v1:0", False),
        ("meta.llama3-70b-instruct-v1:0", False),
        ("amazon.nova-pro-v1:0", False),
    ],
)
def test_is_openai_model(settings, model, expected):
    assert is_openai_model(model, settings) is expected


def test_factory_openai_client(settings):
    client = get_provider_client("gpt-4o", settings)
    assert isinstance(client, OpenAIClient)
    assert client.api_key == "sk-test"
    assert client.base_url == "https://api.openai.test/v1"
    assert get_provider_client("o3-mini", settings) is client


def test_factory_bedrock_client(settings):
    client = get_provider_client("anthropic.claude-3-haiku", settings)
    assert isinstance(client, BedrockClient)
    assert client.region == "us-west-2"


def test_factory_openai_without_key():
    settings = Settings(_env_file=None, OPENAI_API_KEY=None)
    with pytest.raises(ServiceError) as exc_info:
        get_provider_client("gpt-4o", settings)
    assert exc_info.value.code == "openai_not_configured"
    assert exc_info.value.status_code == 503


def test_custom_prefixes():
    settings = Settings(_env_file=None, OPENAI_API_KEY="sk", OPENAI_MODEL_PREFIXES=" ft:gpt , my-")
    assert settings.openai_model_prefixes == ["ft:gpt", "my-"]
    assert is_openai_model("my-model", settings)
    assert not is_openai_model("gpt-4o", settings)


def test_factory_bedrock_client_thread_limit():
    settings = Settings(_env_file=None, BEDROCK_MAX_WORKERS=8)
    client = get_provider_client("anthropic.claude-3-haiku", settings)
    assert client.max_workers == 8
