"""
Configuration Management Module

Configures application parameters via environment variables or .env file.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application Configuration Class

    All configuration items can be overridden by environment variables, with names matching fields (uppercase).
    Values are read once at startup and never mutated afterwards.
    """

    # Application Config
    APP_NAME: str = "Converse Gateway"
    DEBUG: bool = False
    # Overrides the DEBUG-derived level (DEBUG, INFO, WARNING, ...)
    LOG_LEVEL: Optional[str] = None

    # Server Config
    HOST: str = "127.0.0.1"
    PORT: int = 3000

    # OpenAI Passthrough Config
    # Leave empty to disable OpenAI models
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    # Comma-separated model name prefixes routed to OpenAI instead of Bedrock
    OPENAI_MODEL_PREFIXES: str = "gpt-,chatgpt-,o1,o3,o4"

    # AWS Bedrock Config
    AWS_REGION: str = "us-east-1"
    # Named profile from the shared AWS config; None uses the default credential chain
    AWS_PROFILE: Optional[str] = None
    # Override for VPC endpoints or local emulators
    BEDROCK_ENDPOINT_URL: Optional[str] = None
    # Worker threads for blocking boto3 calls; each open stream holds one
    BEDROCK_MAX_WORKERS: int = 100

    # HTTP Client Config
    # Request timeout (seconds)
    HTTP_TIMEOUT: int = 600

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    @property
    def openai_model_prefixes(self) -> list[str]:
        """Normalized list of model prefixes served by the OpenAI passthrough"""
        return [
            prefix.strip().lower()
            for prefix in self.OPENAI_MODEL_PREFIXES.split(",")
            if prefix.strip()
        ]


@lru_cache()
def get_settings() -> Settings:
    """
    Get application configuration (Singleton)

    Uses lru_cache to ensure configuration is loaded only once.

    Returns:
        Settings: Application configuration instance
    """
    return Settings()
