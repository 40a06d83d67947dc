from functools import lru_cache
from typing import ClassVar

from pydantic_settings import BaseSettings, SettingsConfigDict

from src.ai.client import DEFAULT_TIMEOUT_SECONDS, ClientConfig, Provider


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # AI provider selector: "openai" or "anthropic". Anything else fails at startup.
    ai_provider: str = Provider.OPENAI.value

    # An empty key for the selected provider means AI runs in placeholder mode
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str = ""  # Optional OpenAI-compatible proxy URL

    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"

    ai_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    ai_temperature: float = 0.3
    ai_max_tokens: int = 2000

    log_level: str = "INFO"

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Lazily load and cache settings. Fails at first call, not at import time."""
    return Settings()


def build_client_config(settings: Settings) -> ClientConfig:
    """Select the API key and model of the configured provider.

    The provider string is passed through unchanged; validating it is the
    client factory's job.
    """
    if settings.ai_provider.strip().lower() == Provider.ANTHROPIC:
        api_key, model, base_url = settings.anthropic_api_key, settings.anthropic_model, ""
    else:
        api_key, model, base_url = settings.openai_api_key, settings.openai_model, settings.openai_base_url
    return ClientConfig(
        provider=settings.ai_provider,
        api_key=api_key,
        model=model,
        timeout_seconds=settings.ai_timeout_seconds,
        temperature=settings.ai_temperature,
        max_tokens=settings.ai_max_tokens,
        base_url=base_url,
    )
