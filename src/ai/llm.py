"""Chat model construction for the LLM-backed AI clients.

Retries are disabled: each client method maps to exactly one request, bounded
by ``ClientConfig.timeout_seconds``.
"""

from typing import Any

from langchain_anthropic import ChatAnthropic
from langchain_openai import ChatOpenAI
from pydantic import SecretStr

from src.ai.client import ClientConfig

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-20250514"


def create_openai_chat(config: ClientConfig) -> ChatOpenAI:
    """Create a ChatOpenAI instance.

    ``base_url`` is passed through for OpenAI-compatible proxies; an empty
    string means the public API.
    """
    return ChatOpenAI(
        model=config.model or DEFAULT_OPENAI_MODEL,
        temperature=config.temperature,
        max_tokens=config.max_tokens,  # pyright: ignore[reportCallIssue]
        api_key=SecretStr(config.api_key),
        base_url=config.base_url or None,
        timeout=config.timeout_seconds,
        max_retries=0,
    )


def create_anthropic_chat(config: ClientConfig) -> ChatAnthropic:
    kwargs: dict[str, Any] = {
        "model": config.model or DEFAULT_ANTHROPIC_MODEL,
        "temperature": config.temperature,
        "max_tokens": config.max_tokens,
        "api_key": SecretStr(config.api_key),
        "timeout": config.timeout_seconds,
        "max_retries": 0,
    }
    if config.base_url:
        kwargs["base_url"] = config.base_url
    return ChatAnthropic(**kwargs)  # pyright: ignore[reportCallIssue]
