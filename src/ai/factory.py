"""AI client factory: picks a backend from ClientConfig."""

import logging

from src.ai.anthropic_client import AnthropicClient
from src.ai.client import AIClient, ClientConfig, NoOpClient, Provider
from src.ai.openai_client import OpenAIClient
from src.errors import AIConfigurationError

logger = logging.getLogger(__name__)

_BACKENDS: dict[Provider, type[OpenAIClient] | type[AnthropicClient]] = {
    Provider.OPENAI: OpenAIClient,
    Provider.ANTHROPIC: AnthropicClient,
}


def create_client(config: ClientConfig) -> AIClient:
    """Create the AI client for ``config``.

    The provider selector is validated first: an unrecognized value is a
    configuration error, never a silent default. A recognized provider without
    an API key yields a NoOpClient so the service can still start.

    Raises:
        AIConfigurationError: If ``config.provider`` is not a known provider.
    """
    try:
        provider = Provider(config.provider.strip().lower())
    except ValueError as exc:
        known = ", ".join(p.value for p in Provider)
        msg = f"Unsupported AI provider {config.provider!r} (expected one of: {known})"
        raise AIConfigurationError(msg) from exc

    if not config.api_key:
        logger.warning("No API key configured for %s; AI features will return placeholders", provider.value)
        return NoOpClient(provider=provider.value, model=config.model or "none")

    client = _BACKENDS[provider](config)
    logger.info("AI client ready: provider=%s model=%s", client.provider_name, client.model_name)
    return client
