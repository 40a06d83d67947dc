"""Anthropic Claude backend."""

import anthropic
import httpx
from langchain_core.language_models import BaseChatModel

from src.ai.chat import ChatModelClient
from src.ai.client import ClientConfig, Provider
from src.ai.llm import DEFAULT_ANTHROPIC_MODEL, create_anthropic_chat
from src.errors import AIProviderError, AITimeoutError


class AnthropicClient(ChatModelClient):
    provider = Provider.ANTHROPIC.value

    @property
    def default_model(self) -> str:
        return DEFAULT_ANTHROPIC_MODEL

    def _create_chat_model(self, config: ClientConfig) -> BaseChatModel:
        return create_anthropic_chat(config)

    def _translate_error(self, exc: Exception) -> AIProviderError:
        if isinstance(exc, anthropic.APITimeoutError | httpx.TimeoutException):
            return AITimeoutError(f"Anthropic request timed out: {exc}", provider=self.provider)
        if isinstance(exc, anthropic.APIStatusError):
            # 529 is Anthropic's "overloaded" status.
            detail = "overloaded" if exc.status_code == 529 else exc.message
            return AIProviderError(
                f"Anthropic API error: HTTP {exc.status_code} - {detail}",
                provider=self.provider,
                status_code=exc.status_code,
            )
        if isinstance(exc, anthropic.APIConnectionError | httpx.TransportError):
            return AIProviderError(f"Cannot connect to Anthropic: {exc}", provider=self.provider)
        return AIProviderError(f"Anthropic call failed: {exc}", provider=self.provider)
