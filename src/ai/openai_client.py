"""OpenAI (and OpenAI-compatible proxy) backend."""

import httpx
import openai
from langchain_core.language_models import BaseChatModel

from src.ai.chat import ChatModelClient
from src.ai.client import ClientConfig, Provider
from src.ai.llm import DEFAULT_OPENAI_MODEL, create_openai_chat
from src.errors import AIProviderError, AITimeoutError


class OpenAIClient(ChatModelClient):
    provider = Provider.OPENAI.value

    @property
    def default_model(self) -> str:
        return DEFAULT_OPENAI_MODEL

    def _create_chat_model(self, config: ClientConfig) -> BaseChatModel:
        return create_openai_chat(config)

    def _translate_error(self, exc: Exception) -> AIProviderError:
        if isinstance(exc, openai.APITimeoutError | httpx.TimeoutException):
            return AITimeoutError(f"OpenAI request timed out: {exc}", provider=self.provider)
        if isinstance(exc, openai.APIStatusError):
            return AIProviderError(
                f"OpenAI API error: HTTP {exc.status_code} - {exc.message}",
                provider=self.provider,
                status_code=exc.status_code,
            )
        if isinstance(exc, openai.APIConnectionError | httpx.TransportError):
            return AIProviderError(f"Cannot connect to OpenAI: {exc}", provider=self.provider)
        return AIProviderError(f"OpenAI call failed: {exc}", provider=self.provider)
