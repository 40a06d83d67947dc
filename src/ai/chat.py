"""Shared implementation for AI clients backed by a LangChain chat model.

Each public method builds a prompt, makes exactly one ``ainvoke`` call on the
chat model, extracts the completion text, and hands it to the parser.
Backends only supply the chat model and the mapping from their SDK's
exceptions onto AIProviderError / AITimeoutError.
"""

import asyncio
import logging
import time
from abc import abstractmethod

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from src.ai import prompts
from src.ai.client import AIClient, ClientConfig
from src.ai.parsing import (
    AnalysisResult,
    LogSummaryResult,
    RCAResult,
    parse_analysis,
    parse_log_summary,
    parse_rca,
    parse_severity,
)
from src.errors import AIProviderError, AITimeoutError
from src.incidents.models import Severity
from src.observability.metrics import AI_CALL_DURATION, AI_CALLS_TOTAL

logger = logging.getLogger(__name__)


def completion_text(content: str | list[str | dict[str, object]]) -> str:
    """Flatten a chat message's content (plain string or content blocks) to text."""
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif block.get("type") == "text" and isinstance(block.get("text"), str):
            parts.append(str(block["text"]))
    return "".join(parts)


class ChatModelClient(AIClient):
    """AIClient that talks to a provider through a LangChain chat model."""

    provider: str

    def __init__(self, config: ClientConfig, llm: BaseChatModel | None = None) -> None:
        self._config = config
        self._model = config.model or self.default_model
        self._llm = llm if llm is not None else self._create_chat_model(config)

    @property
    @abstractmethod
    def default_model(self) -> str: ...

    @abstractmethod
    def _create_chat_model(self, config: ClientConfig) -> BaseChatModel: ...

    @abstractmethod
    def _translate_error(self, exc: Exception) -> AIProviderError:
        """Map a provider SDK exception onto the shared error taxonomy."""

    @property
    def provider_name(self) -> str:
        return self.provider

    @property
    def model_name(self) -> str:
        return self._model

    async def _complete(
        self,
        operation: str,
        system_prompt: str,
        user_prompt: str,
        timeout: float | None,
    ) -> str:
        """Send one chat request and return the completion text.

        Raises:
            AITimeoutError: The caller deadline or the SDK request timeout expired.
            AIProviderError: Any other failure, including an empty completion.
        """
        deadline = timeout if timeout is not None else self._config.timeout_seconds
        messages = [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]
        start = time.monotonic()
        status = "error"
        try:
            response = await asyncio.wait_for(self._llm.ainvoke(messages), timeout=deadline)
            text = completion_text(response.content).strip()  # pyright: ignore[reportArgumentType]
            if not text:
                msg = f"{self.provider} returned an empty completion"
                raise AIProviderError(msg, provider=self.provider)
            status = "success"
            return text
        except TimeoutError as exc:
            status = "timeout"
            msg = f"{self.provider} {operation} timed out after {deadline}s"
            raise AITimeoutError(msg, provider=self.provider) from exc
        except AIProviderError:
            raise
        except Exception as exc:
            translated = self._translate_error(exc)
            if isinstance(translated, AITimeoutError):
                status = "timeout"
            raise translated from exc
        finally:
            AI_CALLS_TOTAL.labels(provider=self.provider, operation=operation, status=status).inc()
            AI_CALL_DURATION.labels(provider=self.provider, operation=operation).observe(time.monotonic() - start)
            logger.debug("%s %s finished with status=%s", self.provider, operation, status)

    async def analyze_incident(
        self,
        title: str,
        description: str,
        logs: list[str],
        *,
        timeout: float | None = None,
    ) -> AnalysisResult:
        raw = await self._complete(
            "analyze",
            prompts.ANALYSIS_SYSTEM_PROMPT,
            prompts.build_analysis_prompt(title, description, logs),
            timeout,
        )
        return parse_analysis(raw)

    async def generate_rca(
        self,
        title: str,
        description: str,
        analysis: AnalysisResult | None,
        timeline: list[str],
        *,
        timeout: float | None = None,
    ) -> RCAResult:
        raw = await self._complete(
            "rca",
            prompts.RCA_SYSTEM_PROMPT,
            prompts.build_rca_prompt(title, description, analysis, timeline),
            timeout,
        )
        return parse_rca(raw)

    async def summarize_logs(self, logs: list[str], *, timeout: float | None = None) -> LogSummaryResult:
        raw = await self._complete(
            "summarize",
            prompts.SUMMARY_SYSTEM_PROMPT,
            prompts.build_summary_prompt(logs),
            timeout,
        )
        return parse_log_summary(raw)

    async def classify_severity(
        self,
        title: str,
        description: str,
        alert_context: str,
        *,
        timeout: float | None = None,
    ) -> Severity:
        raw = await self._complete(
            "classify",
            prompts.SEVERITY_SYSTEM_PROMPT,
            prompts.build_severity_prompt(title, description, alert_context),
            timeout,
        )
        return parse_severity(raw)

    async def health(self, *, timeout: float | None = None) -> None:
        await self._complete("health", "You are a health check endpoint.", "Reply with the word pong.", timeout)
