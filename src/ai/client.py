"""Provider-agnostic AI client interface, its configuration, and the NoOp client."""

from abc import ABC, abstractmethod
from enum import StrEnum

from pydantic import BaseModel

from src.ai.parsing import AnalysisResult, LogSummaryResult, RCAResult
from src.errors import AIUnavailableError
from src.incidents.models import Severity

DEFAULT_TIMEOUT_SECONDS = 60


class Provider(StrEnum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class ClientConfig(BaseModel):
    """Settings handed to the client factory at startup.

    ``provider`` stays a plain string so an unknown selector reaches the factory
    and fails there with AIConfigurationError.
    """

    provider: str = Provider.OPENAI.value
    api_key: str = ""
    model: str = ""
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    temperature: float = 0.3
    max_tokens: int = 2000
    base_url: str = ""


class AIClient(ABC):
    """Uniform interface over interchangeable AI backends.

    Every network method takes an optional ``timeout``, the caller's deadline
    in seconds. Exceeding it raises AITimeoutError; any other backend failure
    raises AIProviderError.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str: ...

    @property
    @abstractmethod
    def model_name(self) -> str: ...

    @abstractmethod
    async def analyze_incident(
        self,
        title: str,
        description: str,
        logs: list[str],
        *,
        timeout: float | None = None,
    ) -> AnalysisResult: ...

    @abstractmethod
    async def generate_rca(
        self,
        title: str,
        description: str,
        analysis: AnalysisResult | None,
        timeline: list[str],
        *,
        timeout: float | None = None,
    ) -> RCAResult: ...

    @abstractmethod
    async def summarize_logs(self, logs: list[str], *, timeout: float | None = None) -> LogSummaryResult: ...

    @abstractmethod
    async def classify_severity(
        self,
        title: str,
        description: str,
        alert_context: str,
        *,
        timeout: float | None = None,
    ) -> Severity: ...

    @abstractmethod
    async def health(self, *, timeout: float | None = None) -> None:
        """Raise if the backend is not reachable or not configured."""


class NoOpClient(AIClient):
    """Placeholder used when no API key is configured.

    Enrichment calls return clearly labelled placeholder results so callers
    degrade gracefully instead of failing.
    """

    def __init__(self, provider: str = "none", model: str = "none") -> None:
        self._provider = provider
        self._model = model

    @property
    def provider_name(self) -> str:
        return self._provider

    @property
    def model_name(self) -> str:
        return self._model

    async def analyze_incident(
        self,
        title: str,
        description: str,
        logs: list[str],
        *,
        timeout: float | None = None,
    ) -> AnalysisResult:
        return AnalysisResult(summary="AI analysis not available (provider not configured)")

    async def generate_rca(
        self,
        title: str,
        description: str,
        analysis: AnalysisResult | None,
        timeline: list[str],
        *,
        timeout: float | None = None,
    ) -> RCAResult:
        return RCAResult(timeline="AI RCA generation not available (provider not configured)")

    async def summarize_logs(self, logs: list[str], *, timeout: float | None = None) -> LogSummaryResult:
        return LogSummaryResult(summary="Log summarization not available (provider not configured)")

    async def classify_severity(
        self,
        title: str,
        description: str,
        alert_context: str,
        *,
        timeout: float | None = None,
    ) -> Severity:
        msg = "AI severity classification not available (provider not configured)"
        raise AIUnavailableError(msg)

    async def health(self, *, timeout: float | None = None) -> None:
        msg = "AI provider not configured"
        raise AIUnavailableError(msg)
