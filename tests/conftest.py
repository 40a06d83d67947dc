"""Shared pytest configuration and fixtures."""

from collections.abc import Generator
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.ai.client import AIClient
from src.ai.parsing import AnalysisResult, LogSummaryResult, RCAResult
from src.config import Settings, get_settings
from src.incidents.models import Severity
from src.incidents.service import IncidentService
from src.incidents.store import IncidentStore


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-e2e",
        action="store_true",
        default=False,
        help="Run e2e tests that hit real AI providers (requires .env with valid credentials)",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--run-e2e"):
        return
    skip_e2e = pytest.mark.skip(reason="Need --run-e2e flag to run")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)


@pytest.fixture(autouse=True)
def _no_dotenv(request: pytest.FixtureRequest) -> Generator[None]:
    """Block .env loading so tests never pick up a developer's real API keys."""
    if "e2e" in request.keywords:
        yield
        return

    get_settings.cache_clear()
    original = Settings.model_config.get("env_file")
    Settings.model_config["env_file"] = None

    try:
        yield
    finally:
        Settings.model_config["env_file"] = original
        get_settings.cache_clear()


@pytest.fixture
def mock_settings() -> Generator[Any]:
    """Provide fake settings so tests don't need a .env file.

    Patches get_settings at every import site so cached references are overridden.
    """
    fake_settings = type(
        "FakeSettings",
        (),
        {
            "ai_provider": "openai",
            "openai_api_key": "",
            "openai_model": "gpt-4o-mini",
            "openai_base_url": "",
            "anthropic_api_key": "",
            "anthropic_model": "claude-sonnet-4-20250514",
            "ai_timeout_seconds": 5.0,
            "ai_temperature": 0.0,
            "ai_max_tokens": 500,
            "log_level": "WARNING",
        },
    )()
    with (
        patch("src.config.get_settings", return_value=fake_settings),
        patch("src.api.main.get_settings", return_value=fake_settings),
        patch("src.cli.get_settings", return_value=fake_settings),
    ):
        yield fake_settings


def make_mock_ai_client(
    *,
    severity: Severity = Severity.HIGH,
    provider: str = "openai",
    model: str = "gpt-4o-mini",
) -> MagicMock:
    """An AIClient double with canned results and call-count tracking."""
    client = MagicMock(spec=AIClient)
    client.provider_name = provider
    client.model_name = model
    client.analyze_incident = AsyncMock(
        return_value=AnalysisResult(
            summary="Connection pool saturated by a slow query",
            findings=["Pool at 100% utilisation", "p99 latency 12s"],
            root_causes=["Missing index on orders.customer_id"],
            recommended_actions=["Add index", "Raise pool size temporarily"],
            suggested_severity=Severity.HIGH,
        )
    )
    client.generate_rca = AsyncMock(
        return_value=RCAResult(
            timeline="14:02 alert fired\n14:10 index added",
            root_cause="Missing index",
            impact="Checkout unavailable for 8 minutes",
            resolution="Index added, pool drained",
            preventive_measures=["Query review in CI"],
            lessons_learned=["Alert on pool saturation earlier"],
        )
    )
    client.summarize_logs = AsyncMock(
        return_value=LogSummaryResult(
            summary="Repeated connection timeouts",
            key_insights=["All timeouts from db-1"],
            alerts=["db-1 unreachable"],
        )
    )
    client.classify_severity = AsyncMock(return_value=severity)
    client.health = AsyncMock(return_value=None)
    return client


@pytest.fixture
def mock_ai_client() -> MagicMock:
    return make_mock_ai_client()


@pytest.fixture
def store() -> IncidentStore:
    return IncidentStore()


@pytest.fixture
def service(store: IncidentStore, mock_ai_client: MagicMock) -> IncidentService:
    return IncidentService(store, ai_client=mock_ai_client, ai_timeout=5.0)


@pytest.fixture
def offline_service(store: IncidentStore) -> IncidentService:
    """A service with no AI client configured."""
    return IncidentService(store, ai_client=None)
