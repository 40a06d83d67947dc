"""End-to-end checks against the real configured AI provider.

Skipped unless pytest runs with --run-e2e and a .env holds a valid API key.
"""

import pytest

from src.ai.client import NoOpClient
from src.ai.factory import create_client
from src.config import build_client_config, get_settings
from src.incidents.models import CreateIncidentRequest, Severity
from src.incidents.service import IncidentService
from src.incidents.store import IncidentStore

pytestmark = pytest.mark.e2e


@pytest.fixture
def live_service() -> IncidentService:
    config = build_client_config(get_settings())
    client = create_client(config)
    if isinstance(client, NoOpClient):
        pytest.skip(f"No API key configured for {config.provider}")
    return IncidentService(IncidentStore(), ai_client=client, ai_timeout=config.timeout_seconds)


async def test_health(live_service: IncidentService) -> None:
    await live_service.check_ai_health()


async def test_create_analyze_and_rca(live_service: IncidentService) -> None:
    incident = await live_service.create_incident(
        CreateIncidentRequest(
            title="Database Connection Pool Exhausted",
            description="Checkout API returns 500s; postgres reports too many connections",
            logs=["ERROR: remaining connection slots are reserved", "WARN: p99 latency 12s"],
        )
    )
    assert incident.severity is not Severity.UNKNOWN

    result = await live_service.generate_rca(incident.id)

    assert result.ai_analysis is not None
    assert result.ai_analysis.summary
    assert result.rca_document is not None
