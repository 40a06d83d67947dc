"""Error taxonomy shared by the incident store, service, and AI clients.

The HTTP layer maps these to status codes; nothing below it needs to know
which AI backend produced a failure.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.incidents.models import Incident


class IncidentAssistantError(Exception):
    """Base class for all errors raised by this package."""


class IncidentNotFoundError(IncidentAssistantError):
    def __init__(self, incident_id: str) -> None:
        super().__init__(f"Incident not found: {incident_id}")
        self.incident_id = incident_id


class IncidentValidationError(IncidentAssistantError):
    """A create/update request is missing required fields."""


class AIError(IncidentAssistantError):
    """Base class for AI-related failures.

    ``incident`` is filled in by the service when the failure happened while
    enriching an incident, so callers still get the base record.
    """

    incident: Incident | None = None


class AIUnavailableError(AIError):
    """No AI client is configured (or the configured one is a placeholder)."""


class AIConfigurationError(AIError):
    """The AI client configuration is invalid, e.g. an unknown provider."""


class AIProviderError(AIError):
    """Transport, HTTP, or empty-completion failure from a concrete backend."""

    def __init__(self, message: str, *, provider: str = "", status_code: int | None = None) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class AITimeoutError(AIProviderError):
    """The AI call exceeded its deadline."""
