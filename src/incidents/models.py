"""Pydantic models for incidents and their AI-derived artifacts."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator


def utc_now() -> datetime:
    return datetime.now(UTC)


class Severity(StrEnum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNKNOWN = "unknown"


class IncidentStatus(StrEnum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


RESOLVED_STATUSES = frozenset({IncidentStatus.RESOLVED, IncidentStatus.CLOSED})


def unique_tags(values: list[str]) -> list[str]:
    """Drop duplicate tags, keeping first-seen order."""
    return list(dict.fromkeys(values))


class AIAnalysis(BaseModel):
    """AI-generated analysis attached to a single incident."""

    summary: str
    findings: list[str] = Field(default_factory=list)
    root_causes: list[str] = Field(default_factory=list)
    recommended_actions: list[str] = Field(default_factory=list)
    suggested_severity: Severity = Severity.UNKNOWN
    generated_at: datetime = Field(default_factory=utc_now)
    provider: str
    model: str


class RCADocument(BaseModel):
    """AI-generated root cause analysis document."""

    timeline: str = ""
    root_cause: str = ""
    impact: str = ""
    resolution: str = ""
    preventive_measures: list[str] = Field(default_factory=list)
    lessons_learned: list[str] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=utc_now)
    provider: str
    model: str


class LogSummary(BaseModel):
    summary: str
    key_insights: list[str] = Field(default_factory=list)
    alerts: list[str] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=utc_now)
    provider: str
    model: str


class Incident(BaseModel):
    """A tracked operational issue.

    ``id`` is empty until the store assigns one on insert.
    """

    id: str = ""
    title: str
    description: str
    source: str = ""
    alert_data: str = ""
    severity: Severity = Severity.UNKNOWN
    status: IncidentStatus = IncidentStatus.OPEN
    logs: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    assigned_to: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    resolved_at: datetime | None = None
    ai_analysis: AIAnalysis | None = None
    rca_document: RCADocument | None = None

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, value: list[str]) -> list[str]:
        return unique_tags(value)

    def touch(self, now: datetime | None = None) -> None:
        """Refresh ``updated_at``, never moving it before ``created_at``."""
        self.updated_at = max(now or utc_now(), self.created_at)


class CreateIncidentRequest(BaseModel):
    """Input for IncidentService.create_incident.

    Title and description are checked by the service rather than by pydantic so
    that blank values surface as IncidentValidationError.
    """

    title: str = ""
    description: str = ""
    severity: Severity | None = None
    source: str = "manual"
    alert_data: str = ""
    logs: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    assigned_to: str | None = None


class UpdateIncidentRequest(BaseModel):
    """Partial update; only fields the caller explicitly set are applied."""

    title: str | None = None
    description: str | None = None
    severity: Severity | None = None
    status: IncidentStatus | None = None
    logs: list[str] | None = None
    tags: list[str] | None = None
    metadata: dict[str, Any] | None = None
    assigned_to: str | None = None
