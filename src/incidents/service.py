"""Incident service: lifecycle rules on top of the store plus AI enrichment.

AI calls never run while the store lock is held. Enrichment follows a
read, release, call, write-back pattern, where the write-back is a single
store.update() that replaces the whole artifact. A write-back for an incident
deleted in the meantime fails with IncidentNotFoundError; the incident is not
recreated.
"""

import logging
from collections.abc import Callable

from src.ai.client import DEFAULT_TIMEOUT_SECONDS, AIClient
from src.ai.parsing import AnalysisResult
from src.errors import AIError, AIProviderError, AIUnavailableError, IncidentNotFoundError, IncidentValidationError
from src.incidents.models import (
    RESOLVED_STATUSES,
    AIAnalysis,
    CreateIncidentRequest,
    Incident,
    IncidentStatus,
    LogSummary,
    RCADocument,
    Severity,
    UpdateIncidentRequest,
    unique_tags,
    utc_now,
)
from src.incidents.store import IncidentStore
from src.observability.metrics import INCIDENTS_CREATED_TOTAL, INCIDENTS_STORED

logger = logging.getLogger(__name__)

HEALTH_TIMEOUT_SECONDS = 5.0

# Checked in order; the first tier with a matching keyword wins.
SEVERITY_KEYWORDS: tuple[tuple[Severity, tuple[str, ...]], ...] = (
    (Severity.CRITICAL, ("critical", "production down", "data loss", "security breach", "outage")),
    (Severity.HIGH, ("error", "failure", "failed", "down", "unavailable", "exhausted")),
    (Severity.MEDIUM, ("warning", "degraded", "slow", "high memory", "latency")),
)


def classify_severity_by_keywords(*texts: str) -> Severity:
    """Deterministic severity heuristic: case-insensitive keyword match.

    Always returns a concrete severity; ``low`` when nothing matches.
    """
    haystack = " ".join(texts).lower()
    for severity, keywords in SEVERITY_KEYWORDS:
        if any(keyword in haystack for keyword in keywords):
            return severity
    return Severity.LOW


def build_timeline(incident: Incident) -> list[str]:
    """Known lifecycle events of an incident, oldest first."""
    events = [f"Created: {incident.created_at.isoformat()} (status={incident.status.value}, source={incident.source})"]
    if incident.ai_analysis is not None:
        events.append(f"Analyzed: {incident.ai_analysis.generated_at.isoformat()}")
    if incident.resolved_at is not None:
        events.append(f"Resolved: {incident.resolved_at.isoformat()}")
    events.append(f"Last updated: {incident.updated_at.isoformat()}")
    return events


def _analysis_result(analysis: AIAnalysis) -> AnalysisResult:
    return AnalysisResult(
        summary=analysis.summary,
        findings=analysis.findings,
        root_causes=analysis.root_causes,
        recommended_actions=analysis.recommended_actions,
        suggested_severity=analysis.suggested_severity,
    )


def _require_text(value: str, field: str) -> str:
    if not value.strip():
        msg = f"{field} is required"
        raise IncidentValidationError(msg)
    return value


class IncidentService:
    """Orchestrates incident CRUD and AI enrichment.

    Args:
        store: The incident store; the service is its only writer.
        ai_client: AI backend, or None when AI is unavailable.
        ai_timeout: Deadline in seconds for each AI call.
    """

    def __init__(
        self,
        store: IncidentStore,
        ai_client: AIClient | None = None,
        ai_timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._store = store
        self._ai_client = ai_client
        self._ai_timeout = ai_timeout

    @property
    def ai_client(self) -> AIClient | None:
        return self._ai_client

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def create_incident(self, request: CreateIncidentRequest) -> Incident:
        """Create an open incident, classifying severity when none was given.

        Raises:
            IncidentValidationError: If title or description is blank.
        """
        title = _require_text(request.title, "title")
        description = _require_text(request.description, "description")

        classified_by = "request"
        severity = request.severity
        if severity is None:
            severity, classified_by = await self._classify_severity(title, description, request.alert_data)

        now = utc_now()
        incident = self._store.insert(
            Incident(
                title=title,
                description=description,
                source=request.source,
                alert_data=request.alert_data,
                severity=severity,
                status=IncidentStatus.OPEN,
                logs=list(request.logs),
                tags=request.tags,
                metadata=dict(request.metadata),
                assigned_to=request.assigned_to,
                created_at=now,
                updated_at=now,
            )
        )
        INCIDENTS_CREATED_TOTAL.labels(severity=incident.severity.value, classified_by=classified_by).inc()
        INCIDENTS_STORED.set(len(self._store))
        logger.info("Incident created: %s %r (severity=%s)", incident.id, incident.title, incident.severity.value)
        return incident

    async def _classify_severity(self, title: str, description: str, alert_data: str) -> tuple[Severity, str]:
        """Ask the AI client, falling back to the keyword heuristic on any failure."""
        if self._ai_client is not None:
            try:
                severity = await self._ai_client.classify_severity(
                    title, description, alert_data, timeout=self._ai_timeout
                )
            except AIError as exc:
                logger.warning("AI severity classification failed, using keyword heuristic: %s", exc)
            else:
                if severity is not Severity.UNKNOWN:
                    return severity, "ai"
                logger.info("AI could not classify severity, using keyword heuristic")
        return classify_severity_by_keywords(title, description, alert_data), "keywords"

    def get_incident(self, incident_id: str) -> Incident:
        incident = self._store.get(incident_id)
        if incident is None:
            raise IncidentNotFoundError(incident_id)
        return incident

    def list_incidents(
        self,
        status: IncidentStatus | None = None,
        severity: Severity | None = None,
    ) -> list[Incident]:
        """List incidents matching every given filter."""

        def matches(incident: Incident) -> bool:
            if status is not None and incident.status != status:
                return False
            return severity is None or incident.severity == severity

        return self._store.list(matches)

    def update_incident(self, incident_id: str, request: UpdateIncidentRequest) -> Incident:
        """Apply the fields the caller set on ``request``.

        The first transition into resolved/closed stamps ``resolved_at``. Moving
        back to open/in_progress keeps it: it records when the incident was
        resolved, which stays true.
        """
        changes = request.model_dump(exclude_unset=True)
        for field in ("title", "description"):
            if field in changes:
                _require_text(changes[field] or "", field)

        def apply(incident: Incident) -> None:
            now = utc_now()
            if "title" in changes:
                incident.title = changes["title"]
            if "description" in changes:
                incident.description = changes["description"]
            if request.severity is not None:
                incident.severity = request.severity
            if request.status is not None and request.status != incident.status:
                incident.status = request.status
                if request.status in RESOLVED_STATUSES and incident.resolved_at is None:
                    incident.resolved_at = now
            if request.logs is not None:
                incident.logs = list(request.logs)
            if request.tags is not None:
                incident.tags = unique_tags(request.tags)
            if request.metadata is not None:
                incident.metadata = dict(request.metadata)
            if "assigned_to" in changes:
                incident.assigned_to = request.assigned_to
            incident.touch(now)

        incident = self._store.update(incident_id, apply)
        logger.info("Incident updated: %s (fields=%s)", incident_id, ",".join(sorted(changes)) or "none")
        return incident

    def delete_incident(self, incident_id: str) -> None:
        self._store.delete(incident_id)
        INCIDENTS_STORED.set(len(self._store))
        logger.info("Incident deleted: %s", incident_id)

    # ------------------------------------------------------------------
    # AI enrichment
    # ------------------------------------------------------------------

    def _require_ai(self, incident: Incident | None = None) -> AIClient:
        if self._ai_client is None:
            msg = "AI client not configured"
            exc = AIUnavailableError(msg)
            exc.incident = incident
            raise exc
        return self._ai_client

    def _write_back(self, incident_id: str, mutate: Callable[[Incident], None]) -> Incident:
        def apply(incident: Incident) -> None:
            mutate(incident)
            incident.touch()

        return self._store.update(incident_id, apply)

    async def _run_analysis(self, client: AIClient, incident: Incident) -> Incident:
        """AI analysis of a snapshot, written back onto the stored incident."""
        try:
            result = await client.analyze_incident(
                incident.title, incident.description, incident.logs, timeout=self._ai_timeout
            )
        except AIProviderError as exc:
            logger.warning("Failed to analyze incident %s: %s", incident.id, exc)
            exc.incident = incident
            raise

        analysis = AIAnalysis(
            summary=result.summary,
            findings=result.findings,
            root_causes=result.root_causes,
            recommended_actions=result.recommended_actions,
            suggested_severity=result.suggested_severity,
            provider=client.provider_name,
            model=client.model_name,
        )

        def attach(target: Incident) -> None:
            target.ai_analysis = analysis

        updated = self._write_back(incident.id, attach)
        logger.info("Incident analyzed: %s (provider=%s)", incident.id, client.provider_name)
        return updated

    async def analyze_incident(self, incident_id: str) -> Incident:
        """Generate and attach a fresh AI analysis, replacing any previous one.

        Raises:
            IncidentNotFoundError: Before any AI call if the incident is unknown,
                or at write-back if it was deleted during the call.
            AIUnavailableError: If no AI client is configured.
            AIProviderError: If the AI call failed; ``exc.incident`` holds the
                unchanged incident.
        """
        incident = self.get_incident(incident_id)
        client = self._require_ai(incident)
        return await self._run_analysis(client, incident)

    async def generate_rca(self, incident_id: str) -> Incident:
        """Generate and attach an RCA document.

        An existing analysis is reused; without one the analysis step runs
        first and is persisted alongside the RCA.
        """
        incident = self.get_incident(incident_id)
        client = self._require_ai(incident)

        if incident.ai_analysis is None:
            logger.info("Incident %s has no analysis yet, analyzing before RCA", incident_id)
            incident = await self._run_analysis(client, incident)
        assert incident.ai_analysis is not None  # set by _run_analysis or already cached

        try:
            result = await client.generate_rca(
                incident.title,
                incident.description,
                _analysis_result(incident.ai_analysis),
                build_timeline(incident),
                timeout=self._ai_timeout,
            )
        except AIProviderError as exc:
            logger.warning("Failed to generate RCA for incident %s: %s", incident_id, exc)
            exc.incident = incident
            raise

        document = RCADocument(
            timeline=result.timeline,
            root_cause=result.root_cause,
            impact=result.impact,
            resolution=result.resolution,
            preventive_measures=result.preventive_measures,
            lessons_learned=result.lessons_learned,
            provider=client.provider_name,
            model=client.model_name,
        )

        def attach(target: Incident) -> None:
            target.rca_document = document

        updated = self._write_back(incident_id, attach)
        logger.info("RCA generated: %s (provider=%s)", incident_id, client.provider_name)
        return updated

    async def summarize_logs(self, logs: list[str]) -> LogSummary:
        """Summarize arbitrary log lines. Does not touch the store."""
        client = self._require_ai()
        try:
            result = await client.summarize_logs(logs, timeout=self._ai_timeout)
        except AIProviderError as exc:
            logger.warning("Failed to summarize %d log lines: %s", len(logs), exc)
            raise
        return LogSummary(
            summary=result.summary,
            key_insights=result.key_insights,
            alerts=result.alerts,
            provider=client.provider_name,
            model=client.model_name,
        )

    async def check_ai_health(self, timeout: float = HEALTH_TIMEOUT_SECONDS) -> None:
        """Raise AIError if the AI backend is unavailable or unhealthy.

        The deadline is ``timeout`` capped by the enrichment timeout.
        """
        await self._require_ai().health(timeout=min(timeout, self._ai_timeout))
