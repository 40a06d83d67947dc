"""Turn raw model completions into structured results.

Model output is unreliable: it may be wrapped in markdown fences, preceded by a
preamble, or not be JSON at all. Parsing never raises. A completion that cannot
be decoded becomes a degraded result whose primary text is the raw completion
and whose list fields are empty.
"""

import json
import logging
import re
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from src.incidents.models import Severity

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^```[\w-]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?```\s*$")


# ---------------------------------------------------------------------------
# Result types returned by AI clients
# ---------------------------------------------------------------------------


class AnalysisResult(BaseModel):
    summary: str = ""
    findings: list[str] = Field(default_factory=list)
    root_causes: list[str] = Field(default_factory=list)
    recommended_actions: list[str] = Field(default_factory=list)
    suggested_severity: Severity = Severity.UNKNOWN
    raw_response: str = ""


class RCAResult(BaseModel):
    timeline: str = ""
    root_cause: str = ""
    impact: str = ""
    resolution: str = ""
    preventive_measures: list[str] = Field(default_factory=list)
    lessons_learned: list[str] = Field(default_factory=list)
    raw_response: str = ""


class LogSummaryResult(BaseModel):
    summary: str = ""
    key_insights: list[str] = Field(default_factory=list)
    alerts: list[str] = Field(default_factory=list)
    raw_response: str = ""


# ---------------------------------------------------------------------------
# Typed payloads: every field optional, wrong types coerced to empty
# ---------------------------------------------------------------------------


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _as_text_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _as_timeline(value: Any) -> str:
    # Models sometimes answer with a list of events instead of prose.
    if isinstance(value, list):
        return "\n".join(_as_text_list(value))
    return _as_text(value)


LenientText = Annotated[str, BeforeValidator(_as_text)]
LenientTextList = Annotated[list[str], BeforeValidator(_as_text_list)]


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class _AnalysisPayload(_Payload):
    summary: LenientText = ""
    findings: LenientTextList = Field(default_factory=list)
    root_causes: LenientTextList = Field(default_factory=list)
    recommended_actions: LenientTextList = Field(default_factory=list)
    suggested_severity: LenientText = ""


class _RCAPayload(_Payload):
    timeline: Annotated[str, BeforeValidator(_as_timeline)] = ""
    root_cause: LenientText = ""
    impact: LenientText = ""
    resolution: LenientText = ""
    immediate_resolution: LenientText = ""
    preventive_measures: LenientTextList = Field(default_factory=list)
    lessons_learned: LenientTextList = Field(default_factory=list)


class _LogSummaryPayload(_Payload):
    summary: LenientText = ""
    key_insights: LenientTextList = Field(default_factory=list)
    alerts: LenientTextList = Field(default_factory=list)


class _SeverityPayload(_Payload):
    severity: LenientText = ""


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def extract_json(text: str) -> str:
    """Return the JSON object candidate inside a model completion.

    Strips surrounding whitespace and markdown code fences, then takes the span
    from the first ``{`` to the last ``}``. If there is no such span the
    (de-fenced) text is returned unchanged.
    """
    candidate = text.strip()
    if candidate.startswith("```"):
        candidate = _LEADING_FENCE.sub("", candidate, count=1)
        candidate = _TRAILING_FENCE.sub("", candidate).strip()

    start = candidate.find("{")
    end = candidate.rfind("}")
    if start != -1 and end > start:
        return candidate[start : end + 1]
    return candidate


def _decode_object(raw: str) -> dict[str, Any] | None:
    """Decode the JSON object in ``raw``, or None when there isn't one."""
    try:
        data = json.loads(extract_json(raw))
    # ValueError covers JSONDecodeError and the int-string digit limit; deep nesting raises RecursionError.
    except (ValueError, RecursionError, TypeError) as exc:
        logger.warning("AI response is not valid JSON, using raw text: %s", exc)
        return None
    if not isinstance(data, dict):
        logger.warning("AI response JSON is a %s, not an object; using raw text", type(data).__name__)
        return None
    return data


def to_severity(value: str) -> Severity:
    """Map free-form severity text to a Severity, ``unknown`` if unrecognized."""
    try:
        return Severity(value.strip().lower())
    except ValueError:
        return Severity.UNKNOWN


# ---------------------------------------------------------------------------
# Public parsers
# ---------------------------------------------------------------------------


def parse_analysis(raw: str) -> AnalysisResult:
    data = _decode_object(raw)
    if data is None:
        return AnalysisResult(summary=raw, raw_response=raw)
    payload = _AnalysisPayload.model_validate(data)
    return AnalysisResult(
        summary=payload.summary,
        findings=payload.findings,
        root_causes=payload.root_causes,
        recommended_actions=payload.recommended_actions,
        suggested_severity=to_severity(payload.suggested_severity),
        raw_response=raw,
    )


def parse_rca(raw: str) -> RCAResult:
    """Parse an RCA completion. The fallback puts the raw text in ``timeline``."""
    data = _decode_object(raw)
    if data is None:
        return RCAResult(timeline=raw, raw_response=raw)
    payload = _RCAPayload.model_validate(data)
    return RCAResult(
        timeline=payload.timeline,
        root_cause=payload.root_cause,
        impact=payload.impact,
        resolution=payload.resolution or payload.immediate_resolution,
        preventive_measures=payload.preventive_measures,
        lessons_learned=payload.lessons_learned,
        raw_response=raw,
    )


def parse_log_summary(raw: str) -> LogSummaryResult:
    data = _decode_object(raw)
    if data is None:
        return LogSummaryResult(summary=raw, raw_response=raw)
    payload = _LogSummaryPayload.model_validate(data)
    return LogSummaryResult(
        summary=payload.summary,
        key_insights=payload.key_insights,
        alerts=payload.alerts,
        raw_response=raw,
    )


def parse_severity(raw: str) -> Severity:
    """Parse a severity classification.

    Accepts ``{"severity": "high"}`` or a bare word such as ``high``.
    """
    data = _decode_object(raw)
    if data is None:
        return to_severity(raw.strip().strip('"').strip("."))
    return to_severity(_SeverityPayload.model_validate(data).severity)
