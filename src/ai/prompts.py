"""Prompt templates for incident analysis, RCA, log summaries, and severity.

Every template asks the model for a single JSON object of a fixed shape; the
parser in src.ai.parsing tolerates models that ignore the instruction.
Incident text and logs are redacted and truncated before they are sent.
"""

import json
import re

from src.ai.parsing import AnalysisResult

MAX_LOG_LINES = 200
MAX_LOG_LINE_LENGTH = 500
MAX_FIELD_LENGTH = 4000

_SECRET_PATTERN = re.compile(
    r"(?i)([\w-]*(?:api[_-]?key|password|passwd|secret|token|authorization))"
    r"(\s*[:=]\s*)"
    r"((?:bearer\s+)?(?:\"[^\"]*\"|'[^']*'|[^\s,;]+))"
)

ANALYSIS_SYSTEM_PROMPT = (
    "You are an expert incident response analyst. Analyze incidents and respond "
    "with structured JSON only."
)

RCA_SYSTEM_PROMPT = (
    "You are an expert in writing Root Cause Analysis (RCA) documents. Generate "
    "comprehensive, structured RCA documents as JSON."
)

SUMMARY_SYSTEM_PROMPT = (
    "You are an expert at analyzing logs and extracting key insights. Respond with structured JSON."
)

SEVERITY_SYSTEM_PROMPT = (
    "You are an on-call SRE triaging new incidents. Classify severity conservatively and respond with JSON."
)

_ANALYSIS_TEMPLATE = """\
Analyze this incident and provide a structured analysis.

Title: {title}
Description: {description}

Related logs:
{logs}

Respond with ONLY a JSON object (no markdown fences) of this shape:
{{
  "summary": "Brief summary of the incident",
  "findings": ["finding 1", "finding 2"],
  "root_causes": ["cause 1", "cause 2"],
  "recommended_actions": ["action 1", "action 2"],
  "suggested_severity": "critical|high|medium|low"
}}
"""

_RCA_TEMPLATE = """\
Generate a comprehensive Root Cause Analysis document for this incident.

Title: {title}
Description: {description}

Previous analysis:
{analysis}

Known timeline:
{timeline}

Respond with ONLY a JSON object (no markdown fences) of this shape:
{{
  "timeline": "Detailed timeline of events",
  "root_cause": "Identified root cause",
  "impact": "Impact assessment",
  "resolution": "Steps taken or required to resolve",
  "preventive_measures": ["measure 1", "measure 2"],
  "lessons_learned": ["lesson 1", "lesson 2"]
}}
"""

_SUMMARY_TEMPLATE = """\
Summarize these logs and extract key insights.

Logs:
{logs}

Respond with ONLY a JSON object (no markdown fences) of this shape:
{{
  "summary": "Brief summary of the logs",
  "key_insights": ["insight 1", "insight 2"],
  "alerts": ["anything that needs attention"]
}}
"""

_SEVERITY_TEMPLATE = """\
Classify the severity of this incident.

Title: {title}
Description: {description}
Alert context: {alert_context}

Severity guide:
- critical: production down, data loss, security breach
- high: errors or failures affecting users
- medium: degraded performance, warnings
- low: everything else

Respond with ONLY a JSON object (no markdown fences): {{"severity": "critical|high|medium|low"}}
"""


def redact_secrets(text: str) -> str:
    """Mask values that follow credential-looking keys (api_key=..., token: ...)."""
    return _SECRET_PATTERN.sub(r"\1\2***REDACTED***", text)


def truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def _clean(text: str, max_length: int = MAX_FIELD_LENGTH) -> str:
    return truncate(redact_secrets(text), max_length)


def format_logs(logs: list[str]) -> str:
    """Render log lines for a prompt, keeping the most recent MAX_LOG_LINES."""
    if not logs:
        return "(no logs provided)"
    lines = [_clean(line, MAX_LOG_LINE_LENGTH) for line in logs[-MAX_LOG_LINES:]]
    omitted = len(logs) - len(lines)
    if omitted:
        lines.insert(0, f"... {omitted} earlier lines omitted ...")
    return "\n".join(lines)


def build_analysis_prompt(title: str, description: str, logs: list[str]) -> str:
    return _ANALYSIS_TEMPLATE.format(title=_clean(title), description=_clean(description), logs=format_logs(logs))


def build_rca_prompt(
    title: str,
    description: str,
    analysis: AnalysisResult | None,
    timeline: list[str],
) -> str:
    if analysis is None:
        analysis_text = "(none)"
    else:
        analysis_text = json.dumps(analysis.model_dump(exclude={"raw_response"}, mode="json"), indent=2)
    return _RCA_TEMPLATE.format(
        title=_clean(title),
        description=_clean(description),
        analysis=_clean(analysis_text),
        timeline="\n".join(timeline) or "(no events recorded)",
    )


def build_summary_prompt(logs: list[str]) -> str:
    return _SUMMARY_TEMPLATE.format(logs=format_logs(logs))


def build_severity_prompt(title: str, description: str, alert_context: str) -> str:
    return _SEVERITY_TEMPLATE.format(
        title=_clean(title),
        description=_clean(description),
        alert_context=_clean(alert_context) or "(none)",
    )
