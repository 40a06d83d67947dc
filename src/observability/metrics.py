"""Prometheus metric definitions for incident assistant self-instrumentation.

All metrics are module-level singletons registered with the default
prometheus_client registry.  Import them wherever instrumentation is needed.
"""

from prometheus_client import Counter, Gauge, Histogram, Info

# ---------------------------------------------------------------------------
# Histogram bucket definitions
# ---------------------------------------------------------------------------

REQUEST_DURATION_BUCKETS = (0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0)
AI_CALL_DURATION_BUCKETS = (0.5, 1.0, 2.0, 5.0, 10.0, 15.0, 20.0, 30.0, 60.0)

# ---------------------------------------------------------------------------
# HTTP request metrics
# ---------------------------------------------------------------------------

REQUEST_DURATION = Histogram(
    "incident_assistant_request_duration_seconds",
    "End-to-end HTTP request duration in seconds",
    labelnames=["method", "endpoint"],
    buckets=REQUEST_DURATION_BUCKETS,
)

REQUESTS_TOTAL = Counter(
    "incident_assistant_requests_total",
    "Total number of HTTP requests",
    labelnames=["method", "endpoint", "status"],
)

# ---------------------------------------------------------------------------
# AI provider metrics (populated by ChatModelClient)
# ---------------------------------------------------------------------------

AI_CALLS_TOTAL = Counter(
    "incident_assistant_ai_calls_total",
    "Total number of AI provider calls",
    labelnames=["provider", "operation", "status"],
)

AI_CALL_DURATION = Histogram(
    "incident_assistant_ai_call_duration_seconds",
    "Duration of individual AI provider calls in seconds",
    labelnames=["provider", "operation"],
    buckets=AI_CALL_DURATION_BUCKETS,
)

# ---------------------------------------------------------------------------
# Incident metrics
# ---------------------------------------------------------------------------

INCIDENTS_CREATED_TOTAL = Counter(
    "incident_assistant_incidents_created_total",
    "Total number of incidents created",
    labelnames=["severity", "classified_by"],
)

INCIDENTS_STORED = Gauge(
    "incident_assistant_incidents_stored",
    "Number of incidents currently held in the in-memory store",
)

# ---------------------------------------------------------------------------
# Health / info metrics
# ---------------------------------------------------------------------------

AI_PROVIDER_HEALTHY = Gauge(
    "incident_assistant_ai_provider_healthy",
    "Whether the configured AI provider answered its health check (1=healthy, 0=unhealthy)",
)

APP_INFO = Info(
    "incident_assistant",
    "Incident assistant build information",
)
