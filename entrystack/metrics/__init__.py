# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metrics: single source of truth for all metric objects.
HTTP metrics are updated by middleware, business metrics by services only.
"""
from prometheus_client import Counter, Histogram

# ── HTTP Metrics ──
REQUEST_COUNT = Counter(
    "entrystack_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "entrystack_request_duration_seconds",
    "Request latency in seconds",
    ["method", "endpoint"],
)
HTTP_ERRORS = Counter(
    "entrystack_http_errors_total",
    "Total HTTP error responses",
    ["method", "endpoint", "status"],
)

# ── Business Metrics ──
RISK_ANALYSES = Counter(
    "entrystack_risk_analyses_total",
    "Single-event risk analyses by resulting level",
    ["level"],
)
RISK_FINDINGS = Counter(
    "entrystack_risk_findings_total",
    "Risk findings emitted",
    ["type", "severity"],
)
RISK_OVERVIEWS = Counter(
    "entrystack_risk_overviews_total",
    "Batch risk overview requests",
)
EMAILS_GENERATED = Counter(
    "entrystack_emails_generated_total",
    "Email contents rendered",
    ["type"],
)
