"""Prometheus metric inventory.

Every metric the service exports is declared here.  Modules import the
one they own and increment it at the point of action; /metrics exposes
the default registry.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP (populated by MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Training lifecycle
# ---------------------------------------------------------------------------

QUIZ_SUBMISSIONS = Counter(
    "quiz_submissions_total",
    "Scored quiz attempts",
    ["result"],  # "passed" or "failed"
)

COURSE_COMPLETIONS = Counter(
    "course_completions_total",
    "Progress records that reached the completed state",
    ["trigger"],  # "quiz", "video" or "interactive"
)

CERTIFICATES_ISSUED = Counter(
    "certificates_issued_total",
    "Certificates created (idempotent re-requests are not counted)",
)

POLICY_ACKNOWLEDGMENTS = Counter(
    "policy_acknowledgments_total",
    "Policy acknowledgments recorded",
)

ANNOUNCEMENT_READS = Counter(
    "announcement_reads_total",
    "First reads of an announcement by a user",
)

INCIDENTS_REPORTED = Counter(
    "incidents_reported_total",
    "Incident reports filed",
    ["severity"],
)

CACHE_OPERATIONS = Counter(
    "cache_operations_total",
    "Cache get operations by result",
    ["operation"],  # "hit" or "miss"
)
