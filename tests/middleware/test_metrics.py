"""Tests for the Prometheus metrics middleware.

The default registry is global and counters only go up, so every test
asserts on the delta between a read before and a read after.
"""

from __future__ import annotations

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from lms.middleware.metrics import UNMATCHED_ENDPOINT
from tests.conftest import auth, create_course


def _get_sample(name: str, labels: dict | None = None) -> float:
    value = REGISTRY.get_sample_value(name, labels=labels or {})
    return value if value is not None else 0.0


def test_request_counter_increments(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/health")
    assert _get_sample("http_requests_total", labels) - before >= 1


def test_request_duration_histogram_observes(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health"}
    before = _get_sample("http_request_duration_seconds_count", labels)
    client.get("/health")
    assert _get_sample("http_request_duration_seconds_count", labels) - before >= 1


def test_endpoint_label_uses_route_template(
    client: TestClient, compliance_token: str
) -> None:
    course = create_course(client, compliance_token)
    labels = {
        "method": "GET",
        "endpoint": "/v1/courses/{course_id}",
        "status_code": "200",
    }
    before = _get_sample("http_requests_total", labels)
    client.get(f"/v1/courses/{course['id']}", headers=auth(compliance_token))
    assert _get_sample("http_requests_total", labels) - before == 1


def test_unmatched_paths_share_one_label(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": UNMATCHED_ENDPOINT, "status_code": "404"}
    before = _get_sample("http_requests_total", labels)
    client.get("/no/such/path")
    client.get("/another/missing/path")
    assert _get_sample("http_requests_total", labels) - before == 2


def test_metrics_endpoint_returns_prometheus_format(client: TestClient) -> None:
    client.get("/health")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "http_requests_total" in resp.text
    assert "quiz_submissions_total" in resp.text
    assert "certificates_issued_total" in resp.text


def test_metrics_endpoint_not_self_instrumented(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/metrics", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/metrics")
    client.get("/metrics")
    assert _get_sample("http_requests_total", labels) == before
