"""Course statistics endpoint and its cache invalidation."""

from __future__ import annotations

from uuid import UUID

from fastapi.testclient import TestClient

from lms.services.cache import cache_service
from lms.services.report_service import stats_cache_key
from tests.conftest import auth, create_course, mint_token


def _stats(client: TestClient, compliance_token: str, course_id: str) -> dict:
    resp = client.get(f"/v1/courses/{course_id}/stats", headers=auth(compliance_token))
    assert resp.status_code == 200
    return resp.json()


def test_stats_reflect_progress_mutations(
    client: TestClient, compliance_token: str
) -> None:
    course = create_course(client, compliance_token, content={"type": "interactive"})
    cid = course["id"]
    assert _stats(client, compliance_token, cid)["total_learners"] == 0

    finisher = auth(mint_token(username="finisher"))
    client.put(f"/v1/courses/{cid}/progress", json={"progress": 100}, headers=finisher)
    stats = _stats(client, compliance_token, cid)
    assert stats["total_learners"] == 1
    assert stats["completed_learners"] == 1
    assert stats["completion_rate"] == 100.0

    client.post(f"/v1/courses/{cid}/start", headers=auth(mint_token(username="starter")))
    stats = _stats(client, compliance_token, cid)
    assert stats["total_learners"] == 2
    assert stats["completion_rate"] == 50.0
    assert stats["by_status"]["in_progress"]["count"] == 1

    client.post(f"/v1/courses/{cid}/certificate", headers=finisher)
    assert _stats(client, compliance_token, cid)["certificates_issued"] == 1


def test_stats_are_cached_until_invalidated(
    client: TestClient, compliance_token: str
) -> None:
    course = create_course(client, compliance_token, content={"type": "interactive"})
    key = stats_cache_key(UUID(course["id"]))
    _stats(client, compliance_token, course["id"])
    assert key in cache_service._store  # type: ignore[attr-defined]

    client.post(f"/v1/courses/{course['id']}/start", headers=auth(mint_token()))
    assert key not in cache_service._store  # type: ignore[attr-defined]


def test_stats_require_compliance(client: TestClient, compliance_token: str) -> None:
    course = create_course(client, compliance_token)
    resp = client.get(f"/v1/courses/{course['id']}/stats", headers=auth(mint_token()))
    assert resp.status_code == 403
