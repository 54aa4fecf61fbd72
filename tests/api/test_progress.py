"""GET /v1/progress/me"""

from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import auth, create_course, mint_token


def test_progress_me_empty(client: TestClient, token: str) -> None:
    resp = client.get("/v1/progress/me", headers=auth(token))
    assert resp.status_code == 200
    assert resp.json() == []


def test_progress_me_lists_started_courses(
    client: TestClient, compliance_token: str
) -> None:
    first = create_course(client, compliance_token, title="First")
    second = create_course(client, compliance_token, title="Second")
    learner = auth(mint_token(username="me"))
    other = auth(mint_token(username="not-me"))

    client.post(f"/v1/courses/{first['id']}/start", headers=learner)
    client.put(
        f"/v1/courses/{second['id']}/video-progress",
        json={"watched_seconds": 30, "total_duration_seconds": 60},
        headers=learner,
    )
    client.post(f"/v1/courses/{first['id']}/start", headers=other)

    records = client.get("/v1/progress/me", headers=learner).json()
    assert {r["course_title"] for r in records} == {"First", "Second"}
    assert all(r["user_id"] == "me" for r in records)
    by_title = {r["course_title"]: r for r in records}
    assert by_title["Second"]["progress"] == 25
    assert by_title["Second"]["video_watch_seconds"] == 30
    assert by_title["First"]["version"] == 1


def test_video_progress_rejects_bad_input(
    client: TestClient, compliance_token: str, token: str
) -> None:
    course = create_course(client, compliance_token)
    url = f"/v1/courses/{course['id']}/video-progress"
    zero = client.put(
        url, json={"watched_seconds": 5, "total_duration_seconds": 0}, headers=auth(token)
    )
    assert zero.status_code == 422
    missing = client.put(url, json={"watched_seconds": 5}, headers=auth(token))
    assert missing.status_code == 422


def test_video_progress_rejects_non_finite_numbers(
    client: TestClient, compliance_token: str, token: str
) -> None:
    course = create_course(client, compliance_token)
    url = f"/v1/courses/{course['id']}/video-progress"
    headers = {**auth(token), "Content-Type": "application/json"}
    for body in (
        '{"watched_seconds": Infinity, "total_duration_seconds": 100}',
        '{"watched_seconds": NaN, "total_duration_seconds": 100}',
        '{"watched_seconds": 10, "total_duration_seconds": NaN}',
    ):
        resp = client.put(url, content=body, headers=headers)
        assert resp.status_code == 422, body

    assert client.get("/v1/progress/me", headers=auth(token)).json() == []
