from __future__ import annotations

from uuid import uuid4

from fastapi.testclient import TestClient

from tests.conftest import auth, mint_token


def _create_announcement(client: TestClient, compliance_token: str, **overrides) -> dict:
    body = {
        "title": "New Data Privacy Regulations",
        "content": "Updated GDPR guidance takes effect next month.",
        "category": "Privacy",
        "type": "news",
        "priority": "high",
    }
    body.update(overrides)
    resp = client.post("/v1/announcements", json=body, headers=auth(compliance_token))
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_read_flow(client: TestClient, compliance_token: str) -> None:
    announcement = _create_announcement(client, compliance_token)
    assert announcement["author"] == "test-compliance"
    assert announcement["status"] == "published"
    learner = auth(mint_token(username="emp-1"))

    listed = client.get("/v1/announcements", headers=learner).json()
    assert [a["id"] for a in listed] == [announcement["id"]]
    assert listed[0]["read_by_me"] is False

    first = client.post(f"/v1/announcements/{announcement['id']}/read", headers=learner)
    assert first.status_code == 200
    again = client.post(f"/v1/announcements/{announcement['id']}/read", headers=learner)
    assert again.status_code == 200
    assert again.json() == first.json()

    detail = client.get(f"/v1/announcements/{announcement['id']}", headers=learner).json()
    assert detail["read_by_me"] is True

    reads = client.get(
        f"/v1/announcements/{announcement['id']}/reads", headers=auth(compliance_token)
    )
    assert [r["user_id"] for r in reads.json()] == ["emp-1"]
    assert client.get(
        f"/v1/announcements/{announcement['id']}/reads", headers=learner
    ).status_code == 403


def test_audience_gates_learners(client: TestClient, compliance_token: str) -> None:
    gated = _create_announcement(
        client,
        compliance_token,
        title="Finance close",
        audience={"everyone": False, "departments": ["Finance"]},
    )
    sales = auth(mint_token(username="s", department="Sales"))
    finance = auth(mint_token(username="f", department="Finance"))

    assert client.get("/v1/announcements", headers=sales).json() == []
    assert client.get(f"/v1/announcements/{gated['id']}", headers=sales).status_code == 403
    assert client.post(
        f"/v1/announcements/{gated['id']}/read", headers=sales
    ).status_code == 403
    assert client.get(f"/v1/announcements/{gated['id']}", headers=finance).status_code == 200


def test_archived_announcement_hidden_from_learners(
    client: TestClient, compliance_token: str
) -> None:
    announcement = _create_announcement(client, compliance_token)
    resp = client.put(
        f"/v1/announcements/{announcement['id']}",
        json={"status": "archived", "priority": "low"},
        headers=auth(compliance_token),
    )
    assert resp.status_code == 200
    assert resp.json()["priority"] == "low"

    learner = auth(mint_token())
    assert client.get("/v1/announcements", headers=learner).json() == []
    assert client.get(
        f"/v1/announcements/{announcement['id']}", headers=learner
    ).status_code == 404

    archived = client.get(
        "/v1/announcements", params={"status": "archived"}, headers=auth(compliance_token)
    ).json()
    assert [a["id"] for a in archived] == [announcement["id"]]


def test_list_filters(client: TestClient, compliance_token: str) -> None:
    _create_announcement(client, compliance_token, title="A", type="reminder", category="Training")
    _create_announcement(client, compliance_token, title="B", type="news", priority="low")
    learner = auth(mint_token())

    def titles(params: dict) -> list[str]:
        resp = client.get("/v1/announcements", params=params, headers=learner)
        return sorted(a["title"] for a in resp.json())

    assert titles({}) == ["A", "B"]
    assert titles({"type": "reminder"}) == ["A"]
    assert titles({"category": "training"}) == ["A"]
    assert titles({"priority": "low"}) == ["B"]


def test_create_validation(client: TestClient, compliance_token: str) -> None:
    headers = auth(compliance_token)
    base = {"title": "T", "content": "C", "category": "General"}
    restricted = client.post(
        "/v1/announcements",
        json={**base, "audience": {"everyone": False}},
        headers=headers,
    )
    assert restricted.status_code == 422
    assert "audience" in restricted.json()["detail"]
    assert client.post(
        "/v1/announcements", json={**base, "type": "blog"}, headers=headers
    ).status_code == 422
    assert client.post(
        "/v1/announcements", json={**base, "expires_at": 1}, headers=headers
    ).status_code == 422


def test_update_rejects_null_and_unknown_id(client: TestClient, compliance_token: str) -> None:
    announcement = _create_announcement(client, compliance_token)
    headers = auth(compliance_token)
    assert client.put(
        f"/v1/announcements/{announcement['id']}", json={"title": None}, headers=headers
    ).status_code == 422
    assert client.put(
        f"/v1/announcements/{uuid4()}", json={"title": "x"}, headers=headers
    ).status_code == 404
    assert client.post(
        f"/v1/announcements/{uuid4()}/read", headers=auth(mint_token())
    ).status_code == 404
