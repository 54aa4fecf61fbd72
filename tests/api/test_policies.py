from __future__ import annotations

from uuid import uuid4

from fastapi.testclient import TestClient

from tests.conftest import auth, mint_token


def _create_policy(client: TestClient, compliance_token: str, **overrides) -> dict:
    body = {
        "title": "Code of Conduct",
        "description": "How we treat each other.",
        "category": "Ethics",
        "content": "Be respectful.",
        "version": "2.0",
        "effective_date": "2025-01-01",
        "mandatory": True,
    }
    body.update(overrides)
    resp = client.post("/v1/policies", json=body, headers=auth(compliance_token))
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_acknowledge_flow(client: TestClient, compliance_token: str) -> None:
    policy = _create_policy(client, compliance_token)
    learner = auth(mint_token(username="emp-1"))

    listed = client.get("/v1/policies", headers=learner).json()
    assert listed[0]["acknowledged_by_me"] is False

    resp = client.post(f"/v1/policies/{policy['id']}/acknowledge", headers=learner)
    assert resp.status_code == 201
    assert resp.json()["policy_version"] == "2.0"
    dup = client.post(f"/v1/policies/{policy['id']}/acknowledge", headers=learner)
    assert dup.status_code == 409

    detail = client.get(f"/v1/policies/{policy['id']}", headers=learner).json()
    assert detail["acknowledged_by_me"] is True

    acks = client.get(
        f"/v1/policies/{policy['id']}/acknowledgments", headers=auth(compliance_token)
    )
    assert acks.status_code == 200
    assert [a["user_id"] for a in acks.json()] == ["emp-1"]
    assert client.get(
        f"/v1/policies/{policy['id']}/acknowledgments", headers=learner
    ).status_code == 403


def test_list_filters(client: TestClient, compliance_token: str) -> None:
    _create_policy(client, compliance_token, title="A", category="Ethics")
    b = _create_policy(client, compliance_token, title="B", category="Security", mandatory=False)
    client.put(
        f"/v1/policies/{b['id']}", json={"status": "archived"}, headers=auth(compliance_token)
    )
    learner = auth(mint_token())

    def titles(params: dict) -> list[str]:
        return [p["title"] for p in client.get("/v1/policies", params=params, headers=learner).json()]

    assert titles({"category": "security"}) == ["B"]
    assert titles({"status": "active"}) == ["A"]
    assert titles({"mandatory": "false"}) == ["B"]


def test_archived_policy_cannot_be_acknowledged(
    client: TestClient, compliance_token: str
) -> None:
    policy = _create_policy(client, compliance_token)
    client.put(
        f"/v1/policies/{policy['id']}",
        json={"status": "archived"},
        headers=auth(compliance_token),
    )
    resp = client.post(f"/v1/policies/{policy['id']}/acknowledge", headers=auth(mint_token()))
    assert resp.status_code == 409


def test_policy_validation_and_not_found(client: TestClient, compliance_token: str) -> None:
    headers = auth(compliance_token)
    bad = client.post(
        "/v1/policies",
        json={
            "title": "T",
            "description": "D",
            "category": "C",
            "content": "X",
            "effective_date": "2025-06-01",
            "expiry_date": "2025-01-01",
        },
        headers=headers,
    )
    assert bad.status_code == 422
    assert client.get(f"/v1/policies/{uuid4()}", headers=headers).status_code == 404

    policy = _create_policy(client, compliance_token)
    cleared = client.put(
        f"/v1/policies/{policy['id']}", json={"effective_date": None}, headers=headers
    )
    assert cleared.status_code == 200
    assert cleared.json()["effective_date"] is None
    assert client.put(
        f"/v1/policies/{policy['id']}", json={"title": None}, headers=headers
    ).status_code == 422
