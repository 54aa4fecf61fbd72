from __future__ import annotations

from uuid import uuid4

from fastapi.testclient import TestClient

from tests.conftest import auth, mint_token


def _report(client: TestClient, token: str, **overrides) -> dict:
    body = {
        "title": "Phishing email received",
        "description": "An email asked for my VPN password.",
        "category": "security",
        "severity": "high",
        "affected_systems": ["Email", " "],
    }
    body.update(overrides)
    resp = client.post("/v1/incidents", json=body, headers=auth(token))
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_report_and_follow_own_incidents(client: TestClient, compliance_token: str) -> None:
    mine = mint_token(username="emp-1")
    theirs = mint_token(username="emp-2")
    incident = _report(client, mine)
    _report(client, theirs, title="Lost badge", category="operational")

    assert incident["reported_by"] == "emp-1"
    assert incident["status"] == "reported"
    assert incident["affected_systems"] == ["Email"]

    own = client.get("/v1/incidents", headers=auth(mine)).json()
    assert [i["id"] for i in own] == [incident["id"]]
    assert client.get(f"/v1/incidents/{incident['id']}", headers=auth(theirs)).status_code == 403

    everything = client.get("/v1/incidents", headers=auth(compliance_token)).json()
    assert len(everything) == 2
    security = client.get(
        "/v1/incidents", params={"category": "security"}, headers=auth(compliance_token)
    ).json()
    assert [i["id"] for i in security] == [incident["id"]]


def test_investigate_and_resolve(client: TestClient, compliance_token: str) -> None:
    reporter = mint_token(username="emp-1")
    incident = _report(client, reporter)
    url = f"/v1/incidents/{incident['id']}"
    headers = auth(compliance_token)

    assert client.put(url, json={"status": "investigating"}, headers=auth(reporter)).status_code == 403

    investigating = client.put(
        url, json={"status": "investigating", "assigned_to": "Security Team"}, headers=headers
    )
    assert investigating.status_code == 200
    assert investigating.json()["resolved_at"] is None

    missing_resolution = client.put(url, json={"status": "resolved"}, headers=headers)
    assert missing_resolution.status_code == 422

    resolved = client.put(
        url,
        json={
            "status": "closed",
            "resolution": "Sender blocked; users warned.",
            "preventive_measures": ["Phishing refresher", ""],
        },
        headers=headers,
    ).json()
    assert resolved["resolved_at"] is not None
    assert resolved["preventive_measures"] == ["Phishing refresher"]

    assert client.put(url, json={"severity": "low"}, headers=headers).status_code == 409
    detail = client.get(url, headers=auth(reporter)).json()
    assert detail["status"] == "closed"


def test_report_validation(client: TestClient) -> None:
    token = mint_token()
    bad_category = client.post(
        "/v1/incidents",
        json={"title": "T", "description": "D", "category": "gossip"},
        headers=auth(token),
    )
    assert bad_category.status_code == 422
    blank = client.post(
        "/v1/incidents",
        json={"title": "  ", "description": "D", "category": "other"},
        headers=auth(token),
    )
    assert blank.status_code == 422


def test_update_null_and_unknown(client: TestClient, compliance_token: str) -> None:
    incident = _report(client, mint_token())
    headers = auth(compliance_token)
    assert client.put(
        f"/v1/incidents/{incident['id']}", json={"status": None}, headers=headers
    ).status_code == 422
    cleared = client.put(
        f"/v1/incidents/{incident['id']}", json={"assigned_to": None}, headers=headers
    )
    assert cleared.status_code == 200
    assert client.put(
        f"/v1/incidents/{uuid4()}", json={"severity": "low"}, headers=headers
    ).status_code == 404
