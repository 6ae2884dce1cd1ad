from fastapi.testclient import TestClient


def test_health_check(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "stripe" in data["providers"]


def test_list_providers(client: TestClient):
    response = client.get("/providers")
    assert response.status_code == 200
    assert "microsoft-teams" in response.json()["providers"]


def test_signup_returns_ingress_url(client: TestClient, settings):
    resp = client.post("/signup", json={"name": "TestCo"})
    assert resp.status_code == 200
    data = resp.json()
    token = data["tenant"]["token"]
    assert data["tenant"]["name"] == "TestCo"
    assert data["ingress_url"] == f"{settings.ingress_base_url}/in/{token}/{{provider}}"


def test_list_events_newest_first(client: TestClient):
    token = client.post("/signup", json={"name": "TestCo"}).json()["tenant"]["token"]
    for sid in ("SM1", "SM2"):
        r = client.post(f"/in/{token}/twilio", json={"MessageSid": sid})
        assert r.status_code == 200

    response = client.get(f"/events/{token}")
    assert response.status_code == 200
    events = response.json()
    assert [e["idempotency_key"] for e in events] == [
        f"{token}:twilio:SM2",
        f"{token}:twilio:SM1",
    ]
    assert all(e["provider"] == "twilio" for e in events)
    assert all(e["key_source"] == "provider" for e in events)

    limited = client.get(f"/events/{token}", params={"limit": 1}).json()
    assert len(limited) == 1


def test_list_events_unknown_token(client: TestClient):
    response = client.get("/events/wrongtoken")
    assert response.status_code == 404
    assert response.json() == {"detail": "Not Found"}
