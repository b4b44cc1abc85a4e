import time

import pytest
from fastapi.testclient import TestClient

from echelon_api.server.app_factory import create_app

from tests.fakes import SAMPLE_AGENTS, SAMPLE_REPORT, make_gateway, routed_client


@pytest.fixture
def client(settings):
    advisory = routed_client(agents=SAMPLE_AGENTS, report=SAMPLE_REPORT)
    app = create_app(settings, gateway=make_gateway(advisory))
    with TestClient(app) as test_client:
        yield test_client


def _poll_until_finished(client, simulation_id, attempts=500):
    for _ in range(attempts):
        data = client.get(f"/api/simulation/{simulation_id}").json()["data"]
        if data["status"] in ("COMPLETED", "FAILED"):
            return data
        time.sleep(0.01)
    raise AssertionError(f"simulation {simulation_id} did not finish")


def test_create_and_poll_to_completion(client):
    response = client.post(
        "/api/simulation/create",
        json={"idea": "Coffee kiosk", "region": "Lisbon", "population": "30000", "duration": 6, "seed": 3},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    simulation_id = body["data"]["simulationId"]

    data = _poll_until_finished(client, simulation_id)

    assert data["id"] == simulation_id
    assert data["status"] == "COMPLETED"
    assert data["progress"] == 100
    assert data["population"] == 30000
    assert data["marketState"]["maxTicks"] == 6
    assert data["report"]["verdict"] == "Go"
    assert data["agents"][0]["strategyStyle"] == "Neighbourhood loyalty"
    assert data["createdAt"] and data["completedAt"]


def test_progress_is_never_reported_above_99_while_running(client):
    simulation_id = client.post(
        "/api/simulation/create", json={"idea": "Bakery", "region": "Porto", "duration": 3}
    ).json()["data"]["simulationId"]

    for _ in range(500):
        data = client.get(f"/api/simulation/{simulation_id}").json()["data"]
        if data["status"] != "COMPLETED":
            assert data["progress"] <= 99
        else:
            assert data["progress"] == 100
            break
        time.sleep(0.01)


@pytest.mark.parametrize(
    "payload, message",
    [
        ({"region": "Porto"}, "Idea is required."),
        ({"idea": "Bakery", "region": ""}, "Region is required."),
        (["Bakery", "Porto"], "Invalid request body."),
    ],
)
def test_invalid_bodies_are_rejected_without_creating_jobs(client, payload, message):
    response = client.post("/api/simulation/create", json=payload)

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": {"message": message}}
    assert client.get("/api/simulation").json()["data"] == []


def test_oversized_population_falls_back_to_default(client):
    response = client.post(
        "/api/simulation/create",
        content=b'{"idea": "Bakery", "region": "Porto", "duration": 1, "population": ' + b"9" * 400 + b"}",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 200
    data = _poll_until_finished(client, response.json()["data"]["simulationId"])
    assert data["population"] == 20000


def test_unexpected_errors_render_the_envelope(settings, monkeypatch):
    app = create_app(settings, gateway=make_gateway(routed_client()))
    with TestClient(app, raise_server_exceptions=False) as test_client:
        manager = app.state.simulation_manager

        def explode(params):
            raise RuntimeError("store offline")

        monkeypatch.setattr(manager, "create_simulation", explode)
        response = test_client.post("/api/simulation/create", json={"idea": "Bakery", "region": "Porto"})

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": {"message": "Internal server error"}}


def test_malformed_json_is_rejected(client):
    response = client.post(
        "/api/simulation/create",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Invalid request body."


def test_unknown_simulation_is_404(client):
    response = client.get("/api/simulation/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": {"message": "Simulation not found"}}


def test_listing_returns_summaries(client):
    first = client.post("/api/simulation/create", json={"idea": "A", "region": "X", "duration": 1}).json()
    _poll_until_finished(client, first["data"]["simulationId"])

    listing = client.get("/api/simulation").json()["data"]

    assert [item["id"] for item in listing] == [first["data"]["simulationId"]]
    assert "agents" not in listing[0]
    assert listing[0]["status"] == "COMPLETED"


def test_advisory_status(client):
    data = client.get("/api/advisory/status").json()["data"]

    assert data["provider_model"] == "fake-model"
    assert data["circuit_breaker"]["state"] == "closed"
    assert "tokens" in data["rate_limiter"]


def test_health(client):
    body = client.get("/health").json()

    assert body["status"] == "ok"
    assert body["environment"] == "development"
    assert body["uptime_seconds"] >= 0
