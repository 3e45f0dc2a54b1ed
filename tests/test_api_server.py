"""
API Server Smoke Tests

The deployed app exposes service metadata and mounts the engine router.
"""

from fastapi.testclient import TestClient

from api_server import API_VERSION, app

client = TestClient(app)


def test_root():
    body = client.get("/").json()
    assert body["status"] == "operational"
    assert body["engine_version"] == "reintroduction_engine_v1"


def test_health():
    assert client.get("/health").json() == {"status": "healthy", "version": API_VERSION}


def test_version_lists_features():
    assert "next-action" in client.get("/version").json()["features"]


def test_router_mounted():
    response = client.post("/api/v1/reintroduction/next-action", json={
        "state": {
            "userId": "user-1",
            "startDate": "2024-01-01T00:00:00Z",
            "completedTests": [],
            "phase": "testing",
        },
        "now": "2024-01-01T00:00:00Z",
    })
    assert response.status_code == 200
    assert response.json()["result"]["currentGroup"] == "fructose"
