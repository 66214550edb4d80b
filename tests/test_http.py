import pytest
from fastapi.testclient import TestClient

from buzzboard.http import create_http_app
from buzzboard.main import create_app
from buzzboard.relay import Relay
from buzzboard.store import default_snapshot


@pytest.fixture()
def client(file_store, bank_path):
    return TestClient(create_http_app(file_store, bank_path))


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}


def test_state_defaults_when_empty(client):
    assert client.get("/api/state").json() == default_snapshot()


def test_put_then_get_state(client):
    snapshot = {
        "currentRound": 2,
        "completedQuestions": ["c1-q1"],
        "teams": [{"id": "t1", "name": "Alpha", "score": 100, "socketId": "sid"}],
        "buzzerLocked": False,
        "buzzerTeam": None,
    }
    assert client.put("/api/state", json=snapshot).json() == {"success": True}
    state = client.get("/api/state").json()
    assert state["currentRound"] == 2
    assert state["teams"] == [{"id": "t1", "name": "Alpha", "score": 100}]
    assert client.get("/api/teams").json() == state["teams"]


def test_post_is_accepted_like_put(client):
    assert client.post("/api/state", json={"currentRound": 3}).status_code == 200
    assert client.get("/api/state").json()["currentRound"] == 3


def test_delete_resets_state(client):
    client.put("/api/state", json={"currentRound": 3, "teams": [{"id": "t1"}]})
    assert client.delete("/api/state").json() == {"success": True}
    assert client.get("/api/state").json() == default_snapshot()


def test_write_failure_returns_500(client, file_store, monkeypatch):
    monkeypatch.setattr(file_store, "save", lambda snapshot: False)
    resp = client.put("/api/state", json={"currentRound": 1})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to write state"}


def test_questions_served_raw(client):
    data = client.get("/api/questions").json()
    assert data["rounds"][0]["categories"][0]["id"] == "c1"


def test_questions_missing_file(file_store, tmp_path):
    client = TestClient(create_http_app(file_store, tmp_path / "absent.json"))
    assert client.get("/api/questions").json() == {}


def test_combined_app_serves_http(file_store, bank_path):
    app = create_app(file_store, bank_path)
    assert isinstance(app.other_asgi_app.state.relay, Relay)
    client = TestClient(app)
    assert client.get("/api/state").json() == default_snapshot()
