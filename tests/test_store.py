import json

import pytest
import requests

from buzzboard.identity import IdentityStore
from buzzboard.store import FileSnapshotStore, HttpSnapshotStore, default_snapshot, normalize_snapshot


def test_missing_file_reads_default(file_store):
    assert file_store.load() == default_snapshot()


def test_save_creates_missing_directory(file_store):
    snapshot = {"currentRound": 2, "completedQuestions": ["c1-q1"], "teams": [{"id": "t1", "name": "A"}]}
    assert file_store.save(snapshot)
    assert file_store.path.exists()
    assert file_store.load()["completedQuestions"] == ["c1-q1"]


def test_corrupt_file_reads_default(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")
    assert FileSnapshotStore(path).load() == default_snapshot()


def test_clear_writes_default(file_store):
    file_store.save({"currentRound": 3, "teams": [{"id": "t1"}]})
    assert file_store.clear()
    assert json.loads(file_store.path.read_text(encoding="utf-8")) == default_snapshot()


def test_socket_ids_are_never_persisted(file_store):
    file_store.save({"teams": [{"id": "t1", "name": "A", "socketId": "sid-1"}]})
    assert file_store.load()["teams"] == [{"id": "t1", "name": "A"}]


def test_normalize_buzzer_fields():
    assert normalize_snapshot({"buzzerLocked": True, "buzzerTeam": "t1"})["buzzerTeam"] == "t1"
    broken = normalize_snapshot({"buzzerLocked": True, "buzzerTeam": None})
    assert broken["buzzerLocked"] is False
    assert broken["buzzerTeam"] is None
    assert normalize_snapshot({"currentRound": -4})["currentRound"] == 1
    assert normalize_snapshot(["not", "a", "dict"]) == default_snapshot()


class FakeResponse:
    def __init__(self, payload=None, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"status {self.status}")

    def json(self):
        return self.payload


def test_http_store_round_trip(monkeypatch):
    calls = []

    def fake_put(url, json=None, timeout=None):
        calls.append(("put", url, json))
        return FakeResponse({"success": True})

    def fake_get(url, timeout=None):
        calls.append(("get", url, None))
        return FakeResponse({"currentRound": 2, "teams": [], "completedQuestions": []})

    monkeypatch.setattr(requests, "put", fake_put)
    monkeypatch.setattr(requests, "get", fake_get)

    store = HttpSnapshotStore("http://relay:4000/")
    assert store.save({"currentRound": 2})
    assert store.load()["currentRound"] == 2
    assert [c[1] for c in calls] == ["http://relay:4000/api/state"] * 2


def test_http_store_failures_are_soft(monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("down")

    monkeypatch.setattr(requests, "get", boom)
    monkeypatch.setattr(requests, "put", boom)
    monkeypatch.setattr(requests, "delete", lambda *a, **k: FakeResponse(status=500))

    store = HttpSnapshotStore("http://relay:4000")
    assert store.load() == default_snapshot()
    assert store.save({"currentRound": 1}) is False
    assert store.clear() is False


@pytest.fixture()
def identity(tmp_path):
    return IdentityStore(tmp_path / "device" / "team.json")


def test_identity_round_trip(identity):
    assert identity.load() is None
    identity.save({"id": "team-1", "name": "Alpha", "avatarId": "star"})
    assert identity.load()["avatarId"] == "star"
    identity.forget()
    assert identity.load() is None


def test_identity_unreadable_is_forgotten(identity):
    identity.path.parent.mkdir(parents=True)
    identity.path.write_text("{", encoding="utf-8")
    assert identity.load() is None
    assert not identity.path.exists()
