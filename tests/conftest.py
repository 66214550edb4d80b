import json
from typing import Any, Dict, List, Optional, Tuple

import pytest
from socketio.exceptions import ConnectionError as RelayConnectionError

from buzzboard.questions import QuestionBank
from buzzboard.session import GameSession
from buzzboard.store import FileSnapshotStore


BANK: Dict[str, Any] = {
    "rounds": [
        {
            "roundNumber": 1,
            "name": "Round 1",
            "categories": [
                {
                    "id": "c1",
                    "name": "Science",
                    "questions": [
                        {
                            "id": "q1",
                            "points": 100,
                            "type": "regular",
                            "question": {"type": "text", "content": "Q1?", "mediaUrl": None},
                            "answer": {"type": "text", "content": "A1", "mediaUrl": None},
                        },
                        {
                            "id": "q2",
                            "points": 200,
                            "type": "special",
                            "specialType": "doublePoint",
                            "question": {"type": "text", "content": "Q2?", "mediaUrl": None},
                            "answer": {"type": "text", "content": "A2", "mediaUrl": None},
                        },
                        {
                            "id": "q3",
                            "points": 300,
                            "type": "special",
                            "specialType": "textOnly",
                            "specialConfig": {"title": "Bonus"},
                            "question": {"type": "image", "content": "Q3?", "mediaUrl": "/img/q3.png"},
                            "answer": {"type": "text", "content": "A3"},
                        },
                    ],
                }
            ],
        },
        {
            "roundNumber": 2,
            "categories": [
                {
                    "id": "c9",
                    "name": "Music",
                    "questions": [
                        {
                            "id": "q1",
                            "points": 400,
                            "type": "regular",
                            "question": {"type": "audio", "content": "Name it", "mediaUrl": "/audio/1.mp3"},
                            "answer": {"type": "text", "content": "Song"},
                        }
                    ],
                }
            ],
        },
    ],
    "avatars": [
        {"id": "trophy", "imageUrl": "/avatars/trophy.png"},
        {"id": "star", "imageUrl": "/avatars/star.png"},
    ],
}


class FakeSocketClient:
    """Remplace socketio.AsyncClient : enregistre les émissions, livre les événements."""

    def __init__(self) -> None:
        self.connected = False
        self.handlers: Dict[str, Any] = {}
        self.emitted: List[Tuple[str, Any]] = []
        self.connect_calls = 0
        self.fail_connect = False
        # Exceptions levées, une par tentative, avant de réussir
        self.connect_errors: List[Exception] = []

    def on(self, event: str, handler: Any = None) -> None:
        self.handlers[event] = handler

    async def connect(self, url: str, **kwargs: Any) -> None:
        self.connect_calls += 1
        if self.connect_errors:
            raise self.connect_errors.pop(0)
        if self.fail_connect:
            raise RelayConnectionError("refused")
        self.connected = True
        await self.handlers["connect"]()

    async def disconnect(self) -> None:
        self.connected = False
        await self.handlers["disconnect"]("client disconnect")

    async def drop(self) -> None:
        """Coupure réseau vue par le client."""
        self.connected = False
        await self.handlers["disconnect"]("transport close")

    async def emit(self, event: str, data: Any = None) -> None:
        self.emitted.append((event, data))

    async def deliver(self, event: str, data: Any = None) -> Any:
        handler = self.handlers[event]
        if data is None:
            return await handler()
        return await handler(data)

    def names(self) -> List[str]:
        return [name for name, _ in self.emitted]


class FakeServer:
    """Remplace socketio.AsyncServer pour le relais."""

    def __init__(self) -> None:
        self.handlers: Dict[str, Any] = {}
        self.emitted: List[Tuple[str, Any, Optional[str]]] = []

    def on(self, event: str, handler: Any = None) -> None:
        self.handlers[event] = handler

    async def emit(self, event: str, data: Any = None, skip_sid: Optional[str] = None, **kwargs: Any) -> None:
        self.emitted.append((event, data, skip_sid))


class MemoryStore:
    def __init__(self, snapshot: Optional[Dict[str, Any]] = None) -> None:
        self.snapshot = snapshot or {"currentRound": 1, "completedQuestions": [], "teams": []}
        self.saved: List[Dict[str, Any]] = []
        self.cleared = 0
        self.fail = False

    def load(self) -> Dict[str, Any]:
        return json.loads(json.dumps(self.snapshot))

    def save(self, snapshot: Dict[str, Any]) -> bool:
        if self.fail:
            return False
        self.saved.append(snapshot)
        self.snapshot = snapshot
        return True

    def clear(self) -> bool:
        if self.fail:
            return False
        self.cleared += 1
        self.snapshot = {"currentRound": 1, "completedQuestions": [], "teams": []}
        return True


@pytest.fixture()
def bank() -> QuestionBank:
    return QuestionBank.from_dict(BANK)


@pytest.fixture()
def bank_path(tmp_path):
    path = tmp_path / "questions.json"
    path.write_text(json.dumps(BANK), encoding="utf-8")
    return path


@pytest.fixture()
def session() -> GameSession:
    return GameSession()


@pytest.fixture()
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def file_store(tmp_path) -> FileSnapshotStore:
    return FileSnapshotStore(tmp_path / "data" / "state.json")


@pytest.fixture()
def fake_sio() -> FakeSocketClient:
    return FakeSocketClient()


@pytest.fixture()
def fake_server() -> FakeServer:
    return FakeServer()
