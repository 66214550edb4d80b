"""Application ASGI : relais Socket.IO monté devant l'app FastAPI."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import socketio

from .config import Config
from .http import create_http_app
from .paths import QUESTIONS_PATH, STATE_PATH
from .relay import Relay
from .sockets import create_sio
from .store import FileSnapshotStore


def create_app(
    store: Optional[FileSnapshotStore] = None,
    questions_path: Union[str, Path] = QUESTIONS_PATH,
) -> socketio.ASGIApp:
    sio = create_sio(Config.cors_origins())
    relay = Relay(sio)
    relay.register_handlers()

    fastapi_app = create_http_app(store or FileSnapshotStore(STATE_PATH), questions_path)
    fastapi_app.state.relay = relay
    return socketio.ASGIApp(sio, fastapi_app)


# Application ASGI combinée
app = create_app()
