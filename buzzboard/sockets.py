"""Initialisation Socket.IO asynchrone."""

from __future__ import annotations

from typing import List, Union

import socketio


def create_sio(cors_allowed_origins: Union[str, List[str]] = "*") -> socketio.AsyncServer:
    # Async Server pour ASGI
    return socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=cors_allowed_origins)
