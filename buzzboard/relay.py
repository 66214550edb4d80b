"""Relais Socket.IO : rediffuse chaque commande reçue, sans interpréter le payload.

Deux modes de diffusion selon la commande (voir ``events.ROUTES``) :
``others`` quand l'émetteur a déjà appliqué sa mise à jour optimiste,
``all`` quand plusieurs surfaces doivent converger dans le même ordre
(terminer / rouvrir une case, reset global...).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Set

import socketio

from .events import OTHERS, ROUTES, TEAM_DISCONNECTED

logger = logging.getLogger("buzzboard.relay")

TEAM_COMMANDS = ("team:register", "team:rejoin")


class Relay:
    def __init__(self, sio: socketio.AsyncServer) -> None:
        self.sio = sio
        self.clients: Set[str] = set()
        # sid -> id d'équipe, renseigné par register/rejoin
        self.connections: Dict[str, str] = {}
        self.sequence = 0
        # Une rediffusion se termine avant que la suivante commence : ordre total
        self._lock = asyncio.Lock()

    def register_handlers(self) -> None:
        self.sio.on("connect", self.on_connect)
        self.sio.on("disconnect", self.on_disconnect)
        for command in ROUTES:
            self.sio.on(command, self._make_handler(command))

    async def on_connect(self, sid: str, environ: Dict[str, Any], auth: Any = None) -> None:
        self.clients.add(sid)
        logger.info("Client connecté: %s (%d connectés)", sid, len(self.clients))

    async def on_disconnect(self, sid: str, reason: Any = None) -> None:
        self.clients.discard(sid)
        team_id = self.connections.pop(sid, None)
        logger.info("Client déconnecté: %s (équipe=%s, raison=%s)", sid, team_id, reason)
        if team_id:
            # On prévient, mais l'équipe reste inscrite : seul team:remove la retire
            await self._emit(TEAM_DISCONNECTED, {"teamId": team_id, "socketId": sid})

    async def route(self, sid: str, command: str, data: Any = None) -> None:
        notification, mode = ROUTES[command]
        if command in TEAM_COMMANDS and isinstance(data, dict):
            if data.get("id"):
                self.connections[sid] = str(data["id"])
            data = {**data, "socketId": sid}
        logger.debug("%s de %s -> %s (%s)", command, sid, notification, mode)
        await self._emit(notification, data, skip_sid=sid if mode == OTHERS else None)

    async def _emit(self, event: str, data: Any = None, skip_sid: Optional[str] = None) -> None:
        async with self._lock:
            self.sequence += 1
            await self.sio.emit(event, data, skip_sid=skip_sid)

    def _make_handler(self, command: str) -> Callable[..., Awaitable[None]]:
        async def handler(sid: str, data: Any = None) -> None:
            await self.route(sid, command, data)

        return handler
