"""Client du relais : miroir local, réconciliation au démarrage et reconnexion.

Au démarrage un client (animateur, écran, tableau des scores, buzzer) :

1. charge le Snapshot Store et le fusionne dans son miroir sans écraser ce
   qu'il connaît déjà ;
2. se connecte au relais ;
3. s'il a une équipe mémorisée, émet ``team:rejoin`` à chaque connexion
   (initiale ou reconnexion).

Les mutations locales sont séparées en deux étapes : ``reduce_locally``
(mise à jour optimiste immédiate) puis ``publish`` (envoi au relais, sans
file d'attente si la connexion est tombée).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

import socketio
from socketio.exceptions import ConnectionError as RelayConnectionError
from socketio.exceptions import SocketIOError

from .config import Config
from .events import INBOUND, Event, GameResetAll, SnapshotLoaded, TeamRejoined, TeamRemoved, parse_event
from .flusher import SnapshotFlusher
from .identity import IdentityStore
from .session import GameSession
from .state import GameState, Team

logger = logging.getLogger("buzzboard.client")


def create_socket_client() -> socketio.AsyncClient:
    # La reconnexion est gérée par GameClient.watch (délai fixe, sans limite)
    return socketio.AsyncClient(reconnection=False)


class GameClient:
    def __init__(
        self,
        session: GameSession,
        url: str,
        store: Any,
        identity: Optional[IdentityStore] = None,
        persist: bool = False,
        sio: Optional[socketio.AsyncClient] = None,
        reconnect_delay: float = Config.RECONNECT_DELAY_MS / 1000,
        watch_interval: float = Config.WATCH_INTERVAL_MS / 1000,
        debounce: float = Config.SNAPSHOT_DEBOUNCE_MS / 1000,
    ) -> None:
        self.session = session
        self.url = url
        self.store = store
        self.identity = identity
        self.sio = sio or create_socket_client()
        self.reconnect_delay = reconnect_delay
        self.watch_interval = watch_interval
        self.visible = True
        self.flusher: Optional[SnapshotFlusher] = None
        if persist:
            self.flusher = SnapshotFlusher(store, lambda: self.session.state.snapshot(), debounce)
        self._closing = False
        self._wake = asyncio.Event()
        self._watcher: Optional[asyncio.Task[Any]] = None
        self._register_handlers()
        self.session.subscribe(self._on_change)

    @property
    def state(self) -> GameState:
        return self.session.state

    @property
    def connected(self) -> bool:
        return bool(self.sio.connected)

    # Cycle de vie

    async def start(self) -> None:
        self._closing = False
        await self.hydrate()
        await self.connect()
        if self._watcher is None or self._watcher.done():
            self._watcher = asyncio.create_task(self.watch())

    async def stop(self) -> None:
        self._closing = True
        self._wake.set()
        if self._watcher and not self._watcher.done():
            self._watcher.cancel()
            try:
                await self._watcher
            except asyncio.CancelledError:
                pass
        self._watcher = None
        if self.flusher:
            await self.flusher.flush()
        if self.connected:
            await self.sio.disconnect()

    async def hydrate(self) -> None:
        snapshot = await asyncio.to_thread(self.store.load)
        if self.session.dispatch(SnapshotLoaded(snapshot=snapshot)):
            logger.info(
                "Etat restauré: manche %d, %d équipe(s), %d case(s) terminée(s)",
                self.state.current_round,
                len(self.state.teams),
                len(self.state.completed_questions),
            )

    async def connect(self) -> bool:
        try:
            await self.sio.connect(self.url, transports=["websocket", "polling"])
        except RelayConnectionError as e:
            logger.warning("Connexion au relais impossible (%s): %s", self.url, e)
            return False
        return True

    # Surveillance de la connexion

    def set_visible(self, visible: bool) -> None:
        """Premier plan / arrière-plan ; revenir au premier plan force une reconnexion."""
        self.visible = visible
        if visible:
            self._wake.set()

    async def watch(self) -> None:
        while not self._closing:
            # Au premier plan et hors ligne : délai court et fixe
            delay = self.reconnect_delay if self.visible and not self.connected else self.watch_interval
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass
            self._wake.clear()
            if self._closing:
                break
            try:
                await self.check_connection()
            except Exception:
                # Le surveillant ne doit jamais s'arrêter : on retente au prochain tour
                logger.exception("Erreur inattendue pendant la reconnexion")

    async def check_connection(self) -> bool:
        if self.connected:
            return True
        logger.info("Déconnecté du relais, tentative de reconnexion")
        return await self.connect()

    # Mutations

    def reduce_locally(self, event: Event) -> bool:
        return self.session.dispatch(event)

    async def publish(self, event: Event) -> bool:
        if event.command is None:
            return False
        if not self.connected:
            logger.warning("Hors ligne, %s non envoyé", event.command)
            return False
        return await self._send(event)

    async def _send(self, event: Event) -> bool:
        try:
            await self.sio.emit(event.command, event.payload())
        except SocketIOError as e:
            logger.warning("Envoi de %s impossible: %s", event.command, e)
            return False
        return True

    async def act(self, event: Event) -> bool:
        changed = self.reduce_locally(event)
        await self.publish(event)
        return changed

    # Réception

    async def receive(self, name: str, data: Any = None) -> bool:
        event = parse_event(name, data)
        if event is None:
            logger.debug("Evénement ignoré: %s %r", name, data)
            return False
        if isinstance(event, GameResetAll):
            await self.reload()
            return True
        changed = self.session.dispatch(event)
        if isinstance(event, TeamRemoved):
            self._forget_if_own(event.team_id)
        return changed

    async def reload(self) -> None:
        """Rechargement complet après un reset global : défauts puis snapshot (vidé)."""
        logger.info("Reset global reçu, rechargement de l'état")
        if self.flusher:
            await self.flusher.close()
        self.session.dispatch(GameResetAll())
        if self.identity:
            self.identity.forget()
        await self.hydrate()

    async def _on_connect(self) -> None:
        logger.info("Connecté au relais %s", self.url)
        saved = self.identity.load() if self.identity else None
        team = Team.from_payload(saved) if saved else None
        if team is not None:
            logger.info("Retour de l'équipe %s (%s)", team.name, team.id)
            event = TeamRejoined(team=team, avatar_id=str(saved.get("avatarId") or ""))
            self.reduce_locally(event)
            # Le handler connect peut passer avant que `connected` soit vrai
            await self._send(event)

    async def _on_disconnect(self, reason: Any = None) -> None:
        logger.warning("Déconnecté du relais: %s", reason)
        if not self._closing:
            self._wake.set()

    async def _on_connect_error(self, data: Any = None) -> None:
        logger.error("Erreur de connexion au relais: %s", data)

    def _forget_if_own(self, team_id: str) -> None:
        saved = self.identity.load() if self.identity else None
        if saved and saved.get("id") == team_id:
            logger.warning("Notre équipe %s a été retirée de la partie", team_id)
            self.identity.forget()

    def _on_change(self, state: GameState, event: Event) -> None:
        if self.flusher:
            self.flusher.touch()

    def _register_handlers(self) -> None:
        self.sio.on("connect", self._on_connect)
        self.sio.on("disconnect", self._on_disconnect)
        self.sio.on("connect_error", self._on_connect_error)
        for name in INBOUND:
            self.sio.on(name, self._make_handler(name))

    def _make_handler(self, name: str) -> Callable[..., Awaitable[bool]]:
        async def handler(data: Any = None) -> bool:
            return await self.receive(name, data)

        return handler
