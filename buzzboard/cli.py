"""Ligne de commande : serveur (relais + API), miroir, animateur et buzzer en console."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

import uvicorn

from .client import GameClient
from .config import Config
from .events import Event
from .identity import IdentityStore
from .logs import setup_logging
from .paths import IDENTITY_PATH, QUESTIONS_PATH
from .questions import load_question_bank
from .roles import BuzzerController, HostController
from .session import GameSession
from .state import GameState, standings
from .store import HttpSnapshotStore

logger = logging.getLogger("buzzboard.cli")

MIRROR_ROLES = ("screen", "scoreboard")

# nom -> (action, nb d'arguments min, max)
HOST_COMMANDS: Dict[str, Tuple[Callable[..., Awaitable[Any]], int, int]] = {
    "round": (lambda h, n: h.change_round(int(n)), 1, 1),
    "select": (lambda h, c, q: h.select_question(c, q), 2, 2),
    "clear": (lambda h: h.clear_screen(), 0, 0),
    "reveal": (lambda h: h.reveal_question(), 0, 0),
    "hide": (lambda h: h.hide_question(), 0, 0),
    "answer": (lambda h: h.reveal_answer(), 0, 0),
    "hide-answer": (lambda h: h.hide_answer(), 0, 0),
    "special": (lambda h: h.reveal_special(), 0, 0),
    "hide-special": (lambda h: h.hide_special(), 0, 0),
    "buzzer-clear": (lambda h: h.clear_buzzer(), 0, 0),
    "buzzer-reset": (lambda h: h.reset_buzzer(), 0, 0),
    "correct": (lambda h: h.mark_correct(), 0, 0),
    "incorrect": (lambda h: h.mark_incorrect(), 0, 0),
    "complete": (lambda h, team=None: h.mark_complete(team), 0, 1),
    "uncomplete": (lambda h, c=None, q=None: h.unmark_complete(c, q), 0, 2),
    "reassign": (lambda h, c, q, team=None: h.reassign(c, q, team), 2, 3),
    "score": (lambda h, t, s: h.edit_score(t, int(s)), 2, 2),
    "remove": (lambda h, t: h.remove_team(t), 1, 1),
    "play": (lambda h: h.play_audio(), 0, 0),
    "pause": (lambda h: h.pause_audio(), 0, 0),
    "seek": (lambda h, s: h.seek_audio(float(s)), 1, 1),
    "reset": (lambda h: h.reset_all(), 0, 0),
}

QUIT = ("quit", "exit")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="buzzboard", description="Relais temps réel pour quiz à buzzers")
    parser.add_argument("--log-level", default=Config.LOG_LEVEL)
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="démarre le relais Socket.IO et l'API HTTP")
    serve.add_argument("--host", default=Config.HOST)
    serve.add_argument("--port", type=int, default=Config.PORT)

    url = f"http://localhost:{Config.PORT}"

    mirror = sub.add_parser("mirror", help="miroir de la partie qui journalise chaque changement")
    mirror.add_argument("--url", default=url)
    mirror.add_argument("--role", choices=MIRROR_ROLES, default="screen")
    mirror.add_argument("--no-persist", action="store_true", help="ne pas écrire le snapshot")

    host = sub.add_parser("host", help="console de l'animateur")
    host.add_argument("--url", default=url)
    host.add_argument("--questions", type=Path, default=QUESTIONS_PATH)

    buzzer = sub.add_parser("buzzer", help="buzzer d'une équipe (Entrée pour buzzer)")
    buzzer.add_argument("--url", default=url)
    buzzer.add_argument("--name", help="nom de l'équipe à inscrire si aucune n'est mémorisée")
    buzzer.add_argument("--identity", type=Path, default=IDENTITY_PATH)
    return parser


def serve(host: str, port: int, log_level: str) -> None:
    logger.info("Démarrage du relais buzzboard sur http://%s:%d", host, port)
    uvicorn.run("buzzboard.main:app", host=host, port=port, log_level=log_level.lower())


def describe(state: GameState, role: str) -> str:
    if role == "scoreboard":
        return " | ".join(f"{t.name}: {t.score}" for t in standings(state)) or "(aucune équipe)"
    buzzer = state.buzzer_team if state.buzzer_locked else "-"
    return (
        f"manche={state.current_round} buzzer={buzzer} "
        f"équipes={len(state.teams)} terminées={len(state.completed_questions)}"
    )


def build_client(
    url: str,
    persist: bool,
    identity: Optional[IdentityStore] = None,
    sio: Any = None,
) -> GameClient:
    store = HttpSnapshotStore(url, Config.HTTP_TIMEOUT_SEC)
    return GameClient(GameSession(), url, store, identity=identity, persist=persist, sio=sio)


async def run_host_command(host: HostController, line: str) -> bool:
    """Exécute une ligne de la console animateur ; False pour quitter."""
    parts = line.split()
    if not parts:
        return True
    name, args = parts[0], parts[1:]
    if name in QUIT:
        return False
    entry = HOST_COMMANDS.get(name)
    if entry is None:
        logger.warning("Commande inconnue: %s (commandes: %s)", name, ", ".join(HOST_COMMANDS))
        return True
    action, low, high = entry
    if not low <= len(args) <= high:
        logger.warning("%s attend entre %d et %d argument(s)", name, low, high)
        return True
    try:
        await action(host, *args)
    except ValueError as e:
        logger.warning("Argument invalide pour %s: %s", name, e)
    return True


async def run_buzzer_command(buzzer: BuzzerController, line: str) -> bool:
    """Ligne vide ou ``buzz`` : buzzer ; ``register NOM``, ``team ID``, ``forget``, ``quit``."""
    parts = line.split(maxsplit=1)
    name = parts[0] if parts else "buzz"
    arg = parts[1] if len(parts) > 1 else ""
    if name in QUIT:
        return False
    if name == "buzz":
        if not await buzzer.press():
            logger.info("Buzzer indisponible (verrouillé ou pas d'équipe)")
    elif name == "register":
        if await buzzer.register(arg) is None:
            logger.warning("Nom d'équipe vide")
    elif name == "team":
        if await buzzer.select_existing(arg.strip()) is None:
            logger.warning("Equipe inconnue: %s", arg)
    elif name == "forget":
        buzzer.forget()
    else:
        logger.warning("Commande inconnue: %s", name)
    return True


async def console(handler: Callable[[str], Awaitable[bool]]) -> None:
    # input() bloque : lu dans un thread pour laisser tourner la boucle asyncio
    while True:
        line = await asyncio.to_thread(sys.stdin.readline)
        if not line:
            break
        if not await handler(line.strip()):
            break


async def mirror(url: str, role: str, persist: bool) -> None:
    client = build_client(url, persist)
    session = client.session

    def on_change(state: GameState, event: Event) -> None:
        logger.info("[v%d] %s -> %s", session.version, type(event).__name__, describe(state, role))

    session.subscribe(on_change)
    await client.start()
    try:
        await asyncio.Event().wait()
    finally:
        await client.stop()


async def host_console(url: str, questions_path: Union[str, Path]) -> None:
    client = build_client(url, persist=True)
    host = HostController(client, load_question_bank(questions_path))
    await client.start()
    try:
        await console(lambda line: run_host_command(host, line))
    finally:
        await client.stop()


async def buzzer_console(
    url: str,
    name: Optional[str] = None,
    identity_path: Union[str, Path] = IDENTITY_PATH,
    sio: Any = None,
) -> BuzzerController:
    client = build_client(url, persist=False, identity=IdentityStore(identity_path), sio=sio)
    buzzer = BuzzerController(client)
    # Le rejoin de l'équipe mémorisée part au connect
    await client.start()
    try:
        if buzzer.team_id is None and name:
            await buzzer.register(name)
        await console(lambda line: run_buzzer_command(buzzer, line))
    finally:
        await client.stop()
    return buzzer


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    if args.command in ("mirror", "host", "buzzer"):
        if args.command == "mirror":
            coro = mirror(args.url, args.role, persist=not args.no_persist)
        elif args.command == "host":
            coro = host_console(args.url, args.questions)
        else:
            coro = buzzer_console(args.url, args.name, args.identity)
        try:
            asyncio.run(coro)
        except KeyboardInterrupt:
            logger.info("Arrêt de %s", args.command)
        return
    host = getattr(args, "host", Config.HOST)
    port = getattr(args, "port", Config.PORT)
    serve(host, port, args.log_level)


if __name__ == "__main__":
    main()
