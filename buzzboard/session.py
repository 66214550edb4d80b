"""Conteneur d'état injecté : miroir local, compteur de version et abonnés."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from .events import Event
from .reducer import apply
from .state import GameState

logger = logging.getLogger("buzzboard.session")

Listener = Callable[[GameState, Event], None]


class GameSession:
    """Miroir local de la partie.

    Toutes les mutations passent par ``dispatch`` ; ``version`` augmente à
    chaque changement effectif pour que l'affichage détecte un changement sans
    comparer tout l'état.
    """

    def __init__(self, state: Optional[GameState] = None) -> None:
        self.state = state or GameState()
        self.version = 0
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def dispatch(self, event: Event) -> bool:
        self.state, changed = apply(self.state, event)
        if not changed:
            return False
        self.version += 1
        for listener in list(self._listeners):
            try:
                listener(self.state, event)
            except Exception:
                logger.exception("Erreur dans un abonné pour %s", type(event).__name__)
        return True
