"""Snapshot Store : dernier état persisté, pour réhydrater un client rechargé.

Ce n'est pas un miroir temps réel : les écritures sont regroupées et la
dernière écriture gagne. Les erreurs de lecture/écriture sont journalisées et
traitées comme un simple raté (état par défaut ou état gardé en mémoire).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Union

import requests

from .state import as_int

logger = logging.getLogger("buzzboard.store")


def default_snapshot() -> Dict[str, Any]:
    return {"currentRound": 1, "completedQuestions": [], "teams": []}


def normalize_snapshot(data: Any) -> Dict[str, Any]:
    """Ramène un contenu lu à la forme documentée, avec des valeurs sûres."""
    if not isinstance(data, Mapping):
        return default_snapshot()
    snapshot = default_snapshot()
    round_ = as_int(data.get("currentRound"), 1)
    snapshot["currentRound"] = round_ if round_ >= 1 else 1
    completed = data.get("completedQuestions")
    if isinstance(completed, list):
        snapshot["completedQuestions"] = [k for k in completed if isinstance(k, str)]
    teams = data.get("teams")
    if isinstance(teams, list):
        # Les identifiants de connexion ne sont jamais persistés
        snapshot["teams"] = [
            {k: v for k, v in t.items() if k != "socketId"}
            for t in teams
            if isinstance(t, Mapping) and t.get("id")
        ]
    if "buzzerLocked" in data:
        locked = bool(data.get("buzzerLocked"))
        team = data.get("buzzerTeam")
        snapshot["buzzerLocked"] = locked and isinstance(team, str)
        snapshot["buzzerTeam"] = team if snapshot["buzzerLocked"] else None
    return snapshot


class FileSnapshotStore:
    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return default_snapshot()
        try:
            with open(self.path, encoding="utf-8") as f:
                return normalize_snapshot(json.load(f))
        except (OSError, ValueError) as e:
            logger.error("Erreur lors de la lecture du snapshot %s: %s", self.path, e)
            return default_snapshot()

    def save(self, snapshot: Mapping[str, Any]) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(normalize_snapshot(snapshot), f, indent=2, ensure_ascii=False)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Erreur lors de l'écriture du snapshot %s: %s", self.path, e)
            return False
        logger.debug("Snapshot enregistré dans %s", self.path)
        return True

    def clear(self) -> bool:
        return self.save(default_snapshot())


class HttpSnapshotStore:
    """Même contrat que FileSnapshotStore, via l'API HTTP du serveur."""

    def __init__(self, base_url: str, timeout: float = 10) -> None:
        self.url = base_url.rstrip("/") + "/api/state"
        self.timeout = timeout

    def load(self) -> Dict[str, Any]:
        try:
            resp = requests.get(self.url, timeout=self.timeout)
            resp.raise_for_status()
            return normalize_snapshot(resp.json())
        except (requests.RequestException, ValueError) as e:
            logger.error("Erreur lors du chargement du snapshot: %s", e)
            return default_snapshot()

    def save(self, snapshot: Mapping[str, Any]) -> bool:
        try:
            resp = requests.put(self.url, json=dict(snapshot), timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.error("Erreur lors de l'enregistrement du snapshot: %s", e)
            return False
        return True

    def clear(self) -> bool:
        try:
            resp = requests.delete(self.url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.error("Erreur lors de la remise à zéro du snapshot: %s", e)
            return False
        return True
