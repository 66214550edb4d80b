"""Equipe mémorisée sur l'appareil du buzzer, pour rejoindre après un rechargement."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

logger = logging.getLogger("buzzboard.identity")


class IdentityStore:
    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def load(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Equipe mémorisée illisible (%s), on l'oublie: %s", self.path, e)
            self.forget()
            return None
        if not isinstance(data, dict) or not data.get("id"):
            return None
        return data

    def save(self, team: Mapping[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(dict(team), f, ensure_ascii=False)
        except OSError as e:
            logger.error("Impossible de mémoriser l'équipe: %s", e)

    def forget(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("Impossible d'oublier l'équipe: %s", e)
