"""Configuration lue depuis l'environnement."""

from __future__ import annotations

import os


class Config:
    HOST = os.environ.get("BUZZBOARD_HOST", "0.0.0.0")
    PORT = int(os.environ.get("BUZZBOARD_PORT", "4000"))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "info")
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")
    # Regroupement des écritures du snapshot (ms)
    SNAPSHOT_DEBOUNCE_MS = int(os.environ.get("SNAPSHOT_DEBOUNCE_MS", "500"))
    # Délai fixe entre deux tentatives de reconnexion (ms), tentatives illimitées
    RECONNECT_DELAY_MS = int(os.environ.get("RECONNECT_DELAY_MS", "100"))
    # Période du surveillant de connexion (ms)
    WATCH_INTERVAL_MS = int(os.environ.get("WATCH_INTERVAL_MS", "1000"))
    HTTP_TIMEOUT_SEC = float(os.environ.get("HTTP_TIMEOUT_SEC", "10"))

    @classmethod
    def cors_origins(cls) -> str | list[str]:
        if cls.CORS_ORIGINS.strip() == "*":
            return "*"
        return [o.strip() for o in cls.CORS_ORIGINS.split(",") if o.strip()]
