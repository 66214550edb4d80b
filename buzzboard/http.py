"""Endpoints HTTP (FastAPI) : snapshot de la partie, équipes et catalogue."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Union

from fastapi import Body, FastAPI
from fastapi.responses import JSONResponse

from .questions import load_question_bank
from .store import FileSnapshotStore

logger = logging.getLogger("buzzboard.http")


def create_http_app(store: FileSnapshotStore, questions_path: Union[str, Path]) -> FastAPI:
    app = FastAPI(title="buzzboard")
    app.state.store = store

    @app.get("/healthz")
    async def healthz() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    # Snapshot Store : lecture, remplacement complet, remise à zéro
    @app.get("/api/state")
    async def get_state() -> JSONResponse:
        return JSONResponse(store.load())

    @app.put("/api/state")
    @app.post("/api/state")
    async def put_state(snapshot: Dict[str, Any] = Body(...)) -> JSONResponse:
        if not store.save(snapshot):
            return JSONResponse({"error": "Failed to write state"}, status_code=500)
        return JSONResponse({"success": True})

    @app.delete("/api/state")
    async def clear_state() -> JSONResponse:
        if not store.clear():
            return JSONResponse({"error": "Failed to clear state"}, status_code=500)
        logger.info("Snapshot remis à zéro")
        return JSONResponse({"success": True})

    @app.get("/api/teams")
    async def get_teams() -> JSONResponse:
        return JSONResponse(store.load()["teams"])

    @app.get("/api/questions")
    async def get_questions() -> JSONResponse:
        return JSONResponse(load_question_bank(questions_path).raw)

    return app
