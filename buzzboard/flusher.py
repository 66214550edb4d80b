"""Ecriture différée du snapshot (une seule écriture après une rafale de mutations)."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger("buzzboard.flusher")


class SnapshotFlusher:
    """Chaque ``touch`` réarme l'échéance ; l'écriture part quand le jeu se calme.

    ``store`` est un Snapshot Store synchrone (fichier ou HTTP), appelé dans un
    thread pour ne pas bloquer la boucle asyncio.
    """

    def __init__(
        self,
        store: Any,
        snapshot_fn: Callable[[], Dict[str, Any]],
        delay: float = 0.5,
    ) -> None:
        self.store = store
        self.snapshot_fn = snapshot_fn
        self.delay = delay
        self.task: Optional[asyncio.Task[Any]] = None
        self.saves = 0

    @property
    def pending(self) -> bool:
        return self.task is not None and not self.task.done()

    def touch(self) -> None:
        self._cancel()

        async def flush_later() -> None:
            await asyncio.sleep(self.delay)
            await self._save()

        self.task = asyncio.create_task(flush_later())

    async def flush(self) -> bool:
        await self.close()
        return await self._save()

    async def close(self) -> None:
        if self.task and not self.task.done():
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
        self.task = None

    def _cancel(self) -> None:
        if self.task and not self.task.done():
            self.task.cancel()
        self.task = None

    async def _save(self) -> bool:
        snapshot = self.snapshot_fn()
        ok = await asyncio.to_thread(self.store.save, snapshot)
        if ok:
            self.saves += 1
        else:
            logger.warning("Snapshot non enregistré, l'état reste en mémoire jusqu'au prochain essai")
        return bool(ok)
