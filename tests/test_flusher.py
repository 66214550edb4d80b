import asyncio

import pytest

from buzzboard.flusher import SnapshotFlusher


@pytest.mark.asyncio
async def test_burst_of_touches_writes_once(memory_store):
    counter = {"n": 0}

    def snapshot():
        return {"currentRound": 1, "completedQuestions": [], "teams": [], "n": counter["n"]}

    flusher = SnapshotFlusher(memory_store, snapshot, delay=0.05)
    for i in range(5):
        counter["n"] = i
        flusher.touch()
    assert flusher.pending
    await asyncio.sleep(0.2)
    assert flusher.saves == 1
    assert memory_store.saved[-1]["n"] == 4


@pytest.mark.asyncio
async def test_flush_writes_immediately(memory_store):
    flusher = SnapshotFlusher(memory_store, lambda: {"currentRound": 2}, delay=10)
    flusher.touch()
    assert await flusher.flush()
    assert not flusher.pending
    assert memory_store.saved == [{"currentRound": 2}]


@pytest.mark.asyncio
async def test_close_drops_pending_write(memory_store):
    flusher = SnapshotFlusher(memory_store, lambda: {"currentRound": 2}, delay=0.05)
    flusher.touch()
    await flusher.close()
    await asyncio.sleep(0.1)
    assert memory_store.saved == []


@pytest.mark.asyncio
async def test_failed_write_is_reported(memory_store):
    memory_store.fail = True
    flusher = SnapshotFlusher(memory_store, lambda: {"currentRound": 1}, delay=0)
    assert await flusher.flush() is False
    assert flusher.saves == 0
