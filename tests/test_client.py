import asyncio

import pytest

from buzzboard import events as ev
from buzzboard.client import GameClient
from buzzboard.identity import IdentityStore
from buzzboard.state import Team


@pytest.fixture()
def make_client(session, fake_sio, memory_store):
    def factory(identity=None, persist=False):
        return GameClient(
            session,
            "http://relay:4000",
            memory_store,
            identity=identity,
            persist=persist,
            sio=fake_sio,
            reconnect_delay=0.01,
            watch_interval=0.05,
            debounce=0.02,
        )

    return factory


@pytest.mark.asyncio
async def test_hydrate_merges_snapshot(session, fake_sio, make_client, memory_store):
    memory_store.snapshot = {"currentRound": 2, "completedQuestions": ["c1-q1"], "teams": [{"id": "t1", "name": "A"}]}
    client = make_client()
    await client.hydrate()
    assert client.state.current_round == 2
    assert client.state.has_team("t1")
    assert client.state.is_completed("c1", "q1")


@pytest.mark.asyncio
async def test_start_rejoins_remembered_team(session, fake_sio, tmp_path, make_client):
    identity = IdentityStore(tmp_path / "team.json")
    identity.save({"id": "t1", "name": "Alpha", "score": 40, "avatarId": "star"})
    client = make_client(identity=identity)
    await client.start()
    try:
        assert fake_sio.names() == ["team:rejoin"]
        payload = fake_sio.emitted[0][1]
        assert payload["id"] == "t1"
        assert payload["avatarId"] == "star"
        assert client.state.team("t1").score == 40
    finally:
        await client.stop()
    assert not fake_sio.connected


@pytest.mark.asyncio
async def test_start_without_identity_sends_nothing(session, fake_sio, make_client):
    client = make_client()
    await client.start()
    await client.stop()
    assert fake_sio.emitted == []


@pytest.mark.asyncio
async def test_connect_failure_is_reported(session, fake_sio, make_client):
    fake_sio.fail_connect = True
    client = make_client()
    assert await client.connect() is False
    assert not client.connected


@pytest.mark.asyncio
async def test_publish_offline_is_dropped(session, fake_sio, make_client):
    client = make_client()
    assert await client.publish(ev.BuzzerCleared()) is False
    assert fake_sio.emitted == []


@pytest.mark.asyncio
async def test_act_applies_locally_even_offline(session, fake_sio, make_client):
    client = make_client()
    assert await client.act(ev.RoundChanged(round=3))
    assert client.state.current_round == 3
    assert fake_sio.emitted == []


@pytest.mark.asyncio
async def test_local_only_events_are_not_published(session, fake_sio, make_client):
    client = make_client()
    await client.connect()
    assert await client.publish(ev.StreakIncremented(team_id="t1")) is False
    assert fake_sio.emitted == []


@pytest.mark.asyncio
async def test_notifications_reach_the_session(session, fake_sio, make_client):
    client = make_client()
    await fake_sio.deliver("team:registered", {"id": "t1", "name": "A", "socketId": "x"})
    await fake_sio.deliver("buzzer:pressed", {"teamId": "t1", "teamName": "A"})
    assert client.state.buzzer_team == "t1"
    assert session.version == 2


@pytest.mark.asyncio
async def test_malformed_notification_is_ignored(session, fake_sio, make_client):
    client = make_client()
    assert await client.receive("question:completed", {"categoryId": "c1"}) is False
    assert session.version == 0


@pytest.mark.asyncio
async def test_reset_all_reloads_from_store(session, fake_sio, tmp_path, make_client):
    identity = IdentityStore(tmp_path / "team.json")
    identity.save({"id": "t1", "name": "A"})
    client = make_client(identity=identity)
    session.dispatch(ev.TeamRegistered(team=Team(id="t1", name="A")))
    session.dispatch(ev.RoundChanged(round=2))
    await fake_sio.deliver("game:reset_all")
    assert client.state.current_round == 1
    assert client.state.teams == ()
    assert identity.load() is None


@pytest.mark.asyncio
async def test_removal_of_own_team_forgets_identity(session, fake_sio, tmp_path, make_client):
    identity = IdentityStore(tmp_path / "team.json")
    identity.save({"id": "t1", "name": "A"})
    make_client(identity=identity)
    session.dispatch(ev.TeamRegistered(team=Team(id="t1", name="A")))
    await fake_sio.deliver("team:removed", {"teamId": "t2"})
    assert identity.load() is not None
    await fake_sio.deliver("team:removed", {"teamId": "t1"})
    assert identity.load() is None


@pytest.mark.asyncio
async def test_watcher_reconnects_after_drop(session, fake_sio, tmp_path, make_client):
    identity = IdentityStore(tmp_path / "team.json")
    identity.save({"id": "t1", "name": "A"})
    client = make_client(identity=identity)
    await client.start()
    try:
        await fake_sio.drop()
        await asyncio.sleep(0.1)
        assert client.connected
        assert fake_sio.connect_calls >= 2
        assert fake_sio.names().count("team:rejoin") >= 2
    finally:
        await client.stop()


@pytest.mark.asyncio
async def test_coming_to_foreground_forces_reconnect(session, fake_sio, make_client):
    client = make_client()
    client.watch_interval = 10
    client.visible = False
    await client.start()
    try:
        fake_sio.connected = False
        client.set_visible(True)
        await asyncio.sleep(0.05)
        assert fake_sio.connect_calls == 2
    finally:
        await client.stop()


@pytest.mark.asyncio
async def test_persisting_client_writes_snapshot(session, fake_sio, make_client, memory_store):
    client = make_client(persist=True)
    await client.act(ev.TeamRegistered(team=Team(id="t1", name="A")))
    await client.act(ev.QuestionCompleted(category_id="c1", question_id="q1"))
    await asyncio.sleep(0.1)
    assert len(memory_store.saved) == 1
    assert memory_store.saved[0]["completedQuestions"] == ["c1-q1"]
    await client.stop()


@pytest.mark.asyncio
async def test_listener_errors_do_not_break_dispatch(session, fake_sio, make_client):
    def broken(state, event):
        raise RuntimeError("boom")

    session.subscribe(broken)
    client = make_client()
    assert await client.receive("round:changed", {"round": 2})
    assert client.state.current_round == 2


@pytest.mark.asyncio
async def test_watcher_survives_unexpected_connect_error(session, fake_sio, make_client):
    client = make_client()
    await client.start()
    try:
        fake_sio.connect_errors.append(RuntimeError("transport exploded"))
        await fake_sio.drop()
        await asyncio.sleep(0.1)
        assert client._watcher is not None and not client._watcher.done()
        assert client.connected
        assert fake_sio.connect_calls >= 3
    finally:
        await client.stop()
