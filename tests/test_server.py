import asyncio
import dataclasses

import pytest
from aiohttp import WSMsgType

from santa_draw.core.config import Settings, SmtpSettings
from santa_draw.web.app import create_app
from santa_draw.web.handlers import FLOW_KEY


@pytest.fixture
def settings(tmp_path):
    static_dir = tmp_path / "public"
    static_dir.mkdir()
    (static_dir / "index.html").write_text("<h1>Secret Santa</h1>", encoding="utf-8")
    return Settings(
        host="127.0.0.1",
        port=0,
        log_level="DEBUG",
        log_path=str(tmp_path / "santa.log"),
        constraints_path=str(tmp_path / "constraints.txt"),
        results_path=str(tmp_path / "results.txt"),
        static_dir=str(static_dir),
        heartbeat_interval=30.0,
        smtp=SmtpSettings(host="localhost", port=587, user="", password="", sender=""),
    )


@pytest.fixture
async def client(aiohttp_client, settings):
    return await aiohttp_client(create_app(settings))


async def test_claim_and_observe(client):
    observer = await client.ws_connect("/ws?role=observer")
    assert (await observer.receive_json())["participants"] == []

    participant = await client.ws_connect("/ws")
    await participant.send_json({"type": "set_name", "name": "Alice", "contactAddress": "alice@example.com"})

    confirmation = await participant.receive_json()
    assert confirmation["type"] == "name_ok"
    assert confirmation["name"] == "Alice"
    assert confirmation["sessionToken"]

    update = await observer.receive_json()
    assert update["participantsWithEmail"] == [
        {"name": "Alice", "contactAddress": "alice@example.com", "online": True}
    ]

    await participant.close()
    await observer.close()


async def test_malformed_frames_keep_connection_open(client):
    participant = await client.ws_connect("/")
    await participant.send_str("{not json")
    await participant.send_json({"type": "mystery"})
    await participant.send_json({"type": "set_name", "name": "x" * 41, "contactAddress": "x@example.com"})

    reply = await participant.receive_json()
    assert reply == {"type": "error", "message": "Name is too long (max. 40)."}
    await participant.close()


async def test_full_draw_and_session_restore(client):
    observer = await client.ws_connect("/ws?role=master")
    await observer.receive_json()

    tokens = {}
    sockets = {}
    for name in ("Alice", "Bob"):
        ws = await client.ws_connect("/ws")
        await ws.send_json({"type": "set_name", "name": name, "contactAddress": f"{name.lower()}@example.com"})
        tokens[name] = (await ws.receive_json())["sessionToken"]
        sockets[name] = ws
        await observer.receive_json()

    await observer.send_json({"type": "start_draw"})

    assert await sockets["Alice"].receive_json() == {"type": "your_target", "target": "Bob"}
    assert await sockets["Bob"].receive_json() == {"type": "your_target", "target": "Alice"}
    assert await observer.receive_json() == {"type": "draw_complete"}

    response = await client.get(f"/api/session/{tokens['Alice']}")
    assert response.status == 200
    assert await response.json() == {"name": "Alice", "contactAddress": "alice@example.com", "target": "Bob"}

    await sockets["Alice"].close()
    restored = await client.ws_connect(f"/ws?session={tokens['Alice']}")
    assert await restored.receive_json() == {"type": "your_target", "target": "Bob"}

    for ws in (restored, sockets["Bob"], observer):
        await ws.close()
    await client.app[FLOW_KEY].dispatcher.drain()


async def test_session_lookup_unknown_token(client):
    response = await client.get("/api/session/does-not-exist")
    assert response.status == 404
    assert await response.json() == {"error": "Session not found"}


async def test_index_served_without_upgrade(client):
    response = await client.get("/")
    assert response.status == 200
    assert "Secret Santa" in await response.text()


async def test_deeply_nested_frame_keeps_connection_open(client):
    participant = await client.ws_connect("/ws")
    await participant.send_str("[" * 100000)
    await participant.send_json({"type": "set_name", "name": "x" * 41, "contactAddress": "x@example.com"})

    reply = await participant.receive_json(timeout=5)
    assert reply == {"type": "error", "message": "Name is too long (max. 40)."}
    await participant.close()


async def next_text(ws):
    while True:
        msg = await ws.receive(timeout=5)
        if msg.type == WSMsgType.TEXT:
            return msg.json()
        assert msg.type in (WSMsgType.PING, WSMsgType.PONG)


async def test_silent_participant_is_pruned_by_heartbeat(aiohttp_client, settings):
    client = await aiohttp_client(create_app(dataclasses.replace(settings, heartbeat_interval=0.2)))
    observer = await client.ws_connect("/ws?role=observer")
    assert (await observer.receive_json(timeout=5))["participants"] == []

    participant = await client.ws_connect("/ws", autoping=False)
    await participant.send_json({"type": "set_name", "name": "Alice", "contactAddress": "alice@example.com"})
    assert (await next_text(participant))["type"] == "name_ok"

    async def wait_for_offline():
        while True:
            frame = await observer.receive_json()
            views = frame.get("participantsWithEmail") or [{}]
            if frame["type"] == "participants" and views[0].get("online") is False:
                return frame

    frame = await asyncio.wait_for(wait_for_offline(), timeout=5)

    assert frame["participants"] == ["Alice"]
    await participant.close()
    await observer.close()
