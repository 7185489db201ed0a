from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, List, Set

from loguru import logger

from santa_draw.store.models import ParticipantView
from santa_draw.web import protocol

Snapshot = Callable[[], Awaitable[List[ParticipantView]]]


class BroadcastHub:
    """Observer connections plus best-effort sends to any websocket.

    Participant projections go out through ``publish_participants``/``welcome``,
    which take the snapshot and send it under one lock, so an observer's last
    ``participants`` frame is always the newest one.
    """

    def __init__(self) -> None:
        self.observers: Set = set()
        self._publish_lock = asyncio.Lock()

    def add(self, ws) -> None:
        self.observers.add(ws)

    def discard(self, ws) -> bool:
        if ws in self.observers:
            self.observers.discard(ws)
            return True
        return False

    def is_observer(self, ws) -> bool:
        return ws in self.observers

    async def send(self, ws, payload: dict) -> bool:
        if ws.closed:
            return False
        try:
            await ws.send_json(payload)
        except (ConnectionError, RuntimeError) as exc:
            logger.debug("Skipped send of {type}: {error}", type=payload.get("type"), error=str(exc))
            return False
        return True

    async def broadcast(self, payload: dict) -> int:
        delivered = 0
        for ws in list(self.observers):
            if await self.send(ws, payload):
                delivered += 1
        return delivered

    async def broadcast_participants(self, views: Iterable[ParticipantView]) -> int:
        return await self.broadcast(protocol.participants(views))

    async def publish_participants(self, snapshot: Snapshot) -> int:
        async with self._publish_lock:
            return await self.broadcast_participants(await snapshot())

    async def welcome(self, ws, snapshot: Snapshot) -> bool:
        async with self._publish_lock:
            return await self.send(ws, protocol.participants(await snapshot()))

    async def notify_draw_complete(self) -> int:
        return await self.broadcast(protocol.draw_complete())
