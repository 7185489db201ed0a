from __future__ import annotations

import asyncio
from typing import List, Optional

from loguru import logger

from santa_draw.core.config import Settings
from santa_draw.services.delivery import DeliveryDispatcher, ResultMailer
from santa_draw.services.draw import DrawError, DrawOrchestrator, DrawResult
from santa_draw.store.models import ConnectionIdentity, ParticipantView, SessionRecord
from santa_draw.store.registry import IdentityRegistry, ValidationError
from santa_draw.web import protocol
from santa_draw.web.hub import BroadcastHub

ROLE_OBSERVER = "observer"
ROLE_PARTICIPANT = "participant"
OBSERVER_ROLES = {"observer", "master"}


def resolve_role(raw: Optional[str]) -> str:
    return ROLE_OBSERVER if raw in OBSERVER_ROLES else ROLE_PARTICIPANT


class GameFlow:
    """Runs every protocol command against one registry behind one lock.

    Registry reads and writes happen inside the lock; websocket sends and mail
    dispatch happen after it is released.
    """

    def __init__(
        self,
        registry: IdentityRegistry,
        hub: BroadcastHub,
        dispatcher: DeliveryDispatcher,
        constraints_path: str,
        results_path: str,
    ) -> None:
        self.registry = registry
        self.hub = hub
        self.dispatcher = dispatcher
        self.lock = asyncio.Lock()
        self.orchestrator = DrawOrchestrator(
            registry,
            self.lock,
            hub,
            dispatcher,
            constraints_path=constraints_path,
            results_path=results_path,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "GameFlow":
        return cls(
            IdentityRegistry(),
            BroadcastHub(),
            DeliveryDispatcher(ResultMailer(settings.smtp)),
            constraints_path=settings.constraints_path,
            results_path=settings.results_path,
        )

    async def _snapshot(self) -> List[ParticipantView]:
        async with self.lock:
            return self.registry.list_all_participants()

    async def connect_observer(self, ws) -> None:
        self.hub.add(ws)
        await self.hub.welcome(ws, self._snapshot)

    async def connect_participant(self, ws, session_token: Optional[str] = None) -> ConnectionIdentity:
        async with self.lock:
            identity, record = self.registry.connect(ws, session_token)
            came_online = record is not None and not record.is_drawn

        if record is not None:
            logger.bind(session=identity.session_token[:8]).info("Session restored")
            if record.is_drawn:
                await self.hub.send(ws, protocol.your_target(record.assigned_target))
            else:
                await self.hub.send(ws, protocol.name_ok(record.display_name, identity.session_token))
        if came_online:
            await self.hub.publish_participants(self._snapshot)
        return identity

    async def disconnect(self, ws) -> None:
        if self.hub.discard(ws):
            return
        async with self.lock:
            identity = self.registry.disconnect(ws)
        if identity and identity.display_name:
            await self.hub.publish_participants(self._snapshot)

    async def claim_name(self, ws, name: str, contact_address: str) -> bool:
        async with self.lock:
            try:
                identity = self.registry.claim_name(ws, name, contact_address)
            except ValidationError as exc:
                error = str(exc)
            else:
                error = None

        if error is not None:
            await self.hub.send(ws, protocol.error(error))
            return False

        await self.hub.send(ws, protocol.name_ok(identity.display_name, identity.session_token))
        await self.hub.publish_participants(self._snapshot)
        return True

    async def remove_name(self, name: str) -> None:
        async with self.lock:
            reset_connections = self.registry.remove_name(name)

        for connection in reset_connections:
            await self.hub.send(connection, protocol.reset())
        await self.hub.publish_participants(self._snapshot)

    async def start_draw(self, ws) -> Optional[DrawResult]:
        try:
            return await self.orchestrator.run_draw()
        except DrawError as exc:
            await self.hub.send(ws, protocol.error(str(exc)))
            return None

    async def lookup_session(self, session_token: str) -> Optional[SessionRecord]:
        async with self.lock:
            return self.registry.resolve_session(session_token)

    async def handle(self, ws, role: str, message: protocol.InboundMessage) -> None:
        if isinstance(message, protocol.SetName):
            if role != ROLE_PARTICIPANT:
                await self.hub.send(ws, protocol.error("Invalid action."))
                return
            await self.claim_name(ws, message.name, message.contact_address)
            return

        if role != ROLE_OBSERVER:
            logger.bind(role=role).debug("Ignored privileged command {message}", message=message)
            return

        if isinstance(message, protocol.RemoveName):
            await self.remove_name(message.name)
        elif isinstance(message, protocol.StartDraw):
            await self.start_draw(ws)
