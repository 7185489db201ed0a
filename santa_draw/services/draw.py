from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Union

from loguru import logger

from santa_draw.services.assignment import MAX_ATTEMPTS, generate_assignments
from santa_draw.services.constraints import load_constraints
from santa_draw.services.delivery import DeliveryDispatcher
from santa_draw.services.results import append_results
from santa_draw.store.models import Delivery, ParticipantView
from santa_draw.store.registry import IdentityRegistry
from santa_draw.web import protocol
from santa_draw.web.hub import BroadcastHub


class DrawError(RuntimeError):
    pass


class InsufficientParticipants(DrawError):
    pass


class NoValidAssignment(DrawError):
    pass


@dataclass(frozen=True)
class DrawResult:
    assignments: Dict[str, str]
    deliveries: List[Delivery]
    pushed: int


class DrawOrchestrator:
    def __init__(
        self,
        registry: IdentityRegistry,
        lock: asyncio.Lock,
        hub: BroadcastHub,
        dispatcher: DeliveryDispatcher,
        constraints_path: Union[str, Path],
        results_path: Union[str, Path],
        max_attempts: int = MAX_ATTEMPTS,
    ) -> None:
        self.registry = registry
        self.lock = lock
        self.hub = hub
        self.dispatcher = dispatcher
        self.constraints_path = constraints_path
        self.results_path = results_path
        self.max_attempts = max_attempts

    async def _snapshot(self) -> List[ParticipantView]:
        async with self.lock:
            return self.registry.list_all_participants()

    async def run_draw(self) -> DrawResult:
        async with self.lock:
            names = self.registry.list_eligible_names()
            if len(names) < 2:
                raise InsufficientParticipants("At least 2 participants are required.")

            exclusions = load_constraints(self.constraints_path)
            assignments = generate_assignments(names, exclusions, max_attempts=self.max_attempts)
            if assignments is None:
                logger.bind(participants=len(names), constraints=len(exclusions)).warning(
                    "No valid assignment found"
                )
                raise NoValidAssignment("Could not find a valid assignment. Please try again.")

            deliveries = self.registry.commit_assignments(assignments)
            live_targets = [
                (connection, delivery.target)
                for delivery in deliveries
                for connection in self.registry.connections_for(delivery.session_token)
            ]

        logger.bind(participants=len(assignments)).info("Draw committed")

        pushed = 0
        for connection, target in live_targets:
            if await self.hub.send(connection, protocol.your_target(target)):
                pushed += 1

        self.dispatcher.dispatch(deliveries)
        append_results(self.results_path, assignments)

        await self.hub.notify_draw_complete()
        await self.hub.publish_participants(self._snapshot)

        return DrawResult(assignments=assignments, deliveries=deliveries, pushed=pushed)
