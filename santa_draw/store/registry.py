from __future__ import annotations

import re
import secrets
from typing import Dict, Hashable, List, Mapping, Optional, Tuple

from loguru import logger

from santa_draw.core.collation import collation_key
from santa_draw.store.models import ConnectionIdentity, Delivery, ParticipantView, SessionRecord

MAX_NAME_LENGTH = 40

_ADDRESS_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ValidationError(ValueError):
    pass


def new_session_token() -> str:
    return secrets.token_hex(16)


def is_valid_address(address: str) -> bool:
    return bool(_ADDRESS_RE.match(address))


class IdentityRegistry:
    """Who is taking part, how to reach them, and whether they were drawn.

    Live connections map to a mutable ``ConnectionIdentity``; session tokens map
    to a ``SessionRecord`` that outlives the connection. Callers serialize
    mutations (see ``GameFlow``); nothing in here awaits.
    """

    def __init__(self) -> None:
        self._connections: Dict[Hashable, ConnectionIdentity] = {}
        self._sessions: Dict[str, SessionRecord] = {}

    def connect(
        self,
        connection: Hashable,
        session_token: Optional[str] = None,
    ) -> Tuple[ConnectionIdentity, Optional[SessionRecord]]:
        record = self._sessions.get(session_token) if session_token else None
        if record is None:
            identity = ConnectionIdentity(session_token=session_token or new_session_token())
        else:
            identity = ConnectionIdentity(
                session_token=session_token,
                display_name=record.display_name,
                contact_address=record.contact_address,
            )
        self._connections[connection] = identity
        return identity, record

    def disconnect(self, connection: Hashable) -> Optional[ConnectionIdentity]:
        return self._connections.pop(connection, None)

    def identity_for(self, connection: Hashable) -> Optional[ConnectionIdentity]:
        return self._connections.get(connection)

    def resolve_session(self, session_token: str) -> Optional[SessionRecord]:
        return self._sessions.get(session_token)

    def connections_for(self, session_token: str) -> List[Hashable]:
        return [
            connection
            for connection, identity in self._connections.items()
            if identity.session_token == session_token
        ]

    def _is_active(self, identity: ConnectionIdentity) -> bool:
        if not identity.display_name:
            return False
        record = self._sessions.get(identity.session_token)
        return record is None or not record.is_drawn

    def is_name_taken(self, name: str, ignore_token: Optional[str] = None) -> bool:
        wanted = name.lower()
        for identity in self._connections.values():
            if identity.session_token == ignore_token or not self._is_active(identity):
                continue
            if identity.display_name.lower() == wanted:
                return True
        for token, record in self._sessions.items():
            if token == ignore_token or record.is_drawn:
                continue
            if record.display_name.lower() == wanted:
                return True
        return False

    def claim_name(self, connection: Hashable, name: str, contact_address: str) -> ConnectionIdentity:
        identity = self._connections.get(connection)
        if identity is None:
            raise ValidationError("Invalid action.")

        name = name.strip()
        contact_address = contact_address.strip()

        if not name:
            raise ValidationError("Name must not be empty.")
        if len(name) > MAX_NAME_LENGTH:
            raise ValidationError(f"Name is too long (max. {MAX_NAME_LENGTH}).")
        if not contact_address:
            raise ValidationError("Email address must not be empty.")
        if not is_valid_address(contact_address):
            raise ValidationError("Invalid email address.")

        record = self._sessions.get(identity.session_token)
        if record is not None and record.is_drawn:
            raise ValidationError("You have already been drawn.")
        # A participant renaming themselves must not collide with their own claim.
        if self.is_name_taken(name, ignore_token=identity.session_token):
            raise ValidationError("Name is already taken. Please choose another one.")

        if record is None:
            record = SessionRecord(display_name=name, contact_address=contact_address)
            self._sessions[identity.session_token] = record
        else:
            record.display_name = name
            record.contact_address = contact_address

        # Other tabs sharing the token follow the claim.
        for other in self._connections.values():
            if other.session_token == identity.session_token:
                other.display_name = name
                other.contact_address = contact_address

        logger.bind(session=identity.session_token[:8]).info("Name claimed: {name}", name=name)
        return identity

    def remove_name(self, name: str) -> List[Hashable]:
        wanted = name.strip().lower()
        if not wanted:
            return []

        reset_connections = []
        for connection, identity in self._connections.items():
            if identity.display_name and identity.display_name.lower() == wanted and self._is_active(identity):
                identity.clear()
                reset_connections.append(connection)

        removed_tokens = [
            token
            for token, record in self._sessions.items()
            if not record.is_drawn and record.display_name.lower() == wanted
        ]
        for token in removed_tokens:
            del self._sessions[token]

        if reset_connections or removed_tokens:
            logger.info(
                "Name removed: {name} ({connections} live, {sessions} sessions)",
                name=name.strip(),
                connections=len(reset_connections),
                sessions=len(removed_tokens),
            )
        return reset_connections

    def _collect_active(self) -> Dict[str, ParticipantView]:
        participants: Dict[str, ParticipantView] = {}
        for identity in self._connections.values():
            if not self._is_active(identity) or not identity.contact_address:
                continue
            key = identity.display_name.lower()
            participants.setdefault(
                key, ParticipantView(identity.display_name, identity.contact_address, online=True)
            )
        for record in self._sessions.values():
            if record.is_drawn:
                continue
            key = record.display_name.lower()
            if key not in participants:
                participants[key] = ParticipantView(record.display_name, record.contact_address, online=False)
        return participants

    def list_all_participants(self) -> List[ParticipantView]:
        views = list(self._collect_active().values())
        views.sort(key=lambda view: collation_key(view.name))
        return views

    def list_eligible_names(self) -> List[str]:
        return [view.name for view in self.list_all_participants()]

    def commit_assignments(self, mapping: Mapping[str, str]) -> List[Delivery]:
        by_name = {giver.lower(): receiver for giver, receiver in mapping.items()}
        deliveries = []
        for token, record in self._sessions.items():
            if record.is_drawn:
                continue
            target = by_name.get(record.display_name.lower())
            if target is None:
                continue
            record.assigned_target = target
            deliveries.append(
                Delivery(
                    session_token=token,
                    name=record.display_name,
                    contact_address=record.contact_address,
                    target=target,
                )
            )
        return deliveries
