from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class ConnectionIdentity:
    session_token: str
    display_name: Optional[str] = None
    contact_address: Optional[str] = None

    def clear(self) -> None:
        self.display_name = None
        self.contact_address = None


@dataclass
class SessionRecord:
    display_name: str
    contact_address: str
    assigned_target: Optional[str] = None

    @property
    def is_drawn(self) -> bool:
        return self.assigned_target is not None


@dataclass(frozen=True)
class ParticipantView:
    name: str
    contact_address: str
    online: bool

    def as_payload(self) -> dict:
        return {"name": self.name, "contactAddress": self.contact_address, "online": self.online}


@dataclass(frozen=True)
class Delivery:
    session_token: str
    name: str
    contact_address: str
    target: str
