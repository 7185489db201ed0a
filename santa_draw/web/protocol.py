"""Websocket frames exchanged with participants and observers.

Inbound frames decode into a closed set of command types; anything else
raises ``MalformedMessage`` and is dropped by the handler.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Iterable, Union

from santa_draw.store.models import ParticipantView


class MalformedMessage(ValueError):
    pass


@dataclass(frozen=True)
class SetName:
    name: str
    contact_address: str


@dataclass(frozen=True)
class RemoveName:
    name: str


@dataclass(frozen=True)
class StartDraw:
    pass


InboundMessage = Union[SetName, RemoveName, StartDraw]


def decode_message(raw: Union[str, bytes]) -> InboundMessage:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError, RecursionError) as exc:
        raise MalformedMessage("Frame is not valid JSON.") from exc

    if not isinstance(data, dict):
        raise MalformedMessage("Frame must be a JSON object.")

    message_type = data.get("type")
    if message_type == "set_name":
        name = data.get("name")
        contact_address = data.get("contactAddress")
        if not isinstance(name, str) or not isinstance(contact_address, str):
            raise MalformedMessage("set_name requires string name and contactAddress.")
        return SetName(name=name, contact_address=contact_address)
    if message_type == "remove_name":
        name = data.get("name")
        if not isinstance(name, str):
            raise MalformedMessage("remove_name requires a string name.")
        return RemoveName(name=name)
    if message_type == "start_draw":
        return StartDraw()

    raise MalformedMessage(f"Unknown message type: {message_type!r}")


def name_ok(name: str, session_token: str) -> dict:
    return {"type": "name_ok", "name": name, "sessionToken": session_token}


def error(message: str) -> dict:
    return {"type": "error", "message": message}


def reset() -> dict:
    return {"type": "reset"}


def your_target(target: str) -> dict:
    return {"type": "your_target", "target": target}


def participants(views: Iterable[ParticipantView]) -> dict:
    views = list(views)
    return {
        "type": "participants",
        "participants": [view.name for view in views],
        "participantsWithEmail": [view.as_payload() for view in views],
    }


def draw_complete() -> dict:
    return {"type": "draw_complete"}
