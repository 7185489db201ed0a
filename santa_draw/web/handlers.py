from __future__ import annotations

import weakref
from pathlib import Path
from typing import Optional

from aiohttp import WSCloseCode, WSMsgType, web
from loguru import logger

from santa_draw.core.config import Settings
from santa_draw.services.game_flow import ROLE_OBSERVER, GameFlow, resolve_role
from santa_draw.web import protocol
from santa_draw.web.protocol import MalformedMessage, decode_message
from santa_draw.web.utils import log_handler_exception

SESSION_COOKIE = "sessionId"

FLOW_KEY = web.AppKey("flow", GameFlow)
SETTINGS_KEY = web.AppKey("settings", Settings)
SOCKETS_KEY = web.AppKey("sockets", weakref.WeakSet)

routes = web.RouteTableDef()


def _requested_session(request: web.Request) -> Optional[str]:
    return request.cookies.get(SESSION_COOKIE) or request.query.get("session") or None


async def _serve_websocket(request: web.Request, ws: web.WebSocketResponse) -> web.WebSocketResponse:
    flow = request.app[FLOW_KEY]
    role = resolve_role(request.query.get("role"))

    await ws.prepare(request)
    request.app[SOCKETS_KEY].add(ws)

    session = None
    if role == ROLE_OBSERVER:
        await flow.connect_observer(ws)
    else:
        identity = await flow.connect_participant(ws, _requested_session(request))
        session = identity.session_token[:8]

    log = logger.bind(role=role, session=session)
    log.info("Connection opened from {remote}", remote=request.remote)

    try:
        async for msg in ws:
            if msg.type == WSMsgType.TEXT:
                try:
                    message = decode_message(msg.data)
                except MalformedMessage as exc:
                    log.debug("Dropped frame: {error}", error=str(exc))
                    continue
                try:
                    await flow.handle(ws, role, message)
                except Exception as exc:
                    log_handler_exception(type(message).__name__, role, session, exc)
                    await flow.hub.send(ws, protocol.error("Something went wrong. Please try again later."))
            elif msg.type == WSMsgType.ERROR:
                log.warning("Connection error: {error}", error=str(ws.exception()))
            else:
                log.debug("Dropped {type} frame", type=msg.type.name)
    finally:
        await flow.disconnect(ws)
        log.info("Connection closed")

    return ws


def _new_websocket(request: web.Request) -> web.WebSocketResponse:
    return web.WebSocketResponse(heartbeat=request.app[SETTINGS_KEY].heartbeat_interval)


@routes.get("/ws")
async def websocket_handler(request: web.Request) -> web.WebSocketResponse:
    return await _serve_websocket(request, _new_websocket(request))


@routes.get("/")
async def index_handler(request: web.Request) -> web.StreamResponse:
    ws = _new_websocket(request)
    if ws.can_prepare(request).ok:
        return await _serve_websocket(request, ws)

    index = Path(request.app[SETTINGS_KEY].static_dir) / "index.html"
    if index.is_file():
        return web.FileResponse(index)
    raise web.HTTPNotFound()


@routes.get("/api/session/{session_id}")
async def session_handler(request: web.Request) -> web.Response:
    record = await request.app[FLOW_KEY].lookup_session(request.match_info["session_id"])
    if record is None:
        return web.json_response({"error": "Session not found"}, status=404)
    return web.json_response(
        {
            "name": record.display_name,
            "contactAddress": record.contact_address,
            "target": record.assigned_target,
        }
    )


async def close_sockets(app: web.Application) -> None:
    for ws in set(app[SOCKETS_KEY]):
        await ws.close(code=WSCloseCode.GOING_AWAY, message=b"Server shutdown")


async def drain_deliveries(app: web.Application) -> None:
    await app[FLOW_KEY].dispatcher.drain()
