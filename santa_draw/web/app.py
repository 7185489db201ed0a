from __future__ import annotations

import weakref
from pathlib import Path
from typing import Optional

from aiohttp import web

from santa_draw.core.config import Settings
from santa_draw.services.game_flow import GameFlow
from santa_draw.web.handlers import (
    FLOW_KEY,
    SETTINGS_KEY,
    SOCKETS_KEY,
    close_sockets,
    drain_deliveries,
    routes,
)


def create_app(settings: Settings, flow: Optional[GameFlow] = None) -> web.Application:
    app = web.Application()
    app[SETTINGS_KEY] = settings
    app[FLOW_KEY] = flow or GameFlow.from_settings(settings)
    app[SOCKETS_KEY] = weakref.WeakSet()

    app.add_routes(routes)
    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.router.add_static("/static/", static_dir)

    app.on_shutdown.append(close_sockets)
    app.on_cleanup.append(drain_deliveries)
    return app
