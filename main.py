from __future__ import annotations

import asyncio
import sys

from aiohttp import web
from loguru import logger

from santa_draw.core.config import Settings, load_settings
from santa_draw.core.logging import setup_logging
from santa_draw.web.app import create_app


def log_startup(settings: Settings) -> None:
    logger.info("server started")
    logger.info("Listening   - http://{host}:{port}", host=settings.host, port=settings.port)
    logger.info("Constraints - {path} (GIVER, RECEIVER per line, '#' for comments)", path=settings.constraints_path)
    logger.info("Results     - {path}", path=settings.results_path)
    logger.info("Heartbeat   - {interval}s", interval=settings.heartbeat_interval)
    if settings.smtp.enabled:
        logger.info("Mail        - Enabled via {host}:{port}", host=settings.smtp.host, port=settings.smtp.port)
    else:
        logger.warning("Mail        - Disabled (set SMTP_USER and SMTP_PASSWORD)")


async def main() -> None:
    settings = load_settings()
    setup_logging(settings.log_level, settings.log_path)

    logger.info("server starting...")
    app = create_app(settings)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, settings.host, settings.port)
    await site.start()
    log_startup(settings)

    try:
        await asyncio.Event().wait()
    finally:
        logger.info("server stopping...")
        await runner.cleanup()
        logger.info("server stopped")


if __name__ == "__main__":
    if sys.platform != "win32" and not getattr(asyncio, "debug", False):
        import uvloop

        uvloop.install()

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
