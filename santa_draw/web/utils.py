from __future__ import annotations

from loguru import logger


def log_handler_exception(action: str, role: str | None, session: str | None, error: Exception) -> None:
    logger.bind(action=action, role=role, session=session).exception(
        "Handler error: {error}", error=str(error)
    )
