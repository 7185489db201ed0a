from __future__ import annotations

import asyncio
import html
from email.message import EmailMessage
from typing import List, Optional, Sequence, Set

import aiosmtplib
from loguru import logger

from santa_draw.core.config import SmtpSettings
from santa_draw.store.models import Delivery

SUBJECT = "Your Secret Santa draw"


class DeliveryFailure(RuntimeError):
    pass


def build_message(sender: str, delivery: Delivery) -> EmailMessage:
    message = EmailMessage()
    message["From"] = sender
    message["To"] = delivery.contact_address
    message["Subject"] = SUBJECT
    message.set_content(
        f"Hello {delivery.name},\n\n"
        f"You are giving a gift to: {delivery.target}\n\n"
        "Have fun choosing it!\n\n"
        "This email was sent automatically by the Secret Santa draw."
    )
    message.add_alternative(
        "<html><body>"
        f"<h2>Hello {html.escape(delivery.name)},</h2>"
        f"<p>You are giving a gift to: <strong>{html.escape(delivery.target)}</strong></p>"
        "<p>Have fun choosing it!</p>"
        "<hr><p><small>This email was sent automatically by the Secret Santa draw.</small></p>"
        "</body></html>",
        subtype="html",
    )
    return message


class ResultMailer:
    def __init__(self, settings: SmtpSettings) -> None:
        self.settings = settings

    @property
    def enabled(self) -> bool:
        return self.settings.enabled

    async def send(self, delivery: Delivery) -> None:
        if not self.enabled:
            raise DeliveryFailure("Mail delivery is not configured.")

        message = build_message(self.settings.sender or self.settings.user, delivery)
        try:
            await aiosmtplib.send(
                message,
                hostname=self.settings.host,
                port=self.settings.port,
                username=self.settings.user,
                password=self.settings.password,
                use_tls=self.settings.port == 465,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            raise DeliveryFailure(str(exc)) from exc


class DeliveryDispatcher:
    """Sends result mails in the background and tallies the outcome.

    ``dispatch`` returns immediately; a failed mail is logged and counted but
    never reported back to the draw that produced it.
    """

    def __init__(self, mailer: ResultMailer) -> None:
        self.mailer = mailer
        self._tasks: Set[asyncio.Task] = set()

    def dispatch(self, deliveries: Sequence[Delivery]) -> Optional[asyncio.Task]:
        if not deliveries:
            return None
        task = asyncio.create_task(self._deliver_all(list(deliveries)))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _deliver_one(self, delivery: Delivery) -> bool:
        try:
            await self.mailer.send(delivery)
        except DeliveryFailure as exc:
            logger.bind(session=delivery.session_token[:8]).warning(
                "Failed to send result mail to {address}: {error}",
                address=delivery.contact_address,
                error=str(exc),
            )
            return False
        logger.bind(session=delivery.session_token[:8]).info(
            "Result mail sent to {address}", address=delivery.contact_address
        )
        return True

    async def _deliver_all(self, deliveries: List[Delivery]) -> int:
        results = await asyncio.gather(
            *(self._deliver_one(delivery) for delivery in deliveries), return_exceptions=True
        )
        for delivery, result in zip(deliveries, results):
            if isinstance(result, BaseException):
                logger.bind(session=delivery.session_token[:8]).opt(exception=result).error(
                    "Unexpected error sending result mail to {address}", address=delivery.contact_address
                )
        sent = sum(1 for result in results if result is True)
        logger.info("{sent} of {total} result mails delivered", sent=sent, total=len(deliveries))
        return sent

    async def drain(self) -> None:
        if self._tasks:
            await asyncio.gather(*self._tasks)
