from __future__ import annotations

import logging

from dealer_finance.ports.email_sender import EmailSender

logger = logging.getLogger(__name__)


class LoggingEmailSender(EmailSender):
    """Development sender: logs the message instead of delivering it."""

    def send(self, to: str, subject: str, body: str) -> None:
        logger.info("Email", extra={"to": to, "subject": subject, "body_length": len(body)})
