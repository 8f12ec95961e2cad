"""Turns lifecycle events into transactional emails.

Lives outside the transactional path: it only ever sees events that were
published after a successful commit.
"""

from __future__ import annotations

import logging

from dealer_finance.domain.errors import ExternalFailureError
from dealer_finance.domain.events import EventType, LifecycleEvent
from dealer_finance.ports.email_sender import EmailSender
from dealer_finance.ports.event_publisher import EventPublisher

logger = logging.getLogger(__name__)

BRAND = "Dealer CRM"


class EmailNotificationDispatcher(EventPublisher):
    def __init__(self, sender: EmailSender) -> None:
        self._sender = sender

    def publish(self, event: LifecycleEvent) -> None:
        recipient = event.payload.get("client_email")
        message = self._render(event)
        if not recipient or message is None:
            return

        subject, body = message
        try:
            self._sender.send(recipient, subject, body)
        except Exception as exc:
            raise ExternalFailureError(
                "Email delivery failed",
                event_type=event.event_type.value,
                recipient=recipient,
            ) from exc

        logger.info(
            "Notification email sent",
            extra={"event_type": event.event_type.value, "recipient": recipient},
        )

    def _render(self, event: LifecycleEvent) -> tuple[str, str] | None:
        p = event.payload

        if event.event_type is EventType.PURCHASE_REQUESTED:
            return (
                f"Purchase request received - {BRAND}",
                "We received your purchase request and are reviewing your information.\n"
                f"Estimated monthly payment: ${p['monthly_payment']}\n"
                f"Term: {p['term_months']} months\n"
                "Our credit team will get back to you within 48 hours.",
            )

        if event.event_type is EventType.FINANCING_DECIDED:
            if p["approved"]:
                lines = [
                    "Your financing has been approved.",
                    f"Approved amount: ${p['approved_amount']}",
                    f"Interest rate: {p['interest_rate']}",
                    f"Monthly payment: ${p['monthly_payment']}",
                    f"Term: {p['approved_term_months']} months",
                ]
                lines += [f"- {c}" for c in p.get("conditions", [])]
                return (f"Your financing was approved - {BRAND}", "\n".join(lines))

            lines = ["We are sorry, your financing was not approved."]
            lines += [f"Reason: {r}" for r in p.get("rejection_reasons", [])]
            lines += [f"- {s}" for s in p.get("suggestions", [])]
            return (f"Your financing request result - {BRAND}", "\n".join(lines))

        if event.event_type is EventType.PURCHASE_COMPLETED:
            return (
                f"Purchase completed - {BRAND}",
                f"Your purchase has been completed. Delivery date: {p['delivered_at']}",
            )

        if event.event_type is EventType.PAYMENT_REGISTERED:
            return (
                f"Payment received - {BRAND}",
                f"We registered your payment of ${p['amount']}.\n"
                f"Outstanding balance: ${p['outstanding_balance']}",
            )

        return None
