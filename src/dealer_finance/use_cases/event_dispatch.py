"""Post-commit event delivery shared by the use cases."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from dealer_finance.domain.events import EventType, LifecycleEvent
from dealer_finance.domain.purchase import Purchase
from dealer_finance.ports.event_publisher import EventPublisher

logger = logging.getLogger(__name__)


def publish_events(publisher: EventPublisher, events: Iterable[LifecycleEvent]) -> None:
    """
    Hand events to the notifier, best effort.

    Must only be called after the unit of work committed. A failing publisher
    is logged and dropped: it can never undo the committed mutation.
    """
    for event in events:
        try:
            publisher.publish(event)
        except Exception as exc:
            logger.error(
                "Event dispatch failed",
                exc_info=exc,
                extra={
                    "event_type": event.event_type.value,
                    "error_type": type(exc).__name__,
                },
            )


def purchase_event(event_type: EventType, purchase: Purchase, **extra: Any) -> LifecycleEvent:
    """Build a purchase lifecycle event with the common identifying fields."""
    payload: dict[str, Any] = {
        "purchase_id": purchase.id,
        "quotation_id": purchase.quotation_id,
        "client_id": purchase.client_id,
        "client_email": purchase.client_email,
        "status": purchase.status.value,
    }
    payload.update(extra)
    return LifecycleEvent(event_type=event_type, payload=payload)
