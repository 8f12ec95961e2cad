from __future__ import annotations

import logging

from dealer_finance.domain.events import LifecycleEvent
from dealer_finance.ports.event_publisher import EventPublisher

logger = logging.getLogger(__name__)


class LoggingEventPublisher(EventPublisher):
    """Writes every lifecycle event to the log. Default wiring for the HTTP app."""

    def publish(self, event: LifecycleEvent) -> None:
        logger.info(
            "Lifecycle event",
            extra={"event_type": event.event_type.value, "payload": event.payload},
        )
