from __future__ import annotations

import logging

from dealer_finance.domain.events import LifecycleEvent
from dealer_finance.ports.event_publisher import EventPublisher

logger = logging.getLogger(__name__)


class FanoutEventPublisher(EventPublisher):
    """
    Delivers each event to every subscriber.

    A failing subscriber does not stop delivery to the others; its error is
    logged and dropped.
    """

    def __init__(self, subscribers: list[EventPublisher]) -> None:
        self._subscribers = subscribers

    def publish(self, event: LifecycleEvent) -> None:
        for subscriber in self._subscribers:
            try:
                subscriber.publish(event)
            except Exception:
                logger.exception(
                    "Event subscriber failed",
                    extra={
                        "event_type": event.event_type.value,
                        "subscriber": type(subscriber).__name__,
                    },
                )
