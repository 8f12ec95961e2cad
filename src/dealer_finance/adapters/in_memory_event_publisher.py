from __future__ import annotations

from dealer_finance.domain.events import EventType, LifecycleEvent
from dealer_finance.ports.event_publisher import EventPublisher


class InMemoryEventPublisher(EventPublisher):
    """Records published events in order. Canonical implementation for tests."""

    def __init__(self) -> None:
        self.events: list[LifecycleEvent] = []

    def publish(self, event: LifecycleEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: EventType) -> list[LifecycleEvent]:
        return [e for e in self.events if e.event_type is event_type]
