from __future__ import annotations

from abc import ABC, abstractmethod

from dealer_finance.domain.events import LifecycleEvent


class EventPublisher(ABC):
    """
    Port for the notifier.

    Called after commit only. Implementations may raise; callers log and drop
    the failure so it cannot undo a committed mutation.
    """

    @abstractmethod
    def publish(self, event: LifecycleEvent) -> None: ...
