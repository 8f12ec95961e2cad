from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventType(str, Enum):
    PURCHASE_REQUESTED = "purchase.requested"
    FINANCING_DECIDED = "purchase.financing_decided"
    PURCHASE_COMPLETED = "purchase.completed"
    PURCHASE_CANCELLED = "purchase.cancelled"
    PAYMENT_REGISTERED = "payment.registered"
    QUOTATION_CREATED = "quotation.created"
    QUOTATION_DECIDED = "quotation.decided"


@dataclass(frozen=True, slots=True)
class LifecycleEvent:
    """Structured event handed to the notifier after a commit.

    Payload values are JSON-friendly (str/int/bool/None, lists thereof).
    """

    event_type: EventType
    payload: dict[str, Any] = field(default_factory=dict)
