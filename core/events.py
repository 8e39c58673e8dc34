"""
Notification fan-out.

Delivers change events to whoever is subscribed right now. Delivery is
best-effort and at most once per subscriber: no persistence, no replay, no
ordering across subscribers. A failing subscriber is logged and skipped, and
publish() never raises into the request that triggered it.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable

from core.models import utc_now


logger = logging.getLogger(__name__)


class EventType(Enum):
    """Change events pushed to connected clients."""

    PROPERTY_CREATED = "propertyCreated"
    REPORT_CREATED = "reportCreated"
    TAX_NOTICE_CREATED = "taxNoticeCreated"


# Key under which each event type carries its entity in the wire frame
_PAYLOAD_KEYS = {
    EventType.PROPERTY_CREATED: "property",
    EventType.REPORT_CREATED: "report",
    EventType.TAX_NOTICE_CREATED: "taxNotice",
}


@dataclass(frozen=True)
class ChangeEvent:
    """One state change, with its entity already serialised."""

    event_type: EventType
    payload: dict
    occurred_at: datetime = field(default_factory=utc_now)

    def to_message(self) -> dict:
        """Wire frame: {"type": ..., "<entity>": {...}, "occurredAt": ...}."""
        return {
            "type": self.event_type.value,
            _PAYLOAD_KEYS[self.event_type]: self.payload,
            "occurredAt": self.occurred_at.isoformat(),
        }


Subscriber = Callable[[ChangeEvent], Any]


@dataclass(frozen=True)
class Subscription:
    subscription_id: int
    callback: Subscriber


class EventBus:
    """In-process fan-out of ChangeEvents to subscriber callbacks."""

    def __init__(self):
        self._subscribers: dict[int, Subscription] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> Subscription:
        with self._lock:
            subscription = Subscription(next(self._ids), callback)
            self._subscribers[subscription.subscription_id] = subscription
        logger.debug("Subscriber %d registered", subscription.subscription_id)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        """Remove a subscriber. Returns False if it was already gone."""
        with self._lock:
            removed = self._subscribers.pop(subscription.subscription_id, None)
        return removed is not None

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: ChangeEvent) -> int:
        """
        Deliver an event to every current subscriber.

        Returns:
            Number of subscribers the event was handed to without error.
        """
        with self._lock:
            targets = list(self._subscribers.values())

        delivered = 0
        for subscription in targets:
            try:
                subscription.callback(event)
                delivered += 1
            except Exception:
                logger.exception(
                    "Subscriber %d failed on %s",
                    subscription.subscription_id,
                    event.event_type.value,
                )
        return delivered
