"""In-process publish/subscribe channel for role- or user-targeted notifications."""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from backend.leaddesk.core.time import utc_now

logger = logging.getLogger(__name__)


@dataclass
class Event:
    type: str
    payload: dict[str, Any]
    roles: Optional[frozenset[str]] = None
    user_ids: Optional[frozenset[int]] = None
    created_at: Any = field(default_factory=utc_now)


@dataclass(eq=False)
class Subscription:
    handler: Callable[[Event], None]
    user_id: Optional[int] = None
    role: Optional[str] = None

    def wants(self, event: Event) -> bool:
        if event.roles is None and event.user_ids is None:
            return True
        if event.roles and self.role in event.roles:
            return True
        if event.user_ids and self.user_id in event.user_ids:
            return True
        return False


class EventBus:
    def __init__(self):
        self._subscriptions: list[Subscription] = []

    def subscribe(
        self,
        handler: Callable[[Event], None],
        *,
        user_id: Optional[int] = None,
        role: Optional[str] = None,
    ) -> Subscription:
        subscription = Subscription(handler=handler, user_id=user_id, role=role)
        self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def publish(
        self,
        event_type: str,
        payload: dict[str, Any],
        *,
        roles: Optional[list[str]] = None,
        user_ids: Optional[list[Optional[int]]] = None,
    ) -> int:
        """Deliver to every matching subscriber and return how many received it.

        Delivery is best effort: a subscriber that raises is logged and skipped.
        """
        event = Event(
            type=event_type,
            payload=payload,
            roles=frozenset(roles) if roles is not None else None,
            user_ids=frozenset(uid for uid in user_ids if uid is not None) if user_ids is not None else None,
        )
        delivered = 0
        for subscription in list(self._subscriptions):
            if not subscription.wants(event):
                continue
            try:
                subscription.handler(event)
                delivered += 1
            except Exception:
                logger.exception("Event subscriber failed for %s", event_type)
        return delivered
