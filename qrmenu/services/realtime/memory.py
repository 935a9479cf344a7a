"""
In-process Order Feed

Delivers events to subscriptions held in this process. Used in development
and tests; a multi-process deployment needs the Redis feed instead.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging

from qrmenu.schemas import OrderEvent
from qrmenu.services.realtime.base import (
    BaseOrderFeed,
    OrderEventHandler,
    Subscription,
)

logger = logging.getLogger(__name__)


class MemoryOrderFeed(BaseOrderFeed):
    """
    Fan-out of order events to same-process subscribers.

    Example:
        >>> feed = MemoryOrderFeed()
        >>> sub = await feed.subscribe("owner-1", handler)
        >>> await feed.publish(event)   # handler(event) if event.owner_id == "owner-1"
        >>> await feed.unsubscribe(sub)
    """

    def __init__(self):
        self._subscriptions: dict[str, dict[str, Subscription]] = {}
        logger.info("MemoryOrderFeed initialized")

    @property
    def provider_name(self) -> str:
        return "memory"

    async def subscribe(self, owner_id: str, handler: OrderEventHandler) -> Subscription:
        subscription = Subscription(owner_id=owner_id, handler=handler)
        self._subscriptions.setdefault(owner_id, {})[subscription.id] = subscription
        logger.info(f"Dashboard subscribed to orders of {owner_id} ({subscription.id})")
        return subscription

    async def unsubscribe(self, subscription: Subscription) -> None:
        subscription.active = False
        owner_subs = self._subscriptions.get(subscription.owner_id)
        if owner_subs is None or owner_subs.pop(subscription.id, None) is None:
            return
        if not owner_subs:
            del self._subscriptions[subscription.owner_id]
        logger.info(
            f"Dashboard unsubscribed from orders of {subscription.owner_id} "
            f"({subscription.id}, {subscription.delivered} delivered)"
        )

    async def publish(self, event: OrderEvent) -> int:
        # Snapshot: handlers may unsubscribe while we iterate
        targets = list(self._subscriptions.get(event.owner_id, {}).values())
        for subscription in targets:
            await self._dispatch(subscription, event, logger)
        logger.debug(f"Order {event.order.id} published to {len(targets)} subscriber(s)")
        return len(targets)

    def subscriber_count(self, owner_id: str) -> int:
        return len(self._subscriptions.get(owner_id, {}))

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        for owner_subs in self._subscriptions.values():
            for subscription in owner_subs.values():
                subscription.active = False
        self._subscriptions.clear()
