"""
Realtime Order Feed Abstract Base Class

Defines the interface for pushing newly created orders to the dashboards of
the owner they belong to. A dashboard subscribes with its owner id and a
handler; every `order_created` event for that owner committed while the
subscription is active is passed to the handler. There is no backlog:
events published while nobody is subscribed are not replayed.

Implementations:
    - MemoryOrderFeed: in-process fan-out (development, tests)
    - RedisOrderFeed: Redis pub/sub (staging, production)

Author: Khalil Bannouri
Version: 1.0.0
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from qrmenu.schemas import OrderEvent

OrderEventHandler = Callable[[OrderEvent], Awaitable[None]]


def owner_channel(owner_id: str) -> str:
    """Channel name carrying one owner's order events."""
    return f"orders:owner:{owner_id}"


@dataclass(eq=False)
class Subscription:
    """
    Handle returned by `subscribe`.

    Attributes:
        owner_id: Owner whose orders are delivered
        handler: Coroutine function called once per event
        id: Unique handle id (for logging)
        active: False once unsubscribed; no delivery happens afterwards
        delivered: Number of events passed to the handler
    """
    owner_id: str
    handler: OrderEventHandler
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    active: bool = True
    delivered: int = 0


class BaseOrderFeed(ABC):
    """Abstract base class for realtime order feeds."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def subscribe(self, owner_id: str, handler: OrderEventHandler) -> Subscription:
        """
        Start delivering `owner_id`'s order events to `handler`.

        Returns:
            Subscription: handle to pass to `unsubscribe`
        """
        pass

    @abstractmethod
    async def unsubscribe(self, subscription: Subscription) -> None:
        """
        Stop deliveries for `subscription`.

        Safe to call more than once and for subscriptions that never
        received an event.
        """
        pass

    @abstractmethod
    async def publish(self, event: OrderEvent) -> int:
        """
        Publish an event to the subscriptions of `event.owner_id`.

        Returns:
            int: Number of subscriptions (or Redis subscribers) reached
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check feed connectivity."""
        pass

    async def close(self) -> None:
        """Release connections. Called on application shutdown."""
        return None

    async def _dispatch(self, subscription: Subscription, event: OrderEvent, logger) -> None:
        """Run one handler; a failing handler must not affect other subscribers."""
        if not subscription.active or event.owner_id != subscription.owner_id:
            return
        try:
            await subscription.handler(event)
            subscription.delivered += 1
        except Exception:
            logger.exception(
                f"Order event handler failed (subscription={subscription.id}, "
                f"order={event.order.id})"
            )
