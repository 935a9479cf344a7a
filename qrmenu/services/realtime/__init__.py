"""
Realtime Order Feed Factory

Provides a single entry point for obtaining the order feed instance.

Usage:
    from qrmenu.services.realtime import get_order_feed

    feed = get_order_feed()
    subscription = await feed.subscribe(owner_id, handler)
    ...
    await feed.unsubscribe(subscription)

Environment Switching:
    - ENV_MODE=development → MemoryOrderFeed (single process, no Redis)
    - ENV_MODE=staging/production → RedisOrderFeed

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from functools import lru_cache

from qrmenu.core.config import get_settings
from qrmenu.services.realtime.base import (
    BaseOrderFeed,
    OrderEventHandler,
    Subscription,
    owner_channel,
)
from qrmenu.services.realtime.memory import MemoryOrderFeed
from qrmenu.services.realtime.redis import RedisOrderFeed

logger = logging.getLogger(__name__)


@lru_cache()
def get_order_feed() -> BaseOrderFeed:
    """
    Get the configured order feed instance.

    The instance is cached so publishers and subscribers in this process
    share the same feed.
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Order Feed: Using MemoryOrderFeed (development mode)")
        return MemoryOrderFeed()
    else:
        logger.info(f"Order Feed: Using RedisOrderFeed ({settings.env_mode.value} mode)")
        return RedisOrderFeed()


def reset_order_feed() -> None:
    """Clear the cached feed instance."""
    get_order_feed.cache_clear()


__all__ = [
    "get_order_feed",
    "reset_order_feed",
    "BaseOrderFeed",
    "OrderEventHandler",
    "Subscription",
    "owner_channel",
    "MemoryOrderFeed",
    "RedisOrderFeed",
]
