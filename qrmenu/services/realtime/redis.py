"""
Redis Order Feed

Production implementation using Redis pub/sub, so order events published by
any API worker reach dashboards connected to any other worker.

Channel layout:
    orders:owner:{owner_id}  - JSON-encoded OrderEvent per created order

Each subscription owns a PubSub connection and a reader task; unsubscribing
cancels the task before the connection is released, so no handler runs
after `unsubscribe` returns.

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import logging
from typing import Optional

import redis.asyncio as aioredis
from pydantic import ValidationError
from redis.exceptions import RedisError

from qrmenu.core.config import get_settings
from qrmenu.schemas import OrderEvent
from qrmenu.services.realtime.base import (
    BaseOrderFeed,
    OrderEventHandler,
    Subscription,
    owner_channel,
)

logger = logging.getLogger(__name__)


class RedisOrderFeed(BaseOrderFeed):
    """Order feed backed by Redis pub/sub."""

    def __init__(self, redis_url: Optional[str] = None, client: Optional[aioredis.Redis] = None):
        self.redis_url = redis_url or get_settings().redis_url
        self._client = client or aioredis.from_url(self.redis_url, decode_responses=True)
        self._readers: dict[str, tuple[aioredis.client.PubSub, asyncio.Task]] = {}
        logger.info("RedisOrderFeed initialized")

    @property
    def provider_name(self) -> str:
        return "redis"

    async def subscribe(self, owner_id: str, handler: OrderEventHandler) -> Subscription:
        subscription = Subscription(owner_id=owner_id, handler=handler)
        pubsub = self._client.pubsub(ignore_subscribe_messages=True)
        await pubsub.subscribe(owner_channel(owner_id))

        task = asyncio.create_task(
            self._read(pubsub, subscription),
            name=f"order-feed-{subscription.id}",
        )
        self._readers[subscription.id] = (pubsub, task)
        logger.info(f"Dashboard subscribed to {owner_channel(owner_id)} ({subscription.id})")
        return subscription

    async def _read(self, pubsub, subscription: Subscription) -> None:
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    event = OrderEvent.model_validate_json(message["data"])
                except ValidationError as e:
                    logger.warning(f"Dropping malformed order event on {message.get('channel')}: {e}")
                    continue
                await self._dispatch(subscription, event, logger)
        except RedisError as e:
            logger.error(f"Order feed reader {subscription.id} lost its connection: {e}")

    async def unsubscribe(self, subscription: Subscription) -> None:
        subscription.active = False
        reader = self._readers.pop(subscription.id, None)
        if reader is None:
            return

        await self._stop_reader(subscription.id, *reader)

        logger.info(
            f"Dashboard unsubscribed from {owner_channel(subscription.owner_id)} "
            f"({subscription.id}, {subscription.delivered} delivered)"
        )

    async def _stop_reader(self, subscription_id: str, pubsub, task: asyncio.Task) -> None:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

        try:
            await pubsub.unsubscribe()
        except RedisError as e:
            logger.warning(f"Unsubscribe of {subscription_id} failed: {e}")
        finally:
            await pubsub.aclose()

    async def publish(self, event: OrderEvent) -> int:
        receivers = await self._client.publish(
            owner_channel(event.owner_id),
            event.model_dump_json(),
        )
        logger.debug(f"Order {event.order.id} published to {receivers} subscriber(s)")
        return receivers

    async def health_check(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False

    async def close(self) -> None:
        readers = list(self._readers.items())
        self._readers.clear()
        for subscription_id, (pubsub, task) in readers:
            await self._stop_reader(subscription_id, pubsub, task)
        await self._client.aclose()
        logger.info(f"RedisOrderFeed closed ({len(readers)} reader(s) stopped)")
