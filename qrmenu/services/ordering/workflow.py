"""
Order Workflow

Creates orders from a cart and moves them through the status flow.

Creation writes the Order and all of its Order Items in one transaction,
so a dashboard never sees an order without its lines. The `order_created`
event is published only after the commit; a feed outage is logged and the
customer's order still stands.

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import logging
import weakref
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.core.config import get_settings
from qrmenu.core.exceptions import (
    NotFoundError,
    OrderSubmissionError,
    StoreWriteError,
    ValidationFailedError,
)
from qrmenu.models import Order, OrderItem, OrderStatus, PaymentMethod, RestaurantTable
from qrmenu.schemas import OrderEvent, OrderSummary
from qrmenu.services.ordering.cart import Cart
from qrmenu.services.ordering.status import INITIAL_STATUS, validate_transition
from qrmenu.services.realtime import BaseOrderFeed, get_order_feed

logger = logging.getLogger(__name__)

# One lock per order id while someone is writing it
_order_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()


def _order_lock(order_id: str) -> asyncio.Lock:
    lock = _order_locks.get(order_id)
    if lock is None:
        lock = asyncio.Lock()
        _order_locks[order_id] = lock
    return lock


def order_event(order: Order) -> OrderEvent:
    """Build the realtime payload for a freshly committed order."""
    return OrderEvent(owner_id=order.owner_id, order=OrderSummary.model_validate(order))


class OrderWorkflow:
    """
    Order creation, status transitions and owner-scoped reads.

    Example:
        >>> workflow = OrderWorkflow(db)
        >>> order = await workflow.submit(table, cart, PaymentMethod.CASH)
        >>> await workflow.transition(owner_id, order.id, OrderStatus.CONFIRMED)
    """

    def __init__(self, session: AsyncSession, feed: Optional[BaseOrderFeed] = None):
        self.session = session
        self.feed = feed or get_order_feed()

    # =========================================================================
    # CREATION
    # =========================================================================

    async def submit(
        self,
        table: RestaurantTable,
        cart: Cart,
        payment_method: PaymentMethod = PaymentMethod.CASH,
        customer_note: Optional[str] = None,
    ) -> Order:
        """
        Persist `cart` as a pending order for `table`.

        Raises:
            ValidationFailedError: the cart is empty (nothing is written)
            OrderSubmissionError: the transaction failed (nothing is written)
        """
        if cart.is_empty:
            raise ValidationFailedError("Cart is empty")
        table_number, owner_id = table.number, table.owner_id

        order = Order(
            owner_id=owner_id,
            table_id=table.id,
            table_number=table_number,
            status=INITIAL_STATUS,
            payment_method=PaymentMethod(payment_method),
            customer_note=customer_note,
            total=cart.total(),
        )
        order.items = [
            OrderItem(
                product_id=line.product.id,
                product_name=line.product.name,
                quantity=line.quantity,
                unit_price=line.product.price,
                position=position,
            )
            for position, line in enumerate(cart)
        ]

        self.session.add(order)
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Order for table {table_number} ({owner_id}) not saved: {e}")
            raise OrderSubmissionError(
                "Order could not be submitted",
                detail="Please try again or call the staff.",
            ) from e

        logger.info(
            f"Order #{order.id[:8]} placed: table {order.table_number}, "
            f"{cart.item_count()} item(s), total {order.total}"
        )
        await self._publish(order)
        return order

    async def _publish(self, order: Order) -> None:
        try:
            await self.feed.publish(order_event(order))
        except Exception:
            logger.exception(f"Order #{order.id[:8]} saved but not pushed to dashboards")

    # =========================================================================
    # STATUS
    # =========================================================================

    async def transition(self, owner_id: str, order_id: str, target: OrderStatus) -> Order:
        """
        Move an owner's order to `target`.

        Requesting the status the order already has changes nothing.

        Raises:
            NotFoundError: no such order for this owner
            InvalidTransitionError: `target` is not reachable; order untouched
            StoreWriteError: the update was rejected
        """
        target = OrderStatus(target)
        async with _order_lock(order_id):
            order = await self.get_order(owner_id, order_id)
            if not validate_transition(order.status, target):
                return order

            previous = order.status
            order.status = target
            try:
                await self.session.commit()
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.error(f"Status update of order #{order_id[:8]} failed: {e}")
                raise StoreWriteError("Order status could not be updated") from e

        logger.info(f"Order #{order_id[:8]}: {previous.value} → {target.value}")
        return order

    # =========================================================================
    # READS
    # =========================================================================

    async def get_order(self, owner_id: str, order_id: str) -> Order:
        result = await self.session.execute(
            select(Order)
            .where(Order.id == order_id, Order.owner_id == owner_id)
            .execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    async def recent_orders(self, owner_id: str, limit: Optional[int] = None) -> list[Order]:
        """The owner's most recent orders, newest first."""
        limit = limit or get_settings().recent_orders_limit
        result = await self.session.execute(
            select(Order)
            .where(Order.owner_id == owner_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
