"""
Dashboard view state.

One owner's dashboard as an explicit object: the loaded orders (newest
first), the hide-finished toggle and notifications not yet shown. The
WebSocket endpoint keeps one per connection and feeds it realtime events.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from qrmenu.core.config import get_settings
from qrmenu.models import OrderStatus
from qrmenu.schemas import DashboardStats, OrderEvent, OrderSummary
from qrmenu.services.dashboard.aggregator import summarize, visible_orders

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    order_id: str
    table_number: Optional[int]
    message: str


def new_order_message(table_number: Optional[int]) -> str:
    if table_number is None:
        return "New order"
    return f"New order — Table {table_number}"


class DashboardView:
    """
    Example:
        >>> view = DashboardView(owner_id)
        >>> view.load(await workflow.recent_orders(owner_id))
        >>> view.on_order_created(event)
        >>> view.stats().today_revenue
    """

    def __init__(self, owner_id: str, limit: Optional[int] = None, tz: Optional[str] = None):
        self.owner_id = owner_id
        self.limit = limit or get_settings().recent_orders_limit
        self.tz = tz
        self.hide_finished = False
        self.orders: list[OrderSummary] = []
        self._notifications: list[Notification] = []

    def load(self, orders: Iterable) -> None:
        """Replace the loaded orders with a fresh read (any order-like objects)."""
        summaries = [OrderSummary.model_validate(o) for o in orders]
        summaries.sort(key=lambda o: o.created_at, reverse=True)
        self.orders = summaries[: self.limit]

    def on_order_created(self, event: OrderEvent) -> Optional[Notification]:
        """Prepend a newly created order and queue a notification for it."""
        if event.owner_id != self.owner_id:
            logger.warning(f"Ignoring order event for {event.owner_id} on dashboard of {self.owner_id}")
            return None
        if any(o.id == event.order.id for o in self.orders):
            return None

        self.orders.insert(0, event.order)
        del self.orders[self.limit:]

        notification = Notification(
            order_id=event.order.id,
            table_number=event.order.table_number,
            message=new_order_message(event.order.table_number),
        )
        self._notifications.append(notification)
        return notification

    def apply_status(self, order_id: str, status: OrderStatus) -> bool:
        """Reflect a committed status change; False if the order is not loaded."""
        for index, order in enumerate(self.orders):
            if order.id == order_id:
                self.orders[index] = order.model_copy(update={"status": OrderStatus(status)})
                return True
        return False

    def toggle_hide_finished(self) -> bool:
        self.hide_finished = not self.hide_finished
        return self.hide_finished

    def visible(self) -> list[OrderSummary]:
        return visible_orders(self.orders, self.hide_finished)

    def stats(self, now: Optional[datetime] = None) -> DashboardStats:
        return summarize(self.orders, now, self.tz)

    def drain_notifications(self) -> list[Notification]:
        pending, self._notifications = self._notifications, []
        return pending
