"""
Dashboard Aggregator

Pure functions recomputed from the currently loaded orders; nothing here is
persisted. Works on ORM orders, OrderSummary models or anything with
`status`, `total` and `created_at`.

- Revenue and average order value never include cancelled orders.
- Per-status counts include every status, cancelled too.
- The hide-finished toggle only filters the list; aggregates always run over
  the unfiltered set.
"""

from collections import Counter
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional, Sequence
from zoneinfo import ZoneInfo

from qrmenu.core.config import get_settings
from qrmenu.models import OrderStatus
from qrmenu.schemas import DashboardStats

FINISHED_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})

ZERO = Decimal("0")


def _local_tz(tz: Optional[str] = None) -> ZoneInfo:
    return ZoneInfo(tz or get_settings().timezone)


def local_date(moment: datetime, tz: ZoneInfo) -> date:
    """Calendar day of `moment` in `tz`; naive datetimes are taken as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz).date()


def non_cancelled(orders: Iterable) -> list:
    return [o for o in orders if OrderStatus(o.status) != OrderStatus.CANCELLED]


def placed_today(orders: Iterable, now: Optional[datetime] = None, tz: Optional[str] = None) -> list:
    """Non-cancelled orders created on the local calendar day of `now`."""
    zone = _local_tz(tz)
    today = local_date(now or datetime.now(timezone.utc), zone)
    return [o for o in non_cancelled(orders) if local_date(o.created_at, zone) == today]


def today_revenue(orders: Iterable, now: Optional[datetime] = None, tz: Optional[str] = None) -> Decimal:
    return sum((Decimal(o.total) for o in placed_today(orders, now, tz)), ZERO)


def completed_orders(orders: Iterable) -> list:
    return [o for o in non_cancelled(orders) if OrderStatus(o.status) == OrderStatus.COMPLETED]


def avg_order_value(orders: Iterable) -> Decimal:
    """Mean total of completed orders, 0 when there are none."""
    completed = completed_orders(orders)
    if not completed:
        return ZERO
    total = sum((Decimal(o.total) for o in completed), ZERO)
    return (total / len(completed)).quantize(Decimal("0.01"))


def count_by_status(orders: Iterable, status: OrderStatus) -> int:
    status = OrderStatus(status)
    return sum(1 for o in orders if OrderStatus(o.status) == status)


def status_breakdown(orders: Iterable) -> dict[OrderStatus, int]:
    """Count for every status, zero included, in workflow order."""
    counts = Counter(OrderStatus(o.status) for o in orders)
    return {status: counts.get(status, 0) for status in OrderStatus}


def visible_orders(orders: Sequence, hide_finished: bool = False) -> list:
    """Orders shown in the list view."""
    if not hide_finished:
        return list(orders)
    return [o for o in orders if OrderStatus(o.status) not in FINISHED_STATUSES]


def summarize(
    orders: Sequence,
    now: Optional[datetime] = None,
    tz: Optional[str] = None,
) -> DashboardStats:
    """All dashboard aggregates over the unfiltered order set."""
    orders = list(orders)
    return DashboardStats(
        today_revenue=today_revenue(orders, now, tz),
        avg_order_value=avg_order_value(orders),
        today_order_count=len(placed_today(orders, now, tz)),
        completed_order_count=len(completed_orders(orders)),
        status_counts=status_breakdown(orders),
        currency=get_settings().currency,
    )
