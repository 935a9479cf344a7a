"""
Dashboard: aggregates over loaded orders and the per-connection view state.
"""

from qrmenu.services.dashboard.aggregator import (
    FINISHED_STATUSES,
    avg_order_value,
    completed_orders,
    count_by_status,
    non_cancelled,
    placed_today,
    status_breakdown,
    summarize,
    today_revenue,
    visible_orders,
)
from qrmenu.services.dashboard.view import DashboardView, Notification, new_order_message

__all__ = [
    "FINISHED_STATUSES",
    "avg_order_value",
    "completed_orders",
    "count_by_status",
    "non_cancelled",
    "placed_today",
    "status_breakdown",
    "summarize",
    "today_revenue",
    "visible_orders",
    "DashboardView",
    "Notification",
    "new_order_message",
]
