"""
Ordering: cart, status flow and the order workflow.
"""

from qrmenu.services.ordering.cart import Cart, CartLine, ProductSnapshot
from qrmenu.services.ordering.status import (
    INITIAL_STATUS,
    TERMINAL_STATUSES,
    TRANSITIONS,
    can_transition,
    is_terminal,
    next_statuses,
    validate_transition,
)
from qrmenu.services.ordering.workflow import OrderWorkflow, order_event

__all__ = [
    "Cart",
    "CartLine",
    "ProductSnapshot",
    "INITIAL_STATUS",
    "TERMINAL_STATUSES",
    "TRANSITIONS",
    "can_transition",
    "is_terminal",
    "next_statuses",
    "validate_transition",
    "OrderWorkflow",
    "order_event",
]
