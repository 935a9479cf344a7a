"""
Order status state machine.

    pending ──► confirmed ──► preparing ──► ready ──► completed
       │            │
       └────────────┴──► cancelled

`pending` is the only initial state; `completed` and `cancelled` are
terminal. Cancelling is possible only before preparation starts.
"""

from qrmenu.core.exceptions import InvalidTransitionError
from qrmenu.models import OrderStatus

INITIAL_STATUS = OrderStatus.PENDING

TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY}),
    OrderStatus.READY: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)

# Order the dashboard offers the next actions in
_DISPLAY_ORDER = list(OrderStatus)


def next_statuses(current: OrderStatus) -> list[OrderStatus]:
    """Statuses reachable from `current` in one step."""
    targets = TRANSITIONS[OrderStatus(current)]
    return [s for s in _DISPLAY_ORDER if s in targets]


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return OrderStatus(target) in TRANSITIONS[OrderStatus(current)]


def is_terminal(status: OrderStatus) -> bool:
    return OrderStatus(status) in TERMINAL_STATUSES


def validate_transition(current: OrderStatus, target: OrderStatus) -> bool:
    """
    Check a requested status change.

    Returns:
        True if the order must be updated, False if it is already in
        `target` (repeating a request is a no-op).

    Raises:
        InvalidTransitionError: `target` is not reachable from `current`
    """
    current, target = OrderStatus(current), OrderStatus(target)
    if current == target:
        return False
    if target not in TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, target.value)
    return True
