"""
Order status lifecycle.

    PENDING -> PREPARING -> READY -> DELIVERED
       |           |          |
       +-----------+----------+--> CANCELLED

PENDING is only ever set by checkout. DELIVERED and CANCELLED are terminal.
"""
from shared.errors import ValidationError

from .models import OrderStatus

ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

INITIAL_STATUS = OrderStatus.PENDING


def is_terminal(status: OrderStatus) -> bool:
    return not ALLOWED_TRANSITIONS[status]


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: OrderStatus, target: OrderStatus) -> None:
    if can_transition(current, target):
        return

    if is_terminal(current):
        raise ValidationError(f"Order is {current.value} and can no longer change status")
    raise ValidationError(f"Cannot move an order from {current.value} to {target.value}")
