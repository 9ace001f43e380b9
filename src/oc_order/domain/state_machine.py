"""Order status state machine.

    pending    -> processing | cancelled
    processing -> shipped | cancelled
    shipped    -> delivered
    delivered  -> (terminal)
    cancelled  -> (terminal)

``pending`` is the only initial state.
"""
from types import MappingProxyType

from src.oc_common.enums import OrderStatus
from src.oc_common.errors import InvalidTransitionError

INITIAL_STATUS = OrderStatus.PENDING

TRANSITIONS: MappingProxyType[OrderStatus, frozenset[OrderStatus]] = MappingProxyType({
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
})

# Every status needs a row, even terminal ones.
_missing = set(OrderStatus) - set(TRANSITIONS)
if _missing:
    raise RuntimeError(f"Transition table is missing statuses: {sorted(s.value for s in _missing)}")


def allowed_targets(current: OrderStatus) -> frozenset[OrderStatus]:
    return TRANSITIONS[current]


def is_terminal(status: OrderStatus) -> bool:
    return not TRANSITIONS[status]


def can_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    return requested in TRANSITIONS[current]


def ensure_transition(current: OrderStatus, requested: OrderStatus) -> None:
    """Raise InvalidTransitionError naming both states if the edge does not exist."""
    if not can_transition(current, requested):
        raise InvalidTransitionError(current.value, requested.value)
