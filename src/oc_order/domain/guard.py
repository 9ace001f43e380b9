"""Mutation guard: which orders may be edited or deleted, given their status.

Ownership/role is checked first via ``access.authorize``; the status rules
below apply to whoever got through.
"""
from src.oc_common.enums import OrderStatus
from src.oc_common.errors import InvalidStateError
from src.oc_order.domain.models import Order

EDITABLE_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.PENDING, OrderStatus.PROCESSING}
)
DELETABLE_STATUSES: frozenset[OrderStatus] = frozenset({OrderStatus.PENDING})

# Content fields an edit may touch. Status, financials, order number, owner
# and line items are never editable here.
EDITABLE_FIELDS: frozenset[str] = frozenset({
    "customer_name",
    "customer_email",
    "customer_phone",
    "shipping_address",
    "notes",
})


def ensure_editable(order: Order) -> None:
    if order.status not in EDITABLE_STATUSES:
        raise InvalidStateError("modify", order.status.value)


def ensure_deletable(order: Order) -> None:
    if order.status not in DELETABLE_STATUSES:
        raise InvalidStateError("delete", order.status.value)


def apply_content_changes(order: Order, changes: dict[str, object]) -> list[str]:
    """Apply ``changes`` to ``order`` in place and return the changed field names."""
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields are not editable: {sorted(unknown)}")
    changed: list[str] = []
    for name, value in changes.items():
        if getattr(order, name) != value:
            setattr(order, name, value)
            changed.append(name)
    return changed
