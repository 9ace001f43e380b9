"""Access scope resolver — the single place where role and ownership are checked.

Reads: ``resolve_scope`` yields the filter applied to listing, counting and
single-order lookup alike.
Everything else: ``authorize`` returns a typed ``AccessDecision`` that the
service enforces uniformly. A non-owner gets FORBIDDEN, never NOT_FOUND.
"""
from dataclasses import dataclass
from enum import Enum

from src.oc_common.enums import Role
from src.oc_common.errors import ForbiddenError
from src.oc_order.domain.models import Order


@dataclass(frozen=True)
class Caller:
    user_id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass(frozen=True)
class OrderScope:
    """owner_id=None means unrestricted."""

    owner_id: str | None = None

    @property
    def unrestricted(self) -> bool:
        return self.owner_id is None

    def includes(self, order: Order) -> bool:
        return self.unrestricted or order.owner_id == self.owner_id


class OrderAction(str, Enum):
    READ = "read"
    EDIT = "edit"
    DELETE = "delete"
    TRANSITION = "transition"


class AccessDecision(str, Enum):
    ALLOW = "allow"
    DENY_NOT_OWNER = "deny_not_owner"
    DENY_ROLE = "deny_role"

    @property
    def allowed(self) -> bool:
        return self is AccessDecision.ALLOW


# Actions that only an admin may perform, regardless of ownership
_ADMIN_ONLY: frozenset[OrderAction] = frozenset({OrderAction.TRANSITION})


def resolve_scope(caller: Caller) -> OrderScope:
    if caller.is_admin:
        return OrderScope()
    return OrderScope(owner_id=caller.user_id)


def authorize_action(caller: Caller, action: OrderAction) -> AccessDecision:
    """Role-only check, usable before the order is loaded."""
    if action in _ADMIN_ONLY and not caller.is_admin:
        return AccessDecision.DENY_ROLE
    return AccessDecision.ALLOW


def authorize(caller: Caller, action: OrderAction, order: Order) -> AccessDecision:
    decision = authorize_action(caller, action)
    if not decision.allowed or caller.is_admin:
        return decision
    if not order.is_owned_by(caller.user_id):
        return AccessDecision.DENY_NOT_OWNER
    return AccessDecision.ALLOW


def enforce(decision: AccessDecision) -> None:
    if decision is AccessDecision.DENY_ROLE:
        raise ForbiddenError("Admin role required")
    if decision is AccessDecision.DENY_NOT_OWNER:
        raise ForbiddenError("Access denied")


def require_admin(caller: Caller) -> None:
    """Gate for admin-only surfaces that have no order attached (user management)."""
    enforce(AccessDecision.ALLOW if caller.is_admin else AccessDecision.DENY_ROLE)
