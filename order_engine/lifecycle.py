"""Order lifecycle: statuses, the transition table and who may use it.

    Pending ──► Ready ──► OnTheWay ──► Completed     (delivery)
       │          └─────────────────► Completed     (pickup, dine_in)
       └──► Cancelled

Completed and Cancelled are terminal. Staff drive the forward moves;
customers may only cancel their own pending orders.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from .enums import ActorRole, OrderStatus, OrderType
from .errors import StateConflictError, UnauthorizedError, errmsg
from .validation import require_status, require_status_in

_ANY_TYPE = frozenset(OrderType)

# (from, to) -> order types the move is legal for
TRANSITIONS: Mapping[tuple[OrderStatus, OrderStatus], frozenset[OrderType]] = {
    (OrderStatus.PENDING, OrderStatus.READY): _ANY_TYPE,
    (OrderStatus.PENDING, OrderStatus.CANCELLED): _ANY_TYPE,
    (OrderStatus.READY, OrderStatus.ON_THE_WAY): frozenset({OrderType.DELIVERY}),
    (OrderStatus.READY, OrderStatus.COMPLETED): frozenset({OrderType.PICKUP, OrderType.DINE_IN}),
    (OrderStatus.ON_THE_WAY, OrderStatus.COMPLETED): frozenset({OrderType.DELIVERY}),
}

EDITABLE_STATUS = OrderStatus.PENDING
RECEIVABLE_STATUSES = (OrderStatus.ON_THE_WAY, OrderStatus.COMPLETED)


@dataclass(frozen=True)
class Actor:
    """Whoever issues a lifecycle request."""

    role: ActorRole
    user_id: str = ""
    name: str = ""

    @classmethod
    def customer(cls, user_id: str, name: str = "") -> Actor:
        return cls(ActorRole.CUSTOMER, user_id, name)

    @classmethod
    def staff(cls, user_id: str = "", name: str = "") -> Actor:
        return cls(ActorRole.STAFF, user_id, name)

    @property
    def is_staff(self) -> bool:
        return self.role in (ActorRole.STAFF, ActorRole.ADMIN)


def can_transition(current: OrderStatus, target: OrderStatus, order_type: OrderType) -> bool:
    return order_type in TRANSITIONS.get((current, target), ())


def allowed_targets(current: OrderStatus, order_type: OrderType) -> list[OrderStatus]:
    return [target for (source, target), types in TRANSITIONS.items() if source == current and order_type in types]


def check_owner(actor: Actor, owner_id: str) -> None:
    """Customers may only act on orders they own; ownerless orders are open."""
    if actor.role == ActorRole.CUSTOMER and owner_id and actor.user_id != owner_id:
        raise UnauthorizedError(errmsg.NOT_ORDER_OWNER)


def check_transition(
    current: OrderStatus,
    target: OrderStatus,
    order_type: OrderType,
    actor: Actor,
    owner_id: str = "",
) -> None:
    """Raise unless actor may move an order of order_type from current to target."""
    if current.is_terminal:
        raise StateConflictError(errmsg.TERMINAL_STATE.format(status=current.value))

    if target == OrderStatus.CANCELLED:
        require_status(current, OrderStatus.PENDING, errmsg.ONLY_PENDING_CANCELLABLE)
        check_owner(actor, owner_id)
        return

    if not actor.is_staff:
        raise UnauthorizedError(errmsg.CUSTOMER_TRANSITION)

    if not can_transition(current, target, order_type):
        raise StateConflictError(errmsg.TRANSITION_INVALID.format(current=current.value, target=target.value))


def check_editable(current: OrderStatus) -> None:
    require_status(current, EDITABLE_STATUS, errmsg.ONLY_PENDING_EDITABLE)


def check_receivable(current: OrderStatus) -> None:
    require_status_in(current, RECEIVABLE_STATUSES, errmsg.RECEIPT_NOT_ALLOWED)
