"""Order aggregate: a placed order moving through its lifecycle."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

import structlog

from .aggregate import Aggregate, applies, handles
from .commands import MarkItemReceived, PlaceOrder, ReviseOrder, RequestTransition
from .enums import ItemStatus, OrderStatus, OrderType, PaymentMethod, PaymentStatus
from .errors import NotFoundError, StateConflictError, ValidationError, errmsg
from .events import ItemReceived, OrderPlaced, OrderRevised, OrderStatusChanged
from .helpers import now
from .lifecycle import Actor, allowed_targets, check_editable, check_owner, check_receivable, check_transition
from .lines import OrderLine
from .money import ZERO, Totals, compute_totals
from .validation import require_not_blank

if TYPE_CHECKING:
    from .composer import OrderDraft

log = structlog.get_logger(__name__)


@dataclass
class OrderState:
    order_id: str = ""
    status: OrderStatus = OrderStatus.PENDING
    order_type: OrderType = OrderType.DELIVERY
    # line_id -> line, in display order
    lines: dict[str, OrderLine] = field(default_factory=dict)
    delivery_address: Optional[str] = None
    customer_phone: str = ""
    customer_name: str = ""
    customer_id: str = ""
    table_number: Optional[str] = None
    staff_name: str = ""
    payment_method: PaymentMethod = PaymentMethod.CASH
    payment_status: PaymentStatus = PaymentStatus.PENDING
    notes: str = ""
    subtotal: Decimal = ZERO
    delivery_fee: Decimal = ZERO
    total: Decimal = ZERO
    placed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    status_history: list[tuple[OrderStatus, datetime]] = field(default_factory=list)

    def exists(self) -> bool:
        return bool(self.order_id)


class Order(Aggregate[OrderState]):
    """An order confirmed by the backing store.

    Lines, contact details, payment method and notes change only while the
    order is Pending. Status moves only along the lifecycle table, and each
    line's receipt state moves only from pending to received.
    """

    domain = "order"

    def _create_empty_state(self) -> OrderState:
        return OrderState()

    @classmethod
    def from_confirmation(cls, order_id: str, draft: OrderDraft) -> Order:
        """Build the local order once the backing store has assigned an id."""
        order = cls()
        order.place(PlaceOrder(order_id, draft))
        return order

    # --- Event appliers ---

    @applies(OrderPlaced)
    def apply_placed(self, state: OrderState, event: OrderPlaced) -> None:
        draft = event.draft
        state.order_id = event.order_id
        state.status = draft.status
        state.order_type = draft.order_type
        state.lines = {line.line_id: line for line in draft.lines}
        state.delivery_address = draft.delivery_address
        state.customer_phone = draft.customer_phone
        state.customer_name = draft.customer_name
        state.customer_id = draft.customer_id
        state.table_number = draft.table_number
        state.staff_name = draft.staff_name
        state.payment_method = draft.payment_method
        state.payment_status = draft.payment_status
        state.notes = draft.notes
        state.subtotal = draft.subtotal
        state.delivery_fee = draft.delivery_fee
        state.total = draft.total
        state.placed_at = event.placed_at
        state.updated_at = event.placed_at
        state.status_history.append((draft.status, event.placed_at))

    @applies(OrderRevised)
    def apply_revised(self, state: OrderState, event: OrderRevised) -> None:
        revision = event.revision
        if revision.lines is not None:
            state.lines = {line.line_id: line for line in revision.lines}
        for name in ("order_type", "delivery_address", "customer_phone", "payment_method", "payment_status", "notes"):
            value = getattr(revision, name)
            if value is not None:
                setattr(state, name, value)
        state.subtotal = revision.subtotal
        state.delivery_fee = revision.delivery_fee
        state.total = revision.total
        state.updated_at = event.revised_at

    @applies(OrderStatusChanged)
    def apply_status_changed(self, state: OrderState, event: OrderStatusChanged) -> None:
        state.status = event.status
        state.updated_at = event.changed_at
        state.status_history.append((event.status, event.changed_at))

    @applies(ItemReceived)
    def apply_item_received(self, state: OrderState, event: ItemReceived) -> None:
        line = state.lines[event.line_id]
        state.lines[event.line_id] = replace(line, item_status=ItemStatus.RECEIVED)
        state.updated_at = event.received_at

    # --- State accessors ---

    @property
    def order_id(self) -> str:
        return self._state.order_id

    @property
    def status(self) -> OrderStatus:
        return self._state.status

    @property
    def order_type(self) -> OrderType:
        return self._state.order_type

    @property
    def lines(self) -> list[OrderLine]:
        return list(self._state.lines.values())

    def get_line(self, line_id: str) -> Optional[OrderLine]:
        return self._state.lines.get(line_id)

    def item_status(self, line_id: str) -> ItemStatus:
        line = self._require_line(line_id)
        return line.item_status

    @property
    def all_received(self) -> bool:
        return bool(self._state.lines) and all(line.is_received for line in self._state.lines.values())

    @property
    def delivery_address(self) -> Optional[str]:
        return self._state.delivery_address

    @property
    def customer_phone(self) -> str:
        return self._state.customer_phone

    @property
    def customer_name(self) -> str:
        return self._state.customer_name

    @property
    def customer_id(self) -> str:
        return self._state.customer_id

    @property
    def table_number(self) -> Optional[str]:
        return self._state.table_number

    @property
    def staff_name(self) -> str:
        return self._state.staff_name

    @property
    def payment_method(self) -> PaymentMethod:
        return self._state.payment_method

    @property
    def payment_status(self) -> PaymentStatus:
        return self._state.payment_status

    @property
    def notes(self) -> str:
        return self._state.notes

    @property
    def totals(self) -> Totals:
        return Totals(subtotal=self._state.subtotal, delivery_fee=self._state.delivery_fee)

    @property
    def subtotal(self) -> Decimal:
        return self._state.subtotal

    @property
    def delivery_fee(self) -> Decimal:
        return self._state.delivery_fee

    @property
    def total(self) -> Decimal:
        return self._state.total

    @property
    def placed_at(self) -> Optional[datetime]:
        return self._state.placed_at

    @property
    def updated_at(self) -> Optional[datetime]:
        return self._state.updated_at

    @property
    def is_editable(self) -> bool:
        return self._state.status == OrderStatus.PENDING

    @property
    def is_terminal(self) -> bool:
        return self._state.status.is_terminal

    def next_statuses(self) -> list[OrderStatus]:
        return allowed_targets(self._state.status, self._state.order_type)

    # --- Command handlers ---

    @handles(PlaceOrder)
    def place(self, cmd: PlaceOrder) -> OrderPlaced:
        if self._state.exists():
            raise StateConflictError(errmsg.ORDER_EXISTS)
        order_id = require_not_blank(cmd.order_id, "order_id")
        draft = cmd.draft
        check_lines_and_totals(draft.lines, draft.order_type, draft.subtotal, draft.delivery_fee, draft.total)

        log.info("placing_order", order_id=order_id, order_type=draft.order_type.value)
        return OrderPlaced(order_id=order_id, draft=draft, placed_at=now())

    @handles(ReviseOrder)
    def revise(self, cmd: ReviseOrder) -> OrderRevised:
        self._require_exists()
        check_editable(self._state.status)
        if cmd.actor is not None:
            check_owner(cmd.actor, self._state.customer_id)
        revision = cmd.revision
        if revision.order_id != self._state.order_id:
            raise NotFoundError(f"{errmsg.ORDER_NOT_FOUND}: {revision.order_id}")
        lines = revision.lines if revision.lines is not None else tuple(self._state.lines.values())
        order_type = revision.order_type or self._state.order_type
        check_lines_and_totals(lines, order_type, revision.subtotal, revision.delivery_fee, revision.total)

        log.info("revising_order", order_id=self._state.order_id, fields=revision.changed_fields())
        return OrderRevised(revision=revision, revised_at=now())

    @handles(RequestTransition)
    def request_transition(self, cmd: RequestTransition) -> OrderStatusChanged:
        self._require_exists()
        target = coerce_status(cmd.target)
        check_transition(self._state.status, target, self._state.order_type, cmd.actor, self._state.customer_id)

        log.info(
            "changing_status",
            order_id=self._state.order_id,
            previous=self._state.status.value,
            status=target.value,
            actor_role=cmd.actor.role.value,
        )
        return OrderStatusChanged(
            previous=self._state.status,
            status=target,
            actor_role=cmd.actor.role,
            changed_at=now(),
        )

    def cancel(self, actor: Actor) -> OrderStatusChanged:
        return self.request_transition(RequestTransition(OrderStatus.CANCELLED, actor))

    @handles(MarkItemReceived)
    def mark_item_received(self, cmd: MarkItemReceived) -> Optional[ItemReceived]:
        """Mark one line received. Repeating it on a received line does nothing."""
        self._require_exists()
        check_receivable(self._state.status)
        if cmd.actor is not None:
            check_owner(cmd.actor, self._state.customer_id)
        line = self._require_line(cmd.line_id)
        if line.is_received:
            return None

        log.info("receiving_item", order_id=self._state.order_id, line_id=cmd.line_id)
        return ItemReceived(line_id=cmd.line_id, received_at=now())

    def _require_exists(self) -> None:
        if not self._state.exists():
            raise NotFoundError(errmsg.ORDER_NOT_FOUND)

    def _require_line(self, line_id: str) -> OrderLine:
        line = self._state.lines.get(line_id)
        if line is None:
            raise NotFoundError(f"{errmsg.ORDER_LINE_NOT_FOUND}: {line_id}")
        return line


def coerce_status(value) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown order status: {value}", field="status") from None


def check_lines_and_totals(lines, order_type: OrderType, subtotal, delivery_fee, total) -> None:
    """Reject line sets that are empty or share a line id, and totals that don't match them."""
    if not lines:
        raise ValidationError(errmsg.ORDER_EMPTY)
    if len({line.line_id for line in lines}) != len(lines):
        raise ValidationError(errmsg.DUPLICATE_LINE, field="order_items")
    expected = compute_totals(lines, order_type)
    if (subtotal, delivery_fee, total) != (expected.subtotal, expected.delivery_fee, expected.total):
        raise ValidationError(errmsg.TOTALS_MISMATCH, field="total_amount")
