"""Order Composer: turns a cart or a staff selection into a submittable order.

Composing never talks to the backing store. It returns an immutable
OrderDraft (or an OrderRevision patch for an existing order) that the
submission layer may accept or reject.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

import structlog

from .cart import Cart
from .commands import AddItem, RemoveItem, ReviseOrder, SetQuantity
from .enums import CART_ORDER_TYPES, OrderStatus, OrderType, PaymentMethod, PaymentStatus
from .errors import ValidationError, errmsg
from .events import LineAdded
from .helpers import now
from .lifecycle import Actor, check_editable
from .lines import (
    LineItem,
    LineItemAggregate,
    LineState,
    OrderLine,
    check_lines_against_menu,
    merge_lines,
    coerce_order_type,
)
from .menu import MenuItemRef, MenuSnapshotProvider
from .money import compute_totals
from .validation import is_blank, require_choice, require_not_blank, require_not_empty

if TYPE_CHECKING:
    from .order import Order

log = structlog.get_logger(__name__)


def coerce_payment_method(value) -> PaymentMethod:
    try:
        return PaymentMethod(value)
    except ValueError:
        raise ValidationError(errmsg.PAYMENT_METHOD_INVALID, field="payment_method") from None


def payment_status_for(method: PaymentMethod) -> PaymentStatus:
    """GCash is settled up front; everything else is collected later."""
    return PaymentStatus.PAID if method == PaymentMethod.GCASH else PaymentStatus.PENDING


# ============================================================================
# Draft under composition
# ============================================================================


@dataclass
class DraftState(LineState):
    pass


class DraftOrder(LineItemAggregate[DraftState]):
    """A staff-side selection that has not been submitted yet.

    Shares every stock-bound rule with Cart. Defaults to dine-in, which is
    what the POS composes.
    """

    domain = "draft_order"

    def __init__(
        self,
        history=None,
        menu: Optional[MenuSnapshotProvider] = None,
        order_type: OrderType = OrderType.DINE_IN,
    ):
        self._initial_type = coerce_order_type(order_type)
        super().__init__(history, menu)

    @classmethod
    def from_order(cls, order: Order, menu: MenuSnapshotProvider) -> DraftOrder:
        """Seed a draft with an existing order's lines, re-reading the menu."""
        history = [
            LineAdded(
                line=LineItem(
                    menu_item_id=line.menu_item_id,
                    item_name=line.item_name,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    special_instructions=line.special_instructions,
                ),
                snapshot=menu.get_menu_item(line.menu_item_id),
            )
            for line in order.lines
        ]
        return cls(history=history, menu=menu, order_type=order.order_type)

    def _create_empty_state(self) -> DraftState:
        return DraftState(order_type=self._initial_type)

    def _default_order_type(self) -> OrderType:
        return self._initial_type

    def add_line_from_menu_item(self, snapshot: MenuItemRef):
        return self.add_item(AddItem(snapshot))

    def update_line_quantity(self, menu_item_id: str, quantity: int, snapshot: Optional[MenuItemRef] = None):
        return self.set_quantity(SetQuantity(menu_item_id, quantity, snapshot))

    def remove_line(self, menu_item_id: str):
        return self.remove_item(RemoveItem(menu_item_id))


# ============================================================================
# Composed values
# ============================================================================


@dataclass(frozen=True)
class OrderDraft:
    """An immutable order candidate, ready for submission.

    Totals are copied at compose time and are never re-derived from the lines
    afterwards.
    """

    order_type: OrderType
    lines: tuple[OrderLine, ...]
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    subtotal: Decimal
    delivery_fee: Decimal
    total: Decimal
    customer_phone: str = ""
    delivery_address: Optional[str] = None
    customer_name: str = ""
    customer_id: str = ""
    table_number: Optional[str] = None
    staff_name: str = ""
    notes: str = ""
    status: OrderStatus = OrderStatus.PENDING
    composed_at: datetime = field(default_factory=now)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)


@dataclass(frozen=True)
class OrderRevision:
    """A patch for a pending order.

    Fields left as None were not supplied and keep their current value.
    Totals are always present and always re-derived.
    """

    order_id: str
    subtotal: Decimal
    delivery_fee: Decimal
    total: Decimal
    lines: Optional[tuple[OrderLine, ...]] = None
    order_type: Optional[OrderType] = None
    delivery_address: Optional[str] = None
    customer_phone: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    payment_status: Optional[PaymentStatus] = None
    notes: Optional[str] = None

    def changed_fields(self) -> list[str]:
        names = (
            "lines",
            "order_type",
            "delivery_address",
            "customer_phone",
            "payment_method",
            "payment_status",
            "notes",
        )
        return [name for name in names if getattr(self, name) is not None]


# ============================================================================
# Composer
# ============================================================================


def _check_contact(order_type: OrderType, customer_phone, delivery_address) -> tuple[str, Optional[str]]:
    address = None
    if order_type == OrderType.DELIVERY:
        address = require_not_blank(delivery_address, "delivery_address")
    elif not is_blank(delivery_address):
        address = str(delivery_address).strip()
    phone = require_not_blank(customer_phone, "customer_phone")
    return phone, address


class OrderComposer:
    """Builds drafts and revisions; never submits them."""

    def __init__(self, menu: Optional[MenuSnapshotProvider] = None):
        self.menu = menu

    def compose_from_cart(
        self,
        cart: Cart,
        customer_phone: str,
        delivery_address: Optional[str] = None,
        payment_method=PaymentMethod.CASH,
        notes: str = "",
        customer_name: str = "",
        customer_id: str = "",
    ) -> OrderDraft:
        """Compose an online order from the cart.

        Raises:
            ValidationError: If the cart is empty or a required field is blank.
            StockExceededError: If a fresh menu read no longer covers a line.
        """
        require_not_empty(cart.lines)
        order_type = cart.order_type
        phone, address = _check_contact(order_type, customer_phone, delivery_address)
        method = coerce_payment_method(payment_method)
        if self.menu is not None:
            check_lines_against_menu(cart.lines, self.menu)

        totals = cart.totals
        log.info("composed_from_cart", order_type=order_type.value, total=str(totals.total))
        return OrderDraft(
            order_type=order_type,
            lines=tuple(OrderLine.from_line(line) for line in cart.lines),
            payment_method=method,
            payment_status=payment_status_for(method),
            subtotal=totals.subtotal,
            delivery_fee=totals.delivery_fee,
            total=totals.total,
            customer_phone=phone,
            delivery_address=address,
            customer_name=(customer_name or "").strip(),
            customer_id=customer_id,
            notes=(notes or "").strip(),
        )

    def compose_from_selection(
        self,
        lines: Iterable[LineItem],
        table_number,
        customer_name: str,
        payment_method=PaymentMethod.CASH,
        notes: str = "",
        staff_name: str = "",
    ) -> OrderDraft:
        """Compose a dine-in POS order for a table.

        Raises:
            ValidationError: If the table, customer name or lines are missing.
        """
        lines = merge_lines(lines)
        table = require_not_blank(None if table_number is None else str(table_number), "table_number")
        name = require_not_blank(customer_name, "customer_name")
        require_not_empty(lines)
        method = coerce_payment_method(payment_method)
        if self.menu is not None:
            check_lines_against_menu(lines, self.menu)

        totals = compute_totals(lines, OrderType.DINE_IN)
        log.info("composed_from_selection", table_number=table, total=str(totals.total))
        return OrderDraft(
            order_type=OrderType.DINE_IN,
            lines=tuple(OrderLine.from_line(line) for line in lines),
            payment_method=method,
            payment_status=payment_status_for(method),
            subtotal=totals.subtotal,
            delivery_fee=totals.delivery_fee,
            total=totals.total,
            customer_name=name,
            table_number=table,
            staff_name=(staff_name or "").strip(),
            notes=(notes or "").strip(),
        )

    def revise_existing_order(
        self,
        order: Order,
        new_lines: Optional[Iterable[LineItem]] = None,
        new_address: Optional[str] = None,
        new_phone: Optional[str] = None,
        new_payment_method=None,
        new_notes: Optional[str] = None,
        new_order_type=None,
        actor: Optional[Actor] = None,
    ) -> OrderRevision:
        """Build a patch for a pending order.

        The order itself is not modified; the patch is checked against it by
        speculation so the caller knows it would be accepted locally.

        Raises:
            StateConflictError: If the order is no longer pending.
            ValidationError: If the result would have no lines or lacks a
                required field.
        """
        check_editable(order.status)

        order_type = None
        if new_order_type is not None:
            order_type = coerce_order_type(new_order_type)
            require_choice(order_type, CART_ORDER_TYPES, errmsg.ORDER_TYPE_INVALID, field="order_type")
        effective_type = order_type or order.order_type

        lines = None
        if new_lines is not None:
            new_lines = merge_lines(new_lines)
            require_not_empty(new_lines)
            if self.menu is not None:
                check_lines_against_menu(new_lines, self.menu)
            existing_ids = {line.menu_item_id: line.line_id for line in order.lines}
            lines = tuple(OrderLine.from_line(line, existing_ids.get(line.menu_item_id)) for line in new_lines)
        effective_lines = lines if lines is not None else tuple(order.lines)
        require_not_empty(effective_lines)

        address = None
        if new_address is not None:
            address = require_not_blank(new_address, "delivery_address")
        if effective_type == OrderType.DELIVERY and is_blank(address or order.delivery_address):
            raise ValidationError.required("delivery_address")

        phone = require_not_blank(new_phone, "customer_phone") if new_phone is not None else None

        method = status = None
        if new_payment_method is not None:
            method = coerce_payment_method(new_payment_method)
            status = payment_status_for(method)

        notes = new_notes.strip() if new_notes is not None else None

        totals = compute_totals(effective_lines, effective_type)
        revision = OrderRevision(
            order_id=order.order_id,
            subtotal=totals.subtotal,
            delivery_fee=totals.delivery_fee,
            total=totals.total,
            lines=lines,
            order_type=order_type,
            delivery_address=address,
            customer_phone=phone,
            payment_method=method,
            payment_status=status,
            notes=notes,
        )
        order.speculate(ReviseOrder(revision, actor))
        log.info("revision_composed", order_id=order.order_id, fields=revision.changed_fields())
        return revision
