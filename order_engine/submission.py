"""Submission port and the desk that coordinates local checks with it.

Local state is a draft until the gateway confirms. Every OrderDesk method
validates locally first (by speculation where an aggregate is involved),
then asks the gateway, and only applies the change once the gateway has
accepted it. A gateway rejection propagates unchanged and leaves the cart,
draft or order exactly as it was.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

import structlog

from .cart import Cart
from .cash import CashTender, validate_for_submission
from .commands import ClearLines, MarkItemReceived, RequestTransition, ReviseOrder
from .composer import DraftOrder, OrderComposer, OrderDraft, OrderRevision
from .enums import OrderStatus, PaymentMethod
from .errors import SubmissionRejectedError
from .lifecycle import Actor
from .menu import MenuSnapshotProvider
from .order import Order, coerce_status
from .serialization import draft_to_payload, revision_to_payload
from .tables import TableBoard

log = structlog.get_logger(__name__)


class SubmissionGateway(ABC):
    """The external layer that persists orders.

    Every method raises SubmissionRejectedError when the backing store
    refuses the request. Timeouts and retries are the gateway's business.
    """

    @abstractmethod
    def submit_order(self, payload: dict[str, Any]) -> str:
        """Persist a new order and return its id."""

    @abstractmethod
    def submit_revision(self, order_id: str, payload: dict[str, Any]) -> None:
        """Apply a patch to a pending order."""

    @abstractmethod
    def request_transition(self, order_id: str, target: OrderStatus) -> None:
        """Move an order to target status."""

    @abstractmethod
    def mark_item_received(self, order_id: str, line_id: str) -> None:
        """Mark one order line as received."""


class OrderDesk:
    """Entry point for every screen that submits or changes an order."""

    def __init__(
        self,
        gateway: SubmissionGateway,
        menu: Optional[MenuSnapshotProvider] = None,
        tables: Optional[TableBoard] = None,
    ):
        self.gateway = gateway
        self.composer = OrderComposer(menu)
        self.tables = tables if tables is not None else TableBoard()

    def checkout(
        self,
        cart: Cart,
        customer_phone: str,
        delivery_address: Optional[str] = None,
        payment_method=PaymentMethod.CASH,
        notes: str = "",
        customer_name: str = "",
        customer_id: str = "",
    ) -> Order:
        """Submit the cart as an order; the cart is cleared only on success."""
        draft = self.composer.compose_from_cart(
            cart,
            customer_phone=customer_phone,
            delivery_address=delivery_address,
            payment_method=payment_method,
            notes=notes,
            customer_name=customer_name,
            customer_id=customer_id,
        )
        order = self._submit(draft)
        cart.clear(ClearLines())
        log.info("checked_out", order_id=order.order_id, total=str(order.total))
        return order

    def place_pos_order(
        self,
        draft_order: DraftOrder,
        table_number,
        customer_name: str,
        payment_method=PaymentMethod.CASH,
        notes: str = "",
        staff_name: str = "",
        amount_tendered=None,
    ) -> tuple[Order, Optional[CashTender]]:
        """Submit a POS selection for a table.

        The draft is reset and the table seated only after confirmation.
        """
        draft = self.composer.compose_from_selection(
            draft_order.lines,
            table_number=table_number,
            customer_name=customer_name,
            payment_method=payment_method,
            notes=notes,
            staff_name=staff_name,
        )
        tender = validate_for_submission(draft, amount_tendered)
        order = self._submit(draft)
        self.tables.seat(draft.table_number, draft.customer_name, draft.staff_name, order.order_id)
        draft_order.clear(ClearLines())
        log.info("pos_order_placed", order_id=order.order_id, table_number=draft.table_number)
        return order, tender

    def revise(self, order: Order, actor: Optional[Actor] = None, **changes) -> OrderRevision:
        """Compose, submit and apply a revision of a pending order.

        `changes` are the keyword arguments of
        OrderComposer.revise_existing_order.
        """
        revision = self.composer.revise_existing_order(order, actor=actor, **changes)
        self._call("submit_revision", order.order_id, revision_to_payload(revision))
        order.revise(ReviseOrder(revision, actor))
        return revision

    def request_transition(self, order: Order, target, actor: Actor) -> None:
        cmd = RequestTransition(coerce_status(target), actor)
        order.speculate(cmd)
        self._call("request_transition", order.order_id, cmd.target)
        order.request_transition(cmd)
        if order.is_terminal:
            self.tables.release_for_order(order.order_id)

    def cancel(self, order: Order, actor: Actor) -> None:
        self.request_transition(order, OrderStatus.CANCELLED, actor)

    def mark_item_received(self, order: Order, line_id: str, actor: Optional[Actor] = None) -> bool:
        """Mark a line received. Returns False if it already was."""
        cmd = MarkItemReceived(line_id, actor)
        if not order.speculate(cmd):
            return False
        self._call("mark_item_received", order.order_id, line_id)
        order.mark_item_received(cmd)
        return True

    def _submit(self, draft: OrderDraft) -> Order:
        order_id = self._call("submit_order", draft_to_payload(draft))
        return Order.from_confirmation(order_id, draft)

    def _call(self, method: str, *args):
        try:
            return getattr(self.gateway, method)(*args)
        except SubmissionRejectedError as e:
            log.warning("submission_rejected", call=method, reason=e.reason.value, detail=e.detail)
            raise
