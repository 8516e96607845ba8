"""Shared pytest fixtures for order engine tests."""

from typing import Any, Optional

import pytest

from order_engine import (
    Actor,
    Cart,
    DraftOrder,
    MenuItemRef,
    OrderComposer,
    OrderDesk,
    OrderStatus,
    Rejection,
    RejectionReason,
    StaticMenu,
    SubmissionGateway,
    SubmissionRejectedError,
)
from order_engine.commands import AddItem, RequestTransition


class FakeGateway(SubmissionGateway):
    """In-memory backing store.

    Assigns sequential order ids, refuses a second order on an occupied
    table, and can be told to reject the next call with a given reason.
    """

    def __init__(self):
        self.calls: list[tuple[str, Any]] = []
        self.orders: dict[str, dict[str, Any]] = {}
        self.occupied_tables: dict[str, str] = {}
        self._next_rejection: Optional[Rejection] = None
        self._seq = 0

    def reject_next(self, reason: RejectionReason, detail: str = "") -> None:
        self._next_rejection = Rejection(reason, detail)

    def _maybe_reject(self) -> None:
        if self._next_rejection is not None:
            rejection, self._next_rejection = self._next_rejection, None
            raise SubmissionRejectedError(rejection)

    def submit_order(self, payload):
        self.calls.append(("submit_order", payload))
        self._maybe_reject()
        table = payload.get("table_number")
        if table and table in self.occupied_tables:
            raise SubmissionRejectedError(
                Rejection(RejectionReason.TABLE_OCCUPIED, f"Table {table} is currently occupied")
            )
        self._seq += 1
        order_id = f"order-{self._seq}"
        self.orders[order_id] = dict(payload)
        if table:
            self.occupied_tables[table] = order_id
        return order_id

    def submit_revision(self, order_id, payload):
        self.calls.append(("submit_revision", (order_id, payload)))
        self._maybe_reject()
        self.orders[order_id].update(payload)

    def request_transition(self, order_id, target):
        self.calls.append(("request_transition", (order_id, target)))
        self._maybe_reject()
        self.orders[order_id]["status"] = target.value
        if target.is_terminal:
            for table, linked in list(self.occupied_tables.items()):
                if linked == order_id:
                    del self.occupied_tables[table]

    def mark_item_received(self, order_id, line_id):
        self.calls.append(("mark_item_received", (order_id, line_id)))
        self._maybe_reject()

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


ADOBO = MenuItemRef("A", "Chicken Adobo", 100, category="Mains", available_servings=2)
SINIGANG = MenuItemRef("B", "Pork Sinigang", 150, category="Soups", available_servings=10)
HALO_HALO = MenuItemRef("C", "Halo-halo", 80, category="Desserts", available_servings=0)
LECHON = MenuItemRef("D", "Lechon Kawali", 300, category="Mains", available_servings=5, is_available=False)


@pytest.fixture
def menu():
    return StaticMenu([ADOBO, SINIGANG, HALO_HALO, LECHON])


@pytest.fixture
def cart(menu):
    return Cart(menu=menu)


@pytest.fixture
def draft(menu):
    return DraftOrder(menu=menu)


@pytest.fixture
def composer(menu):
    return OrderComposer(menu)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def desk(gateway, menu):
    return OrderDesk(gateway, menu=menu)


@pytest.fixture
def staff():
    return Actor.staff("staff-1", "Maria")


@pytest.fixture
def customer():
    return Actor.customer("cust-1", "Juan")


@pytest.fixture
def delivery_order(desk, cart, menu):
    """A pending delivery order: 2 x Adobo, 1 x Sinigang, owned by cust-1."""
    cart.add_item(AddItem(menu.get_menu_item("A")))
    cart.add_item(AddItem(menu.get_menu_item("A")))
    cart.add_item(AddItem(menu.get_menu_item("B")))
    return desk.checkout(
        cart,
        customer_phone="09171234567",
        delivery_address="12 Mabini St, Manila",
        customer_name="Juan",
        customer_id="cust-1",
    )


@pytest.fixture
def advance():
    """Walk an order through statuses directly on the aggregate."""

    def _advance(order, *targets, actor=None):
        actor = actor or Actor.staff()
        for target in targets:
            order.request_transition(RequestTransition(OrderStatus(target), actor))
        return order

    return _advance
